# mypy: ignore-errors
"""Tests for reporting posts."""

from fastapi import status

from kettle_stage.models import Report

FINGERPRINT = "a1b2c3d4e5f6"


def report_url(slug: str, post_id: str) -> str:
    return f"/api/v1/kettles/{slug}/posts/{post_id}/reports"


def test_report_post(client, db_session, kettle, make_post) -> None:
    post = make_post(kettle)

    response = client.post(
        report_url(kettle.slug, post.id),
        json={
            "reason": "harassment",
            "description": "  names a real person  ",
            "reporter_fingerprint": FINGERPRINT,
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["post_id"] == post.id
    assert body["reason"] == "harassment"
    assert body["description"] == "names a real person"
    assert "reporter_fingerprint" not in body

    stored = db_session.get(Report, body["id"])
    assert stored.reporter_fingerprint == FINGERPRINT


def test_blank_description_is_stored_as_null(client, kettle, make_post) -> None:
    post = make_post(kettle)
    response = client.post(
        report_url(kettle.slug, post.id),
        json={"reason": "spam", "description": "   ", "reporter_fingerprint": FINGERPRINT},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["description"] is None


def test_report_validation(client, kettle, make_post) -> None:
    post = make_post(kettle)
    url = report_url(kettle.slug, post.id)

    unknown_reason = client.post(
        url, json={"reason": "boring", "reporter_fingerprint": FINGERPRINT}
    )
    too_long = client.post(
        url,
        json={"reason": "other", "description": "x" * 501, "reporter_fingerprint": FINGERPRINT},
    )
    short_fingerprint = client.post(url, json={"reason": "spam", "reporter_fingerprint": "abc"})

    assert unknown_reason.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert too_long.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert short_fingerprint.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_report_requires_visible_post_in_kettle(client, kettle, make_kettle, make_post) -> None:
    hidden = make_post(kettle, hidden=True)
    elsewhere = make_post(make_kettle("other"))
    payload = {"reason": "spam", "reporter_fingerprint": FINGERPRINT}

    urls = [
        report_url(kettle.slug, hidden.id),
        report_url(kettle.slug, elsewhere.id),
        report_url(kettle.slug, "missing"),
        report_url("nope", elsewhere.id),
    ]
    for url in urls:
        assert client.post(url, json=payload).status_code == status.HTTP_404_NOT_FOUND, url


def test_same_device_cannot_report_twice(client, kettle, make_post) -> None:
    post = make_post(kettle)
    url = report_url(kettle.slug, post.id)

    assert client.post(
        url, json={"reason": "spam", "reporter_fingerprint": FINGERPRINT}
    ).status_code == status.HTTP_201_CREATED
    again = client.post(url, json={"reason": "other", "reporter_fingerprint": FINGERPRINT})
    other_device = client.post(url, json={"reason": "other", "reporter_fingerprint": "ffff0000"})

    assert again.status_code == status.HTTP_409_CONFLICT
    assert other_device.status_code == status.HTTP_201_CREATED


def test_report_does_not_touch_heat_or_change_feed(client, kettle, make_post, hub) -> None:
    post = make_post(kettle, heat=12)
    client.post(
        report_url(kettle.slug, post.id),
        json={"reason": "spam", "reporter_fingerprint": FINGERPRINT},
    )

    assert client.get("/api/v1/vote/", params={"post_id": post.id}).json()["heat"] == 12
    assert hub.events_since(kettle.id) == []
