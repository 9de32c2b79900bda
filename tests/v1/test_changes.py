# mypy: ignore-errors
"""Tests for the change-feed pull endpoint."""

from fastapi import status

from kettle_stage.services.change_feed import ChangeHub, ChangeKind, _ChangeHubSingleton


def test_pull_returns_events_and_cursor(client, kettle, make_post) -> None:
    post = make_post(kettle)
    client.post("/api/v1/vote/", json={"post_id": post.id, "action": "up"})
    client.post("/api/v1/vote/", json={"post_id": post.id, "action": "remove-up"})

    response = client.get(f"/api/v1/changes/{kettle.id}")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [event["kind"] for event in body["events"]] == ["update", "update"]
    assert body["cursor"] == body["events"][-1]["cursor"]


def test_pull_after_cursor_is_empty_until_next_change(client, kettle, make_post, hub) -> None:
    post = make_post(kettle)
    client.post("/api/v1/vote/", json={"post_id": post.id, "action": "up"})
    cursor = client.get(f"/api/v1/changes/{kettle.id}").json()["cursor"]

    idle = client.get(f"/api/v1/changes/{kettle.id}", params={"cursor": cursor}).json()
    assert idle == {"events": [], "cursor": cursor, "epoch": hub.epoch, "reset": False}

    client.post(f"/api/v1/kettles/{kettle.slug}/posts", json={"content": "fresh"})
    fresh = client.get(f"/api/v1/changes/{kettle.id}", params={"cursor": cursor}).json()
    assert [event["kind"] for event in fresh["events"]] == ["insert"]
    assert fresh["cursor"] > cursor


def test_pull_empty_kettle_has_no_cursor(client, kettle, hub) -> None:
    body = client.get(f"/api/v1/changes/{kettle.id}").json()
    assert body == {"events": [], "cursor": None, "epoch": hub.epoch, "reset": False}


def test_pull_unknown_kettle(client) -> None:
    response = client.get("/api/v1/changes/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def _restart_hub() -> ChangeHub:
    fresh = ChangeHub(retention=50)
    _ChangeHubSingleton._instance = fresh
    return fresh


def test_cursor_from_before_restart_resets(client, kettle, make_post, hub) -> None:
    post = make_post(kettle)
    for _ in range(5):
        hub.publish(kettle.id, ChangeKind.UPDATE, post.id)
    before = client.get(f"/api/v1/changes/{kettle.id}").json()
    assert before["cursor"] == 5

    restarted = _restart_hub()
    fresh = restarted.publish(kettle.id, ChangeKind.INSERT, "new-post")

    body = client.get(
        f"/api/v1/changes/{kettle.id}",
        params={"cursor": before["cursor"], "epoch": before["epoch"]},
    ).json()
    assert body["reset"] is True
    assert body["epoch"] == restarted.epoch != before["epoch"]
    assert [(event["kind"], event["post_id"]) for event in body["events"]] == [
        ("insert", "new-post")
    ]
    assert body["cursor"] == fresh.cursor

    settled = client.get(
        f"/api/v1/changes/{kettle.id}",
        params={"cursor": body["cursor"], "epoch": body["epoch"]},
    ).json()
    assert settled["reset"] is False
    assert settled["events"] == []


def test_epoch_mismatch_resets_even_when_cursor_is_behind(client, kettle, hub) -> None:
    for index in range(3):
        hub.publish(kettle.id, ChangeKind.INSERT, f"p{index}")

    body = client.get(
        f"/api/v1/changes/{kettle.id}",
        params={"cursor": 1, "epoch": "an-old-run"},
    ).json()
    assert body["reset"] is True
    assert [event["cursor"] for event in body["events"]] == [1, 2, 3]


def test_cursor_ahead_of_hub_without_epoch_resets_to_issued_cursor(
    client, kettle, make_kettle, hub
) -> None:
    other = make_kettle("other")
    hub.publish(other.id, ChangeKind.INSERT, "elsewhere")

    body = client.get(f"/api/v1/changes/{kettle.id}", params={"cursor": 40}).json()
    assert body["reset"] is True
    assert body["events"] == []
    assert body["cursor"] == 1
