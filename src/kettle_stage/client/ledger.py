"""Per-device record of the participant's votes.

The ledger is the only place that knows whether this participant already
voted on a post. It is convenience state, not security state: if storage is
missing or corrupt every post reads as unvoted, and concurrent writers from
several sessions simply overwrite each other.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
from pathlib import Path
from typing import Protocol

from kettle_stage.core.settings import settings
from kettle_stage.services.heat import Direction

logger = logging.getLogger(__name__)

VOTE_STORAGE_KEY = "tea_votes"
FINGERPRINT_STORAGE_KEY = "tea-fingerprint"


class LedgerStore(Protocol):
    """Raw key-value persistence behind a :class:`VoteLedger`."""

    def read(self) -> str | None: ...

    def write(self, data: str) -> None: ...


class MemoryLedgerStore:
    """Process-local store, mostly for tests and ephemeral sessions."""

    def __init__(self, data: str | None = None) -> None:
        self.data = data

    def read(self) -> str | None:
        return self.data

    def write(self, data: str) -> None:
        self.data = data


class JsonFileLedgerStore:
    """Stores the ledger as one JSON document on disk.

    The file lives under the participant's home directory by default and is
    created on the first write. Each store touches only its own ``key``
    (``tea_votes`` by default), so the votes and the reporter fingerprint
    share one file.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] | None = None,
        *,
        key: str = VOTE_STORAGE_KEY,
    ) -> None:
        self.path = Path(path or settings.vote_ledger_path).expanduser()
        self.key = key

    def read(self) -> str | None:
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Vote ledger at %s unreadable: %s", self.path, exc)
            return None
        if not isinstance(document, dict):
            return None
        value = document.get(self.key)
        return json.dumps(value) if value is not None else None

    def write(self, data: str) -> None:
        document: dict[str, object] = {}
        try:
            existing = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(existing, dict):
                document = existing
        except (OSError, ValueError):
            pass
        document[self.key] = json.loads(data)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document), encoding="utf-8")
        os.replace(tmp_path, self.path)


class VoteLedger:
    """Maps post ids to this participant's current vote direction."""

    def __init__(self, store: LedgerStore | None = None) -> None:
        self.store: LedgerStore = store if store is not None else MemoryLedgerStore()

    def _load(self) -> dict[str, Direction]:
        try:
            raw = self.store.read()
        except Exception as exc:
            logger.warning("Vote ledger read failed, treating as empty: %s", exc)
            return {}
        if not raw:
            return {}
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning("Vote ledger corrupted, treating as empty")
            return {}
        if not isinstance(decoded, dict):
            return {}

        votes: dict[str, Direction] = {}
        for post_id, value in decoded.items():
            try:
                votes[str(post_id)] = Direction(value)
            except ValueError:
                logger.debug("Dropping unknown vote %r for post %s", value, post_id)
        return votes

    def _save(self, votes: dict[str, Direction]) -> None:
        payload = json.dumps({post_id: direction.value for post_id, direction in votes.items()})
        try:
            self.store.write(payload)
        except Exception as exc:
            logger.warning("Vote ledger write failed: %s", exc)

    def get_vote(self, post_id: str) -> Direction | None:
        """Return the recorded direction for ``post_id``, if any."""
        return self._load().get(post_id)

    def set_vote(self, post_id: str, direction: Direction | None) -> None:
        """Record ``direction`` for ``post_id``; None clears the entry."""
        votes = self._load()
        if direction is None:
            votes.pop(post_id, None)
        else:
            votes[post_id] = direction
        self._save(votes)

    def snapshot(self) -> dict[str, Direction]:
        """Return a copy of every recorded vote."""
        return self._load()

    def clear(self) -> None:
        """Forget every vote. Only called on explicit participant request."""
        self._save({})


def load_fingerprint(store: LedgerStore) -> str:
    """Return this device's reporter fingerprint, creating it on first use.

    The fingerprint is a random token kept next to the vote ledger. Like the
    ledger it is fail-open: if it cannot be stored, a fresh token is used for
    this call only.
    """
    try:
        raw = store.read()
        existing = json.loads(raw) if raw else None
    except Exception as exc:
        logger.warning("Reporter fingerprint unreadable, issuing a new one: %s", exc)
        existing = None
    if isinstance(existing, str) and 8 <= len(existing) <= 64 and existing.isalnum():
        return existing

    fingerprint = secrets.token_hex(16)
    try:
        store.write(json.dumps(fingerprint))
    except Exception as exc:
        logger.warning("Reporter fingerprint write failed: %s", exc)
    return fingerprint
