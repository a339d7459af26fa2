"""
SQLite store.

Schema mirrors the hosted Postgres deployment: `rewards.hunt_id` references `hunts` with
`ON DELETE CASCADE`, and claims are a single conditional `UPDATE ... WHERE claimed = 0`
whose row count decides the winner. Safe for several threads or processes sharing one
database file.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator

from tokenhunt.core.time import parse_datetime
from tokenhunt.domain.errors import StoreUnavailable, ValidationError
from tokenhunt.domain.models import (
    ClaimStatus,
    DeleteSummary,
    Hunt,
    PaymentReference,
    SpawnedReward,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS hunts (
    hunt_id        TEXT PRIMARY KEY,
    lat            REAL NOT NULL,
    lng            REAL NOT NULL,
    radius_meters  INTEGER NOT NULL,
    reward_token   TEXT NOT NULL DEFAULT 'WLD',
    reward_amount  REAL NOT NULL,
    max_claims     INTEGER NOT NULL,
    campaign_name  TEXT NOT NULL,
    description    TEXT,
    sponsor_wallet TEXT NOT NULL,
    claimed_count  INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS rewards (
    reward_id  TEXT PRIMARY KEY,
    hunt_id    TEXT NOT NULL REFERENCES hunts(hunt_id) ON DELETE CASCADE,
    lat        REAL NOT NULL,
    lng        REAL NOT NULL,
    amount     REAL NOT NULL,
    claimed    INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_rewards_hunt_id ON rewards(hunt_id);
CREATE INDEX IF NOT EXISTS idx_rewards_claimed ON rewards(claimed);

CREATE TABLE IF NOT EXISTS payment_references (
    reference  TEXT PRIMARY KEY,
    amount     TEXT NOT NULL,
    created_at TEXT NOT NULL,
    expires_at TEXT NOT NULL
);
"""

_HUNT_COLUMNS = (
    "hunt_id",
    "lat",
    "lng",
    "radius_meters",
    "reward_token",
    "reward_amount",
    "max_claims",
    "campaign_name",
    "description",
    "sponsor_wallet",
    "claimed_count",
    "created_at",
)
_REWARD_COLUMNS = ("reward_id", "hunt_id", "lat", "lng", "amount", "claimed", "created_at")


def _hunt_from_row(row: sqlite3.Row) -> Hunt:
    data = dict(row)
    data["created_at"] = parse_datetime(data["created_at"])
    return Hunt.model_validate(data)


def _reward_from_row(row: sqlite3.Row) -> SpawnedReward:
    data = dict(row)
    data["claimed"] = bool(data["claimed"])
    data["created_at"] = parse_datetime(data["created_at"])
    return SpawnedReward.model_validate(data)


def _payment_from_row(row: sqlite3.Row) -> PaymentReference:
    data = dict(row)
    data["created_at"] = parse_datetime(data["created_at"])
    data["expires_at"] = parse_datetime(data["expires_at"])
    return PaymentReference.model_validate(data)


class SqliteStore:
    """A `Store` backed by a SQLite database file."""

    def __init__(self, path: Path, *, timeout_seconds: float = 10.0) -> None:
        self._path = path
        self._timeout_seconds = timeout_seconds
        self.init_schema()

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error, always close."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._path), timeout=self._timeout_seconds)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Cannot open database {self._path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            with conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            raise ValidationError(str(exc)) from exc
        except sqlite3.Error as exc:
            logger.error("SQLite operation failed on %s: %s", self._path, exc)
            raise StoreUnavailable(f"Database error: {exc}") from exc
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    # Hunts

    def list_hunts(self) -> list[Hunt]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM hunts ORDER BY created_at, hunt_id").fetchall()
        return [_hunt_from_row(r) for r in rows]

    def get_hunt(self, hunt_id: str) -> Hunt | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM hunts WHERE hunt_id = ?", (hunt_id,)).fetchone()
        return _hunt_from_row(row) if row else None

    def create_hunt(self, hunt: Hunt) -> None:
        data = hunt.model_dump(mode="json")
        placeholders = ", ".join("?" for _ in _HUNT_COLUMNS)
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO hunts ({', '.join(_HUNT_COLUMNS)}) VALUES ({placeholders})",
                    tuple(data[c] for c in _HUNT_COLUMNS),
                )
        except ValidationError as exc:
            raise ValidationError(f"Hunt {hunt.hunt_id} already exists") from exc

    def delete_all_hunts(self) -> DeleteSummary:
        with self._connect() as conn:
            rewards = conn.execute("SELECT COUNT(*) FROM rewards").fetchone()[0]
            hunts = conn.execute("SELECT COUNT(*) FROM hunts").fetchone()[0]
            conn.execute("DELETE FROM hunts")
        return DeleteSummary(deleted_hunts=hunts, deleted_rewards=rewards)

    # Rewards

    def list_rewards(self, hunt_id: str | None = None) -> list[SpawnedReward]:
        with self._connect() as conn:
            if hunt_id is None:
                rows = conn.execute("SELECT * FROM rewards ORDER BY rowid").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM rewards WHERE hunt_id = ? ORDER BY rowid", (hunt_id,)
                ).fetchall()
        return [_reward_from_row(r) for r in rows]

    def get_reward(self, reward_id: str) -> SpawnedReward | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM rewards WHERE reward_id = ?", (reward_id,)).fetchone()
        return _reward_from_row(row) if row else None

    def insert_rewards_batch(self, rewards: Iterable[SpawnedReward]) -> int:
        batch = [r.model_dump(mode="json") for r in rewards]
        if not batch:
            return 0
        hunt_ids = sorted({r["hunt_id"] for r in batch})
        placeholders = ", ".join("?" for _ in _REWARD_COLUMNS)
        with self._connect() as conn:
            known = {
                row[0]
                for row in conn.execute(
                    f"SELECT hunt_id FROM hunts WHERE hunt_id IN ({', '.join('?' for _ in hunt_ids)})",
                    hunt_ids,
                )
            }
            missing = [h for h in hunt_ids if h not in known]
            if missing:
                raise ValidationError(f"Rewards reference unknown hunt(s): {', '.join(missing)}")
            cur = conn.executemany(
                f"INSERT OR IGNORE INTO rewards ({', '.join(_REWARD_COLUMNS)}) VALUES ({placeholders})",
                [tuple(int(r[c]) if c == "claimed" else r[c] for c in _REWARD_COLUMNS) for r in batch],
            )
            return cur.rowcount

    def set_reward_claimed(self, reward_id: str) -> ClaimStatus:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE rewards SET claimed = 1 WHERE reward_id = ? AND claimed = 0",
                (reward_id,),
            )
            if cur.rowcount == 1:
                conn.execute(
                    """
                    UPDATE hunts SET claimed_count = MIN(max_claims, claimed_count + 1)
                    WHERE hunt_id = (SELECT hunt_id FROM rewards WHERE reward_id = ?)
                    """,
                    (reward_id,),
                )
                return ClaimStatus.CLAIMED
            exists = conn.execute("SELECT 1 FROM rewards WHERE reward_id = ?", (reward_id,)).fetchone()
        return ClaimStatus.ALREADY_CLAIMED if exists else ClaimStatus.NOT_FOUND

    def delete_all_rewards(self) -> int:
        with self._connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM rewards").fetchone()[0]
            conn.execute("DELETE FROM rewards")
        return count

    # Payment references

    def put_payment_reference(self, ref: PaymentReference) -> None:
        data = ref.model_dump(mode="json")
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO payment_references (reference, amount, created_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (data["reference"], data["amount"], data["created_at"], data["expires_at"]),
            )

    def get_payment_reference(self, reference: str) -> PaymentReference | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM payment_references WHERE reference = ?", (reference,)
            ).fetchone()
        return _payment_from_row(row) if row else None

    def consume_payment_reference(self, reference: str) -> PaymentReference | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM payment_references WHERE reference = ?", (reference,)
            ).fetchone()
            if row is None:
                return None
            deleted = conn.execute(
                "DELETE FROM payment_references WHERE reference = ?", (reference,)
            ).rowcount
        # Another caller consumed it between our SELECT and DELETE.
        if deleted != 1:
            return None
        return _payment_from_row(row)

    def purge_expired_payment_references(self, now: datetime) -> int:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM payment_references").fetchall()
            refs = [_payment_from_row(r) for r in rows]
            expired = [r.reference for r in refs if r.is_expired(now)]
            if expired:
                conn.executemany(
                    "DELETE FROM payment_references WHERE reference = ?", [(r,) for r in expired]
                )
        if expired:
            logger.info("Purged %d expired payment reference(s)", len(expired))
        return len(expired)
