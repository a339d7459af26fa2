"""
JSON file store.

All hunts, rewards and payment references live in one JSON document (default:
`data/tokenhunt.json`). Every operation re-reads the document, applies its change to the
fresh copy and writes it back through a temporary file + atomic replace, so readers never
see a half-written file and a failed write leaves the previous document intact.

Mutual exclusion is an in-process lock; run one server process per file.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from tokenhunt.domain.errors import StoreUnavailable
from tokenhunt.domain.models import Hunt, PaymentReference, SpawnedReward
from tokenhunt.storage.memory import MemoryStore, StoreState

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class JsonFileStore(MemoryStore):
    """A `Store` persisted as a single JSON document on disk."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> StoreState:
        if not self._path.exists():
            return StoreState()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return StoreState(
                hunts={h["hunt_id"]: Hunt.model_validate(h) for h in raw.get("hunts", [])},
                rewards={r["reward_id"]: SpawnedReward.model_validate(r) for r in raw.get("rewards", [])},
                payment_references={
                    p["reference"]: PaymentReference.model_validate(p)
                    for p in raw.get("payment_references", [])
                },
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to read store file %s: %s", self._path, exc)
            raise StoreUnavailable(f"Cannot read store file {self._path}: {exc}") from exc

    def _save(self, state: StoreState) -> None:
        payload: dict[str, Any] = {
            "version": FORMAT_VERSION,
            "hunts": [h.model_dump(mode="json") for h in state.hunts.values()],
            "rewards": [r.model_dump(mode="json") for r in state.rewards.values()],
            "payment_references": [p.model_dump(mode="json") for p in state.payment_references.values()],
        }
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            logger.error("Failed to write store file %s: %s", self._path, exc)
            raise StoreUnavailable(f"Cannot write store file {self._path}: {exc}") from exc

    @contextmanager
    def _transaction(self, *, write: bool = False) -> Iterator[StoreState]:
        with self._lock:
            state = self._load()
            yield state
            if write:
                self._save(state)
