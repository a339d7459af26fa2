"""
In-process store.

All state lives in plain dicts guarded by one re-entrant lock, which makes every public
operation atomic with respect to other threads in the same process. `JsonFileStore`
reuses this class and only swaps how a transaction loads and commits the state.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator

from tokenhunt.domain.errors import ValidationError
from tokenhunt.domain.models import (
    ClaimStatus,
    DeleteSummary,
    Hunt,
    PaymentReference,
    SpawnedReward,
)

logger = logging.getLogger(__name__)


@dataclass
class StoreState:
    hunts: dict[str, Hunt] = field(default_factory=dict)
    rewards: dict[str, SpawnedReward] = field(default_factory=dict)
    payment_references: dict[str, PaymentReference] = field(default_factory=dict)


class MemoryStore:
    """A dict-backed `Store` (tests, demos, single-process deployments)."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = StoreState()

    @contextmanager
    def _transaction(self, *, write: bool = False) -> Iterator[StoreState]:
        """Yield the state under the lock.

        Writers must validate before mutating; the in-memory state has nothing to roll back to.
        """
        with self._lock:
            yield self._state

    # Hunts

    def list_hunts(self) -> list[Hunt]:
        with self._transaction() as state:
            return list(state.hunts.values())

    def get_hunt(self, hunt_id: str) -> Hunt | None:
        with self._transaction() as state:
            return state.hunts.get(hunt_id)

    def create_hunt(self, hunt: Hunt) -> None:
        with self._transaction(write=True) as state:
            if hunt.hunt_id in state.hunts:
                raise ValidationError(f"Hunt {hunt.hunt_id} already exists")
            state.hunts[hunt.hunt_id] = hunt

    def delete_all_hunts(self) -> DeleteSummary:
        with self._transaction(write=True) as state:
            summary = DeleteSummary(
                deleted_hunts=len(state.hunts),
                deleted_rewards=sum(1 for r in state.rewards.values() if r.hunt_id in state.hunts),
            )
            state.hunts.clear()
            # Cascade: a reward cannot outlive its hunt.
            state.rewards.clear()
            return summary

    # Rewards

    def list_rewards(self, hunt_id: str | None = None) -> list[SpawnedReward]:
        with self._transaction() as state:
            return [r for r in state.rewards.values() if hunt_id is None or r.hunt_id == hunt_id]

    def get_reward(self, reward_id: str) -> SpawnedReward | None:
        with self._transaction() as state:
            return state.rewards.get(reward_id)

    def insert_rewards_batch(self, rewards: Iterable[SpawnedReward]) -> int:
        batch = list(rewards)
        with self._transaction(write=True) as state:
            missing = sorted({r.hunt_id for r in batch if r.hunt_id not in state.hunts})
            if missing:
                raise ValidationError(f"Rewards reference unknown hunt(s): {', '.join(missing)}")
            inserted = 0
            for reward in batch:
                if reward.reward_id in state.rewards:
                    continue
                state.rewards[reward.reward_id] = reward
                inserted += 1
            return inserted

    def set_reward_claimed(self, reward_id: str) -> ClaimStatus:
        with self._transaction(write=True) as state:
            reward = state.rewards.get(reward_id)
            if reward is None:
                return ClaimStatus.NOT_FOUND
            if reward.claimed:
                return ClaimStatus.ALREADY_CLAIMED
            state.rewards[reward_id] = reward.model_copy(update={"claimed": True})
            hunt = state.hunts.get(reward.hunt_id)
            if hunt is not None:
                state.hunts[hunt.hunt_id] = hunt.model_copy(
                    update={"claimed_count": min(hunt.max_claims, hunt.claimed_count + 1)}
                )
            return ClaimStatus.CLAIMED

    def delete_all_rewards(self) -> int:
        with self._transaction(write=True) as state:
            count = len(state.rewards)
            state.rewards.clear()
            return count

    # Payment references

    def put_payment_reference(self, ref: PaymentReference) -> None:
        with self._transaction(write=True) as state:
            state.payment_references[ref.reference] = ref

    def get_payment_reference(self, reference: str) -> PaymentReference | None:
        with self._transaction() as state:
            return state.payment_references.get(reference)

    def consume_payment_reference(self, reference: str) -> PaymentReference | None:
        with self._transaction(write=True) as state:
            return state.payment_references.pop(reference, None)

    def purge_expired_payment_references(self, now: datetime) -> int:
        with self._transaction(write=True) as state:
            expired = [k for k, ref in state.payment_references.items() if ref.is_expired(now)]
            for key in expired:
                del state.payment_references[key]
            if expired:
                logger.info("Purged %d expired payment reference(s)", len(expired))
            return len(expired)
