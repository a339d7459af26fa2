"""
Store interface.

The reward engine (spawner, coordinator, claim processor) only talks to this protocol,
so swapping the in-memory store for a file or SQLite backend needs no change in core code.

Atomicity contract every backend must honor:
- `insert_rewards_batch` writes the whole batch or nothing; reward ids already present are
  skipped (never overwritten).
- `set_reward_claimed` is a compare-and-set on `claimed=False`; of any number of concurrent
  callers for one reward id, at most one gets `ClaimStatus.CLAIMED`. The owning hunt's
  `claimed_count` is incremented in the same operation.
- `delete_all_hunts` cascades to every reward.

Backend failures surface as `StoreUnavailable`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol, runtime_checkable

from tokenhunt.domain.models import (
    ClaimStatus,
    DeleteSummary,
    Hunt,
    PaymentReference,
    SpawnedReward,
)


@runtime_checkable
class Store(Protocol):
    def list_hunts(self) -> list[Hunt]: ...

    def get_hunt(self, hunt_id: str) -> Hunt | None: ...

    def create_hunt(self, hunt: Hunt) -> None: ...

    def delete_all_hunts(self) -> DeleteSummary: ...

    def list_rewards(self, hunt_id: str | None = None) -> list[SpawnedReward]: ...

    def get_reward(self, reward_id: str) -> SpawnedReward | None: ...

    def insert_rewards_batch(self, rewards: Iterable[SpawnedReward]) -> int: ...

    def set_reward_claimed(self, reward_id: str) -> ClaimStatus: ...

    def delete_all_rewards(self) -> int: ...

    def put_payment_reference(self, ref: PaymentReference) -> None: ...

    def get_payment_reference(self, reference: str) -> PaymentReference | None: ...

    def consume_payment_reference(self, reference: str) -> PaymentReference | None: ...

    def purge_expired_payment_references(self, now: datetime) -> int: ...
