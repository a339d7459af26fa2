"""
Reward spawning.

Splits one hunt's pool into `min(max_claims, MAX_CLAIMS_CAP)` equal units and drops each
at a point sampled uniformly inside the hunt's disc. Pure apart from randomness, ids and
the clock, all of which can be injected for tests.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import Callable, Literal, Protocol

from tokenhunt.core.geo import sample_uniform_point_in_disc
from tokenhunt.core.time import utc_now
from tokenhunt.domain.errors import ValidationError
from tokenhunt.domain.models import SpawnedReward

logger = logging.getLogger(__name__)

MAX_CLAIMS_CAP = 50

RoundingPolicy = Literal["drift", "last_unit"]


class SpawnableHunt(Protocol):
    hunt_id: str
    lat: float
    lng: float
    radius_meters: int
    reward_amount: float
    max_claims: int


def _validate(hunt: SpawnableHunt) -> None:
    problems: list[str] = []
    if not str(hunt.hunt_id or "").strip():
        problems.append("hunt_id is required")
    if hunt.max_claims <= 0:
        problems.append(f"max_claims must be > 0 (got {hunt.max_claims})")
    if hunt.reward_amount <= 0:
        problems.append(f"reward_amount must be > 0 (got {hunt.reward_amount})")
    if hunt.radius_meters <= 0:
        problems.append(f"radius_meters must be > 0 (got {hunt.radius_meters})")
    if problems:
        raise ValidationError(f"Cannot spawn rewards for hunt {hunt.hunt_id!r}: " + "; ".join(problems))


def unit_count_for(hunt: SpawnableHunt, *, cap: int = MAX_CLAIMS_CAP) -> int:
    """Number of units a hunt spawns: its declared `max_claims`, clamped to `cap`."""
    return min(hunt.max_claims, cap)


def split_amount(total: float, units: int, *, rounding: RoundingPolicy = "drift") -> list[float]:
    """Divide `total` into `units` shares.

    `drift` gives every unit `total / units` and accepts float error in the sum.
    `last_unit` lets the final unit absorb the remainder so the shares add up to `total`.
    """
    per_unit = total / units
    amounts = [per_unit] * units
    if rounding == "last_unit" and units > 1:
        amounts[-1] = total - per_unit * (units - 1)
    return amounts


def spawn_rewards_for_hunt(
    hunt: SpawnableHunt,
    *,
    cap: int = MAX_CLAIMS_CAP,
    rounding: RoundingPolicy = "drift",
    rng: random.Random | None = None,
    id_factory: Callable[[], str] | None = None,
    now: datetime | None = None,
) -> list[SpawnedReward]:
    """Produce the full set of claimable units for `hunt`.

    Raises:
        ValidationError: If the hunt has no id or a non-positive pool, claim cap or radius.
    """
    _validate(hunt)

    units = unit_count_for(hunt, cap=cap)
    if units < hunt.max_claims:
        logger.warning(
            "Hunt %s max_claims (%d) exceeds cap (%d); clamping.", hunt.hunt_id, hunt.max_claims, cap
        )

    amounts = split_amount(hunt.reward_amount, units, rounding=rounding)
    created_at = now or utc_now()
    make_id = id_factory or (lambda: str(uuid.uuid4()))

    logger.info(
        "Spawning %d rewards for hunt %s (%.4f each)", units, hunt.hunt_id, hunt.reward_amount / units
    )

    rewards: list[SpawnedReward] = []
    for amount in amounts:
        lat, lng = sample_uniform_point_in_disc(hunt.lat, hunt.lng, hunt.radius_meters, rng=rng)
        rewards.append(
            SpawnedReward(
                reward_id=make_id(),
                hunt_id=hunt.hunt_id,
                lat=lat,
                lng=lng,
                amount=amount,
                claimed=False,
                created_at=created_at,
            )
        )
    return rewards
