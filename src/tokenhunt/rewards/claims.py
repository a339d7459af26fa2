"""
Claim processing.

`claim_reward` moves one reward from unclaimed to claimed (terminal). Checks run in a fixed
order: the reward must exist, must not be claimed yet, and the claimant must stand within
`claimable_distance_m` of it. The final flip is the store's conditional update, so of two
concurrent claimants exactly one wins and the other sees `already_claimed`.

Rejections come back as `ClaimResult` outcomes; only store failures raise.
"""

from __future__ import annotations

import logging

from tokenhunt.core.geo import GeoPoint, haversine_m, is_within_range
from tokenhunt.domain.models import ClaimOutcome, ClaimResult, ClaimStatus, Hunt
from tokenhunt.storage.base import Store

logger = logging.getLogger(__name__)

DEFAULT_CLAIMABLE_DISTANCE_M = 10.0


def is_at_hunt(hunt: Hunt, location: GeoPoint) -> bool:
    """Hunt-level presence: is `location` inside the hunt's radius?"""
    return is_within_range(location, hunt.center, hunt.radius_meters)


def claim_reward(
    reward_id: str,
    claimant_location: GeoPoint,
    *,
    store: Store,
    claimable_distance_m: float = DEFAULT_CLAIMABLE_DISTANCE_M,
) -> ClaimResult:
    """Claim `reward_id` for a participant standing at `claimant_location`."""
    reward = store.get_reward(reward_id)
    if reward is None:
        logger.info("Claim rejected: reward %s not found", reward_id)
        return ClaimResult(outcome=ClaimOutcome.NOT_FOUND, reward_id=reward_id)

    if reward.claimed:
        logger.info("Claim rejected: reward %s already claimed", reward_id)
        return ClaimResult(outcome=ClaimOutcome.ALREADY_CLAIMED, reward_id=reward_id, reward=reward)

    distance = haversine_m(claimant_location, reward.location)
    if not is_within_range(claimant_location, reward.location, claimable_distance_m):
        logger.info(
            "Claim rejected: reward %s is %.1f m away (limit %.1f m)", reward_id, distance, claimable_distance_m
        )
        return ClaimResult(
            outcome=ClaimOutcome.OUT_OF_RANGE, reward_id=reward_id, reward=reward, distance_m=distance
        )

    status = store.set_reward_claimed(reward_id)
    if status is ClaimStatus.NOT_FOUND:
        # Deleted by a bulk clear between our read and the update.
        return ClaimResult(outcome=ClaimOutcome.NOT_FOUND, reward_id=reward_id, distance_m=distance)
    if status is ClaimStatus.ALREADY_CLAIMED:
        logger.info("Claim lost race: reward %s was claimed concurrently", reward_id)
        return ClaimResult(
            outcome=ClaimOutcome.ALREADY_CLAIMED,
            reward_id=reward_id,
            reward=reward.model_copy(update={"claimed": True}),
            distance_m=distance,
        )

    claimed = reward.model_copy(update={"claimed": True})
    logger.info("Reward %s claimed (amount=%.4f, hunt=%s)", reward_id, claimed.amount, claimed.hunt_id)
    return ClaimResult(outcome=ClaimOutcome.OK, reward_id=reward_id, reward=claimed, distance_m=distance)
