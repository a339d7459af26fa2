from __future__ import annotations

# Idempotent spawn-on-demand.
#
# A hunt counts as "spawned" as soon as the store holds at least one reward for its id,
# whatever its max_claims says today. Each pass therefore:
# 1. reads every persisted reward once,
# 2. spawns only for hunts with no rewards at all,
# 3. writes all new units in ONE `insert_rewards_batch` call (all-or-nothing per pass).
#
# Known gap: two passes running at the same moment can both see a hunt as unspawned and
# both insert a full set. The store dedupes reward ids, not hunts. Claims on any unit stay
# correct either way.

import logging
import random
from typing import Iterable

from tokenhunt.domain.models import Hunt, SpawnReport, SpawnedReward
from tokenhunt.rewards.spawner import MAX_CLAIMS_CAP, RoundingPolicy, spawn_rewards_for_hunt
from tokenhunt.storage.base import Store

logger = logging.getLogger(__name__)


def hunts_needing_spawn(hunts: Iterable[Hunt], existing: Iterable[SpawnedReward]) -> list[Hunt]:
    """Return the hunts that have no reward rows yet (input order preserved, ids deduped)."""
    present = {r.hunt_id for r in existing}
    out: list[Hunt] = []
    for hunt in hunts:
        if hunt.hunt_id in present:
            continue
        present.add(hunt.hunt_id)
        out.append(hunt)
    return out


def ensure_rewards_spawned(
    hunts: Iterable[Hunt],
    *,
    store: Store,
    cap: int = MAX_CLAIMS_CAP,
    rounding: RoundingPolicy = "drift",
    rng: random.Random | None = None,
) -> SpawnReport:
    """Spawn rewards for every hunt in `hunts` that has none persisted yet.

    Safe to call on every page load. Raises `ValidationError` (bad hunt) or
    `StoreUnavailable` (read/write failed) without writing a partial batch; retrying
    the whole call is safe.
    """
    hunts = list(hunts)
    existing = store.list_rewards()
    pending = hunts_needing_spawn(hunts, existing)

    if not pending:
        logger.debug("All %d hunt(s) already have spawned rewards", len(hunts))
        return SpawnReport(already_spawned=len(hunts))

    logger.info("Spawning rewards for %d new hunt(s)", len(pending))

    # Build every batch first so a bad hunt aborts before anything is written.
    new_rewards: list[SpawnedReward] = []
    for hunt in pending:
        new_rewards.extend(spawn_rewards_for_hunt(hunt, cap=cap, rounding=rounding, rng=rng))

    inserted = store.insert_rewards_batch(new_rewards)
    logger.info("Spawned %d new reward(s) across %d hunt(s)", inserted, len(pending))

    return SpawnReport(
        spawned_hunt_ids=[h.hunt_id for h in pending],
        rewards_spawned=len(new_rewards),
        rewards_inserted=inserted,
        already_spawned=len(hunts) - len(pending),
    )
