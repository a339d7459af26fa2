import threading

import pytest

from conftest import make_hunt
from tokenhunt.core.geo import GeoPoint
from tokenhunt.domain.errors import AlreadyClaimed, NotFound, OutOfRange
from tokenhunt.domain.models import ClaimOutcome, ClaimStatus, SpawnedReward
from tokenhunt.rewards.claims import claim_reward, is_at_hunt
from tokenhunt.storage.memory import MemoryStore
from tokenhunt.storage.sqlite import SqliteStore


def _seed(store, *, lat=25.0330, lng=121.5654, amount=2.5, max_claims=5):
    hunt = make_hunt(lat=lat, lng=lng, max_claims=max_claims)
    store.create_hunt(hunt)
    reward = SpawnedReward(reward_id="reward-1", hunt_id=hunt.hunt_id, lat=lat, lng=lng, amount=amount)
    store.insert_rewards_batch([reward])
    return hunt, reward


def test_claim_is_a_one_way_transition(store):
    hunt, reward = _seed(store)

    first = claim_reward(reward.reward_id, reward.location, store=store)
    second = claim_reward(reward.reward_id, reward.location, store=store)

    assert first.outcome is ClaimOutcome.OK
    assert first.reward.claimed is True
    assert first.reward.amount == 2.5
    assert second.outcome is ClaimOutcome.ALREADY_CLAIMED
    assert store.get_reward(reward.reward_id).claimed is True
    assert store.get_hunt(hunt.hunt_id).claimed_count == 1


def test_unknown_reward_is_not_found(store):
    result = claim_reward("nope", GeoPoint(0.0, 0.0), store=store)
    assert result.outcome is ClaimOutcome.NOT_FOUND
    with pytest.raises(NotFound):
        result.raise_for_outcome()


def test_claim_outside_pickup_distance_is_rejected_and_leaves_state(store):
    hunt, reward = _seed(store)
    # ~22 m north of the reward, well inside the 50 m hunt radius.
    standing = GeoPoint(reward.lat + 0.0002, reward.lng)

    result = claim_reward(reward.reward_id, standing, store=store, claimable_distance_m=10)

    assert result.outcome is ClaimOutcome.OUT_OF_RANGE
    assert 20 < result.distance_m < 25
    assert is_at_hunt(hunt, standing)
    assert store.get_reward(reward.reward_id).claimed is False
    with pytest.raises(OutOfRange):
        result.raise_for_outcome()


def test_already_claimed_check_runs_before_distance(store):
    _, reward = _seed(store)
    claim_reward(reward.reward_id, reward.location, store=store)

    far_away = GeoPoint(0.0, 0.0)
    result = claim_reward(reward.reward_id, far_away, store=store)

    assert result.outcome is ClaimOutcome.ALREADY_CLAIMED
    with pytest.raises(AlreadyClaimed):
        result.raise_for_outcome()


def test_is_at_hunt_uses_hunt_radius():
    hunt = make_hunt(radius_meters=50)
    assert is_at_hunt(hunt, GeoPoint(hunt.lat + 0.0004, hunt.lng))  # ~44 m
    assert not is_at_hunt(hunt, GeoPoint(hunt.lat + 0.0005, hunt.lng))  # ~56 m


class _LosesRaceStore(MemoryStore):
    """Reports the reward as unclaimed on read, then loses the conditional update."""

    def set_reward_claimed(self, reward_id):
        super().set_reward_claimed(reward_id)
        return ClaimStatus.ALREADY_CLAIMED


def test_store_answer_decides_a_lost_race():
    store = _LosesRaceStore()
    _, reward = _seed(store)

    result = claim_reward(reward.reward_id, reward.location, store=store)

    assert result.outcome is ClaimOutcome.ALREADY_CLAIMED


def _race(store, reward_id, location, n_threads=8):
    barrier = threading.Barrier(n_threads)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        result = claim_reward(reward_id, location, store=store)
        with lock:
            outcomes.append(result.outcome)

    threads = [threading.Thread(target=worker) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


def test_concurrent_claims_have_exactly_one_winner_in_memory():
    store = MemoryStore()
    hunt, reward = _seed(store)

    outcomes = _race(store, reward.reward_id, reward.location)

    assert outcomes.count(ClaimOutcome.OK) == 1
    assert outcomes.count(ClaimOutcome.ALREADY_CLAIMED) == len(outcomes) - 1
    assert store.get_hunt(hunt.hunt_id).claimed_count == 1


def test_concurrent_claims_have_exactly_one_winner_in_sqlite(tmp_path):
    store = SqliteStore(tmp_path / "race.db")
    hunt, reward = _seed(store)

    outcomes = _race(store, reward.reward_id, reward.location, n_threads=6)

    assert outcomes.count(ClaimOutcome.OK) == 1
    assert outcomes.count(ClaimOutcome.ALREADY_CLAIMED) == len(outcomes) - 1
    assert store.get_hunt(hunt.hunt_id).claimed_count == 1
