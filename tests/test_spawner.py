import logging
import math
import random
from datetime import datetime, timezone

import pytest

from conftest import make_hunt
from tokenhunt.core.geo import haversine_m
from tokenhunt.domain.errors import ValidationError
from tokenhunt.domain.models import Hunt
from tokenhunt.rewards.spawner import MAX_CLAIMS_CAP, spawn_rewards_for_hunt, split_amount


def test_spawn_clamps_unit_count_to_cap_and_splits_pool(caplog):
    hunt = make_hunt(max_claims=1000, reward_amount=100.0)

    with caplog.at_level(logging.WARNING, logger="tokenhunt.rewards.spawner"):
        rewards = spawn_rewards_for_hunt(hunt, rng=random.Random(1))

    assert len(rewards) == MAX_CLAIMS_CAP == 50
    assert all(math.isclose(r.amount, 2.0) for r in rewards)
    assert "exceeds cap" in caplog.text
    # The stored declaration is untouched.
    assert hunt.max_claims == 1000


def test_spawn_produces_one_unclaimed_unit_per_claim_inside_the_disc():
    hunt = make_hunt(max_claims=7, reward_amount=21.0, radius_meters=80)
    now = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)

    rewards = spawn_rewards_for_hunt(hunt, rng=random.Random(5), now=now)

    assert len(rewards) == 7
    assert len({r.reward_id for r in rewards}) == 7
    for r in rewards:
        assert r.hunt_id == hunt.hunt_id
        assert r.claimed is False
        assert r.created_at == now
        assert math.isclose(r.amount, 3.0)
        assert haversine_m(hunt.center, r.location) <= hunt.radius_meters + 1e-6


def test_spawn_uses_injected_id_factory():
    ids = iter(["r-1", "r-2", "r-3"])
    rewards = spawn_rewards_for_hunt(make_hunt(max_claims=3), id_factory=lambda: next(ids))
    assert [r.reward_id for r in rewards] == ["r-1", "r-2", "r-3"]


def test_spawn_respects_a_custom_cap():
    rewards = spawn_rewards_for_hunt(make_hunt(max_claims=20, reward_amount=10.0), cap=4)
    assert len(rewards) == 4
    assert all(math.isclose(r.amount, 2.5) for r in rewards)


@pytest.mark.parametrize(
    "field, value",
    [("max_claims", 0), ("max_claims", -3), ("reward_amount", 0.0), ("reward_amount", -1.0), ("radius_meters", 0)],
)
def test_spawn_rejects_non_positive_inputs(field, value):
    # model_construct skips pydantic validation, like a hunt loaded from a hand-edited file.
    data = make_hunt().model_dump()
    data[field] = value
    bad = Hunt.model_construct(**data)

    with pytest.raises(ValidationError, match=field):
        spawn_rewards_for_hunt(bad)


def test_split_amount_drift_divides_evenly():
    amounts = split_amount(100.0, 3)
    assert amounts == [100.0 / 3] * 3


def test_split_amount_last_unit_absorbs_the_remainder():
    amounts = split_amount(100.0, 3, rounding="last_unit")
    assert amounts[:2] == [100.0 / 3] * 2
    assert amounts[2] == 100.0 - (100.0 / 3) * 2
    assert math.isclose(sum(amounts), 100.0, rel_tol=0, abs_tol=1e-12)


def test_split_amount_single_unit_gets_everything():
    assert split_amount(7.5, 1, rounding="last_unit") == [7.5]
