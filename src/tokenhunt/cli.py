"""
TokenHunt CLI entrypoint.

Operator tooling for local demos and administration without the HTTP API: create and list
hunts, run the idempotent spawn pass, claim a reward from a given position, and clear state.
Storage comes from settings (`TOKENHUNT_STORAGE_BACKEND`, `TOKENHUNT_STORAGE_PATH`).
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from tokenhunt.config.settings import get_settings
from tokenhunt.core.geo import GeoPoint
from tokenhunt.core.logging import configure_logging
from tokenhunt.domain.errors import TokenHuntError
from tokenhunt.hunts.service import clear_all_hunts, create_hunt
from tokenhunt.rewards.claims import claim_reward
from tokenhunt.rewards.coordinator import ensure_rewards_spawned
from tokenhunt.storage.factory import build_store


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_create_hunt(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = build_store(settings)
    hunt = create_hunt(
        {
            "lat": args.lat,
            "lng": args.lng,
            "radius_meters": args.radius if args.radius is not None else settings.hunts.default_radius_meters,
            "reward_token": args.token or settings.hunts.default_reward_token,
            "reward_amount": args.amount,
            "max_claims": args.max_claims,
            "campaign_name": args.name,
            "description": args.description,
            "sponsor_wallet": args.sponsor,
        },
        store=store,
    )
    if args.json:
        _print_json(hunt.model_dump(mode="json"))
    else:
        print(f"Created hunt {hunt.hunt_id}: {hunt.campaign_name}")
    return 0


def _cmd_list_hunts(args: argparse.Namespace) -> int:
    store = build_store(get_settings())
    hunts = store.list_hunts()
    if args.json:
        _print_json([h.model_dump(mode="json") for h in hunts])
        return 0
    for h in hunts:
        status = "active" if h.is_active else "exhausted"
        print(
            f"{h.hunt_id}  {h.campaign_name}  ({h.lat:.6f}, {h.lng:.6f}) r={h.radius_meters}m  "
            f"{h.reward_amount:g} {h.reward_token}  claimed={h.claimed_count}/{h.max_claims}  {status}"
        )
    return 0


def _cmd_spawn(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = build_store(settings)
    report = ensure_rewards_spawned(
        store.list_hunts(),
        store=store,
        cap=settings.rewards.max_claims_cap,
        rounding=settings.rewards.rounding,
    )
    if args.json:
        _print_json(report.model_dump())
    else:
        print(
            f"Spawned {report.rewards_inserted} reward(s) for {len(report.spawned_hunt_ids)} hunt(s); "
            f"{report.already_spawned} already spawned."
        )
    return 0


def _cmd_list_rewards(args: argparse.Namespace) -> int:
    store = build_store(get_settings())
    rewards = store.list_rewards(args.hunt_id)
    if args.json:
        _print_json([r.model_dump(mode="json") for r in rewards])
        return 0
    for r in rewards:
        mark = "x" if r.claimed else " "
        print(f"[{mark}] {r.reward_id}  hunt={r.hunt_id}  ({r.lat:.6f}, {r.lng:.6f})  amount={r.amount:.6f}")
    return 0


def _cmd_claim(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = build_store(settings)
    distance = args.distance if args.distance is not None else settings.rewards.claimable_distance_m
    result = claim_reward(
        args.reward_id,
        GeoPoint(lat=args.lat, lng=args.lng),
        store=store,
        claimable_distance_m=distance,
    )
    if args.json:
        _print_json(result.model_dump(mode="json"))
    elif result.ok and result.reward is not None:
        print(f"Claimed {result.reward.reward_id}: {result.reward.amount:.6f}")
    else:
        print(f"Claim failed: {result.outcome.value}", file=sys.stderr)
    return 0 if result.ok else 1


def _cmd_clear(args: argparse.Namespace) -> int:
    store = build_store(get_settings())
    if args.rewards_only:
        print(f"Deleted {store.delete_all_rewards()} reward(s).")
        return 0
    summary = clear_all_hunts(store=store)
    print(f"Deleted {summary.deleted_hunts} hunt(s) and {summary.deleted_rewards} reward(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the TokenHunt CLI."""
    parser = argparse.ArgumentParser(prog="tokenhunt")
    parser.add_argument("--log-level", dest="log_level", default=None, help="Override app.log_level (e.g. DEBUG).")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-hunt", help="Create a hunt (sponsor campaign).")
    create.add_argument("--lat", required=True, type=float)
    create.add_argument("--lng", required=True, type=float)
    create.add_argument("--radius", type=int, default=None, help="Hunt radius in meters.")
    create.add_argument("--amount", required=True, type=float, help="Total reward pool.")
    create.add_argument("--max-claims", dest="max_claims", required=True, type=int)
    create.add_argument("--name", required=True, help="Campaign name.")
    create.add_argument("--description", default=None)
    create.add_argument("--sponsor", required=True, help="Sponsor wallet address.")
    create.add_argument("--token", default=None, help="Reward token symbol.")
    create.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    create.set_defaults(func=_cmd_create_hunt)

    lh = sub.add_parser("list-hunts", help="List all hunts.")
    lh.add_argument("--json", action="store_true")
    lh.set_defaults(func=_cmd_list_hunts)

    spawn = sub.add_parser("spawn", help="Spawn rewards for hunts that have none yet (safe to repeat).")
    spawn.add_argument("--json", action="store_true")
    spawn.set_defaults(func=_cmd_spawn)

    lr = sub.add_parser("list-rewards", help="List spawned rewards.")
    lr.add_argument("--hunt-id", dest="hunt_id", default=None)
    lr.add_argument("--json", action="store_true")
    lr.set_defaults(func=_cmd_list_rewards)

    claim = sub.add_parser("claim", help="Claim a reward from the given position.")
    claim.add_argument("reward_id")
    claim.add_argument("--lat", required=True, type=float)
    claim.add_argument("--lng", required=True, type=float)
    claim.add_argument("--distance", type=float, default=None, help="Override claimable distance (m).")
    claim.add_argument("--json", action="store_true")
    claim.set_defaults(func=_cmd_claim)

    clear = sub.add_parser("clear", help="Delete all hunts (and their rewards).")
    clear.add_argument("--rewards-only", action="store_true", help="Keep hunts; delete spawned rewards.")
    clear.set_defaults(func=_cmd_clear)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m tokenhunt.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except TokenHuntError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
