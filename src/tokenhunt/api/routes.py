"""
API routes.

Endpoints:
- GET/POST/DELETE `/api/hunts`: list, create, bulk-clear (cascades to rewards).
- GET `/api/hunts/{hunt_id}/presence`: is a location inside a hunt's radius?
- GET/DELETE `/api/rewards`, POST `/api/rewards/spawn`: spawned units + idempotent spawning.
- POST `/api/rewards/claim`: proximity-gated, at-most-once claim of one unit.
- POST `/api/payments/initiate`, POST `/api/payments/confirm`: sponsor funding references.
- GET `/api/health`.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from tokenhunt.config.settings import get_settings
from tokenhunt.core.geo import haversine_m
from tokenhunt.domain.errors import (
    AlreadyClaimed,
    NotFound,
    OutOfRange,
    PaymentServiceUnavailable,
    StoreUnavailable,
    TokenHuntError,
    ValidationError,
)
from tokenhunt.domain.models import GeoPoint, HuntDraft
from tokenhunt.hunts.service import clear_all_hunts, create_hunt, get_hunt_or_raise
from tokenhunt.payments.client import HttpPaymentStatusClient, PaymentStatusClient
from tokenhunt.payments.references import confirm_payment, initiate_payment
from tokenhunt.rewards.claims import claim_reward, is_at_hunt
from tokenhunt.rewards.coordinator import ensure_rewards_spawned
from tokenhunt.storage.base import Store
from tokenhunt.storage.factory import build_store

router = APIRouter()

_STATUS_BY_ERROR: list[tuple[type[TokenHuntError], int]] = [
    (ValidationError, 400),
    (OutOfRange, 403),
    (NotFound, 404),
    (AlreadyClaimed, 409),
    (PaymentServiceUnavailable, 502),
    (StoreUnavailable, 503),
]


def _http_error(exc: TokenHuntError) -> HTTPException:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    return HTTPException(status_code=status, detail={"code": exc.code, "message": str(exc)})


@lru_cache
def _store() -> Store:
    return build_store(get_settings())


@lru_cache
def _payment_client() -> PaymentStatusClient:
    return HttpPaymentStatusClient(get_settings().payments)


class ClaimRequest(BaseModel):
    reward_id: str = Field(..., min_length=1)
    location: GeoPoint


class InitiatePaymentRequest(BaseModel):
    amount: str


class ConfirmPaymentRequest(BaseModel):
    reference: str
    transaction_id: str


@router.get("/api/health")
def get_health() -> dict:
    settings = get_settings()
    return {"status": "ok", "storage_backend": settings.storage.backend}


@router.get("/api/hunts")
def get_hunts() -> dict:
    """Return every hunt (active and exhausted)."""
    try:
        hunts = _store().list_hunts()
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"hunts": [h.model_dump(mode="json") for h in hunts], "count": len(hunts)}


@router.post("/api/hunts", status_code=201)
def post_hunt(draft: HuntDraft) -> dict:
    """Create a hunt from a sponsor's definition."""
    try:
        hunt = create_hunt(draft, store=_store())
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"success": True, "hunt": hunt.model_dump(mode="json")}


@router.delete("/api/hunts")
def delete_hunts() -> dict:
    """Administrative bulk clear; spawned rewards go with their hunts."""
    try:
        summary = clear_all_hunts(store=_store())
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"success": True, **summary.model_dump()}


@router.get("/api/hunts/{hunt_id}/presence")
def get_hunt_presence(
    hunt_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
) -> dict:
    """Report whether a participant at (lat, lng) is inside the hunt's radius."""
    try:
        hunt = get_hunt_or_raise(hunt_id, store=_store())
    except TokenHuntError as e:
        raise _http_error(e) from e
    here = GeoPoint(lat=lat, lng=lng).to_core()
    return {
        "hunt_id": hunt.hunt_id,
        "within_range": is_at_hunt(hunt, here),
        "distance_m": round(haversine_m(here, hunt.center), 2),
        "radius_meters": hunt.radius_meters,
        "active": hunt.is_active,
    }


@router.get("/api/rewards")
def get_rewards(hunt_id: str | None = None) -> dict:
    try:
        rewards = _store().list_rewards(hunt_id)
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"rewards": [r.model_dump(mode="json") for r in rewards], "count": len(rewards)}


@router.post("/api/rewards/spawn")
def post_spawn_rewards() -> dict:
    """Spawn rewards for every hunt that has none yet (idempotent)."""
    settings = get_settings()
    store = _store()
    try:
        report = ensure_rewards_spawned(
            store.list_hunts(),
            store=store,
            cap=settings.rewards.max_claims_cap,
            rounding=settings.rewards.rounding,
        )
    except TokenHuntError as e:
        raise _http_error(e) from e
    return report.model_dump()


@router.delete("/api/rewards")
def delete_rewards() -> dict:
    try:
        deleted = _store().delete_all_rewards()
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"success": True, "deleted_rewards": deleted}


@router.post("/api/rewards/claim")
def post_claim_reward(req: ClaimRequest) -> dict:
    """Claim one reward; the caller must stand within the claimable distance of it."""
    settings = get_settings()
    try:
        result = claim_reward(
            req.reward_id,
            req.location.to_core(),
            store=_store(),
            claimable_distance_m=settings.rewards.claimable_distance_m,
        ).raise_for_outcome()
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {
        "success": True,
        "reward": result.reward.model_dump(mode="json") if result.reward else None,
        "distance_m": result.distance_m,
    }


@router.post("/api/payments/initiate")
def post_initiate_payment(req: InitiatePaymentRequest) -> dict:
    settings = get_settings()
    try:
        ref = initiate_payment(
            req.amount, store=_store(), ttl_seconds=settings.payments.reference_ttl_seconds
        )
    except TokenHuntError as e:
        raise _http_error(e) from e
    return {"id": ref.reference, "expires_at": ref.expires_at.isoformat()}


@router.post("/api/payments/confirm")
def post_confirm_payment(req: ConfirmPaymentRequest) -> dict:
    try:
        confirmation = confirm_payment(
            req.reference, req.transaction_id, store=_store(), client=_payment_client()
        )
    except TokenHuntError as e:
        raise _http_error(e) from e
    return confirmation.model_dump()
