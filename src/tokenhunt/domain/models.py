"""
Domain models (Pydantic).

These types are the stable "contract" between layers:
- sponsor input (`HuntDraft`) and the stored campaign (`Hunt`)
- individually claimable units (`SpawnedReward`)
- claim and spawn results (`ClaimResult`, `SpawnReport`)
- payment bookkeeping (`PaymentReference`, `PaymentStatus`, `PaymentConfirmation`)

Every storage backend round-trips these models through `model_dump(mode="json")`
and `model_validate`, so a hunt looks the same whether it came from memory, a JSON
file or SQLite.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from tokenhunt.core.geo import GeoPoint as CoreGeoPoint
from tokenhunt.core.time import ensure_utc, utc_now
from tokenhunt.domain.errors import AlreadyClaimed, NotFound, OutOfRange


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lng=self.lng)


class HuntDraft(BaseModel):
    """Sponsor-submitted hunt definition (before an id and timestamps are assigned)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius_meters: int = Field(50, gt=0)
    reward_token: str = "WLD"
    reward_amount: float = Field(..., gt=0)
    max_claims: int = Field(..., gt=0)
    campaign_name: str
    description: str | None = None
    sponsor_wallet: str

    @field_validator("campaign_name", "sponsor_wallet")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("description")
    @classmethod
    def _blank_description_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class Hunt(HuntDraft):
    """A stored sponsor campaign: center + radius + reward pool + claim cap."""

    hunt_id: str
    claimed_count: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("hunt_id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("hunt_id must not be empty")
        return value

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _validate_claimed_count(self) -> "Hunt":
        if self.claimed_count > self.max_claims:
            raise ValueError("claimed_count must not exceed max_claims")
        return self

    @property
    def center(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lng=self.lng)

    @property
    def is_active(self) -> bool:
        return self.claimed_count < self.max_claims


class SpawnedReward(BaseModel):
    """One claimable unit of a hunt's pool, placed at a sampled point."""

    reward_id: str
    hunt_id: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float
    amount: float = Field(..., gt=0)
    claimed: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def location(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lng=self.lng)


class DeleteSummary(BaseModel):
    deleted_hunts: int = 0
    deleted_rewards: int = 0


class ClaimStatus(str, Enum):
    """Answer of the store's conditional claimed-flag update."""

    CLAIMED = "claimed"
    NOT_FOUND = "not_found"
    ALREADY_CLAIMED = "already_claimed"


class ClaimOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ALREADY_CLAIMED = "already_claimed"
    OUT_OF_RANGE = "out_of_range"


class ClaimResult(BaseModel):
    """Result of one claim attempt. `reward` is set on success (and when known otherwise)."""

    outcome: ClaimOutcome
    reward_id: str
    reward: SpawnedReward | None = None
    distance_m: float | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ClaimOutcome.OK

    def raise_for_outcome(self) -> "ClaimResult":
        """Raise the matching error for a rejected claim; return self on success."""
        if self.outcome is ClaimOutcome.NOT_FOUND:
            raise NotFound(f"Reward {self.reward_id} not found")
        if self.outcome is ClaimOutcome.ALREADY_CLAIMED:
            raise AlreadyClaimed(f"Reward {self.reward_id} already claimed")
        if self.outcome is ClaimOutcome.OUT_OF_RANGE:
            raise OutOfRange(
                f"Reward {self.reward_id} is {self.distance_m:.1f} m away; move closer to claim it"
            )
        return self


class SpawnReport(BaseModel):
    """What one `ensure_rewards_spawned` pass did."""

    spawned_hunt_ids: list[str] = Field(default_factory=list)
    rewards_spawned: int = 0
    rewards_inserted: int = 0
    already_spawned: int = 0


class PaymentReference(BaseModel):
    """A pending sponsor payment, valid until `expires_at`."""

    reference: str
    amount: str
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

    @field_validator("created_at", "expires_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) >= self.expires_at


class PaymentStatus(BaseModel):
    """Transaction lookup answer from the payment-status service."""

    transaction_id: str
    reference: str | None = None
    status: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


class PaymentConfirmation(BaseModel):
    success: bool
    reference: str
    transaction_id: str
    status: str | None = None
