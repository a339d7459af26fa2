"""
Hunt lifecycle helpers.

Sponsors submit a `HuntDraft`; this module assigns the id, zeroes the claimed count,
stamps the creation time and persists it. Bulk clearing cascades to every spawned reward.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Mapping

import pydantic

from tokenhunt.core.time import utc_now
from tokenhunt.domain.errors import NotFound, ValidationError
from tokenhunt.domain.models import DeleteSummary, Hunt, HuntDraft
from tokenhunt.storage.base import Store

logger = logging.getLogger(__name__)


def generate_hunt_id() -> str:
    return str(uuid.uuid4())


def _format_pydantic_errors(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "hunt"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def parse_hunt_draft(payload: HuntDraft | Mapping[str, Any]) -> HuntDraft:
    """Validate a raw payload into a `HuntDraft`, raising our `ValidationError` on bad input."""
    if isinstance(payload, HuntDraft):
        return payload
    try:
        return HuntDraft.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid hunt: {_format_pydantic_errors(exc)}") from exc


def create_hunt(
    draft: HuntDraft | Mapping[str, Any],
    *,
    store: Store,
    id_factory: Callable[[], str] = generate_hunt_id,
) -> Hunt:
    """Create and persist a new hunt from sponsor input."""
    draft = parse_hunt_draft(draft)
    try:
        hunt = Hunt(
            **draft.model_dump(),
            hunt_id=id_factory(),
            claimed_count=0,
            created_at=utc_now(),
        )
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid hunt: {_format_pydantic_errors(exc)}") from exc

    store.create_hunt(hunt)
    logger.info("Created hunt %s (%s) by %s", hunt.hunt_id, hunt.campaign_name, hunt.sponsor_wallet)
    return hunt


def get_hunt_or_raise(hunt_id: str, *, store: Store) -> Hunt:
    hunt = store.get_hunt(hunt_id)
    if hunt is None:
        raise NotFound(f"Hunt {hunt_id} not found")
    return hunt


def list_active_hunts(*, store: Store) -> list[Hunt]:
    return [h for h in store.list_hunts() if h.is_active]


def clear_all_hunts(*, store: Store) -> DeleteSummary:
    """Administrative bulk clear: removes every hunt and, by cascade, every reward."""
    summary = store.delete_all_hunts()
    logger.warning(
        "Cleared all hunts (%d hunts, %d rewards)", summary.deleted_hunts, summary.deleted_rewards
    )
    return summary
