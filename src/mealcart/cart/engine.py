"""Reconciliation of ingredient requests against the current cart.

The engine is pure: it reads a snapshot of stored lines and describes the
writes needed to fold a batch of requests into it. Persisting the plan, and
making sure it is not committed against a stale snapshot, is the store's job.
"""
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from mealcart.domain.types import (
    CartLine,
    IngredientRequest,
    LineDraft,
    LineUpdate,
    ReconciliationPlan,
    RejectedRequest,
)
from mealcart.utils.logger import get_logger
from .matcher import matches

logger = get_logger(__name__)

RequestLike = Union[IngredientRequest, Mapping[str, Any]]


def _coerce(index: int, raw: RequestLike) -> Union[IngredientRequest, RejectedRequest]:
    if isinstance(raw, IngredientRequest):
        return raw
    try:
        return IngredientRequest.model_validate(raw)
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        return RejectedRequest(index=index, payload=raw, reason=reasons)


def _find(request: IngredientRequest, candidates: Iterable[LineDraft]) -> Optional[LineDraft]:
    for candidate in candidates:
        if matches(request, candidate):
            return candidate
    return None


def reconcile(
    incoming: Sequence[RequestLike],
    current_lines: Sequence[CartLine],
) -> ReconciliationPlan:
    """
    Fold ``incoming`` requests into ``current_lines``.

    Requests are handled in order. Each one first merges into an entry already
    planned in this batch, then into a matching open stored line, and
    otherwise opens a new line. The first request to open or touch a line
    fixes its display name and unit for the rest of the batch.

    Args:
        incoming: Requests, as models or plain mappings. Malformed entries are
            dropped and reported in ``plan.rejected``.
        current_lines: Snapshot of stored lines. Not modified.

    Returns:
        The plan: new lines to insert, full replacement payloads for existing
        lines, and the rejected requests.
    """
    inserts: List[LineDraft] = []
    updates: dict = {}
    rejected: List[RejectedRequest] = []

    for index, raw in enumerate(incoming):
        request = _coerce(index, raw)
        if isinstance(request, RejectedRequest):
            logger.warning(
                "Dropping malformed ingredient request",
                index=index,
                reason=request.reason,
            )
            rejected.append(request)
            continue

        pending = _find(request, inserts) or _find(request, updates.values())
        if pending is not None:
            pending.amount += request.amount
            pending.add_provenance(request.recipe_id, request.recipe_name)
            continue

        existing = _find(request, current_lines)
        if existing is not None:
            update = LineUpdate(
                line_id=existing.id,
                expected_version=existing.version,
                name=existing.name,
                amount=existing.amount + request.amount,
                unit=existing.unit,
                week_id=existing.week_id,
                checked=False,
                recipe_ids=list(existing.recipe_ids),
                recipe_names=list(existing.recipe_names),
                price=existing.price,
                note=existing.note,
            )
            update.add_provenance(request.recipe_id, request.recipe_name)
            updates[existing.id] = update
            continue

        draft = LineDraft(
            name=request.name,
            amount=request.amount,
            unit=request.unit,
            week_id=request.week_id,
        )
        draft.add_provenance(request.recipe_id, request.recipe_name)
        inserts.append(draft)

    plan = ReconciliationPlan(
        inserts=inserts,
        updates=list(updates.values()),
        rejected=rejected,
    )
    logger.debug(
        "Reconciled ingredient requests",
        requests=len(incoming),
        inserts=len(plan.inserts),
        updates=len(plan.updates),
        rejected=len(plan.rejected),
    )
    return plan
