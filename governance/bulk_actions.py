"""
Bulk Governance Actions

Reversible, user-initiated status changes. Bulk actions only ever pause: they
never disable and never delete, so everything can be resumed one by one.
Every non-deleted intervention that is not already paused becomes paused,
disabled ones included.
"""

import logging
from typing import Callable, List

from governance import safe_mode
from governance.audit import NOT_FOUND_REASON
from governance.models import (
    BulkActionResult,
    Intervention,
    InterventionKind,
    InterventionStatus,
    StatusChangeResult,
)
from governance.registry import RegistryAccessor

logger = logging.getLogger(__name__)


def _pause_matching(
    registry: RegistryAccessor,
    user_id: str,
    action: str,
    predicate: Callable[[Intervention], bool]
) -> BulkActionResult:
    interventions = registry.list_interventions(user_id)
    targets = sorted(
        [
            item for item in interventions
            if not item.is_deleted
            and item.status != InterventionStatus.PAUSED
            and predicate(item)
        ],
        key=lambda item: (item.created_at, item.id)
    )
    target_ids = [item.id for item in targets]
    
    if target_ids:
        registry.set_intervention_status(user_id, target_ids, InterventionStatus.PAUSED)
    logger.info(f"{action}: paused {len(target_ids)} interventions for user {user_id}")
    
    return BulkActionResult(action=action, affected_ids=target_ids)


def pause_all(registry: RegistryAccessor, user_id: str) -> BulkActionResult:
    """Pause every non-deleted intervention."""
    return _pause_matching(registry, user_id, "pause_all", lambda item: True)


def pause_by_kind(registry: RegistryAccessor, user_id: str, kind: InterventionKind) -> BulkActionResult:
    """Pause every non-deleted intervention of one kind."""
    kind = InterventionKind(kind)
    return _pause_matching(registry, user_id, "pause_by_kind", lambda item: item.kind == kind)


def pause_all_except_manual(registry: RegistryAccessor, user_id: str) -> BulkActionResult:
    """Pause every intervention that can be triggered contextually; manual-only ones stay untouched."""
    return _pause_matching(
        registry,
        user_id,
        "pause_all_except_manual",
        lambda item: item.allow_contextual_trigger
    )


def _find(interventions: List[Intervention], intervention_id: str):
    return next((item for item in interventions if item.id == intervention_id), None)


def pause_intervention(registry: RegistryAccessor, user_id: str, intervention_id: str) -> StatusChangeResult:
    """
    Pause a single intervention.
    
    Works from active or disabled, the same as the bulk pauses. A paused
    intervention is left as it is.
    """
    item = _find(registry.list_interventions(user_id), intervention_id)
    if item is None:
        return StatusChangeResult(intervention_id=intervention_id, changed=False, reason=NOT_FOUND_REASON)
    if item.status == InterventionStatus.PAUSED:
        return StatusChangeResult(
            intervention_id=intervention_id, status=item.status, changed=False, reason="already paused"
        )
    
    registry.set_intervention_status(user_id, [intervention_id], InterventionStatus.PAUSED)
    logger.info(f"Paused intervention {intervention_id} for user {user_id}")
    return StatusChangeResult(
        intervention_id=intervention_id, status=InterventionStatus.PAUSED, changed=True, reason="paused"
    )


def resume_intervention(registry: RegistryAccessor, user_id: str, intervention_id: str) -> StatusChangeResult:
    """
    Set a paused or disabled intervention back to active.
    
    Soft limits never stop this. Safe mode does: while it is on, interventions
    stay paused until the user turns it off.
    """
    item = _find(registry.list_interventions(user_id), intervention_id)
    if item is None:
        return StatusChangeResult(intervention_id=intervention_id, changed=False, reason=NOT_FOUND_REASON)
    if item.status == InterventionStatus.ACTIVE:
        return StatusChangeResult(
            intervention_id=intervention_id, status=item.status, changed=False, reason="already active"
        )
    if safe_mode.is_blocking(registry.is_safe_mode_enabled(user_id)):
        return StatusChangeResult(
            intervention_id=intervention_id,
            status=item.status,
            changed=False,
            reason=safe_mode.SAFE_MODE_REASON
        )
    
    registry.set_intervention_status(user_id, [intervention_id], InterventionStatus.ACTIVE)
    logger.info(f"Resumed intervention {intervention_id} for user {user_id}")
    return StatusChangeResult(
        intervention_id=intervention_id, status=InterventionStatus.ACTIVE, changed=True, reason="resumed"
    )
