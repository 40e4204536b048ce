"""
Governance Engine

Entry point used by the API and the invocation layer. Each call:
- Loads a fresh snapshot (interventions, active rules, settings, safe mode)
  from the registry
- Resolves the caller's local time
- Hands the snapshot to the pure eligibility / audit / overview functions

The engine keeps no state between calls. The only failure that leaves it is
DataUnavailable from the registry; can_invoke turns that into a calm
"could not verify status" answer instead.
"""

import logging
from datetime import datetime, tzinfo
from typing import Optional

from governance import audit, bulk_actions, eligibility, overview
from governance.clock import resolve_now
from governance.errors import DataUnavailable
from governance.models import (
    AuditReport,
    BulkActionResult,
    Context,
    EligibilityResult,
    GovernanceOverview,
    GovernanceSnapshot,
    InterventionKind,
    InvokeCheck,
    StatusChangeResult,
)
from governance.registry import RegistryAccessor, load_snapshot

logger = logging.getLogger(__name__)

UNVERIFIED_REASON = "could not verify status"


class GovernanceEngine:
    """
    Synchronous, on-demand governance decisions for one registry.
    
    Args:
        registry: Registry accessor the snapshots are read from
        timezone: Timezone for missing or naive `now` values. Defaults to the
                  configured product timezone.
    """

    def __init__(self, registry: RegistryAccessor, timezone: Optional[tzinfo] = None):
        self.registry = registry
        self.timezone = timezone

    def _snapshot(self, user_id: str) -> GovernanceSnapshot:
        return load_snapshot(self.registry, user_id)

    def _now(self, now: Optional[datetime]) -> datetime:
        return resolve_now(now, self.timezone)

    def compute_audit(self, user_id: str, now: Optional[datetime] = None) -> AuditReport:
        """
        Full explainable audit across every context.
        
        Raises:
            DataUnavailable: If the registry cannot be read
        """
        snapshot = self._snapshot(user_id)
        return audit.compute_audit(snapshot, self._now(now))

    def compute_eligibility(
        self,
        user_id: str,
        context: Context,
        now: Optional[datetime] = None
    ) -> EligibilityResult:
        """
        Eligible and blocked interventions for a context that just fired.
        
        Raises:
            DataUnavailable: If the registry cannot be read
        """
        snapshot = self._snapshot(user_id)
        return eligibility.compute_for_context(snapshot, Context(context), self._now(now))

    def can_invoke(
        self,
        user_id: str,
        intervention_id: str,
        now: Optional[datetime] = None,
        context: Optional[Context] = None
    ) -> InvokeCheck:
        """Pre-check before showing an intervention. Never raises for registry failures."""
        try:
            snapshot = self._snapshot(user_id)
        except DataUnavailable as e:
            logger.warning(f"Could not verify intervention {intervention_id} for user {user_id}: {e}")
            return InvokeCheck(intervention_id=intervention_id, can_invoke=False, reason=UNVERIFIED_REASON)
        
        if context is not None:
            context = Context(context)
        return audit.can_invoke(snapshot, intervention_id, self._now(now), context=context)

    def compute_overview(self, user_id: str) -> GovernanceOverview:
        """
        Status totals and soft-limit warnings.
        
        Raises:
            DataUnavailable: If the registry cannot be read
        """
        return overview.compute_overview(self._snapshot(user_id))

    def pause_all(self, user_id: str) -> BulkActionResult:
        return bulk_actions.pause_all(self.registry, user_id)

    def pause_by_kind(self, user_id: str, kind: InterventionKind) -> BulkActionResult:
        return bulk_actions.pause_by_kind(self.registry, user_id, kind)

    def pause_all_except_manual(self, user_id: str) -> BulkActionResult:
        return bulk_actions.pause_all_except_manual(self.registry, user_id)

    def pause_intervention(self, user_id: str, intervention_id: str) -> StatusChangeResult:
        return bulk_actions.pause_intervention(self.registry, user_id, intervention_id)

    def resume_intervention(self, user_id: str, intervention_id: str) -> StatusChangeResult:
        return bulk_actions.resume_intervention(self.registry, user_id, intervention_id)
