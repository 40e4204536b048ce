"""
Eligibility Computer

Filters a user's interventions for one context through safe mode, status and
the active governance rules, producing the eligible set and the blocked set
with reasons.

Order of checks per candidate:
1. Safe mode (reason 'safe_mode_active', nothing else evaluated)
2. Status ('paused' or 'disabled')
3. Active governance rules in creation order (first blocking reason wins)

Interventions that this context cannot trigger are left out of both lists.
"""

from datetime import datetime
from typing import List

from governance import safe_mode
from governance.catalog import trigger_context_for
from governance.models import (
    BlockedIntervention,
    Context,
    EligibilityResult,
    GovernanceSnapshot,
    Intervention,
    InterventionStatus,
)
from governance.rule_evaluator import evaluate_rules


def sort_by_creation(interventions: List[Intervention]) -> List[Intervention]:
    """Oldest first, ties broken by id."""
    return sorted(interventions, key=lambda item: (item.created_at, item.id))


def is_candidate(intervention: Intervention, context: Context) -> bool:
    """Whether `context` is relevant to this intervention at all."""
    return (
        not intervention.is_deleted
        and intervention.allow_contextual_trigger
        and trigger_context_for(intervention.kind) == context
    )


def compute_for_context(
    snapshot: GovernanceSnapshot,
    context: Context,
    now: datetime
) -> EligibilityResult:
    """
    Compute eligible and blocked interventions for one context.
    
    Args:
        snapshot: User's interventions, rules, settings and safe-mode flag
        context: Context that fired (or is being audited)
        now: Moment of evaluation, in the caller's local timezone
    
    Returns:
        EligibilityResult with eligible and blocked lists, both in creation order
    """
    candidates = sort_by_creation(
        [item for item in snapshot.interventions if is_candidate(item, context)]
    )
    
    eligible: List[Intervention] = []
    blocked: List[BlockedIntervention] = []
    
    if safe_mode.is_blocking(snapshot.safe_mode_enabled):
        blocked = [
            BlockedIntervention(intervention=item, blocking_reason=safe_mode.SAFE_MODE_REASON)
            for item in candidates
        ]
        return EligibilityResult(context=context, eligible=[], blocked=blocked)
    
    # Rules do not depend on the candidate, so evaluate them once
    first_blocking, _ = evaluate_rules(snapshot.rules, now, context)
    
    for item in candidates:
        if item.status != InterventionStatus.ACTIVE:
            blocked.append(BlockedIntervention(intervention=item, blocking_reason=item.status.value))
        elif first_blocking is not None:
            blocked.append(BlockedIntervention(intervention=item, blocking_reason=first_blocking.reason))
        else:
            eligible.append(item)
    
    return EligibilityResult(context=context, eligible=eligible, blocked=blocked)
