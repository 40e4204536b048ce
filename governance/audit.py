"""
Audit Explainer

Builds the explainable, side-effect-free report of eligibility across every
known context, and the narrower invocation pre-check for one intervention.

Both functions take an already-loaded GovernanceSnapshot and return frozen
models. They hold no logger, no registry and no cache, so calling them twice
with the same inputs returns equal reports.
"""

from datetime import datetime
from typing import List, Optional

from governance import safe_mode
from governance.catalog import context_label, trigger_context_for
from governance.eligibility import compute_for_context
from governance.models import (
    CONTEXT_ORDER,
    AuditReport,
    Context,
    ContextReport,
    EligibleEntry,
    GovernanceRule,
    GovernanceSnapshot,
    Intervention,
    InterventionStatus,
    InvokeCheck,
    RuleReport,
    SessionCapRule,
    UnevaluableRule,
    Weekday,
)
from governance.rule_evaluator import describe_rule, evaluate_rules, ordered_active_rules
from governance.selector import SELECTION_NOTE, select_winner

NOT_FOUND_REASON = "intervention not found"
ALLOWED_REASON = "ok"


def _eligible_reasons(snapshot: GovernanceSnapshot, context: Context, now: datetime) -> List[str]:
    """
    Conditions that allowed an intervention for this context.
    
    Built from the checks that passed rather than from the absence of a block,
    so the text stays truthful as rules change.
    """
    reasons = [
        "status is active",
        "contextual triggering is enabled for this intervention",
        "safe mode is off",
        f"configured to appear when {context_label(context)}",
    ]
    _, outcomes = evaluate_rules(snapshot.rules, now, context)
    for outcome in outcomes:
        if outcome.evaluable:
            reasons.append(outcome.reason)
        else:
            reasons.append(f"rule {outcome.rule_id} could not be evaluated and is not applied")
    if outcomes:
        reasons.append("no governance rule excludes this context")
    else:
        reasons.append("no governance rules are active")
    return reasons


def _rule_report(rule: GovernanceRule) -> RuleReport:
    return RuleReport(
        rule_id=rule.id,
        rule_type=rule.rule_type,
        status=rule.status,
        description=describe_rule(rule),
        evaluable=not isinstance(rule.payload, UnevaluableRule),
        advisory=isinstance(rule.payload, SessionCapRule),
    )


def build_context_report(snapshot: GovernanceSnapshot, context: Context, now: datetime) -> ContextReport:
    """Eligibility for one context, with the would-show-first winner marked."""
    result = compute_for_context(snapshot, context, now)
    winner_id = select_winner(result.eligible)
    
    eligible_entries = []
    if result.eligible:
        reasons = _eligible_reasons(snapshot, context, now)
        eligible_entries = [
            EligibleEntry(
                intervention=item,
                would_show_first=(item.id == winner_id),
                reasons=list(reasons),
            )
            for item in result.eligible
        ]
    
    return ContextReport(
        context=context,
        context_label=context_label(context),
        eligible=eligible_entries,
        blocked=result.blocked,
    )


def compute_audit(snapshot: GovernanceSnapshot, now: datetime) -> AuditReport:
    """
    Compute the full audit for one user.
    
    Args:
        snapshot: User's interventions, rules, settings and safe-mode flag
        now: Moment of evaluation, in the caller's local timezone
    
    Returns:
        AuditReport covering every context in a fixed order, plus every active
        rule (advisory and unevaluable rules included and flagged)
    """
    contexts = [build_context_report(snapshot, context, now) for context in CONTEXT_ORDER]
    rules = [_rule_report(rule) for rule in ordered_active_rules(snapshot.rules)]
    
    return AuditReport(
        user_id=snapshot.user_id,
        safe_mode_enabled=snapshot.safe_mode_enabled,
        evaluated_day=Weekday.from_datetime(now),
        selection_note=SELECTION_NOTE,
        contexts=contexts,
        rules=rules,
    )


def _find_intervention(snapshot: GovernanceSnapshot, intervention_id: str) -> Optional[Intervention]:
    for item in snapshot.interventions:
        if item.id == intervention_id and not item.is_deleted:
            return item
    return None


def can_invoke(
    snapshot: GovernanceSnapshot,
    intervention_id: str,
    now: datetime,
    context: Optional[Context] = None
) -> InvokeCheck:
    """
    Pre-check before showing an intervention.
    
    Contextual interventions reuse the per-context eligibility computation so
    the verdict always matches the audit for that intervention and context.
    Manual-only interventions (or a context the intervention cannot be
    triggered by) go through safe mode, status and the active rules with no
    context, so only time windows can block them.
    
    Args:
        snapshot: User's interventions, rules, settings and safe-mode flag
        intervention_id: Intervention to check
        now: Moment of evaluation, in the caller's local timezone
        context: Context to check against. Defaults to the intervention's own
                 trigger context when it allows contextual triggering.
    
    Returns:
        InvokeCheck with can_invoke flag and a single reason
    """
    intervention = _find_intervention(snapshot, intervention_id)
    if intervention is None:
        return InvokeCheck(intervention_id=intervention_id, can_invoke=False, reason=NOT_FOUND_REASON)
    
    trigger = trigger_context_for(intervention.kind)
    if context is None and intervention.allow_contextual_trigger:
        context = trigger
    
    if context is not None and intervention.allow_contextual_trigger and context == trigger:
        result = compute_for_context(snapshot, context, now)
        for blocked in result.blocked:
            if blocked.intervention.id == intervention_id:
                return InvokeCheck(
                    intervention_id=intervention_id,
                    can_invoke=False,
                    reason=blocked.blocking_reason,
                )
        return InvokeCheck(intervention_id=intervention_id, can_invoke=True, reason=ALLOWED_REASON)
    
    if safe_mode.is_blocking(snapshot.safe_mode_enabled):
        return InvokeCheck(intervention_id=intervention_id, can_invoke=False, reason=safe_mode.SAFE_MODE_REASON)
    if intervention.status != InterventionStatus.ACTIVE:
        return InvokeCheck(intervention_id=intervention_id, can_invoke=False, reason=intervention.status.value)
    
    first_blocking, _ = evaluate_rules(snapshot.rules, now, None)
    if first_blocking is not None:
        return InvokeCheck(intervention_id=intervention_id, can_invoke=False, reason=first_blocking.reason)
    return InvokeCheck(intervention_id=intervention_id, can_invoke=True, reason=ALLOWED_REASON)
