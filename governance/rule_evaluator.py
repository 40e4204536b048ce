"""
Rule Evaluator

This module evaluates a single governance rule against a moment in time and
a context, returning whether the rule allows the intervention plus a
human-readable reason. It also produces the user-facing description of each
rule for the audit.

Pure functions only: no logging, no registry access.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from governance.catalog import context_label
from governance.models import (
    Context,
    ContextExclusionRule,
    GovernanceRule,
    RuleOutcome,
    RuleStatus,
    SessionCapRule,
    TimeWindowRule,
    UnevaluableRule,
    Weekday,
)


def format_days(days: List[Weekday]) -> str:
    """Format weekdays for display, e.g. 'Monday, Friday'. Empty list reads 'no days'."""
    if not days:
        return "no days"
    return ", ".join(day.label for day in days)


def evaluate(rule: GovernanceRule, now: datetime, context: Optional[Context]) -> RuleOutcome:
    """
    Evaluate one governance rule.
    
    Args:
        rule: Governance rule to evaluate (callers pass only active rules)
        now: Moment of evaluation; its weekday is taken in its own timezone
        context: Context being evaluated, or None for a manual invocation
    
    Returns:
        RuleOutcome with allowed flag and reason. When blocked, the reason is
        the blocking text shown to the user; when allowed, it is a positive
        statement of why the rule does not get in the way.
    
    Raises:
        TypeError: If the rule carries a payload type this evaluator does not know
    """
    payload = rule.payload
    
    if isinstance(payload, TimeWindowRule):
        today = Weekday.from_datetime(now)
        # An empty allowed set blocks every day
        if today in payload.allowed_days:
            return RuleOutcome(
                rule_id=rule.id,
                allowed=True,
                reason=f"today ({today.label}) is an allowed day"
            )
        return RuleOutcome(
            rule_id=rule.id,
            allowed=False,
            reason=f"allowed only on: {format_days(payload.allowed_days)}"
        )
    
    if isinstance(payload, ContextExclusionRule):
        if context is not None and context in payload.excluded_contexts:
            return RuleOutcome(
                rule_id=rule.id,
                allowed=False,
                reason=f"excluded during {context_label(context)}"
            )
        if context is None:
            reason = "context exclusions do not apply to manual use"
        else:
            reason = f"{context_label(context)} is not excluded"
        return RuleOutcome(rule_id=rule.id, allowed=True, reason=reason)
    
    if isinstance(payload, SessionCapRule):
        return RuleOutcome(
            rule_id=rule.id,
            allowed=True,
            reason=f"session cap of {payload.max_per_session} per session is advisory only"
        )
    
    if isinstance(payload, UnevaluableRule):
        return RuleOutcome(
            rule_id=rule.id,
            allowed=True,
            reason=f"rule could not be evaluated: {payload.problem}",
            evaluable=False
        )
    
    raise TypeError(f"Unhandled governance rule payload: {type(payload).__name__}")


def describe_rule(rule: GovernanceRule) -> str:
    """
    User-facing description of a rule, independent of time and context.
    
    Raises:
        TypeError: If the rule carries a payload type this function does not know
    """
    payload = rule.payload
    
    if isinstance(payload, TimeWindowRule):
        return f"Interventions allowed only on: {format_days(payload.allowed_days)}"
    if isinstance(payload, ContextExclusionRule):
        if not payload.excluded_contexts:
            return "No contexts excluded"
        labels = ", ".join(context_label(context) for context in payload.excluded_contexts)
        return f"No interventions during {labels}"
    if isinstance(payload, SessionCapRule):
        return f"Maximum {payload.max_per_session} intervention(s) per session (advisory, not enforced)"
    if isinstance(payload, UnevaluableRule):
        return f"This {payload.declared_type} rule could not be read and is not applied: {payload.problem}"
    
    raise TypeError(f"Unhandled governance rule payload: {type(payload).__name__}")


def ordered_active_rules(rules: List[GovernanceRule]) -> List[GovernanceRule]:
    """Active rules in creation order, ties broken by id."""
    active = [rule for rule in rules if rule.status == RuleStatus.ACTIVE]
    return sorted(active, key=lambda rule: (rule.created_at, rule.id))


def evaluate_rules(
    rules: List[GovernanceRule],
    now: datetime,
    context: Optional[Context]
) -> Tuple[Optional[RuleOutcome], List[RuleOutcome]]:
    """
    Evaluate every active rule in creation order.
    
    Args:
        rules: User's governance rules (paused rules are skipped)
        now: Moment of evaluation
        context: Context being evaluated, or None for a manual invocation
    
    Returns:
        Tuple of (first_blocking, outcomes)
        - first_blocking: First outcome that blocks, or None if all rules allow
        - outcomes: Outcomes for all active rules, in evaluation order
    """
    outcomes = [evaluate(rule, now, context) for rule in ordered_active_rules(rules)]
    first_blocking = next((outcome for outcome in outcomes if not outcome.allowed), None)
    return first_blocking, outcomes
