"""
Pydantic Models for Governance Engine

This module defines the registry records the engine reads (interventions,
governance rules, settings) and the immutable results it produces
(eligibility, audit, invocation checks, overview).

Governance rules carry a tagged payload: `rule_type` selects exactly one
payload model, so every consumer has to handle each variant explicitly.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InterventionKind(str, Enum):
    IMPLEMENTATION_INTENTION_REMINDER = "implementation_intention_reminder"
    CONTEXT_AWARE_PROMPT = "context_aware_prompt"
    SCHEDULED_REFLECTION_PROMPT = "scheduled_reflection_prompt"
    SIMPLIFIED_VIEW_MODE = "simplified_view_mode"
    TASK_DECOMPOSITION_ASSISTANT = "task_decomposition_assistant"
    FOCUS_MODE_SUPPRESSION = "focus_mode_suppression"
    TIMEBOXED_SESSION = "timeboxed_session"
    PROJECT_SCOPE_LIMITER = "project_scope_limiter"
    ACCOUNTABILITY_PARTNERSHIP = "accountability_partnership"
    COMMITMENT_WITNESS = "commitment_witness"


class InterventionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    DISABLED = "disabled"


class RuleStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"


class Context(str, Enum):
    """Moments inside the product that can surface an intervention."""
    PROJECT_OPENED = "project_opened"
    FOCUS_MODE_STARTED = "focus_mode_started"
    TASK_CREATED = "task_created"
    TASK_COMPLETED = "task_completed"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Weekday":
        """Weekday of `moment` in its own timezone (Monday-first, like date.weekday())."""
        return WEEKDAY_ORDER[moment.weekday()]

    @property
    def label(self) -> str:
        return self.value.capitalize()


WEEKDAY_ORDER: List[Weekday] = list(Weekday)
CONTEXT_ORDER: List[Context] = list(Context)

# Older rule rows stored the short name of the focus context
CONTEXT_ALIASES = {
    "focus_mode": Context.FOCUS_MODE_STARTED.value,
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Registry records
# =============================================================================

class Intervention(_Frozen):
    """A user-authored support intervention as stored in the registry."""
    id: str
    owner_id: str
    kind: InterventionKind
    status: InterventionStatus
    allow_contextual_trigger: bool = True
    parameters: Dict[str, Any] = Field(default_factory=dict)  # kind-specific, never interpreted here
    created_at: datetime
    deleted_at: Optional[datetime] = None
    why_text: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class TimeWindowRule(_Frozen):
    """Interventions may only appear on the listed weekdays."""
    rule_type: Literal["time_window"] = "time_window"
    allowed_days: List[Weekday]

    @field_validator("allowed_days", mode="before")
    @classmethod
    def normalize_days(cls, value):
        if value is None or isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise ValueError("allowed_days must be a list of weekday names")
        days = {
            Weekday(str(day.value if isinstance(day, Weekday) else day).strip().lower())
            for day in value
        }
        return [day for day in WEEKDAY_ORDER if day in days]


class ContextExclusionRule(_Frozen):
    """Interventions never appear during the listed contexts."""
    rule_type: Literal["context_exclusion"] = "context_exclusion"
    excluded_contexts: List[Context]

    @field_validator("excluded_contexts", mode="before")
    @classmethod
    def normalize_contexts(cls, value):
        if value is None or isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise ValueError("excluded_contexts must be a list of context names")
        contexts = set()
        for item in value:
            name = str(item.value if isinstance(item, Context) else item).strip().lower()
            contexts.add(Context(CONTEXT_ALIASES.get(name, name)))
        return [context for context in CONTEXT_ORDER if context in contexts]


class SessionCapRule(_Frozen):
    """Advisory cap on interventions per session. Never gates eligibility."""
    rule_type: Literal["session_cap"] = "session_cap"
    max_per_session: int = Field(ge=1)


class UnevaluableRule(_Frozen):
    """A stored rule whose parameters do not match its declared type."""
    rule_type: Literal["unevaluable"] = "unevaluable"
    declared_type: str
    problem: str


RulePayload = Annotated[
    Union[TimeWindowRule, ContextExclusionRule, SessionCapRule, UnevaluableRule],
    Field(discriminator="rule_type"),
]


class GovernanceRule(_Frozen):
    """A user-authored constraint on when interventions may be shown."""
    id: str
    owner_id: str
    status: RuleStatus = RuleStatus.ACTIVE
    created_at: datetime
    payload: RulePayload

    @property
    def rule_type(self) -> str:
        if isinstance(self.payload, UnevaluableRule):
            return self.payload.declared_type
        return self.payload.rule_type


class GovernanceSettings(_Frozen):
    """Per-user soft limits. Warnings only."""
    max_active_interventions: Optional[int] = Field(default=None, ge=0)
    max_reminders: Optional[int] = Field(default=None, ge=0)


class GovernanceSnapshot(_Frozen):
    """Everything the engine reads for one user, fetched once per call."""
    user_id: str
    interventions: List[Intervention] = Field(default_factory=list)
    rules: List[GovernanceRule] = Field(default_factory=list)
    settings: GovernanceSettings = Field(default_factory=GovernanceSettings)
    safe_mode_enabled: bool = False


# =============================================================================
# Engine results
# =============================================================================

class RuleOutcome(_Frozen):
    """Result of evaluating one rule for one moment and context."""
    rule_id: str
    allowed: bool
    reason: str
    evaluable: bool = True


class BlockedIntervention(_Frozen):
    intervention: Intervention
    blocking_reason: str


class EligibilityResult(_Frozen):
    context: Context
    eligible: List[Intervention] = Field(default_factory=list)
    blocked: List[BlockedIntervention] = Field(default_factory=list)


class EligibleEntry(_Frozen):
    intervention: Intervention
    would_show_first: bool
    reasons: List[str] = Field(default_factory=list)


class ContextReport(_Frozen):
    context: Context
    context_label: str
    eligible: List[EligibleEntry] = Field(default_factory=list)
    blocked: List[BlockedIntervention] = Field(default_factory=list)


class RuleReport(_Frozen):
    rule_id: str
    rule_type: str
    status: RuleStatus
    description: str
    evaluable: bool = True
    advisory: bool = False


class AuditReport(_Frozen):
    user_id: str
    safe_mode_enabled: bool
    evaluated_day: Weekday
    selection_note: str
    contexts: List[ContextReport] = Field(default_factory=list)
    rules: List[RuleReport] = Field(default_factory=list)


class InvokeCheck(_Frozen):
    intervention_id: str
    can_invoke: bool
    reason: str


class SoftLimitWarning(_Frozen):
    limit: str  # 'max_active_interventions' | 'max_reminders'
    limit_value: int
    current: int
    message: str


class GovernanceOverview(_Frozen):
    total_active: int = 0
    total_paused: int = 0
    total_disabled: int = 0
    breakdown_by_category: Dict[str, int] = Field(default_factory=dict)
    active_warnings: List[SoftLimitWarning] = Field(default_factory=list)


class BulkActionResult(_Frozen):
    action: str  # 'pause_all' | 'pause_by_kind' | 'pause_all_except_manual'
    affected_ids: List[str] = Field(default_factory=list)

    @property
    def affected_count(self) -> int:
        return len(self.affected_ids)


class StatusChangeResult(_Frozen):
    intervention_id: str
    status: Optional[InterventionStatus] = None
    changed: bool
    reason: str
