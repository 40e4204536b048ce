"""
Intervention Catalog

Fixed facts about each intervention kind: which context can surface it
contextually (None = manual only), its category and its display name.
Context labels come from configuration with built-in fallbacks.
"""

from typing import Dict, List, Optional

from governance.config_loader import load_config
from governance.models import Context, InterventionKind

# Load configuration
_config = load_config()
_context_labels_config = _config.get("context_labels", {})

CONTEXT_LABELS: Dict[Context, str] = {
    Context.PROJECT_OPENED: _context_labels_config.get("project_opened", "Project opened"),
    Context.FOCUS_MODE_STARTED: _context_labels_config.get("focus_mode_started", "Focus Mode started"),
    Context.TASK_CREATED: _context_labels_config.get("task_created", "Task created"),
    Context.TASK_COMPLETED: _context_labels_config.get("task_completed", "Task completed"),
}

# Each kind has at most one context that can trigger it
KIND_TRIGGER_CONTEXTS: Dict[InterventionKind, Optional[Context]] = {
    InterventionKind.IMPLEMENTATION_INTENTION_REMINDER: Context.PROJECT_OPENED,
    InterventionKind.CONTEXT_AWARE_PROMPT: Context.TASK_CREATED,
    InterventionKind.SCHEDULED_REFLECTION_PROMPT: Context.TASK_COMPLETED,
    InterventionKind.SIMPLIFIED_VIEW_MODE: None,
    InterventionKind.TASK_DECOMPOSITION_ASSISTANT: None,
    InterventionKind.FOCUS_MODE_SUPPRESSION: Context.FOCUS_MODE_STARTED,
    InterventionKind.TIMEBOXED_SESSION: Context.FOCUS_MODE_STARTED,
    InterventionKind.PROJECT_SCOPE_LIMITER: Context.PROJECT_OPENED,
    InterventionKind.ACCOUNTABILITY_PARTNERSHIP: None,
    InterventionKind.COMMITMENT_WITNESS: None,
}

KIND_CATEGORIES: Dict[InterventionKind, str] = {
    InterventionKind.IMPLEMENTATION_INTENTION_REMINDER: "user_initiated_nudge",
    InterventionKind.CONTEXT_AWARE_PROMPT: "user_initiated_nudge",
    InterventionKind.SCHEDULED_REFLECTION_PROMPT: "user_initiated_nudge",
    InterventionKind.SIMPLIFIED_VIEW_MODE: "friction_reduction",
    InterventionKind.TASK_DECOMPOSITION_ASSISTANT: "friction_reduction",
    InterventionKind.FOCUS_MODE_SUPPRESSION: "self_imposed_constraint",
    InterventionKind.TIMEBOXED_SESSION: "self_imposed_constraint",
    InterventionKind.PROJECT_SCOPE_LIMITER: "self_imposed_constraint",
    InterventionKind.ACCOUNTABILITY_PARTNERSHIP: "accountability",
    InterventionKind.COMMITMENT_WITNESS: "accountability",
}

KIND_NAMES: Dict[InterventionKind, str] = {
    InterventionKind.IMPLEMENTATION_INTENTION_REMINDER: "Implementation Intention Reminder",
    InterventionKind.CONTEXT_AWARE_PROMPT: "Context-Aware Prompt",
    InterventionKind.SCHEDULED_REFLECTION_PROMPT: "Scheduled Reflection Prompt",
    InterventionKind.SIMPLIFIED_VIEW_MODE: "Simplified View Mode",
    InterventionKind.TASK_DECOMPOSITION_ASSISTANT: "Task Decomposition Assistant",
    InterventionKind.FOCUS_MODE_SUPPRESSION: "Focus Mode (Feature Suppression)",
    InterventionKind.TIMEBOXED_SESSION: "Timeboxed Work Session",
    InterventionKind.PROJECT_SCOPE_LIMITER: "Project Scope Limiter",
    InterventionKind.ACCOUNTABILITY_PARTNERSHIP: "Accountability Partnership (1:1 Sharing)",
    InterventionKind.COMMITMENT_WITNESS: "Commitment Witness (View-Only Sharing)",
}

# Kinds counted against the max_reminders soft limit
REMINDER_KINDS = frozenset({InterventionKind.IMPLEMENTATION_INTENTION_REMINDER})


def trigger_context_for(kind: InterventionKind) -> Optional[Context]:
    """Context that can surface this kind, or None if it is manual only."""
    return KIND_TRIGGER_CONTEXTS[kind]


def kinds_for_context(context: Context) -> List[InterventionKind]:
    return [kind for kind, trigger in KIND_TRIGGER_CONTEXTS.items() if trigger == context]


def context_label(context: Context) -> str:
    return CONTEXT_LABELS.get(context, context.value.replace("_", " ").capitalize())


def category_for(kind: InterventionKind) -> str:
    return KIND_CATEGORIES[kind]
