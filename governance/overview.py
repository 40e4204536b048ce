"""
Governance Overview

Counts of the user's interventions by status and category, and the soft-limit
warnings derived from their own governance settings. Warnings are notices
only: nothing here changes eligibility or blocks activation.
"""

from collections import defaultdict
from typing import Dict, List

from governance.catalog import REMINDER_KINDS, category_for
from governance.models import (
    GovernanceOverview,
    GovernanceSnapshot,
    InterventionStatus,
    SoftLimitWarning,
)


def soft_limit_warnings(snapshot: GovernanceSnapshot) -> List[SoftLimitWarning]:
    """
    Warnings for soft limits the user is currently above.
    
    Args:
        snapshot: User's interventions and governance settings
    
    Returns:
        List of SoftLimitWarning, empty when no limit is set or exceeded
    """
    settings = snapshot.settings
    active = [
        item for item in snapshot.interventions
        if not item.is_deleted and item.status == InterventionStatus.ACTIVE
    ]
    warnings = []
    
    if settings.max_active_interventions is not None and len(active) > settings.max_active_interventions:
        warnings.append(SoftLimitWarning(
            limit="max_active_interventions",
            limit_value=settings.max_active_interventions,
            current=len(active),
            message=(
                f"You have {len(active)} active responses. "
                f"You set a limit of {settings.max_active_interventions}."
            ),
        ))
    
    active_reminders = [item for item in active if item.kind in REMINDER_KINDS]
    if settings.max_reminders is not None and len(active_reminders) > settings.max_reminders:
        warnings.append(SoftLimitWarning(
            limit="max_reminders",
            limit_value=settings.max_reminders,
            current=len(active_reminders),
            message=(
                f"You have {len(active_reminders)} active reminders. "
                f"You set a limit of {settings.max_reminders}."
            ),
        ))
    
    return warnings


def compute_overview(snapshot: GovernanceSnapshot) -> GovernanceOverview:
    """Status totals, active-by-category breakdown and soft-limit warnings."""
    totals: Dict[InterventionStatus, int] = defaultdict(int)
    by_category: Dict[str, int] = defaultdict(int)
    
    for item in snapshot.interventions:
        if item.is_deleted:
            continue
        totals[item.status] += 1
        if item.status == InterventionStatus.ACTIVE:
            by_category[category_for(item.kind)] += 1
    
    return GovernanceOverview(
        total_active=totals[InterventionStatus.ACTIVE],
        total_paused=totals[InterventionStatus.PAUSED],
        total_disabled=totals[InterventionStatus.DISABLED],
        breakdown_by_category=dict(sorted(by_category.items())),
        active_warnings=soft_limit_warnings(snapshot),
    )
