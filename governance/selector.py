"""
Deterministic Selector

Picks the one intervention that would be shown first for a context: the
earliest created, ties broken by id. Being first does not mean preferred.
"""

from typing import List, Optional

from governance.models import Intervention

SELECTION_NOTE = (
    "If multiple interventions match the same context, the earliest created one "
    "is shown. This does not mean it is better or preferred."
)


def select_winner(eligible: List[Intervention]) -> Optional[str]:
    """Id of the intervention that would show first, or None if nothing is eligible."""
    if not eligible:
        return None
    winner = min(eligible, key=lambda item: (item.created_at, item.id))
    return winner.id
