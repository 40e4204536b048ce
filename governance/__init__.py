"""
Governance package for intervention eligibility and user-defined governance.

This package provides:
- Rule evaluator: Checks one governance rule against a day and context
- Eligibility computer: Eligible and blocked interventions per context
- Audit explainer: Side-effect-free report of why things would or would not appear
- Bulk actions: Reversible pause/resume of interventions
- Engine: Loads registry snapshots and coordinates the above
"""

from . import models
from . import rule_evaluator
from . import eligibility
from . import selector
from . import audit
from . import overview
from . import bulk_actions
from . import engine

__all__ = [
    'models',
    'rule_evaluator',
    'eligibility',
    'selector',
    'audit',
    'overview',
    'bulk_actions',
    'engine'
]
