"""
Error Types for Governance Engine

Only registry failures cross the engine boundary as exceptions. Expected
conditions (no interventions, no rules, unknown ids) are plain empty or
negative results.
"""

from typing import Optional


class RegistryError(Exception):
    """Base error for registry accessor failures."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class DataUnavailable(RegistryError):
    """The registry could not return intervention, rule or settings data."""

    def __init__(self, message: str, code: Optional[str] = "DATA_UNAVAILABLE"):
        super().__init__(message, code)


class InvalidRuleShape(ValueError):
    """A persisted governance rule payload does not match its declared rule type."""

    def __init__(self, rule_id: str, declared_type: str, problem: str):
        super().__init__(f"Rule {rule_id} ({declared_type}): {problem}")
        self.rule_id = rule_id
        self.declared_type = declared_type
        self.problem = problem
