"""
Registry Accessor

Read (and bulk status write) contract the engine depends on, the row parsers
that turn stored records into engine models, and two implementations:

- InMemoryRegistry: for tests and local demos. Records every write.
- SupabaseRegistry: backed by the query functions in utils.database.

Registry failures are raised as DataUnavailable. A stored rule whose payload
does not match its declared type is kept as an UnevaluableRule so it still
shows up in the audit.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from governance.clock import parse_timestamp
from governance.errors import DataUnavailable, InvalidRuleShape
from governance.models import (
    ContextExclusionRule,
    GovernanceRule,
    GovernanceSettings,
    GovernanceSnapshot,
    Intervention,
    InterventionStatus,
    RuleStatus,
    SessionCapRule,
    TimeWindowRule,
    UnevaluableRule,
)
from utils import database

logger = logging.getLogger(__name__)

RULE_PAYLOAD_MODELS = {
    "time_window": TimeWindowRule,
    "context_exclusion": ContextExclusionRule,
    "session_cap": SessionCapRule,
}


class RegistryAccessor(ABC):
    """Per-user view over interventions, governance rules and settings."""

    @abstractmethod
    def list_interventions(self, user_id: str) -> List[Intervention]:
        """Non-deleted interventions owned by the user."""

    @abstractmethod
    def list_active_governance_rules(self, user_id: str) -> List[GovernanceRule]:
        """Governance rules with status 'active'."""

    @abstractmethod
    def get_governance_settings(self, user_id: str) -> GovernanceSettings:
        """Soft limits; empty settings when the user never saved any."""

    @abstractmethod
    def is_safe_mode_enabled(self, user_id: str) -> bool:
        """Current safe-mode flag from the user's profile."""

    @abstractmethod
    def set_intervention_status(
        self,
        user_id: str,
        intervention_ids: List[str],
        status: InterventionStatus
    ) -> int:
        """Set status on the given interventions. Returns the number updated."""


def load_snapshot(registry: RegistryAccessor, user_id: str) -> GovernanceSnapshot:
    """
    Fetch everything the engine needs for one user in one go.
    
    Raises:
        DataUnavailable: If any registry read fails
    """
    interventions = registry.list_interventions(user_id)
    rules = registry.list_active_governance_rules(user_id)
    settings = registry.get_governance_settings(user_id)
    safe_mode_enabled = registry.is_safe_mode_enabled(user_id)
    
    return GovernanceSnapshot(
        user_id=user_id,
        interventions=[item for item in interventions if not item.is_deleted],
        rules=[rule for rule in rules if rule.status == RuleStatus.ACTIVE],
        settings=settings,
        safe_mode_enabled=safe_mode_enabled,
    )


# =============================================================================
# Row parsing
# =============================================================================

def parse_intervention_row(row: Dict[str, Any]) -> Optional[Intervention]:
    """
    Convert an interventions_registry row into an Intervention.
    
    Returns:
        Intervention, or None for soft-deleted rows (including the legacy
        'deleted' status)
    """
    if row.get("deleted_at") or row.get("status") == "deleted":
        return None
    return Intervention(
        id=str(row["id"]),
        owner_id=str(row["user_id"]),
        kind=row["intervention_key"],
        status=row["status"],
        allow_contextual_trigger=row.get("allow_contextual_trigger", True),
        parameters=row.get("user_parameters") or {},
        created_at=parse_timestamp(row["created_at"]),
        why_text=row.get("why_text"),
    )


def parse_rule_payload(rule_id: str, rule_type: str, parameters: Any):
    """
    Build the typed payload for a stored rule.
    
    Raises:
        InvalidRuleShape: If the rule type is unknown or the parameters do not fit it
    """
    model = RULE_PAYLOAD_MODELS.get(rule_type)
    if model is None:
        raise InvalidRuleShape(rule_id, str(rule_type), "unknown rule type")
    if not isinstance(parameters, dict):
        raise InvalidRuleShape(rule_id, rule_type, "rule parameters are not an object")
    
    # Some rows repeat the type inside the parameters
    data = {key: value for key, value in parameters.items() if key not in ("type", "rule_type")}
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or rule_type}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidRuleShape(rule_id, rule_type, problems) from e


def parse_rule_row(row: Dict[str, Any]) -> GovernanceRule:
    """
    Convert an intervention_governance_rules row into a GovernanceRule.
    
    Raises:
        InvalidRuleShape: If the stored payload does not match its rule type
    """
    rule_id = str(row["id"])
    rule_type = row.get("rule_type")
    payload = parse_rule_payload(rule_id, rule_type, row.get("rule_parameters"))
    try:
        return GovernanceRule(
            id=rule_id,
            owner_id=str(row["user_id"]),
            status=row.get("status", RuleStatus.ACTIVE.value),
            created_at=parse_timestamp(row["created_at"]),
            payload=payload,
        )
    except ValidationError as e:
        raise InvalidRuleShape(rule_id, rule_type, f"invalid rule status {row.get('status')!r}") from e


def load_rule_row(row: Dict[str, Any]) -> GovernanceRule:
    """
    Like parse_rule_row, but a malformed payload becomes an UnevaluableRule
    instead of an error, so the rule is flagged rather than silently dropped.
    """
    try:
        return parse_rule_row(row)
    except InvalidRuleShape as e:
        logger.warning(f"Governance rule {e.rule_id} cannot be evaluated: {e.problem}")
        try:
            status = RuleStatus(row.get("status", RuleStatus.ACTIVE.value))
        except ValueError:
            status = RuleStatus.ACTIVE
        return GovernanceRule(
            id=e.rule_id,
            owner_id=str(row["user_id"]),
            status=status,
            created_at=parse_timestamp(row["created_at"]),
            payload=UnevaluableRule(declared_type=e.declared_type, problem=e.problem),
        )


def parse_settings_row(row: Optional[Dict[str, Any]]) -> GovernanceSettings:
    if not row:
        return GovernanceSettings()
    return GovernanceSettings(
        max_active_interventions=row.get("max_active_interventions"),
        max_reminders=row.get("max_reminders"),
    )


# =============================================================================
# Implementations
# =============================================================================

class InMemoryRegistry(RegistryAccessor):
    """
    Registry held in process memory.
    
    `writes` records every status write as (user_id, ids, status) so callers
    can check that read-only operations never wrote anything. Setting
    `unavailable` makes every call raise DataUnavailable.
    """

    def __init__(
        self,
        interventions: Optional[Iterable[Intervention]] = None,
        rules: Optional[Iterable[GovernanceRule]] = None,
        settings: Optional[Dict[str, GovernanceSettings]] = None,
        safe_mode: Optional[Dict[str, bool]] = None
    ):
        self._interventions: Dict[str, Intervention] = {item.id: item for item in (interventions or [])}
        self._rules: Dict[str, GovernanceRule] = {rule.id: rule for rule in (rules or [])}
        self._settings: Dict[str, GovernanceSettings] = dict(settings or {})
        self._safe_mode: Dict[str, bool] = dict(safe_mode or {})
        self.writes: List[tuple] = []
        self.unavailable = False

    def _check_available(self):
        if self.unavailable:
            raise DataUnavailable("In-memory registry marked unavailable")

    def list_interventions(self, user_id: str) -> List[Intervention]:
        self._check_available()
        return [
            item for item in self._interventions.values()
            if item.owner_id == user_id and not item.is_deleted
        ]

    def list_active_governance_rules(self, user_id: str) -> List[GovernanceRule]:
        self._check_available()
        return [
            rule for rule in self._rules.values()
            if rule.owner_id == user_id and rule.status == RuleStatus.ACTIVE
        ]

    def get_governance_settings(self, user_id: str) -> GovernanceSettings:
        self._check_available()
        return self._settings.get(user_id, GovernanceSettings())

    def is_safe_mode_enabled(self, user_id: str) -> bool:
        self._check_available()
        return self._safe_mode.get(user_id, False)

    def set_intervention_status(
        self,
        user_id: str,
        intervention_ids: List[str],
        status: InterventionStatus
    ) -> int:
        self._check_available()
        updated = 0
        for intervention_id in intervention_ids:
            item = self._interventions.get(intervention_id)
            if item is None or item.owner_id != user_id or item.is_deleted:
                continue
            self._interventions[intervention_id] = item.model_copy(update={"status": status})
            updated += 1
        self.writes.append((user_id, list(intervention_ids), status))
        return updated

    # Test and demo helpers, not part of the accessor contract

    def get(self, intervention_id: str) -> Optional[Intervention]:
        return self._interventions.get(intervention_id)

    def set_safe_mode(self, user_id: str, enabled: bool):
        self._safe_mode[user_id] = enabled

    def set_settings(self, user_id: str, settings: GovernanceSettings):
        self._settings[user_id] = settings


class SupabaseRegistry(RegistryAccessor):
    """Registry backed by the Supabase tables of the host product."""

    def list_interventions(self, user_id: str) -> List[Intervention]:
        rows = database.fetch_interventions(user_id)
        interventions = []
        for row in rows:
            try:
                item = parse_intervention_row(row)
            except (KeyError, TypeError, ValueError) as e:
                raise DataUnavailable(f"Malformed intervention row {row.get('id')}: {e}") from e
            if item is not None:
                interventions.append(item)
        return interventions

    def list_active_governance_rules(self, user_id: str) -> List[GovernanceRule]:
        rows = database.fetch_active_governance_rules(user_id)
        rules = []
        for row in rows:
            try:
                rules.append(load_rule_row(row))
            except (KeyError, TypeError, ValueError) as e:
                raise DataUnavailable(f"Malformed governance rule row {row.get('id')}: {e}") from e
        return rules

    def get_governance_settings(self, user_id: str) -> GovernanceSettings:
        row = database.fetch_governance_settings(user_id)
        try:
            return parse_settings_row(row)
        except ValidationError as e:
            # Settings are warnings only; unreadable limits are treated as unset
            logger.warning(f"Ignoring unreadable governance settings for user {user_id}: {e}")
            return GovernanceSettings()

    def is_safe_mode_enabled(self, user_id: str) -> bool:
        return database.fetch_safe_mode_enabled(user_id)

    def set_intervention_status(
        self,
        user_id: str,
        intervention_ids: List[str],
        status: InterventionStatus
    ) -> int:
        return database.update_intervention_statuses(user_id, intervention_ids, status.value)
