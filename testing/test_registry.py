"""
Unit Tests: Registry Row Parsing and Accessors

Tests conversion of stored rows into engine models (including malformed rule
payloads becoming unevaluable rules), the Supabase-backed accessor with the
query functions patched out, and the query functions against a fake client.

Run with: pytest testing/test_registry.py -v
"""

import pytest

from governance_fixtures import USER_ID, make_intervention, make_registry, time_window
from governance import registry as registry_module
from governance.errors import DataUnavailable, InvalidRuleShape
from governance.models import (
    Context,
    ContextExclusionRule,
    InterventionKind,
    InterventionStatus,
    RuleStatus,
    SessionCapRule,
    TimeWindowRule,
    UnevaluableRule,
    Weekday,
)
from governance.registry import (
    SupabaseRegistry,
    load_rule_row,
    load_snapshot,
    parse_intervention_row,
    parse_rule_payload,
    parse_rule_row,
    parse_settings_row,
)
from utils import database


def intervention_row(**overrides):
    row = {
        "id": "int-1",
        "user_id": USER_ID,
        "intervention_key": "implementation_intention_reminder",
        "status": "active",
        "allow_contextual_trigger": True,
        "user_parameters": {"reminder_text": "Start with the outline"},
        "why_text": "I lose the thread after lunch",
        "created_at": "2025-12-01T01:00:00Z",
        "deleted_at": None,
    }
    row.update(overrides)
    return row


def rule_row(rule_type, parameters, **overrides):
    row = {
        "id": "rule-1",
        "user_id": USER_ID,
        "rule_type": rule_type,
        "rule_parameters": parameters,
        "status": "active",
        "created_at": "2025-12-01T01:00:00+00:00",
    }
    row.update(overrides)
    return row


# =============================================================================
# Row parsing
# =============================================================================

class TestInterventionRows:

    def test_parses_row(self):
        item = parse_intervention_row(intervention_row())

        assert item.id == "int-1"
        assert item.kind == InterventionKind.IMPLEMENTATION_INTENTION_REMINDER
        assert item.status == InterventionStatus.ACTIVE
        assert item.parameters == {"reminder_text": "Start with the outline"}
        assert item.created_at.tzinfo is not None

    def test_missing_contextual_flag_defaults_to_true(self):
        row = intervention_row()
        del row["allow_contextual_trigger"]

        assert parse_intervention_row(row).allow_contextual_trigger is True

    def test_deleted_rows_are_skipped(self):
        assert parse_intervention_row(intervention_row(deleted_at="2025-12-02T00:00:00Z")) is None
        assert parse_intervention_row(intervention_row(status="deleted")) is None


class TestRulePayloads:

    def test_time_window_days_are_normalized(self):
        payload = parse_rule_payload("r", "time_window", {"allowed_days": ["Friday", "monday", "friday"]})

        assert isinstance(payload, TimeWindowRule)
        assert payload.allowed_days == [Weekday.MONDAY, Weekday.FRIDAY]

    def test_legacy_focus_mode_context_is_mapped(self):
        payload = parse_rule_payload("r", "context_exclusion", {"excluded_contexts": ["focus_mode"]})

        assert isinstance(payload, ContextExclusionRule)
        assert payload.excluded_contexts == [Context.FOCUS_MODE_STARTED]

    def test_embedded_type_key_is_ignored(self):
        payload = parse_rule_payload("r", "session_cap", {"type": "session_cap", "max_per_session": 2})

        assert isinstance(payload, SessionCapRule)
        assert payload.max_per_session == 2

    @pytest.mark.parametrize("rule_type, parameters", [
        ("time_window", {}),
        ("time_window", {"allowed_days": None}),
        ("time_window", {"allowed_days": "monday"}),
        ("time_window", {"allowed_days": ["someday"]}),
        ("context_exclusion", {"excluded_contexts": ["lunch_break"]}),
        ("session_cap", {"max_per_session": 0}),
        ("session_cap", "three"),
        ("weather_rule", {"allowed_days": ["monday"]}),
    ])
    def test_mismatched_payloads_raise(self, rule_type, parameters):
        with pytest.raises(InvalidRuleShape) as exc_info:
            parse_rule_payload("rule-x", rule_type, parameters)

        assert exc_info.value.rule_id == "rule-x"
        assert exc_info.value.declared_type == rule_type

    def test_empty_allowed_days_is_valid(self):
        assert parse_rule_payload("r", "time_window", {"allowed_days": []}).allowed_days == []


class TestRuleRows:

    def test_parses_row(self):
        rule = parse_rule_row(rule_row("time_window", {"allowed_days": ["monday"]}))

        assert rule.id == "rule-1"
        assert rule.status == RuleStatus.ACTIVE
        assert rule.rule_type == "time_window"

    def test_invalid_status_raises(self):
        with pytest.raises(InvalidRuleShape):
            parse_rule_row(rule_row("time_window", {"allowed_days": ["monday"]}, status="archived"))

    def test_malformed_rule_is_loaded_as_unevaluable(self):
        rule = load_rule_row(rule_row("time_window", {"days": ["monday"]}))

        assert isinstance(rule.payload, UnevaluableRule)
        assert rule.payload.declared_type == "time_window"
        assert "allowed_days" in rule.payload.problem
        assert rule.rule_type == "time_window"
        assert rule.status == RuleStatus.ACTIVE


class TestSettingsRows:

    def test_missing_row_is_unset(self):
        settings = parse_settings_row(None)

        assert settings.max_active_interventions is None
        assert settings.max_reminders is None

    def test_values(self):
        settings = parse_settings_row({"max_active_interventions": 5, "max_reminders": 0})

        assert (settings.max_active_interventions, settings.max_reminders) == (5, 0)


# =============================================================================
# Accessors
# =============================================================================

class TestInMemoryRegistry:

    def test_snapshot_contains_only_the_users_live_records(self):
        registry = make_registry(
            [make_intervention("A1"), make_intervention("X1", deleted=True)],
            rules=[time_window("tw", ["monday"]), time_window("off", ["monday"], status=RuleStatus.PAUSED)],
            safe_mode_enabled=True,
        )

        snapshot = load_snapshot(registry, USER_ID)

        assert [item.id for item in snapshot.interventions] == ["A1"]
        assert [rule.id for rule in snapshot.rules] == ["tw"]
        assert snapshot.safe_mode_enabled is True

    def test_unavailable_raises(self):
        registry = make_registry()
        registry.unavailable = True

        with pytest.raises(DataUnavailable):
            load_snapshot(registry, USER_ID)


@pytest.fixture
def patched_database(monkeypatch):
    """Replace the query functions SupabaseRegistry calls with canned rows."""
    state = {
        "interventions": [intervention_row()],
        "rules": [],
        "settings": None,
        "safe_mode": False,
        "updates": [],
    }
    monkeypatch.setattr(registry_module.database, "fetch_interventions", lambda user_id: state["interventions"])
    monkeypatch.setattr(registry_module.database, "fetch_active_governance_rules", lambda user_id: state["rules"])
    monkeypatch.setattr(registry_module.database, "fetch_governance_settings", lambda user_id: state["settings"])
    monkeypatch.setattr(registry_module.database, "fetch_safe_mode_enabled", lambda user_id: state["safe_mode"])

    def fake_update(user_id, ids, status):
        state["updates"].append((user_id, list(ids), status))
        return len(ids)

    monkeypatch.setattr(registry_module.database, "update_intervention_statuses", fake_update)
    return state


class TestSupabaseRegistry:

    def test_reads_rows(self, patched_database):
        patched_database["rules"] = [
            rule_row("time_window", {"allowed_days": ["wednesday"]}),
            rule_row("session_cap", {"max_per_session": "lots"}, id="rule-2"),
        ]
        patched_database["settings"] = {"max_active_interventions": 1, "max_reminders": None}

        snapshot = load_snapshot(SupabaseRegistry(), USER_ID)

        assert [item.id for item in snapshot.interventions] == ["int-1"]
        assert isinstance(snapshot.rules[0].payload, TimeWindowRule)
        assert isinstance(snapshot.rules[1].payload, UnevaluableRule)
        assert snapshot.settings.max_active_interventions == 1

    def test_malformed_intervention_row_is_unavailable(self, patched_database):
        patched_database["interventions"] = [intervention_row(intervention_key="mystery")]

        with pytest.raises(DataUnavailable):
            SupabaseRegistry().list_interventions(USER_ID)

    def test_unreadable_settings_are_unset(self, patched_database):
        patched_database["settings"] = {"max_active_interventions": -3}

        settings = SupabaseRegistry().get_governance_settings(USER_ID)

        assert settings.max_active_interventions is None

    def test_status_write_passes_value(self, patched_database):
        updated = SupabaseRegistry().set_intervention_status(USER_ID, ["int-1"], InterventionStatus.PAUSED)

        assert updated == 1
        assert patched_database["updates"] == [(USER_ID, ["int-1"], "paused")]


# =============================================================================
# Query functions
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable stand-in for the supabase query builder."""

    def __init__(self, data, calls, error=None):
        self._data = data
        self._calls = calls
        self._error = error

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self._calls.append((name, args))
            return self
        return method

    def execute(self):
        if self._error:
            raise self._error
        return FakeResponse(self._data)


class FakeClient:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.calls = []

    def table(self, name):
        self.calls.append(("table", (name,)))
        return FakeQuery(self.data, self.calls, self.error)


class TestDatabaseQueries:

    def test_fetch_interventions_filters_user_and_deleted(self, monkeypatch):
        client = FakeClient(data=[intervention_row()])
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: client)

        rows = database.fetch_interventions(USER_ID)

        assert rows == [intervention_row()]
        assert ("table", (database.INTERVENTIONS_TABLE,)) in client.calls
        assert ("eq", ("user_id", USER_ID)) in client.calls
        assert ("is_", ("deleted_at", "null")) in client.calls

    def test_query_failure_raises_data_unavailable(self, monkeypatch):
        client = FakeClient(error=RuntimeError("connection reset"))
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: client)

        with pytest.raises(DataUnavailable):
            database.fetch_active_governance_rules(USER_ID)

    def test_missing_profile_means_safe_mode_off(self, monkeypatch):
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: FakeClient(data=[]))

        assert database.fetch_safe_mode_enabled(USER_ID) is False

    def test_profile_flag(self, monkeypatch):
        client = FakeClient(data=[{"safe_mode_enabled": True}])
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: client)

        assert database.fetch_safe_mode_enabled(USER_ID) is True
        assert ("table", (database.PROFILES_TABLE,)) in client.calls

    def test_update_never_writes_deleted_at(self, monkeypatch):
        client = FakeClient(data=[{"id": "int-1"}, {"id": "int-2"}])
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: client)

        updated = database.update_intervention_statuses(USER_ID, ["int-1", "int-2"], "paused")

        assert updated == 2
        update_call = next(args for name, args in client.calls if name == "update")
        assert update_call[0]["status"] == "paused"
        assert "paused_at" in update_call[0]
        assert "deleted_at" not in update_call[0]
        assert ("in_", ("id", ["int-1", "int-2"])) in client.calls

    def test_update_with_no_ids_skips_the_query(self, monkeypatch):
        client = FakeClient(data=[])
        monkeypatch.setattr(database, "get_supabase_client", lambda service=True: client)

        assert database.update_intervention_statuses(USER_ID, [], "paused") == 0
        assert client.calls == []
