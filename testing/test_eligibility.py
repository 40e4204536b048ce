"""
Unit Tests: Eligibility Computation and Deterministic Selection

Covers safe mode dominance, status exclusivity, governance rules, candidate
filtering and the earliest-created winner.

Run with: pytest testing/test_eligibility.py -v
"""

from governance_fixtures import (
    WEDNESDAY,
    context_exclusion,
    make_intervention,
    make_snapshot,
    session_cap,
    time_window,
)
from governance.eligibility import compute_for_context
from governance.models import (
    Context,
    GovernanceSettings,
    InterventionKind,
    InterventionStatus,
)
from governance.safe_mode import SAFE_MODE_REASON, is_blocking
from governance.selector import select_winner


def ids(interventions):
    return [item.id for item in interventions]


def blocked_pairs(result):
    return [(entry.intervention.id, entry.blocking_reason) for entry in result.blocked]


# =============================================================================
# Scenarios
# =============================================================================

class TestScenarios:

    def test_scenario_a_two_reminders_earliest_shows_first(self):
        r1 = make_intervention("R1", created_offset_minutes=0)
        r2 = make_intervention("R2", created_offset_minutes=60)
        snapshot = make_snapshot([r2, r1])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert ids(result.eligible) == ["R1", "R2"]
        assert result.blocked == []
        assert select_winner(result.eligible) == "R1"

    def test_scenario_b_safe_mode_blocks_both(self):
        r1 = make_intervention("R1", created_offset_minutes=0)
        r2 = make_intervention("R2", created_offset_minutes=60)
        snapshot = make_snapshot([r1, r2], safe_mode_enabled=True)

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert result.eligible == []
        assert blocked_pairs(result) == [("R1", SAFE_MODE_REASON), ("R2", SAFE_MODE_REASON)]

    def test_scenario_c_context_exclusion(self):
        focus = make_intervention("F1", kind=InterventionKind.FOCUS_MODE_SUPPRESSION)
        reminder = make_intervention("R1", created_offset_minutes=5)
        rule = context_exclusion("ce-1", ["focus_mode_started"])
        snapshot = make_snapshot([focus, reminder], rules=[rule])

        focus_result = compute_for_context(snapshot, Context.FOCUS_MODE_STARTED, WEDNESDAY)
        project_result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert focus_result.eligible == []
        assert len(focus_result.blocked) == 1
        reason = focus_result.blocked[0].blocking_reason
        assert "excluded" in reason
        assert "Focus Mode started" in reason
        # The exclusion only covers focus mode
        assert ids(project_result.eligible) == ["R1"]

    def test_scenario_d_time_window_blocks_on_wednesday(self):
        r1 = make_intervention("R1")
        rule = time_window("tw-1", ["monday"])
        snapshot = make_snapshot([r1], rules=[rule])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert result.eligible == []
        assert blocked_pairs(result) == [("R1", "allowed only on: Monday")]


# =============================================================================
# Properties
# =============================================================================

class TestSafeModeDominance:

    def test_no_context_has_anything_eligible(self):
        interventions = [
            make_intervention(f"I{index}", kind=kind, created_offset_minutes=index)
            for index, kind in enumerate(InterventionKind)
        ]
        snapshot = make_snapshot(interventions, rules=[time_window("tw", [])], safe_mode_enabled=True)

        for context in Context:
            result = compute_for_context(snapshot, context, WEDNESDAY)
            assert result.eligible == []
            assert all(entry.blocking_reason == SAFE_MODE_REASON for entry in result.blocked)

    def test_safe_mode_reason_is_never_combined(self):
        paused = make_intervention("P1", status=InterventionStatus.PAUSED)
        snapshot = make_snapshot([paused], rules=[time_window("tw", [])], safe_mode_enabled=True)

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert blocked_pairs(result) == [("P1", SAFE_MODE_REASON)]

    def test_gate(self):
        assert is_blocking(True) is True
        assert is_blocking(False) is False


class TestStatusExclusivity:

    def test_paused_and_disabled_are_never_eligible(self):
        active = make_intervention("A1")
        paused = make_intervention("P1", status=InterventionStatus.PAUSED, created_offset_minutes=1)
        disabled = make_intervention("D1", status=InterventionStatus.DISABLED, created_offset_minutes=2)
        snapshot = make_snapshot([active, paused, disabled])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert ids(result.eligible) == ["A1"]
        assert blocked_pairs(result) == [("P1", "paused"), ("D1", "disabled")]

    def test_status_reason_comes_before_rule_reason(self):
        paused = make_intervention("P1", status=InterventionStatus.PAUSED)
        snapshot = make_snapshot([paused], rules=[time_window("tw", ["monday"])])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert blocked_pairs(result) == [("P1", "paused")]


class TestCandidateFiltering:

    def test_other_contexts_manual_only_and_deleted_are_omitted(self):
        reminder = make_intervention("R1")
        prompt = make_intervention("C1", kind=InterventionKind.CONTEXT_AWARE_PROMPT)
        manual_kind = make_intervention("M1", kind=InterventionKind.SIMPLIFIED_VIEW_MODE)
        opted_out = make_intervention("O1", allow_contextual_trigger=False)
        deleted = make_intervention("X1", deleted=True)
        snapshot = make_snapshot([reminder, prompt, manual_kind, opted_out, deleted])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert ids(result.eligible) == ["R1"]
        assert result.blocked == []

    def test_empty_registry_gives_empty_result(self):
        result = compute_for_context(make_snapshot(), Context.TASK_CREATED, WEDNESDAY)

        assert result.context == Context.TASK_CREATED
        assert result.eligible == []
        assert result.blocked == []


class TestAdvisoryLimits:

    def test_soft_limits_never_reduce_eligibility(self):
        interventions = [make_intervention(f"R{index}", created_offset_minutes=index) for index in range(3)]
        settings = GovernanceSettings(max_active_interventions=0, max_reminders=0)

        limited = compute_for_context(make_snapshot(interventions, settings=settings), Context.PROJECT_OPENED, WEDNESDAY)
        unlimited = compute_for_context(make_snapshot(interventions), Context.PROJECT_OPENED, WEDNESDAY)

        assert ids(limited.eligible) == ["R0", "R1", "R2"]
        assert limited == unlimited

    def test_session_cap_does_not_gate(self):
        interventions = [make_intervention(f"R{index}", created_offset_minutes=index) for index in range(3)]
        snapshot = make_snapshot(interventions, rules=[session_cap("sc", 1)])

        result = compute_for_context(snapshot, Context.PROJECT_OPENED, WEDNESDAY)

        assert len(result.eligible) == 3


class TestSelector:

    def test_empty_has_no_winner(self):
        assert select_winner([]) is None

    def test_identical_timestamps_break_ties_by_id(self):
        b = make_intervention("b-id")
        a = make_intervention("a-id")

        assert select_winner([b, a]) == "a-id"

    def test_earliest_created_wins_regardless_of_id(self):
        older = make_intervention("zzz", created_offset_minutes=0)
        newer = make_intervention("aaa", created_offset_minutes=1)

        assert select_winner([newer, older]) == "zzz"
