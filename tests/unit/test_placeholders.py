"""Unit tests for placeholder resolution."""

from __future__ import annotations

from src.core.models import DefinedPlaceholder, ProjectTemplate, TaskAssignment
from src.projects.placeholders import placeholder_answers, resolve_assignment


def _template() -> ProjectTemplate:
    return ProjectTemplate(
        id="tpl",
        name="Onboarding",
        defined_placeholders=[
            DefinedPlaceholder(id="ph-hire", name="New Hire"),
            DefinedPlaceholder(
                id="ph-manager",
                name="Hiring Manager",
                default_assignment=TaskAssignment(role_ids=["pos-sm"]),
            ),
        ],
    )


class TestPlaceholderAnswers:
    def test_defaults_used(self) -> None:
        answers = placeholder_answers(_template())
        assert answers["ph-manager"].role_ids == ["pos-sm"]
        assert answers["ph-hire"].is_unassigned

    def test_choice_wins_over_default(self) -> None:
        answers = placeholder_answers(
            _template(), {"ph-manager": TaskAssignment(user_ids=["user-1"])}
        )
        assert answers["ph-manager"].user_ids == ["user-1"]
        assert answers["ph-manager"].role_ids == []


class TestResolveAssignment:
    def test_placeholders_only(self) -> None:
        answers = {
            "ph-a": TaskAssignment(user_ids=["u1"], role_ids=["r1"]),
            "ph-b": TaskAssignment(user_ids=["u2", "u1"]),
        }
        result = resolve_assignment(TaskAssignment(placeholder_ids=["ph-a", "ph-b"]), answers)
        assert result.placeholder_ids == []
        assert set(result.user_ids) == {"u1", "u2"}
        assert set(result.role_ids) == {"r1"}
        assert len(result.user_ids) == 2

    def test_direct_ids_kept(self) -> None:
        answers = {"ph-a": TaskAssignment(role_ids=["r2"])}
        result = resolve_assignment(
            TaskAssignment(user_ids=["u9"], role_ids=["r1"], placeholder_ids=["ph-a"]), answers
        )
        assert result.user_ids == ["u9"]
        assert result.role_ids == ["r1", "r2"]

    def test_missing_answer_contributes_nothing(self) -> None:
        result = resolve_assignment(TaskAssignment(placeholder_ids=["ph-unknown"]), {})
        assert result.is_unassigned

    def test_input_not_mutated(self) -> None:
        original = TaskAssignment(placeholder_ids=["ph-a"])
        resolve_assignment(original, {"ph-a": TaskAssignment(user_ids=["u1"])})
        assert original.placeholder_ids == ["ph-a"]
        assert original.user_ids == []
