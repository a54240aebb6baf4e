"""Placeholder resolution for template task assignments.

Templates declare named placeholders ("Project Lead", "Opening GM") that
tasks reference instead of concrete users or roles. At launch the launcher
supplies an answer per placeholder; unanswered placeholders fall back to the
template's default assignment.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from src.core.models import ProjectTemplate, TaskAssignment


def _union(*groups: Iterable[str]) -> list[str]:
    """Deduplicated union, first-seen order."""
    return list(dict.fromkeys(item for group in groups for item in group))


def placeholder_answers(
    template: ProjectTemplate,
    choices: Mapping[str, TaskAssignment] | None = None,
) -> dict[str, TaskAssignment]:
    """Merge template defaults with explicit launch-time choices (choice wins)."""
    answers = {p.id: p.default_assignment for p in template.defined_placeholders}
    if choices:
        answers.update(choices)
    return answers


def resolve_assignment(
    assignment: TaskAssignment,
    answers: Mapping[str, TaskAssignment],
) -> TaskAssignment:
    """Fold every referenced placeholder's answer into concrete ids.

    The result never carries placeholder ids. A placeholder with no answer
    contributes nothing, so the result may be empty ("Unassigned").
    """
    user_groups: list[Iterable[str]] = [assignment.user_ids]
    role_groups: list[Iterable[str]] = [assignment.role_ids]

    for placeholder_id in assignment.placeholder_ids:
        answer = answers.get(placeholder_id)
        if answer is None:
            continue
        user_groups.append(answer.user_ids)
        role_groups.append(answer.role_ids)

    return TaskAssignment(
        user_ids=_union(*user_groups),
        role_ids=_union(*role_groups),
        placeholder_ids=[],
    )
