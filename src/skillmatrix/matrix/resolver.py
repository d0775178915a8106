"""
Matrix resolver -- pure queries over a (Matrix, selection) pair.

Nothing here holds state between calls or mutates its arguments. A selection
is any sequence of skill ids or aliases owned by the caller; entries are
resolved to canonical ids and de-duplicated (first occurrence wins) before
every check.

Requirements disable proactively; conflicts only ever show up as validation
errors (and as informational ``SkillOption.conflicts``).
"""

import logging
from typing import Sequence

import structlog

from .errors import (
    UnknownCategoryError,
    UnknownSkillError,
    UnknownStackError,
    UnknownSubcategoryError,
)
from .loader import resolve_alias
from .models import (
    ConflictingSkills,
    DiscouragedCombination,
    ExclusiveViolation,
    Matrix,
    MissingRecommendation,
    MissingRequirement,
    Skill,
    SkillOption,
    SuggestedStack,
    UnknownSkill,
    UnmetCondition,
    ValidationResult,
)

logger = structlog.wrap_logger(logging.getLogger(__name__))

Selection = Sequence[str]

__all__ = [
    "disabled_reason",
    "is_disabled",
    "list_available_skills",
    "list_categories",
    "list_skills",
    "list_stacks",
    "list_subcategories",
    "missing_required_subcategories",
    "stack_selection",
    "subcategory_all_disabled",
    "validate_selection",
]


# ── Navigation ───────────────────────────────────────────────────────────


def list_categories(matrix: Matrix) -> list[str]:
    """Top-level category ids in source order."""
    return list(matrix.category_order)


def list_subcategories(matrix: Matrix, category_id: str) -> list[str]:
    """Subcategory ids of a category in source order.

    Raises:
        UnknownCategoryError: If the category does not exist.
    """
    category = matrix.categories.get(category_id)
    if category is None:
        raise UnknownCategoryError(category_id)
    return list(category.subcategories)


def list_skills(matrix: Matrix, subcategory_id: str) -> list[Skill]:
    """Skills of a subcategory in source order, without any selection state."""
    return [matrix.skills[skill_id] for skill_id in _subcategory_skill_ids(matrix, subcategory_id)]


def _subcategory_skill_ids(matrix: Matrix, subcategory_id: str) -> tuple[str, ...]:
    if subcategory_id not in matrix.subcategories:
        raise UnknownSubcategoryError(subcategory_id)
    return matrix.skills_by_subcategory.get(subcategory_id, ())


# ── Selection helpers ────────────────────────────────────────────────────


def _resolve_selection(matrix: Matrix, selection: Selection) -> tuple[list[str], list[str]]:
    """Split a selection into (known canonical ids, unknown entries), both de-duplicated."""
    known: dict[str, None] = {}
    unknown: dict[str, None] = {}
    for entry in selection:
        skill_id = resolve_alias(matrix, entry)
        if skill_id is None:
            unknown.setdefault(entry, None)
        else:
            known.setdefault(skill_id, None)
    return list(known), list(unknown)


def _missing_requirements(skill: Skill, selected: set[str]) -> list[str]:
    return [required for required in skill.requires if required not in selected]


def _unmet_groups(skill: Skill, selected: set[str]) -> list[tuple[str, ...]]:
    return [group for group in skill.enabled_when if not any(s in selected for s in group)]


def _disable_reason(skill: Skill, selected: set[str]) -> str | None:
    parts: list[str] = []
    missing = _missing_requirements(skill, selected)
    if missing:
        parts.append(f"requires {', '.join(missing)}")
    for group in _unmet_groups(skill, selected):
        parts.append(f"requires one of: {', '.join(group)}")
    return "; ".join(parts) if parts else None


# ── Disabled state ───────────────────────────────────────────────────────


def disabled_reason(matrix: Matrix, skill_id: str, selection: Selection) -> str | None:
    """Why a skill cannot be chosen right now, or None if it can.

    A selected skill is never disabled.

    Raises:
        UnknownSkillError: If ``skill_id`` is neither an id nor an alias.
    """
    canonical = resolve_alias(matrix, skill_id)
    if canonical is None:
        raise UnknownSkillError(skill_id)
    known, _ = _resolve_selection(matrix, selection)
    selected = set(known)
    if canonical in selected:
        return None
    return _disable_reason(matrix.skills[canonical], selected)


def is_disabled(matrix: Matrix, skill_id: str, selection: Selection) -> bool:
    """True when the skill is not selected and some prerequisite is missing."""
    return disabled_reason(matrix, skill_id, selection) is not None


def list_available_skills(
    matrix: Matrix, subcategory_id: str, selection: Selection
) -> list[SkillOption]:
    """Skills of a subcategory with their state against ``selection``.

    Raises:
        UnknownSubcategoryError: If the subcategory does not exist.
    """
    skill_ids = _subcategory_skill_ids(matrix, subcategory_id)
    known, _ = _resolve_selection(matrix, selection)
    selected = set(known)

    options: list[SkillOption] = []
    for skill_id in skill_ids:
        skill = matrix.skills[skill_id]
        is_selected = skill_id in selected
        reason = None if is_selected else _disable_reason(skill, selected)
        disabled = reason is not None

        discouraged_reason = None
        if not disabled:
            discouraged_reason = _discourage_reason(matrix, skill, known)
        discouraged = discouraged_reason is not None

        recommended_reason = None
        if not disabled and not discouraged:
            recommended_reason = _recommend_reason(matrix, skill, known)

        options.append(
            SkillOption(
                skill=skill,
                selected=is_selected,
                disabled=disabled,
                disabled_reason=reason,
                recommended=recommended_reason is not None,
                recommended_reason=recommended_reason,
                discouraged=discouraged,
                discouraged_reason=discouraged_reason,
                conflicts=tuple(s for s in known if matrix.in_conflict(skill_id, s)),
                alternatives=skill.alternatives,
            )
        )
    return options


def _discourage_reason(matrix: Matrix, skill: Skill, known: list[str]) -> str | None:
    for other_id in known:
        if other_id == skill.id:
            continue
        reason = skill.discourage_reason(other_id)
        if reason is None:
            reason = matrix.skills[other_id].discourage_reason(skill.id)
        if reason is not None:
            return reason or f"not recommended with {other_id}"
    return None


def _recommend_reason(matrix: Matrix, skill: Skill, known: list[str]) -> str | None:
    for other_id in known:
        other = matrix.skills[other_id]
        reason = other.recommend_reason(skill.id)
        if reason is not None:
            suffix = f"recommended by {other.name}"
            return f"{reason} ({suffix})" if reason else suffix
    return None


def subcategory_all_disabled(
    matrix: Matrix, subcategory_id: str, selection: Selection
) -> tuple[bool, str | None]:
    """Whether every skill of a subcategory is disabled, with the first reason.

    An empty subcategory is not considered disabled.
    """
    options = list_available_skills(matrix, subcategory_id, selection)
    if not options or not all(option.disabled for option in options):
        return False, None
    return True, options[0].disabled_reason


def missing_required_subcategories(matrix: Matrix, selection: Selection) -> list[str]:
    """Required subcategories with no selected skill, in presentation order."""
    known, _ = _resolve_selection(matrix, selection)
    selected = set(known)
    missing: list[str] = []
    for category in matrix.categories.values():
        for sub_id in category.subcategories:
            if not matrix.subcategories[sub_id].required:
                continue
            if not any(s in selected for s in matrix.skills_by_subcategory.get(sub_id, ())):
                missing.append(sub_id)
    return missing


# ── Validation ───────────────────────────────────────────────────────────


def validate_selection(matrix: Matrix, selection: Selection) -> ValidationResult:
    """Check a whole selection and report every problem at once.

    Error order is stable: missing requirements (selection order), conflicting
    pairs (by first member's position), unmet any-of groups, exclusive
    subcategory violations, then unknown entries. Never raises for bad
    selections; problems are returned as values.
    """
    known, unknown = _resolve_selection(matrix, selection)
    selected = set(known)
    errors: list = []
    warnings: list = []

    for skill_id in known:
        for missing in _missing_requirements(matrix.skills[skill_id], selected):
            errors.append(MissingRequirement(skill=skill_id, missing=missing))

    for i, a in enumerate(known):
        for b in known[i + 1:]:
            if matrix.in_conflict(a, b):
                errors.append(ConflictingSkills(a=a, b=b, reason=matrix.conflict_reason(a, b)))

    for skill_id in known:
        for group in _unmet_groups(matrix.skills[skill_id], selected):
            errors.append(UnmetCondition(skill=skill_id, options=group))

    by_subcategory: dict[str, list[str]] = {}
    for skill_id in known:
        by_subcategory.setdefault(matrix.skills[skill_id].subcategory, []).append(skill_id)
    for sub_id, members in by_subcategory.items():
        if len(members) < 2 or not matrix.subcategories[sub_id].exclusive:
            continue
        # Already fully reported as conflicting pairs.
        if all(
            matrix.in_conflict(a, b) for i, a in enumerate(members) for b in members[i + 1:]
        ):
            continue
        errors.append(ExclusiveViolation(subcategory=sub_id, skills=tuple(members)))

    errors.extend(UnknownSkill(skill=entry) for entry in unknown)

    for skill_id in known:
        for relation in matrix.skills[skill_id].recommends:
            target = relation.skill_id
            if target in selected:
                continue
            if any(matrix.in_conflict(target, s) for s in known):
                continue
            warnings.append(
                MissingRecommendation(skill=skill_id, recommended=target, reason=relation.reason)
            )

    for i, a in enumerate(known):
        for b in known[i + 1:]:
            reason = matrix.skills[a].discourage_reason(b)
            if reason is None:
                reason = matrix.skills[b].discourage_reason(a)
            if reason is not None:
                warnings.append(DiscouragedCombination(a=a, b=b, reason=reason))

    logger.debug(
        "selection.validated",
        selected=len(known),
        errors=len(errors),
        warnings=len(warnings),
    )
    return ValidationResult(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


# ── Suggested stacks ─────────────────────────────────────────────────────


def list_stacks(matrix: Matrix) -> list[SuggestedStack]:
    return list(matrix.stacks.values())


def stack_selection(matrix: Matrix, stack_id: str) -> list[str]:
    """Flat list of canonical skill ids of a suggested stack.

    Raises:
        UnknownStackError: If no stack has that id.
    """
    stack = matrix.stacks.get(stack_id)
    if stack is None:
        raise UnknownStackError(stack_id)
    return list(dict.fromkeys(stack.skill_ids))
