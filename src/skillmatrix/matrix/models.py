"""
Value types of the skills matrix.

Everything here is immutable once built: dataclasses are frozen, mappings are
``MappingProxyType`` views and collections are tuples or frozensets. A Matrix
can therefore be shared between threads without locking.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class SkillRelation:
    """Soft relation to another skill, with the text shown to the user."""

    skill_id: str
    reason: str = ""


@dataclass(frozen=True)
class Skill:
    """A selectable unit of the stack catalog."""

    id: str
    name: str
    category: str
    subcategory: str
    description: str = ""
    author: str = ""
    aliases: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    conflicts_with: tuple[str, ...] = ()
    # Each group is satisfied by any one of its members.
    enabled_when: tuple[tuple[str, ...], ...] = ()
    recommends: tuple[SkillRelation, ...] = ()
    discourages: tuple[SkillRelation, ...] = ()
    alternatives: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    def recommend_reason(self, skill_id: str) -> str | None:
        return _relation_reason(self.recommends, skill_id)

    def discourage_reason(self, skill_id: str) -> str | None:
        return _relation_reason(self.discourages, skill_id)


def _relation_reason(relations: tuple[SkillRelation, ...], skill_id: str) -> str | None:
    for relation in relations:
        if relation.skill_id == skill_id:
            return relation.reason
    return None


@dataclass(frozen=True)
class Subcategory:
    """Grouping node below a category. Skills always live in a subcategory."""

    id: str
    name: str
    category: str
    description: str = ""
    exclusive: bool = False
    required: bool = False


@dataclass(frozen=True)
class Category:
    """Top-level grouping node. ``subcategories`` keeps presentation order."""

    id: str
    name: str
    description: str = ""
    subcategories: tuple[str, ...] = ()


@dataclass(frozen=True)
class SuggestedStack:
    """Pre-built selection for a use case, with skill references resolved."""

    id: str
    name: str
    description: str = ""
    audience: tuple[str, ...] = ()
    philosophy: str = ""
    # {category: {subcategory: skill_id}}
    skills: Mapping[str, Mapping[str, str]] = field(default_factory=_empty_mapping)

    @property
    def skill_ids(self) -> list[str]:
        return [
            skill_id
            for subcategories in self.skills.values()
            for skill_id in subcategories.values()
        ]


@dataclass(frozen=True)
class Matrix:
    """The fully loaded, validated catalog.

    Built once by ``load_matrix`` and never mutated afterwards. Every resolver
    function takes it as an explicit argument.
    """

    version: str
    skills: Mapping[str, Skill]
    aliases: Mapping[str, str]
    categories: Mapping[str, Category]
    subcategories: Mapping[str, Subcategory]
    # Effective symmetric conflict sets, keyed by skill id.
    conflicts: Mapping[str, frozenset[str]]
    # Reason per unordered conflicting pair.
    conflict_reasons: Mapping[frozenset[str], str]
    skills_by_subcategory: Mapping[str, tuple[str, ...]]
    stacks: Mapping[str, SuggestedStack] = field(default_factory=_empty_mapping)
    dependents: Mapping[str, tuple[str, ...]] = field(default_factory=_empty_mapping)

    @property
    def category_order(self) -> tuple[str, ...]:
        return tuple(self.categories)

    def conflicts_of(self, skill_id: str) -> frozenset[str]:
        return self.conflicts.get(skill_id, frozenset())

    def in_conflict(self, a: str, b: str) -> bool:
        return b in self.conflicts_of(a)

    def conflict_reason(self, a: str, b: str) -> str:
        return self.conflict_reasons.get(frozenset((a, b)), "")

    def required_by(self, skill_id: str) -> tuple[str, ...]:
        """Skills that list ``skill_id`` in their ``requires``."""
        return self.dependents.get(skill_id, ())


# ── Resolver results ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class SkillOption:
    """A skill as presented for one subcategory against one selection."""

    skill: Skill
    selected: bool
    disabled: bool
    disabled_reason: str | None = None
    recommended: bool = False
    recommended_reason: str | None = None
    discouraged: bool = False
    discouraged_reason: str | None = None
    conflicts: tuple[str, ...] = ()
    alternatives: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.skill.id


@dataclass(frozen=True)
class MissingRequirement:
    skill: str
    missing: str

    @property
    def message(self) -> str:
        return f"{self.skill} requires {self.missing}"


@dataclass(frozen=True)
class ConflictingSkills:
    a: str
    b: str
    reason: str = ""

    @property
    def message(self) -> str:
        suffix = f": {self.reason}" if self.reason else ""
        return f"{self.a} conflicts with {self.b}{suffix}"


@dataclass(frozen=True)
class UnmetCondition:
    """No member of one ``enabled_when`` group is selected."""

    skill: str
    options: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"{self.skill} requires one of: {', '.join(self.options)}"


@dataclass(frozen=True)
class ExclusiveViolation:
    subcategory: str
    skills: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"Subcategory '{self.subcategory}' allows one selection, "
            f"got: {', '.join(self.skills)}"
        )


@dataclass(frozen=True)
class UnknownSkill:
    skill: str

    @property
    def message(self) -> str:
        return f"Unknown skill '{self.skill}'"


ValidationError = (
    MissingRequirement | ConflictingSkills | UnmetCondition | ExclusiveViolation | UnknownSkill
)


@dataclass(frozen=True)
class MissingRecommendation:
    skill: str
    recommended: str
    reason: str = ""

    @property
    def message(self) -> str:
        suffix = f": {self.reason}" if self.reason else ""
        return f"{self.skill} recommends {self.recommended}{suffix}"


@dataclass(frozen=True)
class DiscouragedCombination:
    a: str
    b: str
    reason: str = ""

    @property
    def message(self) -> str:
        suffix = f": {self.reason}" if self.reason else ""
        return f"{self.a} is not recommended with {self.b}{suffix}"


ValidationWarning = MissingRecommendation | DiscouragedCombination


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[ValidationError, ...] = ()
    warnings: tuple[ValidationWarning, ...] = ()

    def to_dict(self) -> dict:
        """Plain-data form, used for ``--json`` output."""
        return {
            "valid": self.valid,
            "errors": [_issue_dict(e) for e in self.errors],
            "warnings": [_issue_dict(w) for w in self.warnings],
        }


def _issue_dict(issue) -> dict:
    data = {"type": type(issue).__name__}
    for key, value in vars(issue).items():
        data[key] = list(value) if isinstance(value, tuple) else value
    data["message"] = issue.message
    return data
