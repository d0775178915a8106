"""
Catalog loader -- merges catalog documents into a validated, immutable Matrix.

Merge policy:
- Skills are replaced wholesale when a later source redefines the same id.
- Categories keep the order of the first source that defines them; later
  sources may only append new subcategories.
- Document-level aliases and relationship rules accumulate across sources.
- Suggested stacks are replaced by id.

After merging, a single validation pass enforces referential integrity, alias
uniqueness, require/conflict disjointness and category membership. Loading is
atomic: on the first violation an error is raised and no Matrix is returned.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import structlog
from pydantic import ValidationError

from .errors import (
    CatalogError,
    CatalogFormatError,
    DuplicateAliasError,
    RequireConflictOverlapError,
    UnassignedCategoryError,
    UnknownReferenceError,
)
from .models import (
    Category,
    Matrix,
    Skill,
    SkillRelation,
    Subcategory,
    SuggestedStack,
)
from .schema import CatalogDocument, SkillDefinition

# Silent until configure_logging installs handlers.
logger = structlog.wrap_logger(logging.getLogger(__name__))

__all__ = ["load_matrix", "parse_document", "resolve_alias"]


def parse_document(raw: Mapping[str, Any], source: str | None = None) -> CatalogDocument:
    """Validate the shape of one raw document.

    Raises:
        CatalogFormatError: If the document does not match the catalog schema.
    """
    if not isinstance(raw, Mapping):
        raise CatalogFormatError(
            f"catalog document must be a mapping, got {type(raw).__name__}", source
        )
    try:
        return CatalogDocument.model_validate(dict(raw))
    except ValidationError as e:
        raise CatalogFormatError(str(e), source) from e


def load_matrix(sources: Iterable[Mapping[str, Any] | CatalogDocument]) -> Matrix:
    """Merge one or more catalog documents into a validated Matrix.

    Args:
        sources: Parsed documents in precedence order (later wins). Each may be
            a plain mapping or an already validated ``CatalogDocument``.

    Returns:
        Immutable Matrix.

    Raises:
        CatalogFormatError: A document is malformed.
        CatalogIntegrityError: The merged catalog breaks an invariant.
    """
    builder = _MatrixBuilder()
    try:
        count = 0
        for index, source in enumerate(sources):
            document = (
                source
                if isinstance(source, CatalogDocument)
                else parse_document(source, f"source #{index + 1}")
            )
            builder.merge(document)
            count += 1
            logger.debug(
                "matrix.source.merged",
                source=index + 1,
                skills=len(document.skills),
                categories=len(document.categories),
            )
        if count == 0:
            raise CatalogFormatError("at least one catalog source is required")
        matrix = builder.build()
    except CatalogError as e:
        logger.error("matrix.invalid", error=str(e))
        raise

    logger.info(
        "matrix.loaded",
        sources=count,
        skills=len(matrix.skills),
        categories=len(matrix.categories),
        aliases=len(matrix.aliases),
    )
    return matrix


def resolve_alias(matrix: Matrix, name_or_id: str) -> str | None:
    """Return the canonical id for an id or alias, or None when neither matches."""
    if name_or_id in matrix.skills:
        return name_or_id
    return matrix.aliases.get(name_or_id)


def _display_name(identifier: str) -> str:
    """Fallback display name: ``react-query`` -> ``React Query``."""
    return " ".join(word[:1].upper() + word[1:] for word in identifier.split("-"))


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


@dataclass
class _CategoryDraft:
    name: str
    description: str
    subcategories: list[str] = field(default_factory=list)


@dataclass
class _SkillDraft:
    """Mutable relation lists for one skill while rules are being applied."""

    requires: list[str] = field(default_factory=list)
    conflicts_with: list[str] = field(default_factory=list)
    enabled_when: list[tuple[str, ...]] = field(default_factory=list)
    recommends: dict[str, str] = field(default_factory=dict)
    discourages: dict[str, str] = field(default_factory=dict)
    alternatives: list[str] = field(default_factory=list)


class _MatrixBuilder:
    """Accumulates documents, then validates and freezes them into a Matrix."""

    def __init__(self) -> None:
        self.version = ""
        self.categories: dict[str, _CategoryDraft] = {}
        self.subcategories: dict[str, Subcategory] = {}
        self.skills: dict[str, SkillDefinition] = {}
        self.aliases: dict[str, str] = {}
        self.document_aliases: list[tuple[str, str]] = []
        self.conflict_rules: list = []
        self.discourage_rules: list = []
        self.recommend_rules: list = []
        self.require_rules: list = []
        self.alternative_groups: list = []
        self.stacks: dict = {}

    # ── Merge ────────────────────────────────────────────────────────────

    def merge(self, document: CatalogDocument) -> None:
        if document.version:
            self.version = document.version

        for category in document.categories:
            draft = self.categories.get(category.id)
            if draft is None:
                draft = _CategoryDraft(
                    name=category.name or _display_name(category.id),
                    description=category.description,
                )
                self.categories[category.id] = draft
            for sub in category.subcategories:
                existing = self.subcategories.get(sub.id)
                if existing is not None:
                    if existing.category != category.id:
                        raise CatalogFormatError(
                            f"subcategory '{sub.id}' is listed under both "
                            f"'{existing.category}' and '{category.id}'"
                        )
                    continue
                self.subcategories[sub.id] = Subcategory(
                    id=sub.id,
                    name=sub.name or _display_name(sub.id),
                    category=category.id,
                    description=sub.description,
                    exclusive=sub.exclusive,
                    required=sub.required,
                )
                draft.subcategories.append(sub.id)

        # Release every alias of a redefined skill before any new claims.
        for skill in document.skills:
            previous = self.skills.get(skill.id)
            if previous is not None:
                for alias in previous.aliases:
                    if self.aliases.get(alias) == skill.id:
                        del self.aliases[alias]

        for skill in document.skills:
            for alias in skill.aliases:
                owner = self.aliases.get(alias)
                if owner is not None and owner != skill.id:
                    raise DuplicateAliasError(skill.id, alias, owner)
                self.aliases[alias] = skill.id
            self.skills[skill.id] = skill

        self.document_aliases.extend(document.aliases.items())

        rels = document.relationships
        self.conflict_rules.extend(rels.conflicts)
        self.discourage_rules.extend(rels.discourages)
        self.recommend_rules.extend(rels.recommends)
        self.require_rules.extend(rels.requires)
        self.alternative_groups.extend(rels.alternatives)

        for stack in document.suggested_stacks:
            self.stacks[stack.id] = stack

    # ── Validate + freeze ────────────────────────────────────────────────

    def build(self) -> Matrix:
        aliases = self._final_aliases()

        def resolve(owner: str, reference: str, field_name: str) -> str:
            if reference in self.skills:
                return reference
            if reference in aliases:
                return aliases[reference]
            raise UnknownReferenceError(owner, reference, field_name)

        drafts = {skill_id: _SkillDraft() for skill_id in self.skills}

        for skill_id, definition in self.skills.items():
            self._check_category(definition)
            draft = drafts[skill_id]
            draft.requires.extend(
                resolve(skill_id, ref, "requires") for ref in definition.requires
            )
            draft.conflicts_with.extend(
                resolve(skill_id, ref, "conflicts_with") for ref in definition.conflicts_with
            )
            draft.enabled_when.extend(
                tuple(_unique(resolve(skill_id, ref, "enabled_when") for ref in group))
                for group in definition.enabled_when
            )
            for ref in definition.recommends:
                draft.recommends.setdefault(resolve(skill_id, ref, "recommends"), "")
            for ref in definition.discourages:
                draft.discourages.setdefault(resolve(skill_id, ref, "discourages"), "")

        conflict_reasons: dict[frozenset[str], str] = {}
        for rule in self.conflict_rules:
            members = self._resolve_group(rule.skills, resolve, "relationships.conflicts")
            for a in members:
                drafts[a].conflicts_with.extend(b for b in members if b != a)
            for i, a in enumerate(members):
                for b in members[i + 1:]:
                    if rule.reason:
                        conflict_reasons.setdefault(frozenset((a, b)), rule.reason)

        for rule in self.discourage_rules:
            members = self._resolve_group(rule.skills, resolve, "relationships.discourages")
            for a in members:
                for b in members:
                    if b != a:
                        drafts[a].discourages.setdefault(b, rule.reason)

        for rule in self.recommend_rules:
            owner = resolve(rule.when, rule.when, "relationships.recommends")
            for ref in rule.suggest:
                target = resolve(owner, ref, "relationships.recommends")
                if target != owner:
                    drafts[owner].recommends.setdefault(target, rule.reason)

        for rule in self.require_rules:
            owner = resolve(rule.skill, rule.skill, "relationships.requires")
            needs = _unique(resolve(owner, ref, "relationships.requires") for ref in rule.needs)
            if rule.needs_any:
                drafts[owner].enabled_when.append(tuple(needs))
            else:
                drafts[owner].requires.extend(needs)

        for group in self.alternative_groups:
            members = self._resolve_group(group.skills, resolve, "relationships.alternatives")
            for a in members:
                drafts[a].alternatives.extend(b for b in members if b != a)

        conflicts: dict[str, set[str]] = {skill_id: set() for skill_id in self.skills}
        for skill_id, draft in drafts.items():
            for other in draft.conflicts_with:
                if other == skill_id:
                    continue
                conflicts[skill_id].add(other)
                conflicts[other].add(skill_id)

        for skill_id, draft in drafts.items():
            for required in draft.requires:
                if required in conflicts[skill_id]:
                    raise RequireConflictOverlapError(skill_id, required)

        stacks = {
            stack_id: self._resolve_stack(stack, resolve)
            for stack_id, stack in self.stacks.items()
        }

        skills = {
            skill_id: self._freeze_skill(definition, drafts[skill_id], aliases)
            for skill_id, definition in self.skills.items()
        }

        dependents: dict[str, list[str]] = {}
        for skill in skills.values():
            for required in skill.requires:
                dependents.setdefault(required, []).append(skill.id)

        by_subcategory: dict[str, list[str]] = {sub_id: [] for sub_id in self.subcategories}
        for skill in skills.values():
            by_subcategory[skill.subcategory].append(skill.id)

        return Matrix(
            version=self.version,
            skills=MappingProxyType(skills),
            aliases=MappingProxyType(aliases),
            categories=MappingProxyType({
                cat_id: Category(
                    id=cat_id,
                    name=draft.name,
                    description=draft.description,
                    subcategories=tuple(draft.subcategories),
                )
                for cat_id, draft in self.categories.items()
            }),
            subcategories=MappingProxyType(dict(self.subcategories)),
            conflicts=MappingProxyType({k: frozenset(v) for k, v in conflicts.items()}),
            conflict_reasons=MappingProxyType(conflict_reasons),
            skills_by_subcategory=MappingProxyType(
                {k: tuple(v) for k, v in by_subcategory.items()}
            ),
            stacks=MappingProxyType(stacks),
            dependents=MappingProxyType({k: tuple(v) for k, v in dependents.items()}),
        )

    def _final_aliases(self) -> dict[str, str]:
        """Skill-level aliases plus document-level ones, checked for uniqueness."""
        aliases = dict(self.aliases)
        for alias, target in self.document_aliases:
            if target in self.skills:
                skill_id = target
            elif target in aliases:
                skill_id = aliases[target]
            else:
                raise UnknownReferenceError(alias, target, "aliases")
            owner = aliases.get(alias)
            if owner is not None and owner != skill_id:
                raise DuplicateAliasError(skill_id, alias, owner)
            aliases[alias] = skill_id

        for alias, skill_id in aliases.items():
            if alias in self.skills and alias != skill_id:
                raise DuplicateAliasError(skill_id, alias, alias)
        return aliases

    def _check_category(self, definition: SkillDefinition) -> None:
        if not definition.subcategory:
            raise UnassignedCategoryError(definition.id, "", "no subcategory assigned")
        subcategory = self.subcategories.get(definition.subcategory)
        if subcategory is None:
            raise UnassignedCategoryError(
                definition.id,
                definition.subcategory,
                f"unknown subcategory '{definition.subcategory}'",
            )
        if definition.category and definition.category != subcategory.category:
            raise UnassignedCategoryError(
                definition.id,
                definition.category,
                f"subcategory '{subcategory.id}' belongs to '{subcategory.category}', "
                f"not '{definition.category}'",
            )

    @staticmethod
    def _resolve_group(refs: list[str], resolve, field_name: str) -> list[str]:
        return _unique(resolve(refs[0], ref, field_name) for ref in refs)

    @staticmethod
    def _resolve_stack(stack, resolve) -> SuggestedStack:
        skills = {
            category: MappingProxyType({
                sub: resolve(stack.id, ref, "suggested_stacks")
                for sub, ref in subcategories.items()
            })
            for category, subcategories in stack.skills.items()
        }
        return SuggestedStack(
            id=stack.id,
            name=stack.name or _display_name(stack.id),
            description=stack.description,
            audience=tuple(stack.audience),
            philosophy=stack.philosophy,
            skills=MappingProxyType(skills),
        )

    def _freeze_skill(
        self, definition: SkillDefinition, draft: _SkillDraft, aliases: dict[str, str]
    ) -> Skill:
        subcategory = self.subcategories[definition.subcategory]
        return Skill(
            id=definition.id,
            name=definition.name or _display_name(definition.id),
            category=subcategory.category,
            subcategory=subcategory.id,
            description=definition.description,
            author=definition.author,
            aliases=tuple(a for a, owner in aliases.items() if owner == definition.id),
            requires=tuple(_unique(draft.requires)),
            conflicts_with=tuple(c for c in _unique(draft.conflicts_with) if c != definition.id),
            enabled_when=tuple(dict.fromkeys(draft.enabled_when)),
            recommends=tuple(SkillRelation(k, v) for k, v in draft.recommends.items()),
            discourages=tuple(SkillRelation(k, v) for k, v in draft.discourages.items()),
            alternatives=tuple(_unique(draft.alternatives)),
            tags=tuple(definition.tags),
        )
