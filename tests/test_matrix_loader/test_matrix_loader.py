"""
Tests for the catalog loader.

Covers:
- load_matrix: normalization, ordering, aliases, relationship rules
- Multi-source merge: wholesale skill replacement, subcategory append, stacks
- Integrity: unknown references, duplicate aliases, require/conflict overlap,
  category membership, malformed documents
- resolve_alias
"""

import dataclasses
from typing import Any

import pytest

from skillmatrix.matrix import (
    CatalogFormatError,
    DuplicateAliasError,
    RequireConflictOverlapError,
    UnassignedCategoryError,
    UnknownReferenceError,
    SuggestedStack,
    ViolationKind,
    load_matrix,
    resolve_alias,
)


def _find(catalog: dict[str, Any], skill_id: str) -> dict[str, Any]:
    return next(s for s in catalog["skills"] if s["id"] == skill_id)


# ── Tests: normalization ─────────────────────────────────────────────────


class TestLoadMatrix:
    def test_category_order_preserved(self, matrix):
        assert list(matrix.categories) == ["frontend", "backend", "tooling"]

    def test_subcategory_order_preserved(self, matrix):
        assert matrix.categories["frontend"].subcategories == (
            "framework",
            "styling",
            "client-state",
            "server-state",
        )

    def test_subcategory_shorthand_and_flags(self, matrix):
        framework = matrix.subcategories["framework"]
        assert framework.exclusive is True
        assert framework.required is True
        assert framework.category == "frontend"
        styling = matrix.subcategories["styling"]
        assert styling.name == "Styling"
        assert styling.exclusive is False

    def test_skills_grouped_in_source_order(self, matrix):
        assert matrix.skills_by_subcategory["styling"] == ("tailwind", "scss-modules", "shadcn-ui")
        assert matrix.skills_by_subcategory["framework"] == ("react", "vue")

    def test_stack_defaults_to_no_skills(self):
        stack = SuggestedStack(id="empty", name="Empty")
        assert dict(stack.skills) == {}
        assert stack.skill_ids == []

    def test_display_name_fallback(self, matrix):
        assert matrix.skills["playwright"].name == "Playwright"
        assert matrix.categories["tooling"].name == "Tooling"
        assert matrix.subcategories["client-state"].name == "Client State"

    def test_version(self, matrix):
        assert matrix.version == "1.0.0"

    def test_alias_table(self, matrix):
        assert matrix.aliases["react-js"] == "react"
        assert matrix.aliases["rq"] == "react-query"
        assert matrix.aliases["tanstack-query"] == "react-query"

    def test_skill_lists_all_its_aliases(self, matrix):
        assert set(matrix.skills["react-query"].aliases) == {"rq", "tanstack-query"}

    def test_conflicts_are_symmetric(self, matrix):
        assert matrix.conflicts_of("react") == frozenset({"vue"})
        assert matrix.conflicts_of("vue") == frozenset({"react"})
        assert matrix.in_conflict("prisma", "drizzle")
        assert matrix.in_conflict("drizzle", "prisma")

    def test_declared_conflicts_kept_per_skill(self, matrix):
        assert matrix.skills["react"].conflicts_with == ("vue",)
        assert matrix.skills["vue"].conflicts_with == ()

    def test_conflict_reason_from_rule(self, matrix):
        assert matrix.conflict_reason("prisma", "drizzle") == "Pick a single ORM"
        assert matrix.conflict_reason("react", "vue") == ""

    def test_required_by(self, matrix):
        assert matrix.required_by("react") == ("shadcn-ui", "zustand", "react-query")
        assert matrix.required_by("hono") == ()

    def test_camel_case_keys_accepted(self, catalog):
        vue = _find(catalog, "vue")
        vue["conflictsWith"] = ["hono"]
        vue["enabledWhen"] = [["drizzle", "prisma"]]
        matrix = load_matrix([catalog])
        assert matrix.in_conflict("hono", "vue")
        assert matrix.skills["vue"].enabled_when == (("drizzle", "prisma"),)

    def test_matrix_is_read_only(self, matrix):
        with pytest.raises(TypeError):
            matrix.skills["new"] = matrix.skills["react"]
        with pytest.raises(dataclasses.FrozenInstanceError):
            matrix.skills["react"].name = "Preact"

    def test_no_sources_fails(self):
        with pytest.raises(CatalogFormatError):
            load_matrix([])


# ── Tests: relationship rules ────────────────────────────────────────────


class TestRelationshipRules:
    def test_needs_any_becomes_group(self, matrix):
        assert matrix.skills["vitest"].enabled_when == (("react", "vue"),)
        assert matrix.skills["vitest"].requires == ()

    def test_needs_all_extends_requires(self, catalog):
        catalog["relationships"]["requires"].append(
            {"skill": "zustand", "needs": ["tailwind"]}
        )
        matrix = load_matrix([catalog])
        assert matrix.skills["zustand"].requires == ("react", "tailwind")

    def test_recommend_rule_resolves_aliases(self, matrix):
        react = matrix.skills["react"]
        assert [r.skill_id for r in react.recommends] == ["zustand", "react-query"]
        assert react.recommend_reason("react-query") == "Works well with React"
        assert react.recommend_reason("vue") is None

    def test_discourage_rule_is_symmetric(self, matrix):
        reason = "Mixing CSS paradigms is unusual"
        assert matrix.skills["tailwind"].discourage_reason("scss-modules") == reason
        assert matrix.skills["scss-modules"].discourage_reason("tailwind") == reason

    def test_skill_level_discourages(self, catalog):
        _find(catalog, "express")["discourages"] = ["prisma"]
        matrix = load_matrix([catalog])
        assert matrix.skills["express"].discourage_reason("prisma") == ""
        assert matrix.skills["prisma"].discourage_reason("express") is None

    def test_alternatives(self, matrix):
        assert matrix.skills["drizzle"].alternatives == ("prisma",)
        assert matrix.skills["prisma"].alternatives == ("drizzle",)

    def test_conflict_rule_group_of_three(self, catalog):
        catalog["relationships"]["conflicts"].append(
            {"skills": ["hono", "express", "playwright"], "reason": "demo"}
        )
        matrix = load_matrix([catalog])
        assert matrix.conflicts_of("express") == frozenset({"hono", "playwright"})


# ── Tests: multi-source merge ────────────────────────────────────────────


class TestMerge:
    def test_later_skill_replaces_whole_record(self, catalog):
        override = {
            "skills": [
                {
                    "id": "shadcn-ui",
                    "category": "frontend",
                    "subcategory": "styling",
                    "requires": ["react"],
                }
            ]
        }
        matrix = load_matrix([catalog, override])
        shadcn = matrix.skills["shadcn-ui"]
        assert shadcn.requires == ("react",)
        # Name is not carried over from the first definition
        assert shadcn.name == "Shadcn Ui"

    def test_replaced_skill_keeps_position(self, catalog):
        override = {"skills": [{"id": "tailwind", "subcategory": "styling", "name": "TW"}]}
        matrix = load_matrix([catalog, override])
        assert matrix.skills_by_subcategory["styling"] == ("tailwind", "scss-modules", "shadcn-ui")
        assert matrix.skills["tailwind"].name == "TW"

    def test_replacement_releases_old_aliases(self, catalog):
        override = {
            "skills": [
                {"id": "react-query", "subcategory": "server-state", "aliases": ["tq"]},
                {"id": "swr", "subcategory": "server-state", "aliases": ["rq"]},
            ]
        }
        matrix = load_matrix([catalog, override])
        assert resolve_alias(matrix, "tq") == "react-query"
        assert resolve_alias(matrix, "rq") == "swr"

    def test_alias_moves_to_earlier_listed_skill(self, catalog):
        override = {
            "skills": [
                {"id": "vue", "subcategory": "framework", "aliases": ["react-js"]},
                {"id": "react", "subcategory": "framework"},
            ]
        }
        matrix = load_matrix([catalog, override])
        assert resolve_alias(matrix, "react-js") == "vue"
        assert matrix.skills["vue"].aliases == ("react-js",)
        assert matrix.skills["react"].aliases == ()

    def test_alias_still_claimed_by_unchanged_skill(self, catalog):
        override = {"skills": [{"id": "vue", "subcategory": "framework", "aliases": ["react-js"]}]}
        with pytest.raises(DuplicateAliasError):
            load_matrix([catalog, override])

    def test_later_source_appends_subcategories(self, catalog):
        extension = {
            "categories": [
                {"id": "frontend", "name": "Renamed", "subcategories": ["routing", "framework"]},
                {"id": "mobile", "subcategories": ["native"]},
            ]
        }
        matrix = load_matrix([catalog, extension])
        assert matrix.categories["frontend"].subcategories == (
            "framework",
            "styling",
            "client-state",
            "server-state",
            "routing",
        )
        assert matrix.categories["frontend"].name == "Frontend"
        assert list(matrix.categories)[-1] == "mobile"
        assert matrix.skills_by_subcategory["routing"] == ()

    def test_subcategory_cannot_move_category(self, catalog):
        extension = {"categories": [{"id": "backend", "subcategories": ["styling"]}]}
        with pytest.raises(CatalogFormatError, match="styling"):
            load_matrix([catalog, extension])

    def test_relationships_accumulate(self, catalog):
        extension = {"relationships": {"conflicts": [{"skills": ["hono", "express"]}]}}
        matrix = load_matrix([catalog, extension])
        assert matrix.in_conflict("hono", "express")
        assert matrix.in_conflict("drizzle", "prisma")

    def test_stack_replaced_by_id(self, catalog):
        extension = {
            "suggested_stacks": [
                {"id": "modern-react", "name": "Lean", "skills": {"frontend": {"framework": "vue"}}}
            ]
        }
        matrix = load_matrix([catalog, extension])
        assert matrix.stacks["modern-react"].name == "Lean"
        assert matrix.stacks["modern-react"].skill_ids == ["vue"]

    def test_version_last_source_wins(self, catalog):
        matrix = load_matrix([catalog, {"version": "2.0.0"}])
        assert matrix.version == "2.0.0"


# ── Tests: integrity ─────────────────────────────────────────────────────


class TestIntegrity:
    def test_duplicate_alias_names_both_skills(self, catalog):
        catalog["skills"].append(
            {"id": "preact", "subcategory": "framework", "aliases": ["react-js"]}
        )
        with pytest.raises(DuplicateAliasError) as exc_info:
            load_matrix([catalog])
        err = exc_info.value
        assert err.kind is ViolationKind.DUPLICATE_ALIAS
        assert err.skill_id == "preact"
        assert err.existing_skill_id == "react"
        assert err.reference == "react-js"
        assert "preact" in str(err) and "react" in str(err)

    def test_duplicate_alias_across_sources(self, catalog):
        extension = {"skills": [{"id": "preact", "subcategory": "framework", "aliases": ["rq"]}]}
        with pytest.raises(DuplicateAliasError):
            load_matrix([catalog, extension])

    def test_alias_shadowing_another_id(self, catalog):
        _find(catalog, "vue")["aliases"] = ["react"]
        with pytest.raises(DuplicateAliasError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.skill_id == "vue"

    def test_document_alias_clash(self, catalog):
        catalog["skill_aliases"]["react-js"] = "vue"
        with pytest.raises(DuplicateAliasError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.existing_skill_id == "react"

    def test_unknown_requirement(self, catalog):
        _find(catalog, "zustand")["requires"] = ["reactt"]
        with pytest.raises(UnknownReferenceError) as exc_info:
            load_matrix([catalog])
        err = exc_info.value
        assert err.kind is ViolationKind.UNKNOWN_REFERENCE
        assert err.skill_id == "zustand"
        assert err.reference == "reactt"
        assert err.field_name == "requires"

    def test_unknown_conflict(self, catalog):
        _find(catalog, "vue")["conflicts_with"] = ["angular"]
        with pytest.raises(UnknownReferenceError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.reference == "angular"

    def test_unknown_member_in_rule(self, catalog):
        catalog["relationships"]["conflicts"].append({"skills": ["drizzle", "mongoose"]})
        with pytest.raises(UnknownReferenceError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.skill_id == "drizzle"
        assert exc_info.value.reference == "mongoose"

    def test_unknown_recommend_owner(self, catalog):
        catalog["relationships"]["recommends"].append({"when": "angular", "suggest": ["rq"]})
        with pytest.raises(UnknownReferenceError):
            load_matrix([catalog])

    def test_unknown_document_alias_target(self, catalog):
        catalog["skill_aliases"]["ng"] = "angular"
        with pytest.raises(UnknownReferenceError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.reference == "angular"

    def test_unknown_stack_reference(self, catalog):
        catalog["suggested_stacks"][0]["skills"]["backend"]["api"] = "fastify"
        with pytest.raises(UnknownReferenceError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.skill_id == "modern-react"

    def test_require_conflict_overlap(self, catalog):
        _find(catalog, "zustand")["conflicts_with"] = ["react"]
        with pytest.raises(RequireConflictOverlapError) as exc_info:
            load_matrix([catalog])
        err = exc_info.value
        assert err.kind is ViolationKind.REQUIRE_CONFLICT_OVERLAP
        assert err.skill_id == "zustand"
        assert err.reference == "react"

    def test_overlap_through_reverse_declaration(self, catalog):
        catalog["relationships"]["conflicts"].append({"skills": ["drizzle", "better-auth"]})
        with pytest.raises(RequireConflictOverlapError) as exc_info:
            load_matrix([catalog])
        assert exc_info.value.skill_id == "better-auth"

    def test_unknown_subcategory(self, catalog):
        _find(catalog, "hono")["subcategory"] = "runtime"
        with pytest.raises(UnassignedCategoryError) as exc_info:
            load_matrix([catalog])
        err = exc_info.value
        assert err.kind is ViolationKind.UNASSIGNED_CATEGORY
        assert err.skill_id == "hono"
        assert err.reference == "runtime"

    def test_category_mismatch(self, catalog):
        _find(catalog, "hono")["category"] = "frontend"
        with pytest.raises(UnassignedCategoryError):
            load_matrix([catalog])

    def test_missing_subcategory(self, catalog):
        del _find(catalog, "hono")["subcategory"]
        with pytest.raises(UnassignedCategoryError):
            load_matrix([catalog])

    def test_unknown_field_rejected(self, catalog):
        _find(catalog, "hono")["colour"] = "orange"
        with pytest.raises(CatalogFormatError, match="source #1"):
            load_matrix([catalog])

    def test_non_mapping_document(self):
        with pytest.raises(CatalogFormatError):
            load_matrix([["not", "a", "mapping"]])

    def test_empty_enabled_when_group(self, catalog):
        _find(catalog, "hono")["enabled_when"] = [[]]
        with pytest.raises(CatalogFormatError):
            load_matrix([catalog])


# ── Tests: resolve_alias ─────────────────────────────────────────────────


class TestResolveAlias:
    def test_alias(self, matrix):
        assert resolve_alias(matrix, "rq") == "react-query"

    def test_canonical_id(self, matrix):
        assert resolve_alias(matrix, "react-query") == "react-query"

    def test_document_alias(self, matrix):
        assert resolve_alias(matrix, "tanstack-query") == "react-query"

    def test_not_found(self, matrix):
        assert resolve_alias(matrix, "unknown-alias") is None
