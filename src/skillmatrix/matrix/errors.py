"""
Error taxonomy for the skills matrix.

Three families:
1. Catalog errors (load time) -- the static catalog is broken. Fatal, raised once.
2. Query errors -- a caller passed an id the matrix does not know. Programmer error.
3. Validation outcomes -- NOT exceptions. See ``models.ValidationResult``.
"""

from enum import Enum


class ViolationKind(str, Enum):
    """Kind of integrity violation found while loading a catalog."""

    UNKNOWN_REFERENCE = "UnknownReference"
    DUPLICATE_ALIAS = "DuplicateAlias"
    REQUIRE_CONFLICT_OVERLAP = "RequireConflictOverlap"
    UNASSIGNED_CATEGORY = "UnassignedCategory"


class MatrixError(Exception):
    """Base class for every error raised by the matrix package."""


# ── Load time ────────────────────────────────────────────────────────────


class CatalogError(MatrixError):
    """The catalog could not be turned into a matrix."""


class CatalogFormatError(CatalogError):
    """A source document does not have the expected shape."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class CatalogIntegrityError(CatalogError):
    """A merged catalog violates one of the matrix invariants."""

    kind: ViolationKind

    def __init__(self, skill_id: str, reference: str, message: str):
        self.skill_id = skill_id
        self.reference = reference
        super().__init__(f"[{self.kind.value}] {message}")


class UnknownReferenceError(CatalogIntegrityError):
    """An alias, requirement, conflict or rule points at a skill that does not exist."""

    kind = ViolationKind.UNKNOWN_REFERENCE

    def __init__(self, skill_id: str, reference: str, field_name: str):
        self.field_name = field_name
        super().__init__(
            skill_id,
            reference,
            f"Skill '{skill_id}' references unknown skill '{reference}' in {field_name}",
        )


class DuplicateAliasError(CatalogIntegrityError):
    """Two different skills claim the same alias."""

    kind = ViolationKind.DUPLICATE_ALIAS

    def __init__(self, skill_id: str, alias: str, existing_skill_id: str):
        self.existing_skill_id = existing_skill_id
        super().__init__(
            skill_id,
            alias,
            f"Alias '{alias}' of skill '{skill_id}' is already claimed by '{existing_skill_id}'",
        )


class RequireConflictOverlapError(CatalogIntegrityError):
    """A skill both requires and conflicts with the same skill."""

    kind = ViolationKind.REQUIRE_CONFLICT_OVERLAP

    def __init__(self, skill_id: str, reference: str):
        super().__init__(
            skill_id,
            reference,
            f"Skill '{skill_id}' both requires and conflicts with '{reference}'",
        )


class UnassignedCategoryError(CatalogIntegrityError):
    """A skill's (category, subcategory) pair does not exist in the category tree."""

    kind = ViolationKind.UNASSIGNED_CATEGORY

    def __init__(self, skill_id: str, reference: str, detail: str):
        super().__init__(skill_id, reference, f"Skill '{skill_id}': {detail}")


# ── Query time ───────────────────────────────────────────────────────────


class MatrixQueryError(MatrixError, LookupError):
    """A query named an id that does not exist in the matrix."""

    label = "id"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Unknown {self.label} '{identifier}'")


class UnknownCategoryError(MatrixQueryError):
    label = "category"


class UnknownSubcategoryError(MatrixQueryError):
    label = "subcategory"


class UnknownSkillError(MatrixQueryError):
    label = "skill"


class UnknownStackError(MatrixQueryError):
    label = "suggested stack"
