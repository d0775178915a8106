"""
Skills matrix -- catalog loading and selection resolution.

Exports the main components for convenient imports.
"""

from .errors import (
    CatalogError,
    CatalogFormatError,
    CatalogIntegrityError,
    DuplicateAliasError,
    MatrixError,
    MatrixQueryError,
    RequireConflictOverlapError,
    UnassignedCategoryError,
    UnknownCategoryError,
    UnknownReferenceError,
    UnknownSkillError,
    UnknownStackError,
    UnknownSubcategoryError,
    ViolationKind,
)
from .loader import load_matrix, parse_document, resolve_alias
from .models import (
    Category,
    ConflictingSkills,
    DiscouragedCombination,
    ExclusiveViolation,
    Matrix,
    MissingRecommendation,
    MissingRequirement,
    Skill,
    SkillOption,
    SkillRelation,
    Subcategory,
    SuggestedStack,
    UnknownSkill,
    UnmetCondition,
    ValidationResult,
)
from .resolver import (
    disabled_reason,
    is_disabled,
    list_available_skills,
    list_categories,
    list_skills,
    list_stacks,
    list_subcategories,
    missing_required_subcategories,
    stack_selection,
    subcategory_all_disabled,
    validate_selection,
)
from .sources import load_matrix_from_paths, read_catalog, read_catalogs

__all__ = [
    # loading
    "load_matrix",
    "load_matrix_from_paths",
    "parse_document",
    "read_catalog",
    "read_catalogs",
    "resolve_alias",
    # queries
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
    # models
    "Category",
    "Matrix",
    "Skill",
    "SkillOption",
    "SkillRelation",
    "Subcategory",
    "SuggestedStack",
    "ValidationResult",
    "ConflictingSkills",
    "DiscouragedCombination",
    "ExclusiveViolation",
    "MissingRecommendation",
    "MissingRequirement",
    "UnknownSkill",
    "UnmetCondition",
    # errors
    "CatalogError",
    "CatalogFormatError",
    "CatalogIntegrityError",
    "DuplicateAliasError",
    "MatrixError",
    "MatrixQueryError",
    "RequireConflictOverlapError",
    "UnassignedCategoryError",
    "UnknownCategoryError",
    "UnknownReferenceError",
    "UnknownSkillError",
    "UnknownStackError",
    "UnknownSubcategoryError",
    "ViolationKind",
]
