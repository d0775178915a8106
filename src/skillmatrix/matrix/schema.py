"""
Pydantic models for raw catalog documents.

These describe one source document as it comes out of the YAML parser, before
any merging or alias resolution. Shape problems are caught here; referential
problems are the loader's job.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubcategoryDefinition(BaseModel):
    """A subcategory entry. A bare string in YAML is shorthand for ``{id: ...}``."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    exclusive: bool = False
    required: bool = False

    model_config = ConfigDict(extra="forbid")


class CategoryDefinition(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    subcategories: list[SubcategoryDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("subcategories", mode="before")
    @classmethod
    def _expand_shorthand(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"id": item} if isinstance(item, str) else item for item in value]
        return value


class SkillDefinition(BaseModel):
    """One skill record. Replaced wholesale when a later source redefines it."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    author: str = ""
    category: str = ""
    subcategory: str = ""
    aliases: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    conflicts_with: list[str] = Field(default_factory=list, alias="conflictsWith")
    enabled_when: list[list[str]] = Field(default_factory=list, alias="enabledWhen")
    recommends: list[str] = Field(default_factory=list)
    discourages: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("enabled_when")
    @classmethod
    def _no_empty_groups(cls, value: list[list[str]]) -> list[list[str]]:
        if any(not group for group in value):
            raise ValueError("enabled_when groups must not be empty")
        return value


class ConflictRule(BaseModel):
    """Every listed skill conflicts with every other one."""

    skills: list[str] = Field(min_length=2)
    reason: str = ""

    model_config = ConfigDict(extra="forbid")


class DiscourageRule(BaseModel):
    skills: list[str] = Field(min_length=2)
    reason: str = ""

    model_config = ConfigDict(extra="forbid")


class RecommendRule(BaseModel):
    when: str
    suggest: list[str] = Field(min_length=1)
    reason: str = ""

    model_config = ConfigDict(extra="forbid")


class RequireRule(BaseModel):
    """``needs_any`` turns the rule into a single any-of group."""

    skill: str
    needs: list[str] = Field(min_length=1)
    needs_any: bool = False
    reason: str = ""

    model_config = ConfigDict(extra="forbid")


class AlternativeGroup(BaseModel):
    purpose: str = ""
    skills: list[str] = Field(min_length=2)

    model_config = ConfigDict(extra="forbid")


class Relationships(BaseModel):
    conflicts: list[ConflictRule] = Field(default_factory=list)
    discourages: list[DiscourageRule] = Field(default_factory=list)
    recommends: list[RecommendRule] = Field(default_factory=list)
    requires: list[RequireRule] = Field(default_factory=list)
    alternatives: list[AlternativeGroup] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class StackDefinition(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    audience: list[str] = Field(default_factory=list)
    philosophy: str = ""
    # {category: {subcategory: skill alias or id}}
    skills: dict[str, dict[str, str]] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class CatalogDocument(BaseModel):
    """Root of one catalog source document."""

    version: str | None = None
    categories: list[CategoryDefinition] = Field(default_factory=list)
    skills: list[SkillDefinition] = Field(default_factory=list)
    aliases: dict[str, str] = Field(default_factory=dict, alias="skill_aliases")
    relationships: Relationships = Field(default_factory=Relationships)
    suggested_stacks: list[StackDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
