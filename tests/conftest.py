"""Shared fixtures: a small frontend/backend catalog and its loaded matrix."""

import logging
from typing import Any

import pytest
import structlog

from skillmatrix.matrix import Matrix, load_matrix


def _skill(skill_id: str, subcategory: str, category: str, **extra: Any) -> dict[str, Any]:
    return {"id": skill_id, "category": category, "subcategory": subcategory, **extra}


@pytest.fixture
def catalog() -> dict[str, Any]:
    """Fresh base catalog document for every test (safe to mutate)."""
    return {
        "version": "1.0.0",
        "categories": [
            {
                "id": "frontend",
                "name": "Frontend",
                "subcategories": [
                    {"id": "framework", "name": "Framework", "exclusive": True, "required": True},
                    "styling",
                    {"id": "client-state", "exclusive": True},
                    "server-state",
                ],
            },
            {
                "id": "backend",
                "name": "Backend",
                "subcategories": [
                    {"id": "api", "exclusive": True},
                    {"id": "database", "exclusive": True},
                    "auth",
                ],
            },
            {"id": "tooling", "subcategories": ["testing"]},
        ],
        "skills": [
            _skill("react", "framework", "frontend", name="React", aliases=["react-js"],
                   conflicts_with=["vue"]),
            _skill("vue", "framework", "frontend", name="Vue"),
            _skill("tailwind", "styling", "frontend", name="Tailwind CSS"),
            _skill("scss-modules", "styling", "frontend", name="SCSS Modules"),
            _skill("shadcn-ui", "styling", "frontend", name="shadcn/ui",
                   requires=["react", "tailwind"]),
            _skill("zustand", "client-state", "frontend", name="Zustand", requires=["react"]),
            _skill("pinia", "client-state", "frontend", name="Pinia", requires=["vue"]),
            _skill("react-query", "server-state", "frontend", name="React Query",
                   aliases=["rq"], requires=["react"]),
            _skill("hono", "api", "backend", name="Hono"),
            _skill("express", "api", "backend", name="Express"),
            _skill("drizzle", "database", "backend", name="Drizzle"),
            _skill("prisma", "database", "backend", name="Prisma"),
            _skill("better-auth", "auth", "backend", name="Better Auth", requires=["drizzle"]),
            _skill("vitest", "testing", "tooling", name="Vitest"),
            _skill("playwright", "testing", "tooling"),
        ],
        "skill_aliases": {"tanstack-query": "react-query"},
        "relationships": {
            "conflicts": [{"skills": ["drizzle", "prisma"], "reason": "Pick a single ORM"}],
            "discourages": [
                {"skills": ["tailwind", "scss-modules"], "reason": "Mixing CSS paradigms is unusual"}
            ],
            "recommends": [
                {"when": "react", "suggest": ["zustand", "rq"], "reason": "Works well with React"}
            ],
            "requires": [
                {"skill": "vitest", "needs": ["react", "vue"], "needs_any": True}
            ],
            "alternatives": [{"purpose": "ORM", "skills": ["drizzle", "prisma"]}],
        },
        "suggested_stacks": [
            {
                "id": "modern-react",
                "name": "Modern React",
                "audience": ["startups"],
                "skills": {
                    "frontend": {
                        "framework": "react",
                        "styling": "tailwind",
                        "client-state": "zustand",
                        "server-state": "rq",
                    },
                    "backend": {"api": "hono", "database": "drizzle", "auth": "better-auth"},
                },
            }
        ],
    }


@pytest.fixture
def matrix(catalog: dict[str, Any]) -> Matrix:
    return load_matrix([catalog])


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI commands install handlers bound to CliRunner streams; drop them after each test."""
    yield
    logging.root.handlers.clear()
    structlog.reset_defaults()
