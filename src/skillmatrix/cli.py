"""
Main CLI for skillmatrix using Click.

Thin front-end over the matrix package: every command loads the configured
catalog, runs one resolver query and prints the answer. The selection is
whatever the user passes on the command line; nothing is persisted.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable

import click
from pydantic import ValidationError

from . import __version__
from .config.loader import ConfigFileError, load_config
from .logging import configure_logging
from .matrix import (
    CatalogError,
    Matrix,
    MatrixQueryError,
    list_available_skills,
    list_stacks,
    list_subcategories,
    load_matrix_from_paths,
    missing_required_subcategories,
    resolve_alias,
    stack_selection,
    validate_selection,
)

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3


def _catalog_options(func: Callable) -> Callable:
    """Options shared by every command that needs a loaded matrix."""
    func = click.option(
        "--log-file",
        type=click.Path(path_type=Path),
        help="Write JSON logs to this file",
    )(func)
    func = click.option(
        "-v",
        "--verbose",
        count=True,
        help="Console verbosity (-v info, -vv debug)",
    )(func)
    func = click.option(
        "--catalog",
        multiple=True,
        type=click.Path(path_type=Path),
        help="Catalog YAML file (repeatable; later files override earlier ones)",
    )(func)
    func = click.option(
        "-c",
        "--config",
        type=click.Path(exists=True, path_type=Path),
        help="Path to the YAML configuration file",
    )(func)
    return func


def _load_matrix(kwargs: dict[str, Any]) -> Matrix:
    """Resolve configuration, set up logging and load the catalog, or exit."""
    cli_args = {
        "catalog": list(kwargs.get("catalog") or ()),
        "verbose": kwargs.get("verbose") or None,
        "log_file": kwargs.get("log_file"),
    }
    try:
        app_config = load_config(config_path=kwargs.get("config"), cli_args=cli_args)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ConfigFileError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(app_config.logging)

    if not app_config.catalog.sources:
        click.echo(
            "Error: no catalog configured. Use --catalog, SKILLMATRIX_CATALOG "
            "or catalog.sources in the config file.",
            err=True,
        )
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        return load_matrix_from_paths(app_config.catalog.sources)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except CatalogError as e:
        click.echo(f"Catalog error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="skillmatrix")
def main() -> None:
    """skillmatrix - Resolve technology stack selections against a skill catalog.

    Lists categories and options, explains why an option is disabled and
    checks whether a selection is consistent.
    """
    pass


@main.command()
@_catalog_options
def check(**kwargs) -> None:
    """Load the catalog and report what it contains."""
    matrix = _load_matrix(kwargs)
    click.echo("Valid catalog")
    if matrix.version:
        click.echo(f"  Version: {matrix.version}")
    click.echo(f"  Categories: {len(matrix.categories)}")
    click.echo(f"  Subcategories: {len(matrix.subcategories)}")
    click.echo(f"  Skills: {len(matrix.skills)}")
    click.echo(f"  Aliases: {len(matrix.aliases)}")
    click.echo(f"  Suggested stacks: {len(matrix.stacks)}")


@main.command()
@_catalog_options
def categories(**kwargs) -> None:
    """Print the category tree in presentation order."""
    matrix = _load_matrix(kwargs)
    for category in matrix.categories.values():
        click.echo(f"{category.id:<20} {category.name}")
        for sub_id in list_subcategories(matrix, category.id):
            sub = matrix.subcategories[sub_id]
            flags = [flag for flag in ("exclusive", "required") if getattr(sub, flag)]
            suffix = f" ({', '.join(flags)})" if flags else ""
            count = len(matrix.skills_by_subcategory.get(sub_id, ()))
            click.echo(f"  {sub_id:<18} {sub.name} [{count}]{suffix}")


@main.command()
@click.argument("subcategory")
@click.option(
    "-s",
    "--select",
    "selection",
    multiple=True,
    help="Skill id or alias already selected (repeatable)",
)
@_catalog_options
def options(subcategory: str, selection: tuple[str, ...], **kwargs) -> None:
    """Show the options of a subcategory against a selection."""
    matrix = _load_matrix(kwargs)
    try:
        skill_options = list_available_skills(matrix, subcategory, list(selection))
    except MatrixQueryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILED)

    if not skill_options:
        click.echo("  No skills in this subcategory.")
        return

    for option in skill_options:
        if option.selected:
            marker = "[x]"
        elif option.disabled:
            marker = "[-]"
        else:
            marker = "[ ]"
        notes: list[str] = []
        if option.disabled:
            notes.append(f"disabled: {option.disabled_reason}")
        if option.discouraged:
            notes.append(f"discouraged: {option.discouraged_reason}")
        if option.recommended:
            notes.append(f"recommended: {option.recommended_reason}")
        if option.conflicts:
            notes.append(f"conflicts with: {', '.join(option.conflicts)}")
        suffix = f"  ({'; '.join(notes)})" if notes else ""
        click.echo(f"  {marker} {option.id:<20} {option.skill.name}{suffix}")


@main.command()
@click.argument("skills", nargs=-1)
@click.option(
    "--complete",
    is_flag=True,
    help="Also require every required subcategory to have a selection",
)
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON")
@_catalog_options
def validate(skills: tuple[str, ...], complete: bool, json_output: bool, **kwargs) -> None:
    """Validate a selection of skills (ids or aliases)."""
    matrix = _load_matrix(kwargs)
    result = validate_selection(matrix, list(skills))
    missing_subcategories = missing_required_subcategories(matrix, list(skills)) if complete else []
    valid = result.valid and not missing_subcategories

    if json_output:
        data = result.to_dict()
        data["valid"] = valid
        if complete:
            data["missing_subcategories"] = missing_subcategories
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo("Valid selection" if valid else "Invalid selection")
        for error in result.errors:
            click.echo(f"  error: {error.message}")
        for sub_id in missing_subcategories:
            click.echo(f"  error: nothing selected in required subcategory '{sub_id}'")
        for warning in result.warnings:
            click.echo(f"  warning: {warning.message}")

    if not valid:
        sys.exit(EXIT_FAILED)


@main.command()
@click.argument("name")
@_catalog_options
def resolve(name: str, **kwargs) -> None:
    """Print the canonical skill id for an id or alias."""
    matrix = _load_matrix(kwargs)
    skill_id = resolve_alias(matrix, name)
    if skill_id is None:
        click.echo(f"Not found: {name}", err=True)
        sys.exit(EXIT_FAILED)
    click.echo(skill_id)


@main.command()
@_catalog_options
def stacks(**kwargs) -> None:
    """List suggested stacks and whether each one validates."""
    matrix = _load_matrix(kwargs)
    suggested = list_stacks(matrix)
    if not suggested:
        click.echo("  No suggested stacks.")
        return
    for stack in suggested:
        result = validate_selection(matrix, stack_selection(matrix, stack.id))
        status = "ok" if result.valid else f"invalid ({len(result.errors)} errors)"
        click.echo(f"  {stack.id:<20} {stack.name:<24} {status}")
        for error in result.errors:
            click.echo(f"      error: {error.message}")
