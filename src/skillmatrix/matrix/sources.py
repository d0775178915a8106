"""
Reads catalog documents from YAML files.

This is the only part of the matrix package that touches the filesystem;
``load_matrix`` itself works on already parsed documents.
"""

import logging
from pathlib import Path
from typing import Iterable

import structlog
import yaml

from .errors import CatalogFormatError
from .loader import load_matrix, parse_document
from .models import Matrix
from .schema import CatalogDocument

logger = structlog.wrap_logger(logging.getLogger(__name__))


def read_catalog(path: Path) -> CatalogDocument:
    """Parse and shape-check one YAML catalog file.

    Raises:
        FileNotFoundError: If the file does not exist.
        CatalogFormatError: If the YAML is unparsable or not a catalog mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogFormatError(f"invalid YAML: {e}", str(path)) from e

    if data is None:
        data = {}
    document = parse_document(data, str(path))
    logger.debug("matrix.source.read", path=str(path), skills=len(document.skills))
    return document


def read_catalogs(paths: Iterable[Path]) -> list[CatalogDocument]:
    return [read_catalog(Path(p)) for p in paths]


def load_matrix_from_paths(paths: Iterable[Path]) -> Matrix:
    """Read every catalog file in order and merge them into a Matrix."""
    return load_matrix(read_catalogs(paths))
