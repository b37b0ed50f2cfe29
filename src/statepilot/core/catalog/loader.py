from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from .schemas import Catalog


class CatalogLoadError(RuntimeError):
    pass


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog file (JSON or YAML) declared by the integrating app."""
    catalog_path = Path(path).expanduser()
    try:
        text = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogLoadError(f"cannot read catalog file {catalog_path}: {exc}") from exc

    try:
        if catalog_path.suffix.casefold() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogLoadError(f"cannot parse catalog file {catalog_path}: {exc}") from exc

    if isinstance(data, dict) and "actions" in data:
        data = data["actions"]
    try:
        return Catalog.parse(data or [])
    except (TypeError, ValueError, ValidationError) as exc:
        raise CatalogLoadError(f"invalid catalog file {catalog_path}: {exc}") from exc
