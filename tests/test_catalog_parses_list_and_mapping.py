from __future__ import annotations

import pytest

from statepilot.core.catalog import Catalog


def test_catalog_parses_list_and_mapping(task_catalog) -> None:
    from_list = Catalog.parse(task_catalog)
    from_mapping = Catalog.parse({"task/create": {"description": "Create"}, "task/clear": None})

    assert from_list.types() == ["task/create", "task/clear"]
    assert "task/clear" in from_mapping
    assert from_mapping.get("task/create").description == "Create"
    assert len(Catalog.parse(None)) == 0


def test_catalog_rejects_duplicate_types() -> None:
    with pytest.raises(ValueError):
        Catalog.parse([{"type": "a"}, {"type": "a"}])
