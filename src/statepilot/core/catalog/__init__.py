from .loader import CatalogLoadError, load_catalog
from .schemas import Catalog, CatalogEntry, example_value

__all__ = ["Catalog", "CatalogEntry", "CatalogLoadError", "example_value", "load_catalog"]
