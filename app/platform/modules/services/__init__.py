from .catalog import CatalogService, invalidate_catalog_cache
from .catalog_view import CatalogViewBuilder, get_catalog_view
from .installation import InstallationService, InstallResult, UninstallResult

__all__ = [
    "CatalogService",
    "CatalogViewBuilder",
    "InstallationService",
    "InstallResult",
    "UninstallResult",
    "get_catalog_view",
    "invalidate_catalog_cache",
]
