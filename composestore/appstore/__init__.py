"""composestore app store - catalog resolution and aggregation.

This package keeps the registry of app store sources and answers catalog
queries over them:
1. WHICH app stores are registered (AppStoreRegistry)
2. WHAT they offer, filtered by category, author type and recommendation
3. WHICH of those apps are installed
4. HOW the catalog splits into categories

Key Components:
- AppStoreRegistry: ordered, never-empty source list with async registration
- AppStoreCatalog: merged per-query snapshot of all registered stores
- filter_catalog / installed_store_app_ids / aggregate_categories: pure
  transformations over such snapshots
- select_representation: YAML or JSON debug rendering of one compose app
"""

from composestore.appstore.backend import AppStoreBackend, LocalAppStoreBackend
from composestore.appstore.catalog import (
    filter_by_author_type,
    filter_by_category,
    filter_by_store_app_ids,
    filter_catalog,
    store_info_list,
)
from composestore.appstore.categories import aggregate_categories
from composestore.appstore.exceptions import (
    AppStoreError,
    AppStoreNotFoundError,
    CatalogFetchError,
    CategoryFetchError,
    InventoryError,
    LastAppStoreError,
    NotAnAppStoreError,
    RecommendFetchError,
    RegistrationCancelledError,
    RepresentationError,
    StoreInfoError,
)
from composestore.appstore.installed import installed_store_app_ids
from composestore.appstore.inventory import ComposeInventory
from composestore.appstore.models import (
    AppStoreMetadata,
    CategoryInfo,
    ComposeApp,
    StoreAppAuthorType,
    StoreInfo,
    parse_author_type,
)
from composestore.appstore.provider import AppStoreCatalog
from composestore.appstore.registry import AppStoreRegistry, RegistrationResult
from composestore.appstore.representation import Representation, select_representation
from composestore.appstore.source_store import SourceListStore

__all__ = [
    "AppStoreBackend",
    "LocalAppStoreBackend",
    "AppStoreCatalog",
    "AppStoreRegistry",
    "RegistrationResult",
    "SourceListStore",
    "ComposeInventory",
    "AppStoreMetadata",
    "CategoryInfo",
    "ComposeApp",
    "StoreAppAuthorType",
    "StoreInfo",
    "parse_author_type",
    "filter_catalog",
    "filter_by_category",
    "filter_by_author_type",
    "filter_by_store_app_ids",
    "store_info_list",
    "installed_store_app_ids",
    "aggregate_categories",
    "Representation",
    "select_representation",
    "AppStoreError",
    "AppStoreNotFoundError",
    "LastAppStoreError",
    "NotAnAppStoreError",
    "RegistrationCancelledError",
    "CatalogFetchError",
    "RecommendFetchError",
    "CategoryFetchError",
    "InventoryError",
    "StoreInfoError",
    "RepresentationError",
]
