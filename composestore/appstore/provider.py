"""
Catalog provider

Builds per-query snapshots across every registered app store:

- catalog(): merged ``{store_app_id: ComposeApp}``; a later-registered store
  overrides an earlier one for the same id
- recommend(): recommend lists concatenated in registry order, without
  duplicates
- category_map(): categories of all stores keyed by name, with counts taken
  from the merged catalog

The provider holds no state of its own; every call reads the registry and
the backend afresh.
"""

import logging
from typing import Dict, List, Optional

from composestore.appstore.backend import AppStoreBackend
from composestore.appstore.exceptions import (
    AppStoreError,
    CatalogFetchError,
    CategoryFetchError,
    RecommendFetchError,
    StoreInfoError,
)
from composestore.appstore.models import CategoryInfo, ComposeApp
from composestore.appstore.registry import AppStoreRegistry

logger = logging.getLogger(__name__)


class AppStoreCatalog:
    """Merged view of all registered app stores"""

    def __init__(self, registry: AppStoreRegistry, backend: AppStoreBackend):
        self.registry = registry
        self.backend = backend

    def catalog(self) -> Dict[str, ComposeApp]:
        """
        Merged catalog snapshot

        Raises:
            CatalogFetchError: If a store's content cannot be read
        """
        merged: Dict[str, ComposeApp] = {}
        for source in self.registry.list():
            try:
                apps = self.backend.load_catalog(source)
            except CatalogFetchError:
                raise
            except (AppStoreError, OSError) as e:
                raise CatalogFetchError(f"failed to load catalog of {source.url}: {e}") from e
            merged.update(apps)
        return merged

    def compose_app(self, store_app_id: str) -> Optional[ComposeApp]:
        """One catalog entry, None if no store provides it"""
        return self.catalog().get(store_app_id)

    def recommend(self) -> List[str]:
        """
        Recommended store app ids

        Raises:
            RecommendFetchError: If a store's recommend list cannot be read
        """
        seen = set()
        result: List[str] = []
        for source in self.registry.list():
            try:
                ids = self.backend.load_recommend(source)
            except RecommendFetchError:
                raise
            except (AppStoreError, OSError) as e:
                raise RecommendFetchError(f"failed to load recommend list of {source.url}: {e}") from e
            for store_app_id in ids:
                if store_app_id not in seen:
                    seen.add(store_app_id)
                    result.append(store_app_id)
        return result

    def category_map(self) -> Dict[str, CategoryInfo]:
        """
        Categories keyed by name, with member counts

        The first store declaring a name (ignoring case) defines it.

        Raises:
            CategoryFetchError: If categories or the catalog cannot be read
        """
        categories: Dict[str, CategoryInfo] = {}
        for source in self.registry.list():
            try:
                declared = self.backend.load_categories(source)
            except CategoryFetchError:
                raise
            except (AppStoreError, OSError) as e:
                raise CategoryFetchError(f"failed to load categories of {source.url}: {e}") from e
            for category in declared:
                if category.name.lower() not in categories:
                    categories[category.name.lower()] = category

        try:
            catalog = self.catalog()
        except CatalogFetchError as e:
            raise CategoryFetchError(str(e)) from e

        counts: Dict[str, int] = {}
        for app in catalog.values():
            try:
                category = app.store_info(include_apps=False).category.lower()
            except StoreInfoError:
                continue
            counts[category] = counts.get(category, 0) + 1

        return {
            category.name: category.model_copy(update={"count": counts.get(key, 0)})
            for key, category in categories.items()
        }
