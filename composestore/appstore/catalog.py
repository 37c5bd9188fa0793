"""Catalog filtering.

A catalog is a mapping from store app id to ComposeApp, built fresh for every
query. Every filter here returns a new mapping holding a subset of its input
in the input's order; none of them mutates the catalog or the apps in it.

Filters are applied by ``filter_catalog`` in a fixed order (category, author
type, recommendation), but each one is a plain narrowing, so any order gives
the same result.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from composestore.appstore.exceptions import StoreInfoError
from composestore.appstore.models import (
    ComposeApp,
    StoreAppAuthorType,
    StoreInfo,
    parse_author_type,
)

logger = logging.getLogger(__name__)

Catalog = Dict[str, ComposeApp]


def filter_by_category(catalog: Catalog, category: Optional[str]) -> Catalog:
    """Keep apps whose category equals ``category`` ignoring case.

    An empty category keeps everything. Apps without usable store info are
    dropped.
    """
    if not category:
        return catalog

    wanted = category.lower()
    result: Catalog = {}
    for store_app_id, app in catalog.items():
        try:
            info = app.store_info(include_apps=False)
        except StoreInfoError:
            continue
        if info.category.lower() == wanted:
            result[store_app_id] = app
    return result


def filter_by_author_type(catalog: Catalog, author_type: str) -> Catalog:
    """Keep apps packaged by ``author_type``.

    An author type outside official/by_casaos/community matches nothing.
    """
    wanted = parse_author_type(author_type)
    if wanted is StoreAppAuthorType.UNKNOWN:
        logger.warning(f"unknown author type - returning empty catalog: {author_type!r}")
        return {}

    return {
        store_app_id: app
        for store_app_id, app in catalog.items()
        if app.author_type() is wanted
    }


def filter_by_store_app_ids(catalog: Catalog, store_app_ids: Iterable[str]) -> Catalog:
    """Keep apps whose id is in ``store_app_ids``."""
    wanted = set(store_app_ids)
    return {
        store_app_id: app
        for store_app_id, app in catalog.items()
        if store_app_id in wanted
    }


def filter_catalog(
    catalog: Catalog,
    category: Optional[str] = None,
    author_type: Optional[str] = None,
    recommend: bool = False,
    recommend_source: Optional[Callable[[], Iterable[str]]] = None,
) -> Catalog:
    """
    Apply the category, author type and recommendation filters in that order

    Args:
        catalog: Catalog snapshot
        category: Category name, matched ignoring case
        author_type: Author type; unknown values yield an empty catalog
        recommend: Keep only recommended apps
        recommend_source: Returns the recommended store app ids. Called only
            when ``recommend`` is true; its exceptions propagate.

    Returns:
        The narrowed catalog
    """
    if category is not None:
        catalog = filter_by_category(catalog, category)

    if author_type is not None:
        catalog = filter_by_author_type(catalog, author_type)

    if recommend:
        if recommend_source is None:
            raise ValueError("recommend_source is required when recommend is set")
        catalog = filter_by_store_app_ids(catalog, recommend_source())

    return catalog


def store_info_list(catalog: Catalog) -> Dict[str, StoreInfo]:
    """Project every app of ``catalog``, skipping (and logging) failures."""
    result: Dict[str, StoreInfo] = {}
    for store_app_id, app in catalog.items():
        try:
            result[store_app_id] = app.store_info(include_apps=True)
        except StoreInfoError as e:
            logger.error(f"failed to get store info for {store_app_id}: {e}")
    return result
