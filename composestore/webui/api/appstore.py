"""
App Store APIs

1. GET    /appstore                - List registered app stores
2. POST   /appstore?url=           - Register an app store (asynchronous)
3. DELETE /appstore/{id}           - Unregister an app store
4. GET    /apps                    - List store apps (category / author_type / recommend filters)
5. GET    /apps/{store_app_id}     - Compose app as YAML (Accept: application/yaml) or JSON debug envelope
6. GET    /apps/{store_app_id}/info - Store info of one app
7. GET    /categories              - Category list with the synthetic "All" category
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from fastapi.responses import Response

from composestore.appstore.catalog import filter_catalog, store_info_list
from composestore.appstore.categories import aggregate_categories
from composestore.appstore.exceptions import (
    AppStoreNotFoundError,
    CatalogFetchError,
    CategoryFetchError,
    InventoryError,
    LastAppStoreError,
    NotAnAppStoreError,
    RecommendFetchError,
    RepresentationError,
    StoreInfoError,
)
from composestore.appstore.installed import installed_store_app_ids
from composestore.appstore.models import ComposeApp
from composestore.appstore.representation import select_representation
from composestore.services import AppManagementServices
from composestore.webui.api.error_envelope import ErrorEnvelope

logger = logging.getLogger(__name__)
router = APIRouter()


def get_services(request: Request) -> AppManagementServices:
    """
    App management services of the running application

    Raises:
        HTTPException: Services not initialized
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="app management service not initialized")
    return services


# ============================================
# App store sources
# ============================================

@router.get("/appstore")
def list_appstores(services: AppManagementServices = Depends(get_services)):
    """List registered app stores in order; ``id`` is the position used for unregistering"""
    sources = services.registry.list()
    return ErrorEnvelope.format_success([s.model_dump(mode="json") for s in sources])


@router.post("/appstore")
def register_appstore(
    url: Optional[str] = Query(None, description="App store URL"),
    services: AppManagementServices = Depends(get_services),
):
    """
    Register an app store

    Validation and download continue in the background; the response only
    tells that registration was initiated. Poll GET /appstore to see the
    result.
    """
    if not url:
        raise HTTPException(status_code=400, detail="appstore url is required")

    try:
        result = services.registry.register(url)
    except NotAnAppStoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to register app store {url}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if result.already_registered:
        return ErrorEnvelope.format_success(None, message="appstore is already registered")

    log_target = services.config.log_file or "the service log"
    message = f"trying to register app store asynchronously - see {log_target} for any errors."
    return ErrorEnvelope.format_success(None, message=message)


@router.delete("/appstore/{appstore_id}")
def unregister_appstore(
    appstore_id: int = Path(..., description="Position of the app store in the list"),
    services: AppManagementServices = Depends(get_services),
):
    """Unregister an app store; the last remaining one cannot be removed"""
    try:
        services.registry.unregister(appstore_id)
    except AppStoreNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LastAppStoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to unregister app store {appstore_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return ErrorEnvelope.format_success(None, message="app store is unregistered.")


# ============================================
# Store apps
# ============================================

@router.get("/apps")
def list_store_apps(
    category: Optional[str] = Query(None, description="Filter by category (case-insensitive)"),
    author_type: Optional[str] = Query(None, description="official, by_casaos or community"),
    recommend: bool = Query(False, description="Only recommended apps"),
    services: AppManagementServices = Depends(get_services),
):
    """
    List store apps with the installed ones marked

    Returns:
        data.list: store info keyed by store app id
        data.installed: store app ids of installed apps
    """
    try:
        catalog = services.catalog.catalog()
    except CatalogFetchError as e:
        logger.error(f"failed to get catalog: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    try:
        catalog = filter_catalog(
            catalog,
            category=category,
            author_type=author_type,
            recommend=recommend,
            recommend_source=services.catalog.recommend,
        )
    except RecommendFetchError as e:
        logger.error(f"failed to get recommend list: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    data = {
        "list": {
            store_app_id: info.model_dump(mode="json")
            for store_app_id, info in store_info_list(catalog).items()
        }
    }

    try:
        installed_apps = services.inventory.list_installed()
    except InventoryError as e:
        logger.error(f"failed to list installed compose apps: {e}")
        return ErrorEnvelope.format_success(data, message=str(e))

    data["installed"] = installed_store_app_ids(installed_apps)
    return ErrorEnvelope.format_success(data)


def _get_compose_app(services: AppManagementServices, store_app_id: str) -> ComposeApp:
    try:
        compose_app = services.catalog.compose_app(store_app_id)
    except CatalogFetchError as e:
        logger.error(f"failed to get catalog: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if compose_app is None:
        raise HTTPException(status_code=404, detail="app not found")
    return compose_app


@router.get("/apps/{store_app_id}/info")
def get_store_app_info(
    store_app_id: str,
    services: AppManagementServices = Depends(get_services),
):
    """Store info of one app, including per-service metadata"""
    compose_app = _get_compose_app(services, store_app_id)

    try:
        store_info = compose_app.store_info(include_apps=True)
    except StoreInfoError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return ErrorEnvelope.format_success(store_info.model_dump(mode="json"))


@router.get("/apps/{store_app_id}")
def get_compose_app(
    store_app_id: str,
    request: Request,
    services: AppManagementServices = Depends(get_services),
):
    """
    Compose app of a store app

    ``Accept: application/yaml`` returns the compose document as is; any
    other Accept value returns a JSON envelope meant for debugging only.
    """
    compose_app = _get_compose_app(services, store_app_id)

    try:
        representation = select_representation(compose_app, request.headers.get("accept"))
    except RepresentationError as e:
        logger.error(f"failed to render compose app {store_app_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return Response(content=representation.body, media_type=representation.media_type)


# ============================================
# Categories
# ============================================

@router.get("/categories")
def list_categories(services: AppManagementServices = Depends(get_services)):
    """Categories sorted by name, preceded by "All"; ``id`` is the display position"""
    try:
        category_map = services.catalog.category_map()
    except CategoryFetchError as e:
        logger.error(f"failed to get categories: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    categories = aggregate_categories(category_map)
    return ErrorEnvelope.format_success([c.model_dump(mode="json") for c in categories])
