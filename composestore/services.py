"""Process wiring: builds the app management services from configuration.

One ``AppManagementServices`` instance is created by the entry point (the
ASGI app factory or a CLI command) and handed to everything that needs it.
"""

import logging
from dataclasses import dataclass

from composestore.appstore.backend import AppStoreBackend, LocalAppStoreBackend
from composestore.appstore.inventory import ComposeInventory
from composestore.appstore.provider import AppStoreCatalog
from composestore.appstore.registry import AppStoreRegistry
from composestore.appstore.source_store import SourceListStore
from composestore.core.config import AppManagementConfig

logger = logging.getLogger(__name__)


@dataclass
class AppManagementServices:
    config: AppManagementConfig
    registry: AppStoreRegistry
    catalog: AppStoreCatalog
    inventory: ComposeInventory

    def close(self, cancel_pending: bool = True) -> None:
        self.registry.shutdown(cancel_pending=cancel_pending)


def build_services(config: AppManagementConfig, backend: AppStoreBackend = None) -> AppManagementServices:
    """
    Wire registry, catalog provider and inventory together

    Args:
        config: Loaded configuration
        backend: App store backend; defaults to the local filesystem backend
    """
    if backend is None:
        backend = LocalAppStoreBackend(
            storage_dir=config.appstore_dir,
            download_timeout=config.download_timeout,
        )

    registry = AppStoreRegistry(
        backend=backend,
        store=SourceListStore(config.sources_file),
        default_urls=config.default_appstore_urls,
        registration_timeout=config.registration_timeout,
        max_workers=config.registration_workers,
    )

    logger.info(f"App management services ready (data_dir={config.data_dir})")
    return AppManagementServices(
        config=config,
        registry=registry,
        catalog=AppStoreCatalog(registry, backend),
        inventory=ComposeInventory(config.apps_dir),
    )
