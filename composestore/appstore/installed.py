"""Cross-reference of the catalog against installed apps"""

import logging
from typing import Iterable, List

from composestore.appstore.models import ComposeApp, try_store_info

logger = logging.getLogger(__name__)


def installed_store_app_ids(installed_apps: Iterable[ComposeApp]) -> List[str]:
    """
    Store app ids of the installed apps

    Installed apps whose store info cannot be derived, or which carry no
    store app id, are left out. The result keeps inventory order without
    duplicates.
    """
    seen = set()
    result: List[str] = []
    for app in installed_apps:
        info = try_store_info(app, include_apps=False)
        if info is None:
            continue
        if not info.store_app_id:
            logger.error(f"failed to get store info - no store app id: {app.name}")
            continue
        if info.store_app_id in seen:
            continue
        seen.add(info.store_app_id)
        result.append(info.store_app_id)
    return result
