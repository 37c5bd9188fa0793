"""Installed compose apps

Every sub-directory of the apps directory holding a compose file is one
installed app. The inventory only reads; installing and removing apps is
done elsewhere.
"""

import logging
from pathlib import Path
from typing import List

from composestore.appstore.backend import COMPOSE_FILE_NAMES
from composestore.appstore.exceptions import InventoryError
from composestore.appstore.models import ComposeApp

logger = logging.getLogger(__name__)


class ComposeInventory:
    """Reads installed compose apps from a directory"""

    def __init__(self, apps_dir: Path):
        self.apps_dir = Path(apps_dir)

    def list_installed(self) -> List[ComposeApp]:
        """
        Installed apps, ordered by directory name

        Unparseable compose files are logged and skipped.

        Raises:
            InventoryError: If the apps directory cannot be read
        """
        if not self.apps_dir.exists():
            return []

        try:
            app_dirs = sorted(p for p in self.apps_dir.iterdir() if p.is_dir())
        except OSError as e:
            raise InventoryError(f"failed to list installed apps in {self.apps_dir}: {e}") from e

        apps: List[ComposeApp] = []
        for app_dir in app_dirs:
            compose_file = next(
                (app_dir / name for name in COMPOSE_FILE_NAMES if (app_dir / name).is_file()),
                None,
            )
            if compose_file is None:
                continue
            try:
                apps.append(ComposeApp.from_yaml(compose_file.read_text(encoding="utf-8")))
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load installed app {app_dir.name}: {e}")
        return apps
