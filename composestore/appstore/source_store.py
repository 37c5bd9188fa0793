"""Persistence of the registered app store list"""

import json
import logging
import os
from pathlib import Path
from typing import List

from composestore.appstore.models import AppStoreMetadata

logger = logging.getLogger(__name__)


class SourceListStore:
    """Load and save the app store list as a JSON file"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[AppStoreMetadata]:
        """Load persisted sources; an absent or unreadable file yields an empty list"""
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [
                AppStoreMetadata(url=item["url"], store_path=item.get("store_path"), name=item.get("name"))
                for item in data.get("appstores", [])
                if item.get("url")
            ]
        except (OSError, ValueError, KeyError, AttributeError) as e:
            logger.warning(f"Failed to load app store list from {self.path}: {e}")
            return []

    def save(self, sources: List[AppStoreMetadata]) -> None:
        """Write the list atomically (temp file + rename)"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "appstores": [
                source.model_dump(exclude={"id"}, exclude_none=True)
                for source in sources
            ]
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self.path)
