"""
App Store Backend - where app store content comes from

An app store is a directory laid out as:

    <root>/Apps/<StoreAppID>/docker-compose.yml
    <root>/category-list.json     [{"name": ..., "font": ..., "description": ...}]
    <root>/recommend-list.json    [{"appid": ...}]

Local sources (``file://`` URLs or plain paths) are read in place. Remote
``http(s)`` sources point at a zip archive of such a directory; the archive is
downloaded and extracted under the backend's own storage directory, and the
store root is looked up inside it.
"""

import hashlib
import json
import logging
import shutil
import tempfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from composestore.appstore.exceptions import (
    AppStoreError,
    CatalogFetchError,
    CategoryFetchError,
    NotAnAppStoreError,
    RecommendFetchError,
)
from composestore.appstore.models import AppStoreMetadata, CategoryInfo, ComposeApp
from composestore.appstore.tasks import CancelToken

logger = logging.getLogger(__name__)

APPS_DIR_NAME = "Apps"
CATEGORY_LIST_FILE = "category-list.json"
RECOMMEND_LIST_FILE = "recommend-list.json"
COMPOSE_FILE_NAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

REMOTE_SCHEMES = ("http", "https")
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class AppStoreBackend(ABC):
    """Fetches, persists and reads app store content"""

    @abstractmethod
    def check_url(self, url: str) -> None:
        """Cheap synchronous check; raises NotAnAppStoreError for hopeless URLs"""

    @abstractmethod
    def store_path_for(self, url: str) -> Path:
        """Local directory that holds (or will hold) the content of ``url``"""

    @abstractmethod
    def validate_and_persist(self, url: str, token: CancelToken) -> AppStoreMetadata:
        """Materialize and validate the app store at ``url``.

        May take long; implementations check ``token`` regularly.

        Raises:
            NotAnAppStoreError: If the content is not an app store
            RegistrationCancelledError: If ``token`` is cancelled
        """

    @abstractmethod
    def is_materialized(self, source: AppStoreMetadata) -> bool:
        """True once the content of ``source`` is available locally"""

    @abstractmethod
    def load_catalog(self, source: AppStoreMetadata) -> Dict[str, ComposeApp]:
        """Compose apps of one store keyed by store app id"""

    @abstractmethod
    def load_categories(self, source: AppStoreMetadata) -> List[CategoryInfo]:
        """Categories declared by one store (counts not filled in)"""

    @abstractmethod
    def load_recommend(self, source: AppStoreMetadata) -> List[str]:
        """Recommended store app ids of one store"""

    @abstractmethod
    def remove(self, source: AppStoreMetadata) -> None:
        """Drop content materialized for ``source``"""


def find_store_root(path: Path, depth: int = 2) -> Optional[Path]:
    """First directory at most ``depth`` levels below ``path`` containing ``Apps/``"""
    if not path.is_dir():
        return None
    if (path / APPS_DIR_NAME).is_dir():
        return path
    if depth <= 0:
        return None
    for child in sorted(p for p in path.iterdir() if p.is_dir()):
        root = find_store_root(child, depth - 1)
        if root is not None:
            return root
    return None


def _read_json_list(path: Path) -> list:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path.name} is not a JSON list")
    return data


class LocalAppStoreBackend(AppStoreBackend):
    """App store backend keeping everything on the local filesystem"""

    def __init__(
        self,
        storage_dir: Path,
        download_timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            storage_dir: Where remote app stores are downloaded and extracted
            download_timeout: HTTP timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.storage_dir = Path(storage_dir)
        self.download_timeout = download_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # URL handling
    # ------------------------------------------------------------------

    @staticmethod
    def _is_remote(url: str) -> bool:
        return urlparse(url).scheme.lower() in REMOTE_SCHEMES

    @staticmethod
    def _local_path(url: str) -> Path:
        parsed = urlparse(url)
        if parsed.scheme.lower() == "file":
            return Path(unquote(parsed.path))
        return Path(url).expanduser()

    def check_url(self, url: str) -> None:
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()

        if scheme in REMOTE_SCHEMES:
            if not parsed.netloc:
                raise NotAnAppStoreError(f"app store url has no host: {url}")
            return

        # Windows drive letters parse as one-letter schemes
        if scheme in ("", "file") or len(scheme) == 1:
            path = self._local_path(url)
            if not path.is_dir():
                raise NotAnAppStoreError(f"app store directory does not exist: {path}")
            return

        raise NotAnAppStoreError(f"unsupported app store url scheme: {parsed.scheme}")

    def store_path_for(self, url: str) -> Path:
        if self._is_remote(url):
            digest = hashlib.sha1(url.lower().encode("utf-8")).hexdigest()
            return self.storage_dir / digest
        return self._local_path(url)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def validate_and_persist(self, url: str, token: CancelToken) -> AppStoreMetadata:
        token.raise_if_cancelled()

        if self._is_remote(url):
            target = self._download_and_extract(url, token)
        else:
            target = self._local_path(url)

        root = find_store_root(target)
        if root is None:
            raise NotAnAppStoreError(f"not an app store - no {APPS_DIR_NAME} directory found at {url}")

        logger.info(f"App store content ready: {url} -> {root}")
        return AppStoreMetadata(url=url, store_path=str(target), name=root.name)

    def _download_and_extract(self, url: str, token: CancelToken) -> Path:
        target = self.store_path_for(url)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=self.storage_dir, prefix=".download-") as tmp:
            archive = Path(tmp) / "appstore.zip"
            self._download(url, archive, token)

            token.raise_if_cancelled()
            extract_dir = Path(tmp) / "extracted"
            try:
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(extract_dir)
            except zipfile.BadZipFile as e:
                raise NotAnAppStoreError(f"not an app store - {url} is not a zip archive") from e

            if find_store_root(extract_dir) is None:
                raise NotAnAppStoreError(f"not an app store - no {APPS_DIR_NAME} directory in {url}")

            token.raise_if_cancelled()
            if target.exists():
                shutil.rmtree(target)
            shutil.move(str(extract_dir), str(target))

        return target

    def _download(self, url: str, dest: Path, token: CancelToken) -> None:
        timeout = self.download_timeout
        remaining = token.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        logger.info(f"Downloading app store: {url}")
        try:
            with httpx.Client(
                timeout=timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                with client.stream("GET", url) as response:
                    if 400 <= response.status_code < 500:
                        raise NotAnAppStoreError(
                            f"not an app store - {url} returned HTTP {response.status_code}"
                        )
                    response.raise_for_status()
                    with open(dest, "wb") as f:
                        for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                            token.raise_if_cancelled()
                            f.write(chunk)
        except httpx.HTTPError as e:
            raise AppStoreError(f"failed to download app store {url}: {e}") from e

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _store_root(self, source: AppStoreMetadata) -> Optional[Path]:
        store_path = Path(source.store_path) if source.store_path else self.store_path_for(source.url)
        return find_store_root(store_path)

    def is_materialized(self, source: AppStoreMetadata) -> bool:
        return self._store_root(source) is not None

    def load_catalog(self, source: AppStoreMetadata) -> Dict[str, ComposeApp]:
        root = self._store_root(source)
        if root is None:
            logger.warning(f"App store not synchronized yet, skipping: {source.url}")
            return {}

        catalog: Dict[str, ComposeApp] = {}
        try:
            app_dirs = sorted(p for p in (root / APPS_DIR_NAME).iterdir() if p.is_dir())
        except OSError as e:
            raise CatalogFetchError(f"failed to read app store {source.url}: {e}") from e

        for app_dir in app_dirs:
            compose_file = next(
                (app_dir / name for name in COMPOSE_FILE_NAMES if (app_dir / name).is_file()),
                None,
            )
            if compose_file is None:
                logger.debug(f"No compose file in {app_dir}")
                continue
            try:
                app = ComposeApp.from_yaml(
                    compose_file.read_text(encoding="utf-8"),
                    store_app_id=app_dir.name,
                )
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load compose app {app_dir.name} from {source.url}: {e}")
                continue
            catalog[app_dir.name] = app

        return catalog

    def load_categories(self, source: AppStoreMetadata) -> List[CategoryInfo]:
        root = self._store_root(source)
        if root is None or not (root / CATEGORY_LIST_FILE).is_file():
            return []
        try:
            items = _read_json_list(root / CATEGORY_LIST_FILE)
            return [
                CategoryInfo(
                    name=item.get("name", ""),
                    font=item.get("font", ""),
                    description=item.get("description", ""),
                )
                for item in items
                if isinstance(item, dict) and item.get("name")
            ]
        except (OSError, ValueError) as e:
            raise CategoryFetchError(f"failed to read categories of {source.url}: {e}") from e

    def load_recommend(self, source: AppStoreMetadata) -> List[str]:
        root = self._store_root(source)
        if root is None or not (root / RECOMMEND_LIST_FILE).is_file():
            return []
        try:
            items = _read_json_list(root / RECOMMEND_LIST_FILE)
        except (OSError, ValueError) as e:
            raise RecommendFetchError(f"failed to read recommend list of {source.url}: {e}") from e

        result = []
        for item in items:
            if isinstance(item, str):
                result.append(item)
            elif isinstance(item, dict) and item.get("appid"):
                result.append(str(item["appid"]))
        return result

    def remove(self, source: AppStoreMetadata) -> None:
        if not self._is_remote(source.url):
            return
        target = self.store_path_for(source.url)
        if target.exists() and self.storage_dir in target.parents:
            shutil.rmtree(target)
            logger.info(f"Removed downloaded app store content: {target}")
