"""Data models for the app store catalog"""

import copy
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from composestore.appstore.exceptions import StoreInfoError

logger = logging.getLogger(__name__)

# Compose extension key carrying the store metadata of an app
STORE_INFO_EXTENSION = "x-casaos"

# Author name marking apps packaged by the CasaOS team
CASAOS_TEAM_AUTHOR = "CasaOS Team"


class StoreAppAuthorType(str, Enum):
    """Who packaged a store app"""
    OFFICIAL = "official"
    BY_CASAOS = "by_casaos"
    COMMUNITY = "community"
    UNKNOWN = "unknown"


# Accepted spellings of each known author type, after lower-casing
AUTHOR_TYPE_ALIASES = {
    "official": StoreAppAuthorType.OFFICIAL,
    "by_casaos": StoreAppAuthorType.BY_CASAOS,
    "bycasaos": StoreAppAuthorType.BY_CASAOS,
    "community": StoreAppAuthorType.COMMUNITY,
}


def parse_author_type(value: Optional[str]) -> StoreAppAuthorType:
    """
    Map a requested author type onto the closed enumeration

    The value is lower-cased and trimmed, then matched exactly against
    ``AUTHOR_TYPE_ALIASES``, so ``Official``, ``ByCasaos`` and ``by_casaos``
    are all recognized. Anything else is ``UNKNOWN``.
    """
    if not value:
        return StoreAppAuthorType.UNKNOWN
    return AUTHOR_TYPE_ALIASES.get(value.strip().lower(), StoreAppAuthorType.UNKNOWN)


def _localized(value: Any) -> Dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, str):
        return {"en_us": value}
    return value


class AppStoreMetadata(BaseModel):
    """A registered app store source"""
    id: Optional[int] = Field(default=None, description="Position in the registry list")
    url: str = Field(description="Source URL, compared case-insensitively")
    store_path: Optional[str] = Field(default=None, description="Local directory holding the store content")
    name: Optional[str] = Field(default=None, description="Human-readable name")


class StoreInfo(BaseModel):
    """Descriptive store metadata projected from a compose app"""
    model_config = ConfigDict(extra="ignore")

    store_app_id: Optional[str] = None
    title: Dict[str, str] = Field(default_factory=dict)
    description: Dict[str, str] = Field(default_factory=dict)
    tagline: Dict[str, str] = Field(default_factory=dict)
    author: str = ""
    developer: str = ""
    category: str = ""
    icon: str = ""
    thumbnail: str = ""
    screenshot_link: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    architectures: List[str] = Field(default_factory=list)
    main: Optional[str] = None
    index: str = "/"
    port_map: str = ""
    scheme: str = "http"
    apps: Optional[Dict[str, Dict[str, Any]]] = None

    @field_validator("title", "description", "tagline", mode="before")
    @classmethod
    def coerce_localized(cls, v: Any) -> Dict[str, str]:
        """Accept a plain string as the en_us text"""
        return _localized(v)

    @field_validator("port_map", mode="before")
    @classmethod
    def coerce_port_map(cls, v: Any) -> str:
        return "" if v is None else str(v)


class CategoryInfo(BaseModel):
    """A catalog category with its member count"""
    id: Optional[int] = None
    name: str = ""
    font: str = ""
    description: str = ""
    count: Optional[int] = None


class ComposeApp:
    """
    A compose app: a parsed compose document plus the id it is known by

    The document is kept as loaded; store metadata lives in its ``x-casaos``
    extension at the top level and, per service, in each service's own
    ``x-casaos`` block.
    """

    def __init__(self, document: Dict[str, Any], store_app_id: Optional[str] = None):
        if not isinstance(document, dict):
            raise TypeError("compose document must be a mapping")
        self._document = document
        self.store_app_id = store_app_id

    @classmethod
    def from_yaml(cls, text: str, store_app_id: Optional[str] = None) -> "ComposeApp":
        """Parse a compose file

        Raises:
            ValueError: If the text is not a YAML mapping
        """
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid compose YAML: {e}") from e
        if not isinstance(document, dict):
            raise ValueError("compose file is not a mapping")
        return cls(document, store_app_id=store_app_id)

    @property
    def name(self) -> str:
        return self._document.get("name") or self.store_app_id or ""

    @property
    def services(self) -> Dict[str, Any]:
        services = self._document.get("services")
        return services if isinstance(services, dict) else {}

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the compose document"""
        return copy.deepcopy(self._document)

    def store_info(self, include_apps: bool = False) -> StoreInfo:
        """
        Project the store metadata of this app

        Args:
            include_apps: Also collect each service's ``x-casaos`` block

        Returns:
            StoreInfo, with ``store_app_id`` falling back to the catalog id

        Raises:
            StoreInfoError: If the extension is missing or malformed
        """
        extension = self._document.get(STORE_INFO_EXTENSION)
        if extension is None:
            raise StoreInfoError(f"{STORE_INFO_EXTENSION} extension not found in {self.name!r}")
        if not isinstance(extension, dict):
            raise StoreInfoError(f"{STORE_INFO_EXTENSION} extension of {self.name!r} is not a mapping")

        data = dict(extension)
        if not data.get("store_app_id") and self.store_app_id:
            data["store_app_id"] = self.store_app_id

        if include_apps:
            apps: Dict[str, Dict[str, Any]] = {}
            for service_name, service in self.services.items():
                if not isinstance(service, dict):
                    continue
                service_extension = service.get(STORE_INFO_EXTENSION) or {}
                if not isinstance(service_extension, dict):
                    raise StoreInfoError(
                        f"{STORE_INFO_EXTENSION} extension of service {service_name!r} "
                        f"in {self.name!r} is not a mapping"
                    )
                apps[service_name] = dict(service_extension)
            data["apps"] = apps
        else:
            data.pop("apps", None)

        try:
            return StoreInfo.model_validate(data)
        except ValidationError as e:
            raise StoreInfoError(f"invalid store info in {self.name!r}: {e}") from e

    def author_type(self) -> StoreAppAuthorType:
        """Classify who packaged this app; UNKNOWN when store info is unusable"""
        try:
            info = self.store_info(include_apps=False)
        except StoreInfoError:
            return StoreAppAuthorType.UNKNOWN

        author = info.author.strip().lower()
        if not author:
            return StoreAppAuthorType.UNKNOWN
        if author == info.developer.strip().lower():
            return StoreAppAuthorType.OFFICIAL
        if author == CASAOS_TEAM_AUTHOR.lower():
            return StoreAppAuthorType.BY_CASAOS
        return StoreAppAuthorType.COMMUNITY

    def __repr__(self) -> str:
        return f"ComposeApp(name={self.name!r}, store_app_id={self.store_app_id!r})"


def try_store_info(app: ComposeApp, include_apps: bool = False) -> Optional[StoreInfo]:
    """Store info of ``app``, or None (logged) when it cannot be derived"""
    try:
        return app.store_info(include_apps=include_apps)
    except StoreInfoError as e:
        logger.error(f"failed to get store info: {e}")
        return None
