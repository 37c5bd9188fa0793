"""
Compose app representations

A compose app is served either as its YAML document (the format clients
should use) or as a JSON envelope for debugging. Extension fields such as
``x-casaos`` are only guaranteed to round-trip through YAML.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import yaml

from composestore.appstore.exceptions import RepresentationError, StoreInfoError
from composestore.appstore.models import ComposeApp

logger = logging.getLogger(__name__)

MIME_APPLICATION_YAML = "application/yaml"
MIME_APPLICATION_JSON = "application/json"

DEBUG_JSON_WARNING = (
    f"!! JSON format is for debugging purpose only - use `Accept: {MIME_APPLICATION_YAML}` "
    "HTTP header to get YAML instead !!"
)


@dataclass(frozen=True)
class Representation:
    body: bytes
    media_type: str


def accepts_yaml(accept: Optional[str]) -> bool:
    """True when any media range of an Accept header is application/yaml"""
    if not accept:
        return False
    for media_range in accept.split(","):
        media_type = media_range.split(";", 1)[0].strip().lower()
        if media_type == MIME_APPLICATION_YAML:
            return True
    return False


def select_representation(app: ComposeApp, accept: Optional[str]) -> Representation:
    """
    Serialize ``app`` according to the requested content type

    Args:
        app: Compose app to serialize
        accept: Value of the Accept header, if any

    Returns:
        Representation with the body and its media type

    Raises:
        RepresentationError: If store info or serialization fails
    """
    if accepts_yaml(accept):
        try:
            body = yaml.safe_dump(app.to_dict(), sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as e:
            raise RepresentationError(f"failed to serialize {app.name!r} as YAML: {e}") from e
        return Representation(body=body.encode("utf-8"), media_type=MIME_APPLICATION_YAML)

    try:
        store_info = app.store_info(include_apps=False)
    except StoreInfoError as e:
        raise RepresentationError(str(e)) from e

    envelope = {
        "message": DEBUG_JSON_WARNING,
        "data": {
            "store_info": store_info.model_dump(mode="json"),
            "compose": app.to_dict(),
        },
    }
    try:
        body = json.dumps(envelope, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as e:
        raise RepresentationError(f"failed to serialize {app.name!r} as JSON: {e}") from e
    return Representation(body=body.encode("utf-8"), media_type=MIME_APPLICATION_JSON)
