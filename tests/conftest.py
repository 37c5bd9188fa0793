"""Shared fixtures: on-disk app stores and compose documents."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import yaml

from composestore.core.config import reset_config


def _compose_doc(
    name: str,
    category: str = "Media",
    author: str = "Someone",
    developer: str = "Someone Else",
    store_app_id: Optional[str] = None,
    title: Optional[str] = None,
) -> Dict[str, Any]:
    extension: Dict[str, Any] = {
        "author": author,
        "developer": developer,
        "category": category,
        "title": {"en_us": title or name.capitalize()},
        "main": name,
        "port_map": "8080",
    }
    if store_app_id:
        extension["store_app_id"] = store_app_id
    return {
        "name": name,
        "services": {
            name: {
                "image": f"example/{name}:latest",
                "x-casaos": {"envs": [], "ports": [{"container": "80"}]},
            }
        },
        "x-casaos": extension,
    }


@pytest.fixture
def compose_doc():
    """Factory for compose documents carrying an x-casaos extension"""
    return _compose_doc


@pytest.fixture
def make_store(tmp_path):
    """Factory writing an app store directory and returning its root"""

    def _make_store(
        name: str,
        apps: Dict[str, Dict[str, Any]],
        categories: Optional[List[Dict[str, str]]] = None,
        recommend: Optional[List[str]] = None,
    ) -> Path:
        root = tmp_path / name
        for store_app_id, doc in apps.items():
            app_dir = root / "Apps" / store_app_id
            app_dir.mkdir(parents=True)
            (app_dir / "docker-compose.yml").write_text(yaml.safe_dump(doc), encoding="utf-8")
        (root / "Apps").mkdir(parents=True, exist_ok=True)
        if categories is not None:
            (root / "category-list.json").write_text(json.dumps(categories), encoding="utf-8")
        if recommend is not None:
            (root / "recommend-list.json").write_text(
                json.dumps([{"appid": app_id} for app_id in recommend]), encoding="utf-8"
            )
        return root

    return _make_store


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()
