"""Tests for the composestore command line."""

import json
import logging

import pytest
from click.testing import CliRunner

from composestore.cli.main import cli


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_composestore", False):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def store_env(monkeypatch, tmp_path, make_store, compose_doc):
    main = make_store(
        "main",
        {
            "Jellyfin": compose_doc("jellyfin", category="Media", author="Jellyfin", developer="Jellyfin"),
            "Nginx": compose_doc("nginx", category="Network", author="CasaOS Team"),
        },
        categories=[
            {"name": "Media", "font": "movie", "description": "Media"},
            {"name": "Network", "font": "lan", "description": "Network"},
        ],
    )
    monkeypatch.setenv("COMPOSESTORE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("COMPOSESTORE_APPS_DIR", str(tmp_path / "installed"))
    monkeypatch.setenv("COMPOSESTORE_DEFAULT_APPSTORE_URLS", json.dumps([str(main)]))
    return main


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "composestore" in result.output


def test_categories(runner, store_env):
    result = runner.invoke(cli, ["categories"])
    assert result.exit_code == 0, result.output
    assert "All" in result.output
    assert "Media" in result.output
    assert "Network" in result.output


def test_apps_filtered_by_author_type(runner, store_env):
    result = runner.invoke(cli, ["apps", "--author-type", "by_casaos"])
    assert result.exit_code == 0, result.output
    assert "Nginx" in result.output
    assert "Jellyfin" not in result.output


def test_appstore_list(runner, store_env):
    result = runner.invoke(cli, ["appstore", "list"])
    assert result.exit_code == 0, result.output
    assert "App Stores" in result.output


def test_register_and_unregister(runner, store_env, make_store, compose_doc):
    extra = make_store("extra", {"Gitea": compose_doc("gitea")})

    result = runner.invoke(cli, ["appstore", "register", str(extra)])
    assert result.exit_code == 0, result.output
    assert "App store registered" in result.output

    result = runner.invoke(cli, ["appstore", "register", str(extra)])
    assert "already registered" in result.output

    result = runner.invoke(cli, ["appstore", "unregister", "1"])
    assert result.exit_code == 0, result.output
    assert "unregistered" in result.output


def test_unregister_last_app_store_fails(runner, store_env):
    result = runner.invoke(cli, ["appstore", "unregister", "0"])
    assert result.exit_code == 1


def test_register_hopeless_url_fails(runner, store_env):
    result = runner.invoke(cli, ["appstore", "register", "ftp://example.com/store.zip"])
    assert result.exit_code == 1


def test_register_no_wait_still_completes(runner, store_env, make_store, compose_doc):
    extra = make_store("extra", {"Gitea": compose_doc("gitea")})

    result = runner.invoke(cli, ["appstore", "register", str(extra), "--no-wait"])
    assert result.exit_code == 0, result.output
    assert "started in the background" in result.output

    result = runner.invoke(cli, ["appstore", "register", str(extra)])
    assert "already registered" in result.output
