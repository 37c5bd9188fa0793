"""Tests for catalog filtering."""

import itertools

import pytest

from composestore.appstore.catalog import (
    filter_by_author_type,
    filter_by_category,
    filter_by_store_app_ids,
    filter_catalog,
    store_info_list,
)
from composestore.appstore.exceptions import RecommendFetchError
from composestore.appstore.models import ComposeApp


@pytest.fixture
def media_catalog(compose_doc):
    return {
        "x": ComposeApp(compose_doc("x", category="Media", author="X", developer="x"), store_app_id="x"),
        "y": ComposeApp(compose_doc("y", category="Media", author="someone", developer="Y"), store_app_id="y"),
    }


@pytest.fixture
def mixed_catalog(compose_doc):
    return {
        "jellyfin": ComposeApp(
            compose_doc("jellyfin", category="Media", author="Jellyfin", developer="Jellyfin"),
            store_app_id="jellyfin",
        ),
        "plex": ComposeApp(
            compose_doc("plex", category="media", author="someone", developer="Plex"),
            store_app_id="plex",
        ),
        "nginx": ComposeApp(
            compose_doc("nginx", category="Network", author="CasaOS Team", developer="Nginx"),
            store_app_id="nginx",
        ),
        "gitea": ComposeApp(
            compose_doc("gitea", category="Developer", author="Gitea", developer="gitea"),
            store_app_id="gitea",
        ),
        "broken": ComposeApp({"name": "broken"}, store_app_id="broken"),
    }


def test_media_scenario(media_catalog):
    for category in ("media", "MEDIA", "Media"):
        assert set(filter_catalog(media_catalog, category=category)) == {"x", "y"}

    result = filter_catalog(media_catalog, category="media", author_type="official")
    assert list(result) == ["x"]


def test_empty_category_is_identity(mixed_catalog):
    assert filter_by_category(mixed_catalog, "") is mixed_catalog
    assert filter_catalog(mixed_catalog, category="") == mixed_catalog


def test_category_drops_entries_without_store_info(mixed_catalog):
    result = filter_by_category(mixed_catalog, "media")
    assert list(result) == ["jellyfin", "plex"]
    assert "broken" not in filter_by_category(mixed_catalog, "Media")


def test_author_type_filters(mixed_catalog):
    assert list(filter_by_author_type(mixed_catalog, "official")) == ["jellyfin", "gitea"]
    assert list(filter_by_author_type(mixed_catalog, "by_casaos")) == ["nginx"]
    assert list(filter_by_author_type(mixed_catalog, "Community")) == ["plex"]


@pytest.mark.parametrize("author_type", ["unknown", "", "offic", "admin", "official!"])
def test_unknown_author_type_yields_empty(mixed_catalog, author_type):
    assert filter_by_author_type(mixed_catalog, author_type) == {}
    assert filter_catalog(mixed_catalog, author_type=author_type) == {}


def test_unknown_author_type_is_logged(mixed_catalog, caplog):
    with caplog.at_level("WARNING"):
        filter_by_author_type(mixed_catalog, "nobody")
    assert "unknown author type" in caplog.text


@pytest.mark.parametrize("category,author_type", list(itertools.product(
    ["media", "network", "developer", "nothing"],
    ["official", "by_casaos", "community"],
)))
def test_category_and_author_type_commute(mixed_catalog, category, author_type):
    one = filter_by_author_type(filter_by_category(mixed_catalog, category), author_type)
    other = filter_by_category(filter_by_author_type(mixed_catalog, author_type), category)
    assert set(one) == set(other)


def test_filters_never_widen(mixed_catalog):
    narrowed = filter_catalog(mixed_catalog, category="media")
    assert set(filter_catalog(narrowed, author_type="official")) <= set(narrowed)


def test_filter_by_store_app_ids_keeps_catalog_order(mixed_catalog):
    result = filter_by_store_app_ids(mixed_catalog, ["gitea", "jellyfin", "missing"])
    assert list(result) == ["jellyfin", "gitea"]


def test_recommend_filter(mixed_catalog):
    result = filter_catalog(
        mixed_catalog,
        recommend=True,
        recommend_source=lambda: ["nginx", "plex"],
    )
    assert list(result) == ["plex", "nginx"]


def test_recommend_source_not_called_unless_requested(mixed_catalog):
    def fail():
        raise AssertionError("should not be called")

    assert filter_catalog(mixed_catalog, recommend=False, recommend_source=fail) == mixed_catalog


def test_recommend_fetch_failure_propagates(mixed_catalog):
    def fail():
        raise RecommendFetchError("recommend list unavailable")

    with pytest.raises(RecommendFetchError):
        filter_catalog(mixed_catalog, recommend=True, recommend_source=fail)


def test_catalog_is_not_mutated(mixed_catalog):
    before = dict(mixed_catalog)
    filter_catalog(mixed_catalog, category="media", author_type="official")
    assert mixed_catalog == before


def test_store_info_list_skips_broken_entries(mixed_catalog):
    infos = store_info_list(mixed_catalog)
    assert "broken" not in infos
    assert infos["nginx"].category == "Network"
    assert infos["nginx"].apps is not None


@pytest.mark.parametrize("service_extension", ["oops", 42, ["a", "b"]])
def test_store_info_list_skips_malformed_service_extension(compose_doc, service_extension):
    bad_doc = compose_doc("bad")
    bad_doc["services"]["bad"]["x-casaos"] = service_extension
    catalog = {
        "good": ComposeApp(compose_doc("good"), store_app_id="good"),
        "bad": ComposeApp(bad_doc, store_app_id="bad"),
    }

    assert list(store_info_list(catalog)) == ["good"]
    assert list(filter_by_category(catalog, "media")) == ["good", "bad"]
