"""Tests for compose app store info and author type classification."""

import pytest

from composestore.appstore.exceptions import StoreInfoError
from composestore.appstore.models import (
    ComposeApp,
    StoreAppAuthorType,
    parse_author_type,
)


class TestParseAuthorType:

    @pytest.mark.parametrize("value,expected", [
        ("official", StoreAppAuthorType.OFFICIAL),
        ("Official", StoreAppAuthorType.OFFICIAL),
        ("by_casaos", StoreAppAuthorType.BY_CASAOS),
        ("ByCasaos", StoreAppAuthorType.BY_CASAOS),
        ("COMMUNITY", StoreAppAuthorType.COMMUNITY),
    ])
    def test_known_values(self, value, expected):
        assert parse_author_type(value) is expected

    @pytest.mark.parametrize("value", [
        "", None, "offic", "officials", "unknown", "casaos", "o_f-f_i-c_i-a_l", "commu_nity",
    ])
    def test_unknown_values(self, value):
        assert parse_author_type(value) is StoreAppAuthorType.UNKNOWN


class TestAuthorType:

    def test_official_when_author_is_developer(self, compose_doc):
        app = ComposeApp(compose_doc("jellyfin", author="Jellyfin", developer="jellyfin"))
        assert app.author_type() is StoreAppAuthorType.OFFICIAL

    def test_by_casaos(self, compose_doc):
        app = ComposeApp(compose_doc("nginx", author="CasaOS Team", developer="Nginx"))
        assert app.author_type() is StoreAppAuthorType.BY_CASAOS

    def test_community(self, compose_doc):
        app = ComposeApp(compose_doc("plex", author="someone", developer="Plex Inc"))
        assert app.author_type() is StoreAppAuthorType.COMMUNITY

    def test_unknown_without_author(self, compose_doc):
        app = ComposeApp(compose_doc("plex", author="", developer="Plex Inc"))
        assert app.author_type() is StoreAppAuthorType.UNKNOWN

    def test_unknown_without_store_info(self):
        app = ComposeApp({"name": "bare", "services": {}})
        assert app.author_type() is StoreAppAuthorType.UNKNOWN


class TestStoreInfo:

    def test_store_app_id_falls_back_to_catalog_id(self, compose_doc):
        app = ComposeApp(compose_doc("jellyfin"), store_app_id="Jellyfin")
        assert app.store_info().store_app_id == "Jellyfin"

    def test_extension_store_app_id_wins(self, compose_doc):
        app = ComposeApp(compose_doc("jellyfin", store_app_id="jellyfin-x"), store_app_id="Jellyfin")
        assert app.store_info().store_app_id == "jellyfin-x"

    def test_include_apps_collects_service_extensions(self, compose_doc):
        app = ComposeApp(compose_doc("jellyfin"))
        assert app.store_info(include_apps=False).apps is None
        apps = app.store_info(include_apps=True).apps
        assert list(apps) == ["jellyfin"]
        assert apps["jellyfin"]["ports"] == [{"container": "80"}]

    def test_plain_string_title_is_en_us(self, compose_doc):
        doc = compose_doc("jellyfin")
        doc["x-casaos"]["title"] = "Jellyfin"
        assert ComposeApp(doc).store_info().title == {"en_us": "Jellyfin"}

    def test_missing_extension_raises(self):
        with pytest.raises(StoreInfoError):
            ComposeApp({"name": "bare"}).store_info()

    def test_non_mapping_extension_raises(self):
        with pytest.raises(StoreInfoError):
            ComposeApp({"name": "bare", "x-casaos": "nope"}).store_info()

    def test_invalid_field_raises(self, compose_doc):
        doc = compose_doc("jellyfin")
        doc["x-casaos"]["tags"] = 42
        with pytest.raises(StoreInfoError):
            ComposeApp(doc).store_info()

    def test_to_dict_is_a_copy(self, compose_doc):
        app = ComposeApp(compose_doc("jellyfin"))
        copy = app.to_dict()
        copy["x-casaos"]["category"] = "Changed"
        assert app.store_info().category == "Media"


class TestFromYaml:

    def test_parses_mapping(self):
        app = ComposeApp.from_yaml("name: demo\nservices: {}\n", store_app_id="Demo")
        assert app.name == "demo"
        assert app.store_app_id == "Demo"

    def test_rejects_non_mapping(self):
        with pytest.raises(ValueError):
            ComposeApp.from_yaml("- a\n- b\n")

    def test_rejects_invalid_yaml(self):
        with pytest.raises(ValueError):
            ComposeApp.from_yaml("name: [unclosed\n")


def test_malformed_service_extension_raises(compose_doc):
    doc = compose_doc("jellyfin")
    doc["services"]["jellyfin"]["x-casaos"] = "oops"
    app = ComposeApp(doc)

    assert app.store_info(include_apps=False).category == "Media"
    with pytest.raises(StoreInfoError):
        app.store_info(include_apps=True)
