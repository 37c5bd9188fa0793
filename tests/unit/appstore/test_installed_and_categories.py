"""Tests for installed cross-referencing and category aggregation."""

from composestore.appstore.categories import aggregate_categories
from composestore.appstore.installed import installed_store_app_ids
from composestore.appstore.models import CategoryInfo, ComposeApp


class TestInstalledStoreAppIds:

    def test_collects_store_app_ids(self, compose_doc):
        installed = [
            ComposeApp(compose_doc("jellyfin", store_app_id="Jellyfin")),
            ComposeApp(compose_doc("plex", store_app_id="Plex")),
        ]
        assert installed_store_app_ids(installed) == ["Jellyfin", "Plex"]

    def test_skips_apps_without_store_info_or_id(self, compose_doc):
        installed = [
            ComposeApp({"name": "custom", "services": {}}),
            ComposeApp(compose_doc("manual")),
            ComposeApp(compose_doc("plex", store_app_id="Plex")),
        ]
        assert installed_store_app_ids(installed) == ["Plex"]

    def test_deduplicates(self, compose_doc):
        installed = [
            ComposeApp(compose_doc("a", store_app_id="Plex")),
            ComposeApp(compose_doc("b", store_app_id="Plex")),
        ]
        assert installed_store_app_ids(installed) == ["Plex"]

    def test_empty_inventory(self):
        assert installed_store_app_ids([]) == []


class TestAggregateCategories:

    def test_example(self):
        result = aggregate_categories({
            "B": CategoryInfo(name="B", count=3),
            "A": CategoryInfo(name="A", count=2),
        })
        assert [(c.name, c.count, c.id) for c in result] == [
            ("All", 5, 0),
            ("A", 2, 1),
            ("B", 3, 2),
        ]

    def test_all_category_shape(self):
        all_category = aggregate_categories({})[0]
        assert all_category.name == "All"
        assert all_category.font == "apps"
        assert all_category.description == "All apps"
        assert all_category.count == 0
        assert all_category.id == 0

    def test_absent_counts_count_as_zero(self):
        result = aggregate_categories({
            "Media": CategoryInfo(name="Media", count=4),
            "Tools": CategoryInfo(name="Tools"),
        })
        assert result[0].count == 4
        assert result[2].count is None

    def test_byte_order_sorting(self):
        result = aggregate_categories({
            name: CategoryInfo(name=name, count=1)
            for name in ["media", "Network", "Backup", "AI"]
        })
        assert [c.name for c in result] == ["All", "AI", "Backup", "Network", "media"]
        assert [c.id for c in result] == [0, 1, 2, 3, 4]

    def test_inputs_are_not_mutated(self):
        media = CategoryInfo(name="Media", count=1)
        aggregate_categories({"Media": media})
        assert media.id is None

    def test_non_ascii_names_sort_by_utf8_bytes(self):
        names = ["Zubehör", "Ärger", "Zebra", "éclair"]
        result = aggregate_categories({name: CategoryInfo(name=name, count=1) for name in names})
        expected = sorted(names, key=lambda n: n.encode("utf-8"))
        assert [c.name for c in result[1:]] == expected
