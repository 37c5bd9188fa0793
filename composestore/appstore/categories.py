"""Category aggregation"""

from typing import List, Mapping

from composestore.appstore.models import CategoryInfo

ALL_CATEGORY_NAME = "All"
ALL_CATEGORY_FONT = "apps"
ALL_CATEGORY_DESCRIPTION = "All apps"


def aggregate_categories(category_map: Mapping[str, CategoryInfo]) -> List[CategoryInfo]:
    """
    Build the category list shown to clients

    Categories are sorted by name in code point order, which equals the
    byte-wise order of their UTF-8 encoding. They are preceded by a synthetic
    "All" category whose count is the sum of the others (missing counts count
    as zero). Each entry's ``id`` is its position in the returned list, so
    "All" is always 0. Input objects are left untouched.
    """
    categories = sorted(category_map.values(), key=lambda c: c.name or "")

    total_count = sum(c.count for c in categories if c.count is not None)

    all_category = CategoryInfo(
        name=ALL_CATEGORY_NAME,
        font=ALL_CATEGORY_FONT,
        description=ALL_CATEGORY_DESCRIPTION,
        count=total_count,
    )

    return [
        category.model_copy(update={"id": i})
        for i, category in enumerate([all_category] + categories)
    ]
