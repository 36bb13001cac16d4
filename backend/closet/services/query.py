"""Item filtering.

Predicates are applied in a fixed order (category, season, color, search)
and combined with AND. Matching is plain case-insensitive substring search;
there is no ranking, so the input order is preserved.
"""

from collections.abc import Iterable
from typing import Protocol, TypeVar

from closet.schemas.item import ItemFilter


class FilterableItem(Protocol):
    name: str
    category: str
    season: str
    color: str
    brand: str | None


ItemT = TypeVar("ItemT", bound=FilterableItem)


def _contains(haystack: str | None, needle: str) -> bool:
    if haystack is None:
        return False
    return needle.casefold() in haystack.casefold()


def matches_category(item: FilterableItem, category: str | None) -> bool:
    return category is None or item.category == category


def matches_season(item: FilterableItem, season: str | None) -> bool:
    return season is None or item.season == season


def matches_color(item: FilterableItem, color: str | None) -> bool:
    return color is None or _contains(item.color, color)


def matches_search(item: FilterableItem, search: str | None) -> bool:
    if search is None:
        return True
    return (
        _contains(item.name, search)
        or _contains(item.brand, search)
        or _contains(item.color, search)
    )


def filter_items(items: Iterable[ItemT], filters: ItemFilter | None = None) -> list[ItemT]:
    items = list(items)
    if filters is None:
        return items

    if filters.category is not None:
        items = [item for item in items if matches_category(item, filters.category)]
    if filters.season is not None:
        items = [item for item in items if matches_season(item, filters.season)]
    if filters.color is not None:
        items = [item for item in items if matches_color(item, filters.color)]
    if filters.search is not None:
        items = [item for item in items if matches_search(item, filters.search)]
    return items
