"""Collections: grouped page listings exposed to templates as ``collections``."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from quire.config import QuireSettings
from quire.content import Page


def _sort_key(page: Page) -> tuple:
    return (page.date, str(page.input_path))


def collectable(pages: Iterable[Page]) -> list[Page]:
    """Routable, non-excluded pages in date order."""
    return sorted((page for page in pages if page.routable and not page.excluded), key=_sort_key)


def filter_by_glob(pages: Iterable[Page], pattern: str, root: Path) -> list[Page]:
    matches = {path.resolve() for path in root.glob(pattern)}
    return [page for page in pages if page.input_path.resolve() in matches]


def build_collections(pages: Iterable[Page], settings: QuireSettings) -> dict[str, list[Page]]:
    """Return ``all``, one collection per tag, and the configured glob collections."""
    members = collectable(pages)
    collections: dict[str, list[Page]] = defaultdict(list)
    collections["all"] = list(members)

    for page in members:
        for tag in page.tags():
            if tag != "all":
                collections[tag].append(page)

    for name, pattern in settings.collections.items():
        collections[name] = filter_by_glob(members, pattern, settings.root)

    return dict(collections)
