"""Hierarchical navigation built from ``navigation`` front matter.

A page joins the menu with::

    navigation:
      key: about
      parent: home
      order: 2
      title: About us
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from markupsafe import Markup, escape

NAVIGATION_KEYS = ("navigation", "eleventyNavigation")


@dataclass
class NavEntry:
    key: str
    title: str
    url: str | None = None
    parent: str | None = None
    order: float | None = None
    children: list[NavEntry] = field(default_factory=list)


def _navigation_data(page: Any) -> Mapping[str, Any] | None:
    data = getattr(page, "data", page)
    for name in NAVIGATION_KEYS:
        nav = data.get(name)
        if isinstance(nav, Mapping) and nav.get("key"):
            return nav
    return None


def _sort_key(entry: NavEntry) -> tuple[bool, float, str]:
    return (entry.order is None, entry.order or 0, entry.title.lower())


def find_entries(pages: Iterable[Any]) -> dict[str, NavEntry]:
    entries: dict[str, NavEntry] = {}
    for page in pages:
        nav = _navigation_data(page)
        if nav is None:
            continue
        data = getattr(page, "data", page)
        key = str(nav["key"])
        order = nav.get("order")
        entries[key] = NavEntry(
            key=key,
            title=str(nav.get("title") or data.get("title") or key),
            url=getattr(page, "url", None) or data.get("url"),
            parent=str(nav["parent"]) if nav.get("parent") else None,
            order=float(order) if order is not None else None,
        )
    return entries


def build_tree(pages: Iterable[Any]) -> list[NavEntry]:
    """Link entries to their parents and return the sorted roots.

    An entry naming a parent that doesn't exist is treated as a root.
    """
    entries = find_entries(pages)
    roots: list[NavEntry] = []
    for entry in entries.values():
        parent = entries.get(entry.parent) if entry.parent else None
        if parent is None:
            roots.append(entry)
        else:
            parent.children.append(entry)

    for entry in entries.values():
        entry.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def navigation(pages: Iterable[Any], key: str | None = None) -> list[NavEntry]:
    """Children of *key*, or the top level when no key is given."""
    roots = build_tree(pages)
    if key is None:
        return roots

    stack = list(roots)
    while stack:
        entry = stack.pop()
        if entry.key == key:
            return entry.children
        stack.extend(entry.children)
    return []


def breadcrumbs(pages: Iterable[Any], key: str, include_self: bool = False) -> list[NavEntry]:
    entries = find_entries(pages)
    trail: list[NavEntry] = []
    seen: set[str] = set()
    current = entries.get(key)
    if current is not None and include_self:
        trail.append(current)
    while current is not None and current.parent and current.parent not in seen:
        seen.add(current.key)
        current = entries.get(current.parent)
        if current is not None:
            trail.append(current)
    trail.reverse()
    return trail


def navigation_to_html(entries: Iterable[NavEntry], active_url: str | None = None) -> Markup:
    items = []
    for entry in entries:
        current = ' aria-current="page"' if active_url and entry.url == active_url else ""
        if entry.url:
            link = f'<a href="{escape(entry.url)}"{current}>{escape(entry.title)}</a>'
        else:
            link = str(escape(entry.title))
        nested = str(navigation_to_html(entry.children, active_url)) if entry.children else ""
        items.append(f"<li>{link}{nested}</li>")
    if not items:
        return Markup("")
    return Markup(f"<ul>{''.join(items)}</ul>")
