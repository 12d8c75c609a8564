"""Jinja2 environment, Markdown rendering and layout chaining."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import frontmatter
import markdown
from babel.dates import format_date
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from quire.config import QuireSettings
from quire.navigation import breadcrumbs, navigation, navigation_to_html

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["extra", "sane_lists", "toc"]
LAYOUT_SUFFIXES = (".html", ".njk")


class FrontMatterLoader(FileSystemLoader):
    """Loads layouts with their front matter stripped."""

    def get_source(self, environment: Environment, template: str) -> tuple[str, str | None, Callable[[], bool] | None]:
        source, filename, uptodate = super().get_source(environment, template)
        return frontmatter.loads(source).content, filename, uptodate


def year() -> str:
    return str(datetime.now().year)


def make_uppercase(value: Any) -> str:
    return str(value).upper()


def make_post_date(locale: str) -> Callable[[date | datetime], str]:
    def post_date(value: date | datetime) -> str:
        """Medium-length localized date, e.g. ``Oct 19, 2026``."""
        return format_date(value, format="medium", locale=locale)

    return post_date


def create_environment(
    settings: QuireSettings,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    shortcodes: Mapping[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Build the template environment.

    Layouts and includes load from the includes directory first and the
    input directory second.
    """
    env = Environment(
        loader=FrontMatterLoader([settings.abs_includes_dir, settings.abs_input_dir]),
        autoescape=select_autoescape(enabled_extensions=("html", "njk"), default_for_string=False),
        keep_trailing_newline=True,
    )
    env.filters.update(
        make_uppercase=make_uppercase,
        post_date=make_post_date(settings.date_locale),
        navigation=navigation,
        breadcrumbs=breadcrumbs,
        navigation_to_html=navigation_to_html,
    )
    env.globals["year"] = year
    if filters:
        env.filters.update(filters)
    if shortcodes:
        env.globals.update(shortcodes)
    return env


def render_string(env: Environment, source: str, context: Mapping[str, Any]) -> str:
    return env.from_string(source).render(context)


def render_markdown(source: str) -> str:
    return markdown.markdown(source, extensions=MARKDOWN_EXTENSIONS)


def _layout_name(env: Environment, name: str) -> str:
    if Path(name).suffix:
        return name
    templates = set(env.list_templates())
    for suffix in LAYOUT_SUFFIXES:
        if f"{name}{suffix}" in templates:
            return f"{name}{suffix}"
    return name


def _layout_data(env: Environment, name: str) -> dict[str, Any]:
    source, _filename, _uptodate = FileSystemLoader.get_source(env.loader, env, name)  # type: ignore[arg-type]
    return dict(frontmatter.loads(source).metadata)


def apply_layouts(env: Environment, content: str, context: Mapping[str, Any]) -> str:
    """Wrap rendered *content* in its layout chain.

    Each layout may name its own parent ``layout`` in front matter. Page data
    wins over layout data.
    """
    layout = context.get("layout")
    seen: list[str] = []
    data = dict(context)
    while layout:
        name = _layout_name(env, str(layout))
        if name in seen:
            raise ValueError(f"Layout cycle: {' -> '.join([*seen, name])}")
        seen.append(name)

        layout_data = _layout_data(env, name)
        data = {**layout_data, **data, "content": Markup(content)}
        content = env.get_template(name).render(data)
        layout = layout_data.get("layout")
    return content
