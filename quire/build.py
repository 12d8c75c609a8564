"""Site generation.

A :class:`Site` holds the configured extensions, filters, computed fields
and lifecycle hooks. :meth:`Site.build` runs one full generation:

1. ``before`` hooks
2. load global data and pages
3. evaluate computed data (draft resolution happens here)
4. route pages to URLs and output paths
5. build collections, render, write
6. passthrough copy
7. ``after`` hooks
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment

from quire.assets import Extension, default_extensions
from quire.collection import build_collections
from quire.config import QuireSettings, RunMode
from quire.content import (
    PAGE_FORMATS,
    ComputedData,
    ComputedField,
    Page,
    default_url,
    load_global_data,
    load_page,
    normalize_url,
    output_path_for,
)
from quire.drafts import EXCLUDE_KEY, apply_run_mode, resolve_exclusion, resolve_permalink
from quire.templating import apply_layouts, create_environment, render_markdown, render_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildContext:
    settings: QuireSettings
    run_mode: RunMode = RunMode.BUILD

    @property
    def drafts_enabled(self) -> bool:
        return self.settings.build_drafts


@dataclass
class BuildResult:
    context: BuildContext
    written: list[Path] = field(default_factory=list)
    copied: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    elapsed: float = 0.0


class Site:
    def __init__(self, settings: QuireSettings, run_mode: RunMode = RunMode.BUILD) -> None:
        run_mode = RunMode(run_mode)
        # Drafts are decided once, here; every build reads them from the context.
        self.context = BuildContext(settings=apply_run_mode(settings, run_mode), run_mode=run_mode)

        self.extensions: dict[str, Extension] = default_extensions(self.context.settings)
        self.filters: dict[str, Callable[..., Any]] = {}
        self.shortcodes: dict[str, Callable[..., Any]] = {}
        self.computed = ComputedData()
        self.computed.add("permalink", lambda data, ctx: resolve_permalink(data, ctx.drafts_enabled))
        self.computed.add(EXCLUDE_KEY, lambda data, ctx: resolve_exclusion(data, ctx.drafts_enabled))
        self._hooks: dict[str, list[Callable[..., Any]]] = {"before": [], "after": []}

    @property
    def settings(self) -> QuireSettings:
        return self.context.settings

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in self._hooks:
            raise ValueError(f"Unknown event {event!r}; expected one of {sorted(self._hooks)}")
        self._hooks[event].append(handler)

    def add_extension(self, extension: Extension) -> None:
        self.extensions[extension.name] = extension

    def add_filter(self, name: str, func: Callable[..., Any]) -> None:
        self.filters[name] = func

    def add_shortcode(self, name: str, func: Callable[..., Any]) -> None:
        self.shortcodes[name] = func

    def add_computed(self, key: str, func: ComputedField) -> None:
        self.computed.add(key, func)

    def discover(self, settings: QuireSettings | None = None) -> list[Path]:
        """Template files under the input directory, sorted."""
        settings = settings or self.settings
        input_dir = settings.abs_input_dir
        if not input_dir.is_dir():
            raise FileNotFoundError(f"Missing input directory: {input_dir}")

        formats = {fmt.lower() for fmt in settings.template_formats}
        skipped_dirs = [settings.abs_includes_dir, settings.abs_data_dir, settings.abs_output_dir]
        found = []
        for path in input_dir.rglob("*"):
            if not path.is_file():
                continue
            if any(part.startswith(".") for part in path.relative_to(input_dir).parts):
                continue
            if any(path.is_relative_to(skipped) for skipped in skipped_dirs):
                continue
            if path.suffix.lstrip(".").lower() in formats:
                found.append(path)
        return sorted(found)

    def build(self) -> BuildResult:
        started = time.perf_counter()
        context = self._run_before_hooks()
        settings = context.settings
        result = BuildResult(context=context)

        sources = self.discover(settings)
        self._prepare_output(settings)

        global_data = load_global_data(settings)
        pages = [load_page(path, settings, global_data) for path in sources]
        for page in pages:
            page.computed = self.computed.evaluate(page.front_matter, context)

        env = create_environment(settings, filters=self.filters, shortcodes=self.shortcodes)
        routed = self._route(pages, env, settings, result)
        collections = build_collections(routed, settings)

        for page in routed:
            output = self._render(page, env, settings, collections)
            output_path = page.output_path
            if output is None or output_path is None:
                continue
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(output, encoding="utf-8")
            result.written.append(output_path)
            logger.debug("Wrote %s -> %s", page.relative_path, output_path)

        result.copied = self._passthrough_copy(settings)
        result.elapsed = time.perf_counter() - started

        logger.info(
            "Wrote %d files and copied %d in %.2fs (drafts %s)",
            len(result.written),
            len(result.copied),
            result.elapsed,
            "on" if context.drafts_enabled else "off",
        )
        for handler in self._hooks["after"]:
            handler(result)
        return result

    def _run_before_hooks(self) -> BuildContext:
        context = self.context
        for handler in self._hooks["before"]:
            replacement = handler(context)
            if replacement is not None:
                context = replacement
        return context

    def _prepare_output(self, settings: QuireSettings) -> None:
        output_dir = settings.abs_output_dir.resolve()
        if output_dir == settings.root.resolve() or settings.abs_input_dir.resolve().is_relative_to(output_dir):
            raise ValueError(f"Output directory {output_dir} would overwrite the site sources")
        if settings.clean_output and output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

    def _page_context(self, page: Page, collections: dict[str, list[Page]] | None = None) -> dict[str, Any]:
        return {
            **page.data,
            "page": page.page_info(),
            "collections": collections or {},
        }

    def _route(self, pages: list[Page], env: Environment, settings: QuireSettings, result: BuildResult) -> list[Page]:
        routed: list[Page] = []
        claimed: dict[Path, Page] = {}
        for page in pages:
            permalink = page.permalink
            if permalink is False:
                result.skipped.append(page.input_path)
                if page.front_matter.get("draft"):
                    logger.debug("Skipping draft %s", page.relative_path)
                continue

            if permalink:
                permalink = str(permalink)
                if "{{" in permalink or "{%" in permalink:
                    permalink = render_string(env, permalink, self._page_context(page)).strip()
                page.url = normalize_url(permalink)
            else:
                extension = self.extensions.get(page.format)
                page.url = default_url(page.relative_path, extension.output_extension if extension else None)

            page.output_path = output_path_for(page.url, settings.abs_output_dir)
            if page.output_path in claimed:
                raise ValueError(
                    f"Output conflict: {claimed[page.output_path].input_path} and {page.input_path} "
                    f"both write {page.output_path}"
                )
            claimed[page.output_path] = page
            routed.append(page)
        return routed

    def _render(
        self,
        page: Page,
        env: Environment,
        settings: QuireSettings,
        collections: dict[str, list[Page]],
    ) -> str | None:
        if not page.is_template:
            extension = self.extensions.get(page.format)
            if extension is None:
                return page.body
            return extension.compile(page.body, page.input_path)

        context = self._page_context(page, collections)
        engine = settings.markdown_template_engine if page.format == "md" else settings.html_template_engine

        content = page.body
        if engine == "jinja":
            content = render_string(env, content, context)
        if page.format == "md":
            content = render_markdown(content)
        return apply_layouts(env, content, context)

    def _passthrough_copy(self, settings: QuireSettings) -> list[Path]:
        owned = {f".{name}" for name in self.extensions if name in settings.template_formats}
        owned.update(f".{fmt}" for fmt in PAGE_FORMATS if fmt in settings.template_formats)
        copied: list[Path] = []

        for entry in settings.passthrough_copy:
            if any(char in entry for char in "*?["):
                sources = sorted(settings.root.glob(entry))
            else:
                sources = [settings.resolve(entry)]

            for source in sources:
                if not source.exists():
                    logger.warning("Passthrough path %s does not exist", source)
                    continue
                files = sorted(p for p in source.rglob("*") if p.is_file()) if source.is_dir() else [source]
                for path in files:
                    if path.suffix.lower() in owned:
                        continue
                    destination = settings.abs_output_dir / self._passthrough_target(path, settings)
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(path, destination)
                    copied.append(destination)
        return copied

    @staticmethod
    def _passthrough_target(path: Path, settings: QuireSettings) -> Path:
        for base in (settings.abs_input_dir, settings.root):
            if path.is_relative_to(base):
                return path.relative_to(base)
        return Path(path.name)
