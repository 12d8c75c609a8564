"""Pages: loading source files and mapping them to URLs."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

import frontmatter
import yaml

from quire.drafts import EXCLUDE_KEY

if TYPE_CHECKING:
    from quire.build import BuildContext
    from quire.config import QuireSettings

logger = logging.getLogger(__name__)

PAGE_FORMATS = frozenset({"md", "njk", "html"})


@dataclass
class Page:
    input_path: Path
    relative_path: PurePosixPath
    format: str
    front_matter: dict[str, Any]
    body: str
    computed: dict[str, Any] = field(default_factory=dict)
    url: str | None = None
    output_path: Path | None = None

    @property
    def data(self) -> dict[str, Any]:
        """Authored data with computed values layered on top."""
        return {**self.front_matter, **self.computed}

    @property
    def is_template(self) -> bool:
        return self.format in PAGE_FORMATS

    @property
    def permalink(self) -> Any:
        return self.data.get("permalink")

    @property
    def routable(self) -> bool:
        return self.permalink is not False

    @property
    def excluded(self) -> bool:
        return bool(self.data.get(EXCLUDE_KEY))

    @property
    def file_slug(self) -> str:
        stem = self.relative_path.stem
        if stem == "index":
            return self.relative_path.parent.name
        return stem

    @property
    def date(self) -> datetime:
        return coerce_datetime(self.front_matter.get("date")) or datetime.fromtimestamp(self.input_path.stat().st_mtime)

    def tags(self) -> list[str]:
        tags = self.data.get("tags") or []
        if isinstance(tags, str):
            return [tags]
        return [str(tag) for tag in tags]

    def page_info(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "input_path": str(self.input_path),
            "file_slug": self.file_slug,
            "output_path": str(self.output_path) if self.output_path else None,
            "date": self.date,
        }


def coerce_datetime(value: Any) -> datetime | None:
    """Naive local datetime for a front-matter date, so all pages compare."""
    if isinstance(value, str) and value.strip():
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return None


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from a template body.

    Malformed YAML raises; a page with broken front matter is a build error.
    """
    parsed = frontmatter.loads(text)
    return dict(parsed.metadata), parsed.content


def load_page(path: Path, settings: QuireSettings, global_data: Mapping[str, Any] | None = None) -> Page:
    fmt = path.suffix.lstrip(".").lower()
    text = path.read_text(encoding="utf-8")
    relative_path = PurePosixPath(path.relative_to(settings.abs_input_dir).as_posix())

    front_matter: dict[str, Any] = dict(global_data or {})
    if fmt in PAGE_FORMATS:
        metadata, body = split_front_matter(text)
        front_matter.update(metadata)
    else:
        body = text

    return Page(
        input_path=path,
        relative_path=relative_path,
        format=fmt,
        front_matter=front_matter,
        body=body,
    )


def load_global_data(settings: QuireSettings) -> dict[str, Any]:
    """Load ``_data/*.json`` and ``_data/*.y[a]ml`` keyed by file stem."""
    data_dir = settings.abs_data_dir
    global_data: dict[str, Any] = {}
    if not data_dir.is_dir():
        return global_data

    for path in sorted(data_dir.iterdir()):
        suffix = path.suffix.lower()
        if suffix == ".json":
            global_data[path.stem] = json.loads(path.read_text(encoding="utf-8"))
        elif suffix in {".yaml", ".yml"}:
            global_data[path.stem] = yaml.safe_load(path.read_text(encoding="utf-8"))
        else:
            continue
        logger.debug("Loaded global data %s", path.name)
    return global_data


def default_url(relative_path: PurePosixPath, output_extension: str | None = None) -> str:
    """URL a page gets when it sets no permalink.

    ``index.md`` -> ``/``, ``posts/a.md`` -> ``/posts/a/``; non-page files
    keep their path with *output_extension* swapped in.
    """
    if relative_path.suffix.lstrip(".") in PAGE_FORMATS:
        parts = list(relative_path.parent.parts)
        if relative_path.stem != "index":
            parts.append(relative_path.stem)
        return "/" + "".join(f"{part}/" for part in parts)

    if output_extension:
        relative_path = relative_path.with_suffix(f".{output_extension}")
    return f"/{relative_path.as_posix()}"


def normalize_url(permalink: str) -> str:
    url = permalink.strip()
    if not url.startswith("/"):
        url = f"/{url}"
    return url


def output_path_for(url: str, output_dir: Path) -> Path:
    relative = url.lstrip("/")
    if not relative or url.endswith("/"):
        return output_dir / relative / "index.html"
    return output_dir / relative


ComputedField = Callable[[Mapping[str, Any], "BuildContext"], Any]


class ComputedData:
    """Fields derived per page from its authored data.

    Evaluated once per page, after authored and global data are loaded and
    before output routing. Every field sees only authored data.
    """

    def __init__(self) -> None:
        self._fields: dict[str, ComputedField] = {}

    def add(self, key: str, func: ComputedField) -> None:
        self._fields[key] = func

    def keys(self) -> list[str]:
        return list(self._fields)

    def evaluate(self, data: Mapping[str, Any], context: BuildContext) -> dict[str, Any]:
        return {key: func(data, context) for key, func in self._fields.items()}
