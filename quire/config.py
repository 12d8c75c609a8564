"""Settings for a quire site.

Values are resolved once at process entry, in priority order:

1. Environment variables (``QUIRE_<FIELD>``, plus ``BUILD_DRAFTS``)
2. ``quire.toml`` in the site root
3. Defaults

Everything downstream reads configuration through :class:`QuireSettings`;
nothing else looks at the environment.
"""

from __future__ import annotations

import tomllib
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = "quire.toml"

TemplateEngine = Literal["jinja", "none"]


class RunMode(str, Enum):
    """How the generator was invoked."""

    BUILD = "build"
    WATCH = "watch"
    SERVE = "serve"


class QuireSettings(BaseSettings):
    """Root configuration for a site build."""

    root: Path = Field(default_factory=Path.cwd, description="Site root; relative paths resolve against it")
    input_dir: Path = Field(default=Path("src"))
    output_dir: Path = Field(default=Path("dist"))
    # Both relative to input_dir.
    includes_dir: Path = Field(default=Path("_includes"))
    data_dir: Path = Field(default=Path("_data"))

    template_formats: list[str] = Field(default_factory=lambda: ["md", "njk", "html", "scss", "js", "json"])
    markdown_template_engine: TemplateEngine = "jinja"
    html_template_engine: TemplateEngine = "jinja"

    passthrough_copy: list[str] = Field(default_factory=lambda: ["src/assets"])
    watch_targets: list[str] = Field(
        default_factory=lambda: [
            "src/assets/**/*.{svg,webp,png,jpeg}",
            "src/assets/css/*.scss",
            "src/assets/js/*.js",
        ]
    )
    collections: dict[str, str] = Field(default_factory=lambda: {"posts": "src/posts/*.md"})

    js_entry: Path = Field(default=Path("src/assets/js/index.js"))
    js_target: str = "es2020"
    esbuild_binary: str = "esbuild"

    date_locale: str = "en_US"
    clean_output: bool = True

    host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("HOST", "host"))
    port: int = Field(default=8080, validation_alias=AliasChoices("PORT", "port"))
    watch_debounce: float = 0.3

    build_drafts: bool = Field(
        default=False,
        validation_alias=AliasChoices("BUILD_DRAFTS", "build_drafts"),
        description="Render drafts. Forced on for watch/serve runs.",
    )

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="QUIRE_",
        env_ignore_empty=True,
    )

    @classmethod
    def load(cls, root: Path | None = None) -> QuireSettings:
        """Load ``quire.toml`` from *root* and overlay environment variables."""
        root_path = (root if root is not None else Path.cwd()).resolve()
        config_file = root_path / CONFIG_FILENAME

        file_settings: dict[str, Any] = {}
        if config_file.is_file():
            with config_file.open("rb") as f:
                file_settings = tomllib.load(f)

        env_settings = cls().model_dump(exclude_unset=True)

        merged = {**file_settings, **env_settings, "root": root_path}
        return cls(**merged)

    def resolve(self, path: Path | str) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def abs_input_dir(self) -> Path:
        return self.resolve(self.input_dir)

    @property
    def abs_output_dir(self) -> Path:
        return self.resolve(self.output_dir)

    @property
    def abs_includes_dir(self) -> Path:
        return self.abs_input_dir / self.includes_dir

    @property
    def abs_data_dir(self) -> Path:
        return self.abs_input_dir / self.data_dir

    @property
    def abs_js_entry(self) -> Path:
        return self.resolve(self.js_entry)
