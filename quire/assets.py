"""Stylesheet and script compilation.

Each extension turns a source file into output text, or returns ``None``
to write nothing for that file (Sass partials, non-entry scripts).
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import rcssmin
import sass

from quire.config import QuireSettings

logger = logging.getLogger(__name__)

CompileFunc = Callable[[str, Path], "str | None"]


@dataclass(frozen=True)
class Extension:
    name: str
    output_extension: str
    compile: CompileFunc


def compile_scss(source: str, input_path: Path) -> str | None:
    if input_path.stem.startswith("_"):
        return None

    css = sass.compile(
        string=source,
        include_paths=[str(input_path.parent)],
        output_style="expanded",
    )
    return rcssmin.cssmin(css)


def make_script_bundler(settings: QuireSettings) -> CompileFunc:
    entry = settings.abs_js_entry.resolve()

    def bundle_script(source: str, input_path: Path) -> str | None:
        if input_path.resolve() != entry:
            return None

        binary = shutil.which(settings.esbuild_binary)
        if binary is None:
            raise FileNotFoundError(f"Missing script bundler: {settings.esbuild_binary}")

        logger.debug("Bundling %s with %s", input_path, binary)
        result = subprocess.run(
            [
                binary,
                str(input_path),
                "--bundle",
                "--minify",
                f"--target={settings.js_target}",
                "--log-level=warning",
            ],
            cwd=settings.root,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    return bundle_script


def copy_verbatim(source: str, input_path: Path) -> str:
    return source


def default_extensions(settings: QuireSettings) -> dict[str, Extension]:
    return {
        "scss": Extension("scss", "css", compile_scss),
        "js": Extension("js", "js", make_script_bundler(settings)),
        "json": Extension("json", "json", copy_verbatim),
    }
