from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from quire.config import QuireSettings

BASE_LAYOUT = """<!doctype html>
<title>{{ title }}</title>
<nav>{{ collections.all | navigation | navigation_to_html(page.url) }}</nav>
<main>{{ content }}</main>
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's shell from leaking into settings."""
    for name in list(os.environ):
        if name.startswith("QUIRE_") or name in {"BUILD_DRAFTS", "HOST", "PORT"}:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def site_root(tmp_path: Path, write_file: Callable[[str, str], Path]) -> Path:
    """A minimal site with a layout, two posts (one draft) and an asset."""
    write_file("src/_includes/layouts/base.html", BASE_LAYOUT)
    write_file(
        "src/index.md",
        "---\nlayout: layouts/base.html\ntitle: Home\nnavigation:\n  key: home\n  order: 1\n---\n"
        "# Welcome\n\n{% for post in collections.posts %}- {{ post.data.title }}\n{% endfor %}",
    )
    write_file(
        "src/posts/published.md",
        "---\nlayout: layouts/base.html\ntitle: Published\ndate: 2024-01-02\ntags: post\n---\nHello.\n",
    )
    write_file(
        "src/posts/secret.md",
        "---\nlayout: layouts/base.html\ntitle: Secret\ndate: 2024-02-03\ntags: post\ndraft: true\n"
        "permalink: /secret/\n---\nNot yet.\n",
    )
    write_file("src/assets/images/logo.svg", "<svg></svg>")
    return tmp_path


@pytest.fixture
def settings(site_root: Path) -> QuireSettings:
    return QuireSettings(root=site_root)
