"""Publish the project README as a site page."""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

logger = logging.getLogger(__name__)

README_FRONT_MATTER = {
    "layout": "layouts/base.html",
    "pageTitle": "README the page",
    "navigation": {"key": "readme", "title": "README", "order": 3},
}


def copy_readme(source: Path, destination: Path) -> Path:
    """Copy *source* to *destination* with page front matter prepended."""
    if not source.exists():
        raise FileNotFoundError(f"Missing README: {source}")

    post = frontmatter.Post(source.read_text(encoding="utf-8"), **README_FRONT_MATTER)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(frontmatter.dumps(post, sort_keys=False) + "\n", encoding="utf-8")
    logger.info("Copied %s to %s with front matter", source.name, destination)
    return destination
