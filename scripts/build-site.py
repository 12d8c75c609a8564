#!/usr/bin/env python3
"""Static-host build entrypoint.

Use `python3 scripts/build-site.py` as the build command on Netlify or
GitHub Pages. It runs a one-shot build of the starter site under `site/`.
It then bundles `CNAME` and `.nojekyll` into the output. Drafts are skipped
unless BUILD_DRAFTS is set.
"""

from __future__ import annotations

from pathlib import Path

from quire.build import Site
from quire.config import QuireSettings, RunMode
from quire.logging_setup import configure_logging
from quire.publish import prepare_static_host

REPO_ROOT = Path(__file__).resolve().parent.parent
SITE_ROOT = REPO_ROOT / "site"
ROOT_CNAME_FILE = REPO_ROOT / "CNAME"


def main() -> None:
    if not SITE_ROOT.exists():
        raise FileNotFoundError(f"Missing site root: {SITE_ROOT}")

    configure_logging()
    site = Site(QuireSettings.load(SITE_ROOT), run_mode=RunMode.BUILD)
    site.build()
    prepare_static_host(site.settings.abs_output_dir, ROOT_CNAME_FILE)


if __name__ == "__main__":
    main()
