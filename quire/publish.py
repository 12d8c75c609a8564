"""Static-host metadata for a built site."""

from __future__ import annotations

import shutil
from pathlib import Path


def prepare_static_host(output_dir: Path, cname_file: Path | None = None) -> None:
    """Bundle ``CNAME`` (when present) and ``.nojekyll`` for GitHub Pages deployments."""
    if not output_dir.is_dir():
        raise FileNotFoundError(f"Missing build output: {output_dir}")

    if cname_file is not None and cname_file.exists():
        shutil.copy2(cname_file, output_dir / "CNAME")
    (output_dir / ".nojekyll").write_text("\n")
