from __future__ import annotations

from pathlib import Path

from flask import Flask, Response, abort, redirect, send_from_directory
from werkzeug.security import safe_join

from quire.config import QuireSettings


def _is_directory(site_dir: Path, filename: str) -> bool:
    joined = safe_join(str(site_dir), filename)
    return joined is not None and Path(joined).is_dir()


def create_app(site_dir: Path) -> Flask:
    """Serve a built site, mapping directory URLs to their ``index.html``."""
    site_dir = Path(site_dir)
    app = Flask(__name__)
    app.config["SITE_DIR"] = site_dir

    @app.after_request
    def disable_caching(response: Response) -> Response:
        response.headers["Cache-Control"] = "no-cache"
        return response

    @app.get("/")
    def index() -> Response:
        return send_from_directory(site_dir, "index.html")

    @app.get("/<path:filename>")
    def static_site(filename: str) -> Response:
        if filename.endswith("/"):
            filename = f"{filename}index.html"
        elif _is_directory(site_dir, filename):
            # Relative links in the index resolve against the directory.
            return redirect(f"/{filename}/")
        if safe_join(str(site_dir), filename) is None:
            abort(404)
        return send_from_directory(site_dir, filename)

    return app


if __name__ == "__main__":
    settings = QuireSettings.load()
    create_app(settings.abs_output_dir).run(host=settings.host, port=settings.port)
