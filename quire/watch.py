"""Rebuild the site when sources change."""

from __future__ import annotations

import fnmatch
import logging
import re
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from quire.build import BuildResult, Site
from quire.ready import ReadyGate

logger = logging.getLogger(__name__)

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """``a.{x,y}`` -> ``["a.x", "a.y"]``; nested groups expand left to right."""
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def matches_glob(relative: str, pattern: str) -> bool:
    pattern = pattern.lstrip("/")
    if fnmatch.fnmatch(relative, pattern):
        return True
    # "**/" may also match zero directories.
    return "**/" in pattern and fnmatch.fnmatch(relative, pattern.replace("**/", ""))


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher: SiteWatcher) -> None:
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in {"opened", "closed", "closed_no_write"}:
            return
        for raw_path in (event.src_path, getattr(event, "dest_path", "")):
            if raw_path:
                path = Path(raw_path.decode() if isinstance(raw_path, bytes) else raw_path)
                self.watcher.notify(path)


class SiteWatcher:
    """Builds once, then rebuilds after changes settle for ``watch_debounce`` seconds."""

    def __init__(self, site: Site, ready: ReadyGate | None = None, poll_interval: float = 0.1) -> None:
        self.site = site
        self.ready = ready or ReadyGate()
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._last_change: float | None = None
        self._stop = threading.Event()
        self._patterns = [p for target in site.settings.watch_targets for p in expand_braces(target)]

    def should_rebuild(self, path: Path) -> bool:
        settings = self.site.settings
        path = path.resolve() if path.is_absolute() else (settings.root / path).resolve()
        if path.is_relative_to(settings.abs_output_dir.resolve()):
            return False
        if path.is_relative_to(settings.abs_input_dir.resolve()):
            return True
        if not path.is_relative_to(settings.root.resolve()):
            return False
        relative = path.relative_to(settings.root.resolve()).as_posix()
        return any(matches_glob(relative, pattern) for pattern in self._patterns)

    def notify(self, path: Path) -> None:
        if not self.should_rebuild(path):
            return
        logger.debug("Change detected: %s", path)
        with self._lock:
            self._last_change = time.monotonic()

    def pending(self) -> bool:
        with self._lock:
            return self._last_change is not None

    def rebuild(self) -> BuildResult | None:
        """Build and fire the ready gate; failures are logged, not raised."""
        with self._lock:
            self._last_change = None
        try:
            result = self.site.build()
        except Exception:
            logger.exception("Build failed; waiting for changes")
            return None
        self.ready.fire()
        return result

    def _settled(self) -> bool:
        with self._lock:
            if self._last_change is None:
                return False
            return time.monotonic() - self._last_change >= self.site.settings.watch_debounce

    def run(self) -> None:
        """Block, rebuilding on change until :meth:`stop` is called."""
        self.rebuild()
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.site.settings.root), recursive=True)
        observer.start()
        logger.info("Watching %s for changes", self.site.settings.root)
        try:
            while not self._stop.wait(self.poll_interval):
                if self._settled():
                    self.rebuild()
        finally:
            observer.stop()
            observer.join()

    def start_in_background(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name="quire-watch", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        self._stop.set()
