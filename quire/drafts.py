"""Draft handling.

A page marked ``draft: true`` is only rendered when drafts are enabled.
Drafts are enabled by ``BUILD_DRAFTS`` or by running in watch/serve mode.
With drafts disabled, a draft resolves to ``permalink: False`` (no output)
and is excluded from every collection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from quire.config import QuireSettings, RunMode

logger = logging.getLogger(__name__)

EXCLUDE_KEY = "excludeFromCollections"
LEGACY_EXCLUDE_KEY = "eleventyExcludeFromCollections"

_DRAFT_MODES = frozenset({RunMode.WATCH, RunMode.SERVE})


def _is_hidden_draft(data: Mapping[str, Any], drafts_enabled: bool) -> bool:
    return bool(data.get("draft")) and not drafts_enabled


def authored_exclusion(data: Mapping[str, Any]) -> Any:
    if EXCLUDE_KEY in data:
        return data[EXCLUDE_KEY]
    return data.get(LEGACY_EXCLUDE_KEY)


def resolve_permalink(data: Mapping[str, Any], drafts_enabled: bool) -> Any:
    """Return ``False`` for a hidden draft, otherwise the authored permalink."""
    if _is_hidden_draft(data, drafts_enabled):
        return False
    return data.get("permalink")


def resolve_exclusion(data: Mapping[str, Any], drafts_enabled: bool) -> Any:
    """Return ``True`` for a hidden draft, otherwise the authored exclusion flag."""
    if _is_hidden_draft(data, drafts_enabled):
        return True
    return authored_exclusion(data)


def drafts_enabled_for(run_mode: RunMode) -> bool:
    return RunMode(run_mode) in _DRAFT_MODES


def apply_run_mode(settings: QuireSettings, run_mode: RunMode) -> QuireSettings:
    """Turn drafts on for watch/serve runs.

    The switch only goes one way: a build with ``BUILD_DRAFTS`` already set
    keeps drafts on.
    """
    if not drafts_enabled_for(run_mode) or settings.build_drafts:
        return settings
    logger.debug("Enabling drafts for %s mode", RunMode(run_mode).value)
    return settings.model_copy(update={"build_drafts": True})
