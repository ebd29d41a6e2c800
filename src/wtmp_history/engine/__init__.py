"""Session reconstruction engine.

Records flow one at a time through the filter pipeline, the reboot
tracker, and the status resolver into a renderer; see
:class:`~wtmp_history.engine.history.SessionHistory`.
"""
from __future__ import annotations

from wtmp_history.engine.filters import FilterPipeline, effective_end
from wtmp_history.engine.history import SessionHistory
from wtmp_history.engine.renderer import JsonRenderer, Renderer, TextRenderer, make_renderer
from wtmp_history.engine.resolver import SessionRow, StatusResolver
from wtmp_history.engine.state import EngineState, RebootTracker

__all__ = [
    "EngineState",
    "FilterPipeline",
    "JsonRenderer",
    "RebootTracker",
    "Renderer",
    "SessionHistory",
    "SessionRow",
    "StatusResolver",
    "TextRenderer",
    "effective_end",
    "make_renderer",
]
