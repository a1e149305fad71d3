"""Value objects for top charts."""

from .scope_window import ALL_TIME, ScopeWindow, resolve_scope
from .title_normalization import normalize_title

__all__ = ["ALL_TIME", "ScopeWindow", "normalize_title", "resolve_scope"]
