"""
Core domain package.

This package contains the domain models returned by the client, the search
filter builder and the diagnostic events. It is free of networking concerns.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `cadence.core.models`).
"""

from __future__ import annotations

__all__: list[str] = []
