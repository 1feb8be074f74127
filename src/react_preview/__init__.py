"""
react-preview - preview a single React component in its host application.

Generates a throwaway entry file that mounts one component with configured
props, runs the project's dev server against it, and restores the original
entry file afterwards.
"""

from __future__ import annotations

from ._version import get_version
from .core import ir
from .core.errors import (
    ConfigError,
    ConflictError,
    DevServerError,
    NotFoundError,
    PreviewError,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "PreviewError",
    "ConfigError",
    "NotFoundError",
    "ConflictError",
    "DevServerError",
]
