"""
react-preview CLI package.

- app.py: typer application, global options, entry point
- preview.py: run and render commands
- registry.py: init, register, unregister, list, recover
- utils.py: shared helpers
"""

from react_preview.cli.app import app, main
from react_preview.cli.utils import version_callback

__all__ = [
    "app",
    "main",
    "version_callback",
]
