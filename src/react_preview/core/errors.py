"""
Error types for react-preview configuration, lookup, and session handling.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class PreviewError(Exception):
    """Base exception for all react-preview errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ConfigError(PreviewError):
    """
    Raised when a preview configuration is malformed.

    Examples:
    - Unrecognized value kind in props
    - Component name that is not a valid identifier
    - Invalid YAML or missing required fields
    - Function source outside the supported grammar
    """

    pass


class NotFoundError(PreviewError):
    """
    Raised when a target cannot be located.

    Examples:
    - Missing preview file, directory, or component file
    - Unknown registry id
    - Missing entry directory
    """

    pass


class ConflictError(PreviewError):
    """Raised when a session is already active for the same entry file."""

    pass


class BackupError(PreviewError):
    """
    Raised when the entry file cannot be backed up or restored.

    Examples:
    - Entry file unreadable during installation
    - Both restore attempts failed
    """

    pass


class DevServerError(PreviewError):
    """Raised when the dev server fails to spawn or exits non-zero."""

    def __init__(self, message: str, exit_code: int | None = None):
        self.exit_code = exit_code
        super().__init__(message)


class PreviewInterrupted(PreviewError):
    """Raised after a session ended because of SIGINT/SIGTERM."""

    def __init__(self, message: str, exit_code: int):
        self.exit_code = exit_code
        super().__init__(message)


class PreviewAborted(PreviewError):
    """Raised when the user declines an interactive prompt."""

    pass


class PreviewFunctionError(PreviewError):
    """Raised by a synthesized prop function (``throw`` or opaque body)."""

    pass


@dataclass
class ErrorContext:
    """
    Location of a configuration error.

    Attributes:
        file: Preview file the error came from
        key_path: Dotted path to the offending value (e.g. ``props.onClick``)
    """

    file: Path | None = None
    key_path: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "preview.yaml at props.onClick"
        """
        parts = []
        if self.file:
            parts.append(str(self.file))
        if self.key_path:
            parts.append(f"at {self.key_path}")
        return " ".join(parts)


def make_config_error(
    message: str,
    file: Path | None = None,
    key_path: str | None = None,
) -> ConfigError:
    """
    Helper to create a ConfigError with optional context.

    Args:
        message: Error description
        file: Optional preview file path
        key_path: Optional dotted key path inside the preview file

    Returns:
        ConfigError with context if a location was provided
    """
    if file or key_path:
        return ConfigError(message, ErrorContext(file=file, key_path=key_path))
    return ConfigError(message)
