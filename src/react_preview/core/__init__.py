"""Core react-preview functionality: value interpretation, descriptor resolution, code generation, sessions."""

from . import ir
from .codegen import render
from .config import FunctionSpec, PreviewConfig, load_preview_config
from .descriptor import derive_component_name, resolve, resolve_file
from .environment import PreviewSettings, StateError, resolve_settings
from .errors import (
    BackupError,
    ConfigError,
    ConflictError,
    DevServerError,
    ErrorContext,
    NotFoundError,
    PreviewAborted,
    PreviewError,
    PreviewFunctionError,
    PreviewInterrupted,
)
from .locator import locate
from .registry import Registry, RegistryEntry
from .session import PreviewSession, SessionState, run_session
from .values import PreviewFunction, interpret, to_code

__all__ = [
    "ir",
    "BackupError",
    "ConfigError",
    "ConflictError",
    "DevServerError",
    "ErrorContext",
    "FunctionSpec",
    "NotFoundError",
    "PreviewAborted",
    "PreviewConfig",
    "PreviewError",
    "PreviewFunction",
    "PreviewFunctionError",
    "PreviewInterrupted",
    "PreviewSession",
    "PreviewSettings",
    "Registry",
    "RegistryEntry",
    "SessionState",
    "StateError",
    "derive_component_name",
    "interpret",
    "load_preview_config",
    "locate",
    "render",
    "resolve",
    "resolve_file",
    "resolve_settings",
    "run_session",
    "to_code",
]
