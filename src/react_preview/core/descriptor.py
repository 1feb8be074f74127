"""
Descriptor resolution.

Derives a PreviewDescriptor from a loaded preview file and the entry file the
generated code will be written to.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from react_preview.core.config import PreviewConfig, load_preview_config
from react_preview.core.errors import ConfigError, NotFoundError, make_config_error
from react_preview.core.ir.preview import Language, PreviewDescriptor
from react_preview.core.values import interpret

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT = "auto"
DEFAULT_WIDTH = "auto"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_EXTENSION_RE = re.compile(r"\.[^.]*$")


def derive_component_name(filename: str) -> str:
    """Strip extension-like suffixes until a valid identifier remains.

    >>> derive_component_name("Widget.preview.tsx")
    'Widget'

    Raises:
        ConfigError: If no prefix of the name is a valid identifier.
    """
    name = Path(filename).name
    while name:
        if _IDENTIFIER_RE.match(name):
            return name
        stripped = _EXTENSION_RE.sub("", name)
        if stripped == name:
            break
        name = stripped
    raise ConfigError(f"cannot derive a valid identifier from {filename!r}")


def module_path(entry_file: Path, component_file: Path) -> str:
    """Import path of *component_file* as seen from *entry_file*."""
    relative = os.path.relpath(component_file.resolve(), entry_file.resolve().parent)
    relative = relative.replace(os.sep, "/")
    stem, ext = os.path.splitext(relative)
    if ext:
        relative = stem
    if not relative.startswith("../"):
        relative = "./" + relative
    return relative


def resolve_style(config: PreviewConfig) -> dict[str, object]:
    """``{height, width}`` defaults, explicit dimensions, then explicit style."""
    style: dict[str, object] = {
        "height": DEFAULT_HEIGHT if config.height is None else config.height,
        "width": DEFAULT_WIDTH if config.width is None else config.width,
    }
    style.update(config.style)
    return style


def resolve(
    config: PreviewConfig,
    entry_file: Path,
    *,
    config_dir: Path,
    language: Language = Language.TS,
    config_file: Path | None = None,
) -> PreviewDescriptor:
    """Build the descriptor for one preview.

    Args:
        config: Loaded preview file.
        entry_file: Entry file the generated code will replace.
        config_dir: Directory ``config.source`` is relative to.
        language: Entry file language when the preview file does not set one.
        config_file: Preview file path, for error messages.

    Raises:
        ConfigError: If the name or props are invalid.
        NotFoundError: If the component file does not exist.
    """
    component_file = (config_dir / config.source).resolve()
    if not component_file.is_file():
        raise NotFoundError(f"Component file does not exist: {component_file}")

    if config.component_name:
        component_name = config.component_name
    else:
        try:
            component_name = derive_component_name(component_file.name)
        except ConfigError as e:
            raise make_config_error(e.message, config_file, "source") from None

    props = interpret(config.props, strict=not config.legacy_nulls, file=config_file)
    if props is None:
        props = {}
    if not isinstance(props, dict):
        raise make_config_error("props must be a mapping", config_file, "props")

    descriptor = PreviewDescriptor(
        component_name=component_name,
        import_style=config.import_style,
        source_module_path=module_path(entry_file, component_file),
        props=props,
        style=resolve_style(config),
        language=config.language or language,
        entry_file=entry_file,
    )
    logger.debug(
        "Resolved %s -> %s from %s", component_name, entry_file, descriptor.source_module_path
    )
    return descriptor


def resolve_file(
    config_file: Path, entry_file: Path, language: Language = Language.TS
) -> PreviewDescriptor:
    """Load *config_file* and resolve it against *entry_file*."""
    config = load_preview_config(config_file)
    return resolve(
        config,
        entry_file,
        config_dir=config_file.parent,
        language=language,
        config_file=config_file,
    )
