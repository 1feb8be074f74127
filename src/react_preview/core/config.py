"""
Preview file model and loader.

A preview file (``preview.yaml`` by default) describes which component to
mount and with what props and styling:

    id: card
    source: Card.tsx
    importStyle: named
    height: 200px
    props:
      label: {kind: string, value: Hi}
      onClick:
        kind: function
        spec:
          parameters: [event]
          returnExpressions: ["1"]

Keys are camelCase in YAML; the snake_case field names are accepted too.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from react_preview.core.errors import ConfigError, NotFoundError, make_config_error
from react_preview.core.ir.preview import ImportStyle, Language

logger = logging.getLogger(__name__)

PREVIEW_FILE = "preview.yaml"
PREVIEW_SUFFIXES = (".yaml", ".yml")

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class FunctionSpec(BaseModel):
    """Structured description of a callable prop."""

    parameters: list[str] = Field(default_factory=list)
    body_statements: str | None = Field(default=None, alias="bodyStatements")
    return_expressions: list[str] = Field(default_factory=list, alias="returnExpressions")
    throws_message: str | None = Field(default=None, alias="throwsMessage")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("parameters")
    @classmethod
    def _check_parameters(cls, value: list[str]) -> list[str]:
        for name in value:
            if not _IDENT_RE.match(name):
                raise ValueError(f"invalid parameter name: {name!r}")
        return value

    @field_validator("return_expressions", mode="before")
    @classmethod
    def _coerce_return_expressions(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return [str(value)]
        if isinstance(value, list):
            return [str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v for v in value]
        return value

    @model_validator(mode="after")
    def _throw_or_return(self) -> FunctionSpec:
        if self.throws_message is not None and self.return_expressions:
            raise ValueError("throwsMessage and returnExpressions are mutually exclusive")
        return self


class PreviewConfig(BaseModel):
    """Contents of one preview file."""

    source: str
    id: str | None = None
    component_name: str | None = Field(default=None, alias="componentName")
    output: str | None = None
    language: Language | None = None
    height: str | int | float | None = None
    width: str | int | float | None = None
    style: dict[str, Any] = Field(default_factory=dict)
    import_style: ImportStyle = Field(default=ImportStyle.DEFAULT, alias="importStyle")
    props: Any = None
    legacy_nulls: bool = Field(default=False, alias="legacyNulls")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("style", mode="before")
    @classmethod
    def _none_style(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("import_style", mode="before")
    @classmethod
    def _legacy_import_style(cls, value: Any) -> Any:
        if value is None:
            return ImportStyle.DEFAULT
        if isinstance(value, str):
            return ImportStyle(value)
        return value


def is_preview_file(path: Path) -> bool:
    """True if the file name looks like a preview file."""
    return path.suffix.lower() in PREVIEW_SUFFIXES


def load_preview_data(path: Path) -> dict[str, Any]:
    """Read a preview file as a plain mapping.

    Raises:
        NotFoundError: If the file does not exist.
        ConfigError: If the YAML is invalid or not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise NotFoundError(f"Preview file does not exist: {path}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read preview file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise make_config_error(f"invalid YAML: {e}", file=path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise make_config_error("preview file must contain a mapping", file=path)
    return data


def load_preview_config(path: Path) -> PreviewConfig:
    """Load and validate a preview file.

    Raises:
        NotFoundError: If the file does not exist.
        ConfigError: If the file is not a valid preview file.
    """
    data = load_preview_data(path)
    try:
        config = PreviewConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise make_config_error(errors, file=path) from e
    logger.debug("Loaded preview file %s (source=%s)", path, config.source)
    return config


def scaffold_preview_file(path: Path, source: str) -> Path:
    """Write a minimal preview file pointing at *source*."""
    content = yaml.safe_dump({"source": source, "props": {}}, sort_keys=False)
    path.write_text(content, encoding="utf-8")
    logger.info("Created preview file %s", path)
    return path
