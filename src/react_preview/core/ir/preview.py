"""
Resolved preview types.

A PreviewDescriptor holds everything the code generator needs to render an
entry file for one component. It is built once per resolution and never
mutated afterwards.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImportStyle(StrEnum):
    """How the generated entry file imports the component."""

    DEFAULT = "default"  # import Name from './Name'
    NAMED = "named"  # import {Name} from './Name'
    NAMESPACE = "namespace"  # import * as Name from './Name'
    DYNAMIC_REQUIRE = "dynamicRequire"  # const Name = require('./Name')

    @classmethod
    def _missing_(cls, value: object) -> ImportStyle | None:
        # Spellings used by older preview files
        legacy = {"target": cls.NAMED, "require": cls.DYNAMIC_REQUIRE}
        if isinstance(value, str):
            return legacy.get(value)
        return None


class Language(StrEnum):
    """Output language of the entry file."""

    TS = "ts"
    JS = "js"

    @property
    def entry_filename(self) -> str:
        return "index.tsx" if self == Language.TS else "index.jsx"


class PreviewDescriptor(BaseModel):
    """
    Resolved, session-independent facts about one component preview.

    Attributes:
        component_name: Identifier the component is imported as
        import_style: Shape of the import statement
        source_module_path: Module path relative to the entry file's directory
        props: Interpreted prop values, in configuration order
        style: Inline style of the wrapping element (always has height/width)
        language: Entry file language
        entry_file: Entry file the module path was computed against
    """

    component_name: str
    import_style: ImportStyle = ImportStyle.DEFAULT
    source_module_path: str
    props: dict[str, Any] = Field(default_factory=dict)
    style: dict[str, Any] = Field(default_factory=dict)
    language: Language = Language.TS
    entry_file: Path

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
