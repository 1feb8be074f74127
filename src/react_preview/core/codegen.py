"""
Entry file code generation.

Renders a PreviewDescriptor into the source of a replacement entry file that
mounts only the previewed component.
"""

from __future__ import annotations

from react_preview.core.ir.preview import ImportStyle, PreviewDescriptor
from react_preview.core.values import to_code

GENERATED_MARKER = "// This content was auto-generated! DO NOT ATTEMPT TO EDIT OR REMOVE"

ENTRY_TEMPLATE = """{marker}

import React from 'react';
import ReactDOM from 'react-dom';
import './index.css';
{import_stmt}

ReactDOM.render(
  <React.StrictMode>
    {element}
  </React.StrictMode>,
  document.getElementById('root')
);
"""

# Characters that cannot appear in a plain JSX string attribute
_UNSAFE_ATTRIBUTE_CHARS = set('"\\\n\r&')


def _quote_module(path: str) -> str:
    return "'" + path.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_import(descriptor: PreviewDescriptor) -> str:
    """Import statement for the component, shaped by its import style."""
    name = descriptor.component_name
    path = _quote_module(descriptor.source_module_path)
    style = descriptor.import_style
    if style == ImportStyle.NAMED:
        return f"import {{{name}}} from {path}"
    if style == ImportStyle.NAMESPACE:
        return f"import * as {name} from {path}"
    if style == ImportStyle.DYNAMIC_REQUIRE:
        return f"const {name} = require({path})"
    return f"import {name} from {path}"


def render_attribute(name: str, value: object) -> str:
    """One JSX attribute: ``name="text"`` for plain strings, else ``name={code}``."""
    if isinstance(value, str) and not _UNSAFE_ATTRIBUTE_CHARS.intersection(value):
        return f'{name}="{value}"'
    return f"{name}={{{to_code(value)}}}"


def render_element(descriptor: PreviewDescriptor) -> str:
    """Wrapping div with inline style around the component instance."""
    attributes = [render_attribute(k, v) for k, v in descriptor.props.items()]
    opening = " ".join([descriptor.component_name, *attributes])
    return f"<div style={{{to_code(descriptor.style)}}}><{opening} /></div>"


def render(descriptor: PreviewDescriptor) -> str:
    """Complete entry file source for *descriptor*.

    Output is byte-identical for equal descriptors.
    """
    return ENTRY_TEMPLATE.format(
        marker=GENERATED_MARKER,
        import_stmt=render_import(descriptor),
        element=render_element(descriptor),
    )
