"""Shared pytest fixtures for react-preview tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from react_preview.core.environment import PreviewSettings

ORIGINAL_ENTRY = "import App from './App';\n// original entry file\n"

CARD_COMPONENT = """import React from 'react';

export default function Card(props) {
  return <div>{props.label}</div>;
}
"""

CARD_PREVIEW = """source: Card.tsx
props:
  label:
    kind: string
    value: Hi
"""


@pytest.fixture
def original_entry() -> str:
    return ORIGINAL_ENTRY


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A TypeScript React project with one previewable component.

    Layout::

        <tmp>/src/index.tsx
        <tmp>/src/tsconfig.json
        <tmp>/src/components/Card/Card.tsx
        <tmp>/src/components/Card/preview.yaml
    """
    src = tmp_path / "src"
    card_dir = src / "components" / "Card"
    card_dir.mkdir(parents=True)
    (src / "tsconfig.json").write_text("{}\n")
    (src / "index.tsx").write_text(ORIGINAL_ENTRY)
    (card_dir / "Card.tsx").write_text(CARD_COMPONENT)
    (card_dir / "preview.yaml").write_text(CARD_PREVIEW)
    return tmp_path


@pytest.fixture
def card_dir(project: Path) -> Path:
    return project / "src" / "components" / "Card"


@pytest.fixture
def preview_file(card_dir: Path) -> Path:
    return card_dir / "preview.yaml"


@pytest.fixture
def entry_file(project: Path) -> Path:
    return project / "src" / "index.tsx"


@pytest.fixture
def settings(project: Path) -> PreviewSettings:
    """Settings rooted at the test project, with a placeholder dev command."""
    return PreviewSettings(
        state_dir=project / ".react-preview",
        working_dir=project,
        dev_command=["fake-dev-server", "start"],
    )
