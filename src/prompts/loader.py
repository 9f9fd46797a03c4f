from __future__ import annotations

from pathlib import Path
from string import Template


def load_prompt(filename: str) -> str:
    """Load a prompt text file shipped with the codebase."""

    prompt_dir = Path(__file__).resolve().parent
    path = prompt_dir / filename
    if not path.exists():
        raise RuntimeError(f"Prompt file not found: {filename}")
    return path.read_text(encoding="utf-8").strip() + "\n"


def render_prompt(filename: str, **values: str) -> str:
    """Fill ``$name`` placeholders in a prompt file; a missing value raises KeyError."""

    return Template(load_prompt(filename)).substitute(values)
