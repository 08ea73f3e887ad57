"""Presentation helpers shared by the CLI and editor front ends."""

import os
from typing import Any, Dict, Mapping

from ._types import EnvVarEntry

MASK_CHAR = "*"

def mask_value(value: str, mask_char: str = MASK_CHAR) -> str:
    """Replace every character of a value with the mask character."""
    return mask_char * len(value)

def source_name(source: str) -> str:
    return os.path.basename(source)

def entry_documentation(entry: EnvVarEntry, hide_value: bool = True) -> str:
    """
    Markdown documentation for a variable.

    Args:
        entry: The variable entry
        hide_value: Leave the value out entirely

    Returns:
        Markdown with the type and, unless hidden, the value
    """
    doc = f"**Type:** `{entry.type}`"
    if not hide_value:
        doc += f"\n**Value:** `{entry.value}`"
    return doc

def completion_item(name: str, entry: EnvVarEntry, hide_value: bool = True) -> Dict[str, Any]:
    """Editor-neutral completion data for one variable."""
    return {
        "label": name,
        "insert_text": name,
        "detail": source_name(entry.source),
        "documentation": {
            "kind": "markdown",
            "value": entry_documentation(entry, hide_value=hide_value),
        },
    }

def format_peek(info: Mapping[str, str], hide_value: bool = False) -> str:
    """Plain-text peek view of :meth:`EnvSession.peek` output."""
    value = mask_value(info["value"]) if hide_value else info["value"]
    lines = [
        f"Name   : {info['name']}",
        f"Type   : {info['type']}",
        f"Source : {source_name(info['source'])}",
        f"Value  : {value}",
    ]
    if not hide_value and info["normalized"] != info["value"]:
        lines.append(f"Normal : {info['normalized']}")
    return "\n".join(lines)
