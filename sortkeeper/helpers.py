"""Small helpers for preparing sample files and cleaning terminal output."""

from __future__ import annotations

import os
from typing import Mapping

_DEFAULT_FILES = {
    "test1.txt": "test content 1",
    "test2.txt": "test content 2",
    "test3.jpg": "image content",
}


def create_files_with_content(directory: str | os.PathLike[str], files: Mapping[str, str]) -> None:
    """Write each name/content pair as a file inside directory."""
    for name, content in files.items():
        with open(os.path.join(directory, name), "w", encoding="utf-8") as handle:
            handle.write(content)


def create_files_with_default(directory: str | os.PathLike[str]) -> None:
    """Write the standard set of sample files into directory."""
    create_files_with_content(directory, _DEFAULT_FILES)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences: ESC up to and including the next ASCII letter."""
    kept: list[str] = []
    in_escape = False
    for char in text:
        if char == "\x1b":
            in_escape = True
            continue
        if in_escape:
            if ("A" <= char <= "Z") or ("a" <= char <= "z"):
                in_escape = False
            continue
        kept.append(char)
    return "".join(kept)