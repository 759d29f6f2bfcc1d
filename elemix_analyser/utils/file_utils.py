#!/usr/bin/env python3
"""
File utility functions for template analysis.

Handles file reading and TypeScript file discovery.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from .path_utils import PathHelper


def get_file_content(file_path: Path) -> str:
    """Get file content with error handling."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except (UnicodeDecodeError, OSError):
        return ""


def is_test_file(file_path: Path) -> bool:
    """Check if file is a test file."""
    name = file_path.name
    return ".test." in name or ".spec." in name or "__tests__" in file_path.parts


def is_declaration_file(file_path: Path) -> bool:
    """Check if file is an ambient declaration file (.d.ts)."""
    return file_path.name.endswith(".d.ts")


def find_typescript_files(
    directory: Path,
    extensions: Iterable[str] = (".ts", ".tsx"),
    path_helper: Optional[PathHelper] = None
) -> List[Path]:
    """Find all TypeScript files in directory tree, sorted for stable scan order."""
    if directory.is_file():
        return [directory]

    files = []
    for extension in extensions:
        for ts_file in directory.rglob(f"*{extension}"):
            if is_test_file(ts_file) or is_declaration_file(ts_file):
                continue
            if path_helper is not None and path_helper.is_excluded(ts_file):
                continue
            files.append(ts_file)

    return sorted(set(files))
