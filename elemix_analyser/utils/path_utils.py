#!/usr/bin/env python3
"""
Path utility functions for template analysis.

Handles target path resolution and ignore patterns.
"""

import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional

IGNORE_FILE_NAME = ".elemix-ignore"


class PathHelper:
    """Helper class for path-related operations."""

    def __init__(self, target_path: str = "src", exclude_paths: Optional[Iterable[str]] = None):
        self.target_path = Path(target_path)
        self.exclude_patterns: List[str] = list(exclude_paths or [])
        self._load_ignore_file()

    def _load_ignore_file(self) -> None:
        """Load ignore patterns from a .elemix-ignore file next to the target or in the working directory."""
        root = self.target_path if self.target_path.is_dir() else self.target_path.parent
        for ignore_file in (root / IGNORE_FILE_NAME, Path(IGNORE_FILE_NAME)):
            if not ignore_file.exists():
                continue
            try:
                with open(ignore_file, encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if line and not line.startswith("#"):
                            self.exclude_patterns.append(line.rstrip("/"))
            except (OSError, UnicodeDecodeError):
                continue
            break

    def is_excluded(self, path: Path) -> bool:
        """Check if path matches an ignore pattern, by path segment or glob."""
        try:
            relative = path.relative_to(self.target_path)
        except ValueError:
            relative = path
        relative_str = relative.as_posix()
        parts = set(relative.parts)

        for pattern in self.exclude_patterns:
            if pattern in parts:
                return True
            if relative_str == pattern or relative_str.startswith(pattern + "/"):
                return True
            if pattern.endswith("/**") and relative_str.startswith(pattern[:-3] + "/"):
                return True
            if fnmatch.fnmatch(relative_str, pattern):
                return True
        return False

    def display_path(self, path: Path) -> str:
        """Path as shown in reports: relative to the working directory when possible."""
        try:
            return path.resolve().relative_to(Path.cwd()).as_posix()
        except ValueError:
            return path.as_posix()
