#!/usr/bin/env python3
"""
Program: the set of parsed source files that make up one compilation.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from .config import AnalyserConfig
from .logging import get_logger
from .shared.typescript_parser import SourceFile, TypeScriptParser
from .types import TextTypeOracle
from .utils.file_utils import find_typescript_files, get_file_content
from .utils.path_utils import PathHelper

logger = get_logger(__name__)

_RESOLVE_SUFFIXES = (".ts", ".tsx", ".d.ts", "/index.ts", "/index.tsx")


class Program:
    """Parsed source files keyed by path, plus the type oracle bound to them."""

    def __init__(self, config: Optional[AnalyserConfig] = None):
        self.config = config or AnalyserConfig()
        self.parser = TypeScriptParser(self.config.template_tag)
        self._files: Dict[str, SourceFile] = {}
        self.oracle = TextTypeOracle(self)

    @classmethod
    def from_directory(
        cls,
        root: Path,
        config: Optional[AnalyserConfig] = None,
        path_helper: Optional[PathHelper] = None
    ) -> "Program":
        """Parse every TypeScript file under `root`."""
        program = cls(config)
        if path_helper is None:
            path_helper = PathHelper(str(root), program.config.exclude_paths)
        for ts_file in find_typescript_files(Path(root), program.config.extensions, path_helper):
            program.load_file(ts_file)
        logger.debug("Loaded %d source files from %s", len(program._files), root)
        return program

    def add_file(self, path: str, text: str) -> SourceFile:
        """Parse `text` as the content of `path`, replacing any previous version."""
        key = _normalize_path(path)
        source_file = self.parser.parse(text, key)
        self._files[key] = source_file
        return source_file

    def load_file(self, path: Path) -> SourceFile:
        return self.add_file(str(path), get_file_content(Path(path)))

    def remove_file(self, path: str) -> bool:
        return self._files.pop(_normalize_path(path), None) is not None

    def source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def get_source_file(self, path: Optional[str]) -> Optional[SourceFile]:
        if path is None:
            return None
        return self._files.get(_normalize_path(path))

    def resolve_module(self, from_file: str, specifier: str) -> Optional[SourceFile]:
        """Resolve a relative import specifier to a loaded source file."""
        if not specifier.startswith('.'):
            return None
        base = os.path.normpath(os.path.join(os.path.dirname(_normalize_path(from_file)), specifier))
        candidates = [base] + [base + suffix for suffix in _RESOLVE_SUFFIXES]
        if base.endswith('.js'):
            candidates.insert(0, base[:-3] + '.ts')
        for candidate in candidates:
            source_file = self._files.get(candidate)
            if source_file is not None:
                return source_file
        return None

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: str) -> bool:
        return _normalize_path(path) in self._files


def _normalize_path(path: str) -> str:
    return os.path.normpath(str(path))


__all__ = ["Program"]
