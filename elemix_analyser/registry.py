#!/usr/bin/env python3
"""
Metadata registry shared by the build checker and the language service.

The registry holds the component declarations of a compilation, the
component usages found in each file and the per-template scans. It is an
explicit object passed to whoever needs it; nothing is stored at module
level.

Concurrency contract: one writer, many readers. Mutations (`reset`,
`publish_declarations`, `set_file_scan`, `remove_file`) are not synchronized;
a host that drives the registry from several threads must serialize them.
Readers get list copies, so a reader never observes a list being rebuilt.
"""

from typing import Dict, List, Optional

from .declarations import mark_duplicated_components
from .models import ComponentDeclaration, FileScan, TemplateScan, UsedComponent


class MetadataRegistry:
    """Declarations, usages and template scans of one compilation."""

    def __init__(self):
        self._declarations: Dict[str, List[ComponentDeclaration]] = {}
        self._scans: Dict[str, FileScan] = {}
        self.generation = 0

    def reset(self) -> None:
        """Drop everything, e.g. before a full rebuild."""
        self._declarations = {}
        self._scans = {}
        self.generation += 1

    def publish_declarations(self, file_path: str, declarations: List[ComponentDeclaration]) -> None:
        """Replace the declarations of one file and recompute duplicate flags."""
        if declarations:
            self._declarations[file_path] = list(declarations)
        else:
            self._declarations.pop(file_path, None)
        mark_duplicated_components(self.components)
        self.generation += 1

    def set_file_scan(self, file_path: str, scan: FileScan) -> None:
        self._scans[file_path] = scan
        self.generation += 1

    def remove_file(self, file_path: str) -> None:
        """Forget a file's declarations and usages."""
        removed = self._declarations.pop(file_path, None)
        self._scans.pop(file_path, None)
        if removed:
            mark_duplicated_components(self.components)
        self.generation += 1

    @property
    def components(self) -> List[ComponentDeclaration]:
        """All declarations, in file publication order."""
        return [declaration for declarations in self._declarations.values() for declaration in declarations]

    @property
    def used_components(self) -> Dict[str, List[UsedComponent]]:
        """Used components by file path."""
        return {path: list(scan.used_components) for path, scan in self._scans.items()}

    @property
    def files(self) -> List[str]:
        return list(self._scans)

    def declarations_for(self, file_path: str) -> List[ComponentDeclaration]:
        return list(self._declarations.get(file_path, []))

    def file_scan(self, file_path: str) -> Optional[FileScan]:
        return self._scans.get(file_path)

    def template_scans(self, file_path: str) -> List[TemplateScan]:
        scan = self._scans.get(file_path)
        return list(scan.templates) if scan else []

    def find_component(self, name: str) -> Optional[ComponentDeclaration]:
        """First declaration with this name."""
        for declaration in self.components:
            if declaration.name == name:
                return declaration
        return None

    def find_used_component(self, file_path: str, name: str) -> Optional[UsedComponent]:
        scan = self._scans.get(file_path)
        if scan is None:
            return None
        for used in scan.used_components:
            if used.name == name:
                return used
        return None

    def used_names(self, file_path: str) -> List[str]:
        """Distinct component names used in a file's templates."""
        names = []
        scan = self._scans.get(file_path)
        for used in (scan.used_components if scan else []):
            if used.name not in names:
                names.append(used.name)
        return names


__all__ = ["MetadataRegistry"]
