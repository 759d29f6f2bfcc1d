"""Utility modules for template analysis."""

from .file_utils import find_typescript_files, get_file_content, is_test_file
from .path_utils import PathHelper

__all__ = [
    "find_typescript_files",
    "get_file_content",
    "is_test_file",
    "PathHelper",
]
