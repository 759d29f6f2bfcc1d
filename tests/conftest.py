"""Shared fixtures for template analysis tests."""

import logging

import pytest


@pytest.fixture
def project(tmp_path):
    """Factory writing {relative path: content} into a temporary project root."""
    def create_test_project(files):
        for relative_path, content in files.items():
            path = tmp_path / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content.strip() + "\n", encoding="utf-8")
        return tmp_path
    return create_test_project


@pytest.fixture(autouse=True)
def reset_analyser_logger():
    """Undo configure_logging() so later tests can capture analyser logs."""
    yield
    logger = logging.getLogger("elemix_analyser")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
