from __future__ import annotations

import pytest

from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder() -> ProjectBuilder:
    """Provide an empty in-memory project using the default extractor registry."""
    return ProjectBuilder()
