"""
Shared test fixtures and helpers for the Strata test suite.
"""

from pathlib import Path
from typing import Dict

import pytest

from strata import MappingSource, ResponseRecorder


# ============================================================================
# Template Trees
# ============================================================================

BASE_LAYOUT = (
    "<!DOCTYPE html><html>"
    "<head><title>{% block title %}Default{% endblock %}</title></head>"
    "<body>{% block nav %}{% endblock %}{% block content %}{% endblock %}</body>"
    "</html>"
)

NAV_PARTIAL = "<nav>Navigation</nav>"

USER_LIST_PAGE = (
    '{% extends "layouts/base.html" %}'
    "{% block title %}Users{% endblock %}"
    '{% block content %}<h1>User List</h1>{% include "partials/nav.html" %}{% endblock %}'
)

NOT_FOUND_PAGE = (
    '{% extends "layouts/base.html" %}'
    "{% block title %}Not Found{% endblock %}"
    "{% block content %}<h1>404 Not Found</h1>{% endblock %}"
)


def site_files() -> Dict[str, str]:
    """Layout, partial and two pages laid out like a web/ folder."""
    return {
        "templates/layouts/base.html": BASE_LAYOUT,
        "templates/partials/nav.html": NAV_PARTIAL,
        "templates/user/list.html": USER_LIST_PAGE,
        "templates/errors/404.html": NOT_FOUND_PAGE,
    }


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Write a mapping of relative path -> content under `root`."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def site_tree():
    """In-memory tree with a layout, a partial and two pages."""
    return MappingSource(site_files())


@pytest.fixture
def disk_site(tmp_path):
    """The same site written to disk; returns the web/ folder."""
    return write_tree(tmp_path / "web", site_files())


@pytest.fixture
def recorder():
    """Fresh in-memory render target."""
    return ResponseRecorder()
