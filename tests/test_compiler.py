"""
Test base set and page set compilation.
"""

import pytest

from strata import (
    FunctionTable,
    MappingSource,
    SourceReadFault,
    TemplateCompiler,
    TemplateParseFault,
    discover,
)
from strata.compiler import read_source

from conftest import site_files


@pytest.fixture
def compiler():
    return TemplateCompiler()


def test_build_base_contains_layouts_and_partials(compiler, site_tree):
    """Test base set holds exactly the layouts and partials."""
    base = compiler.build_base(site_tree, discover(site_tree))

    assert base.names() == ["layouts/base.html", "partials/nav.html"]
    assert "user/list.html" not in base


def test_build_base_parse_error_aborts(compiler):
    """Test one broken partial aborts the base set."""
    tree = MappingSource({
        "templates/layouts/base.html": "{% block content %}{% endblock %}",
        "templates/partials/broken.html": "{% if %}",
    })

    with pytest.raises(TemplateParseFault) as exc_info:
        compiler.build_base(tree, discover(tree))

    assert exc_info.value.name == "partials/broken.html"
    assert exc_info.value.lineno == 1


def test_build_base_empty(compiler):
    """Test a tree with no layouts or partials gives an empty base."""
    tree = MappingSource({"templates/index.html": "hi"})

    base = compiler.build_base(tree, discover(tree))

    assert len(base) == 0


def test_clone_is_independent(compiler, site_tree):
    """Test adding to a clone never touches the base or siblings."""
    base = compiler.build_base(site_tree, discover(site_tree))

    first = base.clone()
    second = base.clone()
    first.add("one.html", "one")
    second.add("layouts/base.html", "replaced")

    assert "one.html" in first
    assert "one.html" not in base
    assert "one.html" not in second
    assert first.env is not base.env
    assert first.env is not second.env
    assert base.get_template("layouts/base.html") is not first.get_template("layouts/base.html")
    assert "replaced" not in base.get_template("layouts/base.html").render()
    assert second.get_template("layouts/base.html").render() == "replaced"


def test_clone_templates_bound_to_clone_env(compiler, site_tree):
    """Test cloned templates resolve includes inside their own set."""
    base = compiler.build_base(site_tree, discover(site_tree))
    clone = base.clone()

    assert clone.get_template("layouts/base.html").environment is clone.env


def test_compile_page_extends_layout(compiler, site_tree):
    """Test a page set renders the layout with page blocks."""
    discovery = discover(site_tree)
    base = compiler.build_base(site_tree, discovery)

    page_set = compiler.compile_page(base, site_tree, discovery, "user/list.html")
    html = page_set.get_template("user/list.html").render()

    assert "<title>Users</title>" in html
    assert "<nav>Navigation</nav>" in html
    assert "user/list.html" not in base


def test_compile_all(compiler, site_tree):
    """Test registry holds one independent set per page."""
    registry = compiler.compile_all(site_tree)

    assert sorted(registry) == ["errors/404.html", "user/list.html"]
    assert "errors/404.html" not in registry["user/list.html"]
    assert "user/list.html" not in registry["errors/404.html"]

    with pytest.raises(TypeError):
        registry["new.html"] = registry["user/list.html"]


def test_compile_all_page_parse_error_aborts(compiler):
    """Test a single broken page fails the whole registry build."""
    files = site_files()
    files["templates/bad/page.html"] = "{{ invalid_syntax "

    with pytest.raises(TemplateParseFault) as exc_info:
        compiler.compile_all(MappingSource(files))

    assert exc_info.value.name == "bad/page.html"


def test_compile_one(compiler, site_tree):
    """Test only the requested page is compiled."""
    page_set = compiler.compile_one(site_tree, "errors/404.html")

    assert "errors/404.html" in page_set
    assert "user/list.html" not in page_set


def test_compile_one_unknown(compiler, site_tree):
    """Test an unknown page yields None."""
    assert compiler.compile_one(site_tree, "does/not/exist.html") is None


def test_compile_one_ignores_other_broken_pages(compiler):
    """Test a broken sibling page does not affect the requested one."""
    files = site_files()
    files["templates/bad/page.html"] = "{% for %}"
    tree = MappingSource(files)

    page_set = compiler.compile_one(tree, "user/list.html")

    assert "<h1>User List</h1>" in page_set.get_template("user/list.html").render()


def test_functions_bound_into_every_set():
    """Test the function table is inherited by clones."""
    table = FunctionTable()
    table.register("shout", lambda text: text.upper())
    compiler = TemplateCompiler(table)

    base = compiler.new_set()
    clone = base.clone()
    clone.add("page.html", "{{ shout('hi') }}")

    assert clone.get_template("page.html").render() == "HI"


def test_read_source_rejects_invalid_utf8():
    """Test undecodable sources raise SourceReadFault."""
    tree = MappingSource({"templates/page.html": b"\xff\xfe\xfa"})

    with pytest.raises(SourceReadFault):
        read_source(tree, "templates/page.html")
