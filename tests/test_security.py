"""
Test sandboxed compilation.
"""

import pytest
from jinja2.sandbox import ImmutableSandboxedEnvironment, SandboxedEnvironment

from strata import (
    MappingSource,
    PageRenderer,
    FunctionTable,
    ResponseRecorder,
    SandboxPolicy,
    TemplateCompiler,
    TemplateExecutionFault,
    TemplateParseFault,
    TemplateSandbox,
)


def test_sandbox_policy_strict():
    """Test strict policy is minimal and immutable."""
    policy = SandboxPolicy.strict()

    assert not policy.allow_unsafe_filters
    assert not policy.allow_unsafe_globals
    assert policy.immutable
    assert not policy.is_filter_allowed("tojson")


def test_sandbox_policy_permissive():
    """Test permissive policy widens the allowlist."""
    policy = SandboxPolicy.permissive()

    assert not policy.allow_unsafe_filters
    assert policy.is_filter_allowed("tojson")
    assert not policy.immutable


def test_sandbox_environment_class():
    assert TemplateSandbox(SandboxPolicy.strict()).environment_class is ImmutableSandboxedEnvironment
    assert TemplateSandbox(SandboxPolicy()).environment_class is SandboxedEnvironment


def test_sandbox_keeps_function_table():
    """Test registered functions survive global filtering."""
    compiler = TemplateCompiler(
        FunctionTable.from_mapping({"shout": str.upper}),
        sandbox_policy=SandboxPolicy.strict(),
    )
    env = compiler.new_set().env

    assert isinstance(env, ImmutableSandboxedEnvironment)
    assert "shout" in env.globals
    assert "range" in env.globals
    assert "lipsum" not in env.globals


def test_sandboxed_render_with_functions():
    """Test pages render and call functions inside the sandbox."""
    tree = MappingSource({"templates/p.html": "{{ shout('hi') }}"})
    renderer = PageRenderer(tree, {"shout": str.upper}, sandbox_policy=SandboxPolicy.strict())
    out = ResponseRecorder()

    renderer.instance("p.html").render(out)

    assert out.text == "HI"


def test_sandbox_blocks_unsafe_attribute_access():
    """Test private attribute access fails at render time."""
    tree = MappingSource({"templates/p.html": "{{ obj.__class__.__mro__ }}"})
    renderer = PageRenderer(tree, sandbox_policy=SandboxPolicy.strict())

    with pytest.raises(TemplateExecutionFault):
        renderer.instance("p.html", {"obj": object()}).render(ResponseRecorder())


def test_immutable_sandbox_blocks_mutation():
    """Test strict sandbox forbids mutating data."""
    tree = MappingSource({"templates/p.html": "{{ items.append(4) }}"})
    renderer = PageRenderer(tree, sandbox_policy=SandboxPolicy.strict())

    with pytest.raises(TemplateExecutionFault):
        renderer.instance("p.html", {"items": [1, 2, 3]}).render(ResponseRecorder())


def test_disallowed_filter_fails_compilation():
    """Test a filter stripped by the policy is a parse fault."""
    tree = MappingSource({"templates/p.html": "{{ data | tojson }}"})

    with pytest.raises(TemplateParseFault) as exc_info:
        PageRenderer(tree, sandbox_policy=SandboxPolicy.strict())

    assert "tojson" in str(exc_info.value)


def test_policy_copy_is_independent():
    """Test a copied policy shares no allowlist sets."""
    policy = SandboxPolicy.strict()
    copied = policy.copy()
    copied.allowed_globals.add("extra")

    assert copied.immutable
    assert "extra" not in policy.allowed_globals


def test_shared_policy_not_mutated_by_renderers():
    """Test function names from one renderer never leak into a shared policy."""
    policy = SandboxPolicy.strict()
    before = set(policy.allowed_globals)

    PageRenderer(MappingSource({"templates/a.html": "{{ shout('a') }}"}), {"shout": str.upper}, sandbox_policy=policy)
    other = PageRenderer(MappingSource({"templates/b.html": "{{ shout('b') }}"}), sandbox_policy=policy)

    assert policy.allowed_globals == before
    with pytest.raises(TemplateExecutionFault):
        other.instance("b.html").render(ResponseRecorder())
