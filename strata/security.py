"""
Template Security - Sandboxing and autoescape policies.

Provides:
- SandboxPolicy: allowlists for filters, tests and globals
- TemplateSandbox: builds sandboxed Jinja2 environments from a policy
- Autoescape selection shared by sandboxed and plain environments
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Set, Type

from jinja2 import Environment, select_autoescape
from jinja2.sandbox import ImmutableSandboxedEnvironment, SandboxedEnvironment


DEFAULT_AUTOESCAPE_EXTENSIONS = ["html", "htm", "xml", "xhtml"]


def autoescape_for(enabled: bool, extensions: Iterable[str] = ()) -> Any:
    """
    Build the `autoescape` option for an environment.

    Names ending in a markup extension (plus any configured template
    extension) are escaped; string templates are escaped by default.
    """
    if not enabled:
        return False

    suffixes = list(DEFAULT_AUTOESCAPE_EXTENSIONS)
    for ext in extensions:
        ext = ext.lstrip(".")
        if ext and ext not in suffixes:
            suffixes.append(ext)

    return select_autoescape(
        enabled_extensions=suffixes,
        disabled_extensions=[],
        default_for_string=True,
        default=False,
    )


@dataclass
class SandboxPolicy:
    """
    Template sandbox security policy.

    Attributes:
        allow_unsafe_filters: Keep every built-in filter
        allow_unsafe_tests: Keep every built-in test
        allow_unsafe_globals: Keep every built-in global
        allowed_filters: Allowlist of filter names
        allowed_tests: Allowlist of test names
        allowed_globals: Allowlist of global names
        immutable: Forbid mutating methods on lists/dicts inside templates
    """

    allow_unsafe_filters: bool = False
    allow_unsafe_tests: bool = False
    allow_unsafe_globals: bool = False

    allowed_filters: Set[str] = field(default_factory=lambda: {
        "abs", "attr", "batch", "capitalize", "center", "default", "d",
        "dictsort", "e", "escape", "filesizeformat", "first", "float",
        "forceescape", "format", "groupby", "indent", "int", "join",
        "last", "length", "count", "list", "lower", "map", "max", "min",
        "reject", "rejectattr", "replace", "reverse", "round", "safe",
        "select", "selectattr", "slice", "sort", "string", "striptags",
        "sum", "title", "trim", "truncate", "unique", "upper", "urlencode",
        "urlize", "wordcount", "wordwrap", "xmlattr",
    })

    allowed_tests: Set[str] = field(default_factory=lambda: {
        "boolean", "callable", "defined", "divisibleby", "eq", "even",
        "false", "ge", "gt", "in", "iterable", "le", "lower", "lt",
        "mapping", "ne", "none", "number", "odd", "sameas", "sequence",
        "string", "true", "undefined", "upper",
    })

    allowed_globals: Set[str] = field(default_factory=lambda: {
        "range", "dict", "cycler", "joiner", "namespace",
    })

    immutable: bool = False

    @classmethod
    def strict(cls) -> "SandboxPolicy":
        """Strict policy for production (minimal allowlist)."""
        return cls(immutable=True)

    @classmethod
    def permissive(cls) -> "SandboxPolicy":
        """Permissive policy for development (expanded allowlist)."""
        policy = cls()
        policy.allowed_filters.update(["tojson", "pprint"])
        policy.allowed_globals.add("lipsum")
        return policy

    def copy(self) -> "SandboxPolicy":
        """Independent copy; allowlist sets are not shared."""
        return replace(
            self,
            allowed_filters=set(self.allowed_filters),
            allowed_tests=set(self.allowed_tests),
            allowed_globals=set(self.allowed_globals),
        )

    def is_filter_allowed(self, name: str) -> bool:
        return self.allow_unsafe_filters or name in self.allowed_filters

    def is_test_allowed(self, name: str) -> bool:
        return self.allow_unsafe_tests or name in self.allowed_tests

    def is_global_allowed(self, name: str) -> bool:
        return self.allow_unsafe_globals or name in self.allowed_globals


class TemplateSandbox:
    """
    Creates sandboxed Jinja2 environments for a security policy.

    Globals registered here (the function table) are added to the
    policy's allowlist so they survive filtering.

    Args:
        policy: Security policy to enforce
    """

    def __init__(self, policy: SandboxPolicy):
        self.policy = policy
        self._custom_globals: Dict[str, Any] = {}

    @property
    def environment_class(self) -> Type[Environment]:
        if self.policy.immutable:
            return ImmutableSandboxedEnvironment
        return SandboxedEnvironment

    def register_global(self, name: str, value: Any) -> None:
        self._custom_globals[name] = value
        self.policy.allowed_globals.add(name)

    def register_globals(self, values: Dict[str, Callable[..., Any]]) -> None:
        for name, value in values.items():
            self.register_global(name, value)

    def create_environment(self, **kwargs: Any) -> SandboxedEnvironment:
        """
        Create a sandboxed environment with disallowed names removed.

        Args:
            **kwargs: Environment options (loader, autoescape, undefined, ...)
        """
        env = self.environment_class(**kwargs)
        env.globals.update(self._custom_globals)
        self._filter_environment(env)
        return env

    def _filter_environment(self, env: Environment) -> None:
        """Remove disallowed filters, tests, and globals from environment."""
        for name in list(env.filters.keys()):
            if not self.policy.is_filter_allowed(name):
                del env.filters[name]

        for name in list(env.tests.keys()):
            if not self.policy.is_test_allowed(name):
                del env.tests[name]

        for name in list(env.globals.keys()):
            if not self.policy.is_global_allowed(name):
                del env.globals[name]
