"""
Template Compiler - Base sets, page sets and the compiled namespace.

Loading strategy:
1. Compile every layout (templates/layouts/...) and partial
   (templates/partials/...) into one base set.
2. For each page, clone the base set and compile the page on top, so the
   page can `{% extends %}` a layout, override its blocks and include
   partials.

A set is a table of compiled Jinja2 code keyed by template name plus a
private Environment. Cloning copies the table and binds fresh Template
objects to a fresh Environment; code objects are immutable and shared.
"""

from types import CodeType, MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Sequence, Tuple
import logging

from jinja2 import (
    BaseLoader,
    Environment,
    StrictUndefined,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    Undefined,
)

from .discovery import DEFAULT_EXTENSIONS, DEFAULT_ROOT, Discovery, discover
from .faults import SourceReadFault, TemplateParseFault
from .functions import FunctionTable
from .security import SandboxPolicy, TemplateSandbox, autoescape_for
from .sources import SourceTree


logger = logging.getLogger(__name__)


class CompiledSetLoader(BaseLoader):
    """
    Jinja2 loader that resolves names against one set's compiled table.

    Never reads sources: `{% extends %}`, `{% include %}` and
    `{% import %}` only see what was compiled into the owning set.
    """

    has_source_access = False

    def __init__(self, template_set: "TemplateSet"):
        self._set = template_set

    def get_source(self, environment: Environment, template: str) -> Tuple[str, Optional[str], Optional[Callable[[], bool]]]:
        # Sources are not retained; load() serves compiled templates.
        raise TemplateNotFound(template)

    def load(
        self,
        environment: Environment,
        name: str,
        globals: Optional[MutableMapping[str, Any]] = None,
    ) -> Template:
        template = self._set.templates.get(name)
        if template is None:
            raise TemplateNotFound(name)
        return template

    def list_templates(self) -> List[str]:
        return self._set.names()


class TemplateSet:
    """
    A compiled template namespace.

    Args:
        factory: Callable building a fresh Environment for a loader
        codes: Initial name -> compiled code table

    Attributes:
        env: The set's private Jinja2 environment
        templates: name -> Template bound to `env`
    """

    def __init__(
        self,
        factory: Callable[[BaseLoader], Environment],
        codes: Optional[Mapping[str, CodeType]] = None,
    ):
        self._factory = factory
        self._codes: Dict[str, CodeType] = dict(codes or {})
        self.env = factory(CompiledSetLoader(self))
        self.templates: Dict[str, Template] = {
            name: self._bind(name, code) for name, code in self._codes.items()
        }

    def _bind(self, name: str, code: CodeType) -> Template:
        return self.env.template_class.from_code(
            self.env, code, self.env.make_globals(None), None
        )

    def add(self, name: str, source: str, filename: Optional[str] = None) -> Template:
        """
        Compile `source` into this set under `name`.

        A later definition of the same name replaces the earlier one.

        Raises:
            TemplateParseFault: If the source has invalid syntax
        """
        try:
            code = self.env.compile(source, name, filename)
        except TemplateSyntaxError as exc:
            raise TemplateParseFault(name, exc.message or str(exc), exc.lineno) from exc

        self._codes[name] = code
        template = self._bind(name, code)
        self.templates[name] = template
        return template

    def clone(self) -> "TemplateSet":
        """Independent copy sharing no mutable state with this set."""
        return TemplateSet(self._factory, self._codes)

    def get_template(self, name: str) -> Optional[Template]:
        return self.templates.get(name)

    def names(self) -> List[str]:
        return sorted(self.templates)

    def __contains__(self, name: object) -> bool:
        return name in self.templates

    def __len__(self) -> int:
        return len(self.templates)

    def __repr__(self) -> str:
        return f"TemplateSet({self.names()})"


class TemplateCompiler:
    """
    Builds base sets and page sets from a source tree.

    The function table is bound into every environment the compiler
    creates, so clones inherit it.

    Args:
        functions: Template function table
        sandbox_policy: Compile into a sandboxed environment when given
        autoescape: Enable HTML autoescaping
        strict_undefined: Raise on undefined variables instead of rendering ""
        extensions: Template suffixes; also enable autoescaping for them
    """

    def __init__(
        self,
        functions: Optional[FunctionTable] = None,
        *,
        sandbox_policy: Optional[SandboxPolicy] = None,
        autoescape: bool = True,
        strict_undefined: bool = True,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        self.functions = functions if functions is not None else FunctionTable()
        self.autoescape = autoescape_for(autoescape, extensions)
        self.undefined = StrictUndefined if strict_undefined else Undefined

        self._sandbox: Optional[TemplateSandbox] = None
        if sandbox_policy is not None:
            self._sandbox = TemplateSandbox(sandbox_policy.copy())
            self._sandbox.register_globals(self.functions.as_globals())

    def create_environment(self, loader: BaseLoader) -> Environment:
        """Environment recipe shared by every set this compiler builds."""
        options = dict(
            loader=loader,
            autoescape=self.autoescape,
            undefined=self.undefined,
            cache_size=0,
            auto_reload=False,
        )

        if self._sandbox is not None:
            return self._sandbox.create_environment(**options)

        env = Environment(**options)
        env.globals.update(self.functions.as_globals())
        return env

    def new_set(self) -> TemplateSet:
        return TemplateSet(self.create_environment)

    def build_base(self, tree: SourceTree, discovery: Discovery) -> TemplateSet:
        """
        Compile every layout and partial into one base set.

        Raises:
            SourceReadFault: If a source cannot be read or decoded
            TemplateParseFault: If a source has invalid syntax
        """
        base = self.new_set()
        for name in discovery.base:
            path = discovery.paths[name]
            base.add(name, read_source(tree, path), path)

        logger.debug(f"Compiled base set with {len(base)} templates")
        return base

    def compile_page(self, base: TemplateSet, tree: SourceTree, discovery: Discovery, name: str) -> TemplateSet:
        """Clone `base` and compile page `name` on top of it."""
        page_set = base.clone()
        path = discovery.paths[name]
        page_set.add(name, read_source(tree, path), path)
        return page_set

    def compile_all(
        self,
        tree: SourceTree,
        root: str = DEFAULT_ROOT,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> Mapping[str, TemplateSet]:
        """
        Compile a page set for every discovered page.

        Any failure aborts the whole build.

        Returns:
            Read-only mapping of page name -> page set
        """
        discovery = discover(tree, root, extensions)
        base = self.build_base(tree, discovery)

        registry = {
            name: self.compile_page(base, tree, discovery, name)
            for name in discovery.pages
        }

        return MappingProxyType(registry)

    def compile_one(
        self,
        tree: SourceTree,
        name: str,
        root: str = DEFAULT_ROOT,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> Optional[TemplateSet]:
        """
        Compile only page `name` against a freshly built base set.

        Returns:
            The page set, or None if discovery does not list `name` as a page
        """
        discovery = discover(tree, root, extensions)
        base = self.build_base(tree, discovery)

        if name not in discovery.pages:
            return None

        return self.compile_page(base, tree, discovery, name)


def read_source(tree: SourceTree, path: str) -> str:
    """Read and decode one template source."""
    raw = tree.read(path)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SourceReadFault(path, f"not valid UTF-8: {exc}") from exc
