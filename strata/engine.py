"""
Page Renderer - Layout/partial/page composition in release or debug mode.

Release mode compiles every page once, at construction, and serves renders
from an immutable registry. Debug mode keeps nothing: each render call
re-reads the tree, rebuilds the base set and compiles the requested page,
so edits on disk show up on the next request.

Example:
    renderer = PageRenderer(DirectorySource("web"), default_functions())

    instance = renderer.instance("user/list.html", {"users": users})
    instance.render(response)
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Sequence, Union
import logging
import time

from .compiler import TemplateCompiler, TemplateSet
from .discovery import DEFAULT_EXTENSIONS, DEFAULT_ROOT, discover
from .faults import TemplateFault
from .functions import FunctionTable
from .instance import RenderInstance
from .security import SandboxPolicy
from .sources import DirectorySource, SourceTree

if TYPE_CHECKING:
    from .config import RendererConfig


logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Execution mode, fixed for a renderer's lifetime."""
    RELEASE = "release"
    DEBUG = "debug"


class PageRenderer:
    """
    Renders pages composed from layouts, partials and page templates.

    Args:
        tree: Source tree containing the templates root
        functions: Template function table (FunctionTable or plain mapping)
        mode: Release (compile once) or debug (recompile per render)
        root: Templates root inside the tree
        extensions: Template file suffixes
        sandbox_policy: Compile into a sandboxed environment when given
        autoescape: Enable HTML autoescaping
        strict_undefined: Raise on undefined variables

    Raises:
        TemplateFault: In release mode, if any template fails to read or
            parse. The renderer is never usable in that case.
    """

    def __init__(
        self,
        tree: SourceTree,
        functions: Optional[Union[FunctionTable, Mapping[str, Callable[..., Any]]]] = None,
        *,
        mode: Mode = Mode.RELEASE,
        root: str = DEFAULT_ROOT,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        sandbox_policy: Optional[SandboxPolicy] = None,
        autoescape: bool = True,
        strict_undefined: bool = True,
    ):
        if not isinstance(functions, FunctionTable):
            functions = FunctionTable.from_mapping(functions)

        self.tree = tree
        self.root = root
        self.extensions = tuple(extensions)
        self._mode = Mode(mode)
        self._compiler = TemplateCompiler(
            functions,
            sandbox_policy=sandbox_policy,
            autoescape=autoescape,
            strict_undefined=strict_undefined,
            extensions=self.extensions,
        )
        self._registry: Optional[Mapping[str, TemplateSet]] = None

        if self._mode is Mode.RELEASE:
            start = time.perf_counter()
            self._registry = self._compiler.compile_all(tree, root, self.extensions)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"Compiled {len(self._registry)} page templates from {tree!r} in {elapsed_ms:.1f}ms"
            )
        else:
            logger.info(f"Page renderer in debug mode; templates recompile on every render from {tree!r}")

    @classmethod
    def from_config(
        cls,
        config: "RendererConfig",
        tree: Optional[SourceTree] = None,
        functions: Optional[Union[FunctionTable, Mapping[str, Callable[..., Any]]]] = None,
    ) -> "PageRenderer":
        """
        Build a renderer from configuration.

        Uses a DirectorySource over `config.source_dir` unless a tree is given.
        """
        return cls(
            tree if tree is not None else DirectorySource(config.source_dir),
            functions,
            mode=Mode(config.mode),
            root=config.root,
            extensions=config.extensions,
            sandbox_policy=config.build_sandbox_policy(),
            autoescape=config.autoescape,
            strict_undefined=config.strict_undefined,
        )

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def debug(self) -> bool:
        return self._mode is Mode.DEBUG

    @property
    def functions(self) -> FunctionTable:
        return self._compiler.functions

    @property
    def registry(self) -> Optional[Mapping[str, TemplateSet]]:
        """Immutable page registry (release mode), None in debug mode."""
        return self._registry

    def pages(self) -> List[str]:
        """
        Names accepted by `instance()`.

        Debug mode re-discovers the tree, so this may raise SourceReadFault.
        """
        if self._registry is not None:
            return sorted(self._registry)
        return list(discover(self.tree, self.root, self.extensions).pages)

    def instance(self, name: str, data: Any = None) -> RenderInstance:
        """
        Resolve page `name` for rendering with `data`.

        Never raises for template problems: in debug mode compile faults are
        stored on the instance and surface from `render()`.
        """
        if self._registry is not None:
            return RenderInstance(name, data, self._registry.get(name))

        try:
            template_set = self._compiler.compile_one(self.tree, name, self.root, self.extensions)
        except TemplateFault as fault:
            logger.warning(f"Deferred template fault for '{name}': {fault}")
            return RenderInstance(name, data, error=fault)

        logger.debug(f"Recompiled '{name}' (found={template_set is not None})")
        return RenderInstance(name, data, template_set)

    def render(self, name: str, output: Any, data: Any = None) -> None:
        """Shortcut for `instance(name, data).render(output)`."""
        self.instance(name, data).render(output)

    def __repr__(self) -> str:
        return f"PageRenderer({self.tree!r}, mode={self._mode.value})"

