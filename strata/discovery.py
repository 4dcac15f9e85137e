"""
Page Discovery - Classify template sources into layouts, partials and pages.

Every source under the templates root belongs to exactly one role,
decided by the first segment of its root-relative path:

    templates/
      layouts/   - page skeletons with overridable blocks
      partials/  - reusable fragments (nav, footer, form macros)
      <module>/  - pages, any nesting depth (user/list.html, errors/404.html)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple
import logging

from .faults import DuplicateTemplateFault
from .sources import SourceTree


logger = logging.getLogger(__name__)

LAYOUTS_PREFIX = "layouts/"
PARTIALS_PREFIX = "partials/"
DEFAULT_ROOT = "templates"
DEFAULT_EXTENSIONS = (".html",)


class TemplateRole(str, Enum):
    """Role of a template source within a composed set."""
    LAYOUT = "layout"
    PARTIAL = "partial"
    PAGE = "page"


def classify(name: str) -> TemplateRole:
    """
    Classify a root-relative template name by its prefix.

    Examples:
        "layouts/base.html" -> LAYOUT
        "partials/nav.html" -> PARTIAL
        "user/list.html" -> PAGE
        "layouts.html" -> PAGE
    """
    if name.startswith(LAYOUTS_PREFIX):
        return TemplateRole.LAYOUT
    if name.startswith(PARTIALS_PREFIX):
        return TemplateRole.PARTIAL
    return TemplateRole.PAGE


def normalize_name(path: str) -> str:
    """Normalize a tree path to a '/'-separated template name."""
    return "/".join(part for part in path.replace("\\", "/").split("/") if part)


@dataclass(frozen=True)
class Discovery:
    """
    Result of walking a source tree.

    Attributes:
        layouts: Layout names, sorted
        partials: Partial names, sorted
        pages: Page names, sorted (these become registry keys)
        paths: Template name -> tree path to read it from
    """

    layouts: Tuple[str, ...] = ()
    partials: Tuple[str, ...] = ()
    pages: Tuple[str, ...] = ()
    paths: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def base(self) -> Tuple[str, ...]:
        """Layouts followed by partials, in compile order."""
        return self.layouts + self.partials

    def __contains__(self, name: str) -> bool:
        return name in self.paths


def discover(
    tree: SourceTree,
    root: str = DEFAULT_ROOT,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Discovery:
    """
    Walk a source tree and classify every template under `root`.

    Args:
        tree: Source tree to enumerate
        root: Templates root inside the tree
        extensions: File suffixes that count as templates

    Returns:
        Discovery with layouts, partials and pages

    Raises:
        SourceReadFault: If the tree cannot be enumerated
        DuplicateTemplateFault: If two paths normalize to the same name
    """
    root_name = normalize_name(root)
    prefix = f"{root_name}/" if root_name else ""
    suffixes = tuple(extensions)

    claimed: Dict[str, List[str]] = {}
    for path in tree.list_paths():
        normalized = normalize_name(path)
        if not normalized.startswith(prefix) or not normalized.endswith(suffixes):
            continue
        name = normalized[len(prefix):]
        claimed.setdefault(name, []).append(path)

    for name, paths in claimed.items():
        if len(paths) > 1:
            raise DuplicateTemplateFault(name, sorted(paths))

    buckets: Dict[TemplateRole, List[str]] = {role: [] for role in TemplateRole}
    for name in claimed:
        buckets[classify(name)].append(name)

    discovery = Discovery(
        layouts=tuple(sorted(buckets[TemplateRole.LAYOUT])),
        partials=tuple(sorted(buckets[TemplateRole.PARTIAL])),
        pages=tuple(sorted(buckets[TemplateRole.PAGE])),
        paths=MappingProxyType({name: paths[0] for name, paths in claimed.items()}),
    )

    logger.debug(
        f"Discovered {len(discovery.layouts)} layouts, {len(discovery.partials)} partials, "
        f"{len(discovery.pages)} pages under {root!r}"
    )

    return discovery
