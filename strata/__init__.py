"""
Strata - Layout/partial/page template composition on top of Jinja2.

Pages extend layouts, fill their blocks and include partials:

    templates/
      layouts/base.html    {% block title %}Default{% endblock %} ...
      partials/nav.html    <nav>...</nav>
      user/list.html       {% extends "layouts/base.html" %} ...

Example:
    from strata import DirectorySource, Mode, PageRenderer, default_functions

    renderer = PageRenderer(
        DirectorySource("web"),
        default_functions(),
        mode=Mode.DEBUG,
    )

    renderer.instance("user/list.html", {"users": users}).render(response)
"""

__version__ = "0.1.0"

from .engine import PageRenderer, Mode
from .instance import RenderInstance, RenderTarget, write_content_type, HTML_CONTENT_TYPE
from .compiler import TemplateCompiler, TemplateSet
from .discovery import Discovery, TemplateRole, classify, discover
from .sources import SourceTree, DirectorySource, PackageSource, MappingSource
from .functions import FunctionTable, default_functions
from .security import SandboxPolicy, TemplateSandbox
from .config import ConfigLoader, RendererConfig
from ._datastructures import Headers, ResponseRecorder
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    TemplateFault,
    SourceReadFault,
    TemplateParseFault,
    TemplateNotFoundFault,
    TemplateExecutionFault,
    DuplicateTemplateFault,
    FunctionRegistrationFault,
    ConfigInvalidFault,
)

__all__ = [
    # Core
    "PageRenderer",
    "Mode",
    "RenderInstance",
    "RenderTarget",
    "write_content_type",
    "HTML_CONTENT_TYPE",

    # Compilation
    "TemplateCompiler",
    "TemplateSet",
    "Discovery",
    "TemplateRole",
    "classify",
    "discover",

    # Sources
    "SourceTree",
    "DirectorySource",
    "PackageSource",
    "MappingSource",

    # Functions & security
    "FunctionTable",
    "default_functions",
    "SandboxPolicy",
    "TemplateSandbox",

    # Config
    "ConfigLoader",
    "RendererConfig",

    # Output
    "Headers",
    "ResponseRecorder",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "TemplateFault",
    "SourceReadFault",
    "TemplateParseFault",
    "TemplateNotFoundFault",
    "TemplateExecutionFault",
    "DuplicateTemplateFault",
    "FunctionRegistrationFault",
    "ConfigInvalidFault",
]
