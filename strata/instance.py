"""
Render Instance - Per-call handle binding a page name and data to a render.

A RenderInstance is created by `PageRenderer.instance()` for one response
and discarded afterwards. It never buffers: output is streamed chunk by
chunk into the target, so an execution failure leaves whatever was
already written in place.
"""

from typing import Any, Dict, Mapping, MutableMapping, Optional, Protocol
import logging

from ._datastructures import Headers
from .compiler import TemplateSet
from .faults import TemplateExecutionFault, TemplateFault, TemplateNotFoundFault


logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class RenderTarget(Protocol):
    """Anything with response headers and a byte sink."""

    headers: MutableMapping[str, Any]

    def write(self, data: bytes) -> Any:
        ...


def has_content_type(headers: MutableMapping[str, Any]) -> bool:
    """Whether a Content-Type header is present, whatever its value."""
    if isinstance(headers, Headers):
        return bool(headers.get_all("Content-Type"))

    return any(name.lower() == "content-type" for name in headers)


def write_content_type(output: RenderTarget) -> None:
    """
    Set the HTML Content-Type header unless one is already present.

    Idempotent; a value set earlier by the caller or middleware wins.
    """
    if not has_content_type(output.headers):
        output.headers["Content-Type"] = HTML_CONTENT_TYPE


class RenderInstance:
    """
    Pending render of page `name` with `data`.

    Args:
        name: Page registry name (e.g. "user/list.html")
        data: Mapping spread into the template context, None for an empty
            context, or any other object exposed as `data`
        template_set: Compiled page set, None when unresolved
        error: Fault captured while compiling (debug mode)
    """

    def __init__(
        self,
        name: str,
        data: Any = None,
        template_set: Optional[TemplateSet] = None,
        error: Optional[TemplateFault] = None,
    ):
        self.name = name
        self.data = data
        self.template_set = template_set
        self.error = error
        self.content_type_written = False

    def write_content_type(self, output: RenderTarget) -> None:
        write_content_type(output)
        self.content_type_written = True

    def context(self) -> Dict[str, Any]:
        if self.data is None:
            return {}
        if isinstance(self.data, Mapping):
            return dict(self.data)
        return {"data": self.data}

    def render(self, output: RenderTarget) -> None:
        """
        Render the page into `output`.

        The Content-Type header is written first, on every path.

        Raises:
            TemplateFault: Deferred compile fault (debug mode)
            TemplateNotFoundFault: No compiled template for `name`
            TemplateExecutionFault: Rendering failed; bytes already written
                to `output` are left as they are
        """
        self.write_content_type(output)

        if self.error is not None:
            raise self.error

        template = self.template_set.get_template(self.name) if self.template_set is not None else None
        if template is None:
            raise TemplateNotFoundFault(self.name)

        chunks = template.generate(self.context())
        try:
            while True:
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except Exception as exc:
                    logger.error(f"Template '{self.name}' failed during render: {exc}")
                    raise TemplateExecutionFault(self.name, str(exc)) from exc

                try:
                    encoded = chunk.encode("utf-8")
                except UnicodeEncodeError as exc:
                    logger.error(f"Template '{self.name}' failed during render: {exc}")
                    raise TemplateExecutionFault(self.name, str(exc)) from exc

                # Write failures (closed destination) propagate unchanged.
                output.write(encoded)
        finally:
            chunks.close()

    def __repr__(self) -> str:
        state = "error" if self.error is not None else ("resolved" if self.template_set is not None else "unresolved")
        return f"RenderInstance({self.name!r}, {state})"
