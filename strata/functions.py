"""
Template Functions - Typed, registration-validated function table.

Functions are checked once, when registered: the name must be a valid
identifier usable from template expressions and the callable must expose
an introspectable signature. Templates then call them as plain globals.

Provides:
- FunctionTable: name -> callable map bound into every compiled set
- default_functions(): helpers for JSON embedding, dates, arithmetic
"""

from __future__ import annotations

import datetime
import inspect
import keyword
import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from jinja2.utils import htmlsafe_json_dumps
from markupsafe import Markup

from .faults import FunctionRegistrationFault


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FunctionTable:
    """
    Mapping of template function names to validated callables.

    Example:
        table = FunctionTable()
        table.register("add", lambda a, b: a + b)

        renderer = PageRenderer(tree, table)
        # {{ add(page, 1) }} inside any template
    """

    def __init__(self) -> None:
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._signatures: Dict[str, inspect.Signature] = {}

    @classmethod
    def from_mapping(cls, functions: Optional[Mapping[str, Callable[..., Any]]]) -> "FunctionTable":
        """Build a table from a plain mapping, validating every entry."""
        table = cls()
        for name, func in (functions or {}).items():
            table.register(name, func)
        return table

    def register(self, name: str, func: Callable[..., Any]) -> None:
        """
        Register a template function.

        Args:
            name: Name templates use to call the function
            func: Callable with an introspectable signature

        Raises:
            FunctionRegistrationFault: If name or callable is invalid
        """
        if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
            raise FunctionRegistrationFault(str(name), "name must be a valid identifier")
        if name in self._functions:
            raise FunctionRegistrationFault(name, "name is already registered")
        if not callable(func):
            raise FunctionRegistrationFault(name, f"expected a callable, got {type(func).__name__}")

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError) as exc:
            raise FunctionRegistrationFault(name, f"signature is not introspectable: {exc}") from exc

        self._functions[name] = func
        self._signatures[name] = signature

    def signature(self, name: str) -> inspect.Signature:
        """Signature captured when `name` was registered."""
        return self._signatures[name]

    def names(self) -> List[str]:
        return sorted(self._functions)

    def as_globals(self) -> Dict[str, Callable[..., Any]]:
        """Copy of the table suitable for Jinja2 environment globals."""
        return dict(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __repr__(self) -> str:
        return f"FunctionTable({self.names()})"


def default_functions() -> FunctionTable:
    """
    Create the default helper table.

    Helpers:
        json(value): JSON literal safe to embed in HTML/JS, "null" on failure
        format_date(value): "YYYY-MM-DD HH:MM:SS"
        dangerously_set_inner_html(value): mark a trusted string as markup.
            Never pass user-supplied data.
        add(a, b), sub(a, b): integer arithmetic for pagination
        seq(start, end): inclusive integer range, empty when start > end
    """

    def json(value: Any) -> Markup:
        try:
            return htmlsafe_json_dumps(value)
        except (TypeError, ValueError) as exc:
            logger.debug(f"json() could not serialize {type(value).__name__}: {exc}")
            return Markup("null")

    def format_date(value: datetime.datetime) -> str:
        return value.strftime(DATE_FORMAT)

    def dangerously_set_inner_html(value: str) -> Markup:
        return Markup(value)

    def add(a: int, b: int) -> int:
        return a + b

    def sub(a: int, b: int) -> int:
        return a - b

    def seq(start: int, end: int) -> List[int]:
        if start > end:
            return []
        return list(range(start, end + 1))

    return FunctionTable.from_mapping({
        "json": json,
        "format_date": format_date,
        "dangerously_set_inner_html": dangerously_set_inner_html,
        "add": add,
        "sub": sub,
        "seq": seq,
    })
