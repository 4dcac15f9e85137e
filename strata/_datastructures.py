"""
Core data structures for render output.

Provides:
- Headers: Case-insensitive, multi-value response header map
- ResponseRecorder: In-memory render target (headers + body buffer)
"""

from __future__ import annotations

from typing import Dict, Iterator, List, MutableMapping, Optional, Tuple, Union


# ============================================================================
# Headers
# ============================================================================

class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header map that preserves original casing.

    Item access returns the first value; `add` and `get_all` handle
    repeated headers.
    """

    def __init__(self, items: Optional[Union[List[Tuple[str, str]], Dict[str, str]]] = None):
        # lowercased name -> (original name, values)
        self._data: Dict[str, Tuple[str, List[str]]] = {}

        if items:
            pairs = items.items() if isinstance(items, dict) else items
            for name, value in pairs:
                self.add(name, value)

    def __getitem__(self, name: str) -> str:
        entry = self._data.get(name.lower())
        if not entry or not entry[1]:
            raise KeyError(name)
        return entry[1][0]

    def __setitem__(self, name: str, value: str) -> None:
        """Set a header (replaces existing values)."""
        self._data[name.lower()] = (name, [value])

    def __delitem__(self, name: str) -> None:
        del self._data[name.lower()]

    def __iter__(self) -> Iterator[str]:
        for original, _ in self._data.values():
            yield original

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self._data.get(name.lower(), (None, []))[1])

    def __repr__(self) -> str:
        return f"Headers({self.items_list()})"

    def get_all(self, name: str) -> List[str]:
        """Get all values for a header."""
        entry = self._data.get(name.lower())
        return list(entry[1]) if entry else []

    def add(self, name: str, value: str) -> None:
        """Append a value to a header."""
        key = name.lower()
        if key in self._data:
            self._data[key][1].append(value)
        else:
            self._data[key] = (name, [value])

    def items_list(self) -> List[Tuple[str, str]]:
        """Return all headers as a flat list of tuples."""
        return [
            (original, value)
            for original, values in self._data.values()
            for value in values
        ]


# ============================================================================
# ResponseRecorder
# ============================================================================

class ResponseRecorder:
    """
    In-memory render target.

    Collects headers and written body bytes, like a test recorder for an
    HTTP response writer.
    """

    def __init__(self) -> None:
        self.headers = Headers()
        self._chunks: List[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    @property
    def chunks(self) -> List[bytes]:
        return list(self._chunks)

    def __repr__(self) -> str:
        return f"ResponseRecorder(headers={self.headers!r}, size={len(self.body)})"
