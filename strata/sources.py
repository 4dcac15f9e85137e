"""
Template Sources - Path-addressed stores of raw template markup.

Supports:
- Disk folders (hot-reload friendly, used in debug mode)
- Bundled package resources (shipped inside a wheel)
- In-memory mappings (tests, generated templates)

Every tree exposes '/'-separated paths relative to its own root.
"""

from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from importlib import resources
from pathlib import Path
from typing import Dict, List, Mapping, Union
import os

from .faults import SourceReadFault


class SourceTree(ABC):
    """
    Read-only, path-addressed store of template sources.

    Subclasses implement listing and reading; globbing is shared.
    """

    @abstractmethod
    def list_paths(self) -> List[str]:
        """
        List every file in the tree.

        Returns:
            Sorted '/'-separated paths relative to the tree root

        Raises:
            SourceReadFault: If the tree cannot be enumerated
        """

    @abstractmethod
    def read(self, path: str) -> bytes:
        """
        Read raw bytes of a path.

        Raises:
            SourceReadFault: If the path cannot be read
        """

    def glob(self, pattern: str) -> List[str]:
        """
        List paths matching a shell pattern.

        '*' never crosses a '/' boundary, matching how the host
        filesystem would glob a single directory level.
        """
        depth = pattern.count("/")
        return [
            path for path in self.list_paths()
            if path.count("/") == depth and fnmatchcase(path, pattern)
        ]


class DirectorySource(SourceTree):
    """
    Template tree backed by a folder on disk.

    Reads are performed on every call, so edits are visible to the
    next compile.

    Args:
        root: Folder containing the templates root (e.g. "web")
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def list_paths(self) -> List[str]:
        if not self.root.is_dir():
            raise SourceReadFault(str(self.root), "directory does not exist")

        paths = []
        try:
            for dirpath, _dirs, files in os.walk(self.root):
                base = Path(dirpath)
                for filename in files:
                    relative = (base / filename).relative_to(self.root)
                    paths.append(relative.as_posix())
        except OSError as exc:
            raise SourceReadFault(str(self.root), str(exc)) from exc

        return sorted(paths)

    def read(self, path: str) -> bytes:
        try:
            return (self.root / path).read_bytes()
        except OSError as exc:
            raise SourceReadFault(path, str(exc)) from exc

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.root)!r})"


class PackageSource(SourceTree):
    """
    Template tree bundled as package resources.

    Args:
        package: Importable package name (e.g. "myapp.web")
        path: Sub-directory inside the package holding the tree
    """

    def __init__(self, package: str, path: str = ""):
        self.package = package
        self.path = path.strip("/")

    def _base(self):
        try:
            base = resources.files(self.package)
        except (ImportError, TypeError) as exc:
            raise SourceReadFault(self.package, str(exc)) from exc
        if self.path:
            base = base.joinpath(self.path)
        return base

    def list_paths(self) -> List[str]:
        base = self._base()
        if not base.is_dir():
            raise SourceReadFault(f"{self.package}:{self.path}", "resource directory does not exist")

        paths = []
        pending = [(base, "")]
        while pending:
            node, prefix = pending.pop()
            for child in node.iterdir():
                name = f"{prefix}{child.name}"
                if child.is_dir():
                    pending.append((child, f"{name}/"))
                else:
                    paths.append(name)

        return sorted(paths)

    def read(self, path: str) -> bytes:
        try:
            return self._base().joinpath(*path.split("/")).read_bytes()
        except OSError as exc:
            raise SourceReadFault(f"{self.package}:{path}", str(exc)) from exc

    def __repr__(self) -> str:
        return f"PackageSource({self.package!r}, {self.path!r})"


class MappingSource(SourceTree):
    """
    In-memory template tree.

    Args:
        files: Mapping of path to source (str is encoded as UTF-8)
    """

    def __init__(self, files: Mapping[str, Union[str, bytes]]):
        self._files: Dict[str, bytes] = {
            path: content.encode("utf-8") if isinstance(content, str) else bytes(content)
            for path, content in files.items()
        }

    def list_paths(self) -> List[str]:
        return sorted(self._files)

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError:
            raise SourceReadFault(path, "no such file") from None

    def __repr__(self) -> str:
        return f"MappingSource({len(self._files)} files)"
