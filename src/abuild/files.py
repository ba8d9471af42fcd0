"""File pools and scratch file helpers.

A FilePool is a set of files unique by path identity (the absolute, normalised
path). Pools iterate in lexicographic path order so that the argument lists
they produce for external tools are stable from run to run.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable, Iterator, MutableSet
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

TEMP_DIR_ENV = "ABUILD_TEMP_DIR"


def _temp_root() -> str | None:
    """Directory for scratch files, from ABUILD_TEMP_DIR if set."""
    root = os.environ.get(TEMP_DIR_ENV)
    if root:
        Path(root).mkdir(parents=True, exist_ok=True)
        return root
    return None


def temp_file(kind: str = "dep") -> Path:
    """Create an empty private temporary file.

    Args:
        kind: Short label embedded in the file name (e.g. "pool", "proc_err")

    Returns:
        Path to the new file
    """
    fd, name = tempfile.mkstemp(prefix=f"abuild_{kind}_", suffix=".tmp", dir=_temp_root())
    os.close(fd)
    return Path(name)


def temp_dir(kind: str = "dep") -> Path:
    """Create an empty private temporary directory."""
    return Path(tempfile.mkdtemp(prefix=f"abuild_{kind}_", suffix=".tmp", dir=_temp_root()))


def identity(path: PathLike) -> Path:
    """Return the path identity used for pool membership."""
    return Path(os.path.normpath(os.path.abspath(path)))


def walk_files(root: PathLike) -> Iterator[Path]:
    """Yield every non-directory entry below root, depth first, in sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


class FilePool(MutableSet):
    """A deduplicated set of file handles.

    Members are stored as absolute paths. Adding a path whose identity is
    already present is a no-op.

    Usage:
        pool = FilePool([Path("src/a.c")])
        out = pool.new()            # scratch file, already in the pool
        includes = pool.parents     # distinct containing directories
    """

    def __init__(self, files: Iterable[PathLike] = ()) -> None:
        self._files: set[Path] = set()
        for f in files:
            self.add(f)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, (str, os.PathLike)):
            return False
        return identity(item) in self._files

    def __iter__(self) -> Iterator[Path]:
        return iter(sorted(self._files))

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"FilePool({[str(f) for f in self]!r})"

    @classmethod
    def _from_iterable(cls, it: Iterable[PathLike]) -> "FilePool":
        return cls(it)

    def add(self, value: PathLike) -> None:
        self._files.add(identity(value))

    def discard(self, value: PathLike) -> None:
        self._files.discard(identity(value))

    def update(self, *others: Iterable[PathLike]) -> None:
        for other in others:
            for f in other:
                self.add(f)

    def new(self) -> Path:
        """Allocate a fresh scratch file, add it to the pool and return it."""
        temp = temp_file("pool")
        self.add(temp)
        return temp

    @property
    def parents(self) -> "FilePool":
        """Distinct parent directories of all member files."""
        return FilePool(f.parent for f in self._files)

    def expand(self) -> "FilePool":
        """Return a pool with every directory member replaced by its files.

        Directories are expanded recursively; only non-directory entries are
        kept.
        """
        expanded = FilePool()
        for f in self._files:
            if f.is_dir():
                expanded.update(walk_files(f))
            else:
                expanded.add(f)
        return expanded

    def first(self) -> Path:
        """Return the first member in iteration order.

        Raises:
            LookupError: If the pool is empty
        """
        for f in self:
            return f
        raise LookupError("File pool is empty")


def file_pool(files: Iterable[PathLike] = ()) -> FilePool:
    return FilePool(files)


@dataclass(frozen=True)
class PrefixedPool:
    """A file pool whose members are passed to a tool with a common prefix.

    Marshals into one argument per member of the form prefix + absolute path,
    e.g. prefixed("-I", headers.parents) for compiler include flags.
    """

    prefix: str
    files: FilePool

    def arguments(self) -> list[str]:
        return [f"{self.prefix}{f}" for f in self.files]


def prefixed(prefix: str, files: FilePool) -> PrefixedPool:
    return PrefixedPool(prefix, files)


def output_path(path: PathLike) -> Path:
    """Return a destination path, creating its parent directories."""
    p = Path(path)
    p.absolute().parent.mkdir(parents=True, exist_ok=True)
    return p


def install(source: PathLike, destination: PathLike) -> Path:
    """Move a build output into place.

    Any existing file at the destination is deleted first. The overwrite is not
    atomic.

    Args:
        source: File produced by the build (usually a scratch file)
        destination: Final location

    Returns:
        The destination path

    Raises:
        IsADirectoryError: If the destination is an existing directory
    """
    dest = output_path(destination)
    if dest.is_dir() and not dest.is_symlink():
        raise IsADirectoryError(f"Install destination is a directory: {dest}")
    if dest.exists() or dest.is_symlink():
        dest.unlink()
    shutil.move(str(source), str(dest))
    logger.debug("Installed %s -> %s", source, dest)
    return dest
