"""Filesystem and naming helpers shared by the patcher and the CLI."""

import os
import shutil
from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]


def path_resolve(base: PathLike, *parts: PathLike) -> Path:
    """Join ``parts`` onto ``base`` and normalize the result to an absolute path."""
    return Path(base, *parts).expanduser().resolve()


def path_absolute(base: PathLike, *parts: PathLike) -> Path:
    """Join ``parts`` onto ``base`` into a normalized absolute path without following symlinks."""
    return Path(os.path.normpath(Path(base, *parts).expanduser().absolute()))


def is_within(path: Path, root: Path) -> bool:
    """Check whether ``path`` is ``root`` or lies under it."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def directory_as_list(root: PathLike, exclude: Optional[PathLike] = None) -> List[Path]:
    """List every regular file under ``root``, recursively, in sorted order.

    Args:
        root: Directory to enumerate
        exclude: Directory whose files are skipped when it is nested in ``root``
                 (e.g. an output tree inside the input tree)

    Returns:
        Absolute file paths; empty when ``root`` does not exist
    """
    root = path_resolve(root)
    if not root.is_dir():
        return []

    excluded = path_resolve(exclude) if exclude is not None else None
    if excluded is not None and (excluded == root or not is_within(excluded, root)):
        excluded = None

    files = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if excluded is not None and is_within(path, excluded):
            continue
        files.append(path)
    return files


def mirror_path(path: PathLike, input_dir: PathLike, output_dir: PathLike) -> Path:
    """Map a path under ``input_dir`` to the same relative path under ``output_dir``.

    The mapping is lexical: a symlink is mirrored under its own name, not
    under the name of its target.

    Raises:
        ValueError: If ``path`` is not inside ``input_dir``
    """
    relative = path_absolute(path).relative_to(path_absolute(input_dir))
    return path_absolute(output_dir) / relative


def rrmdir(directory: PathLike) -> None:
    """Recursively remove ``directory`` and everything below it."""
    shutil.rmtree(directory)


def snake_to_camel_case(name: str) -> str:
    """Convert ``remove_block`` to ``RemoveBlock``."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def unescape(text: str) -> str:
    """Expand ``\\n`` and ``\\t`` escapes in single-line directive arguments."""
    return text.replace("\\n", "\n").replace("\\t", "\t")
