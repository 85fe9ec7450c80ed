"""File buffer: one file's original content plus its accumulated edits."""

from pathlib import Path
from typing import Optional, Union

from lily.core.errors import FileWriteError, SourceFileNotFoundError

PathLike = Union[str, Path]

ENCODING = "utf-8"
# Undecodable bytes survive a load/save round trip unchanged
ERRORS = "surrogateescape"


class FileBuffer:
    """Mutable in-memory representation of a file during a patch run.

    The original content is read once. Tasks read and replace the modified
    content; the buffer is written out by :meth:`save`.

    Attributes:
        name: Origin path, or None for in-memory content

    Example:
        >>> buffer = FileBuffer.from_content("hello")
        >>> buffer.set_modified_content(buffer.get_modified_content().upper())
        >>> buffer.get_modified_content()
        'HELLO'
    """

    def __init__(self, name: Optional[PathLike] = None, content: Optional[str] = None) -> None:
        self.name: Optional[Path] = Path(name) if name is not None else None

        if content is None:
            if self.name is None:
                content = ""
            else:
                content = _read(self.name)

        self._original = content
        self._modified = content

    @classmethod
    def load(cls, path: PathLike) -> "FileBuffer":
        """Load a buffer from ``path``.

        Raises:
            SourceFileNotFoundError: If ``path`` is not an existing file
        """
        return cls(path)

    @classmethod
    def from_content(cls, content: str) -> "FileBuffer":
        return cls(None, content)

    def get_original_content(self) -> str:
        return self._original

    def get_modified_content(self) -> str:
        return self._modified

    def set_modified_content(self, content: str) -> None:
        self._modified = content

    @property
    def content(self) -> str:
        return self._modified

    @content.setter
    def content(self, value: str) -> None:
        self._modified = value

    @property
    def is_modified(self) -> bool:
        return self._modified != self._original

    def save(self, destination: PathLike) -> Path:
        """Write the modified content to ``destination``.

        Creates parent directories as needed.

        Returns:
            The destination path

        Raises:
            FileWriteError: If the directory or file cannot be written
        """
        path = Path(destination)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self._modified, encoding=ENCODING, errors=ERRORS)
        except OSError as e:
            raise FileWriteError(f"Failed to write {path}: {e}", path) from e
        return path

    def __repr__(self) -> str:
        return f"<FileBuffer name={str(self.name) if self.name else None!r} modified={self.is_modified}>"


def _read(path: Path) -> str:
    if not path.is_file():
        raise SourceFileNotFoundError(path)
    return path.read_text(encoding=ENCODING, errors=ERRORS)
