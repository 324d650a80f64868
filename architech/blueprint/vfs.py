"""In-memory staging area for every file a blueprint run touches.

Nothing reaches the project directory until :meth:`VirtualFileSystem.flush`
is called, which the executor only does after a run finished without errors.
Reads fall through to disk lazily, so the buffer only ever holds files that a
run has actually looked at or written.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path, PurePosixPath

from architech.errors import InvalidAction, PathOutsideProject

_STAGING_SUFFIX = ".architech-tmp"


class VirtualFileSystem:
    """Buffered, project-relative view of the files under *project_root*."""

    def __init__(self, project_root: str | Path) -> None:
        self.project_root = Path(project_root)
        self._buffer: dict[str, str] = {}
        self._disk: dict[str, str | None] = {}

    # -- Paths -------------------------------------------------------------

    def normalize(self, path: str | Path) -> str:
        """Return *path* as a POSIX path relative to the project root.

        Raises:
            PathOutsideProject: If the path resolves outside the project.
            InvalidAction: If the path is empty or names the root itself.
        """
        raw = str(path).replace("\\", "/").strip()
        if PurePosixPath(raw).is_absolute():
            root = self.project_root.resolve().as_posix()
            absolute = posixpath.normpath(raw)
            if absolute != root and not absolute.startswith(root + "/"):
                raise PathOutsideProject(str(path))
            raw = absolute[len(root):].lstrip("/")

        normalized = posixpath.normpath(raw) if raw else "."
        if normalized == ".":
            raise InvalidAction(f"Path '{path}' does not name a file")
        if normalized == ".." or normalized.startswith("../"):
            raise PathOutsideProject(str(path))
        return normalized

    def absolute(self, path: str | Path) -> Path:
        return self.project_root / self.normalize(path)

    # -- Reads and writes --------------------------------------------------

    def read(self, path: str | Path) -> str | None:
        """Return the current content of *path*, or ``None`` if it does not exist.

        Buffered writes win over disk content.
        """
        key = self.normalize(path)
        if key in self._buffer:
            return self._buffer[key]
        if key not in self._disk:
            self._disk[key] = self._load(self.project_root / key)
        return self._disk[key]

    @staticmethod
    def _load(on_disk: Path) -> str | None:
        """Read a file with its line endings untouched."""
        if not on_disk.is_file():
            return None
        with on_disk.open(encoding="utf-8", newline="") as handle:
            return handle.read()

    def exists(self, path: str | Path) -> bool:
        return self.read(path) is not None

    def write(self, path: str | Path, content: str) -> str:
        """Buffer *content* for *path* (last write wins).  Returns the normalised path."""
        key = self.normalize(path)
        self._buffer[key] = content
        return key

    def entries(self) -> dict[str, str]:
        """Snapshot of every buffered file, in first-write order."""
        return dict(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and self.normalize(path) in self._buffer

    # -- Commit ------------------------------------------------------------

    def flush(self) -> list[str]:
        """Write every buffered file to disk and empty the buffer.

        All files are first written to temporary siblings; only when every one
        of them was staged are they moved into place with ``os.replace``.  A
        failure while staging removes the temporaries and leaves the project
        untouched.

        Returns:
            The project-relative paths that were written.
        """
        staged: list[tuple[Path, Path]] = []
        try:
            for key, content in self._buffer.items():
                target = self.project_root / key
                target.parent.mkdir(parents=True, exist_ok=True)
                temporary = target.with_name(f".{target.name}{_STAGING_SUFFIX}")
                staged.append((temporary, target))
                temporary.write_text(content, encoding="utf-8", newline="")
        except OSError:
            for temporary, _ in staged:
                temporary.unlink(missing_ok=True)
            raise

        for temporary, target in staged:
            os.replace(temporary, target)

        written = list(self._buffer)
        for key in written:
            self._disk[key] = self._buffer[key]
        self._buffer.clear()
        return written

    def clear(self) -> None:
        """Discard every buffered write and cached disk read."""
        self._buffer.clear()
        self._disk.clear()
