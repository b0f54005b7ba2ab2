import fcntl
import hashlib
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path

from noticeboard.errors import RemoteFileNotFound, TransportError, VersionConflict

from .base import BaseStore


def blob_sha(content: bytes) -> str:
    """
    Git's object id for a blob with this content, so versions match what the
    hosting service would report for the same file.
    """
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()


class LocalStore(BaseStore):
    """
    A store that uses a local directory (usually a checkout of the website
    repository) to hold files.

    Versions are git blob shas of the content. Versioned writes are serialized
    with flock() on a lock file in the root, so it requires that the
    filesystem support it.
    """

    type_aliases = ["local"]

    lock_filename = ".noticeboard.lock"

    def __init__(self, root: str, name: str = "local"):
        super().__init__(name=name)
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.lock_path = self.root / self.lock_filename

    def __str__(self):
        return f"Local (root {self.root})"

    def disk_path(self, path: str) -> Path:
        """
        Works out the on-disk location for a store path, refusing anything
        that would land outside the root.
        """
        disk_path = (self.root / path.lstrip("/")).resolve()
        if not disk_path.is_relative_to(self.root):
            raise ValueError(f"Path {path} escapes store root")
        return disk_path

    @contextmanager
    def locked(self):
        with open(self.lock_path, "a+b") as fh:
            fcntl.flock(fh, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh, fcntl.LOCK_UN)

    def remote_read(self, path: str) -> tuple[bytes, str]:
        disk_path = self.disk_path(path)
        try:
            content = disk_path.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            raise RemoteFileNotFound(f"File not found: {path}")
        except OSError as e:
            raise TransportError(f"Failed to read {path}: {e}") from e
        return content, blob_sha(content)

    def remote_write(
        self,
        path: str,
        content: bytes,
        over_version: str | None,
        message: str,
    ) -> str:
        disk_path = self.disk_path(path)
        with self.locked():
            # Check the version under the lock so nobody can sneak in between
            if disk_path.is_file():
                current_version = blob_sha(disk_path.read_bytes())
                if over_version != current_version:
                    raise VersionConflict(
                        f"Requested {over_version}, got {current_version} for {path}"
                    )
            elif over_version is not None:
                raise VersionConflict(
                    f"Requested {over_version}, but {path} does not exist"
                )
            # Write to a temp file and rename over, so readers never see half
            try:
                disk_path.parent.mkdir(parents=True, exist_ok=True)
                fd, temp_path = tempfile.mkstemp(
                    dir=disk_path.parent, prefix=f".{disk_path.name}."
                )
                try:
                    with os.fdopen(fd, "wb") as fh:
                        fh.write(content)
                    os.replace(temp_path, disk_path)
                except BaseException:
                    os.unlink(temp_path)
                    raise
            except OSError as e:
                raise TransportError(f"Failed to write {path}: {e}") from e
        return blob_sha(content)

    def remote_exists(self, path: str) -> bool:
        return self.disk_path(path).is_file()
