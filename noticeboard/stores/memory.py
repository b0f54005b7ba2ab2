import threading

from noticeboard.errors import RemoteFileNotFound, VersionConflict

from .base import BaseStore


class MemoryStore(BaseStore):
    """
    A store that keeps files in a dict for the lifetime of the process.

    Versions are per-path counters: "v1" for the first write, "v2" for the
    next, and so on.
    """

    type_aliases = ["memory"]

    def __init__(self, name: str = "memory", files: dict[str, bytes] | None = None):
        super().__init__(name=name)
        self.files: dict[str, tuple[bytes, int]] = {}
        self.lock = threading.Lock()
        for path, content in (files or {}).items():
            self.files[path] = (content, 1)

    def __str__(self):
        return f"Memory ({len(self.files)} files)"

    def remote_read(self, path: str) -> tuple[bytes, str]:
        with self.lock:
            try:
                content, counter = self.files[path]
            except KeyError:
                raise RemoteFileNotFound(f"File not found: {path}")
        return content, f"v{counter}"

    def remote_write(
        self,
        path: str,
        content: bytes,
        over_version: str | None,
        message: str,
    ) -> str:
        with self.lock:
            current = self.files.get(path)
            if current is None:
                if over_version is not None:
                    raise VersionConflict(
                        f"Requested {over_version}, but {path} does not exist"
                    )
                counter = 1
            else:
                current_version = f"v{current[1]}"
                if over_version != current_version:
                    raise VersionConflict(
                        f"Requested {over_version}, got {current_version} for {path}"
                    )
                counter = current[1] + 1
            self.files[path] = (content, counter)
        return f"v{counter}"

    def remote_exists(self, path: str) -> bool:
        with self.lock:
            return path in self.files
