import base64
import binascii
import logging
import threading
from collections.abc import Callable
from typing import ClassVar

from noticeboard.errors import RemoteFileNotFound
from noticeboard.types import RemoteFile

logger = logging.getLogger(__name__)


class BaseStore:
    """
    Root store class that defines the main interfaces.

    A store holds named files and lets you overwrite them only if nobody
    else has in the meantime. This is done using basic
    overwrite-if-not-changed logic - when you read a file from the store, it
    comes with a version, and you supply that version when you are writing
    it, and will get a VersionConflict if the store has moved on. The version
    is an opaque string; what it is depends on the implementation (a blob sha
    for git hosting, an ETag for S3, a counter in memory).

    Writes are whole-file replacements and are visible to everyone (and
    usually trigger a site rebuild) as soon as they succeed.
    """

    name: str
    type_aliases: list[str] = []

    implementation_registry: ClassVar[dict[str, type["BaseStore"]]] = {}

    def __init__(self, name: str):
        self.name = name
        # Held for the whole of a manager's read-modify-write on this store
        self.operation_lock = threading.Lock()

    def __init_subclass__(cls) -> None:
        if not cls.type_aliases:
            raise RuntimeError(
                "You must define at least one type alias per store implementation"
            )
        for alias in cls.type_aliases:
            BaseStore.implementation_registry[alias] = cls

    @classmethod
    def implementation_get(cls, alias: str) -> type["BaseStore"]:
        return cls.implementation_registry[alias]

    ### Implementation hooks ###

    def remote_read(self, path: str) -> tuple[bytes, str]:
        """
        Returns (content, version) for the file at "path". Raises
        RemoteFileNotFound if it does not exist.
        """
        raise NotImplementedError()

    def remote_write(
        self,
        path: str,
        content: bytes,
        over_version: str | None,
        message: str,
    ) -> str:
        """
        Replaces the file at "path" with content and returns the new version.

        If over_version is None, the file must not exist yet; otherwise it must
        be the store's current version for the path. Raises VersionConflict
        if either condition fails, leaving the stored content untouched.
        """
        raise NotImplementedError()

    def remote_exists(self, path: str) -> bool:
        """
        Returns if the given remote path exists.
        """
        try:
            self.remote_read(path)
        except RemoteFileNotFound:
            return False
        return True

    def public_url(self, path: str) -> str | None:
        """
        Returns a URL the committed file can be downloaded from publicly, if
        this store has such a thing.
        """
        return None

    ### High-level API ###

    def fetch(self, path: str) -> RemoteFile:
        content, version = self.remote_read(path)
        logger.debug(f"Store {self.name}: read {path} at version {version}")
        return RemoteFile(path=path, content=content, version=version)

    def fetch_text(self, path: str) -> tuple[str, str]:
        remote_file = self.fetch(path)
        return remote_file.text, remote_file.version

    def exists(self, path: str) -> bool:
        return self.remote_exists(path)

    def commit(
        self,
        path: str,
        content: bytes | str,
        over_version: str | None = None,
        message: str = "",
        is_binary: bool = False,
    ) -> str:
        """
        Writes the full new content of "path" and returns its new version.

        Text is stored as UTF-8. If is_binary is set and content is a str, it
        is taken to be base64 already and is decoded first.
        """
        if isinstance(content, str):
            if is_binary:
                try:
                    data = base64.b64decode(content, validate=True)
                except binascii.Error as e:
                    raise ValueError(f"Binary content for {path} is not base64") from e
            else:
                data = content.encode("utf-8")
        else:
            data = content
        message = message or f"Update {path}"
        version = self.remote_write(path, data, over_version, message)
        logger.info(f"Store {self.name}: committed {path} as version {version}")
        return version

    def update_text(
        self,
        path: str,
        transform: Callable[[str | None], str],
        message: str,
    ) -> str:
        """
        Read-modify-write of a text file.

        Fetches the current text (None if the file doesn't exist), passes it
        through transform, and commits the result against the version that
        was read. Conflicts propagate; there is no retry.
        """
        try:
            current = self.fetch(path)
        except RemoteFileNotFound:
            text, version = None, None
        else:
            text, version = current.text, current.version
        return self.commit(path, transform(text), over_version=version, message=message)

    def close(self):
        pass
