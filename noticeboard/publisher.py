"""
The two content screens' operations, on top of a store.

Both follow the same protocol: upload any new assets first, then fetch the
data file fresh, decode it, apply the change, re-encode the whole thing and
commit it against the version that was just fetched. Local state is only
touched once that commit has gone through.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from noticeboard import datafile
from noticeboard.assets import AssetUploader, now_ms
from noticeboard.config import CollectionSettings
from noticeboard.errors import OperationInProgress, RemoteFileNotFound
from noticeboard.forms import AnnouncementForm, NotificationForm
from noticeboard.records import (
    add_record,
    check_notifications,
    default_announcement,
    find_record,
    localized,
    make_notification,
    remove_record,
    unique_id,
)
from noticeboard.stores.base import BaseStore
from noticeboard.types import AnnouncementRecord, NotificationRecord

logger = logging.getLogger(__name__)


class BaseManager:
    """
    Shared plumbing: one store, one settings block, and the store's operation
    lock, which stops a second mutating operation starting while one is
    running. The lock lives on the store, so managers for different screens
    sharing a store exclude each other too.

    Local state is guarded separately. Every change to it bumps
    ``generation``; a background read only lands if the generation it
    started from is still current, so it can't replace the result of a
    change that committed while it was fetching.
    """

    log_name = "manager"

    def __init__(
        self,
        store: BaseStore,
        settings: CollectionSettings,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.uploader = AssetUploader(store, clock=clock)
        self.state_lock = threading.Lock()
        self.generation = 0

    @property
    def busy(self) -> bool:
        return self.store.operation_lock.locked()

    @contextmanager
    def operation(self, description: str) -> Iterator[None]:
        if not self.store.operation_lock.acquire(blocking=False):
            raise OperationInProgress(
                f"Cannot {description}: another change is still being saved"
            )
        try:
            logger.debug(f"{self.log_name}: starting {description}")
            yield
        finally:
            self.store.operation_lock.release()

    def read_data_file(self) -> tuple[str | None, str | None]:
        """
        Returns (text, version) of the data file, or (None, None) if it does
        not exist yet.
        """
        try:
            return self.store.fetch_text(self.settings.data_path)
        except RemoteFileNotFound:
            return None, None

    def check_export_name(self, text: str) -> None:
        """
        Warns if the data file exports a different name from the configured
        one; the next commit will rewrite it under the configured name.
        """
        found = datafile.export_name(text)
        if found is not None and found != self.settings.export_name:
            logger.warning(
                f"{self.settings.data_path} exports {found!r}, expected "
                f"{self.settings.export_name!r}; saving will rename it"
            )

    def set_state(self, value, read_at: int | None = None) -> bool:
        """
        Replaces the local state. If read_at is given, only does so when no
        other change has been applied since that generation was taken.
        """
        with self.state_lock:
            if read_at is not None and read_at != self.generation:
                logger.debug(f"{self.log_name}: dropping stale read")
                return False
            self.apply_state(value)
            self.generation += 1
            return True

    def apply_state(self, value) -> None:
        raise NotImplementedError()


class NotificationsManager(BaseManager):
    """
    Adds and deletes notifications in the notifications data file.
    """

    log_name = "notifications"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.notifications: list[NotificationRecord] = []

    def apply_state(self, value: list[NotificationRecord]) -> None:
        self.notifications = value

    def _decode(self, text: str | None) -> list[NotificationRecord]:
        if text is None:
            return []
        self.check_export_name(text)
        return check_notifications(datafile.decode_list(text))

    def _encode(self, notifications: list[NotificationRecord]) -> str:
        return datafile.encode(self.settings.export_name, notifications)

    def refresh(self) -> list[NotificationRecord]:
        read_at = self.generation
        text, _ = self.read_data_file()
        self.set_state(self._decode(text), read_at=read_at)
        return self.notifications

    def add(self, form: NotificationForm) -> NotificationRecord:
        """
        Uploads the form's attachment (if any) and prepends a new notification.
        """
        form.validate()
        with self.operation("add notification"):
            file_url = ""
            if form.attachment is not None:
                asset_path = self.uploader.upload(
                    form.attachment,
                    self.settings.assets_dir,
                    self.settings.asset_prefix,
                )
                file_url = self.settings.asset_reference(self.store, asset_path)

            created: list[NotificationRecord] = []
            updated: list[NotificationRecord] = []

            def transform(text: str | None) -> str:
                current = self._decode(text)
                record = make_notification(
                    unique_id(current, self.clock()),
                    localized(form.title_en.strip(), form.title_ka.strip()),
                    form.date.strip(),
                    file_url,
                )
                created.append(record)
                updated.extend(add_record(current, record))
                return self._encode(updated)

            self.store.update_text(
                self.settings.data_path, transform, message="Add notification"
            )
            self.set_state(updated)
            logger.info(f"Added notification {created[0]['id']}")
            return created[0]

    def delete(self, record_id: int) -> bool:
        """
        Removes the notification with this id. Returns False (and commits
        nothing) if the freshly fetched file doesn't have it.
        """
        with self.operation("delete notification"):
            text, version = self.read_data_file()
            current = self._decode(text)
            if find_record(current, record_id) is None:
                logger.warning(f"Notification {record_id} not found, nothing deleted")
                self.set_state(current)
                return False
            updated = remove_record(current, record_id)
            self.store.commit(
                self.settings.data_path,
                self._encode(updated),
                over_version=version,
                message="Delete notification",
            )
            self.set_state(updated)
            logger.info(f"Deleted notification {record_id}")
            return True


class AnnouncementManager(BaseManager):
    """
    Publishes the site's announcement popup.
    """

    log_name = "announcement"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.announcement: AnnouncementRecord = default_announcement()

    def apply_state(self, value: AnnouncementRecord) -> None:
        self.announcement = value

    def _decode(self, text: str | None) -> AnnouncementRecord:
        if text is None:
            return default_announcement()
        self.check_export_name(text)
        return datafile.decode_object(text)  # type: ignore[return-value]

    def load(self) -> AnnouncementRecord:
        read_at = self.generation
        text, _ = self.read_data_file()
        self.set_state(self._decode(text), read_at=read_at)
        return self.announcement

    def publish(self, form: AnnouncementForm) -> AnnouncementRecord:
        """
        Uploads the form's images and replaces the announcement with one
        showing them.
        """
        form.validate()
        with self.operation("publish announcement"):
            # Images go up first so the data file never points at nothing
            images = []
            for image in form.images:
                asset_path = self.uploader.upload(
                    image,
                    self.settings.assets_dir,
                    self.settings.asset_prefix,
                    message="Update announcement image",
                )
                images.append(self.settings.asset_reference(self.store, asset_path))

            announcement = default_announcement()
            announcement["active"] = form.active
            announcement["subtitle"] = {
                "en": form.subtitle_en.strip(),
                "ka": form.subtitle_ka.strip(),
            }
            announcement["description"] = {
                "en": form.description_en.strip(),
                "ka": form.description_ka.strip(),
            }
            announcement["images"] = images

            def transform(text: str | None) -> str:
                # Decoding the old one refuses to overwrite a file we can't read
                previous = self._decode(text)
                logger.debug(f"Replacing announcement {previous.get('subtitle')}")
                return datafile.encode(self.settings.export_name, announcement)

            self.store.update_text(
                self.settings.data_path,
                transform,
                message="Update announcement content",
            )
            self.set_state(announcement)
            logger.info(f"Published announcement with {len(images)} image(s)")
            return announcement
