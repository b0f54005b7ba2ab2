import logging
from pathlib import Path

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Input,
    Label,
    Static,
    TabbedContent,
    TabPane,
    TextArea,
)

from noticeboard.assets import UploadedAsset
from noticeboard.config import Config
from noticeboard.errors import NoticeboardError
from noticeboard.forms import AnnouncementForm, NotificationForm
from noticeboard.publisher import AnnouncementManager, NotificationsManager

logger = logging.getLogger(__name__)


class ConfirmScreen(ModalScreen[bool]):
    """
    Yes/no question; dismisses with True if confirmed.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, question: str):
        super().__init__()
        self.question = question

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(self.question),
            Horizontal(
                Button("Yes", variant="error", id="confirm-yes"),
                Button("Cancel", id="confirm-no"),
            ),
            id="confirm-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_cancel(self) -> None:
        self.dismiss(False)


class NoticeboardTUI(App[None]):
    """
    Admin screens for the site's notifications and announcement.

    Store calls run in thread workers; while a save is running both screens
    are shown as loading and the managers refuse a second change.
    """

    CSS = """
    #notification-form, #announcement-form {
        height: auto;
        padding: 1;
        border: solid green;
    }

    #notification-list {
        height: 1fr;
        border: solid blue;
    }

    #announcement-live {
        height: auto;
        padding: 1;
        border: solid blue;
    }

    TextArea {
        height: 5;
    }

    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        border: thick $error;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("ctrl+d", "delete_notification", "Delete Notification"),
    ]

    refresh_interval = 60

    busy_widgets = ["#notification-form", "#notification-list", "#announcement-form"]

    def __init__(self, config: Config):
        super().__init__()
        self.config = config
        self.notifications = NotificationsManager(config.store, config.notifications)
        self.announcement = AnnouncementManager(config.store, config.announcement)

    def compose(self) -> ComposeResult:
        with TabbedContent(initial="notifications-tab"):
            with TabPane("Notifications", id="notifications-tab"):
                yield Vertical(
                    Input(placeholder="Title (English)", id="title-en"),
                    Input(placeholder="Title (Kannada)", id="title-ka"),
                    Input(placeholder="Date", id="date"),
                    Input(placeholder="Attachment path (optional)", id="attachment"),
                    Button("Add", variant="primary", id="add-notification"),
                    id="notification-form",
                )
                yield DataTable(id="notification-list", cursor_type="row")
            with TabPane("Announcement", id="announcement-tab"):
                yield Vertical(
                    Checkbox("Active", value=True, id="active"),
                    Input(placeholder="Subtitle (English)", id="subtitle-en"),
                    Input(placeholder="Subtitle (Kannada)", id="subtitle-ka"),
                    Label("Description (English)"),
                    TextArea(id="description-en"),
                    Label("Description (Kannada)"),
                    TextArea(id="description-ka"),
                    Input(
                        placeholder="Image paths, comma separated", id="image-paths"
                    ),
                    Button(
                        "Publish Announcement", variant="primary", id="publish"
                    ),
                    id="announcement-form",
                )
                yield Static("Loading...", id="announcement-live")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#notification-list", DataTable)
        table.add_columns("ID", "Date", "Title", "File")
        self.load_all()
        self.set_interval(self.refresh_interval, self.load_all)

    ### Background loading ###

    @work(thread=True, exclusive=True, group="load")
    def load_all(self) -> None:
        """
        Re-reads both data files. Failures only get logged; the screens keep
        showing whatever they last loaded.
        """
        try:
            if not self.notifications.busy:
                self.notifications.refresh()
            if not self.announcement.busy:
                self.announcement.load()
        except NoticeboardError as e:
            logger.warning(f"Background refresh failed: {e}")
            return
        self.call_from_thread(self.show_notifications)
        self.call_from_thread(self.show_announcement)

    def show_notifications(self) -> None:
        table = self.query_one("#notification-list", DataTable)
        table.clear()
        for item in self.notifications.notifications:
            table.add_row(
                str(item["id"]),
                item.get("date", ""),
                item.get("title", {}).get("en", ""),
                "📎" if item.get("fileUrl") else "",
                key=str(item["id"]),
            )

    def show_announcement(self) -> None:
        current = self.announcement.announcement
        text = Text()
        text.append("Live announcement\n", style="bold")
        text.append("Active: ", style="bold")
        text.append(f"{'yes' if current.get('active') else 'no'}\n")
        text.append("Subtitle: ", style="bold")
        text.append(f"{current.get('subtitle', {}).get('en', '')}\n")
        images = current.get("images", [])
        text.append(f"Current live images ({len(images)}):\n", style="bold")
        for image in images:
            text.append(f"  {image}\n", style="dim")
        self.query_one("#announcement-live", Static).update(text)

    ### Actions ###

    def action_refresh(self) -> None:
        self.load_all()
        self.notify("Refreshing")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-notification":
            self.add_notification()
        elif event.button.id == "publish":
            self.publish_announcement()

    def _set_busy(self, busy: bool) -> None:
        # A save on either screen holds the store for both
        for widget_id in self.busy_widgets:
            self.query_one(widget_id).loading = busy

    def _report(self, error: Exception) -> None:
        self.notify(str(error), title=type(error).__name__, severity="error")

    def add_notification(self) -> None:
        try:
            attachment_path = self.query_one("#attachment", Input).value.strip()
            form = NotificationForm(
                title_en=self.query_one("#title-en", Input).value,
                title_ka=self.query_one("#title-ka", Input).value,
                date=self.query_one("#date", Input).value,
                attachment=(
                    UploadedAsset.from_path(Path(attachment_path))
                    if attachment_path
                    else None
                ),
            )
            form.validate()
        except (NoticeboardError, OSError) as e:
            self.notify(str(e), title="Warning", severity="warning")
            return
        self._set_busy(True)
        self.save_notification(form)

    @work(thread=True, group="write")
    def save_notification(self, form: NotificationForm) -> None:
        try:
            self.notifications.add(form)
        except NoticeboardError as e:
            self.call_from_thread(self._report, e)
        else:
            self.call_from_thread(self._notification_added)
        finally:
            self.call_from_thread(self._set_busy, False)

    def _notification_added(self) -> None:
        for input_id in ["#title-en", "#title-ka", "#date", "#attachment"]:
            self.query_one(input_id, Input).value = ""
        self.show_notifications()
        self.notify("Notification added", title="Success")

    def action_delete_notification(self) -> None:
        table = self.query_one("#notification-list", DataTable)
        if table.row_count == 0:
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        record_id = int(str(row_key.value))

        def confirmed(result: bool | None) -> None:
            if result:
                self._set_busy(True)
                self.remove_notification(record_id)

        self.push_screen(ConfirmScreen("Delete this permanently?"), confirmed)

    @work(thread=True, group="write")
    def remove_notification(self, record_id: int) -> None:
        try:
            deleted = self.notifications.delete(record_id)
        except NoticeboardError as e:
            self.call_from_thread(self._report, e)
        else:
            self.call_from_thread(self.show_notifications)
            if not deleted:
                self.call_from_thread(
                    self.notify, "It was already gone", severity="warning"
                )
        finally:
            self.call_from_thread(self._set_busy, False)

    def publish_announcement(self) -> None:
        try:
            paths = [
                Path(part.strip())
                for part in self.query_one("#image-paths", Input).value.split(",")
                if part.strip()
            ]
            form = AnnouncementForm(
                active=self.query_one("#active", Checkbox).value,
                subtitle_en=self.query_one("#subtitle-en", Input).value,
                subtitle_ka=self.query_one("#subtitle-ka", Input).value,
                description_en=self.query_one("#description-en", TextArea).text,
                description_ka=self.query_one("#description-ka", TextArea).text,
                images=[UploadedAsset.from_path(path) for path in paths],
            )
            form.validate()
        except (NoticeboardError, OSError) as e:
            self.notify(str(e), title="Warning", severity="warning")
            return
        self._set_busy(True)
        self.save_announcement(form)

    @work(thread=True, group="write")
    def save_announcement(self, form: AnnouncementForm) -> None:
        try:
            self.announcement.publish(form)
        except NoticeboardError as e:
            self.call_from_thread(self._report, e)
        else:
            self.call_from_thread(self._announcement_published)
        finally:
            self.call_from_thread(self._set_busy, False)

    def _announcement_published(self) -> None:
        for input_id in ["#subtitle-en", "#subtitle-ka", "#image-paths"]:
            self.query_one(input_id, Input).value = ""
        self.query_one("#description-en", TextArea).load_text("")
        self.query_one("#description-ka", TextArea).load_text("")
        self.show_announcement()
        self.notify("The website will update in 2 minutes.", title="Published!")
