import pytest

from noticeboard.assets import UploadedAsset
from noticeboard.errors import CorruptRemoteState, FormValidationError
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


@pytest.fixture
def collection():
    return [
        make_notification(3, localized("Third"), "03-01-2026"),
        make_notification(2, localized("Second"), "02-01-2026"),
        make_notification(1, localized("First"), "01-01-2026", "https://x/a.pdf"),
    ]


class TestCollectionOperations:
    """
    Pure add, remove and find on record lists.
    """

    def test_add_prepends(self, collection):
        record = make_notification(4, localized("Fourth"), "04-01-2026")
        assert add_record(collection, record)[0] == record

    def test_add_does_not_mutate(self, collection):
        before = list(collection)
        add_record(collection, make_notification(4, localized("x"), "d"))
        assert collection == before

    def test_remove_of_added_gives_original(self, collection):
        record = make_notification(99, localized("New"), "05-01-2026")
        assert remove_record(add_record(collection, record), 99) == collection

    def test_remove_missing_is_noop(self, collection):
        assert remove_record(collection, 42) == collection

    def test_remove_keeps_order(self, collection):
        assert [r["id"] for r in remove_record(collection, 2)] == [3, 1]

    def test_find(self, collection):
        assert find_record(collection, 1)["fileUrl"] == "https://x/a.pdf"
        assert find_record(collection, 42) is None

    def test_unique_id_bumps_past_collisions(self, collection):
        assert unique_id(collection, 2) == 4
        assert unique_id(collection, 10) == 10


class TestRecordShapes:
    """
    Record builders and their defaults.
    """

    def test_kannada_falls_back_to_english(self):
        assert localized("Notice") == {"en": "Notice", "ka": "Notice"}
        assert localized("Notice", "ಸೂಚನೆ") == {"en": "Notice", "ka": "ಸೂಚನೆ"}

    def test_notification_keys(self):
        assert make_notification(1, localized("a"), "d") == {
            "id": 1,
            "title": {"en": "a", "ka": "a"},
            "date": "d",
            "fileUrl": "",
        }

    def test_default_announcement_title(self):
        announcement = default_announcement()
        assert announcement["title"] == {"en": "Announcement", "ka": "ಪ್ರಕಟಣೆ"}
        assert announcement["active"] is True
        assert announcement["images"] == []

    def test_default_announcement_is_fresh_each_time(self):
        default_announcement()["title"]["en"] = "changed"
        assert default_announcement()["title"]["en"] == "Announcement"

    def test_check_notifications_rejects_entries_without_id(self):
        with pytest.raises(CorruptRemoteState):
            check_notifications([{"title": {}}])


class TestNotificationForm:
    """
    Required fields on the notifications screen.
    """

    def test_valid(self):
        NotificationForm(title_en="Notice", date="01-01-2026").validate()

    @pytest.mark.parametrize(
        "title_en, date", [("", "01-01-2026"), ("Notice", ""), ("   ", "x")]
    )
    def test_required_fields(self, title_en, date):
        with pytest.raises(FormValidationError):
            NotificationForm(title_en=title_en, date=date).validate()

    def test_clear(self):
        form = NotificationForm("a", "b", "c", UploadedAsset("x.pdf", b""))
        form.clear()
        assert form == NotificationForm()


class TestAnnouncementForm:
    """
    Required fields on the announcement screen.
    """

    def test_valid(self):
        AnnouncementForm(
            subtitle_en="Milk day", images=[UploadedAsset("a.png", b"")]
        ).validate()

    def test_needs_subtitle(self):
        with pytest.raises(FormValidationError):
            AnnouncementForm(images=[UploadedAsset("a.png", b"")]).validate()

    def test_needs_an_image(self):
        with pytest.raises(FormValidationError):
            AnnouncementForm(subtitle_en="Milk day").validate()

    def test_rejects_non_images(self):
        with pytest.raises(FormValidationError) as exc_info:
            AnnouncementForm(
                subtitle_en="Milk day", images=[UploadedAsset("a.pdf", b"")]
            ).validate()
        assert "a.pdf" in str(exc_info.value)
