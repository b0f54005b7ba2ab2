import pytest
from click.testing import CliRunner

from noticeboard import datafile
from noticeboard.cli import main
from noticeboard.stores.local import LocalStore

NOTIFICATIONS_PATH = "src/data/notofications.js"
ANNOUNCEMENT_PATH = "src/data/popupData.js"


@pytest.fixture
def site(tmp_path):
    """
    A local store standing in for the website repository.
    """
    return LocalStore(root=str(tmp_path / "site"))


@pytest.fixture
def config_file(tmp_path, site):
    path = tmp_path / "noticeboard.yaml"
    path.write_text(f"store:\n  type: local\n  options:\n    root: {site.root}\n")
    return path


@pytest.fixture
def run(config_file):
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(main, ["-c", str(config_file), *args], **kwargs)

    return invoke


def stored_notifications(site):
    return datafile.decode_list(site.fetch(NOTIFICATIONS_PATH).text)


class TestNotificationsCommands:
    """
    The notifications command group against a local store.
    """

    def test_add_and_list(self, run, site):
        result = run("notifications", "add", "--title-en", "Tender", "--date", "d1")
        assert result.exit_code == 0, result.output
        assert stored_notifications(site)[0]["title"]["en"] == "Tender"

        result = run("notifications", "list")
        assert result.exit_code == 0, result.output
        assert "Tender" in result.output

    def test_add_with_file(self, run, site, tmp_path):
        document = tmp_path / "circular no 5.pdf"
        document.write_bytes(b"%PDF")

        result = run(
            "notifications", "add", "--title-en", "C", "--date", "d", "--file", str(document)
        )

        assert result.exit_code == 0, result.output
        file_url = stored_notifications(site)[0]["fileUrl"]
        assert file_url.startswith("public/pdfs/notif-")
        assert file_url.endswith("-circular-no-5.pdf")
        assert site.fetch(file_url).content == b"%PDF"

    def test_add_missing_title_fails(self, run, site):
        result = run("notifications", "add", "--date", "d1")
        assert result.exit_code == 1
        assert "FormValidationError" in result.output
        assert not site.exists(NOTIFICATIONS_PATH)

    def test_delete_with_yes(self, run, site):
        run("notifications", "add", "--title-en", "Gone", "--date", "d")
        record_id = stored_notifications(site)[0]["id"]

        result = run("notifications", "delete", str(record_id), "--yes")

        assert result.exit_code == 0, result.output
        assert stored_notifications(site) == []

    def test_delete_asks_first(self, run, site):
        run("notifications", "add", "--title-en", "Stays", "--date", "d")
        record_id = stored_notifications(site)[0]["id"]

        result = run("notifications", "delete", str(record_id), input="n\n")

        assert result.exit_code == 1
        assert len(stored_notifications(site)) == 1

    def test_delete_unknown_id(self, run):
        result = run("notifications", "delete", "42", "--yes")
        assert result.exit_code == 1

    def test_corrupt_file_reported(self, run, site):
        site.commit(NOTIFICATIONS_PATH, "export const notifications = nope;")
        result = run("notifications", "list")
        assert result.exit_code == 1
        assert "CorruptRemoteState" in result.output


class TestAnnouncementCommands:
    """
    The announcement command group against a local store.
    """

    def test_publish_and_show(self, run, site, tmp_path):
        image = tmp_path / "milk day.png"
        image.write_bytes(b"png")

        result = run(
            "announcement",
            "publish",
            "--subtitle-en",
            "Milk day",
            "--image",
            str(image),
        )
        assert result.exit_code == 0, result.output
        stored = datafile.decode_object(site.fetch(ANNOUNCEMENT_PATH).text)
        assert stored["subtitle"]["en"] == "Milk day"
        assert stored["active"] is True
        (reference,) = stored["images"]
        assert site.fetch("public" + reference).content == b"png"

        result = run("announcement", "show")
        assert result.exit_code == 0, result.output
        assert "Milk day" in result.output

    def test_publish_without_image_fails(self, run, site):
        result = run("announcement", "publish", "--subtitle-en", "x")
        assert result.exit_code == 1
        assert not site.exists(ANNOUNCEMENT_PATH)


class TestCheckCommand:
    """
    Store and data file overview.
    """

    def test_reports_missing_and_present(self, run, site):
        site.commit(NOTIFICATIONS_PATH, "export const notifications = [];")
        result = run("check")
        assert result.exit_code == 0, result.output
        assert "missing" in result.output
        assert site.fetch(NOTIFICATIONS_PATH).version[:6] in result.output


def test_missing_config(tmp_path):
    result = CliRunner().invoke(main, ["-c", str(tmp_path / "none.yaml"), "check"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_tui_builds_managers_from_config(config_file):
    from noticeboard.config import Config
    from noticeboard.tui import NoticeboardTUI

    config = Config.load(config_file)
    app = NoticeboardTUI(config)
    assert app.notifications.store is config.store
    assert app.announcement.settings.export_name == "popupData"
