import functools
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from noticeboard.assets import UploadedAsset
from noticeboard.config import Config
from noticeboard.errors import ConfigError, NoticeboardError, RemoteFileNotFound
from noticeboard.forms import AnnouncementForm, NotificationForm
from noticeboard.publisher import AnnouncementManager, NotificationsManager

error_console = Console(stderr=True)


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter with colors for different log levels
    """

    COLORS = {
        logging.DEBUG: "\033[90m",  # Grey
        logging.INFO: "\033[37m",  # White
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[31m",  # Red
    }
    RESET = "\033[0m"

    ABBREVIATIONS = {
        "DEBUG": "DBG",
        "INFO": "INF",
        "WARNING": "WRN",
        "ERROR": "ERR",
        "CRITICAL": "CRT",
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        levelname_abbr = self.ABBREVIATIONS.get(record.levelname, record.levelname[:3])
        record.levelname = f"{color}{levelname_abbr:>3}{self.RESET}"
        record.msg = f"{color}{record.msg}{self.RESET}"
        return super().format(record)


def reports_errors(func):
    """
    Shows store and validation errors as a red message and exits 1, rather
    than a traceback.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NoticeboardError as e:
            error_console.print(f"[red]Error ({type(e).__name__}):[/red] {e}")
            raise click.exceptions.Exit(1)

    return wrapper


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default="INFO",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $NOTICEBOARD_CONFIG or ./noticeboard.yaml)",
)
@click.pass_context
def main(ctx, log_level: str, config_path: Path | None):
    # Configure logging with custom colored formatter
    handler = logging.StreamHandler()
    handler.setFormatter(
        ColoredFormatter("%(asctime)s | %(levelname)s | %(message)s", datefmt="%H:%M")
    )
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )
    try:
        config = Config.load(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    ctx.call_on_close(config.close)
    ctx.obj = config


@main.command()
@click.pass_obj
@reports_errors
def check(config: Config):
    """
    Show the store and the current version of each data file
    """
    console = Console()
    console.print(f"Store: [cyan]{config.store}[/cyan]")
    table = Table()
    table.add_column("Screen", style="cyan")
    table.add_column("Data file", style="green")
    table.add_column("Version", style="yellow")
    for screen, settings in [
        ("notifications", config.notifications),
        ("announcement", config.announcement),
    ]:
        try:
            version = config.store.fetch(settings.data_path).version[:12]
        except RemoteFileNotFound:
            version = "[dim]missing[/dim]"
        table.add_row(screen, settings.data_path, version)
    console.print(table)


@main.group()
def notifications():
    """
    Manage the notifications list
    """
    pass


def notifications_manager(config: Config) -> NotificationsManager:
    return NotificationsManager(config.store, config.notifications)


@notifications.command("list")
@click.pass_obj
@reports_errors
def list_notifications(config: Config):
    """
    List current notifications, newest first
    """
    console = Console()
    table = Table()

    table.add_column("ID", style="magenta")
    table.add_column("Date", style="yellow")
    table.add_column("Title (en)", style="cyan")
    table.add_column("Title (ka)")
    table.add_column("File", style="green")

    for item in notifications_manager(config).refresh():
        title = item.get("title", {})
        table.add_row(
            str(item["id"]),
            item.get("date", ""),
            title.get("en", ""),
            title.get("ka", ""),
            item.get("fileUrl") or "[dim]None[/dim]",
        )

    console.print(table)


@notifications.command("add")
@click.option("--title-en", default="", help="English title (required)")
@click.option("--title-ka", default="", help="Kannada title (defaults to English)")
@click.option("--date", default="", help="Date to show (required)")
@click.option(
    "--file",
    "attachment",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Document to attach",
)
@click.pass_obj
@reports_errors
def add_notification(
    config: Config,
    title_en: str,
    title_ka: str,
    date: str,
    attachment: Path | None,
):
    """
    Add a notification, uploading an optional attachment
    """
    form = NotificationForm(
        title_en=title_en,
        title_ka=title_ka,
        date=date,
        attachment=UploadedAsset.from_path(attachment) if attachment else None,
    )
    record = notifications_manager(config).add(form)
    Console().print(f"[green]Notification added[/green] (id {record['id']})")


@notifications.command("delete")
@click.argument("record_id", type=int)
@click.option("-y", "--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_obj
@reports_errors
def delete_notification(config: Config, record_id: int, yes: bool):
    """
    Delete a notification by id
    """
    if not yes:
        click.confirm(f"Delete notification {record_id} permanently?", abort=True)
    if notifications_manager(config).delete(record_id):
        Console().print(f"[green]Deleted notification {record_id}[/green]")
    else:
        error_console.print(f"[yellow]No notification with id {record_id}[/yellow]")
        raise click.exceptions.Exit(1)


@main.group()
def announcement():
    """
    Manage the announcement popup
    """
    pass


@announcement.command("show")
@click.pass_obj
@reports_errors
def show_announcement(config: Config):
    """
    Show the live announcement
    """
    current = AnnouncementManager(config.store, config.announcement).load()
    console = Console()
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Active", "yes" if current.get("active") else "no")
    for field in ["title", "subtitle", "description"]:
        text = current.get(field, {})
        table.add_row(f"{field} (en)", text.get("en", ""))
        table.add_row(f"{field} (ka)", text.get("ka", ""))
    table.add_row("Images", "\n".join(current.get("images", [])) or "[dim]None[/dim]")
    console.print(table)


@announcement.command("publish")
@click.option("--subtitle-en", default="", help="English subtitle (required)")
@click.option("--subtitle-ka", default="")
@click.option("--description-en", default="")
@click.option("--description-ka", default="")
@click.option(
    "--image",
    "images",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image to show; repeat for several (at least one required)",
)
@click.option("--inactive", is_flag=True, help="Publish with the popup switched off")
@click.pass_obj
@reports_errors
def publish_announcement(
    config: Config,
    subtitle_en: str,
    subtitle_ka: str,
    description_en: str,
    description_ka: str,
    images: tuple[Path, ...],
    inactive: bool,
):
    """
    Upload images and publish a new announcement
    """
    form = AnnouncementForm(
        active=not inactive,
        subtitle_en=subtitle_en,
        subtitle_ka=subtitle_ka,
        description_en=description_en,
        description_ka=description_ka,
        images=[UploadedAsset.from_path(path) for path in images],
    )
    published = AnnouncementManager(config.store, config.announcement).publish(form)
    Console().print(
        f"[green]Published![/green] {len(published['images'])} image(s). "
        "The website will update in a couple of minutes."
    )


@main.command()
@click.pass_obj
def tui(config: Config):
    """
    Launch the Terminal User Interface
    """
    from noticeboard.tui import NoticeboardTUI

    NoticeboardTUI(config).run()


if __name__ == "__main__":
    main()
