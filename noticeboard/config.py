import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from noticeboard.errors import ConfigError
from noticeboard.stores.base import BaseStore

DEFAULT_CONFIG_FILENAME = "noticeboard.yaml"
CONFIG_ENV_VAR = "NOTICEBOARD_CONFIG"


class StoreSchema(BaseModel):

    type: str
    options: dict[str, Any] = {}


class CollectionSettings(BaseModel):
    """
    Where one screen's data file and uploads live.

    public_prefix is what gets written into the data file in place of the
    asset directory (e.g. /assets for files under public/assets); if it is
    None, the store's public download URL is used instead.
    """

    data_path: str
    export_name: str
    assets_dir: str
    asset_prefix: str
    public_prefix: str | None = None

    def asset_reference(self, store: BaseStore, path: str) -> str:
        filename = path.rsplit("/", 1)[-1]
        if self.public_prefix is not None:
            return f"{self.public_prefix.rstrip('/')}/{filename}"
        return store.public_url(path) or path


class NotificationsSettings(CollectionSettings):

    data_path: str = "src/data/notofications.js"
    export_name: str = "notifications"
    assets_dir: str = "public/pdfs"
    asset_prefix: str = "notif"


class AnnouncementSettings(CollectionSettings):

    data_path: str = "src/data/popupData.js"
    export_name: str = "popupData"
    assets_dir: str = "public/assets"
    asset_prefix: str = "popup"
    public_prefix: str | None = "/assets"


class ConfigSchema(BaseModel):

    store: StoreSchema
    notifications: NotificationsSettings = NotificationsSettings()
    announcement: AnnouncementSettings = AnnouncementSettings()


class Config:
    """
    Config file parser
    """

    store: BaseStore

    def __init__(self, config_data: ConfigSchema, config_path: Path | None = None):
        self.config_data = config_data
        self.config_path = config_path

        # Set up the store instance
        store_config = config_data.store
        try:
            store_class = BaseStore.implementation_get(store_config.type)
        except KeyError:
            known = ", ".join(sorted(BaseStore.implementation_registry))
            raise ConfigError(
                f"Unknown store type {store_config.type!r} (known: {known})"
            )
        options = dict(store_config.options)
        options.setdefault("name", store_config.type)
        try:
            self.store = store_class(**options)
        except TypeError as e:
            raise ConfigError(f"Bad options for {store_config.type} store: {e}") from e

    @property
    def notifications(self) -> CollectionSettings:
        return self.config_data.notifications

    @property
    def announcement(self) -> CollectionSettings:
        return self.config_data.announcement

    @classmethod
    def from_dict(cls, data: dict, config_path: Path | None = None) -> "Config":
        try:
            return cls(ConfigSchema(**data), config_path)
        except ValidationError as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """
        Reads the YAML config at config_path, or from $NOTICEBOARD_CONFIG, or
        ./noticeboard.yaml, in that order.
        """
        if config_path is None:
            config_path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILENAME))
        config_path = config_path.expanduser()
        try:
            with open(config_path) as fh:
                data = yaml.safe_load(fh.read())
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file {config_path} is not valid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        return cls.from_dict(data, config_path.resolve())

    def close(self):
        self.store.close()
