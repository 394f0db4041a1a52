"""Persistent configuration stored in standard user data directories"""
import os
import platform
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict

from w3gparse.actions import CHAT_DEDUP_WINDOW
from w3gparse.replay import SERVICE_ACCOUNTS


def _platform_data_dir() -> Path:
    if platform.system() == "Windows":
        return Path(os.environ["LOCALAPPDATA"])
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home)
        return Path.home() / ".local" / "share"


data_dir = _platform_data_dir() / "w3gparse"
config_file = data_dir / "config.yaml"


class Config(BaseModel):
    replay_dir: Optional[Path] = None
    """Directory searched by `convert` when none is given"""
    output_dir: Optional[Path] = None
    """Where `convert` writes JSON; defaults to next to each replay"""
    service_accounts: List[str] = list(SERVICE_ACCOUNTS)
    chat_window: int = CHAT_DEDUP_WINDOW
    json_indent: Optional[int] = 2

    @staticmethod
    def load():
        if config_file.exists():
            with config_file.open("rt", encoding="utf-8") as f:
                content = yaml.load(f, Loader=yaml.SafeLoader) or {}
                return Config.model_validate(content)
        else:
            config = Config()
            config.save()
            return config

    def save(self):
        data_dir.mkdir(parents=True, exist_ok=True)
        with config_file.open("wt", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, width=float("inf"))

    def decode_options(self) -> dict:
        """Keyword arguments for w3gparse.decode."""
        return dict(
            service_accounts=self.service_accounts, chat_window=self.chat_window
        )

    model_config = ConfigDict(extra="ignore")
