from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class Paths:
    root: Path
    data_dir: Path
    logs_dir: Path
    local_dir: Path
    conf_file: Path
    db_file: Path
    audit_file: Path


@dataclass
class Settings:
    host: str = "127.0.0.1"
    port: int = 3000
    default_region: str = "BR"


DEFAULT_CONF = """# contact-book local config (TOML)
host = "127.0.0.1"
port = 3000
default_region = "BR"
"""


def workspace_paths(base: Path | None = None) -> Paths:
    root = Path(base or os.getcwd())
    data = root / "data"
    logs = root / "logs"
    local = root / "local"
    return Paths(
        root=root,
        data_dir=data,
        logs_dir=logs,
        local_dir=local,
        conf_file=local / "contact-book.conf",
        db_file=data / "contacts.db",
        audit_file=logs / "deletions.txt",
    )


def load_settings(conf: Path) -> Settings:
    """Read settings from *conf*, then apply the PORT environment override."""
    settings = Settings()
    if conf.exists():
        try:
            data = tomllib.loads(conf.read_text(encoding="utf-8"))
            settings.host = str(data.get("host", settings.host))
            settings.port = int(data.get("port", settings.port))
            settings.default_region = str(data.get("default_region", settings.default_region)).upper()
        except (tomllib.TOMLDecodeError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed config %s: %s", conf, exc)
            settings = Settings()

    env_port = os.environ.get("PORT")
    if env_port:
        try:
            settings.port = int(env_port)
        except ValueError:
            logger.warning("Ignoring non-numeric PORT=%r", env_port)
    return settings


def ensure_workspace(base: Path | None = None) -> tuple[Paths, Settings]:
    paths = workspace_paths(base)
    for d in (paths.data_dir, paths.logs_dir, paths.local_dir):
        d.mkdir(parents=True, exist_ok=True)

    if not paths.conf_file.exists():
        paths.conf_file.write_text(DEFAULT_CONF, encoding="utf-8")

    return paths, load_settings(paths.conf_file)
