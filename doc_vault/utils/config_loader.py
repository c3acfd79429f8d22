import os
from pathlib import Path

import yaml


# will return the package directory => doc_vault
def _package_root() -> Path:
    # parents[0] is utils/, parents[1] is the doc_vault package itself
    return Path(__file__).resolve().parents[1]


def default_config_path() -> Path:
    return _package_root() / "config" / "config.yaml"


def load_config(config_path: str | None = None) -> dict:
    env_path = os.getenv("CONFIG_PATH", None)

    if config_path is None:
        config_path = env_path or str(default_config_path())

    path = Path(config_path)

    if not path.is_absolute():
        path = Path.cwd() / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}
