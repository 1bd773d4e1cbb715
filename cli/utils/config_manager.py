"""CLI settings stored as YAML under ~/.saas-core (or $SAAS_CORE_CONFIG_DIR)."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console

console = Console(stderr=True)

CONFIG_FILENAME = "config.yaml"


def default_config() -> dict[str, Any]:
    """Defaults; the API URL and admin token may come from the environment."""
    return {
        "api": {
            "base_url": os.getenv("SAAS_CORE_API_URL", "http://localhost:8000"),
            "timeout": 30,
            "token": os.getenv("SAAS_CORE_ADMIN_TOKEN", ""),
        },
        "display": {"jobs_per_page": 20},
    }


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Read and write dotted keys such as ``api.base_url``."""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = config_dir or Path(
            os.getenv("SAAS_CORE_CONFIG_DIR", Path.home() / ".saas-core")
        )
        self.config_file = self.config_dir / CONFIG_FILENAME

    def load_config(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return default_config()

        try:
            stored = yaml.safe_load(self.config_file.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            console.print(f"[red]Ignoring unreadable config {self.config_file}: {e}[/red]")
            return default_config()

        if not isinstance(stored, dict):
            console.print(f"[red]Ignoring malformed config {self.config_file}[/red]")
            return default_config()
        return _merge(default_config(), stored)

    def save_config(self, data: dict[str, Any]) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(yaml.safe_dump(data, default_flow_style=False))

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self.load_config()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        data = self.load_config()
        *parents, leaf = key.split(".")

        node = data
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

        self.save_config(data)

    def reset(self) -> None:
        self.save_config(default_config())


config = ConfigManager()
