"""Configuration loading utilities for the reaction role panel."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .models import ButtonDefinition, ButtonStyle, FlushPolicy

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"

# One action row holds at most five buttons.
MAX_PANEL_BUTTONS = 5


def _parse_buttons(raw: Any) -> Tuple[ButtonDefinition, ...]:
    if not isinstance(raw, list) or not raw:
        raise ValueError("settings must declare at least one button")
    if len(raw) > MAX_PANEL_BUTTONS:
        raise ValueError(f"at most {MAX_PANEL_BUTTONS} buttons fit on one panel")
    buttons = []
    seen = set()
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"button {index} must be a mapping with id and label")
        missing = [key for key in ("id", "label") if key not in entry]
        if missing:
            raise ValueError(f"button {index} is missing {', '.join(missing)}")
        button_id = str(entry["id"]).strip()
        if not button_id:
            raise ValueError("button id must not be empty")
        if button_id in seen:
            raise ValueError(f"duplicate button id {button_id}")
        seen.add(button_id)
        try:
            style = ButtonStyle(str(entry.get("style", "secondary")).lower())
        except ValueError:
            raise ValueError(
                f"invalid style {entry.get('style')!r} for button {button_id}"
            ) from None
        buttons.append(
            ButtonDefinition(id=button_id, label=str(entry["label"]), style=style)
        )
    return tuple(buttons)


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    buttons: Tuple[ButtonDefinition, ...]
    panel_prompt: str
    data_dir: Path
    data_filename: str
    flush_policy: FlushPolicy
    flush_interval_seconds: float

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_filename

    @property
    def button_ids(self) -> Tuple[str, ...]:
        return tuple(button.id for button in self.buttons)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        storage = data.get("storage", {})
        persistence = data.get("persistence", {})
        panel = data.get("panel", {})
        try:
            policy = FlushPolicy(str(persistence.get("flush_policy", "sync")).lower())
        except ValueError:
            raise ValueError(
                f"invalid flush_policy {persistence.get('flush_policy')!r}"
            ) from None
        return Settings(
            buttons=_parse_buttons(data.get("buttons")),
            panel_prompt=str(panel.get("prompt", "Pick your roles:")),
            data_dir=Path(storage.get("directory", "data")),
            data_filename=str(storage.get("filename", "role-maps.json")),
            flush_policy=policy,
            flush_interval_seconds=float(persistence.get("flush_interval_seconds", 30)),
        )

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Apply deployment overrides from the environment."""

        env = os.environ if environ is None else environ
        changes: Dict[str, Any] = {}

        data_dir = env.get("REACTION_ROLES_DATA_DIR") or env.get("DATA_DIR")
        if data_dir:
            changes["data_dir"] = Path(data_dir).expanduser().resolve()

        policy_raw = env.get("REACTION_ROLES_FLUSH_POLICY")
        if policy_raw:
            try:
                changes["flush_policy"] = FlushPolicy(policy_raw.strip().lower())
            except ValueError:
                logger.warning(
                    "Invalid REACTION_ROLES_FLUSH_POLICY %s; using %s",
                    policy_raw,
                    self.flush_policy.value,
                )

        interval_raw = env.get("REACTION_ROLES_FLUSH_INTERVAL")
        if interval_raw:
            try:
                interval = float(interval_raw)
            except ValueError:
                interval = 0.0
            if interval > 0:
                changes["flush_interval_seconds"] = interval
            else:
                logger.warning("Invalid REACTION_ROLES_FLUSH_INTERVAL %s", interval_raw)

        return replace(self, **changes) if changes else self


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings from the configured file with environment overrides."""

    env = os.environ if environ is None else environ
    override = env.get("REACTION_ROLES_SETTINGS")
    path = Path(override).expanduser() if override else None
    return SettingsLoader(path).load().with_env_overrides(env)


__all__ = ["MAX_PANEL_BUTTONS", "Settings", "SettingsLoader", "get_settings"]
