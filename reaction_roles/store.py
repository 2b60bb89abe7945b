"""JSON file persistence for guild role maps."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

RoleMaps = Dict[str, Dict[str, str]]


def _normalise(raw: Any) -> RoleMaps:
    """Coerce decoded JSON into ``{guild_id: {button_id: role_id}}``."""

    if not isinstance(raw, dict):
        raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
    maps: RoleMaps = {}
    for guild_id, buttons in raw.items():
        if not isinstance(buttons, dict):
            logger.warning("Dropping role map for guild %s: not an object", guild_id)
            continue
        entries: Dict[str, str] = {}
        for button_id, role_id in buttons.items():
            if isinstance(role_id, bool) or not isinstance(role_id, (str, int)):
                logger.warning(
                    "Dropping mapping %s/%s: unexpected role id %r",
                    guild_id,
                    button_id,
                    role_id,
                )
                continue
            entries[str(button_id)] = str(role_id)
        maps[str(guild_id)] = entries
    return maps


class RoleMapStore:
    """Reads and writes the role map file.

    Every failure is logged and absorbed; callers keep their in-memory state
    when the disk misbehaves.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def directory(self) -> Path:
        return self._path.parent

    def ensure_location(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.exception("Failed to create role map directory %s", self.directory)
            return False
        return True

    def load(self) -> RoleMaps:
        self.ensure_location()
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
            maps = _normalise(raw)
        except FileNotFoundError:
            logger.info("No role map file at %s; starting empty", self._path)
            return {}
        except (OSError, ValueError):
            logger.exception("Failed to load role maps from %s; starting empty", self._path)
            return {}
        logger.info("Loaded role maps for %d guild(s) from %s", len(maps), self._path)
        return maps

    def save(self, maps: RoleMaps) -> bool:
        """Write the full map, replacing the file in one step."""

        if not self.ensure_location():
            logger.error(
                "Role maps not saved; set REACTION_ROLES_DATA_DIR to a writable volume"
            )
            return False
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self.directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(maps, fh, indent=2, sort_keys=True)
                fh.write("\n")
            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, TypeError, ValueError):
            logger.exception(
                "Failed to save role maps to %s; set REACTION_ROLES_DATA_DIR to a writable volume",
                self._path,
            )
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temporary file %s", tmp_name)
        logger.debug("Saved role maps to %s", self._path)
        return True


__all__ = ["RoleMapStore", "RoleMaps"]
