"""Shared fixtures and in-memory stand-ins for Discord objects."""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

import pytest

from reaction_roles import telemetry as telemetry_module
from reaction_roles.config import SettingsLoader
from reaction_roles.models import BotMemberRef, MemberRef, Reply, RoleRef
from reaction_roles.registry import RoleMapRegistry
from reaction_roles.service import RolePanelService
from reaction_roles.store import RoleMapStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for var in [
        "REACTION_ROLES_DATA_DIR",
        "DATA_DIR",
        "REACTION_ROLES_FLUSH_POLICY",
        "REACTION_ROLES_FLUSH_INTERVAL",
        "REACTION_ROLES_SETTINGS",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("REACTION_ROLES_TELEMETRY_DB", str(tmp_path / "telemetry.db"))
    telemetry_module._telemetry = None
    yield
    telemetry_module._telemetry = None


class FakeGuild:
    """Implements the guild port over plain dicts."""

    def __init__(
        self,
        guild_id: str = "G1",
        roles: Optional[List[RoleRef]] = None,
        bot: Optional[BotMemberRef] = BotMemberRef(can_manage_roles=True, top_role_position=10),
        members: Optional[Dict[str, Set[str]]] = None,
    ) -> None:
        self._id = guild_id
        self.roles = {role.id: role for role in roles or []}
        self.bot = bot
        self.members: Dict[str, Set[str]] = members or {}
        self.fetches: List[str] = []
        self.changes: List[Tuple[str, str, str, str]] = []

    @property
    def id(self) -> str:
        return self._id

    def get_role(self, role_id: str) -> Optional[RoleRef]:
        return self.roles.get(role_id)

    def me(self) -> Optional[BotMemberRef]:
        return self.bot

    async def fetch_member(self, user_id: str) -> MemberRef:
        self.fetches.append(user_id)
        return MemberRef(id=user_id, role_ids=frozenset(self.members.setdefault(user_id, set())))

    async def add_role(self, user_id: str, role_id: str, *, reason: str) -> None:
        self.members.setdefault(user_id, set()).add(role_id)
        self.changes.append(("add", user_id, role_id, reason))

    async def remove_role(self, user_id: str, role_id: str, *, reason: str) -> None:
        self.members.setdefault(user_id, set()).discard(role_id)
        self.changes.append(("remove", user_id, role_id, reason))


class FakeContext:
    """Collects replies; optionally fails when asked to reply."""

    def __init__(self, guild: Optional[FakeGuild] = None, *, fail_reply: bool = False) -> None:
        self._guild = guild
        self.fail_reply = fail_reply
        self.replies: List[Reply] = []

    @property
    def responded(self) -> bool:
        return bool(self.replies)

    @property
    def guild(self) -> Optional[FakeGuild]:
        return self._guild

    async def reply(self, reply: Reply) -> None:
        if self.fail_reply:
            raise RuntimeError("interaction token expired")
        self.replies.append(reply)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.toggles: List[Tuple[str, str, str]] = []
        self.errors: List[Tuple[str, Optional[str]]] = []

    def track_toggle(self, outcome: str, guild_id: str, button_id: str) -> None:
        self.toggles.append((outcome, guild_id, button_id))

    def track_error(self, error_type: str, command=None, user_id=None, error_details=None) -> None:
        self.errors.append((error_type, command))


class SlowStore(RoleMapStore):
    """Role map store whose saves sleep and can run a hook before writing."""

    def __init__(self, path, delays=(), before_save: Optional[Callable[[], None]] = None) -> None:
        super().__init__(path)
        self.delays = list(delays)
        self.before_save = before_save
        self.threads: List[int] = []

    def save(self, maps) -> bool:
        self.threads.append(threading.get_ident())
        hook, self.before_save = self.before_save, None
        if hook is not None:
            hook()
        if self.delays:
            time.sleep(self.delays.pop(0))
        return super().save(maps)


RAIDER = RoleRef(id="R_raider", name="Raider", position=3)


@pytest.fixture
def settings():
    return SettingsLoader().load()


@pytest.fixture
def store(tmp_path):
    return RoleMapStore(tmp_path / "data" / "role-maps.json")


@pytest.fixture
def registry(store):
    return RoleMapRegistry.from_store(store)


@pytest.fixture
def service(registry, settings):
    return RolePanelService(registry, settings.buttons, panel_prompt=settings.panel_prompt)


@pytest.fixture
def guild():
    return FakeGuild("G1", roles=[RAIDER])
