"""Core data models for the reaction role panel."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, FrozenSet, Optional, Tuple


class ButtonStyle(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


class FlushPolicy(str, Enum):
    """When registry changes are written to the role map file."""

    SYNC = "sync"
    ASYNC = "async"
    PERIODIC = "periodic"


@dataclass(frozen=True)
class ButtonDefinition:
    """A panel button as declared in the deploy-time settings."""

    id: str
    label: str
    style: ButtonStyle = ButtonStyle.SECONDARY


@dataclass(frozen=True)
class RoleRef:
    id: str
    name: str
    position: int = 0


@dataclass(frozen=True)
class MemberRef:
    id: str
    role_ids: FrozenSet[str] = frozenset()

    def has_role(self, role_id: str) -> bool:
        return role_id in self.role_ids


@dataclass(frozen=True)
class BotMemberRef:
    """The bot's own standing inside a guild."""

    can_manage_roles: bool
    top_role_position: int


@dataclass(frozen=True)
class Reply:
    """The single response an interaction produces."""

    content: str
    ephemeral: bool = True
    buttons: Tuple[ButtonDefinition, ...] = ()


class InteractionKind(str, Enum):
    CONFIGURE = "configure"
    POST_PANEL = "post_panel"
    BUTTON_PRESS = "button_press"


@dataclass(frozen=True)
class ConfigureRequest:
    kind: ClassVar[InteractionKind] = InteractionKind.CONFIGURE

    guild_id: str
    user_id: str
    invoker_can_manage_roles: bool
    button_id: str
    role: RoleRef


@dataclass(frozen=True)
class PanelRequest:
    kind: ClassVar[InteractionKind] = InteractionKind.POST_PANEL

    guild_id: str
    user_id: str


@dataclass(frozen=True)
class ButtonPress:
    kind: ClassVar[InteractionKind] = InteractionKind.BUTTON_PRESS

    guild_id: str
    user_id: str
    custom_id: str


class ToggleOutcome(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    NOT_CONFIGURED = "not_configured"
    ROLE_MISSING = "role_missing"
    BOT_MEMBER_MISSING = "bot_member_missing"
    MISSING_PERMISSION = "missing_permission"
    HIERARCHY = "hierarchy"

@dataclass(frozen=True)
class ToggleResult:
    outcome: ToggleOutcome
    message: str
    role_id: Optional[str] = None


@dataclass(frozen=True)
class ConfigureResult:
    ok: bool
    message: str
    previous_role_id: Optional[str] = None
    valid_ids: Tuple[str, ...] = field(default_factory=tuple)
