from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

LISTING_FLAGS = ("--no-legend", "--no-pager")


class UnitFormat(Enum):
    RUNNING = "list-units"
    FILES = "list-unit-files"


class View(Enum):
    RUNNING = "running"
    ENABLED_AT_BOOT = "enabled"
    ALL = "all"

    @property
    def listing_args(self) -> Tuple[str, ...]:
        return _LISTING_ARGS[self]

    @property
    def unit_format(self) -> UnitFormat:
        if self is View.ENABLED_AT_BOOT:
            return UnitFormat.FILES
        return UnitFormat.RUNNING

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def status_text(self) -> str:
        return _STATUS_TEXT[self]


_LISTING_ARGS = {
    View.RUNNING: ("list-units", "--type=service", "--state=running", "--plain"),
    View.ENABLED_AT_BOOT: ("list-unit-files", "--type=service", "--state=enabled"),
    View.ALL: ("list-units", "--type=service", "--all", "--plain"),
}

_TITLES = {
    View.RUNNING: "Running",
    View.ENABLED_AT_BOOT: "Enabled at Boot",
    View.ALL: "All Services",
}

_STATUS_TEXT = {
    View.RUNNING: "Showing: Services currently running",
    View.ENABLED_AT_BOOT: "Showing: Services enabled at boot",
    View.ALL: "Showing: All services",
}


@dataclass(frozen=True)
class UnitRecord:
    name: str
    state: str = ""
    pid: str = ""
    description: str = ""


class ActionKind(Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    RELOAD = "reload"
    ENABLE = "enable"
    DISABLE = "disable"
    DAEMON_RELOAD = "daemon-reload"

    @property
    def needs_unit(self) -> bool:
        return self not in (ActionKind.RELOAD, ActionKind.DAEMON_RELOAD)


@dataclass(frozen=True)
class ActionRequest:
    kind: ActionKind
    unit: Optional[str] = None

    def resolved_kind(self) -> ActionKind:
        """Reload without a selected unit reloads the manager itself."""
        if self.kind is ActionKind.RELOAD and not self.unit:
            return ActionKind.DAEMON_RELOAD
        return self.kind


@dataclass(frozen=True)
class ActionOutcome:
    succeeded: bool
    message: str
    output: str = ""
    spawned: bool = True


def parse_running_line(line: str) -> UnitRecord:
    # NAME LOAD ACTIVE SUB DESCRIPTION...
    parts = line.split(None, 4)
    if not parts:
        return UnitRecord(name="")
    state = parts[2] if len(parts) > 2 else ""
    description = parts[4] if len(parts) > 4 else ""
    return UnitRecord(name=parts[0], state=state, description=description)


def parse_files_line(line: str) -> UnitRecord:
    # NAME STATE [PRESET]
    parts = line.split()
    if not parts:
        return UnitRecord(name="")
    state = parts[-1] if len(parts) > 1 else ""
    return UnitRecord(name=parts[0], state=state)


_PARSERS = {
    UnitFormat.RUNNING: parse_running_line,
    UnitFormat.FILES: parse_files_line,
}


def parse_line(line: str, unit_format: UnitFormat) -> UnitRecord:
    return _PARSERS[unit_format](line)
