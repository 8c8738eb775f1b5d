from __future__ import annotations

import logging
import shlex
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .config import Settings
from .filters import filter_records
from .privilege import PrivilegeBroker
from .systemctl import list_view
from .units import ActionKind, ActionOutcome, ActionRequest, UnitRecord, View

logger = logging.getLogger(__name__)

NO_SELECTION = "No service selected"
ACTION_SUCCEEDED = "Action completed successfully"
ACTION_FAILED = "Action failed"
READY = "SysD Manager - ready"

Synchronizer = Callable[[View, Settings], List[UnitRecord]]


@dataclass
class AppState:
    datasets: Dict[View, List[UnitRecord]] = field(default_factory=lambda: {view: [] for view in View})
    visible: Dict[View, List[UnitRecord]] = field(default_factory=lambda: {view: [] for view in View})
    query: str = ""
    status: str = READY
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class ServiceController:
    """Owns the three datasets and the filter query, and runs unit actions."""

    def __init__(
        self,
        broker: PrivilegeBroker,
        settings: Optional[Settings] = None,
        synchronizer: Synchronizer = list_view,
        state: Optional[AppState] = None,
    ):
        self.broker = broker
        self.settings = settings or Settings()
        self.synchronizer = synchronizer
        self.state = state or AppState()

    # Datasets --------------------------------------------------------------
    def synchronize(self, view: View) -> List[UnitRecord]:
        records = self.synchronizer(view, self.settings)
        with self.state.lock:
            self.state.datasets[view] = records
            self.state.visible[view] = filter_records(records, self.state.query)
        logger.debug("Synchronized %s: %d units", view.value, len(records))
        return list(records)

    def synchronize_all(self) -> None:
        for view in View:
            self.synchronize(view)

    def records(self, view: View) -> List[UnitRecord]:
        with self.state.lock:
            return list(self.state.datasets[view])

    # Filtering -------------------------------------------------------------
    def set_filter(self, query: str) -> None:
        with self.state.lock:
            self.state.query = query
            self._refilter_locked()

    def refilter(self) -> None:
        with self.state.lock:
            self._refilter_locked()

    def _refilter_locked(self) -> None:
        for view, records in self.state.datasets.items():
            self.state.visible[view] = filter_records(records, self.state.query)

    def visible_records(self, view: View) -> List[UnitRecord]:
        with self.state.lock:
            return list(self.state.visible[view])

    # Status ----------------------------------------------------------------
    def set_status(self, message: str) -> None:
        with self.state.lock:
            self.state.status = message

    @property
    def status(self) -> str:
        with self.state.lock:
            return self.state.status

    # Actions ---------------------------------------------------------------
    def command_for(self, request: ActionRequest) -> Optional[List[str]]:
        kind = request.resolved_kind()
        if kind is ActionKind.DAEMON_RELOAD:
            return [self.settings.systemctl, kind.value]
        if not request.unit:
            return None
        return [self.settings.systemctl, kind.value, request.unit]

    def perform(self, request: ActionRequest) -> ActionOutcome:
        argv = self.command_for(request)
        if argv is None:
            self.set_status(NO_SELECTION)
            return ActionOutcome(False, NO_SELECTION, spawned=False)

        logger.info("Running %s", shlex.join(argv))
        result = self.broker.run(argv)
        output = result.output.strip()
        if result.succeeded:
            outcome = ActionOutcome(True, ACTION_SUCCEEDED, output)
            logger.info("%s succeeded", shlex.join(argv))
        else:
            outcome = ActionOutcome(False, output or ACTION_FAILED, output)
            logger.warning("%s failed: %s", shlex.join(argv), output or "no output")
        self.set_status(outcome.message)

        # A failed action may still have changed unit state.
        self.synchronize_all()
        self.refilter()
        return outcome
