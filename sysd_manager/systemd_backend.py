from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from PySide6 import QtCore

from .config import Settings
from .controller import ServiceController
from .privilege import PrivilegeBroker
from .units import ActionRequest, UnitRecord, View

logger = logging.getLogger(__name__)


class _EngineRunnable(QtCore.QRunnable):
    def __init__(self, backend: "SystemdBackend", job: Callable[[], None]):
        super().__init__()
        self.backend = backend
        self.job = job

    def run(self) -> None:
        try:
            if not self.backend.closing:
                self.job()
        finally:
            self.backend._set_busy(False)


class SystemdBackend(QtCore.QObject):
    """Runs controller calls off the GUI thread, one at a time.

    Results come back as signals. The password prompt is shown on the GUI
    thread while the worker waits for it.
    """

    datasetsChanged = QtCore.Signal()
    statusChanged = QtCore.Signal(str)
    actionFinished = QtCore.Signal(bool, str)
    busyChanged = QtCore.Signal(bool)
    credentialRequested = QtCore.Signal(str)

    def __init__(
        self,
        prompt: Callable[[str], Optional[str]],
        settings: Optional[Settings] = None,
        controller: Optional[ServiceController] = None,
        parent: Optional[QtCore.QObject] = None,
    ):
        super().__init__(parent)
        self.prompt = prompt
        self.settings = settings or Settings()
        self.controller = controller or ServiceController(
            PrivilegeBroker(self._request_credential, self.settings),
            self.settings,
        )
        self.pool = QtCore.QThreadPool(self)
        self.pool.setMaxThreadCount(1)
        self._credential: Optional[str] = None
        self.closing = False
        self._pending = 0
        self._pending_lock = QtCore.QMutex()
        self.credentialRequested.connect(self._on_credential_requested, QtCore.Qt.BlockingQueuedConnection)

    # Requests ------------------------------------------------------------
    def refresh_all(self) -> None:
        self._start(self._refresh_all)

    def refresh_view(self, view: View) -> None:
        self._start(lambda: self._refresh_view(view))

    def perform(self, request: ActionRequest) -> None:
        self._start(lambda: self._perform(request))

    def set_filter(self, query: str) -> None:
        self.controller.set_filter(query)
        self.datasetsChanged.emit()

    def visible_records(self, view: View) -> List[UnitRecord]:
        return self.controller.visible_records(view)

    def wait_for_done(self, msecs: int = -1) -> bool:
        return self.pool.waitForDone(msecs)

    def shutdown(self, msecs: int = -1) -> bool:
        """Decline further prompts, skip queued jobs and wait for the running one.

        Must be called on the GUI thread. Events keep being processed while
        waiting, so a worker blocked on the password prompt is released.
        """
        self.closing = True
        deadline = None if msecs < 0 else time.monotonic() + msecs / 1000
        while not self.pool.waitForDone(50):
            QtCore.QCoreApplication.processEvents()
            if deadline is not None and time.monotonic() >= deadline:
                return self.pool.waitForDone(0)
        return True

    # Jobs ----------------------------------------------------------------
    def _refresh_all(self) -> None:
        self.controller.synchronize_all()
        self.datasetsChanged.emit()

    def _refresh_view(self, view: View) -> None:
        self.controller.synchronize(view)
        self.datasetsChanged.emit()

    def _perform(self, request: ActionRequest) -> None:
        outcome = self.controller.perform(request)
        if outcome.spawned:
            self.datasetsChanged.emit()
        self.statusChanged.emit(outcome.message)
        self.actionFinished.emit(outcome.succeeded, outcome.message)

    def _start(self, job: Callable[[], None]) -> None:
        self._set_busy(True)
        self.pool.start(_EngineRunnable(self, job))

    def _set_busy(self, busy: bool) -> None:
        self._pending_lock.lock()
        try:
            before = self._pending
            self._pending += 1 if busy else -1
            after = self._pending
        finally:
            self._pending_lock.unlock()
        if (before == 0) != (after == 0):
            self.busyChanged.emit(after > 0)

    # Credentials ---------------------------------------------------------
    def _request_credential(self, command: str) -> Optional[str]:
        # Runs on the worker thread and blocks until the GUI slot returns.
        if self.closing:
            return None
        self.credentialRequested.emit(command)
        credential, self._credential = self._credential, None
        return credential

    @QtCore.Slot(str)
    def _on_credential_requested(self, command: str) -> None:
        if self.closing:
            self._credential = None
            return
        logger.debug("Password requested for %s", command)
        self._credential = self.prompt(command)
