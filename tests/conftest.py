import io
import subprocess
from typing import Dict, List, Optional, Sequence

import pytest

from sysd_manager.config import Settings


class FakeCompleted:
    def __init__(self, args, returncode=0, stdout="", stderr=""):
        self.args = args
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class FakePopen:
    def __init__(self, system: "FakeSystem", args, returncode=0, output="", hang=False):
        self.system = system
        self.args = list(args)
        self.returncode = returncode
        self._output = output
        self.stdout = io.StringIO(output)
        self.stdin_data: Optional[str] = None
        self.killed = False
        self.hang = hang
        self.timeouts: List[Optional[float]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stdout.close()
        return False

    def wait(self, timeout=None):
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9

    def communicate(self, input=None, timeout=None):
        self.stdin_data = input
        self.timeouts.append(timeout)
        if self.hang and not self.killed:
            # The child stops responding; its output so far is returned after kill().
            raise subprocess.TimeoutExpired(self.args, timeout)
        return self._output, None


class FakeSystem:
    """Scripted stand-in for the systemctl, pkexec and sudo binaries."""

    def __init__(self):
        self.listings: Dict[str, str] = {}
        self.listing_returncodes: Dict[str, int] = {}
        self.hanging_listings: set = set()
        self.properties: Dict[tuple, str] = {}
        self.pkexec_returncode = 0
        self.pkexec_stderr = ""
        self.sudo_returncode = 0
        self.sudo_output = ""
        self.missing: set = set()
        self.calls: List[List[str]] = []
        self.popens: List[FakePopen] = []

    def commands(self, program: str) -> List[List[str]]:
        return [c for c in self.calls if c and c[0] == program]

    def _check_missing(self, args: Sequence[str]) -> None:
        if args[0] in self.missing:
            raise FileNotFoundError(2, "No such file or directory", args[0])

    def run(self, args, **kwargs):
        args = list(args)
        self.calls.append(args)
        self._check_missing(args)
        if args[0] == "pkexec":
            return FakeCompleted(args, self.pkexec_returncode, None, self.pkexec_stderr)
        if args[:2] == ["systemctl", "show"]:
            prop, unit = args[3], args[5]
            value = self.properties.get((unit, prop))
            stdout = "" if value is None else value + "\n"
            return FakeCompleted(args, 0, stdout, "")
        raise AssertionError(f"unexpected command {args}")

    def popen(self, args, **kwargs):
        args = list(args)
        self.calls.append(args)
        self._check_missing(args)
        if args[0] == "sudo":
            proc = FakePopen(self, args, self.sudo_returncode, self.sudo_output)
        elif args[0] == "systemctl":
            key = ""
            if "--state=running" in args:
                key = "running"
            elif "--state=enabled" in args:
                key = "enabled"
            elif "--all" in args:
                key = "all"
            proc = FakePopen(
                self,
                args,
                self.listing_returncodes.get(key, 0),
                self.listings.get(key, ""),
                hang=key in self.hanging_listings,
            )
        else:
            raise AssertionError(f"unexpected command {args}")
        self.popens.append(proc)
        return proc


@pytest.fixture
def fake_system(monkeypatch):
    system = FakeSystem()
    monkeypatch.setattr(subprocess, "run", system.run)
    monkeypatch.setattr(subprocess, "Popen", system.popen)
    return system


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture(scope="session")
def qapp():
    from PySide6 import QtCore

    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app
