"""Two-tier privilege escalation.

Commands are first handed to the primary elevation program (``pkexec`` by
default), which owns its own authentication dialog. If that fails for any
reason, the operator is asked for a password through an injected prompt and
the command is retried through the fallback program (``sudo -S``), which
reads the password from stdin.

Commands are argument vectors. No shell is involved at any stage.
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .config import Settings

logger = logging.getLogger(__name__)

CredentialPrompt = Callable[[str], Optional[str]]


class ElevationStage(Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ElevationResult:
    succeeded: bool
    output: str = ""
    stage: ElevationStage = ElevationStage.PRIMARY


class PrivilegeBroker:
    def __init__(self, prompt: CredentialPrompt, settings: Optional[Settings] = None):
        self.prompt = prompt
        self.settings = settings or Settings()

    def run(self, argv: Sequence[str]) -> ElevationResult:
        result = self._run_primary(argv)
        if result.succeeded:
            return result
        return self._run_fallback(argv)

    def _run_primary(self, argv: Sequence[str]) -> ElevationResult:
        cmd = [*self.settings.primary_elevation, *argv]
        logger.debug("Elevating via %s", shlex.join(cmd))
        try:
            cp = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.settings.action_timeout,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Primary elevation timed out")
            return ElevationResult(False, "Command timed out", ElevationStage.PRIMARY)
        except OSError as exc:
            logger.debug("Primary elevation unavailable: %s", exc)
            return ElevationResult(False, str(exc), ElevationStage.PRIMARY)
        if cp.returncode != 0:
            logger.debug("Primary elevation exited with %s", cp.returncode)
        return ElevationResult(cp.returncode == 0, cp.stderr or "", ElevationStage.PRIMARY)

    def _run_fallback(self, argv: Sequence[str]) -> ElevationResult:
        credential = self.prompt(shlex.join(argv))
        if not credential:
            logger.info("Password prompt cancelled")
            return ElevationResult(False, "", ElevationStage.FALLBACK)

        cmd = [*self.settings.fallback_elevation, *argv]
        logger.debug("Elevating via %s", shlex.join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as exc:
            logger.warning("Fallback elevation unavailable: %s", exc)
            return ElevationResult(False, str(exc), ElevationStage.FALLBACK)

        try:
            output, _ = proc.communicate(credential + "\n", timeout=self.settings.action_timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()
            return ElevationResult(False, "Command timed out", ElevationStage.FALLBACK)
        return ElevationResult(proc.returncode == 0, output or "", ElevationStage.FALLBACK)
