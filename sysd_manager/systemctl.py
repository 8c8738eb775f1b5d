from __future__ import annotations

import logging
import shlex
import subprocess
from typing import List, Optional

from .config import Settings
from .units import LISTING_FLAGS, UnitRecord, View, parse_line

logger = logging.getLogger(__name__)

LAUNCH_ERROR_NAME = "Error running command"


def unit_property(unit: str, prop: str, settings: Optional[Settings] = None) -> str:
    """Return the first line of ``systemctl show -p PROP --value UNIT``.

    Any failure (empty unit name, missing binary, timeout, no output) gives an
    empty string. The value is returned as systemd reports it.
    """
    if not unit or not prop:
        return ""
    settings = settings or Settings()
    cmd = [settings.systemctl, "show", "-p", prop, "--value", unit]
    try:
        cp = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=settings.property_timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.warning("Property query failed for %s (%s): %s", unit, prop, exc)
        return ""
    lines = (cp.stdout or "").splitlines()
    return lines[0] if lines else ""


def main_pid(unit: str, settings: Optional[Settings] = None) -> str:
    pid = unit_property(unit, "MainPID", settings)
    return "" if pid == "0" else pid


def listing_command(view: View, settings: Optional[Settings] = None) -> List[str]:
    settings = settings or Settings()
    return [settings.systemctl, *LISTING_FLAGS, *view.listing_args]


def record_from_line(line: str, view: View, settings: Optional[Settings] = None) -> UnitRecord:
    parsed = parse_line(line, view.unit_format)
    name = parsed.name or line
    description = parsed.description or unit_property(name, "Description", settings)
    return UnitRecord(
        name=name,
        state=parsed.state,
        pid=main_pid(name, settings),
        description=description,
    )


def list_view(view: View, settings: Optional[Settings] = None) -> List[UnitRecord]:
    """Run the listing command for ``view`` and build a complete dataset."""
    settings = settings or Settings()
    cmd = listing_command(view, settings)
    logger.debug("Listing %s: %s", view.value, shlex.join(cmd))
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except OSError as exc:
        logger.warning("Could not run %s: %s", shlex.join(cmd), exc)
        return [UnitRecord(name=LAUNCH_ERROR_NAME)]

    with proc:
        try:
            output, _ = proc.communicate(timeout=settings.listing_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Listing %s did not exit in time, keeping partial output", view.value)
            proc.kill()
            output, _ = proc.communicate()
    if proc.returncode:
        logger.debug("Listing %s exited with %s", view.value, proc.returncode)

    records: List[UnitRecord] = []
    for line in (output or "").splitlines():
        if not line:
            continue
        records.append(record_from_line(line, view, settings))
    return records
