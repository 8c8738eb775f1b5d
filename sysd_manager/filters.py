from __future__ import annotations

from typing import Iterable, List

from .units import UnitRecord


def is_visible(record: UnitRecord, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    for field in (record.name, record.description, record.pid, record.state):
        if needle in field.lower():
            return True
    return False


def filter_records(records: Iterable[UnitRecord], query: str) -> List[UnitRecord]:
    return [record for record in records if is_visible(record, query)]
