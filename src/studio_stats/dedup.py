from __future__ import annotations

from typing import Any, Mapping, Sequence, TypeVar

RecordT = TypeVar("RecordT", bound=Mapping[str, Any])


def deduplicate_records(records: Sequence[RecordT], key: str) -> list[RecordT]:
    """Keep the first record per key value; records without a key are always kept."""
    seen: set[Any] = set()
    unique: list[RecordT] = []
    for record in records:
        value = (
            record.get(key)
            or record.get(key.lower())
            or record.get(key[:1].upper() + key[1:])
        )
        if not value:
            unique.append(record)
            continue
        if value not in seen:
            seen.add(value)
            unique.append(record)
    return unique


def deduplicate_clients_by_email(records: Sequence[RecordT]) -> list[RecordT]:
    return deduplicate_records(records, "email")
