"""
Field-case projection of ORDS records.

ORDS returns column names in lower case (pr_nombre) while the UI works with
the upper-case column names (PR_NOMBRE). Records are projected onto a fixed
allow-list of canonical keys; anything not listed is dropped.
"""
from typing import Any, Dict, Iterable, List, Sequence


def transform_record(
    record: Dict[str, Any],
    fields: Sequence[str],
    zero_defaults: Iterable[str] = ()
) -> Dict[str, Any]:
    """Project one record onto `fields`, upper-case key first, then lower-case."""
    zero_defaults = set(zero_defaults)
    projected = {}
    for field in fields:
        value = record.get(field)
        if value is None:
            value = record.get(field.lower())
        if value is None and field in zero_defaults:
            value = 0
        projected[field] = value
    return projected


def transform_records(
    records: Iterable[Any],
    fields: Sequence[str],
    zero_defaults: Iterable[str] = ()
) -> List[Dict[str, Any]]:
    zero_defaults = tuple(zero_defaults)
    return [
        transform_record(record, fields, zero_defaults)
        for record in records
        if isinstance(record, dict)
    ]
