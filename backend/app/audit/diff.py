"""Field-level diffing of entity snapshots for the audit trail."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from backend.app.models.common import AuditAction

Record = Mapping[str, Any]

DEFAULT_SKIP_FIELDS = frozenset({"updated_at"})


@dataclass(frozen=True)
class ChangeSet:
    """Old/new values to store on an audit entry.

    For updates, ``changed_fields`` lists differing keys in the new record's
    key order and both value maps are restricted to those keys. An empty
    list means nothing changed.
    """

    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    changed_fields: list[str] | None

    @property
    def is_noop(self) -> bool:
        """True when an update changed nothing worth logging."""
        return self.changed_fields is not None and not self.changed_fields


def values_equal(a: Any, b: Any) -> bool:
    """Deep semantic equality over JSON-like values.

    Mapping key order is ignored, sequence order is not. Booleans never equal
    numbers (``True != 1``), matching how the values serialize.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[key], b[key]) for key in a)

    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))

    if _is_sequence(a) or _is_sequence(b) or isinstance(a, Mapping) or isinstance(b, Mapping):
        return False

    return bool(a == b)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def compute_changes(
    action: AuditAction,
    old: Record | None,
    new: Record | None,
    skip_fields: frozenset[str] = DEFAULT_SKIP_FIELDS,
) -> ChangeSet:
    """Compute what an audit entry should record for an action.

    Args:
        action: create, update or delete
        old: Snapshot before the change (None for create)
        new: Snapshot after the change (None for delete)
        skip_fields: Keys ignored when diffing updates

    Returns:
        ChangeSet; for updates check ``is_noop`` before writing
    """
    if action == AuditAction.create:
        return ChangeSet(old_values=None, new_values=_copy(new), changed_fields=None)

    if action == AuditAction.delete:
        return ChangeSet(old_values=_copy(old), new_values=None, changed_fields=None)

    # Nothing to diff against
    if old is None or new is None:
        return ChangeSet(old_values=_copy(old), new_values=_copy(new), changed_fields=None)

    changed_fields: list[str] = []
    diff_old: dict[str, Any] = {}
    diff_new: dict[str, Any] = {}

    # Keys present only in old (removed keys) are not reported
    for key, new_value in new.items():
        if key in skip_fields:
            continue
        # A key new to the record counts as changed, even when set to None
        if key not in old or not values_equal(old[key], new_value):
            changed_fields.append(key)
            diff_old[key] = old.get(key)
            diff_new[key] = new_value

    if not changed_fields:
        return ChangeSet(old_values=None, new_values=None, changed_fields=[])

    return ChangeSet(old_values=diff_old, new_values=diff_new, changed_fields=changed_fields)


def _copy(record: Record | None) -> dict[str, Any] | None:
    return dict(record) if record is not None else None
