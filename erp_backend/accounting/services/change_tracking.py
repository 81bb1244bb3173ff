# accounting/services/change_tracking.py

"""
OLD-ROW SNAPSHOTS FOR SAVE TRIGGERS

pre_save receivers call remember_previous() to stash the stored values of the
fields a trigger compares; post_save receivers then ask changed_fields().
The snapshot lives on the instance only for the duration of one save.
"""

from __future__ import annotations

SNAPSHOT_ATTR = "_previous_values"


def remember_previous(instance, fields: tuple[str, ...]) -> None:
    if instance.pk is None or instance._state.adding:
        setattr(instance, SNAPSHOT_ATTR, None)
        return

    previous = type(instance).objects.filter(pk=instance.pk).values(*fields).first()
    setattr(instance, SNAPSHOT_ATTR, previous)


def previous_values(instance) -> dict | None:
    return getattr(instance, SNAPSHOT_ATTR, None)


def changed_fields(instance, fields: tuple[str, ...]) -> set[str]:
    """Fields whose value differs from the snapshot (empty set for inserts)."""
    previous = previous_values(instance)
    if not previous:
        return set()

    changed = set()
    for name in fields:
        attname = instance._meta.get_field(name).attname
        if previous.get(name) != getattr(instance, attname):
            changed.add(name)
    return changed
