"""
Projection store operations.

Every write to the projection goes through one of two primitives so that
replayed events can never duplicate or corrupt rows:

* ``insert_if_absent``: create the row for a key, or leave an existing row as is
* ``update_by_key``: merge named fields into an existing row, or report a miss
"""

from typing import Any, Optional, Tuple, Type

from django.db import models, transaction
import logging

logger = logging.getLogger(__name__)


def insert_if_absent(
    model: Type[models.Model], key: str, **fields: Any
) -> Tuple[models.Model, bool]:
    """
    Insert a row keyed by ``key`` unless one already exists.

    Returns:
        (row, created). ``created`` is False when the key was already present,
        in which case the stored row is returned untouched.
    """
    with transaction.atomic():
        row, created = model.objects.get_or_create(pk=key, defaults=fields)
    if not created:
        logger.debug(f"{model.__name__} {key} already projected, insert skipped")
    return row, created


def update_by_key(
    model: Type[models.Model], key: str, **fields: Any
) -> Optional[models.Model]:
    """
    Merge ``fields`` into the row keyed by ``key``.

    Returns:
        The updated row, or None when no row exists for the key.
    """
    with transaction.atomic():
        row = model.objects.select_for_update().filter(pk=key).first()
        if row is None:
            return None
        changed = [name for name, value in fields.items() if getattr(row, name) != value]
        if not changed:
            return row
        for name in changed:
            setattr(row, name, fields[name])
        row.save(update_fields=changed)
    return row


def get_by_key(model: Type[models.Model], key: str) -> Optional[models.Model]:
    return model.objects.filter(pk=key).first()
