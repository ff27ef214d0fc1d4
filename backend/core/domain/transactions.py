"""
core.domain.transactions — Helpers for safe per-record writes.

Every mutating service in the project follows the same recipe:

    with transaction.atomic():
        locked = lock_for_update(Case, case_id)
        ...mutate locked...
        locked.save(update_fields=[...])

The row lock taken by ``select_for_update`` serialises concurrent status
changes, assignments and evidence appends on the same case, so two
staff members updating one case cannot lose each other's history entry.

``retry_on_integrity_error`` covers the other concurrency hazard:
generated unique identifiers (case numbers, staff ids) computed as
"last + 1" can collide when two requests allocate at the same moment.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from django.db import IntegrityError, models, transaction

from core.domain.exceptions import Conflict, NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        label:       Human-readable name used in the ``NotFound`` message
                     (defaults to the model name).

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        name = label or model_class.__name__
        raise NotFound(f"{name} with id {pk} not found.")


def retry_on_integrity_error(
    fn: Callable[[], T],
    *,
    attempts: int = 5,
    what: str = "record",
) -> T:
    """
    Run ``fn`` inside a savepoint, retrying when it hits a unique
    constraint violation.

    ``fn`` must recompute its generated identifier on every call.  Each
    attempt gets its own savepoint so a failed INSERT does not poison an
    enclosing transaction.

    Raises:
        Conflict: When every attempt collided.
    """
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return fn()
        except IntegrityError:
            logger.warning(
                "Unique identifier collision creating %s (attempt %d/%d)",
                what,
                attempt,
                attempts,
            )
    raise Conflict(f"Could not allocate a unique identifier for the {what}; please retry.")
