"""
core.domain.transactions — Helpers for safe, versioned writes.

Provides utilities that wrap ``transaction.atomic`` and version-checked
``UPDATE`` statements into reusable patterns so that every store in the
project follows the same concurrency-safe approach.

Design goals
------------
* Eliminate boilerplate around ``with transaction.atomic(): ...``.
* Express optimistic locking as a single conditional ``UPDATE`` so the
  read-compare-write happens inside the database, not in Python.
* Keep the helpers **generic** — they accept any Django model class.

Usage::

    from core.domain.transactions import compare_and_swap

    written = compare_and_swap(
        ReviewCase,
        pk=case_id,
        expected_version=3,
        values={"stages": {...}, "overall_status": "approved"},
    )

    # For arbitrary atomic blocks:
    from core.domain.transactions import run_in_atomic

    result = run_in_atomic(my_service_function, arg1, arg2, kwarg=val)
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from core.domain.exceptions import NotFound

T = TypeVar("T")
M = TypeVar("M", bound=models.Model)


def compare_and_swap(
    model_class: type[models.Model],
    *,
    pk: Any,
    expected_version: int,
    values: dict[str, Any],
    version_field: str = "version",
) -> bool:
    """
    Update one row only if its version still equals ``expected_version``.

    Runs ``UPDATE ... SET <values>, version = version + 1
    WHERE pk = <pk> AND version = <expected>`` and reports whether a row
    was touched.

    Args:
        model_class:      The Django model class.
        pk:               Primary key of the row.
        expected_version: Version the caller read.
        values:           Column values to write.
        version_field:    Name of the integer version column.

    Returns:
        ``True`` if the row was updated, ``False`` if the version moved
        on (or the row vanished).
    """
    values = dict(values)
    values[version_field] = F(version_field) + 1
    if any(f.name == "updated_at" for f in model_class._meta.get_fields()):
        # QuerySet.update() bypasses auto_now.
        values.setdefault("updated_at", timezone.now())

    updated = (
        model_class.objects
        .filter(pk=pk, **{version_field: expected_version})
        .update(**values)
    )
    return updated == 1


def run_in_atomic(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Execute ``fn(*args, **kwargs)`` inside ``transaction.atomic()``.

    Convenient when a service function should be fully atomic but you
    don't want to decorate the function itself.

    Args:
        fn:      Callable to run.
        *args:   Positional arguments forwarded to ``fn``.
        **kwargs: Keyword arguments forwarded to ``fn``.

    Returns:
        Whatever ``fn`` returns.

    Raises:
        Any exception raised by ``fn`` — the transaction is rolled back.
    """
    with transaction.atomic():
        return fn(*args, **kwargs)


def get_or_not_found(model_class: type[M], pk: Any, **filters: Any) -> M:
    """
    Fetch a row by primary key, translating ``DoesNotExist`` into the
    domain ``NotFound``.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        **filters:   Extra lookups the row must also satisfy.

    Raises:
        NotFound: If no matching row exists.
    """
    try:
        return model_class.objects.get(pk=pk, **filters)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")
