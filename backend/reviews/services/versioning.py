import logging
from typing import Any, Callable, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from common.errors import Conflict

logger = logging.getLogger(__name__)


def versioned_upsert(model, key: Dict[str, Any], values: Dict[str, Any], expected_version: Optional[int] = None,
                     guard: Optional[Callable] = None):
    """Create or update the row identified by ``key`` as a compare-and-swap.

    A new row relies on the unique constraint over ``key``; an existing row is
    only updated while its ``version`` still equals the one read here (and the
    client's ``expected_version`` when given). ``guard`` sees the current row
    before the write and may raise to refuse it.
    """
    current = model.objects.filter(**key).first()

    if current is None:
        if expected_version:
            raise Conflict('StaleVersion', 'The review no longer exists in the expected version')
        if guard is not None:
            guard(None)
        try:
            with transaction.atomic():
                return model.objects.create(**key, **values)
        except IntegrityError:
            logger.warning('Concurrent create of %s %s', model.__name__, key)
            raise Conflict('ConcurrentWrite', 'The review was created concurrently, reload and retry')

    if guard is not None:
        guard(current)
    if expected_version is not None and expected_version != current.version:
        raise Conflict(
            'StaleVersion', 'The review was modified since it was loaded',
            {'expectedVersion': expected_version, 'currentVersion': current.version},
        )

    updated = model.objects.filter(pk=current.pk, version=current.version).update(
        version=F('version') + 1, updated_at=timezone.now(), **values,
    )
    if not updated:
        logger.warning('Lost update on %s %s (version %s)', model.__name__, current.pk, current.version)
        raise Conflict('ConcurrentWrite', 'The review was modified concurrently, reload and retry')

    current.refresh_from_db()
    return current
