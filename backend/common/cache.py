import logging
import re
from typing import Any, Callable, Optional

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

SCOPE_RE = re.compile(r'(?:^|:)(year:\d+)(?::|$)')
GLOBAL_SCOPE = 'global'


def scope_of(key: str) -> str:
    """Invalidation scope of ``key``: its ``year:<n>`` segment, else ``global``."""
    match = SCOPE_RE.search(key)
    return match.group(1) if match else GLOBAL_SCOPE


class QueryCache:
    """TTL cache for read projections on top of a Django cache backend.

    Every key belongs to a scope (see ``scope_of``) and is stored under the
    scope's current generation. ``invalidate(scope)`` bumps the generation with
    the backend's atomic ``incr``, so older entries are never read again and
    expire on their own. The backend is injected; callers build one via
    ``get_query_cache``.
    """

    def __init__(self, backend=None, namespace: str = 'evaluation', default_ttl: Optional[int] = None):
        self.backend = backend if backend is not None else caches['default']
        self.namespace = namespace
        if default_ttl is None:
            default_ttl = int(getattr(settings, 'EVALUATION_REPORT_CACHE_SECONDS', 300))
        self.default_ttl = default_ttl

    def _generation_key(self, scope: str) -> str:
        return f'{self.namespace}:gen:{scope}'

    def generation(self, scope: str) -> int:
        gen_key = self._generation_key(scope)
        self.backend.add(gen_key, 0, None)
        return int(self.backend.get(gen_key) or 0)

    def _full_key(self, key: str) -> str:
        scope = scope_of(key)
        return f'{self.namespace}:{scope}:g{self.generation(scope)}:{key}'

    def get_or_set(self, key: str, producer: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        full_key = self._full_key(key)
        sentinel = object()
        cached = self.backend.get(full_key, sentinel)
        if cached is not sentinel:
            return cached

        value = producer()
        timeout = self.default_ttl if ttl is None else ttl
        if timeout > 0:
            self.backend.set(full_key, value, timeout)
        return value

    def invalidate(self, scope: str) -> int:
        """Retire every entry of ``scope``; returns the new generation."""
        gen_key = self._generation_key(scope)
        self.backend.add(gen_key, 0, None)
        try:
            generation = self.backend.incr(gen_key)
        except ValueError:
            # evicted between add and incr
            self.backend.set(gen_key, 1, None)
            generation = 1
        logger.debug('Cached projections of %s moved to generation %s', scope, generation)
        return generation


def get_query_cache(namespace: str = 'evaluation') -> QueryCache:
    return QueryCache(caches['default'], namespace=namespace)


def report_key(kind: str, year: int, *parts) -> str:
    """Cache key for a reporting projection; every key embeds ``year:<n>``."""
    suffix = ':'.join(str(p) for p in parts if p is not None)
    return f'{kind}:year:{year}:{suffix}'


def invalidate_year(year: int) -> int:
    """Retire the projections of ``year`` and the cross-year ones (activity feed)."""
    cache = get_query_cache()
    cache.invalidate(GLOBAL_SCOPE)
    return cache.invalidate(f'year:{year}')
