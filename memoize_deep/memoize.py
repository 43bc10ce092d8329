"""Memoized wrappers around fetch callables.

Typical use::

    @memoize(max_age=30, wait=False, default_value=[])
    async def load_rates(currency):
        ...

    rates = await load_rates("EUR")

Every distinct (canonicalised) argument list gets its own cache entry; see
``CacheEntry.perform`` for the refresh rules.
"""

import functools
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Optional, Union

from .cache import CacheStore
from .keys import encode_key
from .schemas import MemoizeOptions

log = logging.getLogger("memoize_deep.memoize")


class MemoizedFunction:
    def __init__(self, options: MemoizeOptions):
        self.options = options
        self.store = CacheStore(options.default_value, name=options.label, clock=options.clock)
        functools.update_wrapper(self, options.fetch, updated=())

    def __call__(self, *args: Any, **kwargs: Any) -> Awaitable[Any]:
        # Key derivation happens here, outside the coroutine, so bad arguments
        # raise SerializationError at call time and never reach the store.
        key = encode_key(args, kwargs)
        entry = self.store.get_or_create(key)
        opts = self.options
        return entry.perform(opts.fetch, opts.max_age, args, opts.wait_policy, opts.on_error, kwargs)

    def __get__(self, instance, owner=None):
        # an instance cannot be encoded into the cache key
        if instance is None:
            return self
        raise TypeError(
            f"{self.store.name} is memoized as a plain function and cannot be bound to "
            f"{type(instance).__name__} instances; memoize the bound method with "
            "create_memoized(fetch=obj.method) instead"
        )

    def cache_clear(self) -> None:
        log.debug("cache cleared", extra={"function": self.store.name, "entries": len(self.store)})
        self.store.clear()

    def __repr__(self) -> str:
        return f"<MemoizedFunction {self.store.name} max_age={self.options.max_age} wait_policy={self.options.wait_policy.value}>"


def create_memoized(config: Union[MemoizeOptions, Mapping, None] = None, **options: Any) -> MemoizedFunction:
    """Build a memoized callable from a ``MemoizeOptions``, a mapping of options, or keyword options."""
    if isinstance(config, MemoizeOptions):
        if not options:
            return MemoizedFunction(config)
        config = {name: getattr(config, name) for name in MemoizeOptions.model_fields}
    merged = dict(config or {})
    if "wait" in options:
        merged.pop("wait_policy", None)
    merged.update(options)
    return MemoizedFunction(MemoizeOptions.model_validate(merged))


def memoize(fetch: Optional[Any] = None, **options: Any):
    """Decorator form of ``create_memoized``; usable bare or with options.

    Meant for plain functions. Methods cannot be decorated because ``self``
    would have to become part of the cache key; wrap the bound method with
    ``create_memoized(fetch=obj.method)`` instead.
    """

    def decorator(fn):
        return create_memoized(fetch=fn, **options)

    if fetch is None:
        return decorator
    return decorator(fetch)
