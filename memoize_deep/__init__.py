from .cache import CacheStore
from .entry import CacheEntry
from .errors import MemoizeError, SerializationError
from .keys import encode_key
from .logging_config import init_logging
from .memoize import MemoizedFunction, create_memoized, memoize
from .metrics import export_metrics
from .schemas import UNSET, MemoizeOptions, WaitPolicy

__all__ = [
    "CacheEntry",
    "CacheStore",
    "MemoizeError",
    "MemoizeOptions",
    "MemoizedFunction",
    "SerializationError",
    "UNSET",
    "WaitPolicy",
    "create_memoized",
    "encode_key",
    "export_metrics",
    "init_logging",
    "memoize",
]
