import os
from dataclasses import dataclass


def _bool_env(name, default=False):
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "y")


def _float_env(name, default):
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    # "inf" is accepted and means never stale
    return float(v)


@dataclass
class Config:
    # freshness window in seconds applied when max_age is not given
    DEFAULT_MAX_AGE: float
    DEFAULT_WAIT: bool
    LOG_LEVEL: str
    TRACE_FETCHES: bool


def load_config() -> Config:
    return Config(
        DEFAULT_MAX_AGE=_float_env("MEMOIZE_DEFAULT_MAX_AGE", float("inf")),
        DEFAULT_WAIT=_bool_env("MEMOIZE_DEFAULT_WAIT", default=True),
        LOG_LEVEL=os.getenv("MEMOIZE_LOG_LEVEL", "INFO"),
        TRACE_FETCHES=_bool_env("MEMOIZE_TRACE_FETCHES", default=True),
    )


config = load_config()
