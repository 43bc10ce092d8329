import math
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import config


class _Unset:
    """Marker for "no value has ever been produced"."""

    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Unset, ())

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class WaitPolicy(str, Enum):
    WAIT = "wait"
    NO_WAIT = "no_wait"

    @classmethod
    def from_bool(cls, wait: bool) -> "WaitPolicy":
        return cls.WAIT if wait else cls.NO_WAIT


class MemoizeOptions(BaseModel):
    """Options accepted by ``create_memoized``.

    ``wait_policy`` also accepts the shorter ``wait`` name and a plain bool,
    ``max_age`` accepts a ``timedelta``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    fetch: Callable[..., Any]
    default_value: Any = UNSET
    max_age: float = Field(default_factory=lambda: config.DEFAULT_MAX_AGE, ge=0)
    wait_policy: WaitPolicy = Field(
        default_factory=lambda: WaitPolicy.from_bool(config.DEFAULT_WAIT),
        validation_alias=AliasChoices("wait_policy", "wait"),
    )
    on_error: Optional[Callable[[Exception], Any]] = None
    name: Optional[str] = None
    clock: Callable[[], float] = time.monotonic

    @field_validator("max_age", mode="before")
    @classmethod
    def _coerce_max_age(cls, v):
        if isinstance(v, timedelta):
            return v.total_seconds()
        if v is None:
            return math.inf
        return v

    @field_validator("wait_policy", mode="before")
    @classmethod
    def _coerce_wait_policy(cls, v):
        if isinstance(v, bool):
            return WaitPolicy.from_bool(v)
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        return getattr(self.fetch, "__qualname__", None) or type(self.fetch).__name__
