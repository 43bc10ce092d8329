from typing import Optional


class MemoizeError(Exception):
    pass


class SerializationError(MemoizeError):
    """Raised when call arguments cannot be turned into a cache key."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{message} at {path}"
        super().__init__(message)
