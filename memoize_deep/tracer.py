from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from opentelemetry import trace

from .config import config

# No provider is installed here: spans are no-ops until the application
# configures the OpenTelemetry SDK.
_tracer = trace.get_tracer("memoize_deep")


@asynccontextmanager
async def start_span_async(name: str, attributes: Optional[Dict[str, Any]] = None):
    if not config.TRACE_FETCHES:
        yield None
        return
    with _tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span
