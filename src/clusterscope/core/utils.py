"""Utility functions and decorators."""

import logging
import sys
import structlog
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

T = TypeVar('T')


def _is_throttled(exc: BaseException) -> bool:
    return getattr(exc, "status_code", None) == 429


def retry_on_throttle(
    max_retries: int = 3,
    backoff_factor: float = 1.5,
    max_wait: float = 60.0
):
    """Decorator that retries calls rejected with HTTP 429, with exponential backoff."""
    return retry(
        retry=retry_if_exception(_is_throttled),
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=backoff_factor, max=max_wait),
        reraise=True
    )


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Setup structured logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format='%(message)s',
        stream=sys.stderr
    )
    
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def safe_get(dictionary: Any, key: str, default: Any = None) -> Any:
    """Safely get a value from a nested dictionary using dot notation.
    
    List indices are accepted as path segments, e.g. ``clusters.0.cluster.server``.
    """
    value = dictionary
    
    try:
        for k in key.split('.'):
            if isinstance(value, list):
                value = value[int(k)]
            else:
                value = value[k]
        return default if value is None else value
    except (KeyError, IndexError, TypeError, ValueError):
        return default


def first_non_empty(extractors: Iterable[Callable[[T], Any]], source: T) -> Optional[Any]:
    """Run extractors in order against ``source`` and return the first non-empty result."""
    for extractor in extractors:
        value = extractor(source)
        if value:
            return value
    return None


def parse_resource_id(resource_id: Optional[str]) -> Dict[str, Optional[str]]:
    """Split an ARM resource id into subscription, resource group and name."""
    parts = (resource_id or "").split('/')
    return {
        'subscription_id': parts[2] if len(parts) > 2 and parts[2] else None,
        'resource_group': parts[4] if len(parts) > 4 and parts[4] else None,
        'name': parts[-1] if parts[-1] else None,
    }
