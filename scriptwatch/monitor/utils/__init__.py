"""Monitor utility functions."""

from .retry import rate_limit_retry, RateLimitRetry, is_rate_limit_error
from .tasks import spawn_detached, pending_detached_tasks

__all__ = [
    "rate_limit_retry",
    "RateLimitRetry",
    "is_rate_limit_error",
    "spawn_detached",
    "pending_detached_tasks",
]
