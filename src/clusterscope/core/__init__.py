from .exceptions import *
from .base_client import BaseClient
from .utils import *

__all__ = [
    "BaseClient",
    "ClusterScopeException",
    "NotAuthenticatedError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "UnresolvableAccessError",
    "ConfigurationError",
    "first_non_empty",
    "retry_on_throttle",
    "safe_get",
    "setup_logging",
]
