"""Translation of Azure SDK errors into ClusterScope exceptions."""

import re

from azure.core.exceptions import AzureError, ClientAuthenticationError, ResourceNotFoundError

from clusterscope.core.exceptions import (
    AuthenticationError, AuthorizationError, ClusterScopeException, NotFoundError
)

AUTHORIZATION_DENIAL = re.compile(r"AuthorizationFailed|does not have authorization|\b403\b", re.IGNORECASE)


def is_authorization_denial(exc: BaseException) -> bool:
    """Detect an authorization-denial signal from the control plane."""
    if getattr(exc, "status_code", None) == 403:
        return True
    return bool(AUTHORIZATION_DENIAL.search(str(exc)))


def translate_azure_error(exc: AzureError, operation: str) -> ClusterScopeException:
    """Map an Azure SDK error raised during ``operation`` onto the error taxonomy."""
    message = getattr(exc, "message", None) or str(exc)
    details = {"operation": operation, "status": getattr(exc, "status_code", None)}
    
    if isinstance(exc, ClientAuthenticationError) and getattr(exc, "status_code", None) != 403:
        return AuthenticationError(f"{operation}: authentication failed: {message}", details)
    if is_authorization_denial(exc):
        return AuthorizationError(operation, f"{operation}: authorization denied: {message}", details)
    if isinstance(exc, ResourceNotFoundError) or getattr(exc, "status_code", None) == 404:
        return NotFoundError(f"{operation}: not found: {message}", details)
    return ClusterScopeException(f"{operation} failed: {message}", details)
