"""Custom exceptions for the ClusterScope service."""

from typing import Optional, Dict, Any, List


class ClusterScopeException(Exception):
    """Base exception for ClusterScope."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotAuthenticatedError(ClusterScopeException):
    """Raised when an operation needs a session and none is stored."""
    
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class AuthenticationError(ClusterScopeException):
    """Raised when the principal credentials are missing, invalid or expired."""
    pass


class AuthorizationError(ClusterScopeException):
    """Raised when the principal lacks the role required for an operation."""
    
    def __init__(self, operation: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__(message, details)


class NotFoundError(ClusterScopeException):
    """Raised when a cluster or resource does not exist in scope."""
    pass


class UnresolvableAccessError(ClusterScopeException):
    """Raised when a credential blob yields no usable server and token."""
    pass


class ConfigurationError(ClusterScopeException):
    """Raised when required input fields are missing."""
    
    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        self.missing_fields = list(missing_fields or [])
        super().__init__(message, {"missing": self.missing_fields})
