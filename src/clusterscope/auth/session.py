"""Service principal session and the credential store that holds it."""

import threading
from typing import Any, Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from clusterscope.config.settings import AzureSettings
from clusterscope.core.exceptions import ConfigurationError, NotAuthenticatedError

logger = structlog.get_logger(__name__)

# Request field name -> AzureSettings attribute
REQUIRED_FIELDS = {
    "clientId": "client_id",
    "clientSecret": "client_secret",
    "tenantId": "tenant_id",
    "subscriptionId": "subscription_id",
}


class Session(BaseModel):
    """The currently trusted principal. Immutable; replaced wholesale on re-auth."""
    
    model_config = ConfigDict(frozen=True)
    
    client_id: str
    client_secret: str = Field(repr=False)
    tenant_id: str
    subscription_id: str
    
    @property
    def principal_id(self) -> str:
        return self.client_id


def build_session(fields: Optional[Dict[str, Any]] = None,
                  defaults: Optional[AzureSettings] = None) -> Session:
    """Build a session from explicit fields, falling back to environment defaults.
    
    Raises ConfigurationError listing every field that is still missing.
    """
    fields = fields or {}
    defaults = defaults or AzureSettings()
    
    values = {}
    missing = []
    for request_name, attr in REQUIRED_FIELDS.items():
        value = fields.get(request_name) or getattr(defaults, attr, None)
        if value:
            values[attr] = value
        else:
            missing.append(request_name)
    
    if missing:
        raise ConfigurationError(
            "Missing credentials (provide fields or set env vars): " + ", ".join(missing),
            missing_fields=missing
        )
    return Session(**values)


class CredentialStore:
    """Single slot holding the authenticated session.
    
    No expiry is tracked here; a stale secret surfaces as an
    AuthenticationError on the next remote call.
    """
    
    def __init__(self):
        self._session: Optional[Session] = None
        self._lock = threading.Lock()
    
    def set_session(self, session: Session) -> None:
        with self._lock:
            self._session = session
        logger.info("Session stored", principal_id=session.principal_id,
                    subscription_id=session.subscription_id)
    
    def get_session(self) -> Session:
        with self._lock:
            session = self._session
        if session is None:
            raise NotAuthenticatedError()
        return session
    
    def clear(self) -> None:
        with self._lock:
            self._session = None
        logger.info("Session cleared")
    
    @property
    def is_authenticated(self) -> bool:
        return self._session is not None
