"""Exception handlers mapping the error taxonomy onto HTTP responses."""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clusterscope.auth.session import CredentialStore
from clusterscope.clients.azure.errors import is_authorization_denial
from clusterscope.core.exceptions import (
    AuthenticationError, AuthorizationError, ClusterScopeException, ConfigurationError,
    NotAuthenticatedError, NotFoundError
)

logger = structlog.get_logger(__name__)

COST_ROLE = "Cost Management Reader"
CLUSTER_USER_ROLE = "Azure Kubernetes Service Cluster User Role"
CLUSTER_ADMIN_ROLE = "Azure Kubernetes Service Cluster Admin Role"


def required_role(operation: Optional[str]) -> str:
    if operation == "query_usage":
        return COST_ROLE
    if operation == "list_cluster_admin_credentials":
        return CLUSTER_ADMIN_ROLE
    return CLUSTER_USER_ROLE


def authorization_guidance(operation: Optional[str], store: Optional[CredentialStore] = None) -> dict:
    """403 body telling the operator which role to grant and how."""
    role = required_role(operation)
    app_id, subscription_id = "<APP_ID>", "<SUB_ID>"
    if store is not None and store.is_authenticated:
        session = store.get_session()
        app_id, subscription_id = session.client_id, session.subscription_id
    
    if role == COST_ROLE:
        guidance = (f"Grant the service principal {COST_ROLE} (or Reader) at subscription scope "
                    "and ensure provider Microsoft.Consumption is registered.")
    else:
        guidance = f"Grant the service principal {role} on the cluster or at subscription scope."
    return {
        "error": "AuthorizationFailed",
        "requiredRole": role,
        "guidance": guidance,
        "cli": f'az role assignment create --assignee {app_id} --role "{role}" '
               f"--scope /subscriptions/{subscription_id}"
    }


def _store(request: Request) -> Optional[CredentialStore]:
    return getattr(request.app.state, "store", None)


def register_exception_handlers(app: FastAPI) -> None:
    
    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return JSONResponse(status_code=401, content={"error": exc.message})
    
    @app.exception_handler(AuthenticationError)
    async def authentication_failed(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"error": exc.message})
    
    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": exc.message, "missing": exc.missing_fields}
        )
    
    @app.exception_handler(AuthorizationError)
    async def authorization_failed(request: Request, exc: AuthorizationError):
        logger.warning("Authorization denied", operation=exc.operation, path=request.url.path)
        return JSONResponse(status_code=403, content=authorization_guidance(exc.operation, _store(request)))
    
    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": exc.message})
    
    @app.exception_handler(ClusterScopeException)
    async def service_error(request: Request, exc: ClusterScopeException):
        logger.error("Request failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=500, content={"error": exc.message})
    
    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        if is_authorization_denial(exc):
            return JSONResponse(status_code=403, content=authorization_guidance(None, _store(request)))
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Server error"})
