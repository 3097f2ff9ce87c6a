"""HTTP routes: session lifecycle, cluster views and costs."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from clusterscope.aggregation.costs import cost_report
from clusterscope.aggregation.engine import AggregationEngine
from clusterscope.auth.session import CredentialStore, Session, build_session
from clusterscope.core.exceptions import AuthorizationError, ClusterScopeException
from clusterscope.core.models import FetchError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api")


class AuthRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    tenant_id: Optional[str] = None
    subscription_id: Optional[str] = None


def _flag(value: Optional[str]) -> bool:
    return (value or "").lower() in ("1", "true", "yes")


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_engine(request: Request) -> AggregationEngine:
    return request.app.state.engine


def current_session(store: CredentialStore = Depends(get_store)) -> Session:
    """Snapshot of the stored session, taken once per request."""
    return store.get_session()


def _fetch_error_response(title: str, error: FetchError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status or 502,
        content={"error": title, "status": error.status, "message": error.message, "body": error.body}
    )


@router.post("/auth")
async def authenticate(request: Request,
                       body: Optional[AuthRequest] = None,
                       store: CredentialStore = Depends(get_store),
                       engine: AggregationEngine = Depends(get_engine)):
    """Verify service principal credentials by listing clusters, then store the session."""
    fields = body.model_dump(by_alias=True) if body else {}
    session = build_session(fields, request.app.state.settings.azure)
    
    try:
        clusters = await engine.list_clusters(session)
    except AuthorizationError:
        raise
    except ClusterScopeException as e:
        logger.warning("Authentication failed", principal_id=session.principal_id, error=e.message)
        return JSONResponse(status_code=401, content={"success": False, "error": e.message})
    
    store.set_session(session)
    return {"success": True, "clusters": [cluster.to_response() for cluster in clusters]}


@router.post("/logout")
async def logout(store: CredentialStore = Depends(get_store)):
    store.clear()
    return {"success": True}


@router.get("/aks-health")
async def list_clusters(session: Session = Depends(current_session),
                        engine: AggregationEngine = Depends(get_engine)):
    clusters = await engine.list_clusters(session)
    return {"clusters": [cluster.to_response() for cluster in clusters]}


@router.get("/cluster/{resource_group}/{name}")
async def cluster_detail(resource_group: str, name: str, admin: Optional[str] = None,
                         session: Session = Depends(current_session),
                         engine: AggregationEngine = Depends(get_engine)):
    detail = await engine.cluster_detail(session, resource_group, name, use_admin=_flag(admin))
    return detail.to_response()


@router.get("/cluster/{resource_group}/{name}/pod/{namespace}/{pod}/logs")
async def pod_logs(resource_group: str, name: str, namespace: str, pod: str,
                   container: Optional[str] = None,
                   tail_lines: Optional[int] = Query(None, alias="tailLines", ge=1),
                   admin: Optional[str] = None,
                   session: Session = Depends(current_session),
                   engine: AggregationEngine = Depends(get_engine)):
    result = await engine.pod_logs(
        session, resource_group, name, namespace, pod,
        container=container, tail_lines=tail_lines, use_admin=_flag(admin)
    )
    if isinstance(result, FetchError):
        return _fetch_error_response("Log fetch failed", result)
    return result.to_response()


@router.get("/cluster/{resource_group}/{name}/events")
async def cluster_events(resource_group: str, name: str, admin: Optional[str] = None,
                         session: Session = Depends(current_session),
                         engine: AggregationEngine = Depends(get_engine)):
    result = await engine.events(session, resource_group, name, use_admin=_flag(admin))
    if isinstance(result, FetchError):
        return _fetch_error_response("Event fetch failed", result)
    return result


@router.get("/costs")
async def costs(request: Request, days: Optional[int] = None,
                session: Session = Depends(current_session)):
    report = await cost_report(
        session, days,
        settings=request.app.state.settings.cost,
        client_factory=request.app.state.cost_client_factory
    )
    return report.to_response()
