"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI

from clusterscope import __version__
from clusterscope.aggregation.costs import CostClientFactory
from clusterscope.aggregation.engine import AggregationEngine
from clusterscope.auth.session import CredentialStore
from clusterscope.clients.azure.client_factory import cost_client_for
from clusterscope.config.settings import Settings
from .errors import register_exception_handlers
from .routes import router


def create_app(settings: Optional[Settings] = None,
               engine: Optional[AggregationEngine] = None,
               store: Optional[CredentialStore] = None,
               cost_client_factory: Optional[CostClientFactory] = None) -> FastAPI:
    """Build the application.
    
    The credential store belongs to this app instance; routes read a session
    snapshot from it per request and hand it to the engine explicitly.
    """
    settings = settings or Settings.create_from_env()
    
    app = FastAPI(title="ClusterScope", version=__version__)
    app.state.settings = settings
    app.state.store = store or CredentialStore()
    app.state.engine = engine or AggregationEngine(settings.cluster_api)
    app.state.cost_client_factory = cost_client_factory or cost_client_for
    
    register_exception_handlers(app)
    app.include_router(router)
    return app
