# src/clusterscope/cli.py
"""Command line entry points: run the API server or query a cluster once."""

import asyncio
import json
import sys
import click
import structlog

from clusterscope.aggregation.costs import cost_report
from clusterscope.aggregation.engine import AggregationEngine
from clusterscope.auth.session import build_session
from clusterscope.config.settings import Settings
from clusterscope.core.exceptions import ClusterScopeException
from clusterscope.core.models import FetchError
from clusterscope.core.utils import setup_logging

logger = structlog.get_logger(__name__)


def _emit(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _run(ctx: click.Context, operation) -> None:
    """Run ``operation(settings, session)`` and print its JSON result."""
    settings: Settings = ctx.obj["settings"]
    try:
        session = build_session(defaults=settings.azure)
        result = asyncio.run(operation(settings, session))
    except ClusterScopeException as e:
        click.echo(f"❌ {e.message}", err=True)
        if ctx.obj["debug"]:
            import traceback
            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)
    
    if isinstance(result, FetchError):
        _emit(result.model_dump(by_alias=True))
        sys.exit(1)
    _emit(result)


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """
    ClusterScope: AKS cluster health, workloads, logs and cost.
    
    Configure your .env file with:
        AZURE_SUBSCRIPTION_ID=your-subscription-id
        AZURE_TENANT_ID=your-tenant-id
        AZURE_CLIENT_ID=your-client-id
        AZURE_CLIENT_SECRET=your-client-secret
    """
    settings = Settings.create_from_env()
    if debug:
        settings.debug = True
        settings.log_level = "DEBUG"
    setup_logging(log_level=str(getattr(settings.log_level, "value", settings.log_level)),
                  json_logs=settings.log_format == "json")
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["debug"] = debug


@cli.command()
@click.option('--host', default=None, help='Bind address (default: API_HOST)')
@click.option('--port', default=None, type=int, help='Port (default: API_PORT)')
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API."""
    import uvicorn
    from clusterscope.api.app import create_app
    
    settings: Settings = ctx.obj["settings"]
    uvicorn.run(
        create_app(settings),
        host=host or settings.api.host,
        port=port or settings.api.port,
        access_log=settings.api.access_log
    )


@cli.command()
@click.pass_context
def clusters(ctx):
    """List AKS clusters in the subscription."""
    async def operation(settings, session):
        found = await AggregationEngine(settings.cluster_api).list_clusters(session)
        return [cluster.to_response() for cluster in found]
    _run(ctx, operation)


@cli.command()
@click.argument('resource_group')
@click.argument('name')
@click.option('--admin', is_flag=True, help='Use cluster admin credentials')
@click.pass_context
def detail(ctx, resource_group, name, admin):
    """Aggregate nodes, pods and deployments of one cluster."""
    async def operation(settings, session):
        result = await AggregationEngine(settings.cluster_api).cluster_detail(
            session, resource_group, name, use_admin=admin
        )
        return result.to_response()
    _run(ctx, operation)


@cli.command()
@click.argument('resource_group')
@click.argument('name')
@click.argument('namespace')
@click.argument('pod')
@click.option('--container', '-c', default=None, help='Container name')
@click.option('--tail', default=None, type=click.IntRange(min=1), help='Number of trailing lines (default: 200)')
@click.option('--admin', is_flag=True, help='Use cluster admin credentials')
@click.pass_context
def logs(ctx, resource_group, name, namespace, pod, container, tail, admin):
    """Print the last log lines of a pod."""
    async def operation(settings, session):
        result = await AggregationEngine(settings.cluster_api).pod_logs(
            session, resource_group, name, namespace, pod,
            container=container, tail_lines=tail, use_admin=admin
        )
        return result if isinstance(result, FetchError) else result.to_response()
    _run(ctx, operation)


@cli.command()
@click.option('--days', default=None, type=int, help='Cost window in days (1-90, default: 30)')
@click.pass_context
def costs(ctx, days):
    """Cost per resource and meter category over the last N days."""
    async def operation(settings, session):
        report = await cost_report(session, days, settings=settings.cost)
        return report.to_response()
    _run(ctx, operation)


if __name__ == '__main__':
    cli()
