#!/usr/bin/env python3
"""
pnode-monitor CLI Interface
"""

import sys
import asyncio
import logging

import click

from .context import MonitorContext
from .discovery import setup_logging
from .exceptions import PnodeMonitorException
from .response_format import format_json, list_response, standard_response


def _configure_logging(debug: bool, quiet: bool) -> None:
    if debug:
        setup_logging(logging.DEBUG)
    elif quiet:
        setup_logging(logging.ERROR)
    else:
        setup_logging(logging.INFO)


def _run(ctx: click.Context, operation: str, coro_factory) -> None:
    """Run a coroutine against a fresh context and print its JSON result"""
    pretty = ctx.obj["pretty"]
    try:
        monitor = MonitorContext.create()
        data = asyncio.run(coro_factory(monitor))
        click.echo(format_json(standard_response(data, operation), pretty))
    except PnodeMonitorException as e:
        click.echo(format_json({"error": str(e)}, pretty))
        sys.exit(1)
    except Exception as e:
        click.echo(format_json({"error": str(e)}, pretty))
        if not ctx.obj["quiet"]:
            click.echo(f"{operation} failed: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option('--pretty', is_flag=True, help='Pretty-print JSON output (default: compact)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--quiet', is_flag=True, help='Suppress output except results')
@click.pass_context
def cli(ctx, pretty, debug, quiet):
    """pnode-monitor: pNode network discovery, caching and analytics"""
    _configure_logging(debug, quiet)
    ctx.ensure_object(dict)
    ctx.obj["pretty"] = pretty
    ctx.obj["quiet"] = quiet


@cli.command()
@click.option('--host', default=None, help='Bind address (default: API_HOST setting)')
@click.option('--port', type=int, default=None, help='Bind port (default: API_PORT setting)')
@click.pass_context
def serve(ctx, host, port):
    """Serve the HTTP read API"""
    import uvicorn
    from .api import create_app

    monitor = MonitorContext.create()
    host = host or monitor.settings.api_host
    port = port or monitor.settings.api_port
    if not ctx.obj["quiet"]:
        click.echo(f"Serving pNode API on {host}:{port}", err=True)
    uvicorn.run(create_app(monitor), host=host, port=port)


@cli.command()
@click.pass_context
def nodes(ctx):
    """Discover and list all pNodes"""
    async def run(monitor):
        return list_response("nodes", await monitor.pnodes.get_all_pnodes())
    _run(ctx, "nodes", run)


@cli.command()
@click.pass_context
def refresh(ctx):
    """Drop the cached node list and rediscover"""
    async def run(monitor):
        return list_response("nodes", await monitor.pnodes.refresh_pnodes())
    _run(ctx, "refresh", run)


@cli.command()
@click.argument('pubkey')
@click.pass_context
def node(ctx, pubkey):
    """Show one pNode, with live stats when it answers"""
    async def run(monitor):
        found = await monitor.pnodes.get_pnode_with_stats(pubkey)
        if found is None:
            raise PnodeMonitorException(f"Node not found: {pubkey}")
        return {"node": found.to_dict()}
    _run(ctx, "node", run)


@cli.command()
@click.option('--extended', is_flag=True, help='Show the metrics-based extended summary')
@click.pass_context
def summary(ctx, extended):
    """Network-wide analytics summary"""
    async def run(monitor):
        if extended:
            return (await monitor.analytics.get_extended_summary()).to_dict()
        return (await monitor.analytics.get_analytics_summary()).to_dict()
    _run(ctx, "summary", run)


@cli.command()
@click.option('--top', type=int, default=None, help='Only show the N healthiest nodes')
@click.pass_context
def metrics(ctx, top):
    """Per-node health metrics"""
    async def run(monitor):
        if top:
            return list_response("nodes", await monitor.analytics.get_top_nodes(top))
        return list_response("metrics", await monitor.analytics.get_node_metrics())
    _run(ctx, "metrics", run)


if __name__ == '__main__':
    cli()
