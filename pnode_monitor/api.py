"""
HTTP read API for the dashboard UI
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from .context import MonitorContext, get_context
from .history import synthesize_uptime_history
from .response_format import error_response, list_response, to_json_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pnodes"])


def get_monitor(request: Request) -> MonitorContext:
    return request.app.state.context


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(error_response(message), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _not_found(message: str = "Node not found") -> JSONResponse:
    return JSONResponse(error_response(message), status_code=status.HTTP_404_NOT_FOUND)


@router.get("/pnodes")
async def list_pnodes(monitor: MonitorContext = Depends(get_monitor)):
    try:
        nodes = await monitor.pnodes.get_all_pnodes()
        return list_response("nodes", nodes)
    except Exception as e:
        logger.error(f"Error fetching pNodes: {e}", exc_info=True)
        return _server_error("Failed to fetch pNodes")


@router.post("/pnodes/refresh")
async def refresh_pnodes(monitor: MonitorContext = Depends(get_monitor)):
    try:
        nodes = await monitor.pnodes.refresh_pnodes()
        return list_response("nodes", nodes)
    except Exception as e:
        logger.error(f"Error refreshing pNodes: {e}", exc_info=True)
        return _server_error("Failed to refresh pNodes")


@router.get("/pnodes/{pubkey}")
async def get_pnode(pubkey: str, monitor: MonitorContext = Depends(get_monitor)):
    try:
        node = await monitor.pnodes.get_pnode_by_pubkey(pubkey)
        if node is None:
            return _not_found()
        return {"node": node.to_dict()}
    except Exception as e:
        logger.error(f"Error fetching pNode {pubkey}: {e}", exc_info=True)
        return _server_error("Failed to fetch pNode")


@router.get("/pnodes/{pubkey}/stats")
async def get_pnode_stats(pubkey: str, monitor: MonitorContext = Depends(get_monitor)):
    try:
        stats = await monitor.pnodes.get_node_stats(pubkey)
        if stats is None:
            return _not_found("Stats not available")
        return {"stats": stats.to_dict()}
    except Exception as e:
        logger.error(f"Error fetching stats for {pubkey}: {e}", exc_info=True)
        return _server_error("Failed to fetch node stats")


@router.get("/analytics/summary")
async def analytics_summary(monitor: MonitorContext = Depends(get_monitor)):
    try:
        summary = await monitor.analytics.get_analytics_summary()
        return summary.to_dict()
    except Exception as e:
        logger.error(f"Error fetching analytics summary: {e}", exc_info=True)
        return _server_error("Failed to fetch analytics summary")


@router.get("/analytics/metrics")
async def analytics_metrics(monitor: MonitorContext = Depends(get_monitor)):
    try:
        metrics = await monitor.analytics.get_node_metrics()
        return list_response("metrics", metrics)
    except Exception as e:
        logger.error(f"Error fetching node metrics: {e}", exc_info=True)
        return _server_error("Failed to fetch node metrics")


@router.get("/analytics/extended")
async def analytics_extended(monitor: MonitorContext = Depends(get_monitor)):
    try:
        summary = await monitor.analytics.get_extended_summary()
        return summary.to_dict()
    except Exception as e:
        logger.error(f"Error fetching extended summary: {e}", exc_info=True)
        return _server_error("Failed to fetch extended summary")


@router.get("/analytics/top-nodes")
async def analytics_top_nodes(monitor: MonitorContext = Depends(get_monitor)):
    try:
        nodes = await monitor.analytics.get_top_nodes()
        return list_response("nodes", nodes)
    except Exception as e:
        logger.error(f"Error fetching top nodes: {e}", exc_info=True)
        return _server_error("Failed to fetch top nodes")


@router.get("/analytics/storage-pressure")
async def analytics_storage_pressure(monitor: MonitorContext = Depends(get_monitor)):
    try:
        pressure = await monitor.analytics.get_storage_pressure()
        return pressure.to_dict()
    except Exception as e:
        logger.error(f"Error fetching storage pressure: {e}", exc_info=True)
        return _server_error("Failed to fetch storage pressure")


@router.get("/analytics/versions")
async def analytics_versions(monitor: MonitorContext = Depends(get_monitor)):
    try:
        versions = await monitor.analytics.get_version_distribution()
        return {"versions": to_json_list(versions)}
    except Exception as e:
        logger.error(f"Error fetching version distribution: {e}", exc_info=True)
        return _server_error("Failed to fetch version distribution")


@router.get("/analytics/geo")
async def analytics_geo(monitor: MonitorContext = Depends(get_monitor)):
    try:
        summary = await monitor.analytics.get_geo_summary()
        return summary.to_dict()
    except Exception as e:
        logger.error(f"Error fetching geo summary: {e}", exc_info=True)
        return _server_error("Failed to fetch geo summary")


@router.get("/analytics/storage")
async def analytics_storage(monitor: MonitorContext = Depends(get_monitor)):
    try:
        rows = await monitor.analytics.get_storage_analytics()
        return list_response("nodes", rows)
    except Exception as e:
        logger.error(f"Error fetching storage analytics: {e}", exc_info=True)
        return _server_error("Failed to fetch storage analytics")


@router.get("/analytics/map")
async def analytics_map(monitor: MonitorContext = Depends(get_monitor)):
    try:
        nodes = await monitor.analytics.get_map_nodes()
        return list_response("nodes", nodes)
    except Exception as e:
        logger.error(f"Error fetching map nodes: {e}", exc_info=True)
        return _server_error("Failed to fetch map nodes")


@router.get("/network-stats")
async def network_stats(monitor: MonitorContext = Depends(get_monitor)):
    try:
        summary = await monitor.analytics.get_analytics_summary()
        return {
            "totalNodes": summary.total_pnodes,
            "onlineNodes": summary.online_pnodes,
            "offlineNodes": summary.total_pnodes - summary.online_pnodes,
            # offline and degraded are not told apart here
            "degradedNodes": 0,
            "totalStorageCapacityTB": summary.total_storage_capacity_tb,
            "totalStorageUsedTB": summary.total_storage_used_tb,
            "averageUptime": summary.average_uptime,
            "networkHealthScore": summary.online_percentage,
            "consensusVersion": summary.consensus_version,
            "totalPods": summary.total_pods,
            "activePods": summary.active_pods,
        }
    except Exception as e:
        logger.error(f"Error fetching network stats: {e}", exc_info=True)
        return _server_error("Failed to fetch network stats")


@router.get("/uptime-history/{pubkey}")
async def uptime_history(pubkey: str, monitor: MonitorContext = Depends(get_monitor)):
    try:
        node = await monitor.pnodes.get_pnode_by_pubkey(pubkey)
        if node is None:
            return _not_found()
        return {"history": to_json_list(synthesize_uptime_history(node))}
    except Exception as e:
        logger.error(f"Error fetching uptime history for {pubkey}: {e}", exc_info=True)
        return _server_error("Failed to fetch uptime history")


def create_app(context: Optional[MonitorContext] = None) -> FastAPI:
    app = FastAPI(title="pNode Monitor", version="1.0")
    app.state.context = context or get_context()
    app.include_router(router)
    return app
