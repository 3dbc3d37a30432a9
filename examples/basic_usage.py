#!/usr/bin/env python3
"""
Basic usage example for pnode-monitor
"""

import asyncio

from pnode_monitor import MonitorContext, setup_logging


async def main():
    setup_logging()
    monitor = MonitorContext.create()

    print("Discovering pNodes...")
    nodes = await monitor.pnodes.get_all_pnodes()
    print(f"Found {len(nodes)} pNodes")

    for node in nodes[:5]:
        print(f"  {node.id} {node.status:<8} {node.version:<10} {node.country}")

    summary = await monitor.analytics.get_analytics_summary()
    print(f"\nOnline: {summary.online_pnodes}/{summary.total_pnodes} "
          f"({summary.online_percentage}%) - {summary.network_health}")
    print(f"Consensus version: {summary.consensus_version}")

    print("\nTop nodes by health score:")
    for top in await monitor.analytics.get_top_nodes(limit=3):
        print(f"  {top.pubkey[:12]}... {top.health_score:.1f}")


if __name__ == "__main__":
    asyncio.run(main())
