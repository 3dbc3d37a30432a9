"""
Tests for the command-line interface
"""

import json
from unittest.mock import patch

from click.testing import CliRunner

from pnode_monitor.cli import cli

from conftest import SEEDS, make_pod


class TestCli:
    def _invoke(self, monitor, *args):
        runner = CliRunner()
        with patch("pnode_monitor.cli.MonitorContext.create", return_value=monitor):
            return runner.invoke(cli, ["--quiet", *args])

    def test_nodes(self, monitor, network):
        network.pods_with_stats[SEEDS[0]] = [make_pod("a"), make_pod("b")]

        result = self._invoke(monitor, "nodes")

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["meta"]["operation"] == "nodes"
        assert payload["data"]["count"] == 2

    def test_node_not_found_exits_nonzero(self, monitor, network):
        network.pods_with_stats[SEEDS[0]] = [make_pod("a")]
        result = self._invoke(monitor, "node", "ghost")
        assert result.exit_code == 1
        assert "Node not found" in json.loads(result.output)["error"]

    def test_summary(self, monitor, network):
        network.pods_with_stats[SEEDS[0]] = [make_pod("a")]
        result = self._invoke(monitor, "summary")
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["totalPNodes"] == 1

    def test_metrics_top(self, monitor, network):
        network.pods_with_stats[SEEDS[0]] = [make_pod(str(i)) for i in range(5)]
        result = self._invoke(monitor, "metrics", "--top", "3")
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["count"] == 3

    def test_refresh_rediscovers(self, monitor, network):
        network.pods_with_stats[SEEDS[0]] = [make_pod("a")]
        assert self._invoke(monitor, "nodes").exit_code == 0

        network.pods_with_stats[SEEDS[0]] = [make_pod("a"), make_pod("b")]
        result = self._invoke(monitor, "refresh")

        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["count"] == 2
