"""Tests for chuk_mcp_relief.tools.discovery.api.

Covers relief_status and relief_capabilities in JSON and text modes, plus
error handling when the manager fails.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from conftest import capture_tools

from chuk_mcp_relief.constants import ALL_STYLES, TERRAIN_TYPES, ServerConfig
from chuk_mcp_relief.tools.discovery.api import register_discovery_tools


@pytest.fixture
def discovery_tools(mock_manager):
    return capture_tools(register_discovery_tools, mock_manager)


class TestRegistration:
    def test_registers_two_tools(self, discovery_tools):
        assert set(discovery_tools) == {"relief_status", "relief_capabilities"}


class TestReliefStatus:
    async def test_json(self, discovery_tools):
        result = json.loads(await discovery_tools["relief_status"]())
        assert result["server"] == ServerConfig.NAME
        assert result["version"] == ServerConfig.VERSION
        assert result["provider"] == "opentopodata"
        assert result["artifact_store_available"] is True
        assert result["daily_requests"] == 0
        assert result["remaining_requests"] == 1000

    async def test_storage_provider_from_env(self, discovery_tools):
        with patch.dict("os.environ", {"CHUK_ARTIFACTS_PROVIDER": "s3"}):
            result = json.loads(await discovery_tools["relief_status"]())
        assert result["storage_provider"] == "s3"

    async def test_store_unavailable(self, mock_manager):
        mock_manager._get_store = MagicMock(return_value=None)
        tools = capture_tools(register_discovery_tools, mock_manager)
        result = json.loads(await tools["relief_status"]())
        assert result["artifact_store_available"] is False

    async def test_store_lookup_error(self, mock_manager):
        mock_manager._get_store = MagicMock(side_effect=RuntimeError("no store"))
        tools = capture_tools(register_discovery_tools, mock_manager)
        result = json.loads(await tools["relief_status"]())
        assert result["artifact_store_available"] is False

    async def test_reflects_request_count(self, mock_manager, context):
        context.daily_request_count = 12
        tools = capture_tools(register_discovery_tools, mock_manager)
        result = json.loads(await tools["relief_status"]())
        assert result["daily_requests"] == 12
        assert result["remaining_requests"] == 988

    async def test_text(self, discovery_tools):
        text = await discovery_tools["relief_status"](output_mode="text")
        assert text.startswith(f"{ServerConfig.NAME} v{ServerConfig.VERSION}")
        assert "Provider: opentopodata" in text

    async def test_error(self, mock_manager):
        mock_manager.request_stats = MagicMock(side_effect=RuntimeError("broken"))
        tools = capture_tools(register_discovery_tools, mock_manager)
        result = json.loads(await tools["relief_status"]())
        assert result["error"] == "broken"


class TestReliefCapabilities:
    async def test_json(self, discovery_tools):
        result = json.loads(await discovery_tools["relief_capabilities"]())
        assert result["styles"] == ALL_STYLES
        assert result["default_style"] == "perspective"
        assert result["fallback_style"] == "dotgrid"
        assert result["terrain_types"] == TERRAIN_TYPES
        assert result["image_size"] == [300, 300]
        assert result["resolution"] == 6
        assert result["tool_count"] == 5
        assert "relief_generate" in result["llm_guidance"]

    async def test_providers(self, discovery_tools):
        result = json.loads(await discovery_tools["relief_capabilities"]())
        by_id = {p["id"]: p for p in result["providers"]}
        assert by_id["opentopodata"]["requires_api_key"] is False
        assert by_id["mapbox"]["requires_api_key"] is True
        assert by_id["mapbox"]["water_query"] is True

    async def test_tool_count_matches_registered(self, mock_manager):
        from chuk_mcp_relief.tools.analysis.api import register_analysis_tools
        from chuk_mcp_relief.tools.render.api import register_render_tools

        names = set()
        for register in (register_discovery_tools, register_analysis_tools, register_render_tools):
            names |= set(capture_tools(register, mock_manager))
        tools = capture_tools(register_discovery_tools, mock_manager)
        result = json.loads(await tools["relief_capabilities"]())
        assert result["tool_count"] == len(names)

    async def test_text(self, discovery_tools):
        text = await discovery_tools["relief_capabilities"](output_mode="text")
        assert "Tools: 5" in text
        assert "dotgrid, graph, perspective" in text

    async def test_error(self, mock_manager):
        mock_manager.describe = MagicMock(side_effect=RuntimeError("bad config"))
        tools = capture_tools(register_discovery_tools, mock_manager)
        text = await tools["relief_capabilities"](output_mode="text")
        assert text == "Error: bad config"
