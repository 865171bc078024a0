"""Tests for chuk_mcp_relief.tools.analysis.api."""

import json
from unittest.mock import AsyncMock

import pytest
from conftest import ALPS, PACIFIC, capture_tools

from chuk_mcp_relief.tools.analysis.api import register_analysis_tools


@pytest.fixture
def analysis_tools(mock_manager):
    return capture_tools(register_analysis_tools, mock_manager)


class TestRegistration:
    def test_registers_two_tools(self, analysis_tools):
        assert set(analysis_tools) == {"relief_classify_terrain", "relief_validate_area"}


class TestClassifyTerrain:
    async def test_mountainous(self, analysis_tools):
        result = json.loads(
            await analysis_tools["relief_classify_terrain"]([1200.0, 2500.0, 3100.0])
        )
        assert result["terrain_type"] == "high-mountainous"
        assert result["elevation_range"] == 1900.0
        assert result["sample_count"] == 3
        assert result["style"] == "perspective"

    async def test_flat_low(self, analysis_tools):
        result = json.loads(await analysis_tools["relief_classify_terrain"]([10.0, 20.0]))
        assert result["terrain_type"] == "low-flat"

    async def test_style_changes_params(self, analysis_tools):
        elevations = [1200.0, 2500.0, 3100.0]
        perspective = json.loads(
            await analysis_tools["relief_classify_terrain"](elevations, style="perspective")
        )
        classify = analysis_tools["relief_classify_terrain"]
        graph = json.loads(await classify(elevations, style="graph"))
        assert graph["style"] == "graph"
        assert perspective["render_params"] != graph["render_params"]

    async def test_unknown_style_resolved(self, analysis_tools):
        classify = analysis_tools["relief_classify_terrain"]
        result = json.loads(await classify([1.0, 2.0], style="ink"))
        assert result["style"] == "dotgrid"

    async def test_empty_list(self, analysis_tools):
        result = json.loads(await analysis_tools["relief_classify_terrain"]([]))
        assert "At least one elevation" in result["error"]

    async def test_text(self, analysis_tools):
        text = await analysis_tools["relief_classify_terrain"](
            [100.0, 600.0], output_mode="text"
        )
        assert text.startswith("Terrain classified as")
        assert "Render params" in text


class TestValidateArea:
    async def test_valid(self, analysis_tools):
        result = json.loads(
            await analysis_tools["relief_validate_area"](ALPS.latitude, ALPS.longitude)
        )
        assert result["is_valid"] is True
        assert result["rejection_type"] is None
        assert result["water_percentage"] == 0.0
        assert result["valid_samples"] == 16

    async def test_water(self, analysis_tools):
        result = json.loads(
            await analysis_tools["relief_validate_area"](PACIFIC.latitude, PACIFIC.longitude)
        )
        assert result["is_valid"] is False
        assert result["rejection_type"] == "CenterOnWaterError"
        assert result["message"] == result["reason"]

    async def test_invalid_coordinate(self, analysis_tools):
        result = json.loads(await analysis_tools["relief_validate_area"](95.0, 8.0))
        assert "error" in result

    async def test_text(self, analysis_tools):
        text = await analysis_tools["relief_validate_area"](
            ALPS.latitude, ALPS.longitude, output_mode="text"
        )
        assert "valid" in text
        assert "Water: 0.0%" in text

    async def test_manager_error(self, mock_manager):
        mock_manager.validate = AsyncMock(side_effect=RuntimeError("offline"))
        tools = capture_tools(register_analysis_tools, mock_manager)
        result = json.loads(await tools["relief_validate_area"](46.5, 8.0))
        assert result["error"] == "offline"
