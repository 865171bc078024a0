"""Shared test fixtures for chuk-mcp-relief."""

import io
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from PIL import Image

from chuk_mcp_relief.core.context import AcquisitionContext
from chuk_mcp_relief.core.geodesy import Coordinate
from chuk_mcp_relief.core.providers import ElevationProvider, ElevationSample
from chuk_mcp_relief.models.config import (
    ElevationSettings,
    GeographicSettings,
    ImageSettings,
    ReliefConfig,
    SystemSettings,
)

# Swiss Alps: inside the Europe land box
ALPS = Coordinate(46.5, 8.0)
# Open Pacific: outside every land box
PACIFIC = Coordinate(0.0, -140.0)


def slope_elevation(coord: Coordinate) -> float:
    """~900m of relief across a 5km box centred on ALPS."""
    return float(round(1000 + (coord.latitude - 46.5) * 20000 + (coord.longitude - 8.0) * 5000))


class FakeProvider(ElevationProvider):
    """In-memory provider. ``elevation_fn`` may return a number or an exception."""

    provider_id = "fake"
    paced = False

    def __init__(self, context, elevation_fn=slope_elevation, water_fn=None):
        super().__init__(ElevationSettings(), context, sleep=AsyncMock())
        self.elevation_fn = elevation_fn
        self.water_fn = water_fn
        self.calls: list[Coordinate] = []

    async def fetch(self, coord):
        self.calls.append(coord)
        result = self.elevation_fn(coord)
        if isinstance(result, Exception):
            raise result
        return ElevationSample(coordinate=coord, elevation=float(result))

    async def query_water(self, coord):
        if self.water_fn is None:
            return None
        return self.water_fn(coord)


def make_png(rgb=(1, 0, 0), size=4) -> bytes:
    """Solid-colour PNG tile."""
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    pixels[:, :] = rgb
    buf = io.BytesIO()
    Image.fromarray(pixels, "RGB").save(buf, format="PNG")
    return buf.getvalue()


def make_session(responses):
    """
    Mock aiohttp.ClientSession whose ``get`` yields the given
    (status, headers, body) tuples in order.
    """
    contexts = []
    for status, headers, body in responses:
        resp = MagicMock()
        resp.status = status
        resp.headers = headers
        resp.read = AsyncMock(return_value=body)
        cm = MagicMock()
        cm.__aenter__ = AsyncMock(return_value=resp)
        cm.__aexit__ = AsyncMock(return_value=False)
        contexts.append(cm)
    session = MagicMock()
    session.get = MagicMock(side_effect=contexts)
    session.close = AsyncMock()
    return session


def capture_tools(register, manager) -> dict:
    """Run a register_*_tools function against a mock MCP and return name -> coroutine."""
    tools = {}
    mcp = MagicMock()

    def capture_tool(**kwargs):
        def decorator(fn):
            tools[fn.__name__] = fn
            return fn

        return decorator

    mcp.tool = capture_tool
    register(mcp, manager)
    return tools


@pytest.fixture
def context():
    return AcquisitionContext()


@pytest.fixture
def fake_provider(context):
    return FakeProvider(context)


@pytest.fixture
def small_config(tmp_path):
    """Config with a small image and coarse grid so renders stay fast."""
    return ReliefConfig(
        geographic=GeographicSettings(resolution=6),
        image=ImageSettings(width=300, height=300, scale_factor=300 / 675),
        system=SystemSettings(output_dir=str(tmp_path), seed=7),
    )


@pytest.fixture
def mock_artifact_store():
    """Mock artifact store."""
    store = AsyncMock()
    store.store = AsyncMock(return_value=None)
    return store


@pytest.fixture
def mock_manager(small_config, context, fake_provider, mock_artifact_store):
    """ReliefManager over the fake provider with a mocked store."""
    from chuk_mcp_relief.core.relief_manager import ReliefManager

    manager = ReliefManager(
        config=small_config,
        context=context,
        provider=fake_provider,
        sleep=AsyncMock(),
    )
    manager._get_store = MagicMock(return_value=mock_artifact_store)
    return manager


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp
