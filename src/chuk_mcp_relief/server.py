#!/usr/bin/env python3
"""
Relief MCP Server - Entry Point

Runs the relief MCP server over stdio (for Claude Desktop) or HTTP, or
renders a single image from the command line:

    chuk-mcp-relief render --coords 46.5586,8.5614 --style perspective --seed 7
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .constants import ALL_STYLES, EnvVar, SessionProvider, StorageProvider
from .core.geodesy import Coordinate
from .errors import CenterOnWaterError

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def _init_artifact_store() -> bool:
    """
    Initialize the artifact store from environment variables.

    Returns:
        True if artifact store was initialized, False otherwise
    """
    provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)
    bucket = os.environ.get(EnvVar.BUCKET_NAME)
    redis_url = os.environ.get(EnvVar.REDIS_URL)
    artifacts_path = os.environ.get(EnvVar.ARTIFACTS_PATH)

    if provider == StorageProvider.S3:
        aws_key = os.environ.get(EnvVar.AWS_ACCESS_KEY_ID)
        aws_secret = os.environ.get(EnvVar.AWS_SECRET_ACCESS_KEY)

        if not all([bucket, aws_key, aws_secret]):
            logger.warning(
                "S3 provider configured but missing credentials. "
                f"Set {EnvVar.AWS_ACCESS_KEY_ID}, {EnvVar.AWS_SECRET_ACCESS_KEY}, "
                f"and {EnvVar.BUCKET_NAME}."
            )
            return False
        logger.info(f"Initializing artifact store with S3 provider (bucket: {bucket})")

    elif provider == StorageProvider.FILESYSTEM:
        if artifacts_path:
            Path(artifacts_path).mkdir(parents=True, exist_ok=True)
            logger.info(f"Initializing artifact store with filesystem provider ({artifacts_path})")
        else:
            logger.warning(
                f"Filesystem provider configured but {EnvVar.ARTIFACTS_PATH} not set. "
                "Defaulting to memory provider."
            )
            provider = StorageProvider.MEMORY

    try:
        from chuk_artifacts import ArtifactStore
        from chuk_mcp_server import set_global_artifact_store

        store_kwargs: dict[str, Any] = {
            "storage_provider": provider,
            "session_provider": SessionProvider.REDIS if redis_url else SessionProvider.MEMORY,
        }
        if provider == StorageProvider.S3 and bucket:
            store_kwargs["bucket"] = bucket
        elif provider == StorageProvider.FILESYSTEM and artifacts_path:
            store_kwargs["bucket"] = artifacts_path

        set_global_artifact_store(ArtifactStore(**store_kwargs))
        logger.info(f"Artifact store initialized successfully (provider: {provider})")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize artifact store: {e}")
        return False


# Import mcp instance and all registered tools from async server
from .async_server import manager, mcp  # noqa: F401, E402


def parse_coords(value: str) -> tuple[float, float]:
    """Parse ``"lat,lon"`` into floats."""
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError(f"Coordinates must be 'latitude,longitude', got '{value}'")
    return float(parts[0].strip()), float(parts[1].strip())


async def render_once(
    coords: tuple[float, float] | None,
    style: str | None = None,
    seed: int | None = None,
):
    """
    Render one image and close the HTTP session.

    A requested coordinate that turns out to be water falls back to a random
    land location.
    """
    try:
        if coords is None:
            return await manager.generate_random(style=style, seed=seed)
        try:
            return await manager.generate_from_coordinate(
                Coordinate(*coords), style=style, seed=seed
            )
        except CenterOnWaterError as e:
            logger.warning(f"{e.reason}; falling back to a random location")
            return await manager.generate_random(style=style, seed=seed)
    finally:
        await manager.close()


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    # Initialize artifact store at startup, not at import time
    _init_artifact_store()

    parser = argparse.ArgumentParser(description="Relief MCP Server")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http", "render"],
        default=None,
        help="Transport mode (stdio for Claude Desktop, http for API), or render one image",
    )
    parser.add_argument(
        "--host", default="localhost", help="Host for HTTP mode (default: localhost)"
    )
    parser.add_argument("--port", type=int, default=8003, help="Port for HTTP mode (default: 8003)")
    parser.add_argument("--coords", help="Render mode: center as 'latitude,longitude'")
    parser.add_argument("--style", choices=ALL_STYLES, help="Render mode: style")
    parser.add_argument("--seed", type=int, help="Render mode: noise seed")

    args = parser.parse_args()

    if args.mode == "render":
        try:
            coords = parse_coords(args.coords) if args.coords else None
        except ValueError as e:
            parser.error(str(e))
        result = asyncio.run(render_once(coords, args.style, args.seed))
        print(f"Style: {result.style}", file=sys.stderr)
        print(f"Center: {result.center.latitude}, {result.center.longitude}", file=sys.stderr)
        print(
            f"Elevation: {result.elevation_stats.min}m to {result.elevation_stats.max}m",
            file=sys.stderr,
        )
        print(result.file_path)
    elif args.mode == "stdio":
        print("Relief MCP Server starting in STDIO mode", file=sys.stderr)
        mcp.run(stdio=True)
    elif args.mode == "http":
        print(
            f"Relief MCP Server starting in HTTP mode on {args.host}:{args.port}",
            file=sys.stderr,
        )
        mcp.run(host=args.host, port=args.port, stdio=False)
    else:
        if os.environ.get(EnvVar.MCP_STDIO) or (not sys.stdin.isatty()):
            print("Relief MCP Server starting in STDIO mode (auto-detected)", file=sys.stderr)
            mcp.run(stdio=True)
        else:
            print(
                f"Relief MCP Server starting in HTTP mode on {args.host}:{args.port}",
                file=sys.stderr,
            )
            mcp.run(host=args.host, port=args.port, stdio=False)


if __name__ == "__main__":
    main()
