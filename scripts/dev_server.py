#!/usr/bin/env python3
"""
Development Telemetry Server
============================

Standalone WebSocket server for running the client end to end.

This script:
    1. Accepts client connections on the configured host/port
    2. Validates every received envelope and decodes its JPEG payload
    3. Pushes "object_position x y z" events at a fixed interval
    4. Logs stats every report interval and a summary on exit

Usage:
    python scripts/dev_server.py --port 8765
    python scripts/dev_server.py --push-interval 2.0 --spread 3.0

Then start the client with:
    POSECAST_SERVER_URL=ws://localhost:8765/ws python -m posecast.main
"""

import argparse
import asyncio
import base64
import binascii
import logging
import os
import sys
import time
from collections import Counter

import cv2
import numpy as np
import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from posecast.models.envelope import OutgoingEnvelope


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


class ServerStats:
    """Counters shared by all connections."""

    def __init__(self) -> None:
        self.envelopes = Counter()
        self.invalid: int = 0
        self.undecodable: int = 0
        self.pushed: int = 0
        self.connections: int = 0
        self.start_time: float = time.time()


def log_summary(stats: ServerStats) -> None:
    """Log final counters."""
    logger.info("=" * 60)
    logger.info(f"Summary after {time.time() - stats.start_time:.0f}s")
    logger.info(f"  Connections: {stats.connections}")
    logger.info(f"  Color envelopes: {stats.envelopes['color']}")
    logger.info(f"  Depth envelopes: {stats.envelopes['depth']}")
    logger.info(f"  Invalid: {stats.invalid}, undecodable: {stats.undecodable}")
    logger.info(f"  Positions pushed: {stats.pushed}")
    logger.info("=" * 60)


def _check_envelope(raw: str, stats: ServerStats) -> None:
    try:
        envelope = OutgoingEnvelope.model_validate_json(raw)
    except ValidationError as e:
        stats.invalid += 1
        logger.warning(f"Invalid envelope: {e.error_count()} errors")
        return

    try:
        payload = base64.b64decode(envelope.image_data, validate=True)
    except binascii.Error as e:
        stats.undecodable += 1
        logger.warning(f"Bad base64 in {envelope.type.value} envelope: {e}")
        return

    image = cv2.imdecode(np.frombuffer(payload, np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None:
        stats.undecodable += 1
        logger.warning(f"Undecodable {envelope.type.value} payload")
        return

    stats.envelopes[envelope.type.value] += 1
    logger.debug(
        f"{envelope.type.value} {image.shape} at "
        f"({envelope.position.x:.2f}, {envelope.position.y:.2f}, {envelope.position.z:.2f})"
    )


async def _push_positions(ws, stats: ServerStats, interval: float, spread: float, rng) -> None:
    while True:
        await asyncio.sleep(interval)
        x, y, z = rng.uniform(-spread, spread, size=3)
        await ws.send(f"object_position {x:.3f} {y:.3f} {z:.3f}")
        stats.pushed += 1


async def run_server(
    host: str,
    port: int,
    push_interval: float,
    spread: float,
    report_interval: int,
    seed: int,
    stats: ServerStats,
) -> None:
    """Run the development server until interrupted, updating ``stats``."""
    rng = np.random.default_rng(seed)

    async def handler(ws) -> None:
        stats.connections += 1
        logger.info(f"Client connected ({stats.connections} total)")
        pusher = asyncio.create_task(_push_positions(ws, stats, push_interval, spread, rng))
        try:
            async for message in ws:
                if isinstance(message, str):
                    _check_envelope(message, stats)
        except ConnectionClosed as e:
            logger.info(f"Client disconnected: {e}")
        finally:
            pusher.cancel()

    logger.info("=" * 60)
    logger.info("Development Telemetry Server")
    logger.info("=" * 60)
    logger.info(f"Listening on ws://{host}:{port}/ws")
    logger.info(f"Push interval: {push_interval}s, spread: ±{spread}")
    logger.info("=" * 60)

    async with websockets.serve(handler, host, port, max_size=None):
        try:
            while True:
                await asyncio.sleep(report_interval)
                logger.info("-" * 40)
                logger.info(f"Progress Report (elapsed: {time.time() - stats.start_time:.0f}s)")
                logger.info(f"  Color envelopes: {stats.envelopes['color']}")
                logger.info(f"  Depth envelopes: {stats.envelopes['depth']}")
                logger.info(f"  Invalid: {stats.invalid}, undecodable: {stats.undecodable}")
                logger.info(f"  Positions pushed: {stats.pushed}")
        except asyncio.CancelledError:
            pass


def main():
    parser = argparse.ArgumentParser(
        description="Development WebSocket server for the PoseCast client"
    )
    parser.add_argument("--host", type=str, default="localhost", help="Bind host")
    parser.add_argument("--port", type=int, default=8765, help="Bind port (default: 8765)")
    parser.add_argument(
        "--push-interval",
        type=float,
        default=3.0,
        help="Seconds between object_position events (default: 3.0)",
    )
    parser.add_argument(
        "--spread",
        type=float,
        default=2.0,
        help="Half-width of the cube positions are drawn from (default: 2.0)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=10,
        help="Seconds between progress reports (default: 10)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")

    args = parser.parse_args()
    stats = ServerStats()

    try:
        asyncio.run(run_server(
            host=args.host,
            port=args.port,
            push_interval=args.push_interval,
            spread=args.spread,
            report_interval=args.report_interval,
            seed=args.seed,
            stats=stats,
        ))
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    finally:
        log_summary(stats)


if __name__ == "__main__":
    main()
