"""
PoseCast Client Configuration
=============================

This module handles configuration loading for the streaming client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    POSECAST_SERVER_URL             -> connection.url
    POSECAST_RECONNECT_BACKOFF_MS   -> connection.reconnect_backoff_ms
    POSECAST_MAX_RECONNECT_ATTEMPTS -> connection.max_reconnect_attempts
    POSECAST_SEND_INTERVAL          -> capture.send_interval_seconds
    POSECAST_TICK_RATE              -> capture.tick_rate_hz
    POSECAST_FRAME_SOURCE           -> capture.source
    POSECAST_JPEG_QUALITY           -> capture.jpeg_quality
    POSECAST_MAX_QUEUE_SIZE         -> outbound.max_queue_size
    POSECAST_MIN_SEPARATION         -> anchors.min_separation
    POSECAST_REFERENCE_FRAME        -> anchors.reference_frame
    POSECAST_PORT                   -> server.port
    POSECAST_LOG_LEVEL              -> logging.level
    PORT                            -> server.port (takes precedence)

Example:
    from posecast.config import settings

    print(settings.connection.url)
    print(settings.capture.send_interval_seconds)
    print(settings.anchors.min_separation)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ClientConfig(BaseModel):
    """Client identification configuration."""

    name: str = Field(default="posecast-client", description="Client name")
    version: str = Field(default="v0.1.0", description="Client version")


class ConnectionConfig(BaseModel):
    """Telemetry server connection configuration."""

    url: str = Field(
        default="ws://localhost:8765/ws",
        description="WebSocket URL of the telemetry server",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Base backoff in milliseconds before the first reconnect",
    )
    max_reconnect_backoff_ms: int = Field(
        default=10_000,
        ge=100,
        description="Upper bound on the exponential reconnect backoff",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Consecutive failed attempts before giving up (0 = unlimited)",
    )
    ping_interval_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Keepalive ping interval",
    )
    ping_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Keepalive pong timeout",
    )
    close_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Closing handshake timeout",
    )


class CaptureConfig(BaseModel):
    """Capture-and-stream loop configuration."""

    send_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between capture cycles",
    )
    tick_rate_hz: float = Field(
        default=60.0,
        gt=0,
        le=1000,
        description="Scheduler tick rate",
    )
    source: str = Field(
        default="synthetic",
        description="Frame source: 'synthetic' or 'camera'",
    )
    camera_index: int = Field(default=0, ge=0, description="OpenCV camera index")
    width: int = Field(default=320, ge=16, description="Raster width in pixels")
    height: int = Field(default=240, ge=16, description="Raster height in pixels")
    depth_enabled: bool = Field(
        default=True,
        description="Produce depth frames (synthetic source only)",
    )
    jpeg_quality: int = Field(
        default=75,
        ge=1,
        le=100,
        description="JPEG quality for both frame kinds",
    )
    resample_pose_per_envelope: bool = Field(
        default=False,
        description="Sample pose per envelope instead of once per cycle",
    )


class PoseConfig(BaseModel):
    """Synthetic pose source configuration."""

    orbit_radius: float = Field(default=2.0, ge=0, description="Orbit radius")
    orbit_height: float = Field(default=1.6, description="Orbit height (Y)")
    orbit_period_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Seconds per orbit",
    )


class OutboundConfig(BaseModel):
    """Outbound queue configuration."""

    max_queue_size: int = Field(
        default=8,
        ge=1,
        description="Maximum queued envelopes before dropping the oldest",
    )


class AnchorsConfig(BaseModel):
    """Anchor registry configuration."""

    enabled: bool = Field(
        default=True,
        description="Attach an anchor scene; when False placement is a no-op",
    )
    min_separation: float = Field(
        default=1.0,
        ge=0,
        description="Minimum distance between anchors (inclusive reject)",
    )
    reference_frame: Optional[str] = Field(
        default="player",
        description="Frame of reference new anchors are bound to",
    )


class ServerConfig(BaseModel):
    """Status server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the PoseCast client.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    pose: PoseConfig = Field(default_factory=PoseConfig)
    outbound: OutboundConfig = Field(default_factory=OutboundConfig)
    anchors: AnchorsConfig = Field(default_factory=AnchorsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        if env_path := os.environ.get("POSECAST_CONFIG"):
            config_path = env_path
        else:
            search_paths = [
                Path("config.yaml"),
                Path("config.yml"),
                Path(__file__).parent.parent.parent / "config.yaml",
            ]
            for path in search_paths:
                if path.exists():
                    config_path = str(path)
                    break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Connection settings
    if env_url := os.environ.get("POSECAST_SERVER_URL"):
        config_data.setdefault("connection", {})["url"] = env_url
    if env_backoff := os.environ.get("POSECAST_RECONNECT_BACKOFF_MS"):
        config_data.setdefault("connection", {})["reconnect_backoff_ms"] = int(env_backoff)
    if env_attempts := os.environ.get("POSECAST_MAX_RECONNECT_ATTEMPTS"):
        config_data.setdefault("connection", {})["max_reconnect_attempts"] = int(env_attempts)

    # Capture settings
    if env_interval := os.environ.get("POSECAST_SEND_INTERVAL"):
        config_data.setdefault("capture", {})["send_interval_seconds"] = float(env_interval)
    if env_rate := os.environ.get("POSECAST_TICK_RATE"):
        config_data.setdefault("capture", {})["tick_rate_hz"] = float(env_rate)
    if env_source := os.environ.get("POSECAST_FRAME_SOURCE"):
        config_data.setdefault("capture", {})["source"] = env_source
    if env_quality := os.environ.get("POSECAST_JPEG_QUALITY"):
        config_data.setdefault("capture", {})["jpeg_quality"] = int(env_quality)

    # Outbound settings
    if env_queue := os.environ.get("POSECAST_MAX_QUEUE_SIZE"):
        config_data.setdefault("outbound", {})["max_queue_size"] = int(env_queue)

    # Anchor settings
    if env_sep := os.environ.get("POSECAST_MIN_SEPARATION"):
        config_data.setdefault("anchors", {})["min_separation"] = float(env_sep)
    if env_frame := os.environ.get("POSECAST_REFERENCE_FRAME"):
        config_data.setdefault("anchors", {})["reference_frame"] = env_frame

    # Server settings
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("POSECAST_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("POSECAST_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
