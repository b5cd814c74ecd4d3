"""
Configuration Tests
===================
"""

import pytest


class TestSettings:

    def test_defaults(self):
        from posecast.config import Settings

        settings = Settings()
        assert settings.capture.send_interval_seconds == 0.5
        assert settings.anchors.min_separation == 1.0
        assert settings.anchors.reference_frame == "player"
        assert settings.outbound.max_queue_size == 8

    def test_yaml_then_env_precedence(self, tmp_path, monkeypatch):
        from posecast.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text(
            "connection:\n"
            "  url: ws://yaml-host:9000/ws\n"
            "capture:\n"
            "  send_interval_seconds: 0.25\n"
            "anchors:\n"
            "  min_separation: 2.0\n"
        )
        monkeypatch.setenv("POSECAST_MIN_SEPARATION", "1.5")
        monkeypatch.setenv("POSECAST_FRAME_SOURCE", "camera")

        settings = load_config(str(path))

        assert settings.connection.url == "ws://yaml-host:9000/ws"
        assert settings.capture.send_interval_seconds == 0.25
        assert settings.anchors.min_separation == 1.5
        assert settings.capture.source == "camera"

    def test_port_env_wins(self, tmp_path, monkeypatch):
        from posecast.config import load_config

        monkeypatch.setenv("POSECAST_PORT", "9001")
        monkeypatch.setenv("PORT", "9100")

        settings = load_config(str(tmp_path / "missing.yaml"))
        assert settings.server.port == 9100

    def test_invalid_interval_rejected(self):
        from pydantic import ValidationError

        from posecast.config import Settings

        with pytest.raises(ValidationError):
            Settings.model_validate({"capture": {"send_interval_seconds": 0}})
