"""
Frame Encoder Tests
===================
"""

import numpy as np
import pytest


class TestToEncodable:
    """Raster conversion rules."""

    def test_none_raises(self):
        from posecast.errors import FrameConversionError
        from posecast.stream.encoder import to_encodable

        with pytest.raises(FrameConversionError):
            to_encodable(None)

    def test_unsupported_type_raises(self):
        from posecast.errors import FrameConversionError
        from posecast.stream.encoder import to_encodable

        with pytest.raises(FrameConversionError):
            to_encodable([[0, 1], [2, 3]])

    @pytest.mark.parametrize("shape", [(4, 4, 2), (4, 4, 5), (2, 2, 2, 2), (0, 4)])
    def test_bad_shape_raises(self, shape):
        from posecast.errors import FrameConversionError
        from posecast.stream.encoder import to_encodable

        with pytest.raises(FrameConversionError):
            to_encodable(np.zeros(shape, dtype=np.uint8))

    def test_rgb_becomes_bgr(self, color_raster):
        from posecast.stream.encoder import to_encodable

        buffer = to_encodable(color_raster)
        assert buffer.shape == (8, 8, 3)
        assert buffer[0, 0].tolist() == [0, 0, 255]

    def test_rgba_drops_alpha(self):
        from posecast.stream.encoder import to_encodable

        rgba = np.zeros((4, 4, 4), dtype=np.uint8)
        rgba[..., 1] = 200
        rgba[..., 3] = 255

        buffer = to_encodable(rgba)
        assert buffer.shape == (4, 4, 3)
        assert buffer[0, 0].tolist() == [0, 200, 0]

    def test_float_depth_scaled(self, depth_raster):
        from posecast.stream.encoder import to_encodable

        buffer = to_encodable(depth_raster)
        assert buffer.dtype == np.uint8
        assert buffer.shape == (8, 8)
        assert buffer.min() == 0
        assert buffer.max() == 255

    def test_single_channel_squeezed(self):
        from posecast.stream.encoder import to_encodable

        buffer = to_encodable(np.full((4, 4, 1), 7, dtype=np.uint8))
        assert buffer.shape == (4, 4)

    def test_render_target_read_back(self, color_raster):
        from posecast.stream.encoder import to_encodable

        class RenderTarget:
            def read_pixels(self):
                return color_raster

        assert to_encodable(RenderTarget()).shape == (8, 8, 3)


class TestJpeg:
    """JPEG compression."""

    def test_encode_produces_jpeg(self, color_raster):
        from posecast.stream.encoder import encode_jpeg, to_encodable

        payload = encode_jpeg(to_encodable(color_raster), quality=90)
        assert payload[:2] == b"\xff\xd8"

    def test_encoder_quality_bounds(self):
        from posecast.stream.encoder import JpegEncoder

        with pytest.raises(ValueError):
            JpegEncoder(quality=0)
        with pytest.raises(ValueError):
            JpegEncoder(quality=101)
