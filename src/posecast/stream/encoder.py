"""
Frame Encoder
=============

Conversion of raw rasters into encodable buffers, and JPEG compression.

Design Rules:
    - This is the ONLY place in the codebase that encodes images
    - Conversion is strict: unsupported raster types raise FrameConversionError
    - Rasters are RGB(A) in, BGR out (OpenCV channel order for the codec)
    - Non-uint8 rasters (e.g. float depth in meters) are min-max scaled to uint8

Supported raster inputs:
    - np.ndarray with shape (H, W), (H, W, 1), (H, W, 3) or (H, W, 4)
    - Render targets exposing ``read_pixels() -> np.ndarray``
"""

import logging

import cv2
import numpy as np

from posecast.errors import FrameConversionError, ImageEncodeError


logger = logging.getLogger(__name__)


def to_encodable(raster: object) -> np.ndarray:
    """
    Convert a raster from a frame source into a buffer the codec accepts.

    Args:
        raster: Array or render target from a FrameSource

    Returns:
        uint8 array, either (H, W) grayscale or (H, W, 3) BGR

    Raises:
        FrameConversionError: If the raster is missing or unsupported
    """
    if raster is None:
        raise FrameConversionError("No raster available")

    read_pixels = getattr(raster, "read_pixels", None)
    if callable(read_pixels):
        raster = read_pixels()

    if not isinstance(raster, np.ndarray):
        raise FrameConversionError(
            f"Unsupported raster type: {type(raster).__name__}"
        )

    if raster.size == 0:
        raise FrameConversionError(f"Empty raster: shape={raster.shape}")

    if raster.ndim == 3 and raster.shape[2] == 1:
        raster = raster[:, :, 0]

    if raster.ndim == 2:
        return _to_uint8(raster)

    if raster.ndim != 3 or raster.shape[2] not in (3, 4):
        raise FrameConversionError(f"Invalid raster shape: {raster.shape}")

    image = _to_uint8(raster)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2BGR)
    return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)


def _to_uint8(raster: np.ndarray) -> np.ndarray:
    """Scale a raster of any numeric dtype into uint8."""
    if raster.dtype == np.uint8:
        return np.ascontiguousarray(raster)

    if not np.issubdtype(raster.dtype, np.number) or np.issubdtype(raster.dtype, np.complexfloating):
        raise FrameConversionError(f"Unsupported raster dtype: {raster.dtype}")

    values = np.nan_to_num(raster.astype(np.float32), nan=0.0, posinf=0.0, neginf=0.0)
    lo, hi = float(values.min()), float(values.max())
    if hi <= lo:
        return np.zeros(values.shape, dtype=np.uint8)

    scaled = (values - lo) * (255.0 / (hi - lo))
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def encode_jpeg(buffer: np.ndarray, quality: int = 75) -> bytes:
    """
    Compress an encodable buffer to JPEG bytes.

    Args:
        buffer: Output of ``to_encodable``
        quality: JPEG quality (1-100)

    Returns:
        JPEG-encoded bytes

    Raises:
        ImageEncodeError: If OpenCV fails to encode the buffer
    """
    try:
        ok, encoded = cv2.imencode(
            ".jpg",
            buffer,
            [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)],
        )
    except cv2.error as e:
        raise ImageEncodeError(f"cv2.imencode failed: {e}")

    if not ok:
        raise ImageEncodeError("cv2.imencode returned False")

    return encoded.tobytes()


class JpegEncoder:
    """
    Callable JPEG encoder with a fixed quality.

    Example:
        encoder = JpegEncoder(quality=80)
        payload = encoder(to_encodable(raster))
    """

    def __init__(self, quality: int = 75) -> None:
        if not 1 <= quality <= 100:
            raise ValueError("quality must be in [1, 100]")
        self.quality = quality

    def __call__(self, buffer: np.ndarray) -> bytes:
        return encode_jpeg(buffer, self.quality)
