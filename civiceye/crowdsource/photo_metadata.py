"""
Photo intake for citizen reports
Validates uploaded evidence and reads GPS coordinates from EXIF metadata
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from civiceye.core.constants import (
    SUPPORTED_IMAGE_FORMATS,
    EXIF_GPS_IFD,
    GPS_LATITUDE_REF,
    GPS_LATITUDE,
    GPS_LONGITUDE_REF,
    GPS_LONGITUDE,
)
from civiceye.core.exceptions import (
    ImageTooLargeError,
    UnsupportedImageError,
)
from civiceye.core.geo_utils import dms_to_decimal, is_valid_coordinate
from civiceye.crowdsource.models import EvidenceImage

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def load_evidence_image(
    data: bytes,
    max_bytes: int,
    content_type: Optional[str] = None
) -> EvidenceImage:
    """
    Validate an uploaded photo.

    Args:
        data: Raw file bytes
        max_bytes: Upload size cap
        content_type: MIME type declared by the client, if any

    Returns:
        EvidenceImage with detected format and dimensions

    Raises:
        UnsupportedImageError: Empty file, non-image content or unsupported format
        ImageTooLargeError: File exceeds max_bytes
    """
    if not data:
        raise UnsupportedImageError("Uploaded file is empty")

    if len(data) > max_bytes:
        raise ImageTooLargeError(
            f"Image is {len(data)} bytes; the limit is {max_bytes} bytes"
        )

    if content_type and not content_type.lower().startswith("image/"):
        raise UnsupportedImageError(f"Unsupported content type: {content_type}")

    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except _DECODE_ERRORS as e:
        raise UnsupportedImageError(f"File is not a readable image: {e}") from e

    if image_format not in SUPPORTED_IMAGE_FORMATS:
        raise UnsupportedImageError(
            f"Unsupported image format: {image_format}. "
            f"Supported: {', '.join(SUPPORTED_IMAGE_FORMATS)}"
        )

    return EvidenceImage(
        data=data,
        format=image_format,
        mime_type=SUPPORTED_IMAGE_FORMATS[image_format],
        width=width,
        height=height,
    )


def extract_gps_coordinates(data: bytes) -> Optional[Tuple[float, float]]:
    """
    Read GPS coordinates from the image's EXIF GPS block.

    All four fields (latitude, longitude and both hemisphere references)
    must be present.

    Args:
        data: Image bytes

    Returns:
        (latitude, longitude) in decimal degrees, or None when the image
        carries no usable geotag
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            gps = img.getexif().get_ifd(EXIF_GPS_IFD)
    except _DECODE_ERRORS as e:
        logger.debug(f"Could not read EXIF metadata: {e}")
        return None

    lat_dms = gps.get(GPS_LATITUDE)
    lat_ref = gps.get(GPS_LATITUDE_REF)
    lon_dms = gps.get(GPS_LONGITUDE)
    lon_ref = gps.get(GPS_LONGITUDE_REF)

    if not (lat_dms and lat_ref and lon_dms and lon_ref):
        logger.debug("Image has no complete GPS tag")
        return None

    try:
        latitude = dms_to_decimal(lat_dms, lat_ref)
        longitude = dms_to_decimal(lon_dms, lon_ref)
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.warning(f"Malformed GPS tag in image: {e}")
        return None

    if not is_valid_coordinate(latitude, longitude):
        logger.warning(f"GPS tag out of range: ({latitude}, {longitude})")
        return None

    return latitude, longitude
