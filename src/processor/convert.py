"""업로드된 이미지를 외부 저장소로 보낼 바이트로 변환한다.

모든 이미지는 RGB JPEG로 통일한다. (업로드 파일명이 항상 .jpg)
"""

import io
from typing import BinaryIO

from PIL import Image

JPEG_QUALITY = 85


class ImageConversionError(Exception):
    """이미지로 읽을 수 없는 파일."""


def to_jpeg_bytes(source: BinaryIO | bytes, quality: int = JPEG_QUALITY) -> bytes:
    try:
        data = source if isinstance(source, bytes) else source.read()
    except OSError as e:
        raise ImageConversionError(f"failed to read file: {e}") from e

    if not data:
        raise ImageConversionError("empty file")

    try:
        with Image.open(io.BytesIO(data)) as img:
            rgb = img.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageConversionError(str(e)) from e

    buf = io.BytesIO()
    rgb.save(buf, "JPEG", quality=quality)
    return buf.getvalue()
