import base64
import binascii
import hashlib
import io
import re
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]*)(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


def normalize_text(text: str) -> str:
    """Collapse ``\\r\\n`` and lone ``\\r`` line breaks into ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def hash_bytes(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def decode_data_url(value: str) -> Optional[bytes]:
    match = _DATA_URL.match(value)
    if not match:
        return None
    try:
        return base64.b64decode(match.group("data"), validate=False)
    except (binascii.Error, ValueError):
        return None


def encode_data_url(payload: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def image_bytes_from(source: Union[str, bytes, Path, None]) -> Optional[bytes]:
    """Resolve an image reference (data URL, file path or raw bytes) to its bytes."""
    if source is None:
        return None
    if isinstance(source, (bytes, bytearray)):
        return bytes(source) or None
    if isinstance(source, Path):
        return source.read_bytes() if source.is_file() else None
    if is_data_url(source):
        return decode_data_url(source)

    path = Path(source)
    try:
        if path.is_file():
            return path.read_bytes()
    except OSError:
        return None
    return None


def to_png(payload: bytes) -> Optional[bytes]:
    """Decode any Pillow-readable image and re-encode it as PNG."""
    try:
        with Image.open(io.BytesIO(payload)) as image:
            if image.format == "PNG":
                image.verify()
                return payload
            output = io.BytesIO()
            image.save(output, format="PNG")
            return output.getvalue()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None
