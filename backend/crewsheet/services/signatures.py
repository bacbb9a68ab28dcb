"""
Approval signatures.

The signature pad posts either typed text or a canvas export of the form
``data:image/png;base64,...``. Image signatures are decoded and checked with
Pillow before anything is persisted.
"""
import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from crewsheet.exceptions import ValidationError

MAX_SIGNATURE_BYTES = 500_000
MAX_TEXT_SIGNATURE_LEN = 200

_DATA_URL_RE = re.compile(r"^data:image/(png|jpeg|jpg|webp);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class Signature:
    raw: str
    text: Optional[str] = None
    image_bytes: Optional[bytes] = None

    @property
    def is_image(self) -> bool:
        return self.image_bytes is not None


def parse_signature(raw: Optional[str]) -> Signature:
    if raw is None or not raw.strip():
        raise ValidationError("Signature is required")
    raw = raw.strip()

    match = _DATA_URL_RE.match(raw)
    if not match:
        if raw.startswith("data:"):
            raise ValidationError("Unsupported signature image format")
        if len(raw) > MAX_TEXT_SIGNATURE_LEN:
            raise ValidationError(f"Typed signature too long (max {MAX_TEXT_SIGNATURE_LEN} chars)")
        return Signature(raw=raw, text=raw)

    try:
        content = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Signature image is not valid base64")

    if not content:
        raise ValidationError("Signature image is empty")
    if len(content) > MAX_SIGNATURE_BYTES:
        raise ValidationError("Signature image too large")

    try:
        Image.open(io.BytesIO(content)).verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Signature image could not be read")

    return Signature(raw=raw, image_bytes=content)
