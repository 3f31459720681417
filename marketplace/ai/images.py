"""
Image helpers: transform params, downscaling before model calls, thumbnails.
"""

import io
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from PIL import Image, ImageOps, UnidentifiedImageError

from marketplace.core.errors import ValidationError


def add_transform_params(url: str, width: int, quality: int) -> str:
    """Ask image CDNs for a resized copy; servers that ignore it still work."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    query = [
        (k, v)
        for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k not in ("width", "height", "resize", "quality")
    ]
    query += [("width", str(width)), ("quality", str(quality))]
    return urlunparse(parsed._replace(query=urlencode(query)))


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("File is not a readable image") from exc
    return ImageOps.exif_transpose(img) or img


def resize_to_width(data: bytes, max_width: int, quality: int = 85) -> tuple[bytes, str]:
    """Downscale to at most max_width (aspect kept) and re-encode as JPEG."""
    img = _open(data)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    w, h = img.size
    if w > max_width:
        s = max_width / w
        img = img.resize((max_width, max(1, int(h * s))), Image.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=quality)
    return buf.getvalue(), "image/jpeg"


def file_extension(filename: str | None, content_type: str | None) -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    ct = (content_type or "").lower()
    if "png" in ct:
        return "png"
    if "webp" in ct:
        return "webp"
    if "gif" in ct:
        return "gif"
    return "jpg"


def make_thumbnail(data: bytes, size: int, quality: int = 85) -> tuple[bytes, int, int]:
    """Square-bounded JPEG thumbnail. Returns (bytes, width, height)."""
    img = _open(data)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    img.thumbnail((size, size), Image.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=quality)
    return buf.getvalue(), img.width, img.height


def image_size(data: bytes) -> tuple[int, int]:
    return _open(data).size
