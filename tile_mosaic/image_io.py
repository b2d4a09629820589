"""Image decoding, scaling, encoding and comparison-grid generation."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from tile_mosaic.errors import DecodeError

_DECODE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


def _finish_decode(img: Image.Image, name: str) -> Image.Image:
    try:
        img.load()
        return img.convert("RGBA")
    except _DECODE_ERRORS as exc:
        msg = f"Could not decode {name}: {exc}"
        raise DecodeError(msg) from exc


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an RGBA image.

    Raises:
        DecodeError: The bytes are not a readable image.
    """
    try:
        img = Image.open(io.BytesIO(data))
    except _DECODE_ERRORS as exc:
        msg = f"Could not decode image bytes: {exc}"
        raise DecodeError(msg) from exc
    return _finish_decode(img, "image bytes")


def open_image(path: str | Path) -> Image.Image:
    """Open an image file as RGBA, raising :class:`DecodeError` on failure."""
    try:
        img = Image.open(path)
    except _DECODE_ERRORS as exc:
        msg = f"Could not open {path}: {exc}"
        raise DecodeError(msg) from exc
    return _finish_decode(img, str(path))


def to_rgba_array(img: Image.Image) -> np.ndarray:
    """(H, W, 4) uint8 array; fully transparent pixels have RGB zeroed.

    Stored colour under alpha 0 is arbitrary encoder output, so it is
    cleared before any averaging that ignores alpha.
    """
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    arr[arr[..., 3] == 0, :3] = 0
    return arr


def downscale(img: Image.Image, size: int) -> Image.Image:
    """Resize to *size* x *size* (aspect ratio not preserved)."""
    return img.convert("RGBA").resize((size, size), Image.LANCZOS)


def scale_tile(img: Image.Image, size: int) -> Image.Image:
    """Scale a tile to its *size* x *size* output footprint."""
    if img.size == (size, size):
        return img.convert("RGBA")
    return img.convert("RGBA").resize((size, size), Image.LANCZOS)


def resolve_format(fmt: str) -> str:
    """Normalise *fmt* to a Pillow writer name (``"jpg"`` -> ``"JPEG"``).

    Raises:
        ValueError: Pillow has no writer for *fmt*.
    """
    name = fmt.strip().lstrip(".").upper()
    if name in ("JPG", "JFIF"):
        name = "JPEG"
    elif name == "TIF":
        name = "TIFF"
    Image.init()
    if name not in Image.SAVE:
        choices = ", ".join(sorted(Image.SAVE))
        msg = f"Unsupported output format '{fmt}'. Choose from: {choices}"
        raise ValueError(msg)
    return name


def encode_image(img: Image.Image, fmt: str = "PNG") -> bytes:
    """Serialise an image to bytes in *fmt* (any Pillow writer name)."""
    fmt = resolve_format(fmt)
    buf = io.BytesIO()
    out = img.convert("RGB") if fmt == "JPEG" else img
    out.save(buf, format=fmt)
    return buf.getvalue()


def make_comparison_grid(
    original: Image.Image,
    mosaic: Image.Image,
    output_path: str | Path,
    panel_height: int = 480,
) -> None:
    """Create a 2-panel comparison: Original | Mosaic.

    Both panels are scaled to *panel_height*, keeping their aspect ratios.
    """
    label_height = 36

    def _fit(img: Image.Image) -> Image.Image:
        w = max(1, round(img.width * panel_height / img.height))
        return img.convert("RGB").resize((w, panel_height), Image.LANCZOS)

    panels = [_fit(original), _fit(mosaic)]
    labels = ["Original", f"Mosaic {mosaic.width}x{mosaic.height}"]

    gap = 8
    total_w = sum(p.width for p in panels) + (len(panels) - 1) * gap
    total_h = panel_height + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    x = 0
    for panel, label in zip(panels, labels, strict=False):
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel.width - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)
        x += panel.width + gap

    canvas.save(output_path)
