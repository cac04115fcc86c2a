"""
images.py

Responsibility: lossy-safe recompression of a single image, keyed by file suffix.

- JPEG: re-encoded at quality 90 (optimized, progressive)
- PNG: quantized to a 256-colour palette
- GIF: re-saved interlaced (animation preserved)
- SVG: comments/metadata/editor namespaces stripped, redundant `viewBox`
  removed, IDs left untouched

The optimizers work on bytes so the caller can cache by content. When the
optimized result is not smaller, the input bytes are returned unchanged.
"""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from typing import Callable

from PIL import Image

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".gif", ".svg", ".png")

JPEG_QUALITY = 90
PNG_COLORS = 256

# Part of every cache key; bump when optimizer settings change.
OPTIMIZER_VERSION = f"jpeg{JPEG_QUALITY}-png{PNG_COLORS}-gif-interlace-svg1"

EDITOR_NAMESPACES = {
    "http://www.inkscape.org/namespaces/inkscape",
    "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
    "http://ns.adobe.com/AdobeIllustrator/10.0/",
    "http://ns.adobe.com/AdobeSVGViewerExtensions/3.0/",
    "http://www.bohemiancoding.com/sketch/ns",
}
_TEXT_ELEMENTS = {"text", "tspan", "textPath", "style", "script", "title", "desc"}
_LENGTH_RE = re.compile(r"^\s*([0-9.]+)(px)?\s*$")


def _optimize_jpeg(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        if img.mode not in ("RGB", "L", "CMYK"):
            img = img.convert("RGB")
        out = io.BytesIO()
        params = {"quality": JPEG_QUALITY, "optimize": True, "progressive": True}
        if img.info.get("icc_profile"):
            params["icc_profile"] = img.info["icc_profile"]
        img.save(out, format="JPEG", **params)
    return out.getvalue()


def _optimize_png(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        if getattr(img, "is_animated", False):
            return data
        if img.mode == "P":
            quantized = img
        elif img.mode in ("RGBA", "LA") or "transparency" in img.info:
            quantized = img.convert("RGBA").quantize(colors=PNG_COLORS, method=Image.Quantize.FASTOCTREE)
        else:
            quantized = img.convert("RGB").quantize(colors=PNG_COLORS)
        out = io.BytesIO()
        quantized.save(out, format="PNG", optimize=True)
    return out.getvalue()


def _optimize_gif(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        params: dict[str, object] = {"interlace": True, "optimize": True}
        if getattr(img, "is_animated", False):
            params["save_all"] = True
            for key in ("loop", "duration"):
                if key in img.info:
                    params[key] = img.info[key]
        out = io.BytesIO()
        img.save(out, format="GIF", **params)
    return out.getvalue()


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(name: str) -> str | None:
    if name.startswith("{"):
        return name[1:].split("}", 1)[0]
    return None


def _register_namespaces(data: bytes) -> None:
    for _event, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
        if uri in EDITOR_NAMESPACES:
            continue
        try:
            ET.register_namespace(prefix, uri)
        except ValueError:
            # reserved `ns<N>` prefixes are left to ElementTree
            continue


def _redundant_viewbox(root: ET.Element) -> bool:
    view_box = root.get("viewBox")
    width, height = root.get("width"), root.get("height")
    if not (view_box and width and height):
        return False
    parts = view_box.replace(",", " ").split()
    w, h = _LENGTH_RE.match(width), _LENGTH_RE.match(height)
    if len(parts) != 4 or not (w and h):
        return False
    try:
        x, y, vw, vh = (float(p) for p in parts)
    except ValueError:
        return False
    return x == 0 and y == 0 and vw == float(w.group(1)) and vh == float(h.group(1))


def _strip(elem: ET.Element) -> None:
    for child in list(elem):
        if _namespace(child.tag) in EDITOR_NAMESPACES or _local(child.tag) == "metadata":
            elem.remove(child)
            continue
        _strip(child)
    for name in list(elem.attrib):
        if _namespace(name) in EDITOR_NAMESPACES:
            del elem.attrib[name]
    if _local(elem.tag) in _TEXT_ELEMENTS:
        return
    if elem.text is not None and not elem.text.strip():
        elem.text = None
    for child in elem:
        if child.tail is not None and not child.tail.strip():
            child.tail = None


def _optimize_svg(data: bytes) -> bytes:
    _register_namespaces(data)
    root = ET.fromstring(data)
    _strip(root)
    if _redundant_viewbox(root):
        del root.attrib["viewBox"]
    return ET.tostring(root, encoding="unicode").encode("utf-8")


OPTIMIZERS: dict[str, Callable[[bytes], bytes]] = {
    ".jpg": _optimize_jpeg,
    ".jpeg": _optimize_jpeg,
    ".png": _optimize_png,
    ".gif": _optimize_gif,
    ".svg": _optimize_svg,
}


def is_image(name: str) -> bool:
    return name.lower().endswith(IMAGE_SUFFIXES)


def optimize_image(suffix: str, data: bytes) -> bytes:
    """
    Optimize image bytes for the given suffix (e.g. `.png`). Returns the smaller
    of the optimized output and the input.
    """
    optimizer = OPTIMIZERS[suffix.lower()]
    out = optimizer(data)
    return out if len(out) < len(data) else data
