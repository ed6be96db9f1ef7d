"""
Figma REST API 讀取與 Figma 文件 → SourceNode 轉換

Figma 節點樹一律先 normalize（四種包裝形狀），再轉成以 <svg> 為根的 SourceElement。
"""

import re
from html import escape
from typing import Optional

import requests

from .errors import ValidationError
from .models import Bounds, SourceElement, SourceFragment, SourceNode, SourceText

_FILE_KEY_RE = re.compile(r"figma\.com/(?:file|proto|design)/([a-zA-Z0-9]{22,128})")

DEFAULT_SVG = (
    '<svg width="400" height="300" viewBox="0 0 400 300" xmlns="http://www.w3.org/2000/svg">'
    '<rect x="50" y="50" width="300" height="200" fill="#f0f0f0" stroke="#ccc" stroke-width="2" rx="8"/>'
    '<text x="200" y="160" text-anchor="middle" font-family="Arial, sans-serif" font-size="16" fill="#666">'
    "Generated from Figma</text></svg>"
)


class FigmaAPIClient:
    """Figma REST API 唯讀封裝."""

    BASE_URL = "https://api.figma.com/v1"

    def __init__(self, token: str, timeout: float = 30.0):
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "X-Figma-Token": token,
            "Content-Type": "application/json",
        })

    def get_file(self, file_key: str, node_ids: Optional[list] = None) -> dict:
        url = f"{self.BASE_URL}/files/{file_key}"
        params = {}
        if node_ids:
            params["ids"] = ",".join(node_ids)
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()


def parse_file_key(url_or_key: str) -> str:
    """接受 figma.com/file|design|proto 網址或直接的 file key."""
    value = (url_or_key or "").strip()
    match = _FILE_KEY_RE.search(value)
    if match:
        return match.group(1)
    if re.fullmatch(r"[a-zA-Z0-9]{22,128}", value):
        return value
    raise ValidationError(
        f"Invalid Figma URL or file key: {value!r}",
        code="INVALID_FILE_KEY",
        user_message="Invalid Figma URL format. Please provide a valid Figma file, prototype, or design URL.",
    )


# ─── Normalization ──────────────────────────────────────────────────────────

def normalize_figma_data(data: dict) -> dict:
    """回傳 {document, name, last_modified, structure}；四種形狀都不符時拋 ValidationError."""
    if not isinstance(data, dict) or not data:
        raise ValidationError("No Figma data provided", code="EMPTY_INPUT")

    document = data.get("document")
    if isinstance(document, dict) and document.get("children") is not None:
        return _normalized(document, data, "direct")

    file_ = data.get("file")
    if isinstance(file_, dict) and isinstance(file_.get("document"), dict) \
            and file_["document"].get("children") is not None:
        return _normalized(file_["document"], file_, "wrapped")

    nested = (data.get("data") or {}).get("file") if isinstance(data.get("data"), dict) else None
    if isinstance(nested, dict) and isinstance(nested.get("document"), dict) \
            and nested["document"].get("children") is not None:
        return _normalized(nested["document"], nested, "complex")

    if isinstance(data.get("children"), list):
        return _normalized({"children": data["children"]}, data, "root")

    raise ValidationError(
        f"Unable to normalize Figma data (top-level keys: {', '.join(sorted(data)) or 'none'})",
        code="UNRECOGNIZED_DOCUMENT",
        user_message="Unrecognized Figma document structure. Expected a Figma file JSON export.",
    )


def _normalized(document: dict, meta: dict, structure: str) -> dict:
    if not isinstance(document.get("children"), list):
        raise ValidationError("Figma document children must be a list", code="UNRECOGNIZED_DOCUMENT")
    return {
        "document": document,
        "name": meta.get("name"),
        "last_modified": meta.get("lastModified"),
        "components": meta.get("components") or {},
        "structure": structure,
    }


# ─── Figma → SourceNode ─────────────────────────────────────────────────────

def _hex_color(color: dict) -> str:
    r, g, b = int(color.get("r", 0) * 255), int(color.get("g", 0) * 255), int(color.get("b", 0) * 255)
    return f"#{r:02x}{g:02x}{b:02x}"


def _fmt(value: float) -> str:
    return f"{value:g}"


class FigmaToSource:
    """將 normalize 後的 Figma 文件轉成 <svg> 根節點的 SourceElement.

    座標以所有節點的最小 bounding box 為原點；不可見節點整棵略過。
    """

    def __init__(self, padding: float = 0.0):
        self.padding = padding
        self._origin = (0.0, 0.0)

    def convert(self, normalized: dict) -> SourceElement:
        children = [c for c in normalized["document"].get("children", []) if c.get("visible", True)]
        boxes = list(self._collect_boxes(children))
        if boxes:
            min_x = min(b["x"] for b in boxes)
            min_y = min(b["y"] for b in boxes)
            width = max(b["x"] + b["width"] for b in boxes) - min_x + 2 * self.padding
            height = max(b["y"] + b["height"] for b in boxes) - min_y + 2 * self.padding
        else:
            min_x = min_y = 0.0
            width, height = 400.0, 300.0
        self._origin = (min_x - self.padding, min_y - self.padding)

        return SourceElement(
            id="root",
            tag="svg",
            attributes={
                "width": _fmt(width),
                "height": _fmt(height),
                "viewBox": f"0 0 {_fmt(width)} {_fmt(height)}",
                "xmlns": "http://www.w3.org/2000/svg",
            },
            children=tuple(self._convert_node(c) for c in children),
            name=normalized.get("name") or "Document",
            node_type="DOCUMENT",
            bounds=Bounds(0.0, 0.0, width, height),
        )

    def _collect_boxes(self, nodes):
        for node in nodes:
            box = node.get("absoluteBoundingBox")
            if box:
                yield {k: float(box.get(k, 0) or 0) for k in ("x", "y", "width", "height")}
            yield from self._collect_boxes(c for c in node.get("children", []) if c.get("visible", True))

    def _convert_node(self, node: dict) -> SourceElement:
        node_type = node.get("type", "FRAME")
        box = node.get("absoluteBoundingBox")
        bounds = None
        x = y = w = h = 0.0
        if box:
            x = float(box.get("x", 0) or 0) - self._origin[0]
            y = float(box.get("y", 0) or 0) - self._origin[1]
            w = float(box.get("width", 0) or 0)
            h = float(box.get("height", 0) or 0)
            bounds = Bounds(x, y, w, h)

        fills = tuple(f for f in node.get("fills", []) if f.get("visible", True))
        attrs = self._paint_attributes(node, fills)
        children: tuple = ()
        text = None

        if node_type == "RECTANGLE":
            tag = "rect"
            attrs.update({"x": _fmt(x), "y": _fmt(y), "width": _fmt(w), "height": _fmt(h)})
            if node.get("cornerRadius"):
                attrs["rx"] = _fmt(node["cornerRadius"])
        elif node_type == "ELLIPSE":
            tag = "ellipse"
            attrs.update({"cx": _fmt(x + w / 2), "cy": _fmt(y + h / 2), "rx": _fmt(w / 2), "ry": _fmt(h / 2)})
        elif node_type == "LINE":
            tag = "line"
            attrs.update({"x1": _fmt(x), "y1": _fmt(y), "x2": _fmt(x + w), "y2": _fmt(y + h)})
        elif node_type == "TEXT":
            tag = "text"
            style = node.get("style", {})
            font_size = style.get("fontSize", 14)
            attrs.update({
                "x": _fmt(x),
                "y": _fmt(y + font_size),
                "font-size": _fmt(font_size),
                "font-family": style.get("fontFamily", "Inter"),
            })
            if style.get("fontWeight") and style["fontWeight"] != 400:
                attrs["font-weight"] = _fmt(style["fontWeight"])
            text = node.get("characters") or ""
        else:
            # 容器與其他型別（VECTOR、STAR…）都成為 <g>；子節點座標已是絕對座標
            tag = "g"
            children = tuple(
                self._convert_node(c) for c in node.get("children", []) if c.get("visible", True)
            )

        if node.get("opacity") is not None and node["opacity"] < 1:
            attrs["opacity"] = _fmt(round(node["opacity"], 2))

        return SourceElement(
            id=str(node.get("id", "")),
            tag=tag,
            attributes=attrs,
            children=children,
            text=text,
            name=node.get("name", ""),
            node_type=node_type,
            bounds=bounds,
            fills=fills,
        )

    def _paint_attributes(self, node: dict, fills: tuple) -> dict:
        attrs = {}
        for fill in fills:
            if fill.get("type") == "SOLID":
                attrs["fill"] = _hex_color(fill.get("color", {}))
                alpha = fill.get("opacity", fill.get("color", {}).get("a", 1))
                if alpha is not None and alpha < 1:
                    attrs["fill-opacity"] = _fmt(round(alpha, 2))
                break
        for stroke in node.get("strokes", []):
            if stroke.get("visible", True) and stroke.get("type") == "SOLID":
                attrs["stroke"] = _hex_color(stroke.get("color", {}))
                attrs["stroke-width"] = _fmt(node.get("strokeWeight", 1))
                break
        return attrs


# ─── SourceNode → SVG text ──────────────────────────────────────────────────

def render_svg(node: SourceNode) -> str:
    """把 SourceNode 樹寫回 SVG markup（屬性值與文字皆 escape）."""
    if isinstance(node, SourceText):
        return escape(node.text, quote=False)
    if isinstance(node, SourceFragment):
        return "".join(render_svg(c) for c in node.children)
    attrs = "".join(f' {k}="{escape(str(v))}"' for k, v in node.attributes.items() if not isinstance(v, dict))
    inner = escape(node.text, quote=False) if node.text else ""
    inner += "".join(render_svg(c) for c in node.children)
    if not inner:
        return f"<{node.tag}{attrs}/>"
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"


def fallback_svg(message: str) -> str:
    return (
        '<svg width="400" height="300" viewBox="0 0 400 300" xmlns="http://www.w3.org/2000/svg">'
        '<rect x="10" y="10" width="380" height="280" fill="none" stroke="#ddd" stroke-width="1"/>'
        '<text x="200" y="160" text-anchor="middle" font-family="Arial, sans-serif" font-size="14" fill="#999">'
        "SVG Generation Error</text>"
        '<text x="200" y="180" text-anchor="middle" font-family="Arial, sans-serif" font-size="12" fill="#666">'
        f"{escape(message, quote=False)}</text></svg>"
    )
