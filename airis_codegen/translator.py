"""
Attribute & Style Translator

屬性名稱轉換（SVG/HTML → JSX）、style 字串解析、白名單過濾。
白名單是安全邊界：不提供任何設定可放寬。
"""

import re
from typing import Dict, Mapping, Optional, Union

from .naming import camel_case

# ─── Allow-lists ────────────────────────────────────────────────────────────

ALLOWED_HTML_ATTRIBUTES = frozenset({
    "accept", "acceptCharset", "accessKey", "action", "allowFullScreen", "allowTransparency",
    "alt", "async", "autoComplete", "autoFocus", "autoPlay", "cellPadding", "cellSpacing",
    "charSet", "checked", "classID", "className", "colSpan", "cols", "content", "contentEditable",
    "contextMenu", "controls", "coords", "crossOrigin", "data", "dateTime", "defer", "dir",
    "disabled", "download", "draggable", "encType", "form", "formAction", "formEncType",
    "formMethod", "formNoValidate", "formTarget", "frameBorder", "headers", "height", "hidden",
    "high", "href", "hrefLang", "htmlFor", "httpEquiv", "icon", "id", "label", "lang", "list",
    "loop", "low", "manifest", "marginHeight", "marginWidth", "max", "maxLength", "media",
    "mediaGroup", "method", "min", "multiple", "muted", "name", "noValidate", "open", "optimum",
    "pattern", "placeholder", "poster", "preload", "radioGroup", "readOnly", "rel", "required",
    "role", "rowSpan", "rows", "sandbox", "scope", "scoped", "scrolling", "seamless", "selected",
    "shape", "size", "sizes", "span", "spellCheck", "src", "srcDoc", "srcSet", "start", "step",
    "style", "tabIndex", "target", "title", "type", "useMap", "value", "width", "wmode",
})

ALLOWED_SVG_ATTRIBUTES = frozenset({
    "clipPath", "cx", "cy", "d", "dx", "dy", "fill", "fillOpacity", "fontFamily", "fillRule",
    "fontSize", "fontWeight", "fx", "fy", "gradientTransform", "gradientUnits", "markerEnd",
    "markerMid", "markerStart", "offset", "opacity", "patternContentUnits", "patternUnits",
    "points", "preserveAspectRatio", "r", "rx", "ry", "spreadMethod", "stopColor", "stopOpacity",
    "stroke", "strokeDasharray", "strokeLinecap", "strokeLinejoin", "strokeMiterlimit",
    "strokeOpacity", "strokeWidth", "textAnchor", "transform", "vectorEffect", "version",
    "viewBox", "xmlns", "x1", "x2", "x", "y1", "y2", "y", "xlinkActuate", "xlinkArcrole",
    "xlinkHref", "xlinkRole", "xlinkShow", "xlinkTitle", "xlinkType", "xmlBase", "xmlLang",
    "xmlSpace", "mask", "maskUnits", "filter", "filterUnits", "filterRes", "result", "in", "in2",
    "stdDeviation", "colorInterpolationFilters", "floodOpacity", "primitiveUnits",
    "baseFrequency", "numOctaves", "seed", "stitchTiles", "values", "tableValues", "slope",
    "intercept", "amplitude", "exponent", "k1", "k2", "k3", "k4",
})

ALLOWED_ATTRIBUTES = ALLOWED_HTML_ATTRIBUTES | ALLOWED_SVG_ATTRIBUTES

ALLOWED_TAGS = frozenset({
    "circle", "clipPath", "defs", "ellipse", "g", "image", "line", "linearGradient", "mask",
    "path", "pattern", "polygon", "polyline", "radialGradient", "rect", "stop", "svg", "text",
    "use", "tspan", "title", "style", "filter", "feFlood", "feBlend", "feGaussianBlur",
    "feOffset", "feColorMatrix", "feMorphology", "feConvolveMatrix", "feDropShadow",
    "foreignObject", "switch", "symbol", "marker", "textPath", "animate", "animateTransform",
})

SPECIAL_CASES = {
    "class": "className",
    "for": "htmlFor",
    "xlink:href": "xlinkHref",
    "xlink:actuate": "xlinkActuate",
    "xlink:arcrole": "xlinkArcrole",
    "xlink:role": "xlinkRole",
    "xlink:show": "xlinkShow",
    "xlink:title": "xlinkTitle",
    "xlink:type": "xlinkType",
    "xml:lang": "xmlLang",
    "xml:space": "xmlSpace",
    "xml:base": "xmlBase",
}

_DATA_OR_ARIA = re.compile(r"^(data|aria)-", re.IGNORECASE)
_NAMESPACED = re.compile(r"^(xlink|xml):", re.IGNORECASE)
_UNNAMESPACE = re.compile(r"(\w+):(\w)")
_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_URL_ATTRIBUTES = frozenset({"href", "xlinkHref", "src"})
_CONTROL_OR_SPACE = re.compile(r"[\x00-\x20]+")
_DECLARATION_SPLIT = re.compile(r"\s*;\s*")
_MARKUP_TAG = re.compile(r"<[a-zA-Z][^<>]*>")
_MARKUP_ATTR = re.compile(r"(\s)([^\s=/>\"']+)(\s*=\s*)(\"[^\"]*\"|'[^']*')")

StyleValue = Union[str, int, float]


class AttributeTranslator:
    """SVG/HTML 屬性 → JSX 屬性；名稱轉換結果以實例內快取保存。

    快取上限 max_cache_entries，滿了就整批清空（轉換是純函數，清掉只影響速度）。
    """

    def __init__(self, max_cache_entries: int = 2048):
        self.max_cache_entries = max_cache_entries
        self._cache: Dict[str, str] = {}
        self._hits = 0
        self._misses = 0

    # ─── name translation ───

    def translate_attribute_name(self, name: str) -> str:
        cached = self._cache.get(name)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1
        result = self._translate(name)
        if len(self._cache) >= self.max_cache_entries:
            self._cache.clear()
        self._cache[name] = result
        return result

    def _translate(self, name: str) -> str:
        if _DATA_OR_ARIA.match(name):
            return name
        special = SPECIAL_CASES.get(name)
        if special:
            return special
        if _NAMESPACED.match(name):
            return _UNNAMESPACE.sub(lambda m: m.group(1) + m.group(2).upper(), name, count=1)
        return camel_case(name)

    def clear_cache(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def cache_stats(self) -> dict:
        return {"entries": len(self._cache), "hits": self._hits, "misses": self._misses}

    # ─── style ───

    def translate_style(self, style: Union[str, Mapping[str, StyleValue], None]) -> Dict[str, StyleValue]:
        """'fill: red; stroke-width: 2' → {'fill': 'red', 'strokeWidth': 2}."""
        if isinstance(style, Mapping):
            return dict(style)
        if not style or not isinstance(style, str):
            return {}
        styles: Dict[str, StyleValue] = {}
        for declaration in _DECLARATION_SPLIT.split(style.strip()):
            if not declaration or ":" not in declaration:
                continue
            prop, value = declaration.split(":", 1)
            prop, value = prop.strip(), value.strip()
            if not prop or not value:
                continue
            styles[self._css_property(prop)] = _coerce_number(value)
        return styles

    def _css_property(self, prop: str) -> str:
        if prop.startswith("-ms-"):
            prop = prop[1:]
        return camel_case(prop)

    # ─── sanitization ───

    def is_allowed_tag(self, tag: str) -> bool:
        return tag in ALLOWED_TAGS

    def sanitize(self, attributes: Optional[Mapping[str, object]]) -> Dict[str, object]:
        """只留下白名單內的屬性（data-* / aria-* 例外），名稱同時轉成 JSX 形式.

        href / xlinkHref / src 指向 javascript: 的一律丟掉。
        """
        if not attributes or not isinstance(attributes, Mapping):
            return {}
        result: Dict[str, object] = {}
        for name, value in attributes.items():
            if value is None or value == "":
                continue
            if _DATA_OR_ARIA.match(name):
                result[name] = value
                continue
            translated = self.translate_attribute_name(name)
            if translated not in ALLOWED_ATTRIBUTES:
                continue
            if translated in _URL_ATTRIBUTES and _is_script_url(value):
                continue
            if translated == "style":
                parsed = self.translate_style(value)
                if parsed:
                    result["style"] = parsed
            else:
                result[translated] = value
        return result

    # ─── markup text ───

    def translate_markup_attributes(self, markup: str) -> str:
        """在原始 markup 字串中就地改寫每個 tag 的屬性名稱（值不動）。"""

        def rewrite_attr(m: re.Match) -> str:
            return f"{m.group(1)}{self.translate_attribute_name(m.group(2))}{m.group(3)}{m.group(4)}"

        def rewrite_tag(m: re.Match) -> str:
            return _MARKUP_ATTR.sub(rewrite_attr, m.group(0))

        return _MARKUP_TAG.sub(rewrite_tag, markup)


def _coerce_number(value: str) -> StyleValue:
    if _NUMERIC.match(value):
        return float(value) if "." in value else int(value)
    return value


def _is_script_url(value) -> bool:
    # 瀏覽器解析 scheme 前會忽略空白與控制字元
    return _CONTROL_OR_SPACE.sub("", str(value)).lower().startswith("javascript:")
