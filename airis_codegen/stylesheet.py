"""
樣式表產生 — 把元素上的 presentation 屬性抽成 CSS class

同一棵 TargetElement 樹依 styling 輸出 css / scss / tailwind utility / styled-components 用的 CSS。
class 名稱格式沿用 prefix-layer-序號。
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Dict, List

from .models import TargetElement
from .naming import ClassNamer, kebab

# JSX 屬性名 → CSS 屬性名
PRESENTATION_ATTRIBUTES = {
    "fill": "fill",
    "fillOpacity": "fill-opacity",
    "fillRule": "fill-rule",
    "stroke": "stroke",
    "strokeWidth": "stroke-width",
    "strokeOpacity": "stroke-opacity",
    "strokeLinecap": "stroke-linecap",
    "strokeLinejoin": "stroke-linejoin",
    "strokeDasharray": "stroke-dasharray",
    "opacity": "opacity",
    "fontSize": "font-size",
    "fontFamily": "font-family",
    "fontWeight": "font-weight",
    "textAnchor": "text-anchor",
}

_LENGTH_PROPS = {"font-size", "stroke-width", "width", "height", "border-radius", "gap", "letter-spacing"}

FONT_WEIGHTS = {
    100: "thin", 200: "extralight", 300: "light", 400: "normal",
    500: "medium", 600: "semibold", 700: "bold",
    800: "extrabold", 900: "black",
}

ROOT_RULES = {"display": "block", "max-width": "100%"}

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_RGB_RE = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)")


def css_property(name: str) -> str:
    """fontSize → font-size；WebkitX → -webkit-x；--var 原樣."""
    if name.startswith("--"):
        return name
    prop = re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name)
    if name.startswith("ms") and name[2:3].isupper():
        prop = "-" + prop
    return prop


def css_value(prop: str, value) -> str:
    text = str(value).strip()
    if prop in _LENGTH_PROPS and _NUMBER_RE.match(text) and text != "0":
        return f"{text}px"
    return text


def color_to_hex(color: str) -> str:
    match = _RGB_RE.match(color)
    if match:
        r, g, b = int(match.group(1)), int(match.group(2)), int(match.group(3))
        return f"#{r:02x}{g:02x}{b:02x}"
    return color


def tailwind_classes(declarations: Dict[str, str]) -> List[str]:
    """CSS 宣告 → Tailwind utility；沒有對應的屬性用 arbitrary property [prop:value]."""
    classes = []
    for prop, value in declarations.items():
        compact = value.replace(" ", "_")
        if prop == "fill":
            classes.append(f"fill-[{color_to_hex(value)}]")
        elif prop == "stroke":
            classes.append(f"stroke-[{color_to_hex(value)}]")
        elif prop == "stroke-width":
            classes.append(f"stroke-[length:{compact}]")
        elif prop == "opacity" and _NUMBER_RE.match(value):
            classes.append(f"opacity-{int(round(float(value) * 100))}")
        elif prop == "font-size":
            classes.append(f"text-[{compact}]")
        elif prop == "font-weight" and _NUMBER_RE.match(value):
            weight = int(float(value))
            classes.append(f"font-{FONT_WEIGHTS.get(weight, f'[{weight}]')}")
        elif prop == "font-family":
            family = value.split(",")[0].strip().strip("'\"").replace(" ", "_")
            classes.append(f"font-['{family}']")
        elif prop == "width":
            classes.append(f"w-[{compact}]")
        elif prop == "height":
            classes.append(f"h-[{compact}]")
        elif prop == "display" and value == "block":
            classes.append("block")
        elif prop == "max-width" and value == "100%":
            classes.append("max-w-full")
        else:
            classes.append(f"[{prop}:{compact}]")
    return classes


@dataclass
class StyleSheet:
    """收集 class → 宣告；extract() 回傳抽掉 presentation 屬性、補上 className 的新樹."""

    prefix: str
    styling: str = "css"
    rules: Dict[str, Dict[str, str]] = field(default_factory=dict)
    root_class: str = ""

    def __post_init__(self) -> None:
        self._namer = ClassNamer(self.prefix)

    def extract(self, target: TargetElement) -> TargetElement:
        styled = copy.deepcopy(target)
        self._visit(styled, is_root=True)
        return styled

    def _visit(self, node: TargetElement, is_root: bool) -> None:
        if node.kind == "element":
            declarations = dict(ROOT_RULES) if is_root else {}
            for attr, prop in PRESENTATION_ATTRIBUTES.items():
                if attr in node.attributes:
                    declarations[prop] = css_value(prop, node.attributes.pop(attr))
            style = node.attributes.pop("style", None)
            if isinstance(style, dict):
                for key, value in style.items():
                    prop = css_property(key)
                    declarations[prop] = css_value(prop, value)
            if declarations:
                class_name = self._namer.class_for(node.source_id or f"anon-{id(node)}", node.name or node.tag)
                if is_root:
                    self.root_class = class_name
                self.rules[class_name] = declarations
                self._apply_class(node, class_name, declarations)
            is_root = False
        for child in node.children:
            self._visit(child, is_root)

    def _apply_class(self, node: TargetElement, class_name: str, declarations: Dict[str, str]) -> None:
        names = tailwind_classes(declarations) if self.styling == "tailwind" else [class_name]
        existing = node.attributes.get("className")
        if existing:
            names = [str(existing)] + names
        node.attributes["className"] = " ".join(names)

    # ─── output ───

    def to_css(self) -> str:
        blocks = []
        for class_name, styles in self.rules.items():
            if not styles:
                continue
            body = "\n".join(f"  {prop}: {val};" for prop, val in styles.items())
            blocks.append(f".{class_name} {{\n{body}\n}}")
        return "\n\n".join(blocks) + "\n" if blocks else ""

    def to_scss(self) -> str:
        root = self.rules.get(self.root_class)
        if root is None:
            return self.to_css()
        lines = [f".{self.root_class} {{"]
        lines.extend(f"  {prop}: {val};" for prop, val in root.items())
        for class_name, styles in self.rules.items():
            if class_name == self.root_class or not styles:
                continue
            lines.append("")
            lines.append(f"  .{class_name} {{")
            lines.extend(f"    {prop}: {val};" for prop, val in styles.items())
            lines.append("  }")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def to_tailwind(self) -> str:
        return "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n"

    def render(self) -> str:
        if self.styling == "scss":
            return self.to_scss()
        if self.styling == "tailwind":
            return self.to_tailwind()
        return self.to_css()


def make_stylesheet(component_name: str, styling: str) -> StyleSheet:
    return StyleSheet(prefix=kebab(component_name), styling=styling)


def style_extension(styling: str) -> str:
    """樣式檔副檔名；只有 scss 用 .scss，其他（含 tailwind / styled）一律 .css."""
    return "scss" if styling == "scss" else "css"
