"""
命名工具 — 元件名、CSS class、屬性名的大小寫轉換

元件名一律 PascalCase；檔名 / class 一律 kebab-case。
"""

import re
from dataclasses import dataclass, field
from typing import Optional

_CAMEL_RE = re.compile(r"[-_]([a-z])")


def camel_case(name: str) -> str:
    """kebab-case / snake_case → camelCase；CSS 自訂屬性（--x）原樣保留."""
    if name.startswith("--"):
        return name
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def to_pascal_case(s: str) -> str:
    s = re.sub(r"[^a-zA-Z0-9]", " ", s)
    words = s.split()
    return "".join(w[:1].upper() + w[1:] for w in words)


def sanitize_component_name(name: str) -> str:
    safe = to_pascal_case(name or "")
    if not safe:
        return "GeneratedComponent"
    if safe[0].isdigit():
        safe = f"Component{safe}"
    return safe


def kebab(name: str) -> str:
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0 and (name[i - 1].islower() or name[i - 1].isdigit()):
            out.append("-")
        out.append(ch.lower() if ch.isalnum() else "-")
    slug = "".join(out).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "unnamed"


@dataclass
class ClassNamer:
    """為每個節點配發唯一、穩定的 CSS class（prefix-name-序號）."""
    prefix: str
    counter: int = 0
    used: dict = field(default_factory=dict)

    def class_for(self, node_id: str, layer_name: Optional[str] = None) -> str:
        if node_id in self.used:
            return self.used[node_id]
        self.counter += 1
        base = kebab(layer_name) if layer_name else "node"
        class_name = f"{self.prefix}-{base}-{self.counter}"
        self.used[node_id] = class_name
        return class_name
