"""
Tree Transformer — SourceNode → TargetElement

深度優先、保留子節點順序。不在白名單內的元素連同子樹一起丟棄並記錄 warning，
其餘部分照常轉換（部分樹也是合法輸出）。render_jsx 把中立的 TargetElement 樹寫成 JSX 文字，
交給 FrameworkAdapter 做各框架改寫。
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .models import SourceElement, SourceFragment, SourceNode, SourceText, TargetElement
from .translator import AttributeTranslator


@dataclass
class TransformResult:
    root: TargetElement
    warnings: List[str] = field(default_factory=list)


class TreeTransformer:

    def __init__(self, translator: Optional[AttributeTranslator] = None):
        self.translator = translator or AttributeTranslator()

    def transform(self, node: SourceNode) -> TransformResult:
        warnings: List[str] = []
        root = self._transform(node, warnings)
        if root is None:
            root = TargetElement(tag="fragment", kind="fragment")
        return TransformResult(root=root, warnings=warnings)

    def _transform(self, node: SourceNode, warnings: List[str]) -> Optional[TargetElement]:
        if isinstance(node, SourceText):
            return TargetElement(tag="text", kind="text", text=node.text)

        if isinstance(node, SourceFragment):
            return TargetElement(
                tag="fragment",
                kind="fragment",
                children=self._children(node.children, warnings),
            )

        if isinstance(node, SourceElement):
            if not self.translator.is_allowed_tag(node.tag):
                warnings.append(f"Dropped disallowed element <{node.tag}> (id={node.id or '?'})")
                return None
            return TargetElement(
                tag=node.tag,
                attributes=self.translator.sanitize(node.attributes),
                children=self._children(node.children, warnings),
                text=node.text,
                source_id=node.id,
                name=node.name,
            )

        raise TypeError(f"Unknown source node type: {type(node).__name__}")

    def _children(self, children, warnings: List[str]) -> List[TargetElement]:
        result = []
        for child in children:
            target = self._transform(child, warnings)
            if target is not None:
                result.append(target)
        return result


def count_elements(target: TargetElement) -> int:
    """只計 element 種類的節點（text / fragment 不算）."""
    own = 1 if target.kind == "element" else 0
    return own + sum(count_elements(c) for c in target.children)


# ─── JSX rendering ──────────────────────────────────────────────────────────

def _escape_jsx_text(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("{", "&#123;")
        .replace("}", "&#125;")
    )


def _js_literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return f"{value:g}" if isinstance(value, float) else str(value)
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _render_attr(name: str, value) -> str:
    if name == "style" and isinstance(value, dict):
        body = ", ".join(f"{k}: {_js_literal(v)}" for k, v in value.items())
        return f"style={{{{ {body} }}}}"
    if isinstance(value, (bool, int, float)):
        return f"{name}={{{_js_literal(value)}}}"
    escaped = str(value).replace("&", "&amp;").replace('"', "&quot;")
    return f'{name}="{escaped}"'


def render_jsx(
    target: TargetElement,
    pass_props: bool = False,
    render_children: Union[bool, str] = False,
    indent: int = 2,
) -> str:
    """中立樹 → JSX 文字；根元素可加 {...props} 與 children slot."""
    return _render(target, indent, is_root=True, pass_props=pass_props, render_children=render_children)


def _children_slot(render_children: Union[bool, str]) -> Optional[str]:
    if isinstance(render_children, str) and render_children:
        return render_children
    if render_children is True:
        return "{children}"
    return None


def _render(target, level, is_root, pass_props, render_children) -> str:
    pad = "  " * level
    if target.kind == "text":
        return f"{pad}{_escape_jsx_text(target.text or '')}"

    child_lines = [
        _render(c, level + 1, False, pass_props, render_children)
        for c in target.children
    ]
    if target.kind == "fragment":
        if is_root:
            slot = _children_slot(render_children)
            if slot:
                child_lines.append("  " * (level + 1) + slot)
        inner = "\n".join(child_lines)
        return f"{pad}<>\n{inner}\n{pad}</>" if inner else f"{pad}<></>"

    attrs = [_render_attr(k, v) for k, v in target.attributes.items()]
    if is_root:
        if pass_props:
            attrs.append("{...props}")
        slot = _children_slot(render_children)
        if slot:
            child_lines.append("  " * (level + 1) + slot)
    attr_text = (" " + " ".join(attrs)) if attrs else ""

    if target.text:
        child_lines.insert(0, "  " * (level + 1) + _escape_jsx_text(target.text))
    if not child_lines:
        return f"{pad}<{target.tag}{attr_text} />"
    inner = "\n".join(child_lines)
    return f"{pad}<{target.tag}{attr_text}>\n{inner}\n{pad}</{target.tag}>"
