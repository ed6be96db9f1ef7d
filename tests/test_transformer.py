"""
TreeTransformer / render_jsx 測試
"""
import pytest

from airis_codegen.models import SourceElement, SourceFragment, SourceText, TargetElement
from airis_codegen.transformer import TreeTransformer, count_elements, render_jsx


def el(id_, tag, children=(), **attrs):
    return SourceElement(id=id_, tag=tag, attributes=attrs, children=tuple(children))


# ─── transform ──────────────────────────────────────────────────────────────

def test_three_nodes_yield_three_target_elements():
    source = SourceFragment((
        el("1", "rect", width="10"),
        el("2", "ellipse", rx="5"),
        el("3", "text", [SourceText("Hello")]),
    ))
    result = TreeTransformer().transform(source)
    assert result.warnings == []
    assert count_elements(result.root) == 3
    assert [c.tag for c in result.root.children] == ["rect", "ellipse", "text"]
    text_leaf = result.root.children[2].children[0]
    assert text_leaf.kind == "text" and text_leaf.text == "Hello"


def test_disallowed_subtree_dropped_with_warning():
    source = el("root", "svg", [el("s", "script", [el("r", "rect")]), el("c", "circle")])
    result = TreeTransformer().transform(source)
    assert count_elements(result.root) == 2
    assert [c.tag for c in result.root.children] == ["circle"]
    assert result.warnings == ["Dropped disallowed element <script> (id=s)"]


def test_disallowed_root_becomes_empty_fragment():
    result = TreeTransformer().transform(el("x", "div"))
    assert result.root.kind == "fragment"
    assert result.root.children == []


def test_attributes_sanitized_and_metadata_kept():
    source = SourceElement(
        id="1:2", tag="rect", name="Card Bg",
        attributes={"class": "bg", "style": "fill: red", "onload": "x()"},
    )
    target = TreeTransformer().transform(source).root
    assert target.attributes == {"className": "bg", "style": {"fill": "red"}}
    assert target.source_id == "1:2"
    assert target.name == "Card Bg"


def test_element_text_is_kept():
    target = TreeTransformer().transform(SourceElement(id="t", tag="text", text="Hi")).root
    assert target.text == "Hi"


def test_unknown_node_type_raises():
    with pytest.raises(TypeError):
        TreeTransformer().transform("not a node")


# ─── render_jsx ─────────────────────────────────────────────────────────────

def sample_tree():
    return TargetElement(
        tag="svg",
        attributes={"className": "icon", "viewBox": "0 0 10 10"},
        children=[
            TargetElement(tag="rect", attributes={"style": {"fill": "red", "strokeWidth": 2}}),
            TargetElement(tag="text", text="a{b}<c>"),
        ],
    )


def test_render_jsx_basic():
    jsx = render_jsx(sample_tree())
    assert '<svg className="icon" viewBox="0 0 10 10">' in jsx
    assert "<rect style={{ fill: 'red', strokeWidth: 2 }} />" in jsx
    assert "a&#123;b&#125;&lt;c&gt;" in jsx
    assert "{...props}" not in jsx


def test_render_jsx_props_and_children_slot():
    jsx = render_jsx(sample_tree(), pass_props=True, render_children=True)
    first_line = jsx.strip().split("\n")[0]
    assert "{...props}" in first_line
    assert "{children}" in jsx


def test_render_jsx_custom_children_slot():
    jsx = render_jsx(sample_tree(), render_children="{props.slot}")
    assert "{props.slot}" in jsx


def test_render_jsx_fragment():
    tree = TargetElement(tag="fragment", kind="fragment", children=[TargetElement(tag="rect")])
    jsx = render_jsx(tree, indent=0)
    assert jsx.startswith("<>")
    assert jsx.rstrip().endswith("</>")
