"""
PatternAnalyzer 測試：card / button / form / navigation 判斷、可及性、完整設計分析。
"""
from unittest.mock import patch

import pytest

from airis_codegen.models import Bounds, SourceElement, SourceText
from airis_codegen.patterns import FALLBACK_SUGGESTIONS, PatternAnalyzer, PatternThresholds

SOLID = ({"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0, "a": 1}},)


def frame(id_, name="", width=100, height=50, children=(), node_type="FRAME", fills=SOLID, x=0, y=0):
    return SourceElement(
        id=id_, tag="g", name=name, node_type=node_type,
        bounds=Bounds(x, y, width, height), fills=fills, children=tuple(children),
    )


def text_node(id_="t", name="Caption"):
    return SourceElement(id=id_, tag="text", name=name, node_type="TEXT", children=(SourceText("Go"),))


def types(patterns):
    return sorted(p.type for p in patterns)


@pytest.fixture
def analyzer():
    return PatternAnalyzer()


# ─── card / button ──────────────────────────────────────────────────────────

def test_lone_rect_is_not_a_card(analyzer):
    rect = SourceElement(id="r", tag="rect", attributes={"fill": "red", "width": "10", "height": "10"})
    assert analyzer.analyze(rect) == []


def test_small_named_button_is_card_and_button_with_touch_error(analyzer):
    node = frame("1:1", name="Button", width=60, height=40, children=[text_node()])
    patterns = analyzer.patterns_for(node)
    assert types(patterns) == ["button", "card"]

    button = next(p for p in patterns if p.type == "button")
    assert button.confidence == 0.9
    assert button.node_id == "1:1"
    errors = [a for a in button.accessibility if a.severity == "error"]
    assert [a.message for a in errors] == ["Touch target too small"]


def test_large_button_has_no_touch_error(analyzer):
    node = frame("b", name="Submit btn", width=120, height=48, children=[text_node()])
    button = next(p for p in analyzer.patterns_for(node) if p.type == "button")
    assert all(a.severity != "error" for a in button.accessibility)


@pytest.mark.parametrize("width,height,expected", [
    (60, 30, True),
    (300, 80, True),
    (59.9, 40, False),
    (301, 40, False),
    (100, 29, False),
    (100, 81, False),
])
def test_button_dimension_range_is_inclusive(analyzer, width, height, expected):
    assert analyzer.has_button_dimensions(frame("x", width=width, height=height)) is expected


def test_unnamed_button_recognised_by_dimensions(analyzer):
    node = frame("x", width=100, height=40, children=[text_node()])
    assert analyzer.is_button(node)


def test_button_requires_fill(analyzer):
    node = frame("x", name="button", children=[text_node()], fills=())
    assert not analyzer.is_button(node)


def test_markup_attributes_provide_signals(analyzer):
    node = SourceElement(
        id="m", tag="g",
        attributes={"data-name": "cta-btn", "fill": "#f00", "width": "120px", "height": "40"},
        children=(SourceElement(id="t", tag="text", children=(SourceText("Buy"),)),),
    )
    assert types(analyzer.patterns_for(node)) == ["button", "card"]


def test_fill_none_is_not_a_fill(analyzer):
    node = SourceElement(id="m", tag="g", attributes={"fill": "none"}, children=(text_node(),))
    assert not analyzer.is_card(node)


# ─── form / navigation ──────────────────────────────────────────────────────

def test_form_detected_by_child_names(analyzer):
    node = frame("f", fills=(), children=[frame("i", name="Email Input", fills=())])
    assert types(analyzer.patterns_for(node)) == ["form"]
    form = analyzer.patterns_for(node)[0]
    assert form.confidence == 0.8
    assert any(a.severity == "error" for a in form.accessibility)


def test_navigation_horizontal_row(analyzer):
    items = [frame(str(i), fills=(), x=i * 80, y=0) for i in range(3)]
    assert analyzer.is_navigation(frame("n", fills=(), children=items))


def test_navigation_needs_three_items(analyzer):
    items = [frame(str(i), fills=(), x=i * 80) for i in range(2)]
    assert not analyzer.is_navigation(frame("n", name="nav", fills=(), children=items))


def test_navigation_by_name_without_layout(analyzer):
    items = [SourceElement(id=str(i), tag="g") for i in range(3)]
    assert analyzer.is_navigation(SourceElement(id="n", tag="g", name="Main Menu", children=tuple(items)))


def test_linear_tolerance_is_inclusive():
    analyzer = PatternAnalyzer(PatternThresholds(linear_tolerance=10))
    items = [frame("a", x=0, y=0), frame("b", x=50, y=10)]
    assert analyzer.is_linear_layout(frame("row", children=items))


def test_broken_node_yields_no_patterns(analyzer):
    broken = SourceElement(id="x", tag="g", attributes=None)
    assert analyzer.analyze(broken) == []


def test_analyze_accepts_list_and_none(analyzer):
    node = frame("1", name="Button", width=60, height=40, children=[text_node()])
    assert len(analyzer.analyze([node, node])) == 4
    assert analyzer.analyze(None) == []


# ─── analyze_design ─────────────────────────────────────────────────────────

def test_analyze_design_collects_document_details(analyzer):
    tree = frame(
        "1", name="Hero", fills=({"type": "IMAGE", "imageRef": "abcdef1234567"},),
        children=[text_node()],
    )
    raw = {
        "components": {"c1": {"name": "Hero", "description": "banner"}},
        "document": {
            "id": "0:0",
            "children": [{
                "id": "1",
                "transitionNodeID": "2",
                "reactions": [{"action": {"type": "NODE", "destinationId": "2"}, "trigger": {"type": "ON_HOVER"}}],
            }],
        },
    }
    analysis = analyzer.analyze_design(tree, raw)
    assert analysis.components == [{"name": "Hero", "type": "functional", "description": "banner"}]
    assert analysis.interactions == [{"type": "NODE", "trigger": "ON_HOVER", "target": "2", "node_id": "1"}]
    assert analysis.animations == [{"type": "transition", "duration": 300, "easing": "ease"}]
    assert analysis.assets == [{"type": "image", "ref": "abcdef1234567", "name": "image_abcdef12", "node_id": "1"}]
    assert analysis.complexity == pytest.approx(2.2)
    assert "Consider using a Card component with proper semantic HTML" in analysis.suggestions


def test_analyze_design_without_document_uses_default_component(analyzer):
    analysis = analyzer.analyze_design(SourceElement(id="s", tag="svg"))
    assert analysis.components == [{"name": "GeneratedComponent", "type": "functional"}]
    assert analysis.interactions == []


def test_complexity_is_capped(analyzer):
    elements = [SourceElement(id=str(i), tag=f"t{i}") for i in range(50)]
    assert analyzer.complexity(elements) == 10.0


def test_analyze_design_falls_back_on_internal_error(analyzer):
    with patch.object(PatternAnalyzer, "analyze", side_effect=RuntimeError("boom")):
        analysis = analyzer.analyze_design(SourceElement(id="s", tag="svg"))
    assert analysis.patterns == []
    assert analysis.suggestions == FALLBACK_SUGGESTIONS
    assert analysis.complexity == 1.0
