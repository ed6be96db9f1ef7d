"""
Pattern Analyzer — 啟發式辨識 card / button / form / navigation

每個節點獨立套用全部判斷（可同時符合多種）。信心值與門檻都是固定的預設值，
集中在 PatternThresholds，可由設定覆寫。分析永遠不拋例外：訊號不足就是沒有 pattern。
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .models import (
    AccessibilityInsight,
    Bounds,
    DesignAnalysis,
    DesignPattern,
    SourceElement,
    SourceFragment,
    SourceNode,
    SourceText,
    iter_elements,
)


@dataclass(frozen=True)
class PatternThresholds:
    card_confidence: float = 0.85
    button_confidence: float = 0.9
    form_confidence: float = 0.8
    navigation_confidence: float = 0.75
    button_min_width: float = 60
    button_max_width: float = 300
    button_min_height: float = 30
    button_max_height: float = 80
    touch_target: float = 44
    linear_tolerance: float = 10
    navigation_min_items: int = 3
    card_container_types: tuple = ("FRAME", "RECTANGLE", "COMPONENT", "INSTANCE")
    card_container_tags: tuple = ("svg", "g", "rect", "symbol", "foreignObject")


CARD_SUGGESTIONS = (
    "Consider adding subtle shadow for depth",
    "Ensure proper spacing between elements",
    "Add hover states for interactivity",
)
BUTTON_SUGGESTIONS = (
    "Add focus states for keyboard navigation",
    "Ensure minimum 44px touch target",
    "Consider loading states",
)
FORM_SUGGESTIONS = (
    "Add proper form validation",
    "Include error states",
    "Group related fields with fieldsets",
)
NAVIGATION_SUGGESTIONS = (
    "Implement keyboard navigation",
    "Add ARIA landmarks",
    "Consider mobile hamburger menu",
)

CODE_SUGGESTIONS = {
    "card": ("Consider using a Card component with proper semantic HTML", "Add transition effects for hover states"),
    "button": ("Implement button variants (primary, secondary, outline)", "Add loading and disabled states"),
    "form": ("Use form validation library like react-hook-form", "Implement proper error handling and display"),
    "navigation": ("Consider using React Router for navigation", "Implement responsive navigation with mobile menu"),
}

FALLBACK_SUGGESTIONS = ["Consider adding responsive design", "Implement proper accessibility"]


# ─── Node signals ───────────────────────────────────────────────────────────

def _name(node: SourceElement) -> str:
    attrs = node.attributes
    return str(node.name or attrs.get("data-name") or attrs.get("id") or attrs.get("aria-label") or "").lower()


def _has_fill(node: SourceElement) -> bool:
    if node.fills:
        return True
    fill = node.attributes.get("fill")
    if fill and str(fill).lower() != "none":
        return True
    style = node.attributes.get("style")
    if isinstance(style, dict):
        return any(k in style for k in ("fill", "background", "backgroundColor"))
    if isinstance(style, str):
        return "fill:" in style.replace(" ", "") or "background" in style
    return False


def _number(value) -> Optional[float]:
    try:
        return float(str(value).replace("px", ""))
    except (TypeError, ValueError):
        return None


def _bounds(node: SourceNode) -> Optional[Bounds]:
    if not isinstance(node, SourceElement):
        return None
    if node.bounds is not None:
        return node.bounds
    width = _number(node.attributes.get("width"))
    height = _number(node.attributes.get("height"))
    if width is None or height is None:
        return None
    return Bounds(
        _number(node.attributes.get("x")) or 0.0,
        _number(node.attributes.get("y")) or 0.0,
        width,
        height,
    )


def _is_text(node: SourceNode) -> bool:
    if isinstance(node, SourceText):
        return bool(node.text.strip())
    if isinstance(node, SourceElement):
        return node.node_type == "TEXT" or node.tag in ("text", "tspan")
    return False


def _element_children(node: SourceElement) -> List[SourceElement]:
    result = []
    for child in node.children:
        if isinstance(child, SourceElement):
            result.append(child)
        elif isinstance(child, SourceFragment):
            result.extend(c for c in child.children if isinstance(c, SourceElement))
    return result


class PatternAnalyzer:

    def __init__(self, thresholds: Optional[PatternThresholds] = None):
        self.thresholds = thresholds or PatternThresholds()

    # ─── predicates ───

    def is_card(self, node: SourceElement) -> bool:
        t = self.thresholds
        container = node.node_type in t.card_container_types if node.node_type else node.tag in t.card_container_tags
        return _has_fill(node) and len(node.children) >= 1 and container

    def has_button_dimensions(self, node: SourceElement) -> bool:
        t = self.thresholds
        box = _bounds(node)
        if box is None:
            return False
        return t.button_min_width <= box.width <= t.button_max_width and \
            t.button_min_height <= box.height <= t.button_max_height

    def is_button(self, node: SourceElement) -> bool:
        name = _name(node)
        has_text = any(_is_text(c) for c in node.children) or bool(node.text)
        named = "button" in name or "btn" in name
        return has_text and _has_fill(node) and (named or self.has_button_dimensions(node))

    def is_form(self, node: SourceElement) -> bool:
        for child in _element_children(node):
            child_name = _name(child)
            if any(hint in child_name for hint in ("input", "field", "label")):
                return True
        return False

    def is_linear_layout(self, node: SourceElement) -> bool:
        items = _element_children(node)
        if len(items) < 2:
            return False
        first, second = _bounds(items[0]), _bounds(items[1])
        if first is None or second is None:
            return False
        tolerance = self.thresholds.linear_tolerance
        return abs(first.y - second.y) <= tolerance or abs(first.x - second.x) <= tolerance

    def is_navigation(self, node: SourceElement) -> bool:
        if len(_element_children(node)) < self.thresholds.navigation_min_items:
            return False
        name = _name(node)
        return self.is_linear_layout(node) or "nav" in name or "menu" in name

    def has_minimum_touch_target(self, node: SourceElement) -> bool:
        box = _bounds(node)
        target = self.thresholds.touch_target
        return box is not None and box.width >= target and box.height >= target

    # ─── accessibility ───

    def _card_accessibility(self, node) -> tuple:
        return (
            AccessibilityInsight("suggestion", "Add semantic HTML structure",
                                 "Use <article> or <section> elements for card containers"),
        )

    def _button_accessibility(self, node) -> tuple:
        insights = [
            AccessibilityInsight("suggestion", "Add proper ARIA labels",
                                 "Include aria-label or aria-describedby attributes"),
        ]
        if not self.has_minimum_touch_target(node):
            insights.append(AccessibilityInsight("error", "Touch target too small",
                                                 "Ensure buttons are at least 44px × 44px"))
        return tuple(insights)

    def _form_accessibility(self, node) -> tuple:
        return (
            AccessibilityInsight("error", "Associate labels with form controls",
                                 "Use proper <label> elements or aria-labelledby"),
            AccessibilityInsight("suggestion", "Add form validation feedback",
                                 "Implement aria-invalid and aria-describedby for errors"),
        )

    def _navigation_accessibility(self, node) -> tuple:
        return (
            AccessibilityInsight("error", "Add navigation landmarks",
                                 "Use <nav> element with proper aria-label"),
            AccessibilityInsight("suggestion", "Implement keyboard navigation",
                                 "Ensure all items are focusable and support arrow key navigation"),
        )

    # ─── analysis ───

    def patterns_for(self, node: SourceElement) -> List[DesignPattern]:
        t = self.thresholds
        rules = (
            ("card", self.is_card, t.card_confidence, CARD_SUGGESTIONS, self._card_accessibility),
            ("button", self.is_button, t.button_confidence, BUTTON_SUGGESTIONS, self._button_accessibility),
            ("form", self.is_form, t.form_confidence, FORM_SUGGESTIONS, self._form_accessibility),
            ("navigation", self.is_navigation, t.navigation_confidence, NAVIGATION_SUGGESTIONS,
             self._navigation_accessibility),
        )
        found = []
        for kind, predicate, confidence, suggestions, accessibility in rules:
            if predicate(node):
                found.append(DesignPattern(
                    type=kind,
                    confidence=min(max(confidence, 0.0), 1.0),
                    suggestions=suggestions,
                    accessibility=accessibility(node),
                    node_id=node.id,
                    node_name=node.name,
                ))
        return found

    def analyze(self, nodes: Union[SourceNode, Iterable[SourceNode]]) -> List[DesignPattern]:
        roots = [nodes] if isinstance(nodes, (SourceElement, SourceText, SourceFragment)) else list(nodes or ())
        patterns: List[DesignPattern] = []
        for root in roots:
            for node in iter_elements(root):
                try:
                    patterns.extend(self.patterns_for(node))
                except (AttributeError, TypeError, ValueError):
                    # 訊號不完整的節點視為沒有 pattern
                    continue
        return patterns

    def analyze_design(self, tree: SourceNode, raw_document: Optional[dict] = None) -> DesignAnalysis:
        """完整的設計分析；任何內部錯誤都回傳中性的 fallback."""
        try:
            patterns = self.analyze(tree)
            elements = list(iter_elements(tree))
            return DesignAnalysis(
                patterns=patterns,
                components=self._components(raw_document),
                interactions=self._interactions(raw_document),
                animations=self._animations(raw_document),
                assets=self._assets(elements),
                suggestions=self.code_suggestions(patterns),
                complexity=self.complexity(elements),
            )
        except Exception:
            return DesignAnalysis(
                components=[{"name": "GeneratedComponent", "type": "functional"}],
                suggestions=list(FALLBACK_SUGGESTIONS),
                complexity=1.0,
            )

    def code_suggestions(self, patterns: List[DesignPattern]) -> List[str]:
        seen: List[str] = []
        for pattern in patterns:
            for suggestion in CODE_SUGGESTIONS.get(pattern.type, ()):
                if suggestion not in seen:
                    seen.append(suggestion)
        return seen

    def complexity(self, elements: List[SourceElement]) -> float:
        unique_types = {e.node_type or e.tag for e in elements}
        return min(1 + len(elements) * 0.1 + len(unique_types) * 0.5, 10.0)

    # ─── raw document walks ───

    def _components(self, raw: Optional[dict]) -> List[dict]:
        components = []
        for component in ((raw or {}).get("components") or {}).values():
            components.append({
                "name": component.get("name") or "Component",
                "type": "functional",
                "description": component.get("description", ""),
            })
        return components or [{"name": "GeneratedComponent", "type": "functional"}]

    def _walk(self, raw: Optional[dict]):
        stack = [(raw or {}).get("document") or {}]
        while stack:
            node = stack.pop()
            if not isinstance(node, dict):
                continue
            yield node
            stack.extend(reversed(node.get("children") or []))

    def _interactions(self, raw: Optional[dict]) -> List[dict]:
        interactions = []
        for node in self._walk(raw):
            for reaction in node.get("reactions") or []:
                action = reaction.get("action") or {}
                interactions.append({
                    "type": action.get("type", "unknown"),
                    "trigger": (reaction.get("trigger") or {}).get("type", "click"),
                    "target": action.get("destinationId") or action.get("destination"),
                    "node_id": node.get("id", ""),
                })
        return interactions

    def _animations(self, raw: Optional[dict]) -> List[dict]:
        return [
            {
                "type": "transition",
                "duration": node.get("transitionDuration", 300),
                "easing": node.get("transitionEasing", "ease"),
            }
            for node in self._walk(raw)
            if node.get("transitionNodeID") or node.get("prototypeDevice")
        ]

    def _assets(self, elements: List[SourceElement]) -> List[dict]:
        assets = []
        for element in elements:
            for fill in element.fills:
                ref = fill.get("imageRef")
                if fill.get("type") == "IMAGE" and ref:
                    assets.append({"type": "image", "ref": ref, "name": f"image_{ref[:8]}", "node_id": element.id})
        return assets
