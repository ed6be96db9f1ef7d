"""
Quality Assessor — 對產出的程式碼做靜態評分

六個類別各自由獨立的布林訊號決定；overall 是 code / performance / accessibility /
maintainability / security 五項的平均（visual 是固定值，只列出不列入平均）。
所有判斷都是字串比對，不會拋例外。
"""

import re
from dataclasses import dataclass
from typing import Optional

from .markup import LexicalScanner
from .models import QualityAssessment, QualityIssue, TransformConfig

COMPUTED_CATEGORIES = ("code", "performance", "accessibility", "maintainability", "security")

_ACCESSIBILITY_RE = re.compile(r"aria-|role=|alt=")
_TYPED_RE = re.compile(r"\binterface\s+\w+|lang=\"ts\"|:\s*(?:string|number|boolean)\b")
_DECLARATION_RE = re.compile(r"React\.FC|\bfunction\s|defineComponent|@Component|export\s+let\s|=>\s*\{")
_RESPONSIVE_RE = re.compile(r"@media|\d(?:rem|em)\b|\d%")
_RAW_HTML_RE = re.compile(r"dangerouslySetInnerHTML|v-html|\[innerHTML\]|\{@html|\.innerHTML\s*=")
_DYNAMIC_EVAL_RE = re.compile(r"\beval\(|new\s+Function\(")
_DOM_WRITE_RE = re.compile(r"document\.write")


@dataclass(frozen=True)
class QualityThresholds:
    visual_score: float = 85
    code_base: float = 70
    code_typed_bonus: float = 15
    code_declaration_bonus: float = 10
    code_comment_bonus: float = 5
    performance_base: float = 75
    performance_flag_bonus: float = 8
    accessibility_present: float = 95
    accessibility_missing: float = 60
    maintainability_comments: float = 40
    maintainability_typed: float = 30
    maintainability_tests: float = 30
    security_base: float = 90
    security_raw_html_penalty: float = 20
    security_eval_penalty: float = 30
    security_dom_write_penalty: float = 25


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


class QualityAssessor:

    def __init__(self, thresholds: Optional[QualityThresholds] = None, scanner: Optional[LexicalScanner] = None):
        self.thresholds = thresholds or QualityThresholds()
        self.scanner = scanner or LexicalScanner()

    def assess(self, adapted, config: TransformConfig) -> QualityAssessment:
        """adapted 需有 component_code / style_code / additional_files（缺的當空字串）."""
        t = self.thresholds
        component = getattr(adapted, "component_code", "") or ""
        style = getattr(adapted, "style_code", "") or ""
        extra = "\n".join((getattr(adapted, "additional_files", None) or {}).values())
        everything = "\n".join((component, extra))

        typed = bool(config.typescript and _TYPED_RE.search(component))
        declaration = bool(_DECLARATION_RE.search(component))
        comments = self.scanner.has_comments(component)
        accessible = bool(_ACCESSIBILITY_RE.search(everything))
        tests = bool(config.unit_tests)
        raw_html = bool(_RAW_HTML_RE.search(everything))
        dynamic_eval = bool(_DYNAMIC_EVAL_RE.search(everything))
        dom_write = bool(_DOM_WRITE_RE.search(everything))

        code = t.code_base
        if typed:
            code += t.code_typed_bonus
        if declaration:
            code += t.code_declaration_bonus
        if comments:
            code += t.code_comment_bonus

        performance = t.performance_base + t.performance_flag_bonus * config.optimization.enabled_count()

        maintainability = (
            (t.maintainability_comments if comments else 0)
            + (t.maintainability_typed if typed else 0)
            + (t.maintainability_tests if tests else 0)
        )

        security = t.security_base
        if raw_html:
            security -= t.security_raw_html_penalty
        if dynamic_eval:
            security -= t.security_eval_penalty
        if dom_write:
            security -= t.security_dom_write_penalty

        categories = {
            "visual": _clamp(t.visual_score),
            "code": _clamp(code),
            "performance": _clamp(performance),
            "accessibility": _clamp(t.accessibility_present if accessible else t.accessibility_missing),
            "maintainability": _clamp(maintainability),
            "security": _clamp(security),
        }
        overall = round(sum(categories[c] for c in COMPUTED_CATEGORIES) / len(COMPUTED_CATEGORIES), 2)

        issues = []
        recommendations = []
        if not accessible:
            issues.append(QualityIssue("warning", "Missing accessibility attributes", "accessibility"))
            recommendations.append("Add aria-label, role or alt attributes to interactive and graphic elements")
        if raw_html:
            issues.append(QualityIssue("error", "Raw HTML injection sink detected", "security"))
        if dynamic_eval:
            issues.append(QualityIssue("error", "Dynamic code evaluation detected", "security"))
        if dom_write:
            issues.append(QualityIssue("error", "Direct DOM write detected", "security"))
        if config.typescript and not typed:
            issues.append(QualityIssue("info", "No typed interface found in component", "code"))
            recommendations.append("Enable TypeScript for better type safety")
        if not comments:
            issues.append(QualityIssue("info", "Component has no comments", "maintainability"))
            recommendations.append("Document the component with a short header comment")
        if not tests:
            recommendations.append("Enable unit test generation to improve maintainability")
        if not _RESPONSIVE_RE.search(style):
            recommendations.append("Add responsive design patterns")
        if config.optimization.enabled_count() == 0:
            recommendations.append("Enable tree shaking, code splitting or lazy loading")

        return QualityAssessment(
            overall=overall,
            categories=categories,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )
