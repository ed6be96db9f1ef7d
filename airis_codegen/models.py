"""
Data model for the code generation pipeline.

Source trees are a closed union of frozen dataclasses
(SourceElement | SourceText | SourceFragment); everything the pipeline
produces downstream is a dataclass as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


FRAMEWORKS = ("react", "vue", "angular", "svelte", "html")
STYLINGS = ("css", "scss", "tailwind", "styled")


# ════════════════════════════════════════════════════════════
# Source tree
# ════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Bounds:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class SourceElement:
    """One design/markup element.

    `name`, `node_type`, `bounds` and `fills` carry Figma metadata; they stay
    empty for nodes parsed out of raw markup.
    """
    id: str
    tag: str
    attributes: Dict[str, object] = field(default_factory=dict)
    children: Tuple["SourceNode", ...] = ()
    text: Optional[str] = None
    name: str = ""
    node_type: str = ""
    bounds: Optional[Bounds] = None
    fills: Tuple[dict, ...] = ()


@dataclass(frozen=True)
class SourceText:
    text: str


@dataclass(frozen=True)
class SourceFragment:
    children: Tuple["SourceNode", ...] = ()


SourceNode = Union[SourceElement, SourceText, SourceFragment]


def iter_elements(node: SourceNode):
    """Depth-first walk over every SourceElement under (and including) node."""
    if isinstance(node, SourceElement):
        yield node
        for child in node.children:
            yield from iter_elements(child)
    elif isinstance(node, SourceFragment):
        for child in node.children:
            yield from iter_elements(child)


@dataclass(frozen=True)
class Chunk:
    index: int
    text: str


# ════════════════════════════════════════════════════════════
# Target tree
# ════════════════════════════════════════════════════════════

@dataclass
class TargetElement:
    tag: str
    attributes: Dict[str, object] = field(default_factory=dict)
    children: List["TargetElement"] = field(default_factory=list)
    text: Optional[str] = None
    kind: str = "element"  # element | text | fragment
    source_id: str = ""
    name: str = ""


# ════════════════════════════════════════════════════════════
# Configuration
# ════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OptimizationOptions:
    tree_shaking: bool = False
    code_splitting: bool = False
    lazy_loading: bool = False

    def enabled_count(self) -> int:
        return sum(1 for flag in (self.tree_shaking, self.code_splitting, self.lazy_loading) if flag)


@dataclass(frozen=True)
class TransformConfig:
    framework: str = "react"
    typescript: bool = True
    styling: str = "css"
    component_name: str = "GeneratedComponent"
    pass_props: bool = False
    render_children: Union[bool, str] = False
    memo: bool = False
    unit_tests: bool = False
    optimization: OptimizationOptions = field(default_factory=OptimizationOptions)


# ════════════════════════════════════════════════════════════
# Analysis
# ════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AccessibilityInsight:
    severity: str  # error | warning | suggestion
    message: str
    fix: str


@dataclass(frozen=True)
class DesignPattern:
    type: str
    confidence: float
    suggestions: Tuple[str, ...] = ()
    accessibility: Tuple[AccessibilityInsight, ...] = ()
    node_id: str = ""
    node_name: str = ""


@dataclass
class DesignAnalysis:
    patterns: List[DesignPattern] = field(default_factory=list)
    components: List[dict] = field(default_factory=list)
    interactions: List[dict] = field(default_factory=list)
    animations: List[dict] = field(default_factory=list)
    assets: List[dict] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    complexity: float = 1.0


@dataclass(frozen=True)
class QualityIssue:
    severity: str  # error | warning | info
    message: str
    category: str


@dataclass(frozen=True)
class QualityAssessment:
    overall: float
    categories: Dict[str, float]
    issues: Tuple[QualityIssue, ...] = ()
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeMetrics:
    lines_of_code: int
    component_count: int
    total_size: int
    complexity: int
    maintainability_index: float
    duplicate_lines: int
    generation_time_ms: float


# ════════════════════════════════════════════════════════════
# Output
# ════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CodeFile:
    path: str
    name: str
    content: str
    language: str
    size: int
    imports: Tuple[str, ...] = ()
    exports: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectStructure:
    root: str = "src"
    components: Tuple[str, ...] = ()
    hooks: Tuple[str, ...] = ()
    utils: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    styles: Tuple[str, ...] = ()
    tests: Tuple[str, ...] = ()
    assets: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildLog:
    level: str  # info | warn | error
    message: str
    file: str = ""
    line: int = 1


@dataclass(frozen=True)
class GeneratedCode:
    id: str
    timestamp: datetime
    config: TransformConfig
    files: Tuple[CodeFile, ...]
    structure: ProjectStructure
    metrics: CodeMetrics
    quality: QualityAssessment
    preview: str
    build_status: str  # success | warning | error
    build_logs: Tuple[BuildLog, ...] = ()
    patterns: Tuple[DesignPattern, ...] = ()


class Phase(str, Enum):
    CREATED = "created"
    ANALYZING = "analyzing"
    PLANNING = "planning"
    GENERATING = "generating"
    ADAPTING = "adapting"
    ASSESSING = "assessing"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationSession:
    id: str
    start_time: float
    config: TransformConfig
    phase: Phase = Phase.CREATED
    progress_pct: float = 0.0
