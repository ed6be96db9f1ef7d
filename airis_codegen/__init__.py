"""
AiIRIS-codegen — 設計稿（Figma JSON / SVG）→ UI 框架元件程式碼

ingestion → tree transform → pattern analysis → framework adapter
→ quality / metrics → assembler，由 CodeGenerationEngine 串起來。
"""

__version__ = "0.1.0"

from .models import (
    SourceElement,
    SourceText,
    SourceFragment,
    TargetElement,
    TransformConfig,
    OptimizationOptions,
    DesignPattern,
    QualityAssessment,
    CodeMetrics,
    CodeFile,
    GeneratedCode,
)
from .errors import (
    CodegenError,
    ValidationError,
    SizeLimitError,
    PhaseError,
    CancellationError,
    WorkerTimeoutError,
    describe_error,
)
from .translator import AttributeTranslator
from .markup import LexicalScanner
from .ingestion import DocumentIngestor, IngestionSettings
from .transformer import TreeTransformer, render_jsx
from .frameworks import FrameworkAdapter
from .patterns import PatternAnalyzer, PatternThresholds
from .quality import QualityAssessor, QualityThresholds
from .metrics import MetricsCalculator
from .assembler import CodeAssembler
from .cache import ResultCache, CacheSettings
from .workers import CancellationToken, WorkerPool, TaskType
from .engine import CodeGenerationEngine, EngineSettings
from .figma_reader import FigmaAPIClient, normalize_figma_data
from .config import load_config, validate_config, transform_config_from, engine_settings_from

__all__ = [
    "__version__",
    "SourceElement",
    "SourceText",
    "SourceFragment",
    "TargetElement",
    "TransformConfig",
    "OptimizationOptions",
    "DesignPattern",
    "QualityAssessment",
    "CodeMetrics",
    "CodeFile",
    "GeneratedCode",
    "CodegenError",
    "ValidationError",
    "SizeLimitError",
    "PhaseError",
    "CancellationError",
    "WorkerTimeoutError",
    "describe_error",
    "AttributeTranslator",
    "LexicalScanner",
    "DocumentIngestor",
    "IngestionSettings",
    "TreeTransformer",
    "render_jsx",
    "FrameworkAdapter",
    "PatternAnalyzer",
    "PatternThresholds",
    "QualityAssessor",
    "QualityThresholds",
    "MetricsCalculator",
    "CodeAssembler",
    "ResultCache",
    "CacheSettings",
    "CancellationToken",
    "WorkerPool",
    "TaskType",
    "CodeGenerationEngine",
    "EngineSettings",
    "FigmaAPIClient",
    "normalize_figma_data",
    "load_config",
    "validate_config",
    "transform_config_from",
    "engine_settings_from",
]
