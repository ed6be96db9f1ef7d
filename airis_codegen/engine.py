"""
Code Generation Engine — 串起整條 pipeline

    CREATED → ANALYZING(10) → PLANNING(30) → GENERATING(50) → ADAPTING(70)
            → ASSESSING(85) → ASSEMBLING(95) → DONE(100)
    任何階段失敗 → FAILED，錯誤原樣往上拋，不寫入快取。

所有服務都由建構子注入；沒給的就用 EngineSettings 建預設值。
每個階段結束都 await asyncio.sleep(0) 並檢查取消。
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from .assembler import CodeAssembler
from .cache import CacheSettings, ResultCache
from .errors import ValidationError
from .figma_reader import DEFAULT_SVG, FigmaToSource, fallback_svg, normalize_figma_data, render_svg
from .frameworks import FrameworkAdapter
from .ingestion import DocumentIngestor, IngestionSettings
from .markup import LexicalScanner
from .metrics import MetricsCalculator
from .models import (
    BuildLog,
    DesignAnalysis,
    GeneratedCode,
    GenerationSession,
    Phase,
    ProjectStructure,
    TransformConfig,
)
from .naming import kebab, sanitize_component_name
from .patterns import PatternAnalyzer, PatternThresholds
from .quality import QualityAssessor, QualityThresholds
from .stylesheet import make_stylesheet, style_extension
from .transformer import TreeTransformer, render_jsx
from .translator import AttributeTranslator
from .validator import CodeValidator, build_status
from .workers import CancellationToken, WorkerPool, default_handlers

ProgressCallback = Callable[[float, str], None]

INGESTION_BAND = (10.0, 30.0)


@dataclass(frozen=True)
class EngineSettings:
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    patterns: PatternThresholds = field(default_factory=PatternThresholds)
    quality: QualityThresholds = field(default_factory=QualityThresholds)
    use_worker: bool = False
    worker_timeout: float = 30.0
    workers: int = 1


def new_session_id() -> str:
    return f"gen_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class CodeGenerationEngine:

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        translator: Optional[AttributeTranslator] = None,
        scanner: Optional[LexicalScanner] = None,
        ingestor: Optional[DocumentIngestor] = None,
        transformer: Optional[TreeTransformer] = None,
        analyzer: Optional[PatternAnalyzer] = None,
        adapter: Optional[FrameworkAdapter] = None,
        assessor: Optional[QualityAssessor] = None,
        metrics: Optional[MetricsCalculator] = None,
        assembler: Optional[CodeAssembler] = None,
        validator: Optional[CodeValidator] = None,
        cache: Optional[ResultCache] = None,
        worker_pool: Optional[WorkerPool] = None,
    ):
        self.settings = settings or EngineSettings()
        self.translator = translator or AttributeTranslator()
        self.scanner = scanner or LexicalScanner()
        if worker_pool is None and self.settings.use_worker:
            worker_pool = WorkerPool(
                default_handlers(self.translator, self.scanner),
                workers=self.settings.workers,
                timeout=self.settings.worker_timeout,
            )
        self.worker_pool = worker_pool
        self.ingestor = ingestor or DocumentIngestor(
            self.settings.ingestion, self.translator, self.scanner, worker_pool
        )
        self.transformer = transformer or TreeTransformer(self.translator)
        self.analyzer = analyzer or PatternAnalyzer(self.settings.patterns)
        self.adapter = adapter or FrameworkAdapter()
        self.assessor = assessor or QualityAssessor(self.settings.quality, self.scanner)
        self.metrics = metrics or MetricsCalculator(self.scanner)
        self.assembler = assembler or CodeAssembler(self.scanner)
        self.validator = validator or CodeValidator()
        self.cache = cache or ResultCache(self.settings.cache)
        self._sessions: Dict[str, GenerationSession] = {}
        self.last_session: Optional[GenerationSession] = None

    # ─── public API ───

    def active_sessions(self) -> List[GenerationSession]:
        return list(self._sessions.values())

    def get_result(self, session_id: str) -> Optional[GeneratedCode]:
        return self.cache.get(session_id)

    def generate_sync(
        self,
        document: Union[str, dict],
        config: Optional[TransformConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GeneratedCode:
        """給沒有 event loop 的呼叫端（CLI）用."""

        async def run() -> GeneratedCode:
            try:
                return await self.generate(document, config, on_progress, cancel_token)
            finally:
                if self.worker_pool is not None:
                    await self.worker_pool.close()

        return asyncio.run(run())

    async def generate(
        self,
        document: Union[str, dict],
        config: Optional[TransformConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GeneratedCode:
        config = config or TransformConfig()
        token = cancel_token or CancellationToken()
        session = GenerationSession(id=new_session_id(), start_time=time.time() * 1000, config=config)
        self._sessions[session.id] = session
        self.last_session = session

        def report(pct: float, label: str) -> None:
            # progress 只增不減；100 只在成功時由 DONE 送出
            if pct < session.progress_pct:
                return
            session.progress_pct = pct
            if on_progress is not None:
                on_progress(pct, label)

        def enter(phase: Phase, pct: float, label: str) -> None:
            session.phase = phase
            report(pct, label)

        try:
            enter(Phase.ANALYZING, 10, "Analyzing design...")
            low, high = INGESTION_BAND
            ingested = await self.ingestor.ingest(
                document,
                on_progress=lambda pct, label: report(min(low + pct * (high - low) / 100, high - 0.01), label),
                cancel_token=token,
            )
            analysis = self.analyzer.analyze_design(ingested.tree, ingested.figma)
            await self._checkpoint(token)

            enter(Phase.PLANNING, 30, "Planning structure...")
            structure = self.plan_structure(analysis, config)
            await self._checkpoint(token)

            enter(Phase.GENERATING, 50, "Generating components...")
            transformed = self.transformer.transform(ingested.tree)
            sheet = make_stylesheet(sanitize_component_name(config.component_name), config.styling)
            styled_tree = sheet.extract(transformed.root)
            jsx = render_jsx(styled_tree, config.pass_props, config.render_children, indent=2)
            css = sheet.render()
            await self._checkpoint(token)

            enter(Phase.ADAPTING, 70, "Adapting framework...")
            adapted = self.adapter.adapt(jsx, css, config)
            await self._checkpoint(token)

            enter(Phase.ASSESSING, 85, "Assessing quality...")
            quality = self.assessor.assess(adapted, config)
            await self._checkpoint(token)

            enter(Phase.ASSEMBLING, 95, "Finalizing...")
            assembled = self.assembler.assemble(adapted, structure, config)
            metrics = self.metrics.calculate(assembled.files, session.start_time)
            logs = [BuildLog("info", w) for w in ingested.warnings]
            logs.extend(BuildLog("warn", w) for w in transformed.warnings)
            logs.extend(self.validator.validate(assembled.files, config))
            status, build_logs = build_status(logs)

            recommendations = list(quality.recommendations)
            recommendations.extend(s for s in analysis.suggestions if s not in recommendations)
            result = GeneratedCode(
                id=session.id,
                timestamp=datetime.now(),
                config=config,
                files=assembled.files,
                structure=assembled.structure,
                metrics=metrics,
                quality=replace(quality, recommendations=tuple(recommendations)),
                preview=assembled.preview,
                build_status=status,
                build_logs=build_logs,
                patterns=tuple(analysis.patterns),
            )
            await self._checkpoint(token)

            self.cache.set(session.id, result)
            enter(Phase.DONE, 100, "Complete!")
            return result
        except BaseException:
            session.phase = Phase.FAILED
            raise
        finally:
            self._sessions.pop(session.id, None)

    # ─── helpers ───

    async def _checkpoint(self, token: CancellationToken) -> None:
        await asyncio.sleep(0)
        token.raise_if_cancelled()

    def plan_structure(self, analysis: DesignAnalysis, config: TransformConfig) -> ProjectStructure:
        name = sanitize_component_name(config.component_name)
        return ProjectStructure(
            root="src",
            components=(f"components/{name}.{'tsx' if config.typescript else 'jsx'}",),
            hooks=("useInteraction.ts",) if analysis.interactions else (),
            utils=("helpers.ts",),
            types=("index.ts",) if config.typescript else (),
            styles=(f"styles/{kebab(name)}.{style_extension(config.styling)}",),
            tests=("__tests__/",) if config.unit_tests else (),
            assets=tuple(asset["name"] for asset in analysis.assets),
        )

    def extract_svg(self, document: dict) -> str:
        """Figma 文件 → SVG 文字；無法辨識的文件回傳錯誤版 SVG，空文件回傳預設 SVG."""
        try:
            normalized = normalize_figma_data(document)
        except ValidationError as e:
            return fallback_svg(str(e))
        root = FigmaToSource().convert(normalized)
        if not root.children:
            return DEFAULT_SVG
        return render_svg(root)
