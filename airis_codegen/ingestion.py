"""
Chunked Ingestion & Validator

文件進入 pipeline 的唯一入口：
  IDLE → VALIDATING → (SYNC_PROCESSING | CHUNKED_PROCESSING) → DONE | FAILED | CANCELLED

- 字串（SVG markup）：大小檢查 → 清理 → tag 平衡檢查/修復 → 依大小走同步或分塊 → parse 成 SourceNode
- dict（Figma JSON）：normalize → FigmaToSource 直接得到 SourceNode
大檔分塊時每個 chunk 之後都會 await asyncio.sleep(0)，並在 chunk 邊界檢查取消。
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Tuple, Union

from .errors import CancellationError, SizeLimitError, ValidationError
from .figma_reader import FigmaToSource, normalize_figma_data, render_svg
from .markup import LexicalScanner
from .models import SourceNode
from .translator import AttributeTranslator
from .workers import CancellationToken, TaskType, WorkerPool

MB = 1024 * 1024

ProgressCallback = Callable[[float, str], None]


class IngestionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SYNC_PROCESSING = "sync_processing"
    CHUNKED_PROCESSING = "chunked_processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class IngestionSettings:
    max_file_size: int = 10 * MB
    large_file_threshold: int = 1 * MB
    max_chunk_size: int = 1 * MB  # 字元數


@dataclass
class IngestionResult:
    tree: SourceNode
    markup: str
    metrics: dict
    warnings: Tuple[str, ...] = ()
    state: IngestionState = IngestionState.DONE
    figma: Optional[dict] = field(default=None, repr=False)


class DocumentIngestor:
    """一次 ingest() 對應一次狀態機執行；state 反映最近一次執行."""

    def __init__(
        self,
        settings: Optional[IngestionSettings] = None,
        translator: Optional[AttributeTranslator] = None,
        scanner: Optional[LexicalScanner] = None,
        worker_pool: Optional[WorkerPool] = None,
    ):
        self.settings = settings or IngestionSettings()
        self.translator = translator or AttributeTranslator()
        self.scanner = scanner or LexicalScanner()
        self.worker_pool = worker_pool
        self.state = IngestionState.IDLE

    # ─── validation ───

    def validate(self, document: Union[str, dict]) -> Tuple[str, int, list]:
        """回傳 (清理後 markup, 原始 byte 大小, warnings)；不合格直接拋 ValidationError."""
        if isinstance(document, dict):
            raise TypeError("validate() only accepts markup; dict documents go through ingest()")
        if not isinstance(document, str) or not document.strip():
            raise ValidationError("Document must be a non-empty string or Figma JSON object", code="EMPTY_INPUT")

        size = len(document.encode("utf-8"))
        if size > self.settings.max_file_size:
            raise SizeLimitError(size, self.settings.max_file_size)

        cleaned = self.scanner.normalize(document)
        if not self.scanner.has_svg_element(cleaned):
            raise ValidationError(
                "Invalid SVG: no <svg> element found",
                code="NO_SVG_ELEMENTS",
                user_message="The input does not contain an <svg> element.",
            )

        warnings = []
        open_tags, close_tags, _ = self.scanner.tag_balance(cleaned)
        if open_tags != close_tags:
            cleaned = self.scanner.repair_void_elements(cleaned)
            warnings.append(
                f"Unbalanced markup ({open_tags} open vs {close_tags} close tags); "
                "void-like elements were made self-closing"
            )
            if not self.scanner.is_balanced(cleaned):
                warnings.append("Markup is still unbalanced after repair; unclosed elements are closed at end of input")
        return cleaned, size, warnings

    def validate_svg(self, text) -> dict:
        """不拋例外的檢查報告 {valid, errors, warnings}."""
        errors, warnings = [], []
        if not text or not isinstance(text, str):
            return {"valid": False, "errors": ["SVG must be a non-empty string"], "warnings": warnings}
        if not self.scanner.has_svg_element(text):
            errors.append("Invalid SVG: no <svg> element found")
        size = len(text.encode("utf-8"))
        if size > 5 * MB:
            warnings.append("Very large SVG detected, conversion may be slow")
        elif size > MB:
            warnings.append("Large SVG detected, consider optimization")
        if "<script" in text:
            warnings.append("Script tags detected, they will be removed for security")
        if "xlink:href" in text:
            warnings.append("xlink:href attributes will be converted to xlinkHref")
        return {"valid": not errors, "errors": errors, "warnings": warnings}

    # ─── ingestion ───

    async def ingest(
        self,
        document: Union[str, dict],
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> IngestionResult:
        report = on_progress or (lambda pct, label: None)
        token = cancel_token or CancellationToken()
        started = time.perf_counter()
        self.state = IngestionState.VALIDATING
        try:
            if isinstance(document, dict):
                result = await self._ingest_figma(document, report, token, started)
            else:
                result = await self._ingest_markup(document, report, token, started)
        except CancellationError:
            self.state = IngestionState.CANCELLED
            raise
        except Exception:
            self.state = IngestionState.FAILED
            raise
        self.state = IngestionState.DONE
        result.state = self.state
        report(100, "Processing complete!")
        return result

    async def _ingest_figma(self, document: dict, report, token, started) -> IngestionResult:
        size = len(json.dumps(document, ensure_ascii=False).encode("utf-8"))
        if size > self.settings.max_file_size:
            raise SizeLimitError(size, self.settings.max_file_size)
        report(5, "Initializing document processing...")
        normalized = normalize_figma_data(document)
        report(10, f"Validated Figma document ({normalized['structure']} structure)")
        token.raise_if_cancelled()

        self.state = IngestionState.SYNC_PROCESSING
        report(20, "Converting Figma nodes...")
        tree = FigmaToSource().convert(normalized)
        await asyncio.sleep(0)
        token.raise_if_cancelled()

        report(80, "Rendering markup...")
        markup = render_svg(tree)
        report(95, "Final optimization...")
        return IngestionResult(
            tree=tree,
            markup=markup,
            metrics=self._metrics(size, markup, started, chunks=0),
            figma=normalized,
        )

    async def _ingest_markup(self, document: str, report, token, started) -> IngestionResult:
        cleaned, size, warnings = self.validate(document)
        report(5, "Initializing document processing...")
        report(10, "Validating SVG structure...")
        token.raise_if_cancelled()

        if size < self.settings.large_file_threshold:
            self.state = IngestionState.SYNC_PROCESSING
            report(20, "Processing SVG...")
            combined = await self._transform_chunk(cleaned)
            chunk_count = 1
        else:
            self.state = IngestionState.CHUNKED_PROCESSING
            report(20, "Chunking SVG content...")
            chunks = self.scanner.split_chunks(cleaned, self.settings.max_chunk_size)
            warnings.append(f"Large SVG detected ({size / 1024:.1f}KB), processed in {len(chunks)} chunks")
            processed = []
            total = len(chunks)
            for i, chunk in enumerate(chunks, start=1):
                token.raise_if_cancelled()
                processed.append(await self._transform_chunk(chunk.text))
                await asyncio.sleep(0)
                report(30 + 40 * i / total, f"Processing chunk {i}/{total}")
            token.raise_if_cancelled()
            combined = "".join(processed)
            chunk_count = total

        report(80, "Combining and optimizing...")
        markup = self.scanner.optimize_markup(combined)
        report(95, "Final optimization...")
        tree = self.scanner.parse_markup(markup)
        return IngestionResult(
            tree=tree,
            markup=markup,
            metrics=self._metrics(size, markup, started, chunks=chunk_count),
            warnings=tuple(warnings),
        )

    async def _transform_chunk(self, text: str) -> str:
        if self.worker_pool is not None:
            return await self.worker_pool.submit(TaskType.TRANSFORM, text)
        return self.scanner.optimize_markup(self.translator.translate_markup_attributes(text))

    def _metrics(self, original_size: int, markup: str, started: float, chunks: int) -> dict:
        processed_size = len(markup.encode("utf-8"))
        return {
            "original_size": original_size,
            "processed_size": processed_size,
            "compression_ratio": ((original_size - processed_size) / original_size * 100) if original_size else 0.0,
            "processing_time_ms": (time.perf_counter() - started) * 1000,
            "chunks_processed": chunks,
        }
