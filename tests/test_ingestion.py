"""
DocumentIngestor 測試：驗證、大小上限、同步 / 分塊路徑一致性、進度、取消、Figma dict 輸入。
"""
import asyncio

import pytest

from airis_codegen.errors import CancellationError, SizeLimitError, ValidationError
from airis_codegen.ingestion import DocumentIngestor, IngestionSettings, IngestionState
from airis_codegen.markup import LexicalScanner
from airis_codegen.models import iter_elements
from airis_codegen.translator import AttributeTranslator
from airis_codegen.workers import CancellationToken, WorkerPool, default_handlers

MB = 1024 * 1024
RECT = '<rect x="1" y="2" width="3" height="4" class="cell"/>'


def make_svg(target_bytes: int) -> str:
    count = target_bytes // len(RECT) + 1
    return '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10">' + RECT * count + "</svg>"


def ingest(ingestor, document, **kwargs):
    return asyncio.run(ingestor.ingest(document, **kwargs))


def element_count(result) -> int:
    return sum(1 for _ in iter_elements(result.tree))


# ─── validation ─────────────────────────────────────────────────────────────

class TestValidation:

    def test_empty_input_rejected(self):
        with pytest.raises(ValidationError) as exc:
            ingest(DocumentIngestor(), "   ")
        assert exc.value.code == "EMPTY_INPUT"

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError):
            ingest(DocumentIngestor(), None)

    def test_markup_without_svg_rejected(self):
        with pytest.raises(ValidationError) as exc:
            ingest(DocumentIngestor(), "<div><p>hello</p></div>")
        assert exc.value.code == "NO_SVG_ELEMENTS"

    def test_size_limit_fails_before_any_work(self):
        translator = AttributeTranslator()
        ingestor = DocumentIngestor(IngestionSettings(max_file_size=100), translator=translator)
        progress = []
        with pytest.raises(SizeLimitError) as exc:
            ingest(ingestor, make_svg(500), on_progress=lambda p, l: progress.append(p))
        assert isinstance(exc.value, ValidationError)
        assert exc.value.limit == 100
        assert progress == []
        assert translator.cache_stats()["entries"] == 0
        assert ingestor.state == IngestionState.FAILED

    def test_unbalanced_markup_is_repaired_with_warning(self):
        result = ingest(DocumentIngestor(), '<svg><rect width="1"></svg>')
        assert any("Unbalanced" in w for w in result.warnings)
        assert result.tree.tag == "svg"
        assert [c.tag for c in result.tree.children] == ["rect"]

    def test_validate_svg_report_never_raises(self):
        ingestor = DocumentIngestor()
        assert ingestor.validate_svg("")["valid"] is False
        report = ingestor.validate_svg('<svg><script>x</script><use xlink:href="#a"/></svg>')
        assert report["valid"] is True
        assert len(report["warnings"]) == 2


# ─── routing & parity ───────────────────────────────────────────────────────

class TestChunking:

    def test_small_document_takes_sync_path(self):
        result = ingest(DocumentIngestor(), '<svg class="a"><rect/></svg>')
        assert result.metrics["chunks_processed"] == 1
        assert result.state == IngestionState.DONE
        assert result.tree.attributes == {"className": "a"}

    def test_large_document_chunked_matches_sync_parse(self):
        document = make_svg(2 * MB)
        size = len(document.encode("utf-8"))

        progress = []
        chunked = ingest(DocumentIngestor(), document, on_progress=lambda p, l: progress.append(p))

        direct_settings = IngestionSettings(max_file_size=10 * MB, large_file_threshold=size + 1)
        direct = ingest(DocumentIngestor(direct_settings), document)

        assert chunked.metrics["chunks_processed"] >= 2
        assert direct.metrics["chunks_processed"] == 1
        assert element_count(chunked) == element_count(direct)
        assert chunked.markup == direct.markup
        assert progress == sorted(progress)
        assert progress[-1] == 100

    def test_chunk_progress_labels(self):
        settings = IngestionSettings(large_file_threshold=200, max_chunk_size=128)
        labels = []
        ingest(DocumentIngestor(settings), make_svg(1000), on_progress=lambda p, l: labels.append(l))
        chunk_labels = [l for l in labels if l.startswith("Processing chunk")]
        assert chunk_labels[0] == f"Processing chunk 1/{len(chunk_labels)}"
        assert chunk_labels[-1] == f"Processing chunk {len(chunk_labels)}/{len(chunk_labels)}"

    def test_worker_pool_path_matches_local_path(self):
        settings = IngestionSettings(large_file_threshold=200, max_chunk_size=128)
        document = make_svg(2000)
        translator, scanner = AttributeTranslator(), LexicalScanner()

        async def run_with_pool():
            async with WorkerPool(default_handlers(translator, scanner)) as pool:
                return await DocumentIngestor(settings, translator, scanner, pool).ingest(document)

        pooled = asyncio.run(run_with_pool())
        local = ingest(DocumentIngestor(settings), document)
        assert pooled.markup == local.markup
        assert element_count(pooled) == element_count(local)


# ─── cancellation ───────────────────────────────────────────────────────────

class TestCancellation:

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        ingestor = DocumentIngestor()
        with pytest.raises(CancellationError):
            ingest(ingestor, "<svg><rect/></svg>", cancel_token=token)
        assert ingestor.state == IngestionState.CANCELLED

    def test_cancelled_between_chunks(self):
        settings = IngestionSettings(large_file_threshold=200, max_chunk_size=128)
        token = CancellationToken()
        seen = []

        def on_progress(pct, label):
            seen.append(label)
            if label.startswith("Processing chunk 1/"):
                token.cancel()

        ingestor = DocumentIngestor(settings)
        with pytest.raises(CancellationError):
            ingest(ingestor, make_svg(2000), on_progress=on_progress, cancel_token=token)
        assert ingestor.state == IngestionState.CANCELLED
        assert not any(l.startswith("Processing chunk 2/") for l in seen)
        assert "Processing complete!" not in seen


# ─── Figma documents ────────────────────────────────────────────────────────

def test_figma_dict_is_converted():
    doc = {"document": {"children": [{
        "id": "1:1", "type": "RECTANGLE", "name": "Box",
        "absoluteBoundingBox": {"x": 0, "y": 0, "width": 20, "height": 10},
    }]}}
    result = ingest(DocumentIngestor(), doc)
    assert result.tree.tag == "svg"
    assert result.tree.children[0].tag == "rect"
    assert result.figma["structure"] == "direct"
    assert result.metrics["chunks_processed"] == 0
    assert result.markup.startswith("<svg")


def test_figma_dict_size_limit():
    doc = {"children": [{"id": str(i), "type": "RECTANGLE"} for i in range(50)]}
    with pytest.raises(SizeLimitError):
        ingest(DocumentIngestor(IngestionSettings(max_file_size=100)), doc)
