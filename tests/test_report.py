"""
輸出輔助測試：寫檔、報告、preview。
"""
import json
from dataclasses import replace

import pytest

from airis_codegen.assembler import CodeAssembler
from airis_codegen.engine import CodeGenerationEngine
from airis_codegen.models import TransformConfig
from airis_codegen.report import (
    PREVIEW_NAME,
    REPORT_NAME,
    build_report,
    write_generated_files,
    write_generation_report,
    write_preview,
)


@pytest.fixture(scope="module")
def result():
    svg = '<svg viewBox="0 0 10 10"><rect width="10" height="10" fill="red"/></svg>'
    return CodeGenerationEngine().generate_sync(svg, TransformConfig(component_name="Box", unit_tests=True))


def test_write_generated_files(result, tmp_path):
    written = write_generated_files(result, str(tmp_path))
    assert len(written) == len(result.files)
    assert (tmp_path / "src" / "components" / "Box.tsx").read_text(encoding="utf-8") == result.files[0].content
    assert (tmp_path / "src" / "components" / "__tests__" / "Box.test.tsx").exists()


def test_refuses_paths_outside_output_dir(result, tmp_path):
    evil = CodeAssembler().make_file("../evil.txt", "x")
    with pytest.raises(ValueError):
        write_generated_files(replace(result, files=(evil,)), str(tmp_path / "out"))
    assert not (tmp_path / "evil.txt").exists()


def test_build_report(result):
    report = build_report(result)
    assert report["id"] == result.id
    assert report["componentName"] == "Box"
    assert report["quality"]["overall"] == result.quality.overall
    assert set(report["quality"]["categories"]) == {
        "visual", "code", "performance", "accessibility", "maintainability", "security",
    }
    assert report["metrics"]["component_count"] == 1
    assert report["generatedAt"].endswith("+00:00")
    json.dumps(report)


def test_write_report_and_preview(result, tmp_path):
    report_path = write_generation_report(result, str(tmp_path / "out"))
    preview_path = write_preview(result, str(tmp_path / "out"))
    assert report_path.endswith(REPORT_NAME)
    assert preview_path.endswith(PREVIEW_NAME)
    assert json.loads(open(report_path, encoding="utf-8").read())["buildStatus"] == result.build_status
    assert "Component Preview" in open(preview_path, encoding="utf-8").read()
