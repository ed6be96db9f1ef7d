"""
CodeValidator / build_status 測試
"""
from airis_codegen.assembler import CodeAssembler
from airis_codegen.models import BuildLog, TransformConfig
from airis_codegen.validator import CodeValidator, build_status

make_file = CodeAssembler().make_file


def messages(logs, level=None):
    return [log.message for log in logs if level is None or log.level == level]


def test_empty_file_warns():
    logs = CodeValidator().validate([make_file("src/components/A.tsx", "  ")], TransformConfig())
    assert logs[0] == BuildLog("warn", "File is empty", "src/components/A.tsx")
    assert logs[-1] == BuildLog("info", "Validated 1 files")
    assert build_status(logs)[0] == "warning"


def test_missing_react_import():
    code = "const A = () => { useState(0); };"
    logs = CodeValidator().validate([make_file("src/components/A.jsx", code)], TransformConfig(typescript=False))
    assert messages(logs, "warn") == ["Missing import: react"]

    fixed = "import React, { useState } from 'react';\n" + code
    logs = CodeValidator().validate([make_file("src/components/A.jsx", fixed)], TransformConfig(typescript=False))
    assert messages(logs, "warn") == []


def test_typescript_issues_are_errors():
    code = "interface P {}\nconst A: React.FC<P> = () => null;\n"
    logs = CodeValidator().validate([make_file("src/components/A.tsx", code)], TransformConfig())
    assert messages(logs, "error") == [
        "React import missing for React.FC type",
        "Interface defined but not exported",
    ]
    status, frozen = build_status(logs)
    assert status == "error"
    assert isinstance(frozen, tuple)


def test_typescript_checks_skipped_without_typescript():
    code = "interface P {}\nconst A: React.FC<P> = () => null;\n"
    logs = CodeValidator().validate([make_file("src/components/A.tsx", code)], TransformConfig(typescript=False))
    assert messages(logs, "error") == []


def test_generated_react_component_is_clean():
    code = (
        "import React from 'react';\n\n"
        "interface AProps {}\n\n"
        "const A: React.FC<AProps> = () => null;\n\n"
        "export default A;\n"
    )
    logs = CodeValidator().validate([make_file("src/components/A.tsx", code)], TransformConfig())
    assert build_status(logs)[0] == "success"
    assert messages(logs) == ["Validated 1 files"]


def test_build_status_precedence():
    assert build_status([])[0] == "success"
    assert build_status([BuildLog("info", "x"), BuildLog("warn", "y")])[0] == "warning"
    assert build_status([BuildLog("warn", "y"), BuildLog("error", "z")])[0] == "error"
