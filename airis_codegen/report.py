"""
輸出輔助

把 GeneratedCode 寫到磁碟：產生的檔案照 path 放、preview.html，
以及一份 generation-report.json（品質、指標、pattern 摘要）。
"""

import json
import os
from dataclasses import asdict
from datetime import timezone
from typing import List

from .models import GeneratedCode

REPORT_NAME = "generation-report.json"
PREVIEW_NAME = "preview.html"


def write_generated_files(result: GeneratedCode, output_dir: str) -> List[str]:
    """依 CodeFile.path 寫出所有檔案，回傳實際寫入的路徑."""
    written = []
    root = os.path.abspath(output_dir)
    for file in result.files:
        path = os.path.abspath(os.path.join(root, file.path))
        if os.path.commonpath([root, path]) != root:
            raise ValueError(f"Refusing to write outside output directory: {file.path}")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(file.content)
        written.append(path)
    return written


def build_report(result: GeneratedCode) -> dict:
    timestamp = result.timestamp
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone(timezone.utc)
    return {
        "id": result.id,
        "generatedAt": timestamp.isoformat(),
        "framework": result.config.framework,
        "styling": result.config.styling,
        "typescript": result.config.typescript,
        "componentName": result.config.component_name,
        "buildStatus": result.build_status,
        "quality": {
            "overall": result.quality.overall,
            "categories": dict(result.quality.categories),
            "issues": [asdict(i) for i in result.quality.issues],
            "recommendations": list(result.quality.recommendations),
        },
        "metrics": asdict(result.metrics),
        "files": [{"path": f.path, "language": f.language, "size": f.size} for f in result.files],
        "patterns": [
            {"type": p.type, "confidence": p.confidence, "nodeId": p.node_id, "nodeName": p.node_name}
            for p in result.patterns
        ],
        "buildLogs": [asdict(log) for log in result.build_logs],
    }


def write_generation_report(result: GeneratedCode, output_dir: str) -> str:
    path = os.path.join(output_dir, REPORT_NAME)
    os.makedirs(output_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_report(result), f, indent=2, ensure_ascii=False)
    return path


def write_preview(result: GeneratedCode, output_dir: str) -> str:
    path = os.path.join(output_dir, PREVIEW_NAME)
    os.makedirs(output_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(result.preview)
    return path
