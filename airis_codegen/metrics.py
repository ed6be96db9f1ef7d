"""Metrics Calculator — 純函數：同樣的檔案與時間輸入，得到同樣的 CodeMetrics。"""

import time
from typing import Optional, Sequence

from .markup import LexicalScanner
from .models import CodeFile, CodeMetrics

COMPONENT_DIRS = ("src/components/", "src/app/")
_TEST_MARKERS = ("__tests__/", ".test.", ".spec.")
_NON_COMPONENT_LANGUAGES = ("css", "scss", "json")


def is_component_file(file: CodeFile) -> bool:
    return file.path.startswith(COMPONENT_DIRS) and not any(m in file.path for m in _TEST_MARKERS)


def primary_component(files: Sequence[CodeFile]) -> Optional[CodeFile]:
    """第一個元件檔；沒有的話取第一個非樣式/設定檔（html 輸出的 index.html）."""
    for file in files:
        if is_component_file(file) and file.language not in _NON_COMPONENT_LANGUAGES and ".module." not in file.path:
            return file
    for file in files:
        if file.language not in _NON_COMPONENT_LANGUAGES:
            return file
    return None


class MetricsCalculator:

    def __init__(self, scanner: Optional[LexicalScanner] = None):
        self.scanner = scanner or LexicalScanner()

    def calculate(self, files: Sequence[CodeFile], start_time_ms: float, now_ms: Optional[float] = None) -> CodeMetrics:
        if now_ms is None:
            now_ms = time.time() * 1000
        primary = primary_component(files)
        if primary is not None:
            complexity = self.scanner.complexity(primary.content)
            primary_loc = self.scanner.line_count(primary.content)
            maintainability = max(0.0, min(100.0, 100 - complexity * 2 - primary_loc / 10))
            duplicates = self.scanner.duplicate_lines(primary.content)
        else:
            complexity, maintainability, duplicates = 1, 80.0, 0

        return CodeMetrics(
            lines_of_code=sum(self.scanner.line_count(f.content) for f in files),
            component_count=sum(1 for f in files if is_component_file(f)),
            total_size=sum(f.size for f in files),
            complexity=complexity,
            maintainability_index=round(maintainability, 2),
            duplicate_lines=duplicates,
            generation_time_ms=max(0.0, now_ms - start_time_ms),
        )
