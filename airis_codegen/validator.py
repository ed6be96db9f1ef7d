"""Build validator — 對組裝好的檔案做幾項便宜的檢查，產出 BuildLog 並決定 build_status。"""

import re
from typing import List, Sequence, Tuple

from .models import BuildLog, CodeFile, TransformConfig

_REACT_USAGE_RE = re.compile(r"React\.|useState|useEffect")
_INTERFACE_RE = re.compile(r"interface\s+\w+")


class CodeValidator:

    def validate(self, files: Sequence[CodeFile], config: TransformConfig) -> List[BuildLog]:
        logs: List[BuildLog] = []
        for file in files:
            if not file.content.strip():
                logs.append(BuildLog("warn", "File is empty", file.path))
                continue

            if file.path.endswith((".tsx", ".jsx")) and _REACT_USAGE_RE.search(file.content) \
                    and "react" not in file.imports:
                logs.append(BuildLog("warn", "Missing import: react", file.path))

            if config.typescript and file.language == "typescript":
                for issue in self._typescript_issues(file.content):
                    logs.append(BuildLog("error", issue, file.path))

        logs.append(BuildLog("info", f"Validated {len(files)} files"))
        return logs

    def _typescript_issues(self, content: str) -> List[str]:
        issues = []
        if ": React.FC" in content and "import React" not in content:
            issues.append("React import missing for React.FC type")
        if _INTERFACE_RE.search(content) and "export" not in content:
            issues.append("Interface defined but not exported")
        return issues


def build_status(logs: Sequence[BuildLog]) -> Tuple[str, Tuple[BuildLog, ...]]:
    levels = {log.level for log in logs}
    if "error" in levels:
        status = "error"
    elif "warn" in levels:
        status = "warning"
    else:
        status = "success"
    return status, tuple(logs)
