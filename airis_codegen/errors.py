"""錯誤分類：每個例外都帶機器可讀的 code 與給使用者看的訊息。"""

from typing import Optional

import requests


class CodegenError(Exception):
    """所有 pipeline 錯誤的基底類別."""

    code = "CODEGEN_ERROR"
    default_user_message = "An unexpected error occurred during code generation."

    def __init__(self, message: str, code: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code
        self.user_message = user_message or self.default_user_message


class ValidationError(CodegenError):
    """輸入格式錯誤或過大，在處理開始前就被擋下（不自動重試）。"""

    code = "VALIDATION_ERROR"
    default_user_message = "The design document could not be read. Please check the input and try again."


class SizeLimitError(ValidationError):
    code = "SIZE_LIMIT_EXCEEDED"

    def __init__(self, size: int, limit: int):
        mb = 1024 * 1024
        super().__init__(
            f"File too large: {size / mb:.1f}MB exceeds {limit / mb:.1f}MB limit",
            user_message=f"The document is too large ({size / mb:.1f}MB). The limit is {limit / mb:.1f}MB.",
        )
        self.size = size
        self.limit = limit


class PhaseError(CodegenError):
    """某個 orchestration 階段失敗；session 直接進入 FAILED。"""

    code = "PHASE_ERROR"
    default_user_message = "Code generation failed. Please try again with a different design."

    def __init__(self, phase: str, message: str, code: Optional[str] = None):
        super().__init__(f"[{phase}] {message}", code=code)
        self.phase = phase


class CancellationError(CodegenError):
    code = "CANCELLED"
    default_user_message = "Processing cancelled by user."


class WorkerTimeoutError(CodegenError):
    code = "WORKER_TIMEOUT"
    default_user_message = "A background task took too long and was stopped."

    def __init__(self, task_id: str, timeout: float):
        super().__init__(f"Worker task {task_id} timed out after {timeout:.1f}s")
        self.task_id = task_id
        self.timeout = timeout


def describe_error(error: BaseException) -> str:
    """把任何例外轉成人看得懂的一句話（對應 UI 的錯誤提示）."""
    if isinstance(error, CodegenError):
        return error.user_message

    if isinstance(error, requests.HTTPError):
        status = getattr(error.response, "status_code", None)
        if status == 401:
            return "Invalid access token. Please check your Figma Personal Access Token."
        if status == 403:
            return "Access denied. Please ensure you have permission to access this Figma file."
        if status == 404:
            return "Figma file not found. Please check the URL and try again."
        if status == 429:
            return "Too many requests. Please wait a moment and try again."
    if isinstance(error, requests.ConnectionError):
        return "Network error. Please check your internet connection and try again."

    return str(error) or "An unexpected error occurred"
