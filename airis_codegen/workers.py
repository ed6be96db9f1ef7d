"""
Worker channel — typed request/response over asyncio queues

CPU 密集的子工作（chunk 轉換等）丟到背景執行緒：
    submit() → WorkerRequest 進 request queue → worker 以 asyncio.to_thread 執行 handler
    → WorkerResponse 進 response queue → dispatcher 依 task_id 找回 pending future。
每個 task 都有 timeout；逾時就從 pending 表移除，之後才到的 response 直接丟棄。
"""

import asyncio
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .errors import CancellationError, PhaseError, WorkerTimeoutError


class CancellationToken:
    """協作式取消：呼叫端 cancel()，下一個 suspension point 才會真的中止."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError("Processing cancelled by user")


class TaskType(str, Enum):
    PARSE = "parse"
    TRANSFORM = "transform"
    OPTIMIZE = "optimize"
    VALIDATE = "validate"


@dataclass(frozen=True)
class WorkerRequest:
    task_id: str
    type: TaskType
    payload: Any


@dataclass(frozen=True)
class WorkerResponse:
    task_id: str
    outcome: str  # success | error
    result: Any = None
    error: Optional[str] = None


Handler = Callable[[Any], Any]


class WorkerPool:
    """背景 worker 池；一個 event loop 上使用，換 loop 時自動重建 queue 與 task."""

    def __init__(self, handlers: Dict[TaskType, Handler], workers: int = 1, timeout: float = 30.0):
        self.handlers = dict(handlers)
        self.workers = max(1, workers)
        self.timeout = timeout
        self.late_responses = 0
        self._ids = itertools.count(1)
        self._pending: Dict[str, asyncio.Future] = {}
        self._requests: Optional[asyncio.Queue] = None
        self._responses: Optional[asyncio.Queue] = None
        self._tasks: list = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        if self._loop is loop and self._tasks:
            return
        self._loop = loop
        self._pending.clear()
        self._requests = asyncio.Queue()
        self._responses = asyncio.Queue()
        self._tasks = [asyncio.create_task(self._worker_loop()) for _ in range(self.workers)]
        self._tasks.append(asyncio.create_task(self._dispatch_loop()))

    async def close(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()
        self._loop = None

    async def __aenter__(self) -> "WorkerPool":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def submit(self, task_type: TaskType, payload: Any, timeout: Optional[float] = None) -> Any:
        """送出一個 task 並等待結果；逾時拋 WorkerTimeoutError，handler 失敗拋 PhaseError."""
        await self.start()
        task_id = f"task-{next(self._ids)}"
        future = asyncio.get_running_loop().create_future()
        self._pending[task_id] = future
        await self._requests.put(WorkerRequest(task_id, TaskType(task_type), payload))

        limit = self.timeout if timeout is None else timeout
        try:
            response: WorkerResponse = await asyncio.wait_for(asyncio.shield(future), limit)
        except asyncio.TimeoutError:
            raise WorkerTimeoutError(task_id, limit) from None
        finally:
            self._pending.pop(task_id, None)

        if response.outcome != "success":
            raise PhaseError(
                TaskType(task_type).value,
                f"Worker task {task_id} failed: {response.error}",
                code="WORKER_ERROR",
            )
        return response.result

    # ─── loops ───

    async def _worker_loop(self) -> None:
        while True:
            request: WorkerRequest = await self._requests.get()
            handler = self.handlers.get(request.type)
            if handler is None:
                response = WorkerResponse(request.task_id, "error", error=f"No handler for task type {request.type.value}")
            else:
                try:
                    result = await asyncio.to_thread(handler, request.payload)
                    response = WorkerResponse(request.task_id, "success", result=result)
                except Exception as e:
                    response = WorkerResponse(request.task_id, "error", error=f"{type(e).__name__}: {e}")
            await self._responses.put(response)

    async def _dispatch_loop(self) -> None:
        while True:
            response: WorkerResponse = await self._responses.get()
            future = self._pending.pop(response.task_id, None)
            if future is None:
                # 已逾時被清掉的 task
                self.late_responses += 1
                continue
            if not future.done():
                future.set_result(response)


def default_handlers(translator, scanner) -> Dict[TaskType, Handler]:
    """markup 處理用的標準 handler 組."""
    return {
        TaskType.PARSE: scanner.parse_markup,
        TaskType.TRANSFORM: lambda text: scanner.optimize_markup(translator.translate_markup_attributes(text)),
        TaskType.OPTIMIZE: scanner.optimize_markup,
        TaskType.VALIDATE: lambda text: {
            "balanced": scanner.is_balanced(text),
            "elements": scanner.count_elements(text),
        },
    }
