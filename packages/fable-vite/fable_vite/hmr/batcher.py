"""
변경 이벤트 배처 - 짧은 윈도우 내 변경 알림을 하나의 재컴파일로 병합.

Bundlers report one logical edit several times (watcher + hot-update hook,
save + formatter touch). Events arriving within a fixed window reduce into one
PendingChangeBatch and the batch triggers exactly one recompilation:
- project file / dependent file in the batch -> full recompile
- otherwise -> recompile of the union of changed source files

Dispatches never overlap: while one is in flight, every new event collects
into a single next batch that dispatches once the current one finishes, so
the daemon sees one request at a time.
"""

import asyncio
from dataclasses import replace

from fable_vite.daemon.protocol import Diagnostic
from fable_vite.hmr.events import ChangeEvent, PendingChangeBatch
from fable_vite.hmr.signal import CompletionSignal
from fable_vite.infra.observability import get_logger
from fable_vite.paths import normalize_path
from fable_vite.project.state import ProjectState

logger = get_logger(__name__)


class ChangeBatcher:
    """
    변경 이벤트 배처.

    사용 예:
        batcher = ChangeBatcher(state, window_ms=50)
        signal = batcher.push_event(SourceFileChanged("/app/Library.fs"))
        diagnostics = await signal.wait()  # after the batch was recompiled
        await batcher.close()
    """

    def __init__(self, state: ProjectState, window_ms: int = 50):
        """
        Args:
            state: Project state the batches are dispatched to
            window_ms: Batch window (ms), opened by the first event of a batch
        """
        self.state = state
        self.window_ms = window_ms

        self._batch = PendingChangeBatch()
        self._signal: CompletionSignal[list[Diagnostic]] = CompletionSignal()
        self._window_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._dispatch_lock = asyncio.Lock()
        self._closed = False

        self.dispatch_count = 0

    def push_event(self, event: ChangeEvent) -> CompletionSignal[list[Diagnostic]]:
        """
        Add an event to the open batch, opening a window if needed.

        Returns the signal fired when the batch holding this event has been
        dispatched.
        """
        if self._closed:
            logger.warning("change_batcher_closed", path=event.path)
            closed: CompletionSignal[list[Diagnostic]] = CompletionSignal()
            closed.fire([])
            return closed

        event = replace(event, path=normalize_path(event.path))
        self._batch.add(event)

        logger.debug(
            "change_event_queued",
            event_type=type(event).__name__,
            path=event.path,
            pending=self._batch.total_count,
        )

        if self._window_task is None:
            self._window_task = asyncio.create_task(self._run_window())
            self._tasks.add(self._window_task)
            self._window_task.add_done_callback(self._tasks.discard)

        return self._signal

    async def wait_for_dispatch(self) -> list[Diagnostic]:
        """Wait for the open batch to be dispatched (returns at once if none is open)."""
        if self._window_task is None:
            return []
        return await self._signal.wait()

    async def drain(self) -> None:
        """Wait until every open batch and in-flight dispatch has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel open windows and release everyone still waiting."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._signal.fire([])
        self._batch = PendingChangeBatch()
        self._window_task = None
        logger.info("change_batcher_stopped", cancelled=len(tasks))

    def get_pending_count(self) -> int:
        """Number of distinct paths in the open batch."""
        return self._batch.total_count

    def is_idle(self) -> bool:
        return not self._tasks

    # ------------------------------------------------------------------------

    async def _run_window(self) -> None:
        await asyncio.sleep(self.window_ms / 1000)

        signal: CompletionSignal[list[Diagnostic]] | None = None
        diagnostics: list[Diagnostic] = []
        try:
            async with self._dispatch_lock:
                # Close the window only now: events that arrived during the
                # previous dispatch are all part of this batch
                batch, signal = self._batch, self._signal
                self._batch = PendingChangeBatch()
                self._signal = CompletionSignal()
                self._window_task = None

                diagnostics = await self._dispatch(batch)
        except Exception as e:
            logger.error("change_batch_dispatch_failed", error=str(e), exc_info=True)
        finally:
            if signal is not None:
                signal.fire(diagnostics)

    async def _dispatch(self, batch: PendingChangeBatch) -> list[Diagnostic]:
        if batch.is_empty():
            return []

        self.dispatch_count += 1

        if batch.project_changed:
            logger.info(
                "change_batch_dispatched",
                kind="full",
                project_files=sorted(batch.changed_project_files),
                absorbed_source_files=len(batch.changed_source_files),
            )
            return await self.state.full_recompile()

        logger.info("change_batch_dispatched", kind="files", files=sorted(batch.changed_source_files))
        return await self.state.recompile_files(batch.changed_source_files)
