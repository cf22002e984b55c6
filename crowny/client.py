"""Client for submitting tasks and running multi-source ternary consensus."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from threading import Lock
from typing import Any

from crowny.config import ClientConfig
from crowny.header import ProtocolHeader
from crowny.schemas import (
    AppTask,
    ClientStats,
    ConsensusResult,
    SourceResult,
    TaskResult,
    TaskType,
    elapsed_ms_since,
)
from crowny.transport import HttpTransport, Transport, TransportError
from crowny.trit import Trit, consensus, parse_status

logger = logging.getLogger(__name__)

# Response body keys carrying the ternary status, tried in order
STATUS_KEYS = ("상태", "state", "status")


def parse_response_state(body: dict[str, Any]) -> Trit:
    """Read the ternary status from the first status key present in a body.

    Absent or ambiguous status resolves to Pending.
    """
    for key in STATUS_KEYS:
        if key in body:
            return parse_status(body[key])
    return Trit.PENDING


class CrownyClient:
    """Entry point for work sent to the remote crowny service.

    The task counter, the bounded result history and the last response
    header are shared by every submit, including the concurrent calls made
    by consensus_call, and are only touched under one lock.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        header: ProtocolHeader | None = None,
        on_result: Callable[[TaskResult], None] | None = None,
    ):
        """Initialize the client.

        Args:
            config: Client settings (defaults to ClientConfig())
            transport: Collaborator carrying each task (defaults to HttpTransport)
            header: Protocol header sent with every request
            on_result: Optional callback invoked with every recorded result
        """
        self.config = config or ClientConfig()
        self.transport = transport or HttpTransport(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
        )
        self.header = header or ProtocolHeader.all_success()
        self._on_result = on_result

        self._lock = Lock()
        self._task_counter = 0
        self._history: deque[TaskResult] = deque(maxlen=self.config.history_limit)
        self._last_header: ProtocolHeader | None = None

    # --- Submission ---

    def submit(self, task: AppTask) -> TaskResult:
        """Send a task to the remote service.

        Never raises: transport failures come back as a Failed result whose
        data describes the error. Every result is recorded in the history.

        Args:
            task: The task to submit

        Returns:
            TaskResult for this submission
        """
        task_id = self._next_task_id()
        start = time.monotonic()
        logger.info(f"Submitting task {task_id}: type={task.type.value}, subject={task.subject}")

        response_header = None
        try:
            response = self.transport.send(task.to_request_body(), self.header)
        except TransportError as e:
            logger.warning(f"Task {task_id} failed: {e}")
            result = TaskResult(
                state=Trit.FAILED,
                data=str(e),
                elapsed_ms=elapsed_ms_since(start),
                task_id=task_id,
            )
        except Exception as e:
            logger.error(f"Unexpected transport failure for task {task_id}: {e}", exc_info=True)
            result = TaskResult(
                state=Trit.FAILED,
                data=f"{type(e).__name__}: {e}",
                elapsed_ms=elapsed_ms_since(start),
                task_id=task_id,
            )
        else:
            response_header = response.header
            result = TaskResult(
                state=parse_response_state(response.body),
                data=response.body,
                elapsed_ms=elapsed_ms_since(start),
                task_id=task_id,
            )

        self._record(result, response_header)
        logger.info(f"Completed task {task_id}: state={result.state.value}, elapsed={result.elapsed_ms}ms")
        return result

    def run(self, source: str) -> TaskResult:
        """Execute program source on the remote service."""
        return self.submit(AppTask(type=TaskType.EXECUTE, subject=self.config.subject, payload=source))

    def compile(self, source: str) -> TaskResult:
        """Compile program source on the remote service."""
        return self.submit(AppTask(type=TaskType.COMPILE, subject=self.config.subject, payload=source))

    def ask(self, prompt: str, source: str | None = None) -> TaskResult:
        """Send a prompt to one language-model source."""
        return self.submit(
            AppTask(
                type=TaskType.LLM,
                subject=source or self.config.default_model,
                payload=prompt,
            )
        )

    # --- Consensus ---

    def consensus_call(
        self,
        prompt: str,
        sources: Sequence[str] | None = None,
    ) -> ConsensusResult:
        """Ask every source concurrently and take a ternary majority vote.

        Waits for every source to settle; one failing or slow source never
        cancels the others. Results keep the dispatch order of `sources`.

        Args:
            prompt: Prompt sent to each source
            sources: Source names (defaults to config.default_sources)

        Returns:
            ConsensusResult with the vote, per-source results and header
        """
        names = list(sources) if sources else list(self.config.default_sources)
        start = time.monotonic()
        logger.info(f"Consensus call across {len(names)} sources: {', '.join(names)}")

        max_workers = self.config.max_workers or len(names)
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crowny-consensus") as pool:
            futures = [pool.submit(self.ask, prompt, name) for name in names]
            wait(futures)

        per_source = [
            SourceResult(source=name, result=future.result())
            for name, future in zip(names, futures)
        ]
        trits = [entry.result.state for entry in per_source]
        vote = consensus(trits)

        logger.info(f"Consensus {vote.value} from trits {''.join(t.value for t in trits)}")
        return ConsensusResult(
            consensus=vote,
            per_source=per_source,
            trits=trits,
            header=ProtocolHeader.from_trits([vote, *trits]),
            elapsed_ms=elapsed_ms_since(start),
        )

    # --- Status ---

    def ping(self) -> TaskResult:
        """Check that the remote service is reachable. Not recorded in history."""
        start = time.monotonic()
        try:
            data = self.transport.ping()
        except TransportError as e:
            logger.warning(f"Ping failed: {e}")
            return TaskResult(state=Trit.FAILED, data=str(e), elapsed_ms=elapsed_ms_since(start))
        return TaskResult(state=Trit.SUCCESS, data=data, elapsed_ms=elapsed_ms_since(start))

    @property
    def last_header(self) -> ProtocolHeader | None:
        """Most recent protocol header reported by the service."""
        with self._lock:
            return self._last_header

    def history(self) -> list[TaskResult]:
        """Return a copy of the recorded results, oldest first."""
        with self._lock:
            return list(self._history)

    def stats(self) -> ClientStats:
        """Count recorded results by state."""
        with self._lock:
            states = [r.state for r in self._history]

        return ClientStats(
            total=len(states),
            success=states.count(Trit.SUCCESS),
            pending=states.count(Trit.PENDING),
            failed=states.count(Trit.FAILED),
        )

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    # --- Internal ---

    def _next_task_id(self) -> int:
        with self._lock:
            self._task_counter += 1
            return self._task_counter

    def _record(self, result: TaskResult, response_header: ProtocolHeader | None) -> None:
        with self._lock:
            self._history.append(result)
            if response_header is not None:
                self._last_header = response_header

        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception as e:
                logger.error(f"on_result callback failed for task {result.task_id}: {e}", exc_info=True)
