"""
Readiness Module

Blocks until a container prints a given substring on stdout or stderr. The
wait is unbounded unless the caller asks for a timeout or sets the interrupt
event from another thread.

Attach streams block on the socket while the container is silent, so each
stream is drained by a daemon reader thread into a queue. The waiting thread
only ever blocks on that queue for one poll interval at a time.
"""

import codecs
import queue
import threading
import time
from typing import Iterator, Optional

from docker.errors import DockerException

from config import LOG_POLL_INTERVAL
from utils import (
    ContainerExitedError,
    EngineRequestError,
    ReadinessInterruptedError,
    ReadinessTimeoutError,
    logger,
)

_STREAM_END = object()


def attach_log_stream(api, container_id: str) -> Iterator[bytes]:
    """Combined stdout/stderr stream, replaying what was already emitted"""
    return api.attach(container_id, stdout=True, stderr=True, stream=True, logs=True)


class LogStreamReader(threading.Thread):
    """Drains one attach stream into a queue.

    Chunks are queued as they arrive. An error raised by the stream is queued
    as the exception instance, and the end of the stream as _STREAM_END.
    """

    def __init__(self, stream):
        super().__init__(name="log-stream-reader", daemon=True)
        self.stream = stream
        self.chunks = queue.Queue()
        self.closed = False

    def run(self):
        try:
            for chunk in self.stream:
                self.chunks.put(chunk)
        except Exception as e:
            self.chunks.put(e)
        finally:
            self.chunks.put(_STREAM_END)

    def close(self):
        """Release the underlying connection, which also unblocks run()"""
        if self.closed:
            return
        self.closed = True
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()


class LogReadinessWaiter:
    def __init__(
        self,
        poll_interval: float = LOG_POLL_INTERVAL,
        timeout: Optional[float] = None,
        interrupt: Optional[threading.Event] = None,
    ):
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.interrupt = interrupt

    def _check(self, deadline: Optional[float], wait_for: str):
        if self.interrupt is not None and self.interrupt.is_set():
            raise ReadinessInterruptedError()
        if deadline is not None and time.monotonic() >= deadline:
            raise ReadinessTimeoutError(
                f"Log line {wait_for!r} not seen within {self.timeout}s"
            )

    def _attach(self, api, container_id: str) -> LogStreamReader:
        try:
            stream = attach_log_stream(api, container_id)
        except DockerException as e:
            raise EngineRequestError(f"attach failed for {container_id}: {e}", "attach") from e
        reader = LogStreamReader(stream)
        reader.start()
        return reader

    def _ensure_running(self, api, container_id: str, wait_for: str):
        """Fail once the container has stopped, since its log is then final"""
        try:
            info = api.inspect_container(container_id)
        except DockerException as e:
            raise EngineRequestError(f"inspect failed for {container_id}: {e}", "inspect") from e

        state = info.get("State") or {}
        if state.get("Running") or state.get("Restarting"):
            return
        exit_code = state.get("ExitCode")
        logger.warning(
            "Container exited before log line appeared",
            container_id=container_id,
            wait_for=wait_for,
            exit_code=exit_code,
        )
        raise ContainerExitedError(
            f"Container {container_id} exited with code {exit_code} "
            f"before printing {wait_for!r}",
            exit_code=exit_code,
        )

    def wait(self, api, container_id: str, wait_for: str) -> str:
        """Wait until wait_for appears in the accumulated log output.

        Returns the log text seen so far.
        """
        deadline = None
        if self.timeout is not None:
            deadline = time.monotonic() + self.timeout

        logger.info("Waiting for log line", container_id=container_id, wait_for=wait_for)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        log = ""
        reader = self._attach(api, container_id)

        try:
            while wait_for not in log:
                self._check(deadline, wait_for)

                try:
                    chunk = reader.chunks.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue

                if chunk is _STREAM_END:
                    # Re-attaching replays the full history
                    reader.close()
                    self._ensure_running(api, container_id, wait_for)
                    time.sleep(self.poll_interval)
                    reader = self._attach(api, container_id)
                    decoder.reset()
                    log = ""
                    continue
                if isinstance(chunk, Exception):
                    raise EngineRequestError(
                        f"Log stream failed for {container_id}: {chunk}", "attach"
                    ) from chunk

                log += decoder.decode(chunk)
        finally:
            reader.close()

        logger.info("Log line found", container_id=container_id, wait_for=wait_for)
        return log
