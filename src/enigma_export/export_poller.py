"""
ExportPoller module for polling an export URL until the artifact is ready
and streaming it to disk
"""

import os
import time
import logging
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .http_client import HTTPClient
from .parameter_encoder import ValidationError
from .response_interpreter import ErrorDetail, RemoteError, ResponseInterpreter


class ExportCancelledError(Exception):
    """Raised when polling is aborted by a cancellation signal or deadline"""
    pass


class PollAttemptsExceededError(Exception):
    """Raised when the export is still not ready after the allowed attempts"""
    pass


class PollStatus(Enum):
    """Classification of a single poll attempt"""
    NOT_READY = 'not_ready'
    READY = 'ready'
    FAILED = 'failed'


@dataclass
class PollOutcome:
    """Result of one poll attempt"""
    status: PollStatus
    status_code: int
    error: Optional[ErrorDetail] = None


def classify_status(status_code: int) -> PollStatus:
    """
    Map a poll response status code onto the polling state machine

    200 is ready, anything above 201 is a terminal failure, and every other
    code (informational, 201) means the export is still being prepared.
    """
    if status_code == 200:
        return PollStatus.READY
    if status_code > 201:
        return PollStatus.FAILED
    return PollStatus.NOT_READY


class ExportPoller:
    """Polls an export URL at a fixed interval and downloads the finished artifact"""

    DEFAULT_CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        http_client: HTTPClient,
        max_attempts: int,
        poll_interval: Union[int, float] = 0,
        deadline_seconds: Optional[float] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            http_client: Transport used for the streaming poll requests
            max_attempts: Upper bound on poll requests, must be positive
            poll_interval: Seconds to wait before each poll, zero for none
            deadline_seconds: Optional overall bound on the polling loop
            chunk_size: Bytes per chunk when streaming the artifact
            clock: Monotonic clock used for the deadline

        Raises:
            ValidationError: If any bound is malformed
        """
        if isinstance(poll_interval, bool) or not isinstance(poll_interval, (int, float)):
            raise ValidationError("poll_interval must be integer or numeric")
        if poll_interval < 0:
            raise ValidationError("poll_interval must not be negative")
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise ValidationError("max_attempts must be a positive integer")
        if deadline_seconds is not None and deadline_seconds <= 0:
            raise ValidationError("deadline_seconds must be positive when set")

        self.http_client = http_client
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.deadline_seconds = deadline_seconds
        self.chunk_size = chunk_size
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def download(
        self,
        export_url: str,
        destination: Union[str, Path],
        overwrite: bool = True,
        cancel_event: Optional[threading.Event] = None
    ) -> Path:
        """
        Poll the export URL until ready and write the artifact to destination

        The body of a ready response is streamed into a uniquely named '.part'
        file beside the destination that is moved onto it only once complete,
        so an aborted or failed run never changes an existing destination file.

        Args:
            export_url: URL returned by export initiation
            destination: Path the artifact is written to
            overwrite: Whether an existing destination may be replaced
            cancel_event: Event that aborts polling when set

        Returns:
            Path of the downloaded artifact

        Raises:
            ValidationError: If destination exists and overwrite is False
            RemoteError: If the service reports a terminal failure or the
                connection breaks (kind transport)
            ExportCancelledError: If cancelled or the deadline passes
            PollAttemptsExceededError: If max_attempts polls were not ready
        """
        destination = Path(destination)
        if destination.exists() and not overwrite:
            raise ValidationError(f"Path exists and overwrite is False: {destination}")

        destination.parent.mkdir(parents=True, exist_ok=True)
        cancel_event = cancel_event or threading.Event()
        deadline = self.clock() + self.deadline_seconds if self.deadline_seconds else None

        handle = tempfile.NamedTemporaryFile(
            dir=destination.parent, prefix=f".{destination.name}.", suffix='.part', delete=False
        )
        part_path = Path(handle.name)
        try:
            with handle:
                for attempt in range(1, self.max_attempts + 1):
                    self._wait(cancel_event, deadline)
                    outcome = self.poll_once(export_url, handle, cancel_event, deadline)
                    self.logger.debug(
                        f"Poll {attempt}/{self.max_attempts}: HTTP {outcome.status_code} -> {outcome.status.value}"
                    )

                    if outcome.status is PollStatus.READY:
                        break
                    if outcome.status is PollStatus.FAILED:
                        self.logger.error(f"Export failed on poll {attempt}: {outcome.error.message}")
                        raise RemoteError(outcome.error)
                else:
                    raise PollAttemptsExceededError(
                        f"Export not ready after {self.max_attempts} poll attempts"
                    )

            os.replace(part_path, destination)
        finally:
            if part_path.exists():
                part_path.unlink()

        self.logger.info(f"Export ready after {attempt} poll(s), written to {destination}")
        return destination

    def poll_once(
        self,
        export_url: str,
        handle: BinaryIO,
        cancel_event: threading.Event,
        deadline: Optional[float] = None
    ) -> PollOutcome:
        """
        Issue one poll request, streaming the body into handle when ready

        Args:
            export_url: URL to poll
            handle: Open binary file truncated and rewritten on success
            cancel_event: Event checked between body chunks
            deadline: Monotonic deadline checked between body chunks

        Returns:
            PollOutcome for this attempt

        Raises:
            RemoteError: If the connection breaks (kind transport)
        """
        response = self.http_client.open_stream(export_url)
        try:
            status = classify_status(response.status_code)

            if status is PollStatus.READY:
                handle.seek(0)
                handle.truncate()
                for chunk in HTTPClient.iter_body(response, self.chunk_size):
                    self._check_cancelled(cancel_event, deadline)
                    if chunk:
                        handle.write(chunk)
                handle.flush()
                return PollOutcome(status, response.status_code)

            if status is PollStatus.FAILED:
                detail = ResponseInterpreter.interpret(HTTPClient.to_api_response(response))
                return PollOutcome(status, response.status_code, detail)

            return PollOutcome(status, response.status_code)
        finally:
            response.close()

    def _wait(self, cancel_event: threading.Event, deadline: Optional[float]) -> None:
        timeout = self.poll_interval
        if deadline is not None:
            timeout = max(0.0, min(timeout, deadline - self.clock()))

        if cancel_event.wait(timeout):
            raise ExportCancelledError("Export polling cancelled")
        self._check_cancelled(cancel_event, deadline)

    def _check_cancelled(self, cancel_event: threading.Event, deadline: Optional[float]) -> None:
        if cancel_event.is_set():
            raise ExportCancelledError("Export polling cancelled")
        if deadline is not None and self.clock() >= deadline:
            raise ExportCancelledError(f"Export polling exceeded deadline of {self.deadline_seconds}s")
