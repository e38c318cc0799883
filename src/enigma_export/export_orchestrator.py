"""
ExportOrchestrator module for coordinating a complete export fetch
"""
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .config_loader import ExportConfig
from .export_handle import ExportHandle
from .export_poller import ExportPoller
from .export_requester import ExportJobDescriptor, ExportRequester
from .file_hasher import FileHasher
from .http_client import HTTPClient
from .parameter_encoder import ExportRequest
from .path_resolver import PathResolver


class ExportOrchestrator:
    """
    High-level coordinator for the export request lifecycle

    Runs the complete process of:
    1. Validating identifiers and encoding parameters
    2. Asking the service to prepare the export
    3. Polling the export URL and streaming the artifact to disk
    4. Returning an ExportHandle for the downloaded file
    """

    def __init__(
        self,
        http_client: HTTPClient,
        requester: ExportRequester,
        poller: ExportPoller,
        path_resolver: PathResolver,
        file_hasher: Optional[FileHasher] = None
    ):
        """
        Initialise ExportOrchestrator with dependency injection

        Args:
            http_client: HTTP communication component, closed after each fetch
            requester: Export initiation component
            poller: Polling and download component
            path_resolver: Default destination path component
            file_hasher: Optional artifact checksum component
        """
        self.http_client = http_client
        self.requester = requester
        self.poller = poller
        self.path_resolver = path_resolver
        self.file_hasher = file_hasher

        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ExportConfig) -> 'ExportOrchestrator':
        """Wire all components from an ExportConfig"""
        http_client = HTTPClient(timeout_seconds=config.timeout_seconds)
        return cls(
            http_client=http_client,
            requester=ExportRequester(http_client, config.base_url),
            poller=ExportPoller(
                http_client,
                max_attempts=config.max_attempts,
                poll_interval=config.poll_interval,
                deadline_seconds=config.deadline_seconds,
                chunk_size=config.chunk_size
            ),
            path_resolver=PathResolver(config.download_directory),
            file_hasher=FileHasher()
        )

    def fetch(
        self,
        request: ExportRequest,
        api_key: str,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        cancel_event: Optional[threading.Event] = None
    ) -> ExportHandle:
        """
        Fetch a dataset export to local storage

        Args:
            request: ExportRequest naming the dataset and filters
            api_key: API key for the service
            path: Destination path, derived from the export URL when omitted
            overwrite: Whether an existing destination may be replaced
            cancel_event: Event that aborts polling when set

        Returns:
            ExportHandle for the downloaded artifact

        Raises:
            ValidationError: For invalid inputs, before any network call
            ProtocolError: If the initiation response has an unexpected shape
            RemoteError: If the service reports a terminal failure
            ExportCancelledError: If polling is cancelled or times out
            PollAttemptsExceededError: If the export never became ready
        """
        try:
            job = self.request_job(request, api_key)
            return self.download_job(job, path=path, overwrite=overwrite, cancel_event=cancel_event)
        finally:
            self.http_client.close_connection()

    def request_job(self, request: ExportRequest, api_key: str) -> ExportJobDescriptor:
        """
        Validate the request and ask the service to prepare the export

        Identifiers and options are validated before any network call.
        """
        try:
            return self.requester.request_export(api_key, request)
        except Exception as e:
            self.logger.error(f"Export of {request.dataset} failed: {type(e).__name__}: {e}")
            raise

    def download_job(
        self,
        job: ExportJobDescriptor,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        cancel_event: Optional[threading.Event] = None
    ) -> ExportHandle:
        """
        Poll a prepared export, stream it to disk and build its handle

        Args:
            job: Descriptor returned by request_job
            path: Destination path, derived from the export URL when omitted
            overwrite: Whether an existing destination may be replaced
            cancel_event: Event that aborts polling when set

        Returns:
            ExportHandle for the downloaded artifact
        """
        try:
            destination = Path(path) if path else self.path_resolver.resolve(job.export_url)
            downloaded = self.poller.download(
                job.export_url,
                destination,
                overwrite=overwrite,
                cancel_event=cancel_event
            )
        except Exception as e:
            self.logger.error(f"Export of {job.dataset} failed: {type(e).__name__}: {e}")
            raise

        content_hash = self.file_hasher.generate_file_hash(downloaded) if self.file_hasher else None
        self.logger.info(f"On disk at {downloaded}")

        return ExportHandle(path=str(downloaded), dataset=job.dataset, content_hash=content_hash)
