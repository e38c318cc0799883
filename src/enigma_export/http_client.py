"""
HTTPClient module for issuing export requests over a shared requests session
"""

import logging
import requests
from typing import Dict, Any, Iterator, Optional
from datetime import datetime
from dataclasses import dataclass, field

from .response_interpreter import RemoteError, ResponseInterpreter

logger = logging.getLogger(__name__)


@dataclass
class APIRequest:
    """Represents a single API request"""
    url: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "GET"


@dataclass
class APIResponse:
    """Standardised API response wrapper"""
    status_code: int
    content: bytes
    reason: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    raw_data: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    request_timestamp: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        return self.status_code <= 201


class HTTPClient:
    """HTTP client owning the requests session used by the export lifecycle"""

    def __init__(self, timeout_seconds: Optional[float] = 60.0, headers: Optional[Dict[str, str]] = None):
        self.timeout_seconds = timeout_seconds
        self.headers: Dict[str, str] = dict(headers or {})
        self.session: Optional[requests.Session] = None
        self.logger = logging.getLogger(__name__)

    def _get_session(self) -> requests.Session:
        if self.session is None:
            self.session = requests.Session()
        return self.session

    def make_request(self, request: APIRequest) -> APIResponse:
        """
        Make a single HTTP request and wrap the response

        Non-success statuses are returned, not raised, so callers can
        classify them.

        Args:
            request: APIRequest object containing request details

        Returns:
            APIResponse with the decoded JSON body in raw_data when available

        Raises:
            RemoteError: For network-level failures (kind transport)
        """
        session = self._get_session()
        combined_headers = {**self.headers, **request.headers}
        request_timestamp = datetime.now()

        try:
            response = session.request(
                request.method.upper(),
                request.url,
                params=request.parameters or None,
                headers=combined_headers,
                timeout=self.timeout_seconds
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed before a response was received: {type(e).__name__}")
            raise RemoteError(ResponseInterpreter.from_exception(e)) from e

        try:
            raw_data = response.json()
        except ValueError:
            raw_data = None

        return APIResponse(
            status_code=response.status_code,
            content=response.content,
            reason=response.reason,
            headers=dict(response.headers),
            raw_data=raw_data,
            metadata={'method': request.method, 'parameters': sorted(request.parameters)},
            request_timestamp=request_timestamp
        )

    def open_stream(self, url: str) -> requests.Response:
        """
        Open a streaming GET; the caller must close the returned response

        Raises:
            RemoteError: For network-level failures (kind transport)
        """
        session = self._get_session()
        try:
            return session.get(url, headers=self.headers, stream=True, timeout=self.timeout_seconds)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Streaming request failed before a response was received: {type(e).__name__}")
            raise RemoteError(ResponseInterpreter.from_exception(e)) from e

    @staticmethod
    def iter_body(response: requests.Response, chunk_size: int) -> Iterator[bytes]:
        """
        Yield the body of a streamed response in chunks

        Raises:
            RemoteError: If the connection breaks mid-body (kind transport)
        """
        try:
            yield from response.iter_content(chunk_size=chunk_size)
        except requests.exceptions.RequestException as e:
            logger.error(f"Response body stream broke: {type(e).__name__}")
            raise RemoteError(ResponseInterpreter.from_exception(e)) from e

    @staticmethod
    def to_api_response(response: requests.Response) -> APIResponse:
        """
        Read a streamed response fully into an APIResponse

        Raises:
            RemoteError: If the connection breaks mid-body (kind transport)
        """
        try:
            content = response.content
        except requests.exceptions.RequestException as e:
            logger.error(f"Reading response body failed: {type(e).__name__}")
            raise RemoteError(ResponseInterpreter.from_exception(e)) from e

        return APIResponse(
            status_code=response.status_code,
            content=content,
            reason=response.reason,
            headers=dict(response.headers)
        )

    def close_connection(self) -> None:
        """
        Close HTTP session and release resources
        """
        if self.session:
            self.session.close()
            self.session = None
