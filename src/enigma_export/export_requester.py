"""
ExportRequester module for asking the service to prepare a dataset export
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional
from urllib.parse import quote

from .http_client import HTTPClient, APIRequest
from .parameter_encoder import ExportRequest, ParameterEncoder
from .response_interpreter import ErrorDetail, RemoteError, ResponseInterpreter


class ProtocolError(Exception):
    """Raised when a success response does not have the expected shape"""
    pass


@dataclass
class ExportJobDescriptor:
    """Job descriptor returned by export initiation"""
    export_url: str
    dataset: str
    raw: Dict[str, Any] = field(default_factory=dict)


class ExportRequester:
    """Issues the export initiation request and parses the job descriptor"""

    EXPORT_URL_FIELD = 'export_url'
    REDACTED = '<redacted>'

    def __init__(self, http_client: HTTPClient, base_url: str):
        self.http_client = http_client
        self.base_url = base_url.rstrip('/')
        self.logger = logging.getLogger(__name__)

    def build_export_url(self, api_key: str, dataset: str) -> str:
        return f"{self.base_url}/export/{api_key}/{dataset}"

    @classmethod
    def redact_detail(cls, detail: ErrorDetail, api_key: str) -> ErrorDetail:
        """Return a copy of detail with every occurrence of the API key masked"""
        secrets = {api_key, quote(api_key, safe='')}

        def scrub(text: Optional[str]) -> Optional[str]:
            if not text:
                return text
            for secret in secrets:
                text = text.replace(secret, cls.REDACTED)
            return text

        return replace(
            detail,
            fields=[(name, scrub(value)) for name, value in detail.fields],
            reason=scrub(detail.reason),
            body=scrub(detail.body)
        )

    def request_export(self, api_key: str, request: ExportRequest) -> ExportJobDescriptor:
        """
        Ask the service to materialise an export of the requested dataset

        Args:
            api_key: API key embedded in the initiation route
            request: ExportRequest describing the dataset and filters

        Returns:
            ExportJobDescriptor holding the URL to poll

        Raises:
            ValidationError: If identifiers or options are invalid
            ProtocolError: If a success body lacks the export URL
            RemoteError: If the service reports a failure
        """
        ParameterEncoder.validate_identifiers(request.dataset, api_key)
        params = ParameterEncoder.encode(request)

        url = self.build_export_url(api_key, request.dataset)
        self.logger.info(
            f"Requesting export of {request.dataset} from "
            f"{self.build_export_url(self.REDACTED, request.dataset)}"
        )

        try:
            response = self.http_client.make_request(APIRequest(url=url, parameters=params))
        except RemoteError as e:
            # Network errors quote the request path, which carries the key
            detail = self.redact_detail(e.detail, api_key)
            self.logger.error(f"Export initiation for {request.dataset} failed: {detail.message}")
            raise RemoteError(detail) from None

        if not response.ok:
            detail = self.redact_detail(ResponseInterpreter.interpret(response), api_key)
            self.logger.error(f"Export initiation for {request.dataset} failed: {detail.message}")
            raise RemoteError(detail)

        data = response.raw_data
        if not isinstance(data, dict):
            raise ProtocolError(
                f"Unexpected export response for {request.dataset}: body is not a JSON object"
            )

        if data.get('success') is False:
            detail = self.redact_detail(
                ResponseInterpreter.from_json_body(data, response.status_code), api_key
            )
            self.logger.error(f"Export initiation for {request.dataset} rejected: {detail.message}")
            raise RemoteError(detail)

        export_url = data.get(self.EXPORT_URL_FIELD)
        if not isinstance(export_url, str) or not export_url:
            raise ProtocolError(
                f"Unexpected export response for {request.dataset}: "
                f"missing '{self.EXPORT_URL_FIELD}' field"
            )

        self.logger.info(f"Export of {request.dataset} accepted, polling {export_url}")
        return ExportJobDescriptor(export_url=export_url, dataset=request.dataset, raw=data)
