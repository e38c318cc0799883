"""
ResponseInterpreter module for converting terminal responses into uniform errors
"""

import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ErrorKind(Enum):
    """Format of the body a terminal failure was reported in"""
    JSON_STRUCTURED = 'json-structured'
    XML_STRUCTURED = 'xml-structured'
    TRANSPORT = 'transport'


@dataclass
class ErrorDetail:
    """Uniform representation of a terminal export failure"""
    kind: ErrorKind
    fields: List[Tuple[str, str]] = field(default_factory=list)
    status_code: Optional[int] = None
    reason: Optional[str] = None
    body: str = ''

    @property
    def message(self) -> str:
        """Human-readable message, one 'name: value' line per field"""
        if self.fields:
            return '\n'.join(f"{name}: {value}" for name, value in self.fields)

        reason = self.reason or 'Request failed'
        if self.status_code is None:
            return reason
        return f"{reason} (HTTP {self.status_code})"


class RemoteError(Exception):
    """Raised when the service reports a terminal failure"""

    def __init__(self, detail: ErrorDetail):
        super().__init__(detail.message)
        self.detail = detail

    @property
    def kind(self) -> ErrorKind:
        return self.detail.kind


class ResponseInterpreter:
    """Discriminates XML error bodies from generic transport failures"""

    @staticmethod
    def interpret(response: Any) -> ErrorDetail:
        """
        Build an ErrorDetail from a terminal (non-200) response

        The body format is resolved once from the declared content type:
        anything mentioning xml is parsed as an XML error document, every
        other response is a transport failure. Never raises.

        Args:
            response: Object exposing status_code, reason, headers and content

        Returns:
            ErrorDetail describing the failure
        """
        content_type = ResponseInterpreter._content_type(getattr(response, 'headers', None))
        body = ResponseInterpreter._body_text(getattr(response, 'content', b''))
        status_code = getattr(response, 'status_code', None)
        reason = getattr(response, 'reason', None)

        if 'xml' in content_type:
            return ErrorDetail(
                kind=ErrorKind.XML_STRUCTURED,
                fields=ResponseInterpreter.flatten_xml(body),
                status_code=status_code,
                reason=reason,
                body=body
            )

        return ErrorDetail(
            kind=ErrorKind.TRANSPORT,
            status_code=status_code,
            reason=reason,
            body=body
        )

    @staticmethod
    def from_json_body(data: Dict[str, Any], status_code: Optional[int] = None) -> ErrorDetail:
        """
        Build a json-structured ErrorDetail from a service error object

        Args:
            data: Decoded JSON object reporting the failure
            status_code: HTTP status the object arrived with

        Returns:
            ErrorDetail with the object's scalar fields in key order
        """
        fields = [
            (str(key), str(value)) for key, value in data.items()
            if not isinstance(value, (dict, list)) and key != 'success'
        ]
        return ErrorDetail(
            kind=ErrorKind.JSON_STRUCTURED,
            fields=fields,
            status_code=status_code,
            reason=str(data.get('message')) if data.get('message') else None
        )

    @staticmethod
    def from_exception(error: Exception) -> ErrorDetail:
        """Build a transport ErrorDetail for a network-level failure"""
        return ErrorDetail(
            kind=ErrorKind.TRANSPORT,
            reason=f"{type(error).__name__}: {error}"
        )

    @staticmethod
    def flatten_xml(text: str) -> List[Tuple[str, str]]:
        """
        Flatten an XML document into (tag, text) pairs for its leaf elements

        Args:
            text: XML document text

        Returns:
            Leaf pairs in document order, or an empty list if unparseable
        """
        try:
            root = ElementTree.fromstring(text)
        except ElementTree.ParseError:
            return []

        pairs = []
        for element in root.iter():
            if len(element) == 0:
                tag = element.tag.split('}', 1)[-1]
                pairs.append((tag, (element.text or '').strip()))
        return pairs

    @staticmethod
    def _content_type(headers: Optional[Dict[str, str]]) -> str:
        if not headers:
            return ''
        for key, value in headers.items():
            if key.lower() == 'content-type':
                return (value or '').lower()
        return ''

    @staticmethod
    def _body_text(content: Any) -> str:
        if content is None:
            return ''
        if isinstance(content, bytes):
            return content.decode('utf-8', errors='replace')
        return str(content)
