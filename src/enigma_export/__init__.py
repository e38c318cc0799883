"""
Enigma export client package
Requests server-side dataset exports, polls until they are ready and
streams the compressed artifacts to local storage
"""

from .config_loader import ConfigLoader, ExportConfig, ConfigurationError, EnvironmentError
from .parameter_encoder import ExportRequest, ParameterEncoder, ValidationError
from .http_client import HTTPClient, APIRequest, APIResponse
from .response_interpreter import ErrorKind, ErrorDetail, RemoteError, ResponseInterpreter
from .export_requester import ExportRequester, ExportJobDescriptor, ProtocolError
from .export_poller import (
    ExportPoller,
    PollStatus,
    PollOutcome,
    ExportCancelledError,
    PollAttemptsExceededError,
    classify_status,
)
from .path_resolver import PathResolver
from .file_hasher import FileHasher
from .export_handle import ExportHandle, as_export_handle
from .export_reader import ExportReader, ExportTable, ExportReadError
from .export_orchestrator import ExportOrchestrator

__version__ = "1.0.0"
__all__ = [
    'ConfigLoader',
    'ExportConfig',
    'ConfigurationError',
    'EnvironmentError',
    'ExportRequest',
    'ParameterEncoder',
    'ValidationError',
    'HTTPClient',
    'APIRequest',
    'APIResponse',
    'ErrorKind',
    'ErrorDetail',
    'RemoteError',
    'ResponseInterpreter',
    'ExportRequester',
    'ExportJobDescriptor',
    'ProtocolError',
    'ExportPoller',
    'PollStatus',
    'PollOutcome',
    'ExportCancelledError',
    'PollAttemptsExceededError',
    'classify_status',
    'PathResolver',
    'FileHasher',
    'ExportHandle',
    'as_export_handle',
    'ExportReader',
    'ExportTable',
    'ExportReadError',
    'ExportOrchestrator'
]
