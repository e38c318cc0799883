"""
Test suite for HTTPClient component
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest
from unittest.mock import Mock, PropertyMock, patch
from datetime import datetime
import requests
from enigma_export.http_client import HTTPClient, APIRequest, APIResponse
from enigma_export.response_interpreter import ErrorKind, RemoteError


def make_mock_response(status_code=200, json_data=None, content=b'', headers=None, reason='OK'):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.content = content
    mock_response.reason = reason
    mock_response.headers = headers or {'Content-Type': 'application/json'}
    if json_data is None:
        mock_response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        mock_response.json.return_value = json_data
    return mock_response


class TestHTTPClient:
    """Test suite for HTTPClient API communication functionality"""

    @patch('requests.Session')
    def test_make_request_with_successful_response_returns_api_response(self, mock_session_class):
        """
        Test that successful HTTP request returns properly formed APIResponse
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_mock_response(
            json_data={'export_url': 'https://exports.test/abc.csv.gz'},
            content=b'{"export_url": "https://exports.test/abc.csv.gz"}'
        )
        mock_session_class.return_value = mock_session

        http_client = HTTPClient(timeout_seconds=5)
        api_request = APIRequest(
            url='https://api.test.com/export/key/d1',
            parameters={'select': 'a,b'}
        )

        # Act
        result = http_client.make_request(api_request)

        # Assert
        assert isinstance(result, APIResponse)
        assert result.raw_data == {'export_url': 'https://exports.test/abc.csv.gz'}
        assert result.status_code == 200
        assert result.ok is True
        assert isinstance(result.request_timestamp, datetime)

        call_args = mock_session.request.call_args
        assert call_args[0] == ('GET', 'https://api.test.com/export/key/d1')
        assert call_args[1]['params'] == {'select': 'a,b'}
        assert call_args[1]['timeout'] == 5

    @patch('requests.Session')
    def test_make_request_with_error_status_returns_response_without_raising(self, mock_session_class):
        """
        Test that non-success statuses are returned for classification
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_mock_response(
            status_code=500, content=b'oops', reason='Internal Server Error',
            headers={'Content-Type': 'text/plain'}
        )
        mock_session_class.return_value = mock_session
        http_client = HTTPClient()

        # Act
        result = http_client.make_request(APIRequest(url='https://api.test.com/x'))

        # Assert
        assert result.status_code == 500
        assert result.ok is False
        assert result.raw_data is None
        assert result.content == b'oops'
        assert mock_session.request.call_count == 1

    @patch('requests.Session')
    def test_make_request_without_parameters_sends_no_query(self, mock_session_class):
        """
        Test that an empty parameter mapping sends no query string
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_mock_response(json_data={})
        mock_session_class.return_value = mock_session
        http_client = HTTPClient()

        # Act
        http_client.make_request(APIRequest(url='https://api.test.com/x'))

        # Assert
        assert mock_session.request.call_args[1]['params'] is None

    @patch('requests.Session')
    def test_make_request_with_connection_error_raises_transport_remote_error(self, mock_session_class):
        """
        Test that network failures surface as transport RemoteErrors without retry
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.side_effect = requests.exceptions.ConnectionError("Connection refused")
        mock_session_class.return_value = mock_session
        http_client = HTTPClient()

        # Act & Assert
        with pytest.raises(RemoteError) as exc_info:
            http_client.make_request(APIRequest(url='https://api.test.com/x'))

        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert "Connection refused" in str(exc_info.value)
        assert mock_session.request.call_count == 1

    @patch('requests.Session')
    def test_open_stream_requests_streaming_get(self, mock_session_class):
        """
        Test that open_stream issues a streaming GET with no query parameters
        """
        # Arrange
        mock_session = Mock()
        mock_session_class.return_value = mock_session
        http_client = HTTPClient(timeout_seconds=10)

        # Act
        http_client.open_stream('https://exports.test/abc.csv.gz')

        # Assert
        mock_session.get.assert_called_once_with(
            'https://exports.test/abc.csv.gz', headers={}, stream=True, timeout=10
        )

    @patch('requests.Session')
    def test_open_stream_with_timeout_raises_transport_remote_error(self, mock_session_class):
        """
        Test that a timeout while polling surfaces as a transport RemoteError
        """
        # Arrange
        mock_session = Mock()
        mock_session.get.side_effect = requests.exceptions.Timeout("read timed out")
        mock_session_class.return_value = mock_session
        http_client = HTTPClient()

        # Act & Assert
        with pytest.raises(RemoteError) as exc_info:
            http_client.open_stream('https://exports.test/abc.csv.gz')

        assert exc_info.value.detail.status_code is None

    def test_to_api_response_copies_status_headers_and_body(self):
        """
        Test that a streamed response is read into an APIResponse
        """
        # Arrange
        mock_response = make_mock_response(
            status_code=403, content=b'<Error/>', reason='Forbidden',
            headers={'Content-Type': 'application/xml'}
        )

        # Act
        result = HTTPClient.to_api_response(mock_response)

        # Assert
        assert result.status_code == 403
        assert result.content == b'<Error/>'
        assert result.reason == 'Forbidden'
        assert result.headers == {'Content-Type': 'application/xml'}

    def test_iter_body_yields_chunks_in_order(self):
        """
        Test that iter_body passes the chunk size through and yields the body
        """
        # Arrange
        mock_response = Mock()
        mock_response.iter_content.return_value = iter([b'a,b\n', b'1,2\n'])

        # Act
        chunks = list(HTTPClient.iter_body(mock_response, 1024))

        # Assert
        assert chunks == [b'a,b\n', b'1,2\n']
        mock_response.iter_content.assert_called_once_with(chunk_size=1024)

    def test_iter_body_with_broken_stream_raises_transport_remote_error(self):
        """
        Test that a connection breaking mid-body surfaces as a transport RemoteError
        """
        # Arrange
        def broken():
            yield b'partial'
            raise requests.exceptions.ChunkedEncodingError("Connection broken")

        mock_response = Mock()
        mock_response.iter_content.return_value = broken()
        chunks = HTTPClient.iter_body(mock_response, 1024)

        # Act & Assert
        assert next(chunks) == b'partial'
        with pytest.raises(RemoteError) as exc_info:
            next(chunks)

        assert exc_info.value.kind is ErrorKind.TRANSPORT

    def test_to_api_response_with_unreadable_body_raises_transport_remote_error(self):
        """
        Test that a body read failure surfaces as a transport RemoteError
        """
        # Arrange
        mock_response = make_mock_response(status_code=502, reason='Bad Gateway')
        type(mock_response).content = PropertyMock(
            side_effect=requests.exceptions.ConnectionError("Connection reset")
        )

        # Act & Assert
        with pytest.raises(RemoteError) as exc_info:
            HTTPClient.to_api_response(mock_response)

        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert exc_info.value.detail.status_code is None

    @patch('requests.Session')
    def test_close_connection_closes_and_clears_session(self, mock_session_class):
        """
        Test that close_connection releases the session
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_mock_response(json_data={})
        mock_session_class.return_value = mock_session
        http_client = HTTPClient()
        http_client.make_request(APIRequest(url='https://api.test.com/x'))

        # Act
        http_client.close_connection()

        # Assert
        mock_session.close.assert_called_once()
        assert http_client.session is None

    def test_close_connection_without_session_does_nothing(self):
        """
        Test that closing an unused client is safe
        """
        # Arrange
        http_client = HTTPClient()

        # Act
        http_client.close_connection()

        # Assert
        assert http_client.session is None
