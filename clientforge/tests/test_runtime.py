"""Tests for the runtime modules shipped with generated clients."""

from datetime import date, datetime, timezone
from enum import Enum

import httpx
import pytest

from clientforge.runtime.errors import APIError, ErrorResponse, HTTPError, check_response
from clientforge.runtime.transport import (
    BaseClient,
    Request,
    expand_url,
    parse_base_url,
    resolve_relative,
    to_text,
)
from clientforge.runtime.validate import ValidationError, Validator


class Color(str, Enum):
    RED = 'red'


def _response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code,
        request=httpx.Request('GET', 'https://api.example.com/v1/things'),
        **kwargs,
    )


class TestCheckResponse:
    """Tests for check_response."""

    def test_success(self):
        """Test that 2xx responses pass."""
        check_response(_response(200, json={}))
        check_response(_response(204))

    def test_api_error(self):
        """Test that a JSON error body raises APIError."""
        response = _response(
            400,
            json={'error_code': 'InvalidRequest', 'message': 'bad', 'request_id': 'r1'},
        )

        with pytest.raises(APIError) as exc_info:
            check_response(response)

        error = exc_info.value
        assert error.request_method == 'GET'
        assert error.url == 'https://api.example.com/v1/things'
        assert error.error_response == ErrorResponse(
            error_code='InvalidRequest', message='bad', request_id='r1'
        )
        assert 'Status: 400 InvalidRequest' in str(error)
        assert 'Message: bad' in str(error)
        assert 'RequestID: r1' in str(error)

    def test_unknown_keys_are_ignored(self):
        """Test that extra keys in the error body are tolerated."""
        with pytest.raises(APIError) as exc_info:
            check_response(_response(500, json={'message': 'boom', 'trace': 'x'}))

        assert exc_info.value.error_response.message == 'boom'

    def test_http_error(self):
        """Test that a non-JSON error body raises HTTPError."""
        with pytest.raises(HTTPError) as exc_info:
            check_response(_response(503, text='unavailable'))

        assert str(exc_info.value) == (
            'HTTP 503 (https://api.example.com/v1/things) BODY -> unavailable'
        )


class TestValidator:
    """Tests for Validator."""

    def test_required(self):
        """Test the required value checks."""
        validator = Validator()

        assert validator.has_required_str('x', 'a')
        assert not validator.has_required_str('', 'b')
        assert not validator.has_required_str(None, 'c')
        assert validator.has_required_num(0, 'd')
        assert not validator.has_required_num(None, 'e')
        assert not validator.has_required_obj(None, 'f')

        assert validator.errors == [
            'required value for b is an empty string',
            'required value for c is an empty string',
            'required value for e is nil',
            'required value for f is nil',
        ]

    def test_raise_if_invalid(self):
        """Test that every message is reported at once."""
        validator = Validator()
        assert validator.is_valid()
        validator.raise_if_invalid()
        validator.add_error('first')
        validator.add_error('second')
        assert not validator.is_valid()

        with pytest.raises(ValidationError) as exc_info:
            validator.raise_if_invalid()

        assert exc_info.value.errors == ['first', 'second']
        assert str(exc_info.value) == 'first\nsecond'

    def test_pattern(self):
        """Test pattern matching."""
        validator = Validator()

        assert validator.matches_pattern('web-1', '^[a-z][a-z0-9-]*$', 'name')
        assert validator.matches_pattern('', '^[a-z]+$', 'name')
        assert not validator.matches_pattern('1web', '^[a-z][a-z0-9-]*$', 'name')
        assert not validator.matches_pattern('x', '(', 'name')
        assert validator.errors[0] == 'name must match pattern ^[a-z][a-z0-9-]*$'
        assert validator.errors[1].startswith('invalid pattern for name')

    def test_enum(self):
        """Test enum membership."""
        validator = Validator()

        assert validator.valid_enum('red', ['red', 'blue'], 'color')
        assert not validator.valid_enum('green', ['red', 'blue'], 'color')
        assert validator.errors == ['color has invalid value green']

    @pytest.mark.parametrize(
        'value,format,valid',
        [
            ('0b9f7e3c-25d8-4a93-8a2d-3e3a4b8c8f10', 'uuid', True),
            ('not-a-uuid', 'uuid', False),
            ('ops@example.com', 'email', True),
            ('ops', 'email', False),
            ('https://example.com/a', 'uri', True),
            ('example', 'uri', False),
            ('10.0.0.1', 'ipv4', True),
            ('::1', 'ipv4', False),
            ('::1', 'ipv6', True),
            ('10.0.0.1', 'ip', True),
            ('10.0.0', 'ip', False),
            ('api.example.com', 'hostname', True),
            ('-bad-.com', 'hostname', False),
            ('anything', 'color', True),
            ('', 'uuid', True),
        ],
    )
    def test_format(self, value, format, valid):
        """Test the string formats."""
        assert Validator().valid_format(value, format, 'value') is valid


class TestUrls:
    """Tests for the URL helpers."""

    def test_to_text(self):
        """Test that enum members render as their value."""
        assert to_text(Color.RED) == 'red'
        assert to_text(3) == '3'

    def test_to_text_scalars(self):
        """Test that booleans and timestamps render the way servers parse them."""
        assert to_text(True) == 'true'
        assert to_text(False) == 'false'
        assert to_text(date(2024, 1, 2)) == '2024-01-02'
        assert (
            to_text(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
            == '2024-01-02T03:04:05+00:00'
        )

    def test_to_text_sequence(self):
        """Test that sequence items are rendered and comma joined."""
        assert to_text(['a', Color.RED, 2]) == 'a,red,2'
        assert to_text(()) == ''

    def test_expand_url(self):
        """Test placeholder substitution."""
        plain, raw = expand_url('/v1/disks/{disk}/{part}', {'disk': 'a b', 'part': 'c/d'})

        assert plain == '/v1/disks/a b/c/d'
        assert raw == '/v1/disks/a%20b/c%2Fd'

    def test_expand_url_list_value(self):
        """Test that a list path value is comma joined and escaped."""
        plain, raw = expand_url('/v1/disks/{ids}', {'ids': ['a', 'b']})

        assert plain == '/v1/disks/a,b'
        assert raw == '/v1/disks/a%2Cb'

    def test_expand_url_missing_value(self):
        """Test that a placeholder without a value fails."""
        with pytest.raises(KeyError):
            expand_url('/v1/disks/{disk}', {})

    def test_resolve_relative(self):
        """Test that template braces survive joining."""
        assert (
            resolve_relative('https://api.example.com/', '/v1/disks/{disk}')
            == 'https://api.example.com/v1/disks/{disk}'
        )

    def test_parse_base_url(self):
        """Test host normalization."""
        assert parse_base_url('api.example.com') == 'https://api.example.com/'
        assert parse_base_url('http://localhost:8080') == 'http://localhost:8080/'

    def test_parse_empty_host(self):
        """Test that an empty host is rejected."""
        with pytest.raises(ValueError, match='host address is empty'):
            parse_base_url('')


class TestBaseClient:
    """Tests for BaseClient."""

    def test_headers(self):
        """Test the headers sent with every request."""
        client = BaseClient(host='api.example.com', token='secret', user_agent='test/1')
        client.api_version = '2024-01-01'

        assert client.headers('application/octet-stream') == {
            'Authorization': 'Bearer secret',
            'Content-Type': 'application/octet-stream',
            'User-Agent': 'test/1',
            'API-Version': '2024-01-01',
        }
        client.close()

    def test_no_api_version_header(self):
        """Test that the version header is left out when unset."""
        client = BaseClient(host='api.example.com', token='secret')

        assert 'API-Version' not in client.headers()
        client.close()

    def test_environment(self, monkeypatch):
        """Test the environment variable fallback."""
        monkeypatch.setenv('API_HOST', 'env.example.com')
        monkeypatch.setenv('API_TOKEN', 'env-token')

        with BaseClient() as client:
            assert client.host == 'https://env.example.com/'
            assert client.token == 'env-token'

    def test_explicit_values_win(self, monkeypatch):
        """Test that arguments take precedence over the environment."""
        monkeypatch.setenv('API_HOST', 'env.example.com')
        monkeypatch.setenv('API_TOKEN', 'env-token')

        with BaseClient(host='arg.example.com', token='arg-token') as client:
            assert client.host == 'https://arg.example.com/'
            assert client.token == 'arg-token'

    def test_missing_token(self, monkeypatch):
        """Test that a missing token is reported."""
        monkeypatch.delenv('API_TOKEN', raising=False)

        with pytest.raises(ValueError) as exc_info:
            BaseClient(host='api.example.com')

        assert str(exc_info.value) == 'invalid client configuration:\ntoken is required'

    def test_build_request(self):
        """Test that empty query values are dropped and the path is escaped."""
        with BaseClient(host='api.example.com', token='secret') as client:
            request = client.build_request(
                Request(
                    method='GET',
                    path='/v1/disks/{disk}',
                    params={'disk': 'my disk'},
                    query={'limit': '10', 'page_token': None, 'sort_by': '', 'color': Color.RED},
                )
            )

        assert request.url.raw_path.startswith(b'/v1/disks/my%20disk')
        assert dict(request.url.params) == {'limit': '10', 'color': 'red'}

    def test_build_request_list_query(self):
        """Test that list query values are sent as repeated keys."""
        with BaseClient(host='api.example.com', token='secret') as client:
            request = client.build_request(
                Request(
                    method='GET',
                    path='/v1/disks',
                    query={'tag': ['a', Color.RED], 'empty': [], 'active': True},
                )
            )

        assert request.url.params.get_list('tag') == ['a', 'red']
        assert 'empty' not in request.url.params
        assert request.url.params['active'] == 'true'
        assert b'tag=a&tag=red' in request.url.query

    def test_make_request(self):
        """Test that requests go through the injected HTTP client."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'ok': True})

        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        with BaseClient(host='api.example.com', token='secret', http_client=http_client) as client:
            response = client.make_request(Request(method='DELETE', path='/v1/disks/x'))

        assert response.json() == {'ok': True}
        assert seen[0].method == 'DELETE'
        assert not http_client.is_closed
        http_client.close()
