"""HTTP transport of the generated client."""

import os
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import IO
from urllib.parse import quote, urljoin

import httpx

DEFAULT_TIMEOUT = 600.0

_PLACEHOLDER = re.compile(r'\{([^{}]+)\}')


@dataclass
class Request:
    """One API request.

    Attributes:
        method: The HTTP verb.
        path: The path template, with ``{name}`` placeholders.
        params: Values substituted into the path template.
        query: Query string values; empty values are left out.
        content: The encoded request body.
        content_type: Content type of ``content``.
    """

    method: str
    path: str
    params: dict[str, object] = field(default_factory=dict)
    query: dict[str, object] = field(default_factory=dict)
    content: bytes | IO[bytes] | None = None
    content_type: str = 'application/json'


def to_text(value: object) -> str:
    """Render a parameter value as URL text.

    Enum members render as their value, booleans as ``true``/``false``,
    timestamps in ISO 8601 and sequences as comma separated items.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ','.join(to_text(item) for item in value)
    return str(value)


def expand_url(path: str, params: dict[str, object]) -> tuple[str, str]:
    """Substitute ``{name}`` placeholders of ``path`` with ``params``.

    Returns:
        The path with the values as given and the path with the values
        percent-escaped.

    Raises:
        KeyError: If a placeholder has no value.
    """
    plain = _PLACEHOLDER.sub(lambda match: to_text(params[match.group(1)]), path)
    raw = _PLACEHOLDER.sub(lambda match: quote(to_text(params[match.group(1)]), safe=''), path)
    return plain, raw


def resolve_relative(base: str, path: str) -> str:
    """Join ``path`` onto the ``base`` URL, keeping path template braces intact."""
    return urljoin(base, path).replace('%7B', '{').replace('%7D', '}')


def parse_base_url(host: str) -> str:
    """Normalize ``host`` to an absolute URL ending with a slash.

    Raises:
        ValueError: If ``host`` is empty or not a valid URL.
    """
    if not host:
        raise ValueError('host address is empty')
    if not host.startswith(('http://', 'https://')):
        host = f'https://{host}'
    url = httpx.URL(host)
    if not url.host:
        raise ValueError(f'host address {host!r} has no host name')
    base = str(url)
    if not base.endswith('/'):
        base += '/'
    return base


class BaseClient:
    """Authenticated HTTP client for the API.

    Host and token default to the ``<env_prefix>_HOST`` and
    ``<env_prefix>_TOKEN`` environment variables.

    Example:
        >>> with Client(host='api.example.com', token='secret') as client:
        ...     response = client.make_request(Request(method='GET', path='/v1/ping'))
    """

    env_prefix = 'API'
    user_agent = 'clientforge'
    api_version = ''

    def __init__(
        self,
        host: str | None = None,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
        user_agent: str | None = None,
    ) -> None:
        host = host if host is not None else os.environ.get(f'{self.env_prefix}_HOST', '')
        token = token if token is not None else os.environ.get(f'{self.env_prefix}_TOKEN', '')

        errors = []
        try:
            self.host = parse_base_url(host)
        except ValueError as e:
            errors.append(f'failed parsing host address: {e}')
        if not token:
            errors.append('token is required')
        if errors:
            raise ValueError('invalid client configuration:\n' + '\n'.join(errors))

        self.token = token
        if user_agent is not None:
            self.user_agent = user_agent
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def headers(self, content_type: str = 'application/json') -> dict[str, str]:
        headers = {
            'Authorization': f'Bearer {self.token}',
            'Content-Type': content_type,
        }
        if self.user_agent:
            headers['User-Agent'] = self.user_agent
        if self.api_version:
            headers['API-Version'] = self.api_version
        return headers

    def build_request(self, request: Request) -> httpx.Request:
        url = resolve_relative(self.host, request.path)
        _, raw_path = expand_url(url, request.params)
        query: dict[str, str | list[str]] = {}
        for key, value in request.query.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                # Repeated keys: ?tag=a&tag=b
                if value:
                    query[key] = [to_text(item) for item in value]
            else:
                text = to_text(value)
                if text != '':
                    query[key] = text
        return self._client.build_request(
            request.method,
            raw_path,
            params=query,
            headers=self.headers(request.content_type),
            content=request.content,
        )

    def make_request(self, request: Request) -> httpx.Response:
        """Send ``request`` and return the response, whatever its status."""
        return self._client.send(self.build_request(request))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
