"""Errors raised by the generated client for failed API calls."""

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError


class ErrorResponse(BaseModel):
    """The error body returned by the API."""

    model_config = ConfigDict(extra='ignore')

    error_code: str | None = None
    message: str | None = None
    request_id: str | None = None


class HTTPError(Exception):
    """A failed API call whose body is not an API error.

    Attributes:
        url: The URL that was requested.
        status_code: The response status code.
        body: The raw response body.
        headers: The response headers.
    """

    def __init__(self, url: str, status_code: int, body: str, headers: httpx.Headers):
        self.url = url
        self.status_code = status_code
        self.body = body
        self.headers = headers
        super().__init__(f'HTTP {status_code} ({url}) BODY -> {body}')


class APIError(Exception):
    """A failed API call with a structured error body.

    Attributes:
        request_method: The HTTP verb of the request.
        url: The URL that was requested.
        status_code: The response status code.
        headers: The response headers.
        error_response: The decoded error body.
    """

    def __init__(
        self,
        request_method: str,
        url: str,
        status_code: int,
        headers: httpx.Headers,
        error_response: ErrorResponse,
    ):
        self.request_method = request_method
        self.url = url
        self.status_code = status_code
        self.headers = headers
        self.error_response = error_response
        super().__init__(self._describe())

    def _describe(self) -> str:
        lines = ['', '------- REQUEST -------', f'{self.request_method} {self.url}']
        lines.extend(f'{key}: {value}' for key, value in self.headers.items())
        lines.append('------- RESPONSE -------')
        lines.append(f'Status: {self.status_code} {self.error_response.error_code or ""}'.rstrip())
        lines.append(f'Message: {self.error_response.message or ""}')
        lines.append(f'RequestID: {self.error_response.request_id or ""}')
        return '\n'.join(lines)


def check_response(response: httpx.Response) -> None:
    """Raise for a response whose status is not 2xx.

    Raises:
        APIError: If the body is a JSON object.
        HTTPError: Otherwise.
    """
    if 200 <= response.status_code <= 299:
        return

    body = response.read()
    url = str(response.request.url)
    try:
        error_response = ErrorResponse.model_validate_json(body)
    except ValidationError:
        raise HTTPError(
            url=url,
            status_code=response.status_code,
            body=body.decode('utf-8', errors='replace'),
            headers=response.headers,
        ) from None

    raise APIError(
        request_method=response.request.method,
        url=url,
        status_code=response.status_code,
        headers=response.headers,
        error_response=error_response,
    )
