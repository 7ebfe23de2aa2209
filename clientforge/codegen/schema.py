"""Loading of OpenAPI documents from files and URLs."""

import json
import logging
from pathlib import Path
from urllib.parse import urlparse

import httpx
import yaml
from pydantic import ValidationError

from clientforge.exceptions import SchemaLoadError, SchemaValidationError
from clientforge.openapi import OpenAPI

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')


class SchemaLoader:
    """Loads OpenAPI documents from URLs or file paths.

    JSON and YAML are both accepted; the format is taken from the file
    suffix or, for URLs, the response content type.

    Example:
        >>> loader = SchemaLoader()
        >>> document = loader.load('https://api.example.com/openapi.json')
        >>> # or
        >>> document = loader.load('/path/to/openapi.yaml')
    """

    def __init__(self, http_client: httpx.Client | None = None):
        """Initialize the schema loader.

        Args:
            http_client: Optional HTTP client to use for URL requests.
                If not provided, a one-off request is made per load.
        """
        self._http_client = http_client

    def load(self, source: str) -> OpenAPI:
        """Load and validate the document at ``source``.

        Raises:
            SchemaLoadError: If the document cannot be read or parsed.
            SchemaValidationError: If the content is not an OpenAPI document.
        """
        logger.debug('Loading OpenAPI document from %s', source)
        if self._is_url(source):
            content = self._load_from_url(source)
        else:
            content = self._load_from_file(source)
        return self.parse(content, source)

    def parse(self, content: dict, source: str = '<memory>') -> OpenAPI:
        """Validate already decoded document ``content``."""
        if not isinstance(content, dict):
            raise SchemaValidationError(source, errors=['document is not a mapping'])
        try:
            return OpenAPI.model_validate(content)
        except ValidationError as e:
            raise SchemaValidationError(
                source,
                errors=[
                    f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                    for error in e.errors()
                ],
            ) from e

    def _is_url(self, text: str) -> bool:
        try:
            return urlparse(text).scheme in ('http', 'https')
        except ValueError:
            return False

    def _load_from_url(self, url: str):
        try:
            if self._http_client:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, follow_redirects=True, timeout=30.0)
            response.raise_for_status()

            content_type = response.headers.get('content-type', '')
            if 'yaml' in content_type or url.endswith(YAML_SUFFIXES):
                return yaml.safe_load(response.text)
            return json.loads(response.text)
        except (httpx.HTTPError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(url, cause=e) from e

    def _load_from_file(self, file_path: str):
        path = Path(file_path)
        if not path.exists():
            raise SchemaLoadError(
                file_path, cause=FileNotFoundError(f'File not found: {path}')
            )

        try:
            content = path.read_text(encoding='utf-8')
            if path.suffix.lower() in YAML_SUFFIXES:
                return yaml.safe_load(content)
            return json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError, OSError) as e:
            raise SchemaLoadError(file_path, cause=e) from e
