import json
import os
import tomllib
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from clientforge._version import version
from clientforge.exceptions import ConfigurationError

DEFAULT_FILENAMES = ['clientforge.yaml', 'clientforge.yml']


class DocumentConfig(BaseModel):
    """Represents a single document to be processed."""

    source: str = Field(..., description='Path or URL to the OpenAPI document.')

    output: str = Field(..., description='Output directory for the generated package.')

    models_file: str = Field(
        'models.py', description='File name for the generated data types.'
    )

    responses_file: str = Field(
        'responses.py', description='File name for the generated named responses.'
    )

    paths_file: str = Field(
        'paths.py', description='File name for the generated operation functions.'
    )

    version_file: str = Field(
        'version.py', description='File name for the generated version constants.'
    )

    env_prefix: str = Field(
        'API',
        description='Prefix of the host and token environment variables read by the client.',
    )

    sdk_version: str = Field(
        f'v{version}', description='Version string embedded in the generated package.'
    )


class CodegenConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='CLIENTFORGE_')

    documents: list[DocumentConfig] = Field(
        ..., description='List of OpenAPI documents to process.'
    )

    generate_endpoints: bool = Field(
        True, description='Whether to generate the operation functions.'
    )


def load_yaml(path: str | Path) -> dict:
    """Read a YAML (or JSON) configuration file."""
    try:
        content = yaml.safe_load(Path(path).read_text(encoding='utf-8'))
    except yaml.YAMLError as e:
        raise ConfigurationError(f'Invalid YAML: {e}', config_path=str(path)) from e
    if not isinstance(content, dict):
        raise ConfigurationError('Configuration must be a mapping', config_path=str(path))
    return content


def _validate(content: dict, path: str | Path) -> CodegenConfig:
    try:
        return CodegenConfig.model_validate(content)
    except ValidationError as e:
        error = e.errors()[0]
        field = '.'.join(str(part) for part in error['loc'])
        raise ConfigurationError(
            f"Invalid configuration: {error['msg']}", config_path=str(path), field=field
        ) from e


def get_config(path: str | None = None) -> CodegenConfig:
    """Load the configuration.

    Looks at ``path`` if given, then ``clientforge.yaml``/``clientforge.yml``
    in the working directory, then ``[tool.clientforge]`` in ``pyproject.toml``.

    Raises:
        FileNotFoundError: If no configuration is found.
        ConfigurationError: If the configuration is invalid.
    """
    if path:
        if not Path(path).exists():
            raise FileNotFoundError(f'config not found: {path}')
        if Path(path).suffix.lower() == '.json':
            try:
                content = json.loads(Path(path).read_text(encoding='utf-8'))
            except json.JSONDecodeError as e:
                raise ConfigurationError(f'Invalid JSON: {e}', config_path=path) from e
            return _validate(content, path)
        return _validate(load_yaml(path), path)

    cwd = Path(os.getcwd())

    for filename in DEFAULT_FILENAMES:
        candidate = cwd / filename
        if candidate.exists():
            return _validate(load_yaml(candidate), candidate)

    pyproject_path = cwd / 'pyproject.toml'

    if pyproject_path.exists():
        pyproject = tomllib.loads(pyproject_path.read_text(encoding='utf-8'))
        tools = pyproject.get('tool', {})

        if 'clientforge' in tools:
            return _validate(tools['clientforge'], pyproject_path)

    raise FileNotFoundError('config not found')
