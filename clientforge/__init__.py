"""clientforge - Generate typed Python clients from OpenAPI documents.

clientforge reads an OpenAPI 3.x document and writes a Python package with
pydantic models for every schema, one function per operation and a small
httpx-based runtime.

Quick Start:
    >>> from clientforge import Codegen, DocumentConfig
    >>>
    >>> config = DocumentConfig(
    ...     source="https://api.example.com/openapi.json",
    ...     output="./client"
    ... )
    >>> result = Codegen(config).generate()

CLI Usage:
    $ clientforge generate --config clientforge.yaml
    $ clientforge version
"""

from clientforge._version import version as __version__
from clientforge.codegen.codegen import Codegen, GenerationResult
from clientforge.codegen.schema import SchemaLoader
from clientforge.config import CodegenConfig, DocumentConfig, get_config
from clientforge.exceptions import (
    ClientForgeError,
    CodeGenerationError,
    ConfigurationError,
    EndpointGenerationError,
    OutputError,
    SchemaError,
    SchemaLoadError,
    SchemaReferenceError,
    SchemaValidationError,
    TypeGenerationError,
)

__all__ = [
    # Main classes
    'Codegen',
    'GenerationResult',
    'SchemaLoader',
    # Configuration
    'CodegenConfig',
    'DocumentConfig',
    'get_config',
    # Exceptions
    'ClientForgeError',
    'SchemaError',
    'SchemaLoadError',
    'SchemaValidationError',
    'SchemaReferenceError',
    'CodeGenerationError',
    'TypeGenerationError',
    'EndpointGenerationError',
    'ConfigurationError',
    'OutputError',
    '__version__',
]
