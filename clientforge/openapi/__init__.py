from clientforge.openapi.v3 import (
    COMPONENT_SCHEMA_PREFIX,
    Components,
    Info,
    MediaType,
    OpenAPI,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    SchemaKind,
)

__all__ = [
    'COMPONENT_SCHEMA_PREFIX',
    'Components',
    'Info',
    'MediaType',
    'OpenAPI',
    'Operation',
    'Parameter',
    'PathItem',
    'RequestBody',
    'Response',
    'Schema',
    'SchemaKind',
]
