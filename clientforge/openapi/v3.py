"""OpenAPI 3.x document models.

Only the parts of the document the generator reads are modelled. Unknown
keys (vendor extensions, security schemes, examples) are ignored, so real
world documents validate without a full specification model.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

SchemaKind = Literal[
    'string',
    'integer',
    'number',
    'boolean',
    'array',
    'record',
    'one-of',
    'all-of',
    'any-of',
]

COMPONENT_SCHEMA_PREFIX = '#/components/schemas/'

HTTP_METHODS = ('get', 'post', 'put', 'delete', 'patch', 'head', 'options')


class _Node(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class Schema(_Node):
    """A schema node: either a ``$ref`` or an inline definition."""

    ref: Optional[str] = Field(None, alias='$ref')
    type: Optional[str] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    nullable: Optional[bool] = None
    properties: Optional[Dict[str, Schema]] = None
    required: Optional[List[str]] = None
    items: Optional[Schema] = None
    additionalProperties: Optional[Union[bool, Schema]] = None
    oneOf: Optional[List[Schema]] = None
    allOf: Optional[List[Schema]] = None
    anyOf: Optional[List[Schema]] = None
    pattern: Optional[str] = None
    default: Optional[Any] = None

    @field_validator('type', mode='before')
    @classmethod
    def _reduce_type_array(cls, value: Any) -> Any:
        # OpenAPI 3.1 spells nullable types as ["string", "null"].
        if isinstance(value, list):
            members = [member for member in value if member != 'null']
            return members[0] if members else None
        return value

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def kind(self) -> SchemaKind | None:
        """The structural kind of an inline node.

        Composition keywords win over ``type``. An ``object`` or a node that
        only declares ``properties`` is a record. Returns ``None`` for nodes
        whose kind cannot be determined.
        """
        if self.oneOf is not None:
            return 'one-of'
        if self.allOf is not None:
            return 'all-of'
        if self.anyOf is not None:
            return 'any-of'
        if self.type in ('string', 'integer', 'number', 'boolean', 'array'):
            return self.type
        if self.type == 'object' or self.properties is not None:
            return 'record'
        return None

    @property
    def is_string_enum(self) -> bool:
        return self.type == 'string' and bool(self.enum)


class Parameter(_Node):
    ref: Optional[str] = Field(None, alias='$ref')
    name: Optional[str] = None
    in_: Optional[str] = Field(None, alias='in')
    description: Optional[str] = None
    required: Optional[bool] = None
    schema_: Optional[Schema] = Field(None, alias='schema')


class MediaType(_Node):
    schema_: Optional[Schema] = Field(None, alias='schema')


class RequestBody(_Node):
    ref: Optional[str] = Field(None, alias='$ref')
    description: Optional[str] = None
    required: Optional[bool] = None
    content: Optional[Dict[str, MediaType]] = None


class Response(_Node):
    ref: Optional[str] = Field(None, alias='$ref')
    description: Optional[str] = None
    content: Optional[Dict[str, MediaType]] = None


class Operation(_Node):
    operationId: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    parameters: Optional[List[Parameter]] = None
    requestBody: Optional[RequestBody] = None
    responses: Optional[Dict[str, Response]] = None

    @field_validator('responses', mode='before')
    @classmethod
    def _stringify_status_codes(cls, value: Any) -> Any:
        # YAML loads bare status codes as integers.
        if isinstance(value, dict):
            return {str(code): response for code, response in value.items()}
        return value


class PathItem(_Node):
    ref: Optional[str] = Field(None, alias='$ref')
    parameters: Optional[List[Parameter]] = None
    get: Optional[Operation] = None
    post: Optional[Operation] = None
    put: Optional[Operation] = None
    delete: Optional[Operation] = None
    patch: Optional[Operation] = None
    head: Optional[Operation] = None
    options: Optional[Operation] = None

    def operations(self) -> List[tuple[str, Operation]]:
        """Declared operations as ``(METHOD, operation)`` in a fixed verb order."""
        return [
            (method.upper(), getattr(self, method))
            for method in HTTP_METHODS
            if getattr(self, method) is not None
        ]


class Components(_Node):
    schemas: Dict[str, Schema] = Field(default_factory=dict)
    responses: Dict[str, Response] = Field(default_factory=dict)
    parameters: Dict[str, Parameter] = Field(default_factory=dict)
    requestBodies: Dict[str, RequestBody] = Field(default_factory=dict)


class Info(_Node):
    title: str = ''
    version: str = ''
    description: Optional[str] = None


class OpenAPI(_Node):
    openapi: str
    info: Info
    paths: Dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)

    def component_schema(self, ref: str) -> Schema | None:
        """Look up the target of a ``#/components/schemas/<name>`` reference."""
        if not ref.startswith(COMPONENT_SCHEMA_PREFIX):
            return None
        return self.components.schemas.get(ref[len(COMPONENT_SCHEMA_PREFIX) :])


Schema.model_rebuild()
