"""Schema type resolution.

:class:`TypeResolver` turns schema nodes into :class:`Type` references and
registers every named declaration it discovers on the run's
:class:`~clientforge.codegen.context.GenerationContext`.
"""

import logging

from clientforge.codegen.context import GenerationContext
from clientforge.codegen.one_of import UnionSynthesizer
from clientforge.codegen.type_registry import (
    ANY,
    BOOL,
    DATE,
    DATETIME,
    FLOAT,
    INT,
    STR,
    TIME,
    EnumCollection,
    FieldDefinition,
    Type,
    TypeDefinition,
)
from clientforge.codegen.utils import (
    make_singular,
    print_property,
    sanitize_identifier,
    to_field_name,
)
from clientforge.exceptions import SchemaReferenceError, TypeGenerationError
from clientforge.openapi import COMPONENT_SCHEMA_PREFIX, Schema

logger = logging.getLogger(__name__)

STRING_FORMATS = {
    'date-time': DATETIME,
    'date': DATE,
    'time': TIME,
}

PRIMITIVE_KINDS = ('string', 'integer', 'number', 'boolean')


class TypeResolver:
    """Resolves schema nodes to canonical type references.

    Named schemas (components, local records and enums, one-of unions) are
    registered once under their canonical name; every later encounter of
    the same name resolves to the existing declaration.

    Example:
        >>> context = GenerationContext(document)
        >>> resolver = TypeResolver(context)
        >>> resolver.define_components()
        >>> resolver.resolve(Schema(type='string', format='date-time'), 'Created')
        Type(kind='primitive', name='datetime', ...)
    """

    def __init__(self, context: GenerationContext):
        self.context = context
        self.unions = UnionSynthesizer(self)
        self._in_progress: set[str] = set()

    @property
    def document(self):
        return self.context.document

    def define_components(self) -> None:
        """Register a declaration for every ``components.schemas`` entry."""
        for name in sorted(self.document.components.schemas):
            self.define(name, self.document.components.schemas[name])

    def define(self, name: str, schema: Schema) -> Type | None:
        """Register the top-level schema ``name``.

        Schemas that do not produce a declaration of their own (primitives,
        arrays, single-member all-ofs) are registered as aliases.
        """
        type_name = sanitize_identifier(print_property(name))
        if schema.is_reference:
            self.context.warn(
                'reference-position',
                type_name,
                f'component schema is a bare reference to {schema.ref}; skipped',
            )
            return None

        logger.debug('Defining type %s', type_name)
        try:
            resolved = self.resolve(schema, type_name)
        except ValueError as e:
            raise TypeGenerationError(type_name, f'{COMPONENT_SCHEMA_PREFIX}{name}', cause=e) from e
        if resolved.is_named and resolved.name == self.canonical_name(name, schema):
            return resolved

        self.context.types.register_or_get(
            TypeDefinition(
                name=type_name,
                kind='alias',
                description=schema.description,
                alias=resolved,
            )
        )
        return Type.model(type_name)

    def define_response(self, name: str, schema: Schema, description: str | None) -> None:
        """Register the named response ``name`` whose payload is ``schema``.

        The declaration goes to the responses registry; nested declarations
        of an inline payload land among the data types.
        """
        responses = self.context.responses
        if name in responses:
            return

        if schema.is_reference:
            definition = TypeDefinition(
                name=name,
                kind='alias',
                description=description,
                alias=self.resolve_reference(schema.ref),
            )
        elif schema.kind == 'record' and schema.properties:
            definition = TypeDefinition(
                name=name,
                kind='record',
                description=description,
                fields=[
                    self.build_field(name, key, prop)
                    for key, prop in sorted(schema.properties.items())
                ],
                required=sorted(schema.required or []),
            )
        else:
            definition = TypeDefinition(
                name=name,
                kind='alias',
                description=description,
                alias=self.resolve(schema, name),
            )
        logger.debug('Defining response %s', name)
        responses.register(definition)

    def canonical_name(self, name: str, schema: Schema) -> str:
        """The declaration name of the component ``name``; enums are singular."""
        type_name = sanitize_identifier(print_property(name))
        if self.is_enum_schema(schema):
            return make_singular(type_name)
        return type_name

    @staticmethod
    def is_enum_schema(schema: Schema) -> bool:
        if schema.is_string_enum:
            return True
        return bool(schema.oneOf) and all(
            not alternative.is_reference and alternative.is_string_enum
            for alternative in schema.oneOf
        )

    def dereference(self, schema: Schema) -> Schema:
        """Follow ``$ref`` chains to the inline target schema."""
        seen: set[str] = set()
        while schema.is_reference:
            if schema.ref in seen:
                raise SchemaReferenceError(schema.ref, 'circular reference')
            seen.add(schema.ref)
            schema = self._lookup(schema.ref)
        return schema

    def _lookup(self, ref: str) -> Schema:
        if not ref.startswith(COMPONENT_SCHEMA_PREFIX):
            raise SchemaReferenceError(ref, 'only #/components/schemas references are supported')
        target = self.document.component_schema(ref)
        if target is None:
            raise SchemaReferenceError(ref, 'no such component schema')
        return target

    def resolve(self, schema: Schema, name: str) -> Type:
        """Resolve ``schema`` to a type reference.

        Args:
            schema: The node to resolve.
            name: Name given to the node if it needs a declaration of its own
                (a local record, enum or one-of).
        """
        if schema.is_reference:
            return self.resolve_reference(schema.ref)

        kind = schema.kind
        if kind == 'all-of':
            if len(schema.allOf) == 1:
                return self.resolve(schema.allOf[0], name)
            self.context.warn(
                'all-of',
                name,
                f'all-of with {len(schema.allOf)} members is not supported; using Any',
            )
            return ANY
        if kind == 'any-of':
            self.context.warn('any-of', name, 'any-of is not supported; using Any')
            return ANY
        if kind == 'one-of':
            return self.unions.synthesize(name, schema)
        if kind == 'string':
            if schema.enum:
                return self.define_enum(name, schema.enum, schema.description)
            return STRING_FORMATS.get(schema.format, STR)
        if kind == 'integer':
            return INT
        if kind == 'number':
            return FLOAT
        if kind == 'boolean':
            return BOOL
        if kind == 'array':
            return self._resolve_array(schema, name)
        if kind == 'record':
            return self._resolve_record(schema, name)

        if schema.enum and all(isinstance(value, str) for value in schema.enum):
            return self.define_enum(name, schema.enum, schema.description)
        self.context.warn(
            'unknown-kind', name, f'schema of type {schema.type!r} is not supported; using Any'
        )
        return ANY

    def resolve_reference(self, ref: str) -> Type:
        target = self._lookup(ref)
        type_name = self.canonical_name(ref[len(COMPONENT_SCHEMA_PREFIX) :], target)
        if self.is_enum_schema(target):
            return Type.enum(type_name)
        return Type.model(type_name)

    def _resolve_array(self, schema: Schema, name: str) -> Type:
        items = schema.items
        if items is not None and items.is_reference:
            return Type.list_of(self.resolve_reference(items.ref))
        if items is not None and items.kind in PRIMITIVE_KINDS:
            return Type.list_of(self.resolve(items, name))

        self.context.warn(
            'array-items',
            name,
            'array items are neither a reference nor a primitive; using list[str]',
        )
        return Type.list_of(STR)

    def _resolve_record(self, schema: Schema, name: str) -> Type:
        if not schema.properties:
            value = ANY
            if isinstance(schema.additionalProperties, Schema):
                value = self.resolve(schema.additionalProperties, f'{name}Value')
            return Type.dict_of(value)

        if name in self.context.types or name in self._in_progress:
            return Type.model(name)

        self._in_progress.add(name)
        try:
            fields = [
                self.build_field(name, key, prop)
                for key, prop in sorted(schema.properties.items())
            ]
        finally:
            self._in_progress.discard(name)

        self.context.types.register_or_get(
            TypeDefinition(
                name=name,
                kind='record',
                description=schema.description,
                fields=fields,
                required=sorted(schema.required or []),
            )
        )
        return Type.model(name)

    def build_field(self, enclosing: str, key: str, prop: Schema) -> FieldDefinition:
        """Resolve the property ``key`` of the record ``enclosing``."""
        field_type = self.resolve(prop, f'{enclosing}{print_property(key)}')
        return FieldDefinition(
            name=to_field_name(key),
            type=field_type,
            wire_key=key,
            description=prop.description,
        )

    def define_enum(self, name: str, values: list, description: str | None = None) -> Type:
        """Register the enum ``make_singular(name)`` or add unseen values to it."""
        enum_name = make_singular(name)
        definition = self.context.types.get_type(enum_name)
        if definition is None:
            definition = self.context.types.register(
                TypeDefinition(
                    name=enum_name,
                    kind='enum',
                    description=description,
                    enum=EnumCollection(enum_name),
                )
            )
        elif definition.kind != 'enum':
            self.context.warn(
                'enum-value',
                enum_name,
                f'name is already used by a {definition.kind}; enum values dropped',
            )
            return Type.model(enum_name)

        for value in values:
            if not isinstance(value, str):
                self.context.warn(
                    'enum-value', enum_name, f'non-string enum value {value!r} skipped'
                )
                continue
            definition.enum.add(value)
        return Type.enum(enum_name)
