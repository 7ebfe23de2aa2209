"""Type registry for managing generated types during code generation.

The resolver records every named type it discovers here. A name is
registered at most once per run; the emitter later walks the registry in
sorted name order.
"""

import ast
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from clientforge.codegen.ast_utils import _const, _name, _subscript, _union_expr
from clientforge.codegen.utils import (
    make_plural,
    make_singular,
    sanitize_parameter_field_name,
    to_camel,
    to_snake_case,
)

TypeKind = Literal['primitive', 'model', 'enum', 'list', 'dict', 'literal', 'union', 'any']

DefinitionKind = Literal['record', 'enum', 'union', 'variant', 'alias']


@dataclass(frozen=True)
class Type:
    """A resolved type reference.

    Instances are immutable and compare structurally, so two fields that
    resolve to the same type are equal regardless of how they were reached.

    Attributes:
        kind: What the reference points at.
        name: The Python name (``str``, ``datetime``, ``Instance``).
        item: Element type of ``list`` and value type of ``dict`` references.
        module: Module to import ``name`` from, for stdlib primitives.
        value: The literal value of a ``literal`` reference.
        members: The alternatives of a ``union`` reference.
    """

    kind: TypeKind
    name: str
    item: 'Type | None' = None
    module: str | None = None
    value: Any = None
    members: tuple['Type', ...] = ()

    @classmethod
    def primitive(cls, name: str, module: str | None = None) -> 'Type':
        return cls(kind='primitive', name=name, module=module)

    @classmethod
    def model(cls, name: str) -> 'Type':
        return cls(kind='model', name=name)

    @classmethod
    def enum(cls, name: str) -> 'Type':
        return cls(kind='enum', name=name)

    @classmethod
    def list_of(cls, item: 'Type') -> 'Type':
        return cls(kind='list', name='list', item=item)

    @classmethod
    def dict_of(cls, item: 'Type') -> 'Type':
        return cls(kind='dict', name='dict', item=item)

    @classmethod
    def literal(cls, value: Any) -> 'Type':
        return cls(kind='literal', name='Literal', value=value)

    @classmethod
    def union(cls, members: list['Type']) -> 'Type':
        if len(members) == 1:
            return members[0]
        return cls(kind='union', name='Union', members=tuple(members))

    @property
    def is_named(self) -> bool:
        """Whether this references a generated declaration."""
        return self.kind in ('model', 'enum')

    def annotation_ast(self) -> ast.expr:
        match self.kind:
            case 'list':
                return _subscript('list', self.item.annotation_ast())
            case 'dict':
                return _subscript(
                    'dict',
                    ast.Tuple(
                        elts=[_name('str'), self.item.annotation_ast()], ctx=ast.Load()
                    ),
                )
            case 'literal':
                return _subscript('Literal', _const(self.value))
            case 'union':
                return _union_expr([member.annotation_ast() for member in self.members])
            case _:
                return _name(self.name)

    def imports(self) -> dict[str, set[str]]:
        """Standard library imports the annotation needs."""
        imports: dict[str, set[str]] = {}
        for ref in self.walk():
            if ref.kind == 'primitive' and ref.module:
                imports.setdefault(ref.module, set()).add(ref.name)
            elif ref.kind in ('literal', 'any'):
                imports.setdefault('typing', set()).add(ref.name)
        return imports

    def named_types(self) -> set[str]:
        """Names of the generated declarations this reference mentions."""
        return {ref.name for ref in self.walk() if ref.is_named}

    def walk(self) -> Iterator['Type']:
        yield self
        if self.item is not None:
            yield from self.item.walk()
        for member in self.members:
            yield from member.walk()


STR = Type.primitive('str')
INT = Type.primitive('int')
FLOAT = Type.primitive('float')
BOOL = Type.primitive('bool')
DATETIME = Type.primitive('datetime', module='datetime')
DATE = Type.primitive('date', module='datetime')
TIME = Type.primitive('time', module='datetime')
ANY = Type(kind='any', name='Any')


@dataclass(frozen=True)
class FieldDefinition:
    """One field of a record, variant or union type.

    Attributes:
        name: The Python attribute name.
        type: The resolved type.
        wire_key: The property name used on the wire.
        description: Optional property description.
        literal: Fixed value of a variant's discriminator field.
    """

    name: str
    type: Type
    wire_key: str
    description: str | None = None
    literal: str | None = None


class EnumCollection:
    """The deduplicated, order-stable values of one string enum.

    Values are appended as they are discovered, across every schema that
    contributes to the enum. Declarations derived from the collection are
    always computed over the sorted values.
    """

    def __init__(self, name: str):
        self.name = name
        self._values: list[str] = []

    def add(self, value: str) -> bool:
        if value in self._values:
            return False
        self._values.append(value)
        return True

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __len__(self) -> int:
        return len(self._values)

    @property
    def values(self) -> tuple[str, ...]:
        return tuple(self._values)

    @property
    def collection_name(self) -> str:
        return make_plural(self.name)

    def members(self, taken: set[str] | None = None) -> list[tuple[str, str, str]]:
        """``(member name, constant name, value)`` for every value, sorted by value.

        Member names are the upper snake case of the value; constant names
        are ``to_camel('<Enum>_<value>')``. Clashes get a numeric suffix.

        Args:
            taken: Module level names the constants must not shadow. The
                chosen constant names are added to it.
        """
        used_members: set[str] = set()
        used_constants = taken if taken is not None else set()
        used_constants.update((self.name, self.collection_name))
        result = []
        for value in sorted(self._values):
            member = _unique(_member_name(value), used_members)
            constant = _unique(
                to_camel(f'{make_singular(self.name)}_{value}') or self.name, used_constants
            )
            result.append((member, constant, value))
        return result


def _member_name(value: str) -> str:
    snake = to_snake_case(value)
    if not snake:
        return 'EMPTY'
    try:
        return sanitize_parameter_field_name(snake).upper()
    except ValueError:
        return 'VALUE'


def _unique(name: str, used: set[str]) -> str:
    candidate = name
    counter = 2
    while candidate in used:
        candidate = f'{name}_{counter}'
        counter += 1
    used.add(candidate)
    return candidate


@dataclass
class TypeDefinition:
    """A named declaration to be emitted.

    Attributes:
        name: The canonical type name.
        kind: ``record``, ``enum``, ``union``, ``variant`` or ``alias``.
        description: The schema description, if any.
        fields: Ordered fields of records, variants and unions.
        required: Wire keys the schema lists as required.
        enum: Backing values of an enum.
        alias: Target of an alias.
        variants: Names of a union's variant types, in alternative order.
        discriminator: Attribute name shared by every variant's literal tag,
            or ``None`` when the variants cannot be told apart by one field.
    """

    name: str
    kind: DefinitionKind
    description: str | None = None
    fields: list[FieldDefinition] = field(default_factory=list)
    required: list[str] = field(default_factory=list)
    enum: EnumCollection | None = None
    alias: Type | None = None
    variants: list[str] = field(default_factory=list)
    discriminator: str | None = None

    @property
    def variant_alias(self) -> str:
        return f'{self.name}Variant'

    def dependencies(self) -> set[str]:
        names: set[str] = set()
        for definition_field in self.fields:
            names |= definition_field.type.named_types()
        if self.alias is not None:
            names |= self.alias.named_types()
        names.update(self.variants)
        return names


class TypeRegistry:
    """Write-once mapping of canonical type names to definitions.

    Example:
        >>> registry = TypeRegistry()
        >>> _ = registry.register(TypeDefinition(name='Instance', kind='record'))
        >>> registry.has_type('Instance')
        True
        >>> [definition.name for definition in registry]
        ['Instance']
    """

    def __init__(self):
        self._types: dict[str, TypeDefinition] = {}

    def register(self, definition: TypeDefinition) -> TypeDefinition:
        """Register a new definition.

        Raises:
            ValueError: If a type with the same name is already registered.
        """
        if definition.name in self._types:
            raise ValueError(f"Type '{definition.name}' is already registered")
        self._types[definition.name] = definition
        return definition

    def register_or_get(self, definition: TypeDefinition) -> TypeDefinition:
        """Register ``definition`` unless its name is taken; return the registered one."""
        existing = self._types.get(definition.name)
        if existing is not None:
            return existing
        return self.register(definition)

    def has_type(self, name: str) -> bool:
        return name in self._types

    def get_type(self, name: str) -> TypeDefinition | None:
        return self._types.get(name)

    def get_type_names(self) -> list[str]:
        return sorted(self._types)

    def enums(self) -> list[EnumCollection]:
        return [definition.enum for definition in self if definition.kind == 'enum']

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[TypeDefinition]:
        for name in self.get_type_names():
            yield self._types[name]

    def __contains__(self, name: object) -> bool:
        return name in self._types
