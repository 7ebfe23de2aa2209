"""One-of flattening.

A ``oneOf`` schema becomes:

* one variant declaration per alternative, named ``<Base><Tag>`` where the
  tag is the alternative's single-valued string enum property (``DiskSource``
  with ``type: snapshot`` gives ``DiskSourceSnapshot``);
* a merged declaration ``<Base>`` carrying every field of every
  alternative, all optional;
* a closed union ``<Base>Variant`` of the variants, discriminated on the tag
  when every variant has the same tag field.

Alternatives whose tag cannot be determined are reported and left out of the
variants, but their fields still join the merged declaration.
"""

import dataclasses
import logging
from typing import TYPE_CHECKING

from clientforge.codegen.type_registry import FieldDefinition, Type, TypeDefinition
from clientforge.codegen.utils import print_property
from clientforge.openapi import Schema

if TYPE_CHECKING:
    from clientforge.codegen.types import TypeResolver

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _Variant:
    name: str
    fields: list[FieldDefinition]
    resolved: list[FieldDefinition]
    description: str | None
    tag_field: str | None


class UnionSynthesizer:
    """Builds the variant, merged and sum declarations of one-of schemas."""

    def __init__(self, resolver: 'TypeResolver'):
        self.resolver = resolver

    @property
    def context(self):
        return self.resolver.context

    def synthesize(self, name: str, schema: Schema) -> Type:
        """Register the declarations for the one-of ``schema`` named ``name``.

        Returns:
            The type reference standing for the whole one-of: the merged
            declaration for record alternatives, the enum when every
            alternative is a string enum, or a plain union otherwise.
        """
        alternatives = schema.oneOf

        if self.resolver.is_enum_schema(schema):
            values = [value for alternative in alternatives for value in alternative.enum]
            return self.resolver.define_enum(name, values, schema.description)

        targets = [self.resolver.dereference(alternative) for alternative in alternatives]
        if not any(target.properties for target in targets):
            members: list[Type] = []
            for alternative in alternatives:
                member = self.resolver.resolve(alternative, name)
                if member not in members:
                    members.append(member)
            return Type.union(members)

        if name in self.context.types:
            return Type.model(name)

        logger.debug('Synthesizing one-of %s from %d alternatives', name, len(alternatives))
        merged: dict[str, FieldDefinition] = {}
        variants: list[_Variant] = []

        for index, target in enumerate(targets):
            if not target.properties:
                self.context.warn(
                    'one-of-discriminator',
                    name,
                    f'alternative {index} has no properties and is not a variant',
                )
                continue

            variant = self._variant(name, index, target)
            for merged_field in variant.resolved:
                known = merged.get(merged_field.name)
                if known is None:
                    merged[merged_field.name] = merged_field
                elif known.type != merged_field.type:
                    merged[merged_field.name] = self._widen(name, known, merged_field)
            if variant.name and variant.name not in {seen.name for seen in variants}:
                variants.append(variant)

        for variant in variants:
            self.context.types.register_or_get(
                TypeDefinition(
                    name=variant.name,
                    kind='variant',
                    description=variant.description,
                    fields=variant.fields,
                )
            )

        tag_fields = {variant.tag_field for variant in variants}
        discriminator = None
        if len(variants) > 1 and len(tag_fields) == 1 and None not in tag_fields:
            discriminator = tag_fields.pop()

        self.context.types.register_or_get(
            TypeDefinition(
                name=name,
                kind='union',
                description=schema.description,
                fields=list(merged.values()),
                variants=[variant.name for variant in variants],
                discriminator=discriminator,
            )
        )
        return Type.model(name)

    def _widen(
        self, name: str, known: FieldDefinition, other: FieldDefinition
    ) -> FieldDefinition:
        """Merge two alternatives' fields of the same name into one union field."""
        members = list(known.type.members) if known.type.kind == 'union' else [known.type]
        if other.type in members:
            return known
        members.append(other.type)
        self.context.warn(
            'one-of-field',
            name,
            f'field {known.name!r} has a different type in each alternative; '
            'merged as a union',
        )
        return dataclasses.replace(known, type=Type.union(members))

    def _variant(self, name: str, index: int, target: Schema) -> _Variant:
        """Resolve the fields of one alternative and work out its variant name.

        Property types resolve with ``name`` as the enclosing name, so local
        enums of every alternative accumulate into a single shared enum.
        """
        fields: list[FieldDefinition] = []
        tag: tuple[int, str] | None = None

        for key, prop in sorted(target.properties.items()):
            field = self.resolver.build_field(name, key, prop)
            fields.append(field)

            prop_target = self.resolver.dereference(prop)
            if prop_target.type != 'string' or not prop_target.enum:
                continue
            if len(prop_target.enum) != 1:
                self.context.warn(
                    'one-of-discriminator',
                    name,
                    f'alternative {index} property {key!r} has '
                    f'{len(prop_target.enum)} enum values; not a discriminator',
                )
                continue
            tag = (len(fields) - 1, str(prop_target.enum[0]))

        resolved = list(fields)
        required = target.required or []
        if tag is not None:
            position, value = tag
            fields[position] = dataclasses.replace(
                fields[position], type=Type.literal(value), literal=value
            )
            suffix = print_property(value)
            tag_field = fields[position].name
        elif len(target.properties) == 1 and len(required) == 1:
            suffix = print_property(required[0])
            tag_field = None
        else:
            suffix = ''
            tag_field = None

        if not suffix:
            self.context.warn(
                'one-of-discriminator',
                name,
                f'alternative {index} has no single-valued string enum property; '
                'excluded from the variants',
            )
            return _Variant(
                name='',
                fields=fields,
                resolved=resolved,
                description=target.description,
                tag_field=None,
            )

        return _Variant(
            name=f'{name}{suffix}',
            fields=fields,
            resolved=resolved,
            description=target.description,
            tag_field=tag_field,
        )
