"""Rendering of the generated package.

Every artifact is assembled as a Python AST, unparsed, prefixed with the
generated-code header and formatted with black. Nothing here touches the
filesystem; :mod:`clientforge.codegen.file_writer` commits the rendered text.
"""

import ast
import logging
from importlib import resources

import black

from clientforge._version import version
from clientforge.codegen.ast_utils import (
    ImportCollector,
    _all,
    _annassign,
    _argument,
    _assign,
    _attr,
    _call,
    _class,
    _const,
    _docstring,
    _func,
    _keyword,
    _name,
    _optional_expr,
    _subscript,
    _union_expr,
)
from clientforge.codegen.context import GenerationContext
from clientforge.codegen.endpoints import OperationDescriptor, build_operation_function
from clientforge.codegen.pagination import build_all_pages_function
from clientforge.codegen.type_registry import FieldDefinition, TypeDefinition, TypeRegistry
from clientforge.codegen.utils import lower_first
from clientforge.exceptions import CodeGenerationError

logger = logging.getLogger(__name__)

GENERATOR = 'clientforge'
HEADER = f'# Code generated by {GENERATOR}. DO NOT EDIT.\n\n'
SDK_VERSION = f'v{version}'

RUNTIME_MODULES = ('errors.py', 'transport.py', 'validate.py')

MODEL_CONFIG_KEYWORDS = (
    ('populate_by_name', True),
    ('protected_namespaces', ()),
)


# =============================================================================
# Descriptions
# =============================================================================


def _single_line(text: str) -> str:
    return ' '.join(text.split())


def type_description(name: str, description: str | None) -> str:
    if description and description.strip():
        return f'{name} is {lower_first(_single_line(description))}'
    return f'{name} is the type definition for a {name}.'


def response_description(name: str, description: str | None) -> str:
    if description and description.strip():
        return f'{name} is the response given when {lower_first(_single_line(description))}'
    return f'{name} is the type definition for a {name} response.'


def _with_required(text: str, required: list[str]) -> str:
    if not required:
        return text
    lines = '\n'.join(f'- {key}' for key in required)
    return f'{text}\n\nRequired fields:\n{lines}\n'


# =============================================================================
# Module assembly
# =============================================================================


def format_source(source: str, artifact: str) -> str:
    try:
        return black.format_str(source, mode=black.Mode())
    except black.InvalidInput as e:
        raise CodeGenerationError('Generated code is not valid Python', artifact, e) from e


def render_module(body: list[ast.stmt], artifact: str) -> str:
    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    logger.debug('Rendering %s', artifact)
    return format_source(HEADER + ast.unparse(module) + '\n', artifact)


def _model_config() -> ast.Assign:
    return _assign(
        _name('model_config'),
        _call(
            _name('ConfigDict'),
            keywords=[
                _keyword(
                    key,
                    ast.Tuple(elts=[], ctx=ast.Load()) if isinstance(value, tuple) else _const(value),
                )
                for key, value in MODEL_CONFIG_KEYWORDS
            ],
        ),
    )


def _field_statement(definition_field: FieldDefinition, attr: str) -> ast.AnnAssign:
    keywords = []
    if definition_field.literal is not None:
        annotation = definition_field.type.annotation_ast()
        default = _const(definition_field.literal)
    else:
        annotation = _optional_expr(definition_field.type.annotation_ast())
        default = _const(None)

    if attr != definition_field.wire_key:
        keywords.append(_keyword('alias', _const(definition_field.wire_key)))
    if definition_field.description and definition_field.description.strip():
        keywords.append(
            _keyword('description', _const(_single_line(definition_field.description)))
        )

    if keywords:
        value = _call(_name('Field'), keywords=[_keyword('default', default), *keywords])
    else:
        value = default
    return _annassign(attr, annotation, value)


def _attribute_names(definition: TypeDefinition) -> list[str]:
    # A field must not shadow a name its class annotations refer to.
    referenced = {
        ref.name for definition_field in definition.fields for ref in definition_field.type.walk()
    }
    return [
        f'{definition_field.name}_' if definition_field.name in referenced else definition_field.name
        for definition_field in definition.fields
    ]


def model_class(definition: TypeDefinition, description: str, imports: ImportCollector) -> ast.ClassDef:
    """``class X(BaseModel)`` with one optional field per definition field."""
    imports.add_imports({'pydantic': {'BaseModel', 'ConfigDict'}})
    body: list[ast.stmt] = [_docstring(description), _model_config()]

    for definition_field, attr in zip(definition.fields, _attribute_names(definition)):
        imports.add_imports(definition_field.type.imports())
        statement = _field_statement(definition_field, attr)
        if isinstance(statement.value, ast.Call):
            imports.add_import('pydantic', 'Field')
        body.append(statement)

    if definition.kind == 'union' and definition.variants:
        imports.add_import('pydantic', 'TypeAdapter')
        body.append(_as_variant_method(definition))

    return _class(definition.name, [_name('BaseModel')], body)


def _as_variant_method(definition: TypeDefinition) -> ast.FunctionDef:
    dump = _call(
        _attr('self', 'model_dump'),
        keywords=[
            _keyword('mode', _const('json')),
            _keyword('by_alias', _const(True)),
            _keyword('exclude_none', _const(True)),
        ],
    )
    return _func(
        name='as_variant',
        args=[_argument('self')],
        body=[
            _docstring(
                f'Return the {definition.name} variant this value holds.\n\n'
                '        Raises:\n'
                '            pydantic.ValidationError: If the value matches none of the variants.\n'
                '        '
            ),
            ast.Return(
                value=_call(
                    _attr(
                        _call(_name('TypeAdapter'), [_name(definition.variant_alias)]),
                        'validate_python',
                    ),
                    [dump],
                )
            ),
        ],
        returns=_name(definition.variant_alias),
    )


def variant_alias(definition: TypeDefinition, imports: ImportCollector) -> list[ast.stmt]:
    """``XVariant``: the closed union of a one-of's variant types."""
    members = _union_expr([_name(name) for name in definition.variants])
    if definition.discriminator is not None:
        imports.add_imports({'typing': {'Annotated'}, 'pydantic': {'Field'}})
        value = _subscript(
            'Annotated',
            ast.Tuple(
                elts=[
                    members,
                    _call(
                        _name('Field'),
                        keywords=[_keyword('discriminator', _const(definition.discriminator))],
                    ),
                ],
                ctx=ast.Load(),
            ),
        )
    else:
        value = members
    return [
        _assign(_name(definition.variant_alias), value),
        _docstring(f'{definition.variant_alias} is one of the variants of {definition.name}.'),
    ]


def enum_declarations(definition: TypeDefinition, taken: set[str]) -> tuple[list[ast.stmt], list[str]]:
    """The enum class, one constant per value and the collection of all values."""
    collection = definition.enum
    members = collection.members(taken)

    class_body: list[ast.stmt] = [_docstring(type_description(definition.name, definition.description))]
    class_body.extend(
        _assign(_name(member), _const(value)) for member, _, value in members
    )
    statements: list[ast.stmt] = [_class(definition.name, [_name('str'), _name('Enum')], class_body)]

    exported = [definition.name]
    for member, constant, value in members:
        statements.append(_assign(_name(constant), _attr(definition.name, member)))
        statements.append(
            _docstring(f'{constant} represents the {definition.name} `"{value}"`.')
        )
        exported.append(constant)

    statements.append(
        _assign(
            _name(collection.collection_name),
            ast.List(elts=[_name(constant) for _, constant, _ in members], ctx=ast.Load()),
        )
    )
    statements.append(
        _docstring(
            f'{collection.collection_name} is the collection of all {definition.name} values.'
        )
    )
    exported.append(collection.collection_name)
    return statements, exported


def _alias_order(aliases: list[TypeDefinition]) -> list[TypeDefinition]:
    """Aliases sorted by name, each after the aliases it refers to."""
    by_name = {alias.name: alias for alias in aliases}
    ordered: list[TypeDefinition] = []
    placed: set[str] = set()

    def place(alias: TypeDefinition, visiting: frozenset[str]) -> None:
        if alias.name in placed or alias.name in visiting:
            return
        for dependency in sorted(alias.dependencies()):
            if dependency in by_name:
                place(by_name[dependency], visiting | {alias.name})
        placed.add(alias.name)
        ordered.append(alias)

    for alias in aliases:
        place(alias, frozenset())
    return ordered


def _declarations(
    registry: TypeRegistry,
    imports: ImportCollector,
    describe,
    taken: set[str],
) -> tuple[list[ast.stmt], list[str]]:
    """Statements declaring every definition of ``registry``.

    Enums and classes come first in name order, then aliases, then the
    variant unions, then the ``model_rebuild()`` calls resolving the
    postponed annotations.
    """
    declarations: list[ast.stmt] = []
    aliases: list[TypeDefinition] = []
    variants: list[ast.stmt] = []
    models: list[str] = []
    exported: list[str] = []

    for definition in registry:
        description = describe(definition.name, definition.description)
        if definition.kind == 'enum':
            imports.add_import('enum', 'Enum')
            statements, names = enum_declarations(definition, taken)
            declarations.extend(statements)
            exported.extend(names)
        elif definition.kind == 'alias':
            aliases.append(definition)
            exported.append(definition.name)
        else:
            declarations.append(
                model_class(definition, _with_required(description, definition.required), imports)
            )
            models.append(definition.name)
            exported.append(definition.name)
            if definition.kind == 'union' and definition.variants:
                variants.extend(variant_alias(definition, imports))
                exported.append(definition.variant_alias)

    for alias in _alias_order(aliases):
        imports.add_imports(alias.alias.imports())
        declarations.append(_assign(_name(alias.name), alias.alias.annotation_ast()))
        declarations.append(_docstring(describe(alias.name, alias.description)))

    declarations.extend(variants)
    declarations.extend(
        ast.Expr(value=_call(_attr(name, 'model_rebuild'))) for name in models
    )
    return declarations, sorted(exported)


# =============================================================================
# Artifacts
# =============================================================================


def render_models(context: GenerationContext) -> str:
    """Artifact (a): every data type of the document."""
    imports = ImportCollector()
    imports.add_import('__future__', 'annotations')
    taken = set(context.types.get_type_names())
    declarations, exported = _declarations(context.types, imports, type_description, taken)
    return render_module([*imports.to_ast(), _all(exported), *declarations], 'models')


def render_responses(context: GenerationContext, models_module: str = 'models') -> str:
    """Artifact (b): the named responses of the document."""
    imports = ImportCollector()
    imports.add_import('__future__', 'annotations')
    taken = set(context.types.get_type_names()) | set(context.responses.get_type_names())
    declarations, exported = _declarations(
        context.responses, imports, response_description, taken
    )

    referenced: set[str] = set()
    for definition in context.responses:
        referenced |= definition.dependencies()
    for name in sorted(referenced - set(context.responses.get_type_names())):
        imports.add_import(f'.{models_module}', name)

    return render_module([*imports.to_ast(), _all(exported), *declarations], 'responses')


def render_paths(descriptors: list[OperationDescriptor], models_module: str = 'models') -> str:
    """Artifact (c): one function per operation, in path order."""
    imports = ImportCollector()
    imports.add_imports(
        {
            '.client': {'Client'},
            '.errors': {'check_response'},
            '.transport': {'Request'},
        }
    )
    functions: list[ast.stmt] = []

    for descriptor in descriptors:
        if descriptor.pagination == 'page+all':
            functions.append(build_all_pages_function(descriptor))
        else:
            functions.append(build_operation_function(descriptor))
            if descriptor.response_type is not None or (
                descriptor.body is not None and descriptor.body.type is not None
            ):
                imports.add_import('pydantic', 'TypeAdapter')
            if descriptor.body is not None and descriptor.body.type is None:
                imports.add_import('typing', 'IO')
            if any(param.required for param in descriptor.parameters) or (
                descriptor.body is not None and descriptor.body.required
            ):
                imports.add_import('.validate', 'Validator')

        for ref in _descriptor_types(descriptor):
            imports.add_imports(ref.imports())
        for name in descriptor.named_types():
            imports.add_import(f'.{models_module}', name)

    names = [descriptor.function_name for descriptor in descriptors]
    return render_module([*imports.to_ast(), _all(sorted(names)), *functions], 'paths')


def _descriptor_types(descriptor: OperationDescriptor):
    for param in descriptor.parameters:
        yield param.type
    if descriptor.body is not None and descriptor.body.type is not None:
        yield descriptor.body.type
    if descriptor.response_type is not None:
        yield descriptor.response_type


def render_version(api_version: str, sdk_version: str = SDK_VERSION) -> str:
    """Artifact (d): the library version and the document version."""
    if not api_version:
        raise CodeGenerationError('The document has an empty info.version', 'version')
    body = [
        _assign(_name('SDK_VERSION'), _const(sdk_version)),
        _docstring('SDK_VERSION is the version of the generated client library.'),
        _assign(_name('OPENAPI_VERSION'), _const(api_version)),
        _docstring('OPENAPI_VERSION is the version of the API document the client targets.'),
    ]
    return render_module(body, 'version')


def render_client(title: str, env_prefix: str, version_module: str = 'version') -> str:
    """The ``Client`` class bound to the document's versions and environment."""
    imports = ImportCollector()
    imports.add_imports(
        {'.transport': {'BaseClient'}, f'.{version_module}': {'OPENAPI_VERSION', 'SDK_VERSION'}}
    )
    api = f'the {title} API' if title else 'the API'
    description = (
        f'Client for {api}.\n\n'
        f'    The host and token default to the ``{env_prefix}_HOST`` and '
        f'``{env_prefix}_TOKEN``\n'
        '    environment variables.\n'
        '    '
    )
    body = [
        _docstring(description),
        _assign(_name('env_prefix'), _const(env_prefix)),
        _assign(
            _name('user_agent'),
            ast.BinOp(left=_const(f'{GENERATOR}/'), op=ast.Add(), right=_name('SDK_VERSION')),
        ),
        _assign(_name('api_version'), _name('OPENAPI_VERSION')),
    ]
    return render_module(
        [*imports.to_ast(), _class('Client', [_name('BaseClient')], body)], 'client'
    )


def render_init(version_module: str = 'version') -> str:
    imports = ImportCollector()
    exported = {
        '.client': {'Client'},
        '.errors': {'APIError', 'ErrorResponse', 'HTTPError'},
        '.validate': {'ValidationError', 'Validator'},
        f'.{version_module}': {'OPENAPI_VERSION', 'SDK_VERSION'},
    }
    imports.add_imports(exported)
    names = sorted(name for group in exported.values() for name in group)
    return render_module([*imports.to_ast(), _all(names)], '__init__')


def runtime_modules() -> dict[str, str]:
    """Source of the runtime modules shipped with every generated client."""
    package = resources.files('clientforge.runtime')
    return {
        filename: HEADER + package.joinpath(filename).read_text(encoding='utf-8')
        for filename in RUNTIME_MODULES
    }
