"""Operation synthesis.

:class:`OperationSynthesizer` walks ``paths`` and produces one
:class:`OperationDescriptor` per generated function. The ``build_*``
functions turn descriptors into the ``ast.FunctionDef`` nodes of the
operations artifact.
"""

import ast
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Literal

from clientforge.codegen.ast_utils import (
    _argument,
    _assign,
    _attr,
    _call,
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
from clientforge.codegen.type_registry import Type
from clientforge.codegen.types import TypeResolver
from clientforge.codegen.utils import (
    print_property,
    sanitize_parameter_field_name,
    to_snake_case,
)
from clientforge.exceptions import EndpointGenerationError, SchemaReferenceError
from clientforge.openapi import Operation, Parameter as ParameterObject, Schema

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = 'application/json'

ParameterStyle = Literal['string', 'number', 'boolean', 'timestamp', 'array']
Pagination = Literal['none', 'page', 'page+all']

# Local variable names used inside generated function bodies.
RESERVED_LOCALS = frozenset(
    {'body', 'client', 'items', 'page', 'params', 'query', 'response', 'validator'}
)


@dataclass
class Parameter:
    """A path or query parameter of an operation.

    Attributes:
        name: The wire name.
        identifier: The Python argument name.
        type: The resolved type.
        location: ``path`` or ``query``.
        required: Whether the caller must supply a value.
        description: Optional parameter description.
        style: How a value is rendered into the URL.
    """

    name: str
    identifier: str
    type: Type
    location: Literal['path', 'query']
    required: bool
    description: str | None = None
    style: ParameterStyle = 'string'


@dataclass
class RequestBody:
    """The request body of an operation.

    JSON bodies are typed; any other content type is sent as raw bytes.
    """

    content_type: str
    type: Type | None
    required: bool
    description: str | None = None

    @property
    def is_json(self) -> bool:
        return self.content_type == JSON_CONTENT_TYPE


@dataclass
class OperationDescriptor:
    """Everything needed to emit one operation function.

    Attributes:
        operation_id: The operationId from the document.
        name: The normalized operation name.
        function_name: The Python function name.
        method: Upper case HTTP verb.
        path: The path template.
        parameters: Path and query parameters, sorted by name.
        body: The request body, if any.
        response_type: The success response type, or ``None``.
        pagination: ``none``, ``page`` for a single page of a paginated
            listing, or ``page+all`` for the function collecting every page.
        page_function: For ``page+all``, the single page function it calls.
        cursor: For paginated operations, the page token parameter.
        page_size: For paginated operations, the page size parameter.
        item_type: For ``page+all``, the type of the collected items.
        items_attr: For ``page+all``, the attribute holding a page's items.
        next_page_attr: For ``page+all``, the attribute holding the next token.
    """

    operation_id: str
    name: str
    function_name: str
    method: str
    path: str
    parameters: list[Parameter] = field(default_factory=list)
    body: RequestBody | None = None
    response_type: Type | None = None
    pagination: Pagination = 'none'
    summary: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    page_function: str | None = None
    cursor: Parameter | None = None
    page_size: Parameter | None = None
    item_type: Type | None = None
    items_attr: str = 'items'
    next_page_attr: str = 'next_page'

    @property
    def path_params(self) -> list[Parameter]:
        return [param for param in self.parameters if param.location == 'path']

    @property
    def query_params(self) -> list[Parameter]:
        return [param for param in self.parameters if param.location == 'query']

    def named_types(self) -> set[str]:
        names: set[str] = set()
        for param in self.parameters:
            names |= param.type.named_types()
        if self.body is not None and self.body.type is not None:
            names |= self.body.type.named_types()
        for ref in (self.response_type, self.item_type):
            if ref is not None:
                names |= ref.named_types()
        return names


def _status_code(code: str) -> int:
    if code == 'default':
        return 200
    return int(code.upper().replace('XX', '00'))


def parameter_style(schema: Schema) -> ParameterStyle:
    if schema.type == 'array':
        return 'array'
    if schema.type in ('integer', 'number'):
        return 'number'
    if schema.type == 'boolean':
        return 'boolean'
    if schema.type == 'string' and schema.format in ('date-time', 'date', 'time'):
        return 'timestamp'
    return 'string'


def argument_name(name: str) -> str:
    identifier = sanitize_parameter_field_name(to_snake_case(name) or name)
    if identifier in RESERVED_LOCALS:
        return f'{identifier}_'
    return identifier


class OperationSynthesizer:
    """Builds operation descriptors for every path and verb of the document.

    Paths are visited in sorted order and verbs in the order GET, POST, PUT,
    DELETE, PATCH, HEAD, OPTIONS. Pagination is classified afterwards, see
    :func:`clientforge.codegen.pagination.paginate`.
    """

    def __init__(self, context: GenerationContext, resolver: TypeResolver):
        self.context = context
        self.resolver = resolver
        self._function_names: set[str] = set()

    def synthesize(self) -> list[OperationDescriptor]:
        descriptors: list[OperationDescriptor] = []
        paths = self.context.document.paths
        for path in sorted(paths):
            path_item = paths[path]
            if path_item.ref is not None:
                self.context.warn(
                    'reference-position', path, f'path item reference {path_item.ref} skipped'
                )
                continue

            for method, operation in path_item.operations():
                descriptor = self.describe(path, method, operation, path_item.parameters or [])
                if descriptor is not None:
                    descriptors.append(descriptor)
        return descriptors

    def _claim(self, function_name: str, descriptor: OperationDescriptor) -> bool:
        if function_name in self._function_names:
            self.context.warn(
                'skipped-operation',
                descriptor.operation_id,
                f'function {function_name!r} is already generated',
            )
            return False
        self._function_names.add(function_name)
        return True

    def describe(
        self,
        path: str,
        method: str,
        operation: Operation,
        shared_parameters: list[ParameterObject],
    ) -> OperationDescriptor | None:
        """Build the descriptor for one operation, or ``None`` if it is skipped."""
        operation_id = operation.operationId or f'{method.lower()} {path}'
        if not operation.tags:
            self.context.warn('skipped-operation', operation_id, 'operation has no tags')
            return None
        if operation.tags[0] == 'hidden':
            self.context.warn('skipped-operation', operation_id, 'operation is hidden')
            return None
        if not operation.operationId:
            self.context.warn('skipped-operation', operation_id, 'operation has no operationId')
            return None

        name = print_property(operation_id)
        function_name = sanitize_parameter_field_name(to_snake_case(operation_id))
        logger.debug('Describing %s %s as %s', method, path, function_name)

        try:
            descriptor = OperationDescriptor(
                operation_id=operation_id,
                name=name,
                function_name=function_name,
                method=method,
                path=path,
                parameters=self._parameters(operation_id, shared_parameters, operation),
                body=self._request_body(name, operation),
                response_type=self._response_type(name, operation),
                summary=operation.summary,
                description=operation.description,
                tags=list(operation.tags),
            )
        except ValueError as e:
            raise EndpointGenerationError(operation_id, method, path, cause=e) from e

        if not self._claim(function_name, descriptor):
            return None
        return descriptor

    def _parameters(
        self,
        operation_id: str,
        shared: list[ParameterObject],
        operation: Operation,
    ) -> list[Parameter]:
        declared: dict[tuple[str, str], ParameterObject] = {}
        for param in [*shared, *(operation.parameters or [])]:
            if param.ref is not None:
                self.context.warn(
                    'reference-position',
                    operation_id,
                    f'parameter reference {param.ref} skipped',
                )
                continue
            if param.in_ not in ('path', 'query') or not param.name:
                continue
            declared[(param.in_, param.name)] = param

        parameters = []
        for (location, param_name), param in declared.items():
            schema = param.schema_ or Schema(type='string')
            param_type = self.resolver.resolve(
                schema, f'{print_property(operation_id)}{print_property(param_name)}'
            )
            parameters.append(
                Parameter(
                    name=param_name,
                    identifier=argument_name(param_name),
                    type=param_type,
                    location=location,
                    required=location == 'path' or bool(param.required),
                    description=param.description,
                    style=parameter_style(self.resolver.dereference(schema)),
                )
            )
        return sorted(parameters, key=lambda param: (param.identifier, param.location))

    def _request_body(self, name: str, operation: Operation) -> RequestBody | None:
        body = operation.requestBody
        if body is None:
            return None
        if body.ref is not None:
            body = self._lookup_request_body(body.ref)
        if not body.content:
            return None

        content = body.content
        if JSON_CONTENT_TYPE in content and set(content) == {JSON_CONTENT_TYPE}:
            schema = content[JSON_CONTENT_TYPE].schema_ or Schema()
            body_type = self.resolver.resolve(schema, f'{name}Body')
            return RequestBody(
                content_type=JSON_CONTENT_TYPE,
                type=body_type,
                required=bool(body.required),
                description=body.description,
            )

        return RequestBody(
            content_type=sorted(content)[0],
            type=None,
            required=bool(body.required),
            description=body.description,
        )

    def _lookup_request_body(self, ref: str):
        prefix = '#/components/requestBodies/'
        target = None
        if ref.startswith(prefix):
            target = self.context.document.components.requestBodies.get(ref[len(prefix) :])
        if target is None or target.ref is not None:
            raise SchemaReferenceError(ref, 'no such request body')
        return target

    def _response_type(self, name: str, operation: Operation) -> Type | None:
        responses = operation.responses or {}
        if 'default' in responses:
            return None

        for code in sorted(responses, key=_status_code):
            if not 200 <= _status_code(code) < 300:
                continue
            response = responses[code]
            if response.ref is not None:
                self.context.warn(
                    'response-reference',
                    name,
                    f'response {code} is a reference to {response.ref}; skipped',
                )
                continue
            for media_type in sorted(response.content or {}):
                schema = response.content[media_type].schema_
                if schema is None:
                    continue
                if schema.is_reference:
                    return self.resolver.resolve_reference(schema.ref)
                return self.resolver.resolve(schema, f'{name}Response')
        return None


# =============================================================================
# AST construction
# =============================================================================


def render_value(param: Parameter) -> ast.expr:
    """Expression rendering a parameter's value as URL text."""
    value = _name(param.identifier)
    match param.style:
        case 'number':
            return _call(_name('str'), [value])
        case 'boolean':
            return _call(_attr(_call(_name('str'), [value]), 'lower'))
        case 'timestamp':
            return _call(_attr(value, 'isoformat'))
        case 'array':
            # The transport renders the items: one query key each, comma joined in a path.
            return value
        case _:
            return value


def annotation(param: Parameter) -> ast.expr:
    if param.required:
        return param.type.annotation_ast()
    return _optional_expr(param.type.annotation_ast())


def body_annotation(body: RequestBody) -> ast.expr:
    if body.type is not None:
        annotation_ast = body.type.annotation_ast()
    else:
        annotation_ast = _union_expr([_subscript('IO', _name('bytes')), _name('bytes')])
    if body.required:
        return annotation_ast
    return _optional_expr(annotation_ast)


def signature(
    descriptor: OperationDescriptor, parameters: list[Parameter]
) -> tuple[list[ast.arg], list[ast.expr | None]]:
    """Keyword-only arguments, sorted by name; optional ones default to ``None``."""
    entries: list[tuple[str, ast.expr, bool]] = [
        (param.identifier, annotation(param), param.required) for param in parameters
    ]
    if descriptor.body is not None:
        entries.append(('body', body_annotation(descriptor.body), descriptor.body.required))

    kwonlyargs = []
    kw_defaults = []
    for identifier, annotation_ast, required in sorted(entries, key=lambda entry: entry[0]):
        kwonlyargs.append(_argument(identifier, annotation_ast))
        kw_defaults.append(None if required else _const(None))
    return kwonlyargs, kw_defaults


def build_docstring(
    descriptor: OperationDescriptor,
    parameters: list[Parameter],
    notes: list[str],
) -> ast.Expr:
    summary = descriptor.summary or f'{descriptor.method} {descriptor.path}'
    sections = [summary.strip()]
    if descriptor.description and descriptor.description.strip() != summary.strip():
        sections.append(descriptor.description.strip())
    sections.extend(notes)

    arg_lines = []
    for param in sorted(parameters, key=lambda param: param.identifier):
        description = ' '.join((param.description or '').split())
        arg_lines.append(f'    {param.identifier}: {description}'.rstrip())
    if descriptor.body is not None:
        description = ' '.join((descriptor.body.description or 'The request body.').split())
        arg_lines.append(f'    body: {description}')
    if arg_lines:
        sections.append('Args:\n' + '\n'.join(sorted(arg_lines)))

    text = '\n\n'.join(sections)
    return _docstring(textwrap.indent(text, '    ').strip() + '\n    ')


def _validation(descriptor: OperationDescriptor) -> list[ast.stmt]:
    checks = []
    for param in descriptor.parameters:
        if not param.required:
            continue
        if param.style == 'number':
            check = 'has_required_num'
        elif param.style == 'string':
            check = 'has_required_str'
        else:
            check = 'has_required_obj'
        checks.append((param.identifier, check, param.name))
    if descriptor.body is not None and descriptor.body.required:
        checks.append(('body', 'has_required_obj', 'body'))

    if not checks:
        return []

    body: list[ast.stmt] = [_assign(_name('validator'), _call(_name('Validator')))]
    for identifier, check, label in sorted(checks):
        body.append(
            ast.Expr(
                value=_call(
                    _attr('validator', check), [_name(identifier), _const(label)]
                )
            )
        )
    body.append(ast.Expr(value=_call(_attr('validator', 'raise_if_invalid'))))
    return body


def _query(descriptor: OperationDescriptor) -> list[ast.stmt]:
    body: list[ast.stmt] = [_assign(_name('query'), ast.Dict(keys=[], values=[]))]
    for param in descriptor.query_params:
        store = ast.Assign(
            targets=[
                ast.Subscript(
                    value=_name('query'), slice=_const(param.name), ctx=ast.Store()
                )
            ],
            value=render_value(param),
        )
        if param.required:
            body.append(store)
        else:
            body.append(
                ast.If(
                    test=ast.Compare(
                        left=_name(param.identifier),
                        ops=[ast.IsNot()],
                        comparators=[_const(None)],
                    ),
                    body=[store],
                    orelse=[],
                )
            )
    return body


def _request_content(body: RequestBody) -> ast.expr:
    if body.type is None:
        return _name('body')
    # TypeAdapter(T).dump_json(body, by_alias=True, exclude_none=True)
    return _call(
        _attr(_call(_name('TypeAdapter'), [body.type.annotation_ast()]), 'dump_json'),
        [_name('body')],
        [_keyword('by_alias', _const(True)), _keyword('exclude_none', _const(True))],
    )


def build_operation_function(descriptor: OperationDescriptor) -> ast.FunctionDef:
    """Build the function issuing one request of ``descriptor``.

    The generated body validates required arguments, renders path and query
    parameters, sends the request through the client, checks the response
    status and decodes the success body.
    """
    notes = []
    if descriptor.pagination == 'page':
        notes.append(
            'To iterate over all pages, use the '
            f'`{descriptor.function_name}_all_pages` function, instead.'
        )

    body: list[ast.stmt] = [build_docstring(descriptor, descriptor.parameters, notes)]
    body.extend(_validation(descriptor))
    body.extend(_query(descriptor))

    request_keywords = [
        _keyword('method', _const(descriptor.method)),
        _keyword('path', _const(descriptor.path)),
        _keyword(
            'params',
            ast.Dict(
                keys=[_const(param.name) for param in descriptor.path_params],
                values=[render_value(param) for param in descriptor.path_params],
            ),
        ),
        _keyword('query', _name('query')),
    ]
    if descriptor.body is not None:
        content = _request_content(descriptor.body)
        if not descriptor.body.required and descriptor.body.type is not None:
            content = ast.IfExp(
                test=ast.Compare(
                    left=_name('body'), ops=[ast.Is()], comparators=[_const(None)]
                ),
                body=_const(None),
                orelse=content,
            )
        request_keywords.append(_keyword('content', content))
        request_keywords.append(
            _keyword('content_type', _const(descriptor.body.content_type))
        )

    body.append(
        _assign(
            _name('response'),
            _call(
                _attr('client', 'make_request'),
                [_call(_name('Request'), keywords=request_keywords)],
            ),
        )
    )
    body.append(ast.Expr(value=_call(_name('check_response'), [_name('response')])))

    if descriptor.response_type is not None:
        body.append(
            ast.Return(
                value=_call(
                    _attr(
                        _call(_name('TypeAdapter'), [descriptor.response_type.annotation_ast()]),
                        'validate_json',
                    ),
                    [_attr('response', 'content')],
                )
            )
        )
        returns = descriptor.response_type.annotation_ast()
    else:
        returns = _const(None)

    kwonlyargs, kw_defaults = signature(descriptor, descriptor.parameters)
    return _func(
        name=descriptor.function_name,
        args=[_argument('client', _name('Client'))],
        body=body,
        returns=returns,
        kwonlyargs=kwonlyargs,
        kw_defaults=kw_defaults,
    )
