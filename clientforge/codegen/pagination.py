"""Pagination classification and all-pages functions.

A GET operation whose query parameters include both a page token
(``page_token`` or ``next_page``) and a page size (``limit``) returns one
page of a listing. Next to it an ``<operation>_all_pages`` function is
generated that walks the pages until the server stops returning a token.
"""

import ast
import dataclasses

from clientforge.codegen.ast_utils import (
    _annassign,
    _argument,
    _assign,
    _attr,
    _call,
    _const,
    _func,
    _keyword,
    _name,
)
from clientforge.codegen.context import GenerationContext
from clientforge.codegen.endpoints import (
    OperationDescriptor,
    Pagination,
    Parameter,
    build_docstring,
    signature,
)
from clientforge.codegen.utils import print_property_lower

__all__ = [
    'PAGE_SIZE',
    'all_pages_descriptor',
    'build_all_pages_function',
    'classify',
    'paginate',
]

PAGE_SIZE = 100

CURSOR_PARAMETERS = ('pageToken', 'nextPage')
PAGE_SIZE_PARAMETERS = ('limit',)


def _find(descriptor: OperationDescriptor, names: tuple[str, ...]) -> Parameter | None:
    for param in descriptor.query_params:
        if print_property_lower(param.name) in names:
            return param
    return None


def classify(descriptor: OperationDescriptor) -> Pagination:
    """Classify ``descriptor`` and record its cursor and page size parameters."""
    if descriptor.method != 'GET':
        return 'none'
    cursor = _find(descriptor, CURSOR_PARAMETERS)
    page_size = _find(descriptor, PAGE_SIZE_PARAMETERS)
    if cursor is None or page_size is None:
        return 'none'
    descriptor.cursor = cursor
    descriptor.page_size = page_size
    return 'page'


def all_pages_descriptor(
    context: GenerationContext, descriptor: OperationDescriptor
) -> OperationDescriptor | None:
    """Derive the all-pages sibling of the page operation ``descriptor``.

    The item type is the ``items`` field of the page response. Returns
    ``None``, with a diagnostic, when the response has no list of items.
    """
    response = descriptor.response_type
    definition = None
    if response is not None and response.kind == 'model':
        definition = context.types.get_type(response.name)

    fields = {field.wire_key: field for field in definition.fields} if definition else {}
    items = fields.get('items')
    if items is None or items.type.kind != 'list':
        context.warn(
            'pagination-items',
            descriptor.operation_id,
            'page response has no `items` list; all-pages function skipped',
        )
        return None

    next_page = fields.get('next_page')
    return dataclasses.replace(
        descriptor,
        name=f'{descriptor.name}AllPages',
        function_name=f'{descriptor.function_name}_all_pages',
        parameters=[
            param
            for param in descriptor.parameters
            if param is not descriptor.cursor and param is not descriptor.page_size
        ],
        response_type=items.type,
        pagination='page+all',
        page_function=descriptor.function_name,
        item_type=items.type,
        items_attr=items.name,
        next_page_attr=next_page.name if next_page else 'next_page',
    )


def paginate(
    context: GenerationContext, descriptors: list[OperationDescriptor]
) -> list[OperationDescriptor]:
    """Classify every descriptor and insert all-pages siblings after page operations."""
    taken = {descriptor.function_name for descriptor in descriptors}
    result = []
    for descriptor in descriptors:
        descriptor.pagination = classify(descriptor)
        result.append(descriptor)
        if descriptor.pagination != 'page':
            continue

        sibling = all_pages_descriptor(context, descriptor)
        if sibling is None:
            continue
        if sibling.function_name in taken:
            context.warn(
                'skipped-operation',
                descriptor.operation_id,
                f'function {sibling.function_name!r} is already generated',
            )
            continue
        taken.add(sibling.function_name)
        result.append(sibling)
    return result


def build_all_pages_function(descriptor: OperationDescriptor) -> ast.FunctionDef:
    """Build the loop collecting every page of a paginated listing.

    Pages are requested with a page size of :data:`PAGE_SIZE` until a page
    comes back without a next page token. Errors from any page propagate.
    """
    cursor = descriptor.cursor.identifier
    notes = [
        f'This function is a wrapper around the `{descriptor.page_function}` function. '
        'This function returns all the pages at once.'
    ]

    call_keywords = [
        _keyword(descriptor.page_size.identifier, _const(PAGE_SIZE)),
        _keyword(cursor, _name(cursor)),
    ]
    passthrough = [param.identifier for param in descriptor.parameters]
    if descriptor.body is not None:
        passthrough.append('body')
    call_keywords.extend(_keyword(name, _name(name)) for name in sorted(passthrough))

    loop = ast.While(
        test=_const(True),
        body=[
            _assign(
                _name('page'),
                _call(
                    _name(descriptor.page_function),
                    [_name('client')],
                    call_keywords,
                ),
            ),
            ast.Expr(
                value=_call(
                    _attr('items', 'extend'),
                    [
                        ast.BoolOp(
                            op=ast.Or(),
                            values=[
                                _attr('page', descriptor.items_attr),
                                ast.List(elts=[], ctx=ast.Load()),
                            ],
                        )
                    ],
                )
            ),
            ast.If(
                test=ast.UnaryOp(op=ast.Not(), operand=_attr('page', descriptor.next_page_attr)),
                body=[ast.Break()],
                orelse=[],
            ),
            _assign(_name(cursor), _attr('page', descriptor.next_page_attr)),
        ],
        orelse=[],
    )

    body: list[ast.stmt] = [
        build_docstring(descriptor, descriptor.parameters, notes),
        _annassign(
            'items',
            descriptor.item_type.annotation_ast(),
            ast.List(elts=[], ctx=ast.Load()),
        ),
        _assign(_name(cursor), _const(None)),
        loop,
        ast.Return(value=_name('items')),
    ]

    kwonlyargs, kw_defaults = signature(descriptor, descriptor.parameters)
    return _func(
        name=descriptor.function_name,
        args=[_argument('client', _name('Client'))],
        body=body,
        returns=descriptor.item_type.annotation_ast(),
        kwonlyargs=kwonlyargs,
        kw_defaults=kw_defaults,
    )
