"""Small constructors for the `ast` nodes the emitters build.

Generated modules are assembled as `ast.Module` trees and unparsed, never
concatenated as text, so quoting and indentation are always valid.
"""

import ast
import sys
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

__all__ = [
    '_name',
    '_attr',
    '_subscript',
    '_const',
    '_union_expr',
    '_optional_expr',
    '_argument',
    '_assign',
    '_annassign',
    '_docstring',
    '_call',
    '_keyword',
    '_func',
    '_class',
    '_all',
    'ImportCollector',
]


def _name(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def _attr(value: str | ast.expr, attr: str) -> ast.Attribute:
    return ast.Attribute(
        value=_name(value) if isinstance(value, str) else value,
        attr=attr,
        ctx=ast.Load(),
    )


def _subscript(generic: str, inner: ast.expr) -> ast.Subscript:
    return ast.Subscript(value=_name(generic), slice=inner, ctx=ast.Load())


def _const(value: Any) -> ast.Constant:
    return ast.Constant(value=value)


def _union_expr(types: list[ast.expr]) -> ast.expr:
    if not types:
        raise ValueError('cannot build a union of no types')
    result = types[0]
    for t in types[1:]:
        result = ast.BinOp(left=result, op=ast.BitOr(), right=t)
    return result


def _optional_expr(inner: ast.expr) -> ast.expr:
    return _union_expr([inner, _const(None)])


def _argument(name: str, value: ast.expr | None = None) -> ast.arg:
    return ast.arg(
        arg=name,
        annotation=value,
    )


def _assign(target: ast.expr, value: ast.expr) -> ast.Assign:
    if isinstance(target, ast.Name):
        target = ast.Name(id=target.id, ctx=ast.Store())
    elif isinstance(target, ast.Attribute):
        target.ctx = ast.Store()
    return ast.Assign(
        targets=[target],
        value=value,
    )


def _annassign(
    target: str, annotation: ast.expr, value: ast.expr | None = None
) -> ast.AnnAssign:
    return ast.AnnAssign(
        target=ast.Name(id=target, ctx=ast.Store()),
        annotation=annotation,
        value=value,
        simple=1,
    )


def _docstring(text: str) -> ast.Expr:
    return ast.Expr(value=_const(text))


def _call(
    func: ast.expr,
    args: list[ast.expr] | None = None,
    keywords: list[ast.keyword] | None = None,
) -> ast.Call:
    return ast.Call(
        func=func,
        args=args or [],
        keywords=keywords or [],
    )


def _keyword(arg: str, value: ast.expr) -> ast.keyword:
    return ast.keyword(arg=arg, value=value)


def _func(
    name: str,
    args: list[ast.arg],
    body: list[ast.stmt],
    returns: ast.expr | None = None,
    kwonlyargs: list[ast.arg] = None,
    kw_defaults: list[ast.expr] = None,
) -> ast.FunctionDef:
    return ast.FunctionDef(
        name=name,
        args=ast.arguments(
            posonlyargs=[],
            args=args,
            kwarg=None,
            kwonlyargs=kwonlyargs or [],
            kw_defaults=kw_defaults or [],
            defaults=[],
        ),
        body=body,
        decorator_list=[],
        returns=returns,
        type_params=[],
    )


def _class(name: str, bases: list[ast.expr], body: list[ast.stmt]) -> ast.ClassDef:
    return ast.ClassDef(
        name=name,
        bases=bases,
        keywords=[],
        body=body,
        decorator_list=[],
        type_params=[],
    )


def _all(names: Iterable[str]) -> ast.Assign:
    return _assign(
        target=_name('__all__'),
        value=ast.Tuple(
            elts=[ast.Constant(value=name) for name in names], ctx=ast.Load()
        ),
    )


class ImportCollector:
    """Accumulates the ``from x import y`` statements of one generated module.

    Statements come out grouped the way isort would group them (``__future__``,
    standard library, third party, then relative imports) with modules and
    names sorted, so a module renders the same on every run.

    Example:
        >>> imports = ImportCollector()
        >>> imports.add_import('pydantic', 'BaseModel')
        >>> imports.add_imports({'datetime': {'datetime'}, '.models': {'Disk'}})
        >>> [node.module for node in imports.to_ast()]
        ['datetime', 'pydantic', 'models']
    """

    def __init__(self):
        self._names: defaultdict[str, set[str]] = defaultdict(set)

    def add_imports(self, imports: Mapping[str, Iterable[str]]) -> None:
        for module, names in imports.items():
            self._names[module].update(names)

    def add_import(self, module: str, name: str) -> None:
        self._names[module].add(name)

    @staticmethod
    def _section(module: str) -> int:
        if module == '__future__':
            return 0
        if module.startswith('.'):
            return 3
        if module.partition('.')[0] in sys.stdlib_module_names:
            return 1
        return 2

    def to_ast(self) -> list[ast.ImportFrom]:
        ordered = sorted(self._names, key=lambda module: (self._section(module), module))
        return [_import_from(module, self._names[module]) for module in ordered]


def _import_from(module: str, names: Iterable[str]) -> ast.ImportFrom:
    relative = module.lstrip('.')
    return ast.ImportFrom(
        module=relative or None,
        names=[ast.alias(name=name, asname=None) for name in sorted(names)],
        level=len(module) - len(relative),
    )
