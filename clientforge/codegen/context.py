"""Per-run generation state."""

import logging
from dataclasses import dataclass
from typing import Literal

from clientforge.codegen.type_registry import TypeRegistry
from clientforge.openapi import OpenAPI

logger = logging.getLogger(__name__)

DiagnosticCode = Literal[
    'reference-position',
    'all-of',
    'any-of',
    'one-of-discriminator',
    'one-of-field',
    'enum-value',
    'array-items',
    'skipped-operation',
    'response-reference',
    'pagination-items',
    'unknown-kind',
]


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem found while generating.

    Attributes:
        code: Stable identifier of the kind of problem.
        subject: The type or operation the problem was found in.
        message: Human readable explanation.
        severity: Always ``warning``; fatal problems raise instead.
    """

    code: DiagnosticCode
    subject: str
    message: str
    severity: str = 'warning'

    def __str__(self) -> str:
        return f'[{self.code}] {self.subject}: {self.message}'


class GenerationContext:
    """Everything one generation run accumulates.

    A context is created for every ``Codegen.generate()`` call, so
    registries and diagnostics never leak from one run into the next.

    Attributes:
        document: The validated API document.
        types: Data types, emitted to the models artifact.
        responses: Named response wrappers, emitted to the responses artifact.
        diagnostics: Recoverable problems, in discovery order.
    """

    def __init__(self, document: OpenAPI):
        self.document = document
        self.types = TypeRegistry()
        self.responses = TypeRegistry()
        self.diagnostics: list[Diagnostic] = []

    def warn(self, code: DiagnosticCode, subject: str, message: str) -> Diagnostic:
        diagnostic = Diagnostic(code=code, subject=subject, message=message)
        logger.warning('%s', diagnostic)
        self.diagnostics.append(diagnostic)
        return diagnostic
