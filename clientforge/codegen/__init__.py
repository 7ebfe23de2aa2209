"""Code generation for clientforge.

Main Components:
    - Codegen: The orchestrator of one generation run
    - TypeResolver: Resolves schemas to type references and declarations
    - UnionSynthesizer: Flattens one-of schemas into variants and a merged type
    - OperationSynthesizer: Builds one descriptor per generated function
    - SchemaLoader: Loads OpenAPI documents from URLs or files

Example:
    >>> from clientforge.codegen import Codegen
    >>> from clientforge.config import DocumentConfig
    >>>
    >>> config = DocumentConfig(source='./openapi.json', output='./client')
    >>> Codegen(config).generate()
"""

from clientforge.codegen.ast_utils import ImportCollector
from clientforge.codegen.codegen import Codegen, GenerationResult
from clientforge.codegen.context import Diagnostic, GenerationContext
from clientforge.codegen.endpoints import OperationDescriptor, OperationSynthesizer
from clientforge.codegen.file_writer import PythonFileWriter
from clientforge.codegen.one_of import UnionSynthesizer
from clientforge.codegen.schema import SchemaLoader
from clientforge.codegen.type_registry import Type, TypeDefinition, TypeRegistry
from clientforge.codegen.types import TypeResolver

__all__ = [
    'Codegen',
    'Diagnostic',
    'GenerationContext',
    'GenerationResult',
    'ImportCollector',
    'OperationDescriptor',
    'OperationSynthesizer',
    'PythonFileWriter',
    'SchemaLoader',
    'Type',
    'TypeDefinition',
    'TypeRegistry',
    'TypeResolver',
    'UnionSynthesizer',
]
