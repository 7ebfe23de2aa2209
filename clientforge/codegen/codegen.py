"""Code generation module for clientforge.

This module provides the main Codegen class that orchestrates the generation
of a typed Python client package from an OpenAPI document.
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from upath import UPath

from clientforge.codegen import emitter
from clientforge.codegen.context import Diagnostic, GenerationContext
from clientforge.codegen.endpoints import OperationDescriptor, OperationSynthesizer
from clientforge.codegen.file_writer import PythonFileWriter
from clientforge.codegen.pagination import paginate
from clientforge.codegen.schema import SchemaLoader
from clientforge.codegen.types import TypeResolver
from clientforge.codegen.utils import print_property
from clientforge.config import DocumentConfig
from clientforge.openapi import OpenAPI

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation run.

    Attributes:
        files: The written files, in write order.
        diagnostics: Recoverable problems found while generating.
    """

    files: list[UPath] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class Codegen:
    """Generates a client package from one OpenAPI document.

    Every call to :meth:`generate` starts from a fresh
    :class:`GenerationContext`, so running the same instance twice produces
    byte-identical output and independent diagnostics.

    Example:
        >>> from clientforge.config import DocumentConfig
        >>> from clientforge.codegen import Codegen
        >>>
        >>> config = DocumentConfig(source='./openapi.json', output='./client')
        >>> result = Codegen(config).generate()
        >>> [str(diagnostic) for diagnostic in result.diagnostics]
    """

    def __init__(
        self,
        config: DocumentConfig,
        schema_loader: SchemaLoader | None = None,
        generate_endpoints: bool = True,
    ):
        """Initialize the code generator.

        Args:
            config: Configuration specifying source document and output location.
            schema_loader: Optional custom schema loader. If not provided,
                a default SchemaLoader will be created.
            generate_endpoints: Whether to emit the operation functions.
        """
        self.config = config
        self.generate_endpoints = generate_endpoints
        self._schema_loader = schema_loader or SchemaLoader()
        self._writer = PythonFileWriter()

    def load_schema(self) -> OpenAPI:
        """Load and validate the configured document.

        Raises:
            SchemaLoadError: If the document cannot be loaded from the source.
            SchemaValidationError: If the document is not valid OpenAPI.
        """
        return self._schema_loader.load(self.config.source)

    def generate(self) -> GenerationResult:
        """Render every artifact and write the package.

        Nothing is written unless every artifact renders and compiles.

        Raises:
            SchemaLoadError: If the document cannot be loaded.
            SchemaValidationError: If the document is not valid OpenAPI.
            SchemaReferenceError: If a reference cannot be resolved.
            CodeGenerationError: If an artifact cannot be rendered.
            OutputError: If the output cannot be written.
        """
        document = self.load_schema()
        context, artifacts = self.render(document)

        output = UPath(self.config.output)
        files = {output / filename: content for filename, content in artifacts.items()}
        self._writer.write_all(files)
        logger.info('Generated %d files in %s', len(files), output)

        return GenerationResult(files=list(files), diagnostics=list(context.diagnostics))

    def render(self, document: OpenAPI) -> tuple[GenerationContext, dict[str, str]]:
        """Render the artifacts of ``document`` without writing them.

        Returns:
            The run's context and a mapping of file name to file content.
        """
        context = GenerationContext(document)
        resolver = TypeResolver(context)

        resolver.define_components()
        self._define_responses(context, resolver)

        descriptors: list[OperationDescriptor] = []
        if self.generate_endpoints:
            descriptors = OperationSynthesizer(context, resolver).synthesize()
            descriptors = paginate(context, descriptors)

        config = self.config
        models_module = _module_name(config.models_file)
        version_module = _module_name(config.version_file)

        artifacts = {
            config.models_file: emitter.render_models(context),
            config.responses_file: emitter.render_responses(context, models_module),
            config.version_file: emitter.render_version(
                document.info.version, config.sdk_version
            ),
            'client.py': emitter.render_client(
                document.info.title, config.env_prefix, version_module
            ),
            '__init__.py': emitter.render_init(version_module),
        }
        if self.generate_endpoints:
            artifacts[config.paths_file] = emitter.render_paths(descriptors, models_module)
        artifacts.update(emitter.runtime_modules())
        return context, artifacts

    @staticmethod
    def _define_responses(context: GenerationContext, resolver: TypeResolver) -> None:
        responses = context.document.components.responses
        for name in sorted(responses):
            response = responses[name]
            type_name = f'{print_property(name)}Response'
            if response.ref is not None:
                context.warn(
                    'response-reference',
                    type_name,
                    f'component response is a bare reference to {response.ref}; skipped',
                )
                continue

            content = response.content or {}
            for media_type in sorted(content):
                schema = content[media_type].schema_
                if schema is not None:
                    resolver.define_response(type_name, schema, response.description)
                    break


def _module_name(filename: str) -> str:
    return PurePosixPath(filename).stem
