"""Exceptions raised by clientforge.

Every fatal condition of a generation run maps to one of the classes below.
Recoverable problems (an unsupported schema construct, a skipped operation)
are not exceptions: they are collected as diagnostics on the generation
context and returned with the result.
"""


def _join(head: str, *details: str | None) -> str:
    return head + ''.join(detail for detail in details if detail)


def _suffix(template: str, value: object) -> str | None:
    return template.format(value) if value else None


class ClientForgeError(Exception):
    """Root of every error clientforge raises.

    Callers that only care whether a run failed can catch this class:

        try:
            Codegen(config).generate()
        except ClientForgeError as e:
            console.print(f'[red]Error:[/red] {e}')
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SchemaError(ClientForgeError):
    """The API document could not be turned into a usable OpenAPI model."""


class SchemaLoadError(SchemaError):
    """The API document could not be read or parsed.

    Attributes:
        source: File path or URL of the document.
        cause: The I/O, HTTP or parser error.
    """

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        super().__init__(
            _join(f"Failed to load schema from '{source}'", _suffix(': {}', cause))
        )


class SchemaValidationError(SchemaError):
    """The API document does not have the shape of an OpenAPI document.

    Attributes:
        source: File path or URL of the document.
        errors: One message per failed check, as ``location: problem``.
    """

    def __init__(self, source: str, errors: list[str] | None = None):
        self.source = source
        self.errors = list(errors or [])
        super().__init__(
            _join(
                f"Schema validation failed for '{source}'",
                _suffix(': {}', '; '.join(self.errors)),
            )
        )


class SchemaReferenceError(SchemaError):
    """A ``$ref`` points at a component that does not exist."""

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        self.reason = reason
        super().__init__(
            _join(f"Failed to resolve reference '{reference}'", _suffix(': {}', reason))
        )


class CodeGenerationError(ClientForgeError):
    """An artifact could not be rendered.

    Attributes:
        context: Name of the type, operation or module being rendered.
        cause: The error raised while rendering, if any.
    """

    def __init__(
        self, message: str, context: str | None = None, cause: Exception | None = None
    ):
        self.context = context
        self.cause = cause
        super().__init__(
            _join(
                message,
                _suffix(' (while generating {})', context),
                _suffix(': {}', cause),
            )
        )


class TypeGenerationError(CodeGenerationError):
    """A component schema could not be turned into a declaration.

    Attributes:
        type_name: Normalized name of the declaration.
        schema_path: JSON pointer of the schema, e.g. ``#/components/schemas/Disk``.
    """

    def __init__(
        self,
        type_name: str,
        schema_path: str | None = None,
        cause: Exception | None = None,
    ):
        self.type_name = type_name
        self.schema_path = schema_path
        super().__init__(
            _join(f"Failed to generate type '{type_name}'", _suffix(" at '{}'", schema_path)),
            context=type_name,
            cause=cause,
        )


class EndpointGenerationError(CodeGenerationError):
    """An operation could not be turned into a function."""

    def __init__(
        self,
        operation_id: str,
        method: str | None = None,
        path: str | None = None,
        cause: Exception | None = None,
    ):
        self.operation_id = operation_id
        self.method = method
        self.path = path
        location = f'{method.upper()} {path}' if method and path else None
        super().__init__(
            _join(f"Failed to generate operation '{operation_id}'", _suffix(' ({})', location)),
            context=operation_id,
            cause=cause,
        )


class ConfigurationError(ClientForgeError):
    """The clientforge configuration is missing required values or malformed.

    Attributes:
        config_path: File the configuration was read from.
        field: Dotted location of the offending value, e.g. ``documents.0.output``.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        super().__init__(
            _join(message, _suffix(" in '{}'", config_path), _suffix(' (field: {})', field))
        )


class OutputError(ClientForgeError):
    """A generated file could not be written."""

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        super().__init__(
            _join(f"Failed to write output to '{output_path}'", _suffix(': {}', cause))
        )
