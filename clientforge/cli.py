import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from clientforge._version import version as clientforge_version
from clientforge.codegen.codegen import Codegen
from clientforge.config import get_config

console = Console()
app = typer.Typer(
    name='clientforge',
    help='Generate typed Python clients from OpenAPI documents',
    no_args_is_help=True,
)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(message)s',
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def generate(
    config: Annotated[
        str | None,
        typer.Option(
            '--config', '-c', help='Path to configuration file (YAML or JSON)'
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option('--verbose', '-v', help='Log generation progress')
    ] = False,
) -> None:
    """Generate Python client code from configuration.

    If no config file is specified, will look for clientforge.yaml or
    clientforge.yml in the current directory, then [tool.clientforge] in
    pyproject.toml.

    Examples:
        clientforge generate
        clientforge generate --config my-config.yaml
        clientforge generate -c config.json -v
    """
    configure_logging(verbose)

    try:
        codegen_config = get_config(config)

        for document_config in codegen_config.documents:
            with Progress(
                SpinnerColumn(),
                TextColumn('[progress.description]{task.description}'),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(
                    f'Generating code for {document_config.source} in {document_config.output}...',
                    total=None,
                )
                result = Codegen(
                    document_config,
                    generate_endpoints=codegen_config.generate_endpoints,
                ).generate()

            for diagnostic in result.diagnostics:
                console.print(f'[yellow]Warning:[/yellow] {escape(str(diagnostic))}')

            console.print('[dim]Generated files:[/dim]')
            for path in result.files:
                console.print(f'  - {escape(str(path))}')
            console.print(f'Successfully generated code for {document_config.source}')

    except Exception as e:
        console.print(f'[red]Error:[/red] {escape(str(e))}')
        logging.getLogger(__name__).debug('Generation failed', exc_info=True)
        raise typer.Exit(1) from e


@app.command()
def version() -> None:
    """Show the version of clientforge."""
    console.print(f'clientforge version: {clientforge_version}')


if __name__ == '__main__':
    app()
