"""Validation and writing of generated Python files.

All artifacts of a run are compiled first, then committed one by one: each
file is written next to its target and renamed over it, so a target path
only ever holds a complete file.
"""

import logging
import os
import uuid
from pathlib import Path

from upath import UPath

from clientforge.exceptions import CodeGenerationError, OutputError

logger = logging.getLogger(__name__)


class PythonFileWriter:
    """Writes rendered Python modules with syntax validation.

    Example:
        >>> writer = PythonFileWriter()
        >>> writer.write_all({UPath('client/version.py'): "SDK_VERSION = 'v1'\\n"})
    """

    def validate(self, content: str, path: UPath | Path | str) -> None:
        """Compile ``content`` without executing it.

        Raises:
            CodeGenerationError: If the code is not valid Python.
        """
        try:
            compile(content, str(path), 'exec')
        except SyntaxError as e:
            raise CodeGenerationError(
                f'Generated code is not valid Python: {e.msg} (line {e.lineno})',
                str(path),
                e,
            ) from e

    def write(self, content: str, path: UPath | Path | str) -> None:
        """Validate ``content`` and write it to ``path``.

        Raises:
            CodeGenerationError: If the code is not valid Python.
            OutputError: If the file cannot be written.
        """
        self.write_all({path: content})

    def write_all(self, files: dict[UPath | Path | str, str]) -> None:
        """Validate every file, then write them in order.

        Nothing is written unless every file compiles.
        """
        for path, content in files.items():
            self.validate(content, path)
        for path, content in files.items():
            self._commit(UPath(path), content)

    def _commit(self, path: UPath, content: str) -> None:
        staging = path.with_name(f'.{path.name}.{uuid.uuid4().hex}.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            staging.write_text(content, encoding='utf-8')
            if isinstance(path, Path):
                os.replace(staging, path)
            else:
                staging.rename(path)
        except OSError as e:
            if staging.exists():
                staging.unlink()
            raise OutputError(str(path), e) from e
        logger.debug('Wrote %s', path)
