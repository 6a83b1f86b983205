"""
Spec file repository.

Reads the target Playwright spec file and replaces it atomically: content is
written to a temporary file in the same directory and moved over the target
with os.replace, so readers see either the old or the new file.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Tuple

from core.domain.errors import SpecFileWriteError
from core.interfaces.repository import ISpecFileStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT = "// Playwright test file\n"


class SpecFileRepository(ISpecFileStore):
    """File system implementation of the spec file store."""

    def __init__(self, encoding: str = 'utf-8'):
        self._encoding = encoding

    def read(self, path: str) -> Tuple[str, bool]:
        """Read the spec file, or the placeholder content if it does not exist."""
        file_path = Path(path)
        if not file_path.exists():
            logger.info("Test file %s does not exist; starting from a placeholder", file_path)
            return DEFAULT_CONTENT, False

        with open(file_path, 'r', encoding=self._encoding, newline='') as f:
            return f.read(), True

    def write(self, path: str, content: str) -> None:
        """Atomically replace the spec file content.

        Raises:
            SpecFileWriteError: If the directory or file cannot be written
        """
        file_path = Path(path)
        tmp_path = None
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{file_path.name}.", suffix=".tmp", dir=str(file_path.parent)
            )
            with os.fdopen(fd, 'w', encoding=self._encoding, newline='') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, file_path)
            tmp_path = None
        except OSError as e:
            raise SpecFileWriteError(str(file_path), str(e)) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.info("Updated test file %s", file_path)
