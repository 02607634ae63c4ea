"""
Server-side operations run after a GPX document has been generated.

Both are optional and chosen once at startup from configuration:

  - GpxFileStore writes the document to <directory>/<title>.gpx
  - ShellCommandRunner runs one configured shell command (e.g. to push the
    file to a simulator); its output is logged, never returned
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol

from . import config
from .errors import CommandError, PersistenceError

logger = logging.getLogger(__name__)


class PostProcessor(Protocol):
    async def run(self, title: str, document: str) -> None:
        ...


class GpxFileStore:
    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def path_for(self, title: str) -> Path:
        if "/" in title or "\\" in title or title in ("", ".", ".."):
            raise PersistenceError(f"title '{title}' cannot be used as a file name")
        return self.directory / f"{title}.gpx"

    @staticmethod
    def _write(path: Path, document: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")

    async def run(self, title: str, document: str) -> None:
        path = self.path_for(title)
        try:
            await asyncio.to_thread(self._write, path, document)
        except OSError as e:
            raise PersistenceError(f"failed to save {path}: {e}") from e
        logger.info(f"[SAVE] {path}")


class ShellCommandRunner:
    def __init__(self, command: str):
        self.command = command

    async def run(self, title: str, document: str) -> None:
        logger.info(f"[COMMAND] {self.command}")
        try:
            proc = await asyncio.create_subprocess_shell(
                self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise CommandError(f"could not run '{self.command}': {e}") from e

        if stdout:
            logger.info(stdout.decode(errors="replace").rstrip())
        if proc.returncode != 0:
            raise CommandError(
                f"'{self.command}' exited with {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )


def build_post_processors(
    save_mode: Optional[bool] = None,
    save_directory: Optional[str] = None,
    command: Optional[str] = None,
) -> List[PostProcessor]:
    """Select post-processors from configuration; arguments override config values."""
    save_mode = config.GPX_SAVE_MODE if save_mode is None else save_mode
    save_directory = config.GPX_SAVE_DIRECTORY if save_directory is None else save_directory
    command = config.ADDITIONAL_COMMAND if command is None else command

    processors: List[PostProcessor] = []
    if save_mode:
        processors.append(GpxFileStore(save_directory))
    if command:
        processors.append(ShellCommandRunner(command))
    return processors
