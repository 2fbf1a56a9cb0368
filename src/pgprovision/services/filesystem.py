"""Filesystem helpers for pgprovision."""

import logging
import os
import sys
from typing import Iterable, List

from pgprovision.errors import CleanupWarning


class FileSystemService:
    """Encapsulates file side effects of the generated configuration."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def remove_files(self, paths: Iterable[str]) -> List[CleanupWarning]:
        warnings: List[CleanupWarning] = []
        for path in paths:
            if not os.path.lexists(path):
                continue
            try:
                os.remove(path)
                self.logger.debug("Removed file: %s", path)
            except OSError as exc:
                warnings.append(CleanupWarning(f"remove file {path}", str(exc)))
        return warnings
