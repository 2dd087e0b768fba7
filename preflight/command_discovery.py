"""
Command File Discovery

Finds candidate command files by name. File contents are never read here;
loading and registering commands is the dispatcher's job.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Union

from preflight.errors import CommandDiscoveryIOFailure

logger = logging.getLogger(__name__)


class CommandFileDiscovery:
    """Scans search paths for files following the *_commands.py convention"""

    def __init__(
        self,
        search_locations: Sequence[str] = ("commands",),
        search_pattern: str = r"^.*_commands\.py$",
        include_files_at_base: bool = False
    ):
        """
        Args:
            search_locations: Subdirectories of each search path to scan recursively
            search_pattern: Regex a file name must match
            include_files_at_base: Also match files directly in each search path
        """
        self.search_locations = tuple(search_locations)
        self.search_pattern = re.compile(search_pattern)
        self.include_files_at_base = include_files_at_base
        self.warnings: List[CommandDiscoveryIOFailure] = []

    def discover(self, search_paths: Iterable[Union[str, Path]], namespace_prefix: str = "") -> Dict[str, str]:
        """
        Find command files

        Args:
            search_paths: Directories, in search order
            namespace_prefix: Dotted prefix for the namespaces returned

        Returns:
            Mapping of absolute file path to the dotted namespace of its module
        """
        command_files: Dict[str, str] = {}

        for search_path in search_paths:
            base = Path(search_path).absolute()
            if self.include_files_at_base:
                command_files.update(self._scan(base, namespace_prefix, recursive=False))
            for location in self.search_locations:
                directory = base / location
                try:
                    if not directory.is_dir():
                        continue
                except OSError as e:
                    self.warnings.append(CommandDiscoveryIOFailure(directory, e.strerror or str(e)))
                    continue
                namespace = _join(namespace_prefix, *location.split('/'))
                command_files.update(self._scan(directory, namespace, recursive=True))

        logger.debug(f"Discovered {len(command_files)} command file(s)")
        return command_files

    def _scan(self, directory: Path, namespace: str, recursive: bool) -> Dict[str, str]:
        found: Dict[str, str] = {}

        def on_error(error: OSError):
            self.warnings.append(CommandDiscoveryIOFailure(error.filename or directory, error.strerror or str(error)))

        for dirpath, dirnames, filenames in os.walk(directory, onerror=on_error):
            # Deterministic order
            dirnames.sort()
            if not recursive:
                dirnames.clear()

            relative = Path(dirpath).relative_to(directory).parts
            for filename in sorted(filenames):
                if not self.search_pattern.match(filename):
                    continue
                path = Path(dirpath) / filename
                found[str(path)] = _join(namespace, *relative, Path(filename).stem)

        return found


def _join(*parts: str) -> str:
    return ".".join(part for part in parts if part)
