"""
Site Root Resolver

Finds the root of the target site by walking up from a hint or the working
directory until a directory containing the root marker is found.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from preflight.errors import SiteRootProbeFailure

logger = logging.getLogger(__name__)

# Relative to a candidate directory
ROOT_MARKERS = (Path("core") / "lib" / "Drupal.php",)


class SiteRootResolver:
    """Locates the installation root by upward directory search"""

    def __init__(self, markers: Iterable[Union[str, Path]] = ROOT_MARKERS):
        self.markers = tuple(Path(marker) for marker in markers)
        self.warnings: List[SiteRootProbeFailure] = []

    def locate(self, selected_site_hint: Optional[Union[str, Path]], cwd: Union[str, Path]) -> Optional[Path]:
        """
        Find the site root

        Args:
            selected_site_hint: --root value or alias root, if any
            cwd: Working directory, searched when the hint does not resolve

        Returns:
            Canonical root directory, or None when no site is found
        """
        cwd = Path(cwd)
        if selected_site_hint:
            hint = Path(selected_site_hint).expanduser()
            if not hint.is_absolute():
                hint = cwd / hint
            root = self._search_upward(hint)
            if root is not None:
                return root
            logger.debug(f"Site hint {selected_site_hint} did not resolve, trying {cwd}")

        return self._search_upward(cwd)

    def is_root(self, directory: Path) -> bool:
        """Whether directory holds one of the root markers"""
        for marker in self.markers:
            try:
                if (directory / marker).is_file():
                    return True
            except OSError as e:
                self.warnings.append(SiteRootProbeFailure(directory, str(e)))
        return False

    def _search_upward(self, start: Path) -> Optional[Path]:
        current = Path(os.path.realpath(start))
        try:
            if current.exists() and not current.is_dir():
                current = current.parent
        except OSError as e:
            self.warnings.append(SiteRootProbeFailure(current, str(e)))
            return None

        visited: Set[Path] = set()
        while current not in visited:
            visited.add(current)
            if self.is_root(current):
                return current
            parent = Path(os.path.realpath(current.parent))
            if parent == current:
                break
            current = parent
        return None
