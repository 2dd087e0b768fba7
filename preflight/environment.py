"""
Environment

Read-only snapshot of the process facts preflight depends on: where drush is
installed, the working directory, and the system/user locations for
configuration and command files.
"""

import os
import site
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.settings import Settings
from preflight.errors import AutoloaderLoadFailure

# The package directory; drush.yml next to this module holds the bundled defaults
BUNDLED_CONFIG_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Environment:
    """Facts true at process start; never refreshed mid-run"""
    base_path: Path
    cwd: Path
    home: Path
    system_config_path: Path
    user_config_path: Path
    system_command_file_path: Path
    user_command_file_path: Path
    tmp_dir: Path

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        base_path: Optional[Path] = None,
        cwd: Optional[Path] = None
    ) -> 'Environment':
        """
        Build the snapshot

        Args:
            settings: Process-level settings (HOME, ETC_PREFIX, SHARE_PREFIX, ...)
            base_path: Directory holding the bundled drush.yml (default: the preflight package)
            cwd: Working directory (default: os.getcwd())

        Returns:
            Environment
        """
        if base_path is None:
            base_path = BUNDLED_CONFIG_DIR
        if cwd is None:
            cwd = Path(os.getcwd())

        home = cls._home_dir(settings)
        user_dir = home / ".drush"

        return cls(
            base_path=Path(base_path),
            cwd=Path(cwd),
            home=home,
            system_config_path=Path(settings.etc_prefix + "/etc/drush"),
            user_config_path=user_dir,
            system_command_file_path=Path(settings.share_prefix + "/share/drush"),
            user_command_file_path=user_dir,
            tmp_dir=Path(settings.tmpdir or tempfile.gettempdir()),
        )

    @staticmethod
    def _home_dir(settings: Settings) -> Path:
        if settings.home:
            return Path(settings.home)
        if settings.homedrive and settings.homepath:
            return Path(settings.homedrive + settings.homepath)
        return Path.home()

    def export_config_data(self) -> Dict[str, Any]:
        """Environment facts exposed as configuration under the 'env' key"""
        return {
            'cwd': str(self.cwd),
            'home': str(self.home),
            'base-dir': str(self.base_path),
            'system-config-dir': str(self.system_config_path),
            'user-config-dir': str(self.user_config_path),
            'system-command-dir': str(self.system_command_file_path),
            'user-command-dir': str(self.user_command_file_path),
            'tmp': str(self.tmp_dir),
            'is-windows': sys.platform.startswith('win'),
        }

    def load_site_autoloader(self, root: Optional[Path]) -> List[str]:
        """
        Make the site's vendored packages importable

        Args:
            root: Resolved site root, or None

        Returns:
            Entries added to sys.path (empty when the site has no vendor dir)

        Raises:
            AutoloaderLoadFailure: If the vendor path exists but cannot be used
        """
        if root is None:
            return []

        vendor = Path(root) / "vendor"
        if not os.path.lexists(vendor):
            return []

        if not vendor.is_dir():
            raise AutoloaderLoadFailure(vendor, "not a directory")
        if vendor.resolve() in Path(self.base_path).resolve().parents:
            # drush is installed inside the site; already importable
            return []

        try:
            os.listdir(vendor)
        except OSError as e:
            raise AutoloaderLoadFailure(vendor, e.strerror or str(e))

        before = list(sys.path)
        site.addsitedir(str(vendor))
        return [entry for entry in sys.path if entry not in before]
