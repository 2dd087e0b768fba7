"""
Preflight Verification

Checks the runtime before anything else runs: the Python version and the
third-party modules drush needs. Only the standard library is imported here,
so the checks can run before any of those modules are loaded.
"""

import importlib.util
import sys
from typing import Optional, Sequence, Tuple, Union

from preflight.errors import EnvironmentVerificationFailure

DEFAULT_MINIMUM_VERSION = (3, 9)

# Import names, not distribution names
REQUIRED_MODULES = ("yaml", "pydantic", "pydantic_settings", "dotenv", "coverage")


def parse_version(version: str) -> tuple:
    """
    Convert a dotted version string to a comparable tuple

    Example:
        parse_version('3.10') -> (3, 10)
    """
    return tuple(int(part) for part in str(version).strip().split('.'))


class PreflightVerify:
    """Fails fast when the runtime cannot run drush"""

    def __init__(
        self,
        version_info: Optional[Sequence[int]] = None,
        required_modules: Sequence[str] = REQUIRED_MODULES
    ):
        """
        Args:
            version_info: Running version (default: sys.version_info)
            required_modules: Modules that must be importable
        """
        self.version_info = tuple(version_info if version_info is not None else sys.version_info[:3])
        self.required_modules = tuple(required_modules)

    def verify(self, environment=None) -> None:
        """
        Run all checks

        Raises:
            EnvironmentVerificationFailure: On the first failed check
        """
        self.confirm_python_version(None)
        self.confirm_modules()

    def confirm_python_version(self, minimum: Optional[Union[str, int, Tuple[int, ...]]]) -> None:
        """
        Check the running version against a minimum

        Args:
            minimum: Version from configuration; None uses the built-in default
        """
        if minimum is None or minimum == "":
            required = DEFAULT_MINIMUM_VERSION
        elif isinstance(minimum, tuple):
            required = minimum
        elif isinstance(minimum, (float, bool)):
            # YAML reads an unquoted 3.10 as the float 3.1
            raise EnvironmentVerificationFailure(
                f"Ambiguous minimum Python version {minimum!r}",
                "Quote drush.python.minimum-version, e.g. '3.10'"
            )
        else:
            try:
                required = parse_version(minimum)
            except ValueError:
                raise EnvironmentVerificationFailure(
                    f"Invalid minimum Python version '{minimum}'",
                    "Set drush.python.minimum-version to a dotted version such as 3.10"
                )

        current = self.version_info[:len(required)]
        if current < required:
            running = ".".join(str(part) for part in self.version_info)
            wanted = ".".join(str(part) for part in required)
            raise EnvironmentVerificationFailure(
                f"Your command line Python installation is too old. "
                f"Drush requires at least Python {wanted}; running {running}."
            )

    def confirm_modules(self) -> None:
        for name in self.required_modules:
            try:
                spec = importlib.util.find_spec(name)
            except (ImportError, ValueError):
                spec = None
            if spec is None:
                raise EnvironmentVerificationFailure(
                    f"Drush requires the Python module '{name}'.",
                    "Install the drush package with its dependencies"
                )
