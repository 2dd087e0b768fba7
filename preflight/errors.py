"""
Preflight Error Classes

Defines the exceptions raised or collected while preparing a drush invocation.

Fatal errors abort preflight and carry the process exit code. Degraded errors
are never raised by the pipeline: components record them and the dispatcher
reports them once logging is configured.
"""

from pathlib import Path
from typing import List, Optional, Union


class PreflightError(Exception):
    """Base exception for preflight errors"""

    code = 1

    def __init__(self, message: str, hint: str = None, code: Optional[int] = None):
        """
        Initialize preflight error

        Args:
            message: Error message
            hint: Optional hint for resolving the error
            code: Process exit code (defaults to the class code)
        """
        self.message = message
        self.hint = hint
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def __str__(self):
        """Format error message with hint"""
        if self.hint:
            return f"{self.message} [HINT] {self.hint}"
        return self.message


# ==================== Fatal ====================

class EnvironmentVerificationFailure(PreflightError):
    """Raised when the runtime is too old or lacks a required module"""

    code = 3


class AutoloaderLoadFailure(PreflightError):
    """Raised when the site's vendor directory cannot be added to the import path"""

    code = 4

    def __init__(self, vendor_path: Union[str, Path], error: str):
        message = f"Failed to load the site autoloader from {vendor_path}: {error}"
        hint = "Check that the site's vendor directory exists and is readable"
        super().__init__(message, hint)


class SiteAliasNotFoundError(PreflightError):
    """Raised when an @alias selector names no known alias file"""

    code = 5

    def __init__(self, alias: str, unreadable: Optional[List['SiteAliasUnreadable']] = None):
        self.unreadable = list(unreadable or [])
        message = f"The alias {alias} could not be found."
        if self.unreadable:
            paths = ", ".join(str(w.path) for w in self.unreadable)
            hint = f"Fix the unreadable alias file(s): {paths}"
        else:
            hint = f"Create {alias.lstrip('@')}.alias.yml in ~/.drush or pass --alias-path"
        super().__init__(message, hint)


class InvalidStateTransitionError(PreflightError):
    """Raised when the preflight steps are run out of order"""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Invalid preflight state transition: {current} -> {requested}")


# ==================== Degraded ====================

class ConfigSourceUnreadable(PreflightError):
    """A configuration file exists but could not be read or parsed"""

    def __init__(self, path: Union[str, Path], error: str):
        self.path = Path(path)
        super().__init__(f"Skipped unreadable configuration file {path}: {error}")


class CommandDiscoveryIOFailure(PreflightError):
    """A command search directory could not be scanned"""

    def __init__(self, path: Union[str, Path], error: str):
        self.path = Path(path)
        super().__init__(f"Skipped unreadable command directory {path}: {error}")


class SiteAliasUnreadable(PreflightError):
    """An alias file exists but could not be read or parsed"""

    def __init__(self, path: Union[str, Path], error: str):
        self.path = Path(path)
        super().__init__(f"Skipped unreadable alias file {path}: {error}")


class SiteRootProbeFailure(PreflightError):
    """A directory could not be probed while looking for the site root"""

    def __init__(self, path: Union[str, Path], error: str):
        self.path = Path(path)
        super().__init__(f"Could not probe {path} for a site root: {error}")


def format_error_for_cli(error: Exception) -> str:
    """
    Format error for the single line printed before the logger exists

    Args:
        error: Exception to format

    Returns:
        Formatted error string without line breaks
    """
    if isinstance(error, PreflightError):
        text = str(error)
    else:
        text = f"[ERROR] {error}"
    return " ".join(text.split())


def exit_code_for(error: Exception) -> int:
    """Return the non-zero process status for an error raised during preflight"""
    code = getattr(error, "code", None)
    if isinstance(code, int) and code != 0:
        return code
    return 1
