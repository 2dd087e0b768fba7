"""
Configuration Locator

Collects drush.yml files from the system, user, drush and site locations and
merges them, together with the environment snapshot, into one read-only view.

Precedence, highest first:
    environment > site-config > drush-config > user-config > system-config

Sources in the same tier are merged in the order they were added, so a later
addition wins. Environment facts live under the reserved 'env' key, which no
file can write to.
"""

import copy
import logging
import stat
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from config.drush_schema import DrushConfigFile
from preflight.environment import Environment
from preflight.errors import ConfigSourceUnreadable

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "drush.yml"
SITE_CONFIG_SUBPATH = Path("drush") / CONFIG_FILENAME
ENVIRONMENT_KEY = "env"

PathLike = Union[str, Path]


class ConfigTier(IntEnum):
    """Precedence tiers, lowest first"""
    SYSTEM = 10
    USER = 20
    DRUSH = 30
    SITE = 40
    ENVIRONMENT = 50


@dataclass
class ConfigSource:
    """One named layer of configuration data"""
    name: str                   # File path, or 'environment'
    provenance: str             # system-config, user-config, explicit-config, ...
    tier: ConfigTier
    sequence: int               # Insertion order, breaks ties within a tier
    data: Dict[str, Any] = field(default_factory=dict)


class Config:
    """Merged, read-only configuration with dotted-key lookup"""

    def __init__(self, sources: Optional[List[ConfigSource]] = None):
        self._sources = sorted(sources or [], key=lambda s: (s.tier, s.sequence))
        self._data: Dict[str, Any] = {}
        for source in self._sources:
            self._data = _deep_merge(self._data, source.data)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key

        Args:
            key: Key path such as 'drush.python.minimum-version'
            default: Returned when the key is absent from every source

        Returns:
            A copy of the stored value, or default
        """
        current: Any = self._data
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return copy.deepcopy(current)

    def has(self, key: str) -> bool:
        marker = object()
        return self.get(key, marker) is not marker

    def sources(self) -> List[str]:
        """Provenance tags of the merged layers, lowest precedence first"""
        return [source.provenance for source in self._sources]

    def source_names(self) -> List[str]:
        return [source.name for source in self._sources]

    def export(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


class ConfigLocator:
    """Accumulates configuration sources in precedence order"""

    def __init__(self):
        self.local = False
        self.sources: List[ConfigSource] = []
        self.warnings: List[ConfigSourceUnreadable] = []

    def reset(self) -> None:
        """Drop every source and warning collected so far"""
        self.local = False
        self.sources = []
        self.warnings = []

    def set_local(self, local: bool) -> 'ConfigLocator':
        """In local mode, system and user locations are never consulted"""
        self.local = bool(local)
        return self

    def add_user_config(
        self,
        explicit_path: Optional[PathLike],
        system_path: Optional[PathLike],
        user_path: Optional[PathLike]
    ) -> 'ConfigLocator':
        """
        Add the --config file, or else the system and user files

        System is added before user, so user settings override system ones.
        """
        if explicit_path and self._add_file(explicit_path, "explicit-config", ConfigTier.USER):
            return self

        if self.local:
            logger.debug("Local mode: skipping system and user configuration")
            return self

        if system_path:
            self._add_file(system_path, "system-config", ConfigTier.SYSTEM)
        if user_path:
            self._add_file(user_path, "user-config", ConfigTier.USER)
        return self

    def add_drush_config(self, base_path: PathLike) -> 'ConfigLocator':
        """Add the drush.yml bundled with drush itself"""
        self._add_file(base_path, "drush-config", ConfigTier.DRUSH)
        return self

    def add_environment(self, environment: Environment) -> 'ConfigLocator':
        """Expose the environment snapshot under the reserved 'env' key"""
        self._add_source(
            name="environment",
            provenance="environment",
            tier=ConfigTier.ENVIRONMENT,
            data={ENVIRONMENT_KEY: environment.export_config_data()},
        )
        return self

    def add_sitewide_config(self, root: Optional[PathLike]) -> 'ConfigLocator':
        """Add <root>/drush/drush.yml once the site root is known"""
        if root is None:
            return self
        self._add_file(Path(root) / SITE_CONFIG_SUBPATH, "site-config", ConfigTier.SITE)
        return self

    def config(self) -> Config:
        return Config(self.sources)

    def _add_source(self, name: str, provenance: str, tier: ConfigTier, data: Dict[str, Any]) -> None:
        self.sources.append(ConfigSource(
            name=name,
            provenance=provenance,
            tier=tier,
            sequence=len(self.sources),
            data=data,
        ))

    def _add_file(self, path: PathLike, provenance: str, tier: ConfigTier) -> bool:
        """Load one file; returns False when it was missing or unreadable"""
        try:
            config_file = _config_file(Path(path))
        except ConfigSourceUnreadable as e:
            self.warnings.append(e)
            return False
        if config_file is None:
            logger.debug(f"No {provenance} file at {path}")
            return False

        try:
            data = load_config_file(config_file)
        except ConfigSourceUnreadable as e:
            self.warnings.append(e)
            return False

        if ENVIRONMENT_KEY in data:
            logger.debug(f"Ignoring reserved '{ENVIRONMENT_KEY}' key in {config_file}")
            del data[ENVIRONMENT_KEY]

        self._add_source(str(config_file), provenance, tier, data)
        logger.debug(f"Loaded {provenance} from {config_file}")
        return True


def load_config_file(config_file: Path) -> Dict[str, Any]:
    """
    Read and validate a drush.yml file

    Args:
        config_file: Path to an existing file

    Returns:
        The file's top-level mapping (empty for an empty file)

    Raises:
        ConfigSourceUnreadable: If the file cannot be read, parsed or validated
    """
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigSourceUnreadable(config_file, e.strerror or str(e))
    except UnicodeDecodeError:
        raise ConfigSourceUnreadable(config_file, "not UTF-8 text")
    except yaml.YAMLError as e:
        raise ConfigSourceUnreadable(config_file, f"invalid YAML: {e}")

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise ConfigSourceUnreadable(config_file, "top level is not a mapping")

    try:
        DrushConfigFile.model_validate({str(k): v for k, v in yaml_data.items()})
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error['loc'])
            error_messages.append(f"{loc}: {error['msg']}")
        raise ConfigSourceUnreadable(config_file, "; ".join(error_messages))

    return {str(k): v for k, v in yaml_data.items()}


def _config_file(path: Path) -> Optional[Path]:
    """
    Map a file or a directory holding drush.yml to the file, if it exists

    Raises:
        ConfigSourceUnreadable: If the path exists but cannot be probed
    """
    mode = _stat_mode(path)
    if mode is None:
        return None
    if stat.S_ISDIR(mode):
        candidate = path / CONFIG_FILENAME
        candidate_mode = _stat_mode(candidate)
        return candidate if candidate_mode is not None and stat.S_ISREG(candidate_mode) else None
    return path if stat.S_ISREG(mode) else None


def _stat_mode(path: Path) -> Optional[int]:
    """File mode of path, or None when nothing is there"""
    try:
        return path.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as e:
        raise ConfigSourceUnreadable(path, e.strerror or str(e))


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries

    Args:
        base: Base dictionary
        update: Dictionary with updates

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dicts
            result[key] = _deep_merge(result[key], value)
        else:
            # Override value
            result[key] = copy.deepcopy(value)

    return result
