"""
Site Aliases

Resolves '@name' selectors to alias records stored as <name>.alias.yml files.
'@self' is the site found from the working directory and needs no file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import yaml

from preflight.errors import SiteAliasNotFoundError, SiteAliasUnreadable

logger = logging.getLogger(__name__)

SELF_ALIAS = "@self"
ALIAS_SUFFIX = ".alias.yml"


@dataclass(frozen=True)
class SiteAlias:
    """A named site: local when it has no host"""
    name: str
    root: Optional[str] = None
    uri: Optional[str] = None
    host: Optional[str] = None
    user: Optional[str] = None

    def is_remote(self) -> bool:
        return bool(self.host)

    def is_self(self) -> bool:
        return self.name == SELF_ALIAS


class SiteAliasManager:
    """Looks up alias files in the alias path, then user and system config dirs"""

    def __init__(self, *search_paths: Optional[Union[str, Path]]):
        self.search_paths: List[Path] = [Path(p) for p in search_paths if p]
        self.warnings: List[SiteAliasUnreadable] = []

    def get(self, alias: str) -> SiteAlias:
        """
        Resolve an alias selector

        Args:
            alias: Selector such as '@self' or '@prod'

        Returns:
            SiteAlias

        Raises:
            SiteAliasNotFoundError: If no alias file defines the name
        """
        if alias == SELF_ALIAS:
            return SiteAlias(name=SELF_ALIAS)

        name = alias.lstrip('@')
        for directory in self.search_paths:
            alias_file = directory / f"{name}{ALIAS_SUFFIX}"
            record = self._load(alias_file)
            if record is not None:
                logger.debug(f"Alias {alias} defined in {alias_file}")
                return SiteAlias(
                    name=alias,
                    root=_optional_str(record.get('root')),
                    uri=_optional_str(record.get('uri')),
                    host=_optional_str(record.get('host')),
                    user=_optional_str(record.get('user')),
                )

        raise SiteAliasNotFoundError(alias, self.warnings)

    def _load(self, alias_file: Path) -> Optional[dict]:
        """Read an alias file; unreadable or malformed files are recorded and skipped"""
        try:
            if not alias_file.is_file():
                return None
            with open(alias_file, 'r', encoding='utf-8') as f:
                record = yaml.safe_load(f)
        except OSError as e:
            self.warnings.append(SiteAliasUnreadable(alias_file, e.strerror or str(e)))
            return None
        except UnicodeDecodeError:
            self.warnings.append(SiteAliasUnreadable(alias_file, "not UTF-8 text"))
            return None
        except yaml.YAMLError as e:
            self.warnings.append(SiteAliasUnreadable(alias_file, f"invalid YAML: {e}"))
            return None

        if record is None:
            return {}
        if not isinstance(record, dict):
            self.warnings.append(SiteAliasUnreadable(alias_file, "top level is not a mapping"))
            return None
        return record


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)
