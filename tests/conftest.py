"""
Shared fixtures: a throwaway filesystem layout for drush
"""
from pathlib import Path

import pytest

from preflight.environment import Environment

ROOT_MARKER = Path("core") / "lib" / "Drupal.php"


def write_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def make_site(root: Path) -> Path:
    """Create a directory recognized as a site root"""
    write_file(root / ROOT_MARKER, "<?php\n")
    return root


@pytest.fixture
def layout(tmp_path):
    """Directories for the drush install, system, home and a project"""
    dirs = {
        'base': tmp_path / "drush",
        'etc': tmp_path / "etc" / "drush",
        'share': tmp_path / "share" / "drush",
        'home': tmp_path / "home",
        'project': tmp_path / "proj",
    }
    for directory in dirs.values():
        directory.mkdir(parents=True)
    return dirs


@pytest.fixture
def environment(layout):
    """Environment snapshot rooted in the temporary layout"""
    return Environment(
        base_path=layout['base'],
        cwd=layout['project'],
        home=layout['home'],
        system_config_path=layout['etc'],
        user_config_path=layout['home'] / ".drush",
        system_command_file_path=layout['share'],
        user_command_file_path=layout['home'] / ".drush",
        tmp_dir=layout['home'] / "tmp",
    )
