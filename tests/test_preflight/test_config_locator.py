"""
Unit tests for configuration layering
"""
import sys

import pytest

from conftest import write_file
from preflight.config_locator import (
    Config,
    ConfigLocator,
    ConfigSource,
    ConfigTier,
    load_config_file,
)
from preflight.errors import ConfigSourceUnreadable


def test_empty_locator_gives_empty_config():
    config = ConfigLocator().config()
    assert config.get('anything') is None
    assert config.get('missing.key', 'fallback') == 'fallback'
    assert config.sources() == []


def test_drush_config_only_falls_back_to_default(layout):
    write_file(layout['base'] / "drush.yml", "options:\n  uri: http://default\n")
    config = ConfigLocator().add_drush_config(layout['base']).config()
    assert config.get('missing.key', 'fallback') == 'fallback'
    assert config.get('options.uri') == 'http://default'


def test_user_overrides_system(layout):
    write_file(layout['etc'] / "drush.yml", "a:\n  b: system\n  only_system: 1\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "a:\n  b: user\n")

    locator = ConfigLocator().add_user_config(None, layout['etc'], layout['home'] / ".drush")
    config = locator.config()

    assert config.get('a.b') == 'user'
    assert config.get('a.only_system') == 1
    assert config.sources() == ['system-config', 'user-config']


def test_precedence_does_not_depend_on_registration_order(layout, environment):
    """site > drush > user > system, whichever is added first"""
    site = layout['project']
    write_file(site / "drush" / "drush.yml", "k:\n  site: site\n")
    write_file(layout['base'] / "drush.yml", "k:\n  site: drush\n  drush: drush\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "k:\n  site: user\n  drush: user\n  user: user\n")
    write_file(layout['etc'] / "drush.yml", "k:\n  site: sys\n  drush: sys\n  user: sys\n  system: sys\n")

    locator = ConfigLocator()
    locator.add_sitewide_config(site)
    locator.add_environment(environment)
    locator.add_drush_config(layout['base'])
    locator.add_user_config(None, layout['etc'], layout['home'] / ".drush")
    config = locator.config()

    assert config.get('k.site') == 'site'
    assert config.get('k.drush') == 'drush'
    assert config.get('k.user') == 'user'
    assert config.get('k.system') == 'sys'
    assert config.sources() == ['system-config', 'user-config', 'drush-config', 'site-config', 'environment']


def test_later_source_wins_within_a_tier():
    first = ConfigSource("one.yml", "user-config", ConfigTier.USER, 0, {'a': {'b': 'X'}})
    second = ConfigSource("two.yml", "user-config", ConfigTier.USER, 1, {'a': {'b': 'Y'}})
    assert Config([first, second]).get('a.b') == 'Y'
    assert Config([second, first]).get('a.b') == 'Y'


def test_environment_is_namespaced(layout, environment):
    """A file key never collides with an environment fact"""
    write_file(layout['base'] / "drush.yml", "a:\n  b: X\ncwd: from-file\n")
    locator = ConfigLocator().add_drush_config(layout['base']).add_environment(environment)
    config = locator.config()

    assert config.get('a.b') == 'X'
    assert config.get('cwd') == 'from-file'
    assert config.get('env.cwd') == str(environment.cwd)
    assert config.get('env.home') == str(environment.home)


def test_files_cannot_write_the_environment_key(layout, environment):
    write_file(layout['base'] / "drush.yml", "env:\n  cwd: /hijacked\n  extra: 1\n")
    locator = ConfigLocator().add_environment(environment).add_drush_config(layout['base'])
    config = locator.config()

    assert config.get('env.cwd') == str(environment.cwd)
    assert config.get('env.extra') is None


def test_local_mode_skips_system_and_user(layout):
    write_file(layout['etc'] / "drush.yml", "a: system\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "a: user\n")
    write_file(layout['base'] / "drush.yml", "b: drush\n")

    locator = ConfigLocator().set_local(True)
    locator.add_user_config(None, layout['etc'], layout['home'] / ".drush")
    locator.add_drush_config(layout['base'])
    config = locator.config()

    assert config.sources() == ['drush-config']
    assert config.get('a') is None


def test_local_mode_still_honours_explicit_config(layout, tmp_path):
    explicit = write_file(tmp_path / "custom.yml", "a: explicit\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "a: user\n")

    locator = ConfigLocator().set_local(True)
    locator.add_user_config(explicit, layout['etc'], layout['home'] / ".drush")

    assert locator.config().sources() == ['explicit-config']
    assert locator.config().get('a') == 'explicit'


def test_explicit_config_replaces_system_and_user(layout, tmp_path):
    explicit_dir = tmp_path / "explicit"
    write_file(explicit_dir / "drush.yml", "a: explicit\n")
    write_file(layout['etc'] / "drush.yml", "a: system\n")

    locator = ConfigLocator().add_user_config(explicit_dir, layout['etc'], layout['home'] / ".drush")
    assert locator.config().sources() == ['explicit-config']


def test_missing_explicit_config_falls_back(layout, tmp_path):
    write_file(layout['etc'] / "drush.yml", "a: system\n")
    locator = ConfigLocator().add_user_config(tmp_path / "nope.yml", layout['etc'], None)
    assert locator.config().get('a') == 'system'


def test_missing_paths_are_not_errors(tmp_path):
    locator = ConfigLocator()
    locator.add_user_config(None, tmp_path / "no-etc", tmp_path / "no-home")
    locator.add_drush_config(tmp_path / "no-base")
    locator.add_sitewide_config(tmp_path / "no-site")
    locator.add_sitewide_config(None)

    assert locator.config().sources() == []
    assert locator.warnings == []


def test_malformed_file_is_skipped_with_warning(layout):
    write_file(layout['etc'] / "drush.yml", "a: [unclosed\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "a: user\n")

    locator = ConfigLocator().add_user_config(None, layout['etc'], layout['home'] / ".drush")

    assert locator.config().get('a') == 'user'
    assert len(locator.warnings) == 1
    assert isinstance(locator.warnings[0], ConfigSourceUnreadable)


def test_non_mapping_file_is_rejected(tmp_path):
    config_file = write_file(tmp_path / "drush.yml", "- a\n- b\n")
    with pytest.raises(ConfigSourceUnreadable):
        load_config_file(config_file)


def test_invalid_minimum_version_is_rejected(tmp_path):
    config_file = write_file(tmp_path / "drush.yml", "drush:\n  python:\n    minimum-version: latest\n")
    with pytest.raises(ConfigSourceUnreadable) as exc_info:
        load_config_file(config_file)
    assert "minimum-version" in str(exc_info.value)


def test_empty_file_is_an_empty_source(layout):
    write_file(layout['base'] / "drush.yml", "")
    config = ConfigLocator().add_drush_config(layout['base']).config()
    assert config.sources() == ['drush-config']


def test_lookups_return_copies(layout):
    write_file(layout['base'] / "drush.yml", "a:\n  list: [1, 2]\n")
    config = ConfigLocator().add_drush_config(layout['base']).config()

    value = config.get('a.list')
    value.append(3)
    assert config.get('a.list') == [1, 2]
    assert config.has('a.list')
    assert not config.has('a.missing')


def test_merge_is_deterministic(layout, environment):
    write_file(layout['etc'] / "drush.yml", "a: {x: 1, y: 1}\n")
    write_file(layout['home'] / ".drush" / "drush.yml", "a: {y: 2}\n")

    def build():
        locator = ConfigLocator()
        locator.add_user_config(None, layout['etc'], layout['home'] / ".drush")
        locator.add_environment(environment)
        return locator.config().export()

    assert build() == build()
    assert build()['a'] == {'x': 1, 'y': 2}


def test_unquoted_float_version_is_rejected(tmp_path):
    """An unquoted 3.10 reads as 3.1 and would lower the minimum"""
    config_file = write_file(tmp_path / "drush.yml", "drush:\n  python:\n    minimum-version: 3.10\n")
    with pytest.raises(ConfigSourceUnreadable) as exc_info:
        load_config_file(config_file)
    assert "quoted" in str(exc_info.value)


def test_integer_version_is_accepted(tmp_path):
    config_file = write_file(tmp_path / "drush.yml", "drush:\n  python:\n    minimum-version: 4\n")
    assert load_config_file(config_file)['drush']['python']['minimum-version'] == 4


@pytest.mark.skipif(sys.platform.startswith("win"), reason="name length limits differ")
def test_probe_error_is_recorded(tmp_path):
    """A path that cannot even be probed is a warning, not a silent skip"""
    too_long = tmp_path / ("a" * 300)
    locator = ConfigLocator().add_user_config(None, too_long, None)

    assert locator.config().sources() == []
    assert len(locator.warnings) == 1
    assert isinstance(locator.warnings[0], ConfigSourceUnreadable)
    assert locator.warnings[0].path == too_long


def test_reset_forgets_sources_and_warnings(layout):
    write_file(layout['etc'] / "drush.yml", "a: [broken\n")
    write_file(layout['base'] / "drush.yml", "b: 1\n")
    locator = ConfigLocator().set_local(False)
    locator.add_user_config(None, layout['etc'], None).add_drush_config(layout['base'])

    locator.reset()

    assert locator.config().sources() == []
    assert locator.warnings == []
