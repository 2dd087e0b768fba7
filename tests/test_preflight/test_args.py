"""
Unit tests for preflight argument extraction
"""
import dataclasses

import pytest

from preflight.args import ArgsPreprocessor, PreflightArgs


@pytest.fixture
def preprocessor():
    return ArgsPreprocessor()


def test_alias_and_local_are_extracted(preprocessor):
    """@alias as first positional and --local are consumed"""
    args = preprocessor.parse(['@self', 'status', '--local'])
    assert args.alias == '@self'
    assert args.is_local() is True
    assert args.args == ('status',)


def test_both_option_forms(preprocessor):
    """--opt=value and --opt value are equivalent"""
    joined = preprocessor.parse(['--root=/var/www', '--config=/etc/x.yml', 'status'])
    split = preprocessor.parse(['--root', '/var/www', '--config', '/etc/x.yml', 'status'])
    assert joined.root == split.root == '/var/www'
    assert joined.config_path == split.config_path == '/etc/x.yml'
    assert joined.args == split.args == ('status',)


def test_short_options(preprocessor):
    args = preprocessor.parse(['-r', '/srv/site', '-i', '/opt/cmds', '-c', 'conf.yml'])
    assert args.root == '/srv/site'
    assert args.command_path == '/opt/cmds'
    assert args.config_path == 'conf.yml'
    assert args.args == ()


def test_last_occurrence_wins(preprocessor):
    args = preprocessor.parse(['--root=/a', 'status', '--root', '/b', '--include=/x', '--include=/y'])
    assert args.root == '/b'
    assert args.command_path == '/y'


def test_unknown_tokens_pass_through_in_order(preprocessor):
    """Everything that is not a preflight option keeps its relative order"""
    argv = ['--uri=example.com', 'sql-query', '--local', '-y', 'SELECT 1', '--root=/r', '--extra', 'value']
    args = preprocessor.parse(argv)
    assert args.args == ('--uri=example.com', 'sql-query', '-y', 'SELECT 1', '--extra', 'value')

    # Passthrough tokens are a subsequence of the original vector
    position = -1
    for token in args.args:
        position = argv.index(token, position + 1)


def test_only_first_positional_can_be_an_alias(preprocessor):
    args = preprocessor.parse(['status', '@prod'])
    assert args.alias is None
    assert args.args == ('status', '@prod')


def test_alias_after_options(preprocessor):
    args = preprocessor.parse(['--local', '-y', '@prod', 'status'])
    assert args.alias == '@prod'
    assert args.args == ('-y', 'status')


def test_double_dash_stops_scanning(preprocessor):
    args = preprocessor.parse(['php-eval', '--', '--root=/x', '@a'])
    assert args.root is None
    assert args.alias is None
    assert args.args == ('php-eval', '--', '--root=/x', '@a')


def test_value_option_without_value(preprocessor):
    """A trailing value option with nothing after it is treated as absent"""
    args = preprocessor.parse(['status', '--root'])
    assert args.root is None
    assert args.args == ('status',)


def test_coverage_and_alias_path(preprocessor):
    args = preprocessor.parse(['--drush-coverage=/tmp/cov', '--alias-path', '/aliases'])
    assert args.coverage_file == '/tmp/cov'
    assert args.alias_path == '/aliases'


def test_original_argv_is_preserved(preprocessor):
    argv = ['@self', '--root=/r', 'status']
    args = preprocessor.parse(argv, application_path='/usr/bin/drush')
    assert args.argv == tuple(argv)
    assert args.application_path == '/usr/bin/drush'


def test_preflight_args_are_immutable():
    args = PreflightArgs(root='/r')
    with pytest.raises(dataclasses.FrozenInstanceError):
        args.root = '/other'


def test_selected_site_is_the_root_option():
    assert PreflightArgs(root='/r').selected_site() == '/r'
    assert PreflightArgs(alias='@prod').selected_site() is None


def test_value_option_does_not_swallow_next_option(preprocessor):
    args = preprocessor.parse(['--root', '--local', 'status'])
    assert args.root is None
    assert args.is_local() is True
    assert args.args == ('status',)


def test_value_option_accepts_single_dash_value(preprocessor):
    args = preprocessor.parse(['--include', '-cmds', 'status'])
    assert args.command_path == '-cmds'


def test_local_with_boolean_value(preprocessor):
    assert preprocessor.parse(['--local=yes']).is_local() is True
    off = preprocessor.parse(['--local=0', 'status'])
    assert off.is_local() is False
    assert off.args == ('status',)


def test_local_with_other_value_passes_through(preprocessor):
    args = preprocessor.parse(['--local=maybe', 'status'])
    assert args.is_local() is False
    assert args.args == ('--local=maybe', 'status')
