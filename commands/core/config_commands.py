"""config-get: read a merged configuration value"""

import sys

import yaml

from commands import CommandSpec


def config_get(args, handoff) -> int:
    """Print one value from the merged configuration; mappings and lists as YAML"""
    marker = object()
    value = handoff.config.get(args.key, marker)
    if value is marker:
        if args.default is None:
            print(f"Configuration key not found: {args.key}", file=sys.stderr)
            return 1
        value = args.default

    if isinstance(value, (dict, list)):
        print(yaml.safe_dump(value, default_flow_style=False, sort_keys=False), end='')
    else:
        print(value)
    return 0


def _add_arguments(parser):
    parser.add_argument('key', help='Dotted key, e.g. drush.python.minimum-version')
    parser.add_argument('--default', help='Value printed when the key is not set')


COMMANDS = [
    CommandSpec(
        name='config-get',
        handler=config_get,
        help='Print a configuration value',
        aliases=['cget'],
        add_arguments=_add_arguments,
    ),
]
