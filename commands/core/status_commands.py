"""core-status: what preflight found for this invocation"""

import yaml

from commands import CommandSpec


def status(args, handoff) -> int:
    """Print the site root, alias, configuration layers and command files"""
    config = handoff.config
    alias = handoff.alias
    # The selected alias's uri wins over options.uri
    uri = alias.uri if alias is not None and alias.uri else config.get('options.uri')
    info = {
        'root': str(handoff.root) if handoff.root else None,
        'alias': alias.name if alias else None,
        'uri': uri,
        'cwd': config.get('env.cwd'),
        'local': handoff.preflight_args.is_local(),
        'config-layers': config.source_names(),
        'command-files': len(handoff.command_files),
    }

    if args.format == 'yaml':
        print(yaml.safe_dump(info, default_flow_style=False, sort_keys=False), end='')
        return 0

    width = max(len(key) for key in info)
    for key, value in info.items():
        if isinstance(value, list):
            value = ", ".join(value) if value else "(none)"
        elif value is None:
            value = "(none)"
        print(f"{key:<{width}} : {value}")
    return 0


def _add_arguments(parser):
    parser.add_argument('--format', choices=['text', 'yaml'], default='text', help='Output format')


COMMANDS = [
    CommandSpec(
        name='core-status',
        handler=status,
        help='Show the site and configuration drush selected',
        aliases=['status', 'st'],
        add_arguments=_add_arguments,
    ),
]
