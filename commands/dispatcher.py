"""
Command Dispatcher

Loads the command files preflight discovered and runs the selected command
with argparse.
"""

import sys
import argparse
import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Optional

from commands import CommandSpec
from config.settings import settings
from preflight import __version__
from preflight.preflight import ExecutionPath, Handoff

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def setup_logging(level: str = "INFO"):
    """Setup basic logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='[%(levelname)s] %(message)s'
    )


def print_error(message: str):
    """Print error message"""
    print(f"✗ {message}", file=sys.stderr)


def load_command_module(path: str, namespace: str) -> ModuleType:
    """
    Load a command file by path

    Args:
        path: Absolute path of the command file
        namespace: Dotted name the module is loaded under

    Returns:
        The executed module

    Raises:
        ImportError: If the file cannot be loaded as a module
    """
    spec = importlib.util.spec_from_file_location(namespace or Path(path).stem, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load command file: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class ArgparseDispatcher:
    """Builds the full command grammar from the discovered command files"""

    def __init__(self, log_level: Optional[str] = None):
        self.log_level = log_level or settings.log_level

    def dispatch(self, handoff: Handoff) -> int:
        """
        Parse the remaining arguments and run the selected command

        Args:
            handoff: Result of preflight

        Returns:
            Command exit status
        """
        commands = self.load_commands(handoff.command_files)
        parser = self.build_parser(commands)

        try:
            args = parser.parse_args(list(handoff.args))
        except SystemExit as e:
            # --help, --version and usage errors
            return e.code if isinstance(e.code, int) else (0 if e.code is None else 1)

        level = 'DEBUG' if args.verbose else (args.log_level or self.log_level)
        setup_logging(level)

        for warning in handoff.warnings:
            logging.warning(str(warning))

        if handoff.execution_path is ExecutionPath.REMOTE:
            print_error(
                f"Remote execution is not supported: {handoff.alias.name} "
                f"is hosted on {handoff.alias.host}"
            )
            return 1

        if not args.command:
            parser.print_help()
            return 1

        try:
            return args.handler(args, handoff)
        except KeyboardInterrupt:
            print()
            print_error("Command cancelled by user")
            return 130
        except Exception as e:
            print_error(f"Command '{args.command}' failed: {e}")
            logging.exception("Full traceback:")
            return 1

    def load_commands(self, command_files: Dict[str, str]) -> Dict[str, CommandSpec]:
        """
        Load command files in search-path order

        A command defined by a later file replaces one of the same name from
        an earlier file, so site commands override user, system and built-in
        ones.
        """
        commands: Dict[str, CommandSpec] = {}

        for path, namespace in command_files.items():
            try:
                module = load_command_module(path, namespace)
            except Exception as e:
                logging.warning(f"Skipping command file {path}: {e}")
                continue

            for spec in getattr(module, 'COMMANDS', []):
                if not isinstance(spec, CommandSpec):
                    logging.warning(f"Ignoring invalid command entry in {path}: {spec!r}")
                    continue
                commands[spec.name] = spec

        return commands

    def build_parser(self, commands: Dict[str, CommandSpec]) -> argparse.ArgumentParser:
        """Main parser with one subcommand per command"""
        parser = argparse.ArgumentParser(
            prog='drush',
            description="Drush - command-line administration for your site",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Site selection and configuration (handled before the command is parsed):
  @alias                 Site alias, as the first argument
  --root=PATH, -r PATH   Site root
  --config=PATH          Configuration file or directory
  --alias-path=PATH      Directory holding *.alias.yml files
  --include=PATH         Additional command file directory
  --local                Ignore system-wide and user configuration
  --drush-coverage=FILE  Collect code coverage into FILE

Examples:
  drush status
  drush @self config-get options.uri
  drush --local --root=/var/www/site status --format=yaml
"""
        )

        parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
        parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
        parser.add_argument('--log-level', choices=LOG_LEVELS, help='Logging level')

        subparsers = parser.add_subparsers(dest='command', help='Command to execute')

        taken = set(commands)
        for name, spec in commands.items():
            aliases: List[str] = []
            for alias in spec.aliases:
                if alias not in taken:
                    aliases.append(alias)
                    taken.add(alias)

            command_parser = subparsers.add_parser(name, aliases=aliases, help=spec.help)
            if spec.add_arguments is not None:
                spec.add_arguments(command_parser)
            command_parser.set_defaults(handler=spec.handler)

        return parser
