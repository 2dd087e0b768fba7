"""
Preflight

Prepares a drush invocation before any command runs:

- Determine the site to use
- Assemble configuration from the system, user, drush and site files
- Find the command files
- Hand everything to the command dispatcher
"""

import logging
import stat
import sys
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, TextIO, Tuple

from preflight.args import ArgsPreprocessor, PreflightArgs
from preflight.command_discovery import CommandFileDiscovery
from preflight.config_locator import Config, ConfigLocator
from preflight.context import PreflightContext, PreflightState, PreflightStateManager
from preflight.coverage_guard import CoverageGuard
from preflight.environment import Environment
from preflight.errors import CommandDiscoveryIOFailure, PreflightError, exit_code_for, format_error_for_cli
from preflight.site_alias import SiteAlias, SiteAliasManager
from preflight.site_root import SiteRootResolver
from preflight.verify import PreflightVerify

logger = logging.getLogger(__name__)

# Holds the built-in commands/ directory
BUILTIN_COMMANDS_PATH = Path(__file__).resolve().parent.parent
SITE_COMMANDS_SUBDIR = "drush"
MINIMUM_VERSION_KEY = "drush.python.minimum-version"

# argparse provides help and command listing itself
EXCLUDED_COMMAND_FILES = (
    Path("commands") / "help" / "help_commands.py",
    Path("commands") / "help" / "list_commands.py",
)


class ExecutionPath(Enum):
    """Where the dispatcher should run the command"""
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class Handoff:
    """Everything the dispatcher receives once preflight is complete"""
    config: Config
    root: Optional[Path]                    # None: no site context
    command_files: Dict[str, str]           # path -> namespace
    argv: Tuple[str, ...]                   # Original, unmodified
    args: Tuple[str, ...]                   # Remainder after preflight options
    environment: Environment
    preflight_args: PreflightArgs
    context: PreflightContext
    alias: Optional[SiteAlias] = None
    execution_path: ExecutionPath = ExecutionPath.LOCAL
    warnings: List[PreflightError] = field(default_factory=list)

    def has_root(self) -> bool:
        return self.root is not None


class Dispatcher(Protocol):
    """Runs the selected command; owns the full command grammar"""

    def dispatch(self, handoff: Handoff) -> int:
        ...


class Preflight:
    """Sequences the preflight steps for one invocation"""

    command_namespace = ""

    def __init__(
        self,
        environment: Environment,
        verify: Optional[PreflightVerify] = None,
        config_locator: Optional[ConfigLocator] = None,
        site_root_resolver: Optional[SiteRootResolver] = None,
        builtin_commands_path: Optional[Path] = None,
        stderr: Optional[TextIO] = None
    ):
        """
        Args:
            environment: Process snapshot
            verify: Runtime checks (default: PreflightVerify())
            config_locator: Configuration accumulator (default: ConfigLocator())
            site_root_resolver: Site finder (default: SiteRootResolver())
            builtin_commands_path: Directory holding the built-in commands/ tree
            stderr: Stream for preflight errors (default: sys.stderr)
        """
        self.environment = environment
        self.verify = verify or PreflightVerify()
        self.config_locator = config_locator or ConfigLocator()
        self.site_root_resolver = site_root_resolver or SiteRootResolver()
        self.builtin_commands_path = Path(builtin_commands_path or BUILTIN_COMMANDS_PATH)
        self.discovery = self.command_discovery()
        self.alias_manager: Optional[SiteAliasManager] = None
        self.state = PreflightStateManager()
        self.context: Optional[PreflightContext] = None
        self.warnings: List[PreflightError] = []
        self._stderr = stderr

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def run(self, argv: Sequence[str], dispatcher: Dispatcher) -> int:
        """
        Run preflight and dispatch the command

        Errors raised during preflight are printed as one line and turned into
        the exit status. Once the dispatcher has control, its exceptions are
        its own and propagate.

        Args:
            argv: Full process argument vector (argv[0] is the program)
            dispatcher: Receives the Handoff

        Returns:
            Process exit status
        """
        with ExitStack() as stack:
            try:
                handoff = self.prepare(argv, stack)
            except Exception as e:
                # The logger is not configured yet
                self.stderr.write(f"{format_error_for_cli(e)}\n")
                return exit_code_for(e)

            stack.callback(self._report_abnormal_termination)
            self.state.transition_to(PreflightState.HANDED_OFF)
            status = dispatcher.dispatch(handoff)
            self.context.execution_completed = True
            return status

    def prepare(self, argv: Sequence[str], stack: ExitStack) -> Handoff:
        """
        Run every preflight step up to command discovery

        Args:
            argv: Full process argument vector
            stack: Receives resources that must outlive preflight (coverage)

        Returns:
            Handoff for the dispatcher
        """
        self.reset()

        # Fail fast if anything in the runtime does not check out
        self.verify.verify(self.environment)
        self.state.transition_to(PreflightState.ENVIRONMENT_VERIFIED)

        preflight_args = self.preflight_args(argv)
        self.state.transition_to(PreflightState.ARGS_PARSED)

        config_locator = self.prepare_config(preflight_args, self.environment)
        self.state.transition_to(PreflightState.CONFIG_ASSEMBLED)

        context = self.init(preflight_args)
        self.start_coverage(preflight_args, stack)
        self.state.transition_to(PreflightState.LEGACY_INITIALIZED)

        alias = self.find_alias(preflight_args)
        root = self.find_selected_site(preflight_args, alias)
        logger.debug(f"Site root: {root}")
        self.state.transition_to(PreflightState.SITE_ROOT_RESOLVED)

        # Extend configuration with the site's own file, then check the
        # minimum Python version again in case a file raised it.
        config_locator.add_sitewide_config(root)
        config = config_locator.config()
        self.verify.confirm_python_version(config.get(MINIMUM_VERSION_KEY))
        self.state.transition_to(PreflightState.CONFIG_EXTENDED)

        self.environment.load_site_autoloader(root)
        self.state.transition_to(PreflightState.AUTOLOAD_READY)

        searchpath = self.find_command_file_search_path(preflight_args, self.site_command_path(root))
        command_files = self.discovery.discover(searchpath, self.command_namespace)
        for excluded in self.excluded_command_files():
            command_files.pop(excluded, None)
        self.state.transition_to(PreflightState.COMMANDS_DISCOVERED)

        remote = alias is not None and alias.is_remote()
        return Handoff(
            config=config,
            root=root,
            command_files=command_files,
            argv=tuple(argv),
            args=preflight_args.args,
            environment=self.environment,
            preflight_args=preflight_args,
            context=context,
            alias=alias,
            execution_path=ExecutionPath.REMOTE if remote else ExecutionPath.LOCAL,
            warnings=self.collect_warnings(),
        )

    def preflight_args(self, argv: Sequence[str]) -> PreflightArgs:
        """Split off the program name and extract the preflight options"""
        argv = list(argv)
        application_path = argv[0] if argv else None
        return ArgsPreprocessor().parse(argv[1:], application_path)

    def prepare_config(self, preflight_args: PreflightArgs, environment: Environment) -> ConfigLocator:
        """Load configuration from the global locations"""
        config_locator = self.config_locator
        config_locator.set_local(preflight_args.is_local())
        config_locator.add_user_config(
            preflight_args.config_path,
            environment.system_config_path,
            environment.user_config_path
        )
        config_locator.add_drush_config(environment.base_path)

        # Make environment settings available as configuration items
        config_locator.add_environment(environment)

        return config_locator

    def init(self, preflight_args: PreflightArgs) -> PreflightContext:
        """Create the per-invocation context older collaborators read"""
        self.context = PreflightContext(
            base_path=self.environment.base_path,
            application_path=preflight_args.application_path,
            coverage_file=preflight_args.coverage_file,
        )
        return self.context

    def start_coverage(self, preflight_args: PreflightArgs, stack: ExitStack) -> Optional[CoverageGuard]:
        """Start coverage collection, released when stack closes"""
        if not preflight_args.coverage_file:
            return None
        return stack.enter_context(CoverageGuard(preflight_args.coverage_file))

    def find_alias(self, preflight_args: PreflightArgs) -> Optional[SiteAlias]:
        """Resolve the @alias selector, if one was given"""
        if not preflight_args.has_alias():
            return None

        search_paths = [preflight_args.alias_path]
        if not preflight_args.is_local():
            search_paths += [self.environment.user_config_path, self.environment.system_config_path]

        self.alias_manager = SiteAliasManager(*search_paths)
        alias = self.alias_manager.get(preflight_args.alias)
        self.context.target_site_alias = alias.name
        return alias

    def find_selected_site(self, preflight_args: PreflightArgs, alias: Optional[SiteAlias] = None) -> Optional[Path]:
        """Find the site the user selected based on --root, @alias or cwd"""
        hint = preflight_args.selected_site()
        if hint is None and alias is not None and not alias.is_remote():
            hint = alias.root
        return self.site_root_resolver.locate(hint, self.environment.cwd)

    def command_discovery(self) -> CommandFileDiscovery:
        return CommandFileDiscovery(
            search_locations=["commands"],
            search_pattern=r"^.*_commands\.py$",
            include_files_at_base=False,
        )

    def site_command_path(self, root: Optional[Path]) -> Optional[Path]:
        if root is None:
            return None
        return Path(root) / SITE_COMMANDS_SUBDIR

    def find_command_file_search_path(
        self,
        preflight_args: PreflightArgs,
        site_commands: Optional[Path] = None
    ) -> List[Path]:
        """
        Return every location where command files are found

        Args:
            preflight_args: Parsed preflight options
            site_commands: Site-specific command directory, if a site was found

        Returns:
            Search path, in order
        """
        # Start with the built-in commands
        searchpath = [self.builtin_commands_path]

        # Commands specified by the 'include' option
        command_path = preflight_args.command_path
        if command_path and self._is_dir(Path(command_path)):
            searchpath.append(Path(command_path))

        if not preflight_args.is_local():
            # System commands, residing in $SHARE_PREFIX/share/drush
            if self._is_dir(self.environment.system_command_file_path):
                searchpath.append(self.environment.system_command_file_path)

            # User commands, residing in ~/.drush
            if self._is_dir(self.environment.user_command_file_path):
                searchpath.append(self.environment.user_command_file_path)

        if site_commands is not None and self._is_dir(site_commands):
            searchpath.append(site_commands)

        return searchpath

    def excluded_command_files(self) -> List[str]:
        base = self.builtin_commands_path.absolute()
        return [str(base / relative) for relative in EXCLUDED_COMMAND_FILES]

    def collect_warnings(self) -> List[PreflightError]:
        """Degraded conditions recorded so far, for reporting once logging exists"""
        alias_warnings = self.alias_manager.warnings if self.alias_manager else []
        return (
            list(self.config_locator.warnings)
            + list(alias_warnings)
            + list(self.site_root_resolver.warnings)
            + list(self.warnings)
            + list(self.discovery.warnings)
        )

    def reset(self) -> None:
        """Forget everything from a previous invocation"""
        self.state = PreflightStateManager()
        self.context = None
        self.warnings = []
        self.alias_manager = None
        self.config_locator.reset()
        self.site_root_resolver.warnings = []
        self.discovery = self.command_discovery()

    def _report_abnormal_termination(self) -> None:
        if self.context is not None and not self.context.execution_completed:
            self.stderr.write("Drush command terminated abnormally.\n")

    def _is_dir(self, path: Path) -> bool:
        """Whether path is a directory; probe errors are recorded as warnings"""
        try:
            return stat.S_ISDIR(path.stat().st_mode)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            self.warnings.append(CommandDiscoveryIOFailure(path, e.strerror or str(e)))
            return False
