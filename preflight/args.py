"""
Preflight Arguments

Scans the raw argument vector for the few options preflight needs before the
full command grammar exists. Everything else is passed through untouched.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class PreflightArgs:
    """Preflight-relevant options plus the untouched remainder"""
    argv: Tuple[str, ...] = ()                # Original tokens, verbatim
    args: Tuple[str, ...] = ()                # Passthrough tokens, original order
    application_path: Optional[str] = None
    alias: Optional[str] = None               # '@name' site selector
    root: Optional[str] = None
    config_path: Optional[str] = None
    alias_path: Optional[str] = None
    command_path: Optional[str] = None        # --include
    local: bool = False
    coverage_file: Optional[str] = None

    def has_alias(self) -> bool:
        return bool(self.alias)

    def is_local(self) -> bool:
        return self.local

    def selected_site(self) -> Optional[str]:
        """The explicit site root hint, if one was given on the command line"""
        return self.root or None


class ArgsPreprocessor:
    """Extracts preflight options from an argument vector"""

    # Option name -> PreflightArgs field
    VALUE_OPTIONS: Dict[str, str] = {
        '--root': 'root',
        '-r': 'root',
        '--config': 'config_path',
        '-c': 'config_path',
        '--alias-path': 'alias_path',
        '--include': 'command_path',
        '-i': 'command_path',
        '--drush-coverage': 'coverage_file',
    }
    FLAG_OPTIONS: Dict[str, str] = {
        '--local': 'local',
    }
    TRUE_VALUES = ('1', 'true', 'yes', 'on')
    FALSE_VALUES = ('0', 'false', 'no', 'off', '')

    def parse(self, argv: Sequence[str], application_path: Optional[str] = None) -> PreflightArgs:
        """
        Parse an argument vector

        Args:
            argv: Argument tokens, without the program name
            application_path: Program path (argv[0]), if known

        Returns:
            PreflightArgs holding the recognized options and the remainder
        """
        values: Dict[str, object] = {}
        remainder: List[str] = []
        seen_positional = False
        tokens = list(argv)
        i = 0

        while i < len(tokens):
            token = tokens[i]
            i += 1

            if token == '--':
                remainder.extend(tokens[i - 1:])
                break

            name, has_value, value = token.partition('=')
            if name in self.FLAG_OPTIONS:
                flag = self._flag_value(value) if has_value else True
                if flag is not None:
                    values[self.FLAG_OPTIONS[name]] = flag
                    continue
                # Not a boolean; left for the command parser to reject
                remainder.append(token)
                continue

            if name in self.VALUE_OPTIONS:
                if not has_value:
                    if i < len(tokens) and not tokens[i].startswith('--'):
                        value = tokens[i]
                        i += 1
                    else:
                        value = ''
                # Last occurrence wins
                values[self.VALUE_OPTIONS[name]] = value or None
                continue

            if not token.startswith('-') and not seen_positional:
                seen_positional = True
                if token.startswith('@'):
                    values['alias'] = token
                    continue

            remainder.append(token)

        return PreflightArgs(
            argv=tuple(argv),
            args=tuple(remainder),
            application_path=application_path,
            **values,
        )

    def _flag_value(self, value: str) -> Optional[bool]:
        """'--local=yes' style values; None when the value is not a boolean"""
        value = value.strip().lower()
        if value in self.TRUE_VALUES:
            return True
        if value in self.FALSE_VALUES:
            return False
        return None
