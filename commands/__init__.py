"""
Command file contract

A command file is any '*_commands.py' module under a 'commands/' directory on
the command search path. It exposes a module-level COMMANDS list of
CommandSpec entries; the dispatcher loads the file and registers them.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional


@dataclass
class CommandSpec:
    """One command: its name, handler and argument definitions"""
    name: str
    handler: Callable                                   # handler(args, handoff) -> int
    help: str = ""
    aliases: List[str] = field(default_factory=list)
    add_arguments: Optional[Callable] = None            # add_arguments(parser)
