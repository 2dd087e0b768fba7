"""
Preflight Context and State

PreflightContext replaces process-wide legacy flags: it is created once per
invocation and passed explicitly to whatever needs it.
PreflightStateManager enforces the order of the preflight steps.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from preflight.errors import InvalidStateTransitionError


class PreflightState(Enum):
    """Preflight steps, in the only order they may run"""
    CREATED = "created"
    ENVIRONMENT_VERIFIED = "environment_verified"
    ARGS_PARSED = "args_parsed"
    CONFIG_ASSEMBLED = "config_assembled"
    LEGACY_INITIALIZED = "legacy_initialized"
    SITE_ROOT_RESOLVED = "site_root_resolved"
    CONFIG_EXTENDED = "config_extended"
    AUTOLOAD_READY = "autoload_ready"
    COMMANDS_DISCOVERED = "commands_discovered"
    HANDED_OFF = "handed_off"


_ORDER = list(PreflightState)


class PreflightStateManager:
    """Forward-only state tracking for one invocation"""

    def __init__(self):
        self.current_state = PreflightState.CREATED
        self.state_history: List[Tuple[PreflightState, datetime]] = [(PreflightState.CREATED, datetime.now())]

    def transition_to(self, new_state: PreflightState) -> None:
        """
        Move to the next state

        Raises:
            InvalidStateTransitionError: Unless new_state directly follows the current one
        """
        if not self._is_valid_transition(self.current_state, new_state):
            raise InvalidStateTransitionError(self.current_state.value, new_state.value)
        self.current_state = new_state
        self.state_history.append((new_state, datetime.now()))

    def _is_valid_transition(self, from_state: PreflightState, to_state: PreflightState) -> bool:
        index = _ORDER.index(from_state)
        return index + 1 < len(_ORDER) and _ORDER[index + 1] is to_state


@dataclass
class PreflightContext:
    """Per-invocation facts that older collaborators still read"""
    base_path: Path
    application_path: Optional[str] = None
    request_time: float = field(default_factory=time.time)
    coverage_file: Optional[str] = None
    target_site_alias: Optional[str] = None
    execution_completed: bool = False
