#!/usr/bin/env python
"""
Drush CLI

Command-line entry point: checks that the runtime has every module drush
needs, runs preflight, then dispatches the selected command from the command
files preflight discovered.

Only the standard library and the verification module are imported at module
level; everything else is imported once the runtime has been verified.
"""

import sys
from typing import List, Optional

from preflight.errors import EnvironmentVerificationFailure, exit_code_for, format_error_for_cli
from preflight.verify import PreflightVerify


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    argv = list(sys.argv if argv is None else argv)

    verify = PreflightVerify()
    try:
        verify.verify()
    except EnvironmentVerificationFailure as e:
        sys.stderr.write(f"{format_error_for_cli(e)}\n")
        return exit_code_for(e)

    from dotenv import load_dotenv

    # Load .env file to environment variables
    # This must be done before Settings is created so both see the same values
    load_dotenv()

    from commands.dispatcher import ArgparseDispatcher
    from config.settings import settings
    from preflight.environment import Environment
    from preflight.preflight import Preflight

    environment = Environment.from_settings(settings)
    return Preflight(environment, verify=verify).run(argv, ArgparseDispatcher())


if __name__ == '__main__':
    sys.exit(main())
