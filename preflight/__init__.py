"""
Preflight package

Everything drush does before a command runs:
- args: Preflight option extraction from the raw argument vector
- environment: Process snapshot and site autoloader
- config_locator: Layered configuration loading and merging
- site_root: Site root discovery
- site_alias: @alias resolution
- command_discovery: Command file discovery
- verify: Runtime checks
- context: Per-invocation context and step ordering
- coverage_guard: Optional coverage collection
- preflight: The orchestrator and the dispatcher hand-off
- errors: Custom exception classes
"""

__version__ = "1.0.0"
