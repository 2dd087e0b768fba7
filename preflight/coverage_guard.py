"""
Coverage Guard

Collects code coverage for one invocation when --drush-coverage is given.
Used as a context manager so the data is saved on every exit path.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import coverage

logger = logging.getLogger(__name__)


class CoverageGuard:
    """Start coverage on enter; stop and save on exit"""

    def __init__(self, data_file: Union[str, Path]):
        self.data_file = str(data_file)
        self.collector: Optional[coverage.Coverage] = None

    def __enter__(self) -> 'CoverageGuard':
        self.collector = coverage.Coverage(data_file=self.data_file)
        self.collector.start()
        logger.debug(f"Coverage started, writing to {self.data_file}")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> None:
        """Stop collecting and write the data file; safe to call twice"""
        if self.collector is None:
            return
        collector, self.collector = self.collector, None
        collector.stop()
        collector.save()
        logger.debug(f"Coverage saved to {self.data_file}")
