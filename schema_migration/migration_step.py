#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

from dataclasses import dataclass, field
from typing import Callable, List

from schema_migration.migration_logger import MigrationLogger


@dataclass
class MigrationStep:
    name: str
    action: Callable[[], None]
    before_hooks: List[Callable[[], None]] = field(default_factory=list)
    after_hooks: List[Callable[[], None]] = field(default_factory=list)

    def run(self, migration_logger: MigrationLogger):
        migration_logger.set_step(self.name)
        migration_logger.info(f"{self.name} (starting)")
        for hook in self.before_hooks:
            hook()
        self.action()
        for hook in self.after_hooks:
            hook()
        migration_logger.info(f"{self.name} (completed)")


class StepFailure(Exception):
    def __init__(self, step: MigrationStep, original_exception: BaseException):
        super().__init__(f"{step.name} failed: {original_exception}")
        self.step = step
        self.original_exception = original_exception


# Steps run strictly in order; the first exception stops the sequence and propagates with the failing step attached
def run_steps(steps: List[MigrationStep], migration_logger: MigrationLogger):
    for step in steps:
        try:
            step.run(migration_logger)
        except Exception as e:
            migration_logger.error(f"{step.name} failed: {e}")
            raise StepFailure(step, e) from e
