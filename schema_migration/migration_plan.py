#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

# Constants
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def generate_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def new_index_name(alias_name: str, timestamp: str) -> str:
    return f"{alias_name}-{timestamp}"


# Every name involved in a rebuild, plus the schemas on both sides of it. Kept populated after a failure so the
# operator knows exactly which indices to inspect.
@dataclass
class MigrationPlan:
    alias_name: str
    current_index: str
    timestamp: str
    new_index: str = field(init=False)
    catchup1_index: str = field(init=False)
    catchup2_index: str = field(init=False)
    throwaway_test_index: str = field(init=False)
    migration_log_index: Optional[str] = field(init=False)
    current_settings: dict = field(default_factory=dict)
    current_mappings: dict = field(default_factory=dict)
    new_settings: dict = field(default_factory=dict)
    new_mappings: dict = field(default_factory=dict)
    transform_script: Optional[str] = None

    def __post_init__(self):
        self.new_index = new_index_name(self.alias_name, self.timestamp)
        self.catchup1_index = f"{self.new_index}-catchup-1"
        self.catchup2_index = f"{self.new_index}-catchup-2"
        self.throwaway_test_index = f"{self.new_index}-throwaway-test"
        self.migration_log_index = f"{self.alias_name}-migration-log-{self.timestamp}"

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)
