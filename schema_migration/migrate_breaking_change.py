#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

"""
Rebuilds the index behind an alias without downtime.

While the current index is copied into the new one, writes are diverted to "catchup" indices that readers also see
through the alias. Once the copy is done the catchup indices are folded into the new index and the alias is
atomically moved onto it:

    STEP0   prove that the transform script and new schema accept a real document (throwaway index)
    STEP1   create catchup-1 with the current schema
    STEP2   alias writes to catchup-1, reads from current + catchup-1
    STEP3   create the new index and copy current into it (rolled back on failure)
    STEP4   create catchup-2 with the current schema
    STEP5   alias writes to catchup-2, reads from current + catchup-1 + catchup-2
    STEP6   copy catchup-1 into the new index
    STEP7   stop writes through the alias
    STEP8   copy catchup-2 into the new index
    STEP9   alias reads and writes the new index only
    STEP10  close the old indices and the migration log index
"""

import json
import logging
from typing import List, Optional

from schema_migration.cluster_client_base import DEFAULT_REINDEX_TIMEOUT_SECONDS, \
    DEFAULT_TASK_POLL_INTERVAL_SECONDS, ClusterClientBase
from schema_migration.exceptions import AliasUpdateError, MigrationStepError, PreconditionError, ReindexError
from schema_migration.migrate_verify import verify_migration
from schema_migration.migration_logger import MigrationLogger
from schema_migration.migration_plan import MigrationPlan, generate_timestamp
from schema_migration.migration_step import MigrationStep, StepFailure, run_steps
from schema_migration.normalization import filter_internal_settings
from schema_migration.rollback import Rollback
from schema_migration.schema_files import SchemaStore

logger = logging.getLogger(__name__)

# Constants
ROLLBACK_STEP = "STEP3"


class BreakingChangeMigration:
    def __init__(self, alias_name: str, client: ClusterClientBase, schema_store: SchemaStore,
                 migration_logger: Optional[MigrationLogger] = None,
                 reindex_timeout_seconds: int = DEFAULT_REINDEX_TIMEOUT_SECONDS,
                 poll_interval_seconds: int = DEFAULT_TASK_POLL_INTERVAL_SECONDS,
                 timestamp: Optional[str] = None):
        self.alias_name = alias_name
        self.client = client
        self.schema_store = schema_store
        self.migration_logger = migration_logger or MigrationLogger(client)
        self.reindex_timeout_seconds = reindex_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.timestamp = timestamp
        self.plan: Optional[MigrationPlan] = None

    def migrate(self) -> MigrationPlan:
        self.plan = self.setup()
        self.migration_logger.start_log_index(self.plan.migration_log_index)
        self.migration_logger.info(f"Starting breaking change migration of '{self.alias_name}' "
                                   f"from {self.plan.current_index} to {self.plan.new_index}")
        try:
            run_steps(self.steps(), self.migration_logger)
        except StepFailure as failure:
            self.__handle_step_failure(failure)
        finally:
            self.migration_logger.stop_log_index()
            self.migration_logger.set_step("VERIFY")
        verify_migration(self.alias_name, self.client, self.schema_store)
        self.migration_logger.info(f"Breaking change migration of '{self.alias_name}' completed")
        return self.plan

    def __handle_step_failure(self, failure: StepFailure):
        original = failure.original_exception
        if failure.step.name == ROLLBACK_STEP:
            Rollback(self.plan, self.client, self.migration_logger, self.reindex_timeout_seconds,
                     self.poll_interval_seconds).attempt_rollback(original)
            raise original
        self.migration_logger.error(f"Migration of '{self.alias_name}' stopped at {failure.step.name}. "
                                    f"Manual intervention is required. Migration plan: {self.plan}")
        raise MigrationStepError(failure.step.name, self.plan, original) from original

    def setup(self) -> MigrationPlan:
        indices = self.client.get_alias_indices(self.alias_name)
        if len(indices) != 1:
            raise PreconditionError(f"Alias '{self.alias_name}' must point to exactly one index, "
                                    f"found: {indices}")
        new_settings = self.schema_store.get_settings(self.alias_name)
        new_mappings = self.schema_store.get_mappings(self.alias_name)
        if new_settings is None or new_mappings is None:
            raise PreconditionError(f"Local schema files not found for '{self.alias_name}'")
        current_index = indices[0]
        plan = MigrationPlan(
            alias_name=self.alias_name,
            current_index=current_index,
            timestamp=self.timestamp or generate_timestamp(),
            current_settings=self.client.get_settings(current_index),
            current_mappings=self.client.get_mappings(current_index),
            new_settings=new_settings,
            new_mappings=new_mappings,
            transform_script=self.schema_store.get_transform_script(self.alias_name)
        )
        logger.debug(f"Migration plan for '{self.alias_name}': {plan}")
        return plan

    def steps(self) -> List[MigrationStep]:
        return [
            MigrationStep("STEP0", self.test_throwaway_index),
            MigrationStep("STEP1", self.create_catchup1),
            MigrationStep("STEP2", self.divert_writes_to_catchup1),
            MigrationStep(ROLLBACK_STEP, self.copy_current_to_new),
            MigrationStep("STEP4", self.create_catchup2),
            MigrationStep("STEP5", self.divert_writes_to_catchup2),
            MigrationStep("STEP6", self.copy_catchup1_to_new),
            MigrationStep("STEP7", self.stop_writes),
            MigrationStep("STEP8", self.copy_catchup2_to_new),
            MigrationStep("STEP9", self.switch_alias_to_new),
            MigrationStep("STEP10", self.close_old_indices)
        ]

    # Settings read back from the cluster carry read-only keys that cannot be used to create an index
    def __creatable_settings(self, settings: dict) -> dict:
        return filter_internal_settings(settings)

    def __update_aliases(self, actions: list):
        self.migration_logger.info(f"Updating aliases: {json.dumps(actions)}")
        response = self.client.update_aliases(actions)
        if response.get("errors"):
            raise AliasUpdateError(f"Alias update reported errors: {json.dumps(response)}")

    def __reindex(self, source_index: str, dest_index: str, script: Optional[str] = None):
        # Writes still inside the refresh interval would otherwise be skipped by the copy
        self.client.refresh_index(source_index)
        self.migration_logger.info(f"Reindexing {source_index} into {dest_index}")
        response = self.client.reindex(source_index, dest_index, script)
        if "took" in response:
            if response.get("failures"):
                raise ReindexError(f"Reindex of {source_index} completed with failures: {response['failures']}")
            return
        task_id = response.get("task")
        if not task_id:
            raise ReindexError("No task ID from reindex. Reindex incomplete.")
        self.migration_logger.info(f"Waiting for reindex task {task_id}")
        self.client.wait_for_task(task_id, self.reindex_timeout_seconds, self.poll_interval_seconds)

    def test_throwaway_index(self):
        plan = self.plan
        self.client.create_index(plan.throwaway_test_index, plan.new_settings, plan.new_mappings)
        try:
            self.client.reindex_one_document(plan.current_index, plan.throwaway_test_index, plan.transform_script)
        except Exception:
            # The reindex failure explains the abort; a failing cleanup must not replace it
            try:
                self.client.delete_index(plan.throwaway_test_index)
            except Exception as e:
                self.migration_logger.error(f"Failed to delete {plan.throwaway_test_index}: {e}")
            raise
        self.client.delete_index(plan.throwaway_test_index)

    def create_catchup1(self):
        self.client.create_index(self.plan.catchup1_index, self.__creatable_settings(self.plan.current_settings),
                                 self.plan.current_mappings)

    def divert_writes_to_catchup1(self):
        self.__update_aliases([
            {"add": {"index": self.plan.current_index, "alias": self.alias_name, "is_write_index": False}},
            {"add": {"index": self.plan.catchup1_index, "alias": self.alias_name, "is_write_index": True}}
        ])

    def copy_current_to_new(self):
        self.client.create_index(self.plan.new_index, self.plan.new_settings, self.plan.new_mappings)
        self.__reindex(self.plan.current_index, self.plan.new_index, self.plan.transform_script)

    def create_catchup2(self):
        self.client.create_index(self.plan.catchup2_index, self.__creatable_settings(self.plan.current_settings),
                                 self.plan.current_mappings)

    def divert_writes_to_catchup2(self):
        self.__update_aliases([
            {"add": {"index": self.plan.catchup1_index, "alias": self.alias_name, "is_write_index": False}},
            {"add": {"index": self.plan.catchup2_index, "alias": self.alias_name, "is_write_index": True}}
        ])

    def copy_catchup1_to_new(self):
        self.__reindex(self.plan.catchup1_index, self.plan.new_index, self.plan.transform_script)

    def stop_writes(self):
        self.__update_aliases([
            {"add": {"index": self.plan.catchup2_index, "alias": self.alias_name, "is_write_index": False}}
        ])

    def copy_catchup2_to_new(self):
        self.__reindex(self.plan.catchup2_index, self.plan.new_index, self.plan.transform_script)

    def switch_alias_to_new(self):
        self.__update_aliases([
            {"remove": {"index": self.plan.current_index, "alias": self.alias_name}},
            {"remove": {"index": self.plan.catchup1_index, "alias": self.alias_name}},
            {"remove": {"index": self.plan.catchup2_index, "alias": self.alias_name}},
            {"add": {"index": self.plan.new_index, "alias": self.alias_name, "is_write_index": True}}
        ])

    def close_old_indices(self):
        for index in (self.plan.current_index, self.plan.catchup1_index, self.plan.catchup2_index):
            if self.client.index_exists(index):
                self.client.close_index(index)
        log_index = self.plan.migration_log_index
        self.migration_logger.info(f"Closing migration log index {log_index}")
        self.migration_logger.stop_log_index()
        if self.client.index_exists(log_index):
            self.client.close_index(log_index)
        self.plan.migration_log_index = None
