#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import json

from schema_migration.cluster_client_base import DEFAULT_REINDEX_TIMEOUT_SECONDS, \
    DEFAULT_TASK_POLL_INTERVAL_SECONDS, ClusterClientBase
from schema_migration.exceptions import AliasUpdateError, ReindexError, RollbackError
from schema_migration.migration_logger import MigrationLogger
from schema_migration.migration_plan import MigrationPlan


class Rollback:
    """
    Undoes a rebuild that failed while copying the current index into the new one. At that point clients write to
    catchup-1 and read from the current index plus catchup-1, so rollback has to fold catchup-1 back into the current
    index before pointing the alias at the current index alone.
    """

    def __init__(self, plan: MigrationPlan, client: ClusterClientBase, migration_logger: MigrationLogger,
                 reindex_timeout_seconds: int = DEFAULT_REINDEX_TIMEOUT_SECONDS,
                 poll_interval_seconds: int = DEFAULT_TASK_POLL_INTERVAL_SECONDS):
        self.plan = plan
        self.client = client
        self.migration_logger = migration_logger
        self.reindex_timeout_seconds = reindex_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds

    def attempt_rollback(self, original_error: BaseException) -> bool:
        """
        Returns True when the alias was restored to the current index. A failing rollback step is logged together
        with manual recovery instructions and never raised, so that the caller can surface the original error.
        """
        self.migration_logger.set_step("ROLLBACK")
        self.migration_logger.warning(f"Migration of '{self.plan.alias_name}' failed, rolling back: {original_error}")
        try:
            self.stop_writes()
            self.reindex_catchup_into_current()
            self.restore_alias()
            self.cleanup()
        except Exception as e:
            rollback_error = RollbackError(f"Rollback of '{self.plan.alias_name}' failed: {e}", original_exception=e)
            self.migration_logger.error(str(rollback_error))
            self.log_manual_instructions()
            return False
        self.migration_logger.info(f"Rollback of '{self.plan.alias_name}' completed; the alias points to "
                                   f"{self.plan.current_index} again")
        return True

    def __update_aliases(self, actions: list):
        response = self.client.update_aliases(actions)
        if response.get("errors"):
            raise AliasUpdateError(f"Alias update reported errors: {json.dumps(response)}")

    def stop_writes(self):
        self.migration_logger.info("Stopping writes to the alias")
        catchup1_exists = self.client.index_exists(self.plan.catchup1_index)
        actions = list()
        if catchup1_exists:
            actions.append({"remove": {"index": self.plan.catchup1_index, "alias": self.plan.alias_name}})
        actions.append({"add": {"index": self.plan.current_index, "alias": self.plan.alias_name,
                                "is_write_index": False}})
        if catchup1_exists:
            actions.append({"add": {"index": self.plan.catchup1_index, "alias": self.plan.alias_name,
                                    "is_write_index": False}})
        self.__update_aliases(actions)

    def reindex_catchup_into_current(self):
        if not self.client.index_exists(self.plan.catchup1_index):
            return
        # Writes are stopped, so after a refresh the count covers every document catchup-1 received
        self.client.refresh_index(self.plan.catchup1_index)
        doc_count = self.client.get_doc_count(self.plan.catchup1_index)
        if doc_count == 0:
            self.migration_logger.info(f"{self.plan.catchup1_index} is empty, nothing to copy back")
            return
        self.migration_logger.info(f"Copying {doc_count} documents from {self.plan.catchup1_index} "
                                   f"into {self.plan.current_index}")
        response = self.client.reindex(self.plan.catchup1_index, self.plan.current_index)
        if "took" in response:
            return
        task_id = response.get("task")
        if not task_id:
            raise ReindexError("No task ID from reindex. Reindex incomplete.")
        self.client.wait_for_task(task_id, self.reindex_timeout_seconds, self.poll_interval_seconds)

    def restore_alias(self):
        self.migration_logger.info(f"Pointing '{self.plan.alias_name}' back to {self.plan.current_index}")
        actions = list()
        if self.client.index_exists(self.plan.catchup1_index):
            actions.append({"remove": {"index": self.plan.catchup1_index, "alias": self.plan.alias_name}})
        actions.append({"add": {"index": self.plan.current_index, "alias": self.plan.alias_name,
                                "is_write_index": True}})
        self.__update_aliases(actions)

    def cleanup(self):
        for index in (self.plan.catchup1_index, self.plan.new_index):
            if self.client.index_exists(index):
                self.migration_logger.info(f"Deleting {index}")
                self.client.delete_index(index)

    def log_manual_instructions(self):
        url = self.client.url
        alias = self.plan.alias_name
        current = self.plan.current_index
        catchup1 = self.plan.catchup1_index
        restore_actions = json.dumps({"actions": [
            {"remove": {"index": catchup1, "alias": alias}},
            {"add": {"index": current, "alias": alias, "is_write_index": True}}
        ]})
        reindex_body = json.dumps({"source": {"index": catchup1}, "dest": {"index": current}})
        instructions = [
            "Automatic rollback failed. Restore the alias manually:",
            f"1. Copy documents written during the migration back into {current}:",
            f"   curl -X POST \"{url}/_reindex\" -H 'Content-Type: application/json' -d '{reindex_body}'",
            f"2. Point '{alias}' at {current} only:",
            f"   curl -X POST \"{url}/_aliases\" -H 'Content-Type: application/json' -d '{restore_actions}'",
            "3. Remove the indices created by the migration:",
            f"   curl -X DELETE \"{url}/{catchup1}\"",
            f"   curl -X DELETE \"{url}/{self.plan.new_index}\"",
            f"Migration plan: {self.plan}"
        ]
        self.migration_logger.error("\n".join(instructions))
