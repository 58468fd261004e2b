#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import jsonpath_ng

from schema_migration.exceptions import ReindexError, TaskTimeoutError

# Constants
DEFAULT_TASK_POLL_INTERVAL_SECONDS = 5
# One week
DEFAULT_REINDEX_TIMEOUT_SECONDS = 604800
_TASK_FAILURES_JSONPATH = jsonpath_ng.parse("$.response.failures")
_TASK_ERROR_JSONPATH = jsonpath_ng.parse("$.error")


class ClusterClientBase(ABC):
    """
    Abstract base class for the clients that interface with the cluster hosting the aliased indices.

    Every method returns the parsed JSON body of the cluster's response, except for the existence checks and counts.
    Failures of the underlying transport surface as RequestError.
    """

    # Set by clients that only log the mutating requests they would send
    dry_run: bool = False

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @property
    @abstractmethod
    def url(self) -> str:
        pass

    # Index operations
    @abstractmethod
    def index_exists(self, index: str) -> bool:
        pass

    @abstractmethod
    def create_index(self, index: str, settings: Optional[dict] = None, mappings: Optional[dict] = None) -> dict:
        pass

    @abstractmethod
    def close_index(self, index: str) -> dict:
        pass

    @abstractmethod
    def delete_index(self, index: str) -> dict:
        pass

    @abstractmethod
    def index_closed(self, index: str) -> bool:
        pass

    @abstractmethod
    def get_settings(self, index: str) -> dict:
        pass

    @abstractmethod
    def get_mappings(self, index: str) -> dict:
        pass

    @abstractmethod
    def update_settings(self, index: str, settings: dict) -> dict:
        pass

    @abstractmethod
    def update_mappings(self, index: str, mappings: dict) -> dict:
        pass

    @abstractmethod
    def get_doc_count(self, index: str) -> int:
        pass

    # Makes every document written so far visible to counts and reindex reads
    @abstractmethod
    def refresh_index(self, index: str) -> dict:
        pass

    # Alias operations
    @abstractmethod
    def alias_exists(self, alias: str) -> bool:
        pass

    @abstractmethod
    def get_alias_indices(self, alias: str) -> List[str]:
        pass

    @abstractmethod
    def create_alias(self, alias: str, index: str) -> dict:
        pass

    @abstractmethod
    def update_aliases(self, actions: List[dict]) -> dict:
        pass

    # Document and reindex operations
    @abstractmethod
    def reindex(self, source_index: str, dest_index: str, script: Optional[str] = None) -> dict:
        pass

    @abstractmethod
    def reindex_one_document(self, source_index: str, dest_index: str, script: Optional[str] = None) -> dict:
        pass

    @abstractmethod
    def get_task_status(self, task_id: str) -> dict:
        pass

    @abstractmethod
    def bulk_index(self, documents: List[dict], index: str) -> dict:
        pass

    @abstractmethod
    def post_document(self, index: str, document: dict) -> dict:
        pass

    def wait_for_task(self, task_id: str, timeout_seconds: int = DEFAULT_REINDEX_TIMEOUT_SECONDS,
                      poll_interval_seconds: int = DEFAULT_TASK_POLL_INTERVAL_SECONDS) -> dict:
        """
        Polls the task API until the task completes or the timeout elapses. A failure to query the task is not
        retried. A completed task that reports failures or an error raises ReindexError.
        """
        deadline = time.time() + timeout_seconds
        while True:
            status = self.get_task_status(task_id)
            if status.get("completed", False):
                self.__check_task_result(task_id, status)
                self.logger.info(f"Task {task_id} completed")
                return status
            if time.time() >= deadline:
                raise TaskTimeoutError(f"Task {task_id} did not complete within {timeout_seconds} seconds")
            self.logger.debug(f"Task {task_id} still running, checking again in {poll_interval_seconds} seconds")
            time.sleep(poll_interval_seconds)

    @staticmethod
    def __check_task_result(task_id: str, status: dict):
        errors = _TASK_ERROR_JSONPATH.find(status)
        if errors and errors[0].value:
            raise ReindexError(f"Task {task_id} failed: {errors[0].value}")
        failures = _TASK_FAILURES_JSONPATH.find(status)
        if failures and failures[0].value:
            raise ReindexError(f"Task {task_id} completed with failures: {failures[0].value}")
