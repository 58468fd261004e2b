#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
from datetime import datetime, timezone
from typing import Optional

from schema_migration.cluster_client_base import ClusterClientBase

# Constants
MIGRATION_LOGGER_NAME = "schema_migration.migration"
DEFAULT_STEP = "setup"


class MigrationLoggingAdapter(logging.LoggerAdapter):
    # Print the name of the currently-executing step, then the log message
    def process(self, msg, kwargs):
        return "[{}] {}".format(self.extra['step'], msg), kwargs


# Mirrors every record into the per-migration log index as a {timestamp, message} document
class LogIndexHandler(logging.Handler):
    def __init__(self, client: ClusterClientBase, index_name: str, level=logging.INFO):
        super().__init__(level)
        self.client = client
        self.index_name = index_name

    def emit(self, record: logging.LogRecord):
        try:
            document = {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "message": self.format(record)
            }
            self.client.post_document(self.index_name, document)
        except Exception:
            self.handleError(record)


class MigrationLogger:
    """
    Logging port handed to the migration orchestrator and to rollback. Messages always go to the regular logging
    hierarchy. While a log index is active they are also written to that index on the cluster, so the history of a
    migration stays next to the data it touched.
    """

    def __init__(self, client: Optional[ClusterClientBase] = None, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(MIGRATION_LOGGER_NAME)
        # Progress messages must reach the log index whatever the console verbosity is
        if self._logger.level == logging.NOTSET or self._logger.level > logging.INFO:
            self._logger.setLevel(logging.INFO)
        self._client = client
        self._handler: Optional[LogIndexHandler] = None
        self.adapter = MigrationLoggingAdapter(self._logger, {"step": DEFAULT_STEP})

    @property
    def log_index(self) -> Optional[str]:
        return self._handler.index_name if self._handler else None

    def set_step(self, step_name: str):
        self.adapter.extra["step"] = step_name

    def start_log_index(self, index_name: str):
        if self._client is None:
            raise ValueError("A cluster client is required to write to a migration log index")
        self.stop_log_index()
        self._handler = LogIndexHandler(self._client, index_name)
        self._logger.addHandler(self._handler)

    def stop_log_index(self):
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler = None

    def log(self, message: str, level: int = logging.INFO):
        self.adapter.log(level, message)

    def info(self, message: str):
        self.log(message, logging.INFO)

    def warning(self, message: str):
        self.log(message, logging.WARNING)

    def error(self, message: str):
        self.log(message, logging.ERROR)
