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

import coloredlogs

LINE_SEP = '\u2063'  # Invisible Unicode character. Marks the end of an entry, since entries may span lines.


class UtcLoggingFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S.%f')


class LoggingWrangler:
    """
    Human-readable, colorized messages go to the console at the requested level. When a log file is given, every
    DEBUG+ message is also written there with a UTC timestamp for a historical record of the run.
    """

    def __init__(self, verbosity: int = 0, log_file: Optional[str] = None):
        self.console_level = self.level_for_verbosity(verbosity)
        self._log_file = log_file
        self._initialize_logging()

    @staticmethod
    def level_for_verbosity(verbosity: int) -> int:
        # Default is WARNING, -v is INFO, -vv is DEBUG
        return max(logging.DEBUG, logging.WARNING - (10 * verbosity))

    def _initialize_logging(self):
        root_logger = logging.getLogger()
        root_logger.handlers = []  # Make sure we're starting with a clean slate
        root_logger.setLevel(logging.DEBUG if self._log_file else self.console_level)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(coloredlogs.ColoredFormatter('%(asctime)s %(levelname)s %(message)s'))
        root_logger.addHandler(console_handler)

        if self._log_file:
            file_handler = logging.FileHandler(self._log_file, mode='a', encoding='utf8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(UtcLoggingFormatter(f"%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                                                          f"{LINE_SEP}"))
            root_logger.addHandler(file_handler)

    @property
    def log_file(self) -> Optional[str]:
        return self._log_file
