#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
import os
import tempfile
import unittest

from schema_migration.logging_wrangler import LINE_SEP, LoggingWrangler


class TestLoggingWrangler(unittest.TestCase):
    def setUp(self) -> None:
        root_logger = logging.getLogger()
        self.original_handlers = root_logger.handlers
        self.original_level = root_logger.level

    def tearDown(self) -> None:
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers = self.original_handlers
        root_logger.setLevel(self.original_level)

    def test_level_for_verbosity(self):
        self.assertEqual(logging.WARNING, LoggingWrangler.level_for_verbosity(0))
        self.assertEqual(logging.INFO, LoggingWrangler.level_for_verbosity(1))
        self.assertEqual(logging.DEBUG, LoggingWrangler.level_for_verbosity(2))
        self.assertEqual(logging.DEBUG, LoggingWrangler.level_for_verbosity(5))

    def test_console_only(self):
        wrangler = LoggingWrangler(1)
        self.assertIsNone(wrangler.log_file)
        self.assertEqual(logging.INFO, logging.getLogger().level)
        self.assertEqual(1, len(logging.getLogger().handlers))

    def test_log_file_captures_debug(self):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, "migration.log")
            LoggingWrangler(0, log_file)
            self.assertEqual(logging.DEBUG, logging.getLogger().level)
            logging.getLogger("tests.wrangler").debug("detail")
            for handler in logging.getLogger().handlers:
                handler.flush()
            with open(log_file) as f:
                contents = f.read()
            # Handlers must be closed before the directory is removed
            for handler in logging.getLogger().handlers:
                handler.close()
        self.assertTrue("tests.wrangler - DEBUG - detail" + LINE_SEP in contents)


if __name__ == '__main__':
    unittest.main()
