#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import copy
import unittest

from schema_migration import normalization
from tests import test_constants


class TestNormalization(unittest.TestCase):
    def test_normalize_values(self):
        raw = {"a": "true", "b": "false", "c": "12", "d": "-3", "e": "1.5", "f": "strict", "g": ["7", "x"],
               "h": {"i": "0"}}
        expected = {"a": True, "b": False, "c": 12, "d": -3, "e": 1.5, "f": "strict", "g": [7, "x"], "h": {"i": 0}}
        self.assertEqual(expected, normalization.normalize_values(raw))

    def test_normalize_values_leaves_native_types(self):
        raw = {"a": True, "b": 3, "c": None}
        self.assertEqual(raw, normalization.normalize_values(raw))

    def test_filter_internal_settings(self):
        filtered = normalization.filter_internal_settings(test_constants.REMOTE_SETTINGS)
        self.assertEqual({"number_of_shards": "1", "number_of_replicas": "0"}, filtered["index"])
        # Input is not modified
        self.assertTrue("uuid" in test_constants.REMOTE_SETTINGS["index"])

    def test_filter_internal_settings_keeps_store_type(self):
        remote = {"index": {"store": {"type": "niofs"}, "uuid": "abc"}}
        self.assertEqual({"index": {"store": {"type": "niofs"}}}, normalization.filter_internal_settings(remote))

    def test_filter_internal_settings_empty(self):
        self.assertEqual({}, normalization.filter_internal_settings(None))
        self.assertEqual({}, normalization.filter_internal_settings({}))

    def test_normalize_local_settings_wraps_index(self):
        self.assertEqual({"index": {"number_of_shards": 1, "refresh_interval": "1s"}},
                         normalization.normalize_local_settings({"number_of_shards": "1", "refresh_interval": "1s"}))

    def test_normalize_local_settings_already_wrapped(self):
        settings = copy.deepcopy(test_constants.BASE_SETTINGS)
        self.assertEqual(settings, normalization.normalize_local_settings(settings))

    def test_normalize_local_settings_dotted_keys(self):
        settings = {"index.codec": "best_compression", "index": {"sort": {"field": "id"}},
                    "index.sort.order": "asc"}
        expected = {"index": {"codec": "best_compression", "sort": {"field": "id", "order": "asc"}}}
        self.assertEqual(expected, normalization.normalize_local_settings(settings))

    def test_normalize_local_settings_empty(self):
        self.assertEqual({}, normalization.normalize_local_settings({}))
        self.assertEqual({}, normalization.normalize_local_settings(None))

    def test_normalize_remote_settings(self):
        self.assertEqual({"index": {"number_of_shards": 1, "number_of_replicas": 0}},
                         normalization.normalize_remote_settings(test_constants.REMOTE_SETTINGS))

    def test_flatten_keys(self):
        flattened = normalization.flatten_keys({"sort": {"field": "id", "order": "asc"}, "codec": "default",
                                                "analysis": {}})
        self.assertEqual({"sort.field": "id", "sort.order": "asc", "codec": "default", "analysis": {}}, flattened)

    def test_normalize_object_types(self):
        explicit = {"properties": {"address": {"type": "object", "properties": {"city": {"type": "text"}}},
                                   "tags": {"type": "object"}}}
        expected = {"properties": {"address": {"properties": {"city": {"type": "text"}}},
                                   "tags": {"type": "object"}}}
        self.assertEqual(expected, normalization.normalize_object_types(explicit))


if __name__ == '__main__':
    unittest.main()
