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

from schema_migration.patch_calculator import mappings_patch, settings_patch
from tests import test_constants
from tests.fake_cluster import FakeCluster


class TestPatchCalculator(unittest.TestCase):
    def test_settings_patch_no_changes(self):
        self.assertEqual({}, settings_patch(test_constants.BASE_SETTINGS, test_constants.REMOTE_SETTINGS))

    def test_settings_patch_changed_value(self):
        local = copy.deepcopy(test_constants.BASE_SETTINGS)
        local["index"]["number_of_replicas"] = 2
        self.assertEqual({"index": {"number_of_replicas": 2}}, settings_patch(local, test_constants.REMOTE_SETTINGS))

    def test_settings_patch_unwrapped_local(self):
        local = {"number_of_shards": 1, "number_of_replicas": 0, "refresh_interval": "5s"}
        self.assertEqual({"index": {"refresh_interval": "5s"}}, settings_patch(local, test_constants.REMOTE_SETTINGS))

    def test_settings_patch_nested_only_differing_keys(self):
        remote = copy.deepcopy(test_constants.REMOTE_SETTINGS)
        remote["index"]["analysis"] = {"analyzer": {"a1": {"tokenizer": "standard"}}}
        local = copy.deepcopy(test_constants.BASE_SETTINGS)
        local["index"]["analysis"] = {"analyzer": {"a1": {"tokenizer": "standard"},
                                                   "a2": {"tokenizer": "whitespace"}}}
        self.assertEqual({"index": {"analysis": {"analyzer": {"a2": {"tokenizer": "whitespace"}}}}},
                         settings_patch(local, remote))

    def test_settings_patch_unchanged_store_type(self):
        remote = copy.deepcopy(test_constants.REMOTE_SETTINGS)
        remote["index"]["store"] = {"type": "fs"}
        local = copy.deepcopy(test_constants.BASE_SETTINGS)
        local["index"]["store"] = {"type": "fs"}
        self.assertEqual({}, settings_patch(local, remote))

    def test_settings_patch_ignores_remote_only_keys(self):
        remote = copy.deepcopy(test_constants.REMOTE_SETTINGS)
        remote["index"]["refresh_interval"] = "1s"
        self.assertEqual({}, settings_patch(test_constants.BASE_SETTINGS, remote))

    def test_mappings_patch_no_changes(self):
        self.assertEqual({}, mappings_patch(test_constants.BASE_MAPPINGS, test_constants.BASE_MAPPINGS))

    def test_mappings_patch_new_field(self):
        local = copy.deepcopy(test_constants.BASE_MAPPINGS)
        local["properties"]["price"] = {"type": "float"}
        self.assertEqual({"properties": {"price": {"type": "float"}}},
                         mappings_patch(local, test_constants.BASE_MAPPINGS))

    def test_mappings_patch_changed_field_emitted_whole(self):
        local = copy.deepcopy(test_constants.BASE_MAPPINGS)
        local["properties"]["name"]["fields"]["english"] = {"type": "text", "analyzer": "english"}
        self.assertEqual({"properties": {"name": local["properties"]["name"]}},
                         mappings_patch(local, test_constants.BASE_MAPPINGS))

    def test_mappings_patch_implicit_object_recurses(self):
        remote = copy.deepcopy(test_constants.BASE_MAPPINGS)
        remote["properties"]["address"] = {"properties": {"city": {"type": "keyword"}}}
        local = copy.deepcopy(remote)
        local["properties"]["address"]["properties"]["zip"] = {"type": "keyword"}
        self.assertEqual({"properties": {"address": {"properties": {"zip": {"type": "keyword"}}}}},
                         mappings_patch(local, remote))

    def test_mappings_patch_explicit_object_matches_implicit(self):
        remote = copy.deepcopy(test_constants.BASE_MAPPINGS)
        remote["properties"]["address"] = {"properties": {"city": {"type": "keyword"}}}
        local = copy.deepcopy(remote)
        local["properties"]["address"]["type"] = "object"
        self.assertEqual({}, mappings_patch(local, remote))

    def test_mappings_patch_dynamic(self):
        local = copy.deepcopy(test_constants.BASE_MAPPINGS)
        local["dynamic"] = False
        self.assertEqual({"dynamic": False}, mappings_patch(local, test_constants.BASE_MAPPINGS))
        remote = copy.deepcopy(test_constants.BASE_MAPPINGS)
        remote["dynamic"] = "false"
        self.assertEqual({}, mappings_patch(local, remote))

    def test_mappings_patch_dynamic_missing_remotely(self):
        remote = copy.deepcopy(test_constants.BASE_MAPPINGS)
        del remote["dynamic"]
        self.assertEqual({"dynamic": "strict"}, mappings_patch(test_constants.BASE_MAPPINGS, remote))

    def test_mappings_patch_meta(self):
        local = copy.deepcopy(test_constants.BASE_MAPPINGS)
        local["_meta"] = {"owner": "search-team"}
        self.assertEqual({"_meta": {"owner": "search-team"}}, mappings_patch(local, test_constants.BASE_MAPPINGS))

    def test_mappings_patch_never_removes(self):
        local = copy.deepcopy(test_constants.BASE_MAPPINGS)
        del local["properties"]["name"]
        self.assertEqual({}, mappings_patch(local, test_constants.BASE_MAPPINGS))

    def test_applied_patch_is_idempotent(self):
        cluster = FakeCluster()
        cluster.add_index(test_constants.CURRENT_INDEX, test_constants.BASE_SETTINGS, test_constants.BASE_MAPPINGS)
        local_settings = {"index": {"number_of_shards": 1, "number_of_replicas": 2, "refresh_interval": "10s"}}
        local_mappings = copy.deepcopy(test_constants.BASE_MAPPINGS)
        local_mappings["properties"]["price"] = {"type": "float"}
        local_mappings["properties"]["address"] = {"type": "object", "properties": {"city": {"type": "keyword"}}}

        settings = settings_patch(local_settings, cluster.get_settings(test_constants.CURRENT_INDEX))
        mappings = mappings_patch(local_mappings, cluster.get_mappings(test_constants.CURRENT_INDEX))
        self.assertEqual({"index": {"number_of_replicas": 2, "refresh_interval": "10s"}}, settings)
        cluster.update_settings(test_constants.CURRENT_INDEX, settings)
        cluster.update_mappings(test_constants.CURRENT_INDEX, mappings)

        self.assertEqual({}, settings_patch(local_settings, cluster.get_settings(test_constants.CURRENT_INDEX)))
        self.assertEqual({}, mappings_patch(local_mappings, cluster.get_mappings(test_constants.CURRENT_INDEX)))


if __name__ == '__main__':
    unittest.main()
