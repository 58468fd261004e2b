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
from unittest.mock import patch

from schema_migration.breaking_change_detector import DEFAULT_IMMUTABLE_SETTINGS
from schema_migration.cluster_client_base import DEFAULT_REINDEX_TIMEOUT_SECONDS, DEFAULT_TASK_POLL_INTERVAL_SECONDS
from schema_migration.environment import ConfigException, Environment
from tests import test_constants

# Constants
VALID_CONFIG = {
    "cluster": {
        "endpoint": test_constants.CLUSTER_ENDPOINT,
        "no_auth": None
    },
    "schemas_path": test_constants.SCHEMAS_PATH
}
CONFIG_YAML = f"""
cluster:
  endpoint: "{test_constants.CLUSTER_ENDPOINT}"
  allow_insecure: true
  basic_auth:
    username: "admin"
    password: "admin"
schemas_path: "{test_constants.SCHEMAS_PATH}"
migration:
  task_poll_interval_seconds: 10
  reindex_timeout_seconds: 3600
  request_timeout_seconds: 5
  dry_run: true
classifier:
  immutable_settings:
    - number_of_shards
    - number_of_replicas
"""


class TestEnvironment(unittest.TestCase):
    def setUp(self) -> None:
        logging.disable(logging.CRITICAL)

    def tearDown(self) -> None:
        logging.disable(logging.NOTSET)

    def test_config_object(self):
        env = Environment(config=VALID_CONFIG)
        self.assertEqual(test_constants.CLUSTER_ENDPOINT, env.client.url)
        self.assertIsNone(env.client.endpoint.get_auth())
        self.assertFalse(env.client.dry_run)
        self.assertEqual(test_constants.SCHEMAS_PATH, env.schema_store.schemas_path)
        self.assertEqual(DEFAULT_REINDEX_TIMEOUT_SECONDS, env.options.reindex_timeout_seconds)
        self.assertEqual(DEFAULT_TASK_POLL_INTERVAL_SECONDS, env.options.task_poll_interval_seconds)
        self.assertEqual(DEFAULT_IMMUTABLE_SETTINGS, env.options.rules.immutable_settings)

    def test_config_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            config_file = os.path.join(tmp, "schema_migration.yaml")
            with open(config_file, "w") as f:
                f.write(CONFIG_YAML)
            env = Environment(config_file=config_file)
        self.assertEqual(("admin", "admin"), env.client.endpoint.get_auth())
        self.assertFalse(env.client.endpoint.is_verify_ssl())
        self.assertTrue(env.client.dry_run)
        self.assertEqual(5, env.client.timeout_seconds)
        self.assertEqual(3600, env.options.reindex_timeout_seconds)
        self.assertEqual(10, env.options.task_poll_interval_seconds)
        self.assertEqual(["number_of_shards", "number_of_replicas"], env.options.rules.immutable_settings)

    def test_dry_run_flag_overrides_config(self):
        self.assertTrue(Environment(config=VALID_CONFIG, dry_run=True).client.dry_run)

    def test_invalid_config(self):
        config = {"cluster": {"endpoint": test_constants.CLUSTER_ENDPOINT, "basic_auth": {"username": "admin"}}}
        self.assertRaises(ConfigException, Environment, config=config)
        config = {"cluster": {"endpoint": test_constants.CLUSTER_ENDPOINT},
                  "migration": {"task_poll_interval_seconds": 0}}
        self.assertRaises(ConfigException, Environment, config=config)
        self.assertRaises(ConfigException, Environment, config={"schemas_path": "schemas"})

    def test_multiple_auth_types(self):
        config = {"cluster": {"endpoint": test_constants.CLUSTER_ENDPOINT, "no_auth": None,
                              "basic_auth": {"username": "admin", "password": "admin"}}}
        self.assertRaises(ConfigException, Environment, config=config)

    @patch.dict(os.environ, {"ELASTICSEARCH_URL": "http://elastic:9200", "SCHEMAS_PATH": "/opt/schemas"},
                clear=True)
    def test_config_from_environment_variables(self):
        env = Environment(config_file="/nonexistent/schema_migration.yaml")
        self.assertEqual("http://elastic:9200", env.client.url)
        self.assertEqual("/opt/schemas", env.schema_store.schemas_path)

    @patch.dict(os.environ, {"OPENSEARCH_URL": "http://opensearch:9200", "ELASTICSEARCH_URL": "http://elastic:9200"},
                clear=True)
    def test_opensearch_url_takes_precedence(self):
        env = Environment(config_file=None)
        self.assertEqual("http://opensearch:9200", env.client.url)
        self.assertEqual("schemas", env.schema_store.schemas_path)

    @patch.dict(os.environ, {}, clear=True)
    def test_no_config(self):
        self.assertRaises(ConfigException, Environment, config_file="/nonexistent/schema_migration.yaml")


if __name__ == '__main__':
    unittest.main()
