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
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from cerberus import Validator

from schema_migration.breaking_change_detector import ClassifierRules
from schema_migration.cluster_client import DEFAULT_REQUEST_TIMEOUT_SECONDS, ClusterClient
from schema_migration.cluster_client_base import DEFAULT_REINDEX_TIMEOUT_SECONDS, DEFAULT_TASK_POLL_INTERVAL_SECONDS
from schema_migration.endpoint_utils import get_endpoint_info
from schema_migration.migrate import MigrationOptions
from schema_migration.schema_files import SchemaFiles

logger = logging.getLogger(__name__)

# Constants
DEFAULT_SCHEMAS_PATH = "schemas"
URL_ENV_VARS = ["OPENSEARCH_URL", "ELASTICSEARCH_URL"]
SCHEMAS_PATH_ENV_VAR = "SCHEMAS_PATH"

CLUSTER_SCHEMA = {
    "endpoint": {"type": "string", "required": True},
    "allow_insecure": {"type": "boolean", "required": False},
    "no_auth": {"type": "dict", "nullable": True, "required": False},
    "basic_auth": {
        "type": "dict",
        "required": False,
        "schema": {
            "username": {"type": "string", "required": True},
            "password": {"type": "string", "required": True}
        }
    },
    "sigv4": {
        "type": "dict",
        "nullable": True,
        "required": False,
        "schema": {
            "region": {"type": "string", "required": False},
            "service": {"type": "string", "required": False, "allowed": ["es", "aoss"]}
        }
    }
}

SCHEMA = {
    "cluster": {"type": "dict", "required": True, "schema": CLUSTER_SCHEMA},
    "schemas_path": {"type": "string", "required": False},
    "migration": {
        "type": "dict",
        "required": False,
        "schema": {
            "task_poll_interval_seconds": {"type": "integer", "min": 1, "required": False},
            "reindex_timeout_seconds": {"type": "integer", "min": 1, "required": False},
            "request_timeout_seconds": {"type": "integer", "min": 1, "required": False},
            "dry_run": {"type": "boolean", "required": False}
        }
    },
    "classifier": {
        "type": "dict",
        "required": False,
        "schema": {
            "immutable_settings": {"type": "list", "schema": {"type": "string"}, "required": False},
            "analysis_components": {"type": "list", "schema": {"type": "string"}, "required": False},
            "immutable_field_properties": {"type": "list", "schema": {"type": "string"}, "required": False}
        }
    }
}


class ConfigException(Exception):
    """The configuration does not provide valid information"""

    def __init__(self, message):
        super().__init__(message)


def config_from_env() -> Optional[Dict]:
    for env_var in URL_ENV_VARS:
        url = os.getenv(env_var)
        if url:
            logger.info(f"Using cluster endpoint from {env_var}")
            return {
                "cluster": {"endpoint": url, "no_auth": None},
                "schemas_path": os.getenv(SCHEMAS_PATH_ENV_VAR, DEFAULT_SCHEMAS_PATH)
            }
    return None


class Environment:
    client: ClusterClient
    schema_store: SchemaFiles
    options: MigrationOptions
    config: Dict

    def __init__(self, config: Optional[Dict] = None, config_file: Optional[Union[str, Path]] = None,
                 dry_run: bool = False):
        """
        Initialize the environment either from a configuration file or a direct configuration object. Without
        either, the cluster endpoint is taken from the OPENSEARCH_URL or ELASTICSEARCH_URL environment variable.

        :param config: Direct configuration object (overrides config_file).
        :param config_file: Path to the YAML config file.
        :param dry_run: Log mutating requests instead of sending them, regardless of the config value.
        """
        if isinstance(config, Dict):
            self.config = config
            logger.info(f"Using provided config: {self.config}")
        elif config_file and os.path.isfile(config_file):
            logger.info(f"Loading config file: {config_file}")
            with open(config_file) as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Loaded config file: {self.config}")
        else:
            self.config = config_from_env()
            if self.config is None:
                raise ConfigException(f"No config file found at {config_file} and none of "
                                      f"{', '.join(URL_ENV_VARS)} is set")

        v = Validator(SCHEMA)
        if not v.validate(self.config):
            logger.error(f"Config file validation errors: {v.errors}")
            raise ConfigException(f"Invalid config file: {v.errors}")

        try:
            endpoint = get_endpoint_info(self.config["cluster"])
        except ValueError as e:
            raise ConfigException(str(e)) from e

        migration_config = self.config.get("migration", {})
        self.client = ClusterClient(endpoint,
                                    dry_run=dry_run or migration_config.get("dry_run", False),
                                    timeout_seconds=migration_config.get("request_timeout_seconds",
                                                                         DEFAULT_REQUEST_TIMEOUT_SECONDS))
        self.schema_store = SchemaFiles(self.config.get("schemas_path", DEFAULT_SCHEMAS_PATH))
        self.options = MigrationOptions(
            rules=ClassifierRules.from_config(self.config.get("classifier")),
            reindex_timeout_seconds=migration_config.get("reindex_timeout_seconds", DEFAULT_REINDEX_TIMEOUT_SECONDS),
            task_poll_interval_seconds=migration_config.get("task_poll_interval_seconds",
                                                            DEFAULT_TASK_POLL_INTERVAL_SECONDS)
        )
        logger.info(f"Cluster endpoint: {endpoint.get_url()}, schemas path: {self.schema_store.schemas_path}, "
                    f"dry run: {self.client.dry_run}")
