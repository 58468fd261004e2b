#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from schema_migration.breaking_change_detector import ClassifierRules
from schema_migration.cluster_client_base import DEFAULT_REINDEX_TIMEOUT_SECONDS, \
    DEFAULT_TASK_POLL_INTERVAL_SECONDS, ClusterClientBase
from schema_migration.exceptions import PreconditionError, is_exception_in_type_list
from schema_migration.migrate_breaking_change import BreakingChangeMigration
from schema_migration.migrate_non_breaking_change import attempt_non_breaking_migration
from schema_migration.migrate_verify import verify_migration
from schema_migration.migration_logger import MigrationLogger
from schema_migration.migration_plan import generate_timestamp, new_index_name
from schema_migration.schema_files import SchemaStore

logger = logging.getLogger(__name__)

# Errors that mean no migration can start at all, so rebuilding the index would fail the same way
FATAL_ERRORS = [PreconditionError]


@dataclass
class MigrationOptions:
    rules: ClassifierRules = field(default_factory=ClassifierRules)
    reindex_timeout_seconds: int = DEFAULT_REINDEX_TIMEOUT_SECONDS
    task_poll_interval_seconds: int = DEFAULT_TASK_POLL_INTERVAL_SECONDS


class MigrationOutcome(str, Enum):
    CREATED = "created"
    NON_BREAKING = "non_breaking"
    BREAKING = "breaking"


def migrate_one_schema(alias_name: str, client: ClusterClientBase, schema_store: SchemaStore,
                       options: Optional[MigrationOptions] = None,
                       migration_logger: Optional[MigrationLogger] = None) -> MigrationOutcome:
    options = options or MigrationOptions()
    logger.info(f"Migrating schema '{alias_name}'")
    if not client.alias_exists(alias_name):
        if client.index_exists(alias_name):
            raise PreconditionError(
                f"'{alias_name}' is an index, not an alias. Only indices addressed through an alias can be "
                f"migrated. Create an alias for it first, e.g. POST /_aliases with "
                f"{{\"actions\": [{{\"add\": {{\"index\": \"{alias_name}\", \"alias\": \"<alias name>\"}}}}]}}, "
                f"and name the schema folder after the alias.")
        migrate_to_new_alias(alias_name, client, schema_store)
        return MigrationOutcome.CREATED

    indices = client.get_alias_indices(alias_name)
    if len(indices) == 0:
        raise PreconditionError(f"Alias '{alias_name}' does not point to any index")
    if len(indices) > 1:
        raise PreconditionError(f"Alias '{alias_name}' points to multiple indices: {', '.join(indices)}. "
                                f"Only aliases pointing to a single index can be migrated.")
    index_name = indices[0]

    try:
        attempt_non_breaking_migration(alias_name, index_name, client, schema_store, options.rules)
        return MigrationOutcome.NON_BREAKING
    except Exception as e:
        if is_exception_in_type_list(e, FATAL_ERRORS):
            raise
        logger.warning(f"In-place migration of '{alias_name}' not possible ({e}). "
                       f"Falling back to a breaking change migration.")

    BreakingChangeMigration(alias_name, client, schema_store, migration_logger or MigrationLogger(client),
                            options.reindex_timeout_seconds, options.task_poll_interval_seconds).migrate()
    return MigrationOutcome.BREAKING


# Bootstraps an alias that does not exist yet: a fresh timestamped index with the local schema, then the alias
def migrate_to_new_alias(alias_name: str, client: ClusterClientBase, schema_store: SchemaStore) -> str:
    settings = schema_store.get_settings(alias_name)
    mappings = schema_store.get_mappings(alias_name)
    if settings is None or mappings is None:
        raise PreconditionError(f"Local schema files not found for '{alias_name}'")
    index_name = new_index_name(alias_name, generate_timestamp())
    logger.info(f"Alias '{alias_name}' not found, creating index {index_name} and the alias")
    client.create_index(index_name, settings, mappings)
    client.create_alias(alias_name, index_name)
    verify_migration(alias_name, client, schema_store)
    return index_name


def migrate_all(client: ClusterClientBase, schema_store: SchemaStore,
                options: Optional[MigrationOptions] = None) -> List[str]:
    schemas = schema_store.discover_all_schemas()
    if not schemas:
        logger.warning("No schemas found to migrate")
    migrated = list()
    for alias_name in schemas:
        migrate_one_schema(alias_name, client, schema_store, options)
        migrated.append(alias_name)
    return migrated


def close_index(index_name: str, client: ClusterClientBase) -> bool:
    if not client.index_exists(index_name):
        logger.warning(f"Index {index_name} does not exist, nothing to close")
        return False
    client.close_index(index_name)
    return True


# Only closed indices are hard deleted, so that an index still serving traffic can't be removed by mistake
def delete_index(index_name: str, client: ClusterClientBase) -> bool:
    if not client.index_exists(index_name):
        logger.warning(f"Index {index_name} does not exist, nothing to delete")
        return False
    if not client.index_closed(index_name):
        raise PreconditionError(f"Index {index_name} is not closed. Close it before deleting it.")
    client.delete_index(index_name)
    return True
