#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging

from schema_migration.cluster_client_base import ClusterClientBase
from schema_migration.exceptions import VerificationError
from schema_migration.schema_diff import SchemaDiffResult, generate_schema_diff
from schema_migration.schema_files import SchemaStore

logger = logging.getLogger(__name__)


def verify_migration(alias_name: str, client: ClusterClientBase, schema_store: SchemaStore) -> SchemaDiffResult:
    logger.info(f"Verifying that '{alias_name}' matches its local schema")
    result = generate_schema_diff(alias_name, client, schema_store)
    if client.dry_run:
        logger.info(f"Dry run, skipping verification of '{alias_name}' (status: {result.status.value})")
        return result
    if result.has_changes:
        logger.error(f"Migration verification failed for '{alias_name}':\n{result}")
        raise VerificationError(f"Migration verification failed for '{alias_name}' "
                                f"(status: {result.status.value})", result)
    logger.info(f"Migration verification succeeded for '{alias_name}'")
    return result
