#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import json
import logging
from enum import Enum
from typing import Optional

from schema_migration.breaking_change_detector import ClassifierRules, find_breaking_changes
from schema_migration.cluster_client_base import ClusterClientBase
from schema_migration.exceptions import BreakingChangeDetected, PreconditionError
from schema_migration.migrate_verify import verify_migration
from schema_migration.patch_calculator import mappings_patch, settings_patch
from schema_migration.schema_diff import SchemaDiffStatus, generate_schema_diff
from schema_migration.schema_files import SchemaStore

logger = logging.getLogger(__name__)


class NonBreakingResult(str, Enum):
    ALREADY_CURRENT = "already_current"
    APPLIED = "applied"


def attempt_non_breaking_migration(alias_name: str, index_name: str, client: ClusterClientBase,
                                   schema_store: SchemaStore,
                                   rules: Optional[ClassifierRules] = None) -> NonBreakingResult:
    """
    Applies the local schema of alias_name to index_name in place. Any exception means the in-place path is not
    possible (or failed part way) and the caller should rebuild the index instead.
    """
    local_settings = schema_store.get_settings(alias_name)
    local_mappings = schema_store.get_mappings(alias_name)
    if local_settings is None or local_mappings is None:
        raise PreconditionError(f"Local schema files not found for '{alias_name}'")

    diff_result = generate_schema_diff(alias_name, client, schema_store)
    if diff_result.status == SchemaDiffStatus.NO_CHANGES:
        logger.info(f"Index {index_name} already matches the local schema of '{alias_name}'")
        return NonBreakingResult.ALREADY_CURRENT
    logger.info(f"Schema changes detected for '{alias_name}':\n{diff_result}")

    remote_settings = client.get_settings(index_name)
    remote_mappings = client.get_mappings(index_name)
    reasons = find_breaking_changes({"settings": remote_settings, "mappings": remote_mappings},
                                    {"settings": local_settings, "mappings": local_mappings}, rules)
    if reasons:
        raise BreakingChangeDetected(f"Breaking changes detected for '{alias_name}': {'; '.join(reasons)}")

    new_settings = settings_patch(local_settings, remote_settings)
    if new_settings:
        logger.info(f"Applying settings changes to {index_name}: {json.dumps(new_settings)}")
        client.update_settings(index_name, new_settings)
    new_mappings = mappings_patch(local_mappings, remote_mappings)
    if new_mappings:
        logger.info(f"Applying mappings changes to {index_name}: {json.dumps(new_mappings)}")
        client.update_mappings(index_name, new_mappings)

    verify_migration(alias_name, client, schema_store)
    logger.info(f"Non-breaking migration of '{alias_name}' completed")
    return NonBreakingResult.APPLIED
