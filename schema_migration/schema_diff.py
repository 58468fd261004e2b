#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from schema_migration.cluster_client_base import ClusterClientBase
from schema_migration.exceptions import SchemaMigrationError
from schema_migration.json_diff import NO_CHANGES, generate_diff
from schema_migration.normalization import normalize_local_settings, normalize_mappings, normalize_remote_settings
from schema_migration.schema_files import SchemaStore

logger = logging.getLogger(__name__)


class SchemaDiffStatus(str, Enum):
    NO_CHANGES = "no_changes"
    CHANGES_DETECTED = "changes_detected"
    ALIAS_NOT_FOUND = "alias_not_found"
    MULTIPLE_INDICES = "multiple_indices"
    LOCAL_FILES_NOT_FOUND = "local_files_not_found"
    REMOTE_FETCH_FAILED = "remote_fetch_failed"
    ERROR = "error"


@dataclass
class SchemaDiffResult:
    alias_name: str
    status: SchemaDiffStatus
    index_name: Optional[str] = None
    settings_diff: Optional[str] = None
    mappings_diff: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return self.status != SchemaDiffStatus.NO_CHANGES

    def __str__(self) -> str:
        return format_schema_diff(self)


# The cluster reports defaults (number_of_replicas and the like) for settings the schema never set. Only the keys the
# local schema defines take part in the settings comparison.
def _project_onto(remote: dict, local: dict) -> dict:
    projected = dict()
    for key, local_value in local.items():
        if key not in remote:
            continue
        if isinstance(local_value, dict) and isinstance(remote[key], dict):
            projected[key] = _project_onto(remote[key], local_value)
        else:
            projected[key] = remote[key]
    return projected


def compare_settings(local_settings: dict, remote_settings: dict) -> str:
    local = normalize_local_settings(local_settings)
    remote = _project_onto(normalize_remote_settings(remote_settings), local)
    return generate_diff(remote, local)


def compare_mappings(local_mappings: dict, remote_mappings: dict) -> str:
    return generate_diff(normalize_mappings(remote_mappings), normalize_mappings(local_mappings))


def generate_schema_diff(alias_name: str, client: ClusterClientBase, schema_store: SchemaStore) -> SchemaDiffResult:
    try:
        indices = client.get_alias_indices(alias_name)
        if len(indices) == 0:
            return SchemaDiffResult(alias_name, SchemaDiffStatus.ALIAS_NOT_FOUND,
                                    error=f"Alias '{alias_name}' not found")
        if len(indices) > 1:
            return SchemaDiffResult(alias_name, SchemaDiffStatus.MULTIPLE_INDICES,
                                    error=f"Alias '{alias_name}' points to multiple indices: {', '.join(indices)}")
        index_name = indices[0]
        local_settings = schema_store.get_settings(alias_name)
        local_mappings = schema_store.get_mappings(alias_name)
        if local_settings is None or local_mappings is None:
            return SchemaDiffResult(alias_name, SchemaDiffStatus.LOCAL_FILES_NOT_FOUND, index_name,
                                    error=f"Local schema files not found for '{alias_name}'")
        try:
            remote_settings = client.get_settings(index_name)
            remote_mappings = client.get_mappings(index_name)
        except SchemaMigrationError as e:
            return SchemaDiffResult(alias_name, SchemaDiffStatus.REMOTE_FETCH_FAILED, index_name,
                                    error=f"Failed to fetch remote schema for '{index_name}': {e}")
        settings_diff = compare_settings(local_settings, remote_settings)
        mappings_diff = compare_mappings(local_mappings, remote_mappings)
        status = SchemaDiffStatus.NO_CHANGES
        if settings_diff != NO_CHANGES or mappings_diff != NO_CHANGES:
            status = SchemaDiffStatus.CHANGES_DETECTED
        return SchemaDiffResult(alias_name, status, index_name, settings_diff, mappings_diff)
    except (SchemaMigrationError, ValueError) as e:
        logger.debug(f"Schema diff for '{alias_name}' failed", exc_info=True)
        return SchemaDiffResult(alias_name, SchemaDiffStatus.ERROR, error=str(e))


def diff_all_schemas(client: ClusterClientBase, schema_store: SchemaStore) -> List[SchemaDiffResult]:
    return [generate_schema_diff(alias_name, client, schema_store) for alias_name in schema_store.discover_all_schemas()]


def format_schema_diff(result: SchemaDiffResult) -> str:
    lines = [f"Schema: {result.alias_name}"]
    if result.index_name:
        lines.append(f"Index: {result.index_name}")
    lines.append(f"Status: {result.status.value}")
    if result.error:
        lines.append(f"Error: {result.error}")
    if result.settings_diff is not None:
        lines.extend(["", "Settings:", result.settings_diff])
    if result.mappings_diff is not None:
        lines.extend(["", "Mappings:", result.mappings_diff])
    return "\n".join(lines)
