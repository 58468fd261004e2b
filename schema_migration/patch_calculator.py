#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

"""
Computes the smallest settings and mappings documents that, sent through the partial update APIs, bring a live index
in line with a local schema. Keys present only on the live index are never emitted: these APIs cannot remove
anything, and a removal is a breaking change that the classifier routes to a rebuild instead.
"""

from schema_migration.normalization import INDEX_KEY, PROPERTIES_KEY, TYPE_KEY, normalize_local_settings, \
    normalize_mappings, normalize_remote_settings, normalize_values

# Constants
DYNAMIC_KEY = "dynamic"


def settings_patch(local_settings: dict, remote_settings: dict) -> dict:
    local = normalize_local_settings(local_settings).get(INDEX_KEY, {})
    remote = normalize_remote_settings(remote_settings).get(INDEX_KEY, {})
    changes = __diff_nested(local, remote)
    return {INDEX_KEY: changes} if changes else {}


def __diff_nested(local: dict, remote: dict) -> dict:
    changes = dict()
    for key, local_value in local.items():
        remote_value = remote.get(key) if isinstance(remote, dict) else None
        if isinstance(local_value, dict) and isinstance(remote_value, dict):
            nested = __diff_nested(local_value, remote_value)
            if nested:
                changes[key] = nested
        elif key not in remote or local_value != remote_value:
            changes[key] = local_value
    return changes


def mappings_patch(local_mappings: dict, remote_mappings: dict) -> dict:
    local_mappings = local_mappings or {}
    remote = normalize_mappings(remote_mappings)
    changes = dict()
    for key, local_value in local_mappings.items():
        if key == PROPERTIES_KEY:
            properties = __diff_properties(local_value or {}, remote.get(PROPERTIES_KEY) or {})
            if properties:
                changes[PROPERTIES_KEY] = properties
        elif key == DYNAMIC_KEY:
            # "strict" and "true"/"false" may be reported as strings or booleans
            if key not in remote or normalize_values(local_value) != remote[key]:
                changes[key] = local_value
        # Remaining keys such as _meta are replaced whole by the mapping API
        elif key not in remote or normalize_mappings({key: local_value})[key] != remote[key]:
            changes[key] = local_value
    return changes


# A field definition (anything carrying "type") is emitted whole, since the mapping API replaces field definitions.
# Object fields without an explicit type are walked so only their new or changed children are sent.
def __diff_properties(local: dict, remote: dict) -> dict:
    changes = dict()
    for name, local_def in local.items():
        remote_def = remote.get(name)
        if remote_def is None:
            changes[name] = local_def
            continue
        normalized_local = normalize_mappings(local_def) if isinstance(local_def, dict) else local_def
        if normalized_local == remote_def:
            continue
        if isinstance(local_def, dict) and TYPE_KEY in local_def:
            changes[name] = local_def
        elif isinstance(local_def, dict) and isinstance(remote_def, dict):
            nested = dict()
            for key, value in local_def.items():
                if key == PROPERTIES_KEY:
                    nested_props = __diff_properties(value or {}, remote_def.get(PROPERTIES_KEY) or {})
                    if nested_props:
                        nested[PROPERTIES_KEY] = nested_props
                elif key not in remote_def or normalize_mappings({key: value})[key] != remote_def[key]:
                    nested[key] = value
            if nested:
                changes[name] = nested
        else:
            changes[name] = local_def
    return changes
