#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import copy
import re

# Constants
INDEX_KEY = "index"
PROPERTIES_KEY = "properties"
TYPE_KEY = "type"
OBJECT_TYPE = "object"
# Read-only values reported by the cluster that can never appear in a local settings file
INTERNAL_SETTINGS_KEYS = ["creation_date", "uuid", "provided_name", "version"]
__INT_PATTERN = re.compile(r"^-?\d+$")
__FLOAT_PATTERN = re.compile(r"^-?\d+\.\d+$")


# The cluster reports every setting as a string, so "1", "true" and 1, True are the same value
def normalize_values(obj):
    if isinstance(obj, dict):
        return {k: normalize_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [normalize_values(v) for v in obj]
    elif isinstance(obj, str):
        if obj == "true":
            return True
        elif obj == "false":
            return False
        elif __INT_PATTERN.match(obj):
            return int(obj)
        elif __FLOAT_PATTERN.match(obj):
            return float(obj)
    return obj


# Turns {"index.sort.field": "x"} into {"index": {"sort": {"field": "x"}}}, merging with any nested keys
def expand_dotted_keys(obj):
    if not isinstance(obj, dict):
        return obj
    result = dict()
    for key, value in obj.items():
        value = expand_dotted_keys(value)
        parts = key.split(".")
        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = dict()
            target = target[part]
        leaf = parts[-1]
        if isinstance(value, dict) and isinstance(target.get(leaf), dict):
            target[leaf] = __merge(target[leaf], value)
        else:
            target[leaf] = value
    return result


def __merge(base: dict, other: dict) -> dict:
    merged = dict(base)
    for key, value in other.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = __merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# Flattens nested dicts into dotted keys; lists and scalars are leaves
def flatten_keys(obj: dict, prefix: str = "") -> dict:
    result = dict()
    for key, value in obj.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict) and value:
            result.update(flatten_keys(value, full_key))
        else:
            result[full_key] = value
    return result


def filter_internal_settings(settings: dict) -> dict:
    result = copy.deepcopy(settings) if settings else dict()
    index_settings = result.get(INDEX_KEY)
    if isinstance(index_settings, dict):
        for setting in INTERNAL_SETTINGS_KEYS:
            index_settings.pop(setting, None)
    return result


# Canonical settings form: {"index": {...nested...}} with native value types.
# Settings files may be written either with or without the "index" wrapper.
def normalize_local_settings(settings: dict) -> dict:
    if not settings:
        return dict()
    expanded = expand_dotted_keys(settings)
    if list(expanded.keys()) != [INDEX_KEY]:
        index_settings = expanded.pop(INDEX_KEY, dict())
        expanded = {INDEX_KEY: __merge(expanded, index_settings if isinstance(index_settings, dict) else dict())}
    return normalize_values(expanded)


def normalize_remote_settings(settings: dict) -> dict:
    return normalize_local_settings(filter_internal_settings(settings))


# Object fields come back from the cluster without "type": "object", so both spellings are treated as one
def normalize_object_types(obj):
    if isinstance(obj, dict):
        result = {k: normalize_object_types(v) for k, v in obj.items()}
        if PROPERTIES_KEY in result and result.get(TYPE_KEY) == OBJECT_TYPE:
            del result[TYPE_KEY]
        return result
    elif isinstance(obj, list):
        return [normalize_object_types(v) for v in obj]
    return obj


def normalize_mappings(mappings: dict) -> dict:
    return normalize_values(normalize_object_types(mappings or dict()))
