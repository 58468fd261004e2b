#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import json
from typing import List

from jsondiff import diff

from schema_migration.normalization import normalize_object_types

# Constants
NO_CHANGES = "No changes detected"
HEADER = "=== Changes Detected ==="
__INDENT = "  "


# Human-readable, line-oriented description of how "new" differs from "old". Used for audit output only,
# never fed back to the cluster.
def generate_diff(old, new) -> str:
    old = normalize_object_types(old)
    new = normalize_object_types(new)
    if not has_changes(old, new):
        return NO_CHANGES
    lines = [HEADER, ""]
    __compare(old, new, "", lines)
    return "\n".join(lines)


def has_changes(old, new) -> bool:
    if type(old) is not type(new):
        return True
    if isinstance(old, (dict, list)):
        return bool(diff(old, new))
    return old != new


def __compare(old, new, path: str, lines: List[str]):
    if isinstance(old, dict) and isinstance(new, dict):
        __compare_dicts(old, new, path, lines)
    elif isinstance(old, list) and isinstance(new, list):
        __compare_lists(old, new, path, lines)
    elif old != new or type(old) is not type(new):
        __modified(old, new, path, lines)


def __compare_dicts(old: dict, new: dict, path: str, lines: List[str]):
    for key in sorted(set(old.keys()) | set(new.keys())):
        key_path = f"{path}.{key}" if path else str(key)
        if key not in old:
            lines.append(f"ADDED: {key_path}")
            __value_lines(new[key], lines)
        elif key not in new:
            lines.append(f"REMOVED: {key_path}")
            __value_lines(old[key], lines)
        else:
            __compare(old[key], new[key], key_path, lines)


def __compare_lists(old: list, new: list, path: str, lines: List[str]):
    if len(old) != len(new):
        lines.append(f"ARRAY LENGTH CHANGED: {path} ({len(old)} -> {len(new)})")
    for i in range(min(len(old), len(new))):
        __compare(old[i], new[i], f"{path}[{i}]", lines)
    for i in range(len(old), len(new)):
        lines.append(f"ADDED: {path}[{i}]")
        __value_lines(new[i], lines)
    for i in range(len(new), len(old)):
        lines.append(f"REMOVED: {path}[{i}]")
        __value_lines(old[i], lines)


def __modified(old, new, path: str, lines: List[str]):
    lines.append(f"MODIFIED: {path}")
    lines.append(f"{__INDENT}Old value:")
    __value_lines(old, lines, __INDENT * 2)
    lines.append(f"{__INDENT}New value:")
    __value_lines(new, lines, __INDENT * 2)


def __value_lines(value, lines: List[str], indent: str = __INDENT):
    for line in format_value(value).split("\n"):
        lines.append(indent + line)


def format_value(value) -> str:
    if isinstance(value, str):
        if "\n" in value:
            return f'"""\n{value}\n"""'
        return f'"{value}"'
    elif isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return json.dumps(value)
