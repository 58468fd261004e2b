#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

"""
Decides whether a proposed schema can be applied to a live index in place, or whether the index has to be rebuilt.

Both inputs are ``{"settings": ..., "mappings": ...}`` dicts. They are normalized before comparison, so the string
encoded values the cluster reports compare equal to the native values of a local schema file.
"""

import fnmatch
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from schema_migration.normalization import INDEX_KEY, OBJECT_TYPE, PROPERTIES_KEY, TYPE_KEY, flatten_keys, \
    normalize_local_settings, normalize_mappings, normalize_remote_settings

logger = logging.getLogger(__name__)

# Constants
SETTINGS_KEY = "settings"
MAPPINGS_KEY = "mappings"
DYNAMIC_KEY = "dynamic"
ANALYZER_KEY = "analyzer"
FIELDS_KEY = "fields"
ANALYSIS_KEY = "analysis"
DEFAULT_IMMUTABLE_SETTINGS = ["number_of_shards", "codec", "routing_partition_size", "sort.*"]
DEFAULT_ANALYSIS_COMPONENTS = ["analyzer", "tokenizer", "filter", "char_filter"]
DEFAULT_IMMUTABLE_FIELD_PROPERTIES = ["index", "store", "doc_values", "fielddata", "norms", "enabled", "format",
                                      "copy_to", "term_vector", "index_options", "null_value", "ignore_z_value",
                                      "precision", "ignore_above"]


class ChangeClassification(str, Enum):
    BREAKING = "breaking"
    NON_BREAKING = "non_breaking"


@dataclass
class ClassifierRules:
    immutable_settings: List[str] = field(default_factory=lambda: list(DEFAULT_IMMUTABLE_SETTINGS))
    analysis_components: List[str] = field(default_factory=lambda: list(DEFAULT_ANALYSIS_COMPONENTS))
    immutable_field_properties: List[str] = field(default_factory=lambda: list(DEFAULT_IMMUTABLE_FIELD_PROPERTIES))

    @classmethod
    def from_config(cls, config: Optional[dict]):
        config = config or {}
        defaults = cls()
        return cls(
            immutable_settings=config.get("immutable_settings", defaults.immutable_settings),
            analysis_components=config.get("analysis_components", defaults.analysis_components),
            immutable_field_properties=config.get("immutable_field_properties", defaults.immutable_field_properties)
        )


def classify(live: dict, proposed: dict, rules: Optional[ClassifierRules] = None) -> ChangeClassification:
    if is_breaking_change(live, proposed, rules):
        return ChangeClassification.BREAKING
    return ChangeClassification.NON_BREAKING


def is_breaking_change(live: dict, proposed: dict, rules: Optional[ClassifierRules] = None) -> bool:
    return len(find_breaking_changes(live, proposed, rules)) > 0


# Returns a human-readable reason for every breaking difference found; an empty list means the change is in-place
def find_breaking_changes(live: dict, proposed: dict, rules: Optional[ClassifierRules] = None) -> List[str]:
    rules = rules or ClassifierRules()
    reasons = list()
    live_settings = normalize_remote_settings(live.get(SETTINGS_KEY) or {}).get(INDEX_KEY, {})
    proposed_settings = normalize_local_settings(proposed.get(SETTINGS_KEY) or {}).get(INDEX_KEY, {})
    reasons.extend(__immutable_settings_changes(live_settings, proposed_settings, rules))
    reasons.extend(__analysis_changes(live_settings, proposed_settings, rules))
    live_mappings = normalize_mappings(live.get(MAPPINGS_KEY))
    proposed_mappings = normalize_mappings(proposed.get(MAPPINGS_KEY))
    if DYNAMIC_KEY in live_mappings and DYNAMIC_KEY in proposed_mappings and \
            live_mappings[DYNAMIC_KEY] != proposed_mappings[DYNAMIC_KEY]:
        reasons.append(f"mapping 'dynamic' changed from {live_mappings[DYNAMIC_KEY]} "
                       f"to {proposed_mappings[DYNAMIC_KEY]}")
    reasons.extend(__property_changes(live_mappings.get(PROPERTIES_KEY) or {},
                                      proposed_mappings.get(PROPERTIES_KEY) or {}, rules, ""))
    for reason in reasons:
        logger.debug(f"Breaking change: {reason}")
    return reasons


def __is_immutable_setting(key: str, patterns: List[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatchcase(key, pattern):
            return True
    return False


def __immutable_settings_changes(live: dict, proposed: dict, rules: ClassifierRules) -> List[str]:
    reasons = list()
    flat_live = flatten_keys(live)
    flat_proposed = flatten_keys(proposed)
    for key in sorted(set(flat_live.keys()) & set(flat_proposed.keys())):
        if __is_immutable_setting(key, rules.immutable_settings) and flat_live[key] != flat_proposed[key]:
            reasons.append(f"immutable setting '{key}' changed from {flat_live[key]} to {flat_proposed[key]}")
    return reasons


# New analysis components may be added to a closed index, but existing ones cannot be redefined
def __analysis_changes(live: dict, proposed: dict, rules: ClassifierRules) -> List[str]:
    reasons = list()
    live_analysis = live.get(ANALYSIS_KEY) or {}
    proposed_analysis = proposed.get(ANALYSIS_KEY) or {}
    for component in rules.analysis_components:
        live_components = live_analysis.get(component) or {}
        proposed_components = proposed_analysis.get(component) or {}
        for name in sorted(set(live_components.keys()) & set(proposed_components.keys())):
            if live_components[name] != proposed_components[name]:
                reasons.append(f"{component} '{name}' definition changed")
    return reasons


def __field_type(definition: dict) -> Optional[str]:
    if TYPE_KEY in definition:
        return definition[TYPE_KEY]
    elif PROPERTIES_KEY in definition:
        return OBJECT_TYPE
    return None


def __property_changes(live: dict, proposed: dict, rules: ClassifierRules, path: str) -> List[str]:
    reasons = list()
    for name in sorted(live.keys()):
        field_path = f"{path}.{name}" if path else name
        if name not in proposed:
            reasons.append(f"field '{field_path}' removed")
            continue
        live_def = live[name] if isinstance(live[name], dict) else {}
        proposed_def = proposed[name] if isinstance(proposed[name], dict) else {}
        reasons.extend(__field_changes(live_def, proposed_def, rules, field_path))
    return reasons


def __field_changes(live: dict, proposed: dict, rules: ClassifierRules, path: str) -> List[str]:
    reasons = list()
    # Type and analyzer only count when both sides define them
    live_type = __field_type(live)
    proposed_type = __field_type(proposed)
    if live_type is not None and proposed_type is not None and live_type != proposed_type:
        reasons.append(f"field '{path}' type changed from {live_type} to {proposed_type}")
    if ANALYZER_KEY in live and ANALYZER_KEY in proposed and live[ANALYZER_KEY] != proposed[ANALYZER_KEY]:
        reasons.append(f"field '{path}' analyzer changed from {live.get(ANALYZER_KEY)} "
                       f"to {proposed.get(ANALYZER_KEY)}")
    for prop in rules.immutable_field_properties:
        # Presence on only one side counts as a change
        if (prop in live or prop in proposed) and live.get(prop) != proposed.get(prop):
            reasons.append(f"field '{path}' immutable property '{prop}' changed")
    live_fields = live.get(FIELDS_KEY) or {}
    proposed_fields = proposed.get(FIELDS_KEY) or {}
    for sub_name in sorted(live_fields.keys()):
        if sub_name not in proposed_fields:
            reasons.append(f"multi-field '{path}.{sub_name}' removed")
        elif live_fields[sub_name] != proposed_fields[sub_name]:
            reasons.append(f"multi-field '{path}.{sub_name}' changed")
    if PROPERTIES_KEY in live or PROPERTIES_KEY in proposed:
        reasons.extend(__property_changes(live.get(PROPERTIES_KEY) or {}, proposed.get(PROPERTIES_KEY) or {},
                                          rules, path))
    return reasons
