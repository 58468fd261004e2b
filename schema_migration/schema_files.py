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
import os
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)

# Constants
SETTINGS_FILE = "settings.json"
MAPPINGS_FILE = "mappings.json"
REINDEX_SCRIPT_FILE = "reindex.painless"


class SchemaStore(ABC):
    """
    Source of the desired ("local") schema for each alias. Every getter returns None when the alias has no such
    definition.
    """

    @abstractmethod
    def get_settings(self, alias_name: str) -> Optional[dict]:
        pass

    @abstractmethod
    def get_mappings(self, alias_name: str) -> Optional[dict]:
        pass

    @abstractmethod
    def get_transform_script(self, alias_name: str) -> Optional[str]:
        pass

    @abstractmethod
    def discover_all_schemas(self) -> List[str]:
        pass


# Schemas laid out on disk as <schemas_path>/<alias>/{settings.json, mappings.json, reindex.painless}
class SchemaFiles(SchemaStore):
    def __init__(self, schemas_path: str):
        self.schemas_path = schemas_path

    def __path(self, alias_name: str, file_name: str) -> str:
        return os.path.join(self.schemas_path, alias_name, file_name)

    def __load_json(self, alias_name: str, file_name: str) -> Optional[dict]:
        path = self.__path(alias_name, file_name)
        if not os.path.isfile(path):
            return None
        with open(path, encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in schema file {path}: {e}") from e

    def get_settings(self, alias_name: str) -> Optional[dict]:
        return self.__load_json(alias_name, SETTINGS_FILE)

    def get_mappings(self, alias_name: str) -> Optional[dict]:
        return self.__load_json(alias_name, MAPPINGS_FILE)

    def get_transform_script(self, alias_name: str) -> Optional[str]:
        path = self.__path(alias_name, REINDEX_SCRIPT_FILE)
        if not os.path.isfile(path):
            return None
        with open(path, encoding="utf-8") as f:
            script = f.read().strip()
        return script or None

    # A schema directory needs both settings and mappings to be picked up
    def discover_all_schemas(self) -> List[str]:
        if not os.path.isdir(self.schemas_path):
            logger.warning(f"Schemas directory {self.schemas_path} does not exist")
            return []
        schemas = list()
        for entry in sorted(os.listdir(self.schemas_path)):
            if os.path.isfile(self.__path(entry, SETTINGS_FILE)) and os.path.isfile(self.__path(entry, MAPPINGS_FILE)):
                schemas.append(entry)
        return schemas
