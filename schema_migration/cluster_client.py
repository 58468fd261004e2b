#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import json
from typing import List, Optional

import jsonpath_ng
import requests

from schema_migration.cluster_client_base import ClusterClientBase
from schema_migration.endpoint_info import EndpointInfo
from schema_migration.exceptions import ReindexError, RequestError

# Constants
SETTINGS_KEY = "settings"
MAPPINGS_KEY = "mappings"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
ACKNOWLEDGED_RESPONSE = {"acknowledged": True}
JSON_CONTENT_TYPE = "application/json"
NDJSON_CONTENT_TYPE = "application/x-ndjson"
COUNT_JSONPATH = jsonpath_ng.parse("$.count")
VERIFIED_BEFORE_CLOSE_JSONPATH = jsonpath_ng.parse("$.index.verified_before_close")


class ClusterClient(ClusterClientBase):
    """
    REST client for OpenSearch and Elasticsearch clusters, built directly on requests.

    In dry-run mode no mutating request reaches the cluster. The equivalent curl command is logged instead and an
    acknowledged response is returned, so that a whole migration can be rehearsed against a live cluster.
    """

    def __init__(self, endpoint: EndpointInfo, dry_run: bool = False,
                 timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS):
        super().__init__()
        self.endpoint = endpoint
        self.dry_run = dry_run
        self.timeout_seconds = timeout_seconds

    @property
    def url(self) -> str:
        return self.endpoint.get_url()

    def _send_request(self, method: str, path: str, payload=None, params: Optional[dict] = None,
                      allow_not_found: bool = False, data: Optional[str] = None,
                      content_type: str = JSON_CONTENT_TYPE) -> Optional[requests.Response]:
        url = self.endpoint.add_path(path)
        if self.dry_run and method not in ("GET", "HEAD"):
            self.logger.info(f"Dry run, would execute: {self.to_curl(method, path, payload, params, data)}")
            return None
        self.logger.debug(f"{method} {url} params={params}")
        try:
            resp = requests.request(method, url, params=params, json=payload, data=data,
                                    headers={"Content-Type": content_type}, auth=self.endpoint.get_auth(),
                                    verify=self.endpoint.is_verify_ssl(), timeout=self.timeout_seconds)
            if allow_not_found and resp.status_code == 404:
                return None
            resp.raise_for_status()
            return resp
        except requests.ConnectionError as e:
            raise RequestError(f"ConnectionError on {method} request to cluster endpoint: {url}",
                               original_exception=e) from e
        except requests.HTTPError as e:
            raise RequestError(f"HTTP code {e.response.status_code} on {method} {url}: {e.response.text}",
                               original_exception=e) from e
        except requests.Timeout as e:
            raise RequestError(f"Timed out on {method} request to cluster endpoint: {url}",
                               original_exception=e) from e
        except requests.exceptions.RequestException as e:
            raise RequestError(f"{method} request failure to cluster endpoint: {url}", original_exception=e) from e

    def _send_json_request(self, method: str, path: str, payload=None, params: Optional[dict] = None) -> dict:
        resp = self._send_request(method, path, payload, params)
        if resp is None:
            return dict(ACKNOWLEDGED_RESPONSE)
        return resp.json() if resp.content else dict()

    def to_curl(self, method: str, path: str, payload=None, params: Optional[dict] = None,
                data: Optional[str] = None) -> str:
        url = self.endpoint.add_path(path)
        if params:
            url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
        command = f"curl -X {method} \"{url}\""
        body = data if data is not None else (json.dumps(payload) if payload is not None else None)
        if body is not None:
            command += f" -H 'Content-Type: {JSON_CONTENT_TYPE}' -d '{body}'"
        return command

    # Index operations
    def index_exists(self, index: str) -> bool:
        return self._send_request("GET", f"/{index}", allow_not_found=True) is not None

    def create_index(self, index: str, settings: Optional[dict] = None, mappings: Optional[dict] = None) -> dict:
        body = dict()
        if settings:
            body[SETTINGS_KEY] = settings
        if mappings:
            body[MAPPINGS_KEY] = mappings
        self.logger.info(f"Creating index {index}")
        return self._send_json_request("PUT", f"/{index}", body)

    def close_index(self, index: str) -> dict:
        self.logger.info(f"Closing index {index}")
        return self._send_json_request("POST", f"/{index}/_close")

    def delete_index(self, index: str) -> dict:
        self.logger.info(f"Deleting index {index}")
        resp = self._send_request("DELETE", f"/{index}", allow_not_found=True)
        return resp.json() if resp is not None else dict(ACKNOWLEDGED_RESPONSE)

    def index_closed(self, index: str) -> bool:
        matches = VERIFIED_BEFORE_CLOSE_JSONPATH.find(self.get_settings(index))
        return bool(matches) and str(matches[0].value) == "true"

    def __get_index_section(self, index: str, path_suffix: str, key: str) -> dict:
        resp = self._send_request("GET", f"/{index}/{path_suffix}", allow_not_found=True)
        if resp is None:
            return dict()
        body = resp.json()
        # The response is keyed by the concrete index name, which differs from the request when an alias is used
        for value in body.values():
            return value.get(key, dict())
        return dict()

    def get_settings(self, index: str) -> dict:
        return self.__get_index_section(index, "_settings", SETTINGS_KEY)

    def get_mappings(self, index: str) -> dict:
        return self.__get_index_section(index, "_mapping", MAPPINGS_KEY)

    def update_settings(self, index: str, settings: dict) -> dict:
        self.logger.info(f"Updating settings of index {index}")
        return self._send_json_request("PUT", f"/{index}/_settings", settings)

    def update_mappings(self, index: str, mappings: dict) -> dict:
        self.logger.info(f"Updating mappings of index {index}")
        return self._send_json_request("PUT", f"/{index}/_mapping", mappings)

    def get_doc_count(self, index: str) -> int:
        resp = self._send_request("GET", f"/{index}/_count")
        matches = COUNT_JSONPATH.find(resp.json())
        return int(matches[0].value) if matches else 0

    def refresh_index(self, index: str) -> dict:
        self.logger.debug(f"Refreshing index {index}")
        return self._send_json_request("POST", f"/{index}/_refresh")

    # Alias operations
    def alias_exists(self, alias: str) -> bool:
        return self._send_request("HEAD", f"/_alias/{alias}", allow_not_found=True) is not None

    def get_alias_indices(self, alias: str) -> List[str]:
        resp = self._send_request("GET", f"/_alias/{alias}", allow_not_found=True)
        if resp is None:
            return []
        return sorted(resp.json().keys())

    def create_alias(self, alias: str, index: str) -> dict:
        return self.update_aliases([{"add": {"index": index, "alias": alias}}])

    def update_aliases(self, actions: List[dict]) -> dict:
        self.logger.debug(f"Updating aliases: {json.dumps(actions)}")
        return self._send_json_request("POST", "/_aliases", {"actions": actions})

    # Document and reindex operations
    def reindex(self, source_index: str, dest_index: str, script: Optional[str] = None) -> dict:
        body = {"source": {"index": source_index}, "dest": {"index": dest_index}}
        if script:
            body["script"] = {"lang": "painless", "source": script}
        self.logger.info(f"Reindexing {source_index} into {dest_index}")
        result = self._send_json_request("POST", "/_reindex", body, {"wait_for_completion": "false"})
        if self.dry_run:
            # Nothing ran, so there is no task to wait for
            result["took"] = 0
        return result

    def reindex_one_document(self, source_index: str, dest_index: str, script: Optional[str] = None) -> dict:
        body = {
            "source": {"index": source_index, "query": {"match_all": {}}},
            "max_docs": 1,
            "dest": {"index": dest_index},
            "conflicts": "proceed"
        }
        if script:
            body["script"] = {"lang": "painless", "source": script}
        result = self._send_json_request("POST", "/_reindex", body,
                                         {"wait_for_completion": "true", "refresh": "true"})
        if self.dry_run:
            return result
        self.__validate_single_document_reindex(source_index, result)
        return result

    def __validate_single_document_reindex(self, source_index: str, result: dict):
        failures = result.get("failures") or []
        if failures:
            reasons = "; ".join(str(f.get("cause", {}).get("reason", f)) if isinstance(f, dict) else str(f)
                                for f in failures)
            raise ReindexError(f"Reindex failed with internal errors. Failures: {reasons}")
        if result.get("timed_out", False):
            raise ReindexError("Reindex operation timed out.")
        total = result.get("total", 0)
        if total == 0:
            # An empty source index is the only acceptable reason to copy nothing
            source_count = self.get_doc_count(source_index)
            if source_count == 0:
                return
            raise ReindexError(f"Reindex query found 0 documents but source index has {source_count} documents")
        if total != 1:
            raise ReindexError(f"Reindex query found {total} documents. Expected to find 1.")
        created = result.get("created", 0)
        updated = result.get("updated", 0)
        if created + updated != 1:
            raise ReindexError(f"Reindex failed to index the document (created: {created}, updated: {updated}). "
                               f"Noops: {result.get('noops', 0)}.")

    def get_task_status(self, task_id: str) -> dict:
        resp = self._send_request("GET", f"/_tasks/{task_id}")
        return resp.json()

    def bulk_index(self, documents: List[dict], index: str) -> dict:
        lines = list()
        for document in documents:
            lines.append(json.dumps({"index": {"_index": index}}))
            lines.append(json.dumps(document))
        data = "\n".join(lines) + "\n"
        resp = self._send_request("POST", "/_bulk", data=data, content_type=NDJSON_CONTENT_TYPE)
        if resp is None:
            return dict(ACKNOWLEDGED_RESPONSE)
        result = resp.json()
        if result.get("errors", False):
            raise RequestError(f"Bulk indexing into {index} reported errors")
        return result

    def post_document(self, index: str, document: dict) -> dict:
        return self._send_json_request("POST", f"/{index}/_doc", document)
