#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

from typing import Optional

from requests_aws4auth import AWS4Auth


# Connection details for the cluster that hosts the aliased indices
class EndpointInfo:
    # Private member variables
    __url: str
    __auth: Optional[tuple] | AWS4Auth
    __verify_ssl: bool

    def __init__(self, url: str, auth: tuple | AWS4Auth = None, verify_ssl: bool = True):
        # Stored without a trailing slash, since every request path starts with one
        self.__url = url.rstrip("/")
        self.__auth = auth
        self.__verify_ssl = verify_ssl

    def __eq__(self, obj):
        return isinstance(obj, EndpointInfo) and \
            self.__url == obj.__url and \
            self.__auth == obj.__auth and \
            self.__verify_ssl == obj.__verify_ssl

    def __repr__(self):
        return f"EndpointInfo(url={self.__url}, verify_ssl={self.__verify_ssl})"

    def add_path(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.__url + path

    def get_url(self) -> str:
        return self.__url

    def get_auth(self) -> Optional[tuple] | AWS4Auth:
        return self.__auth

    def is_verify_ssl(self) -> bool:
        return self.__verify_ssl
