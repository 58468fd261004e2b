#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import re
from typing import Optional, Union

from botocore.session import Session
from requests_aws4auth import AWS4Auth

from schema_migration.endpoint_info import EndpointInfo

# Constants
ENDPOINT_KEY = "endpoint"
ALLOW_INSECURE_KEY = "allow_insecure"
NO_AUTH_KEY = "no_auth"
BASIC_AUTH_KEY = "basic_auth"
USER_KEY = "username"
PWD_KEY = "password"
SIGV4_KEY = "sigv4"
REGION_KEY = "region"
SERVICE_KEY = "service"
ES_SERVICE_NAME = "es"
AOSS_SERVICE_NAME = "aoss"
URL_REGION_PATTERN = re.compile(r"([\w-]*)\.(es|aoss)\.amazonaws\.com")


# Helper function that attempts to extract the AWS region from a URL,
# assuming it is of the form *.<region>.<service>.amazonaws.com
def __derive_aws_region_from_url(url: str) -> Optional[str]:
    match = URL_REGION_PATTERN.search(url)
    if match:
        # Index 0 returns the entire match, index 1 returns only the first group
        return match.group(1)
    return None


def get_aws_region(cluster_config: dict) -> str:
    sigv4_config = cluster_config.get(SIGV4_KEY) or {}
    if sigv4_config.get(REGION_KEY) is not None:
        return sigv4_config[REGION_KEY]
    # Region not explicitly defined, attempt to derive from URL
    derived_region = __derive_aws_region_from_url(cluster_config[ENDPOINT_KEY])
    if derived_region is None:
        raise ValueError("No region configured for AWS SigV4 auth, or derivable from endpoint URL")
    return derived_region


def validate_auth(cluster_config: dict):
    auth_keys = [k for k in (NO_AUTH_KEY, BASIC_AUTH_KEY, SIGV4_KEY) if k in cluster_config]
    if len(auth_keys) > 1:
        raise ValueError("More than one auth type configured for cluster: " + ", ".join(auth_keys))
    if BASIC_AUTH_KEY in cluster_config:
        basic_auth = cluster_config[BASIC_AUTH_KEY] or {}
        if USER_KEY not in basic_auth:
            raise ValueError("Invalid basic auth configuration (no username)")
        elif PWD_KEY not in basic_auth:
            raise ValueError("Invalid basic auth configuration (no password for username)")
    elif SIGV4_KEY in cluster_config:
        # Raises a ValueError if region cannot be derived
        get_aws_region(cluster_config)


def get_aws_sigv4_auth(region: str, service: str = ES_SERVICE_NAME) -> AWS4Auth:
    credentials = Session().get_credentials()
    if not credentials:
        raise ValueError("Unable to fetch AWS session credentials for SigV4 auth")
    return AWS4Auth(region=region, service=service, refreshable_credentials=credentials)


def get_auth(cluster_config: dict) -> Union[AWS4Auth, tuple, None]:
    if BASIC_AUTH_KEY in cluster_config:
        basic_auth = cluster_config[BASIC_AUTH_KEY]
        return basic_auth[USER_KEY], basic_auth[PWD_KEY]
    elif SIGV4_KEY in cluster_config:
        service = (cluster_config[SIGV4_KEY] or {}).get(SERVICE_KEY) or ES_SERVICE_NAME
        return get_aws_sigv4_auth(get_aws_region(cluster_config), service)
    return None


def get_endpoint_info(cluster_config: dict) -> EndpointInfo:
    if ENDPOINT_KEY not in cluster_config:
        raise ValueError("No endpoint defined for cluster")
    # Raises a ValueError if there an error in the auth configuration
    validate_auth(cluster_config)
    # verify boolean will be the inverse of the insecure SSL key, if present
    should_verify = not cluster_config.get(ALLOW_INSECURE_KEY, False)
    return EndpointInfo(cluster_config[ENDPOINT_KEY], get_auth(cluster_config), should_verify)
