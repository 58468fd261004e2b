#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

import unittest
from unittest.mock import MagicMock, patch

from schema_migration import endpoint_utils
from schema_migration.endpoint_info import EndpointInfo
from tests import test_constants

# Constants
AWS_ENDPOINT = "https://search-test-abc.us-west-2.es.amazonaws.com"


class TestEndpointUtils(unittest.TestCase):
    def test_endpoint_info_paths(self):
        endpoint = EndpointInfo(test_constants.CLUSTER_ENDPOINT + "/")
        self.assertEqual(test_constants.CLUSTER_ENDPOINT, endpoint.get_url())
        self.assertEqual(test_constants.CLUSTER_ENDPOINT + "/_aliases", endpoint.add_path("_aliases"))
        self.assertEqual(test_constants.CLUSTER_ENDPOINT + "/_aliases", endpoint.add_path("/_aliases"))

    def test_endpoint_info_equality(self):
        self.assertEqual(EndpointInfo("http://a", ("u", "p"), False), EndpointInfo("http://a/", ("u", "p"), False))
        self.assertNotEqual(EndpointInfo("http://a"), EndpointInfo("http://a", verify_ssl=False))

    def test_no_auth(self):
        endpoint = endpoint_utils.get_endpoint_info({"endpoint": test_constants.CLUSTER_ENDPOINT, "no_auth": None})
        self.assertIsNone(endpoint.get_auth())
        self.assertTrue(endpoint.is_verify_ssl())

    def test_basic_auth_insecure(self):
        config = {"endpoint": test_constants.CLUSTER_ENDPOINT, "allow_insecure": True,
                  "basic_auth": {"username": "admin", "password": "admin"}}
        endpoint = endpoint_utils.get_endpoint_info(config)
        self.assertEqual(("admin", "admin"), endpoint.get_auth())
        self.assertFalse(endpoint.is_verify_ssl())

    def test_basic_auth_missing_password(self):
        config = {"endpoint": test_constants.CLUSTER_ENDPOINT, "basic_auth": {"username": "admin"}}
        self.assertRaises(ValueError, endpoint_utils.get_endpoint_info, config)

    def test_multiple_auth_types(self):
        config = {"endpoint": AWS_ENDPOINT, "no_auth": None, "sigv4": {"region": "us-east-1"}}
        self.assertRaises(ValueError, endpoint_utils.validate_auth, config)

    def test_missing_endpoint(self):
        self.assertRaises(ValueError, endpoint_utils.get_endpoint_info, {"no_auth": None})

    def test_get_aws_region(self):
        self.assertEqual("us-east-1", endpoint_utils.get_aws_region({"endpoint": AWS_ENDPOINT,
                                                                     "sigv4": {"region": "us-east-1"}}))
        self.assertEqual("us-west-2", endpoint_utils.get_aws_region({"endpoint": AWS_ENDPOINT, "sigv4": None}))
        self.assertRaises(ValueError, endpoint_utils.get_aws_region,
                          {"endpoint": test_constants.CLUSTER_ENDPOINT, "sigv4": {}})

    @patch("schema_migration.endpoint_utils.Session")
    def test_sigv4_auth(self, mock_session):
        mock_session.return_value.get_credentials.return_value = MagicMock(access_key="key", secret_key="secret",
                                                                            token=None)
        with patch("schema_migration.endpoint_utils.AWS4Auth") as mock_auth:
            endpoint_utils.get_endpoint_info({"endpoint": AWS_ENDPOINT, "sigv4": {"service": "aoss"}})
        mock_auth.assert_called_once_with(region="us-west-2", service="aoss",
                                          refreshable_credentials=mock_session.return_value.get_credentials
                                          .return_value)

    @patch("schema_migration.endpoint_utils.Session")
    def test_sigv4_without_credentials(self, mock_session):
        mock_session.return_value.get_credentials.return_value = None
        self.assertRaises(ValueError, endpoint_utils.get_endpoint_info, {"endpoint": AWS_ENDPOINT, "sigv4": None})


if __name__ == '__main__':
    unittest.main()
