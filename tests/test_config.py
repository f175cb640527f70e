"""
Unit tests for stack configuration
"""

import unittest
from unittest.mock import patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config, get_config


class FakeConfig:
    """In-memory stand-in for pulumi.Config"""

    def __init__(self, values):
        self.values = values

    def get(self, key):
        return self.values.get(key)

    def get_bool(self, key):
        return self.values.get(key)

    def get_int(self, key):
        return self.values.get(key)

    def get_object(self, key):
        return self.values.get(key)

    def require(self, key):
        if key not in self.values:
            raise KeyError(key)
        return self.values[key]

    def require_object(self, key):
        return self.require(key)


class TestConfig(unittest.TestCase):

    def make_config(self, values, aws_values=None):
        with patch('config.pulumi') as mock_pulumi:
            mock_pulumi.get_project.return_value = "platform"
            mock_pulumi.get_stack.return_value = "dev"
            mock_pulumi.Config.side_effect = (
                lambda name=None: FakeConfig(aws_values or {}) if name == "aws" else FakeConfig(values)
            )
            return Config()

    def test_defaults(self):
        config = self.make_config({"subnet_ids": ["subnet-a", "subnet-b"]})

        self.assertEqual(config.aws_region, "us-east-1")
        self.assertEqual(config.cluster_name, "platform")
        self.assertEqual(config.cluster_version, "1.30")
        self.assertTrue(config.enable_eks)
        self.assertTrue(config.enable_ecr)
        self.assertFalse(config.enable_iam)
        self.assertFalse(config.enable_codepipeline)
        self.assertTrue(config.endpoint_public_access)
        self.assertEqual(config.node_desired_size, 2)
        self.assertEqual(config.ecr_repository_name, "platform")
        self.assertEqual(config.pipeline_name, "platform-pipeline")
        self.assertEqual(config.capacity_type, "ON_DEMAND")
        self.assertIsNone(config.kms_key_arn)
        self.assertTrue(config.create_github_connection)
        self.assertFalse(config.build_privileged_mode)
        self.assertEqual(config.iam_oidc_providers, {})
        self.assertEqual(config.iam_saml_providers, {})

    def test_false_and_zero_are_respected(self):
        config = self.make_config({
            "subnet_ids": ["subnet-a", "subnet-b"],
            "endpoint_public_access": False,
            "enable_ecr": False,
            "node_min_size": 0
        })

        self.assertFalse(config.endpoint_public_access)
        self.assertFalse(config.enable_ecr)
        self.assertEqual(config.node_min_size, 0)

    def test_subnets_required_only_with_eks(self):
        with self.assertRaises(KeyError):
            self.make_config({})
        config = self.make_config({"enable_eks": False})
        self.assertEqual(config.subnet_ids, [])

    def test_repository_id_required_with_codepipeline(self):
        with self.assertRaises(KeyError):
            self.make_config({"enable_eks": False, "enable_codepipeline": True})
        config = self.make_config({
            "enable_eks": False,
            "enable_codepipeline": True,
            "repository_id": "octo/app",
            "connection_arn": "arn:aws:codestar-connections:us-east-1:123456789012:connection/abc"
        })
        self.assertEqual(config.repository_id, "octo/app")
        self.assertFalse(config.create_github_connection)

    def test_common_tags_merge_additional_tags(self):
        config = self.make_config(
            {"enable_eks": False, "tags": {"Team": "platform", "Environment": "prod"}},
            {"region": "eu-west-1"}
        )

        self.assertEqual(config.aws_region, "eu-west-1")
        self.assertEqual(config.common_tags, {
            "Environment": "prod",
            "Project": "platform",
            "ManagedBy": "pulumi",
            "Team": "platform"
        })

    def test_identity_providers_are_read(self):
        config = self.make_config({
            "enable_eks": False,
            "enable_iam": True,
            "iam_oidc_providers": {"github": {"url": "https://token.actions.githubusercontent.com"}},
            "iam_saml_providers": {"okta": {"saml_metadata_document": "<xml/>"}}
        })

        self.assertEqual(set(config.iam_oidc_providers), {"github"})
        self.assertEqual(set(config.iam_saml_providers), {"okta"})

    def test_privileged_builds_can_be_enabled(self):
        config = self.make_config({"enable_eks": False, "build_privileged_mode": True})
        self.assertTrue(config.build_privileged_mode)

    def test_spot_capacity(self):
        config = self.make_config({"enable_eks": False, "enable_spot_instances": True})
        self.assertEqual(config.capacity_type, "SPOT")

    def test_get_config_returns_config(self):
        with patch('config.Config') as mock_config:
            self.assertIs(get_config(), mock_config.return_value)


if __name__ == "__main__":
    unittest.main(verbosity=2)
