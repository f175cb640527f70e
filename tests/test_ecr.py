"""
Unit tests for the ECR module
"""

import json
import unittest
from unittest.mock import patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.ecr.functions import (
    build_lifecycle_policy,
    build_repository_policy,
    create_ecr_resources,
    PULL_ACTIONS,
    PUSH_ACTIONS,
)
from modules.validation import ValidationError


class TestLifecyclePolicy(unittest.TestCase):

    def test_default_rules(self):
        policy = json.loads(build_lifecycle_policy())
        rules = policy["rules"]

        self.assertEqual(len(rules), 2)
        self.assertEqual(rules[0]["rulePriority"], 1)
        self.assertEqual(rules[0]["selection"]["tagStatus"], "untagged")
        self.assertEqual(rules[0]["selection"]["countType"], "sinceImagePushed")
        self.assertEqual(rules[0]["selection"]["countNumber"], 14)
        self.assertEqual(rules[1]["rulePriority"], 2)
        self.assertEqual(rules[1]["selection"]["tagStatus"], "any")
        self.assertEqual(rules[1]["selection"]["countType"], "imageCountMoreThan")
        self.assertEqual(rules[1]["selection"]["countNumber"], 30)

    def test_tag_prefixes_scope_count_rule(self):
        rules = json.loads(build_lifecycle_policy(7, 10, ["v", "release-"]))["rules"]
        self.assertEqual(rules[1]["selection"]["tagStatus"], "tagged")
        self.assertEqual(rules[1]["selection"]["tagPrefixList"], ["v", "release-"])

    def test_rules_can_be_skipped(self):
        rules = json.loads(build_lifecycle_policy(None, 5))["rules"]
        self.assertEqual(len(rules), 1)
        self.assertEqual(rules[0]["rulePriority"], 1)
        self.assertEqual(json.loads(build_lifecycle_policy(None, None)), {"rules": []})


class TestRepositoryPolicy(unittest.TestCase):

    def test_empty_principals_give_no_policy(self):
        self.assertIsNone(build_repository_policy())
        self.assertIsNone(build_repository_policy([], []))

    def test_read_and_push_statements(self):
        policy = json.loads(build_repository_policy(
            read_access_arns=["arn:aws:iam::111111111111:root"],
            push_access_arns=["arn:aws:iam::222222222222:role/ci"]
        ))

        statements = {s["Sid"]: s for s in policy["Statement"]}
        self.assertEqual(statements["ReadOnlyAccess"]["Action"], PULL_ACTIONS)
        self.assertEqual(statements["ReadOnlyAccess"]["Principal"], {"AWS": ["arn:aws:iam::111111111111:root"]})
        self.assertEqual(statements["ReadWriteAccess"]["Action"], PULL_ACTIONS + PUSH_ACTIONS)


class TestEcrResources(unittest.TestCase):

    def setUp(self):
        aws_patcher = patch('modules.ecr.functions.aws')
        pulumi_patcher = patch('modules.ecr.functions.pulumi')
        self.mock_aws = aws_patcher.start()
        self.mock_pulumi = pulumi_patcher.start()
        self.addCleanup(aws_patcher.stop)
        self.addCleanup(pulumi_patcher.stop)

    def test_default_structure(self):
        result = create_ecr_resources(repository_name="team/app")

        for key in ["repository_name", "repository_arn", "repository_url", "registry_id",
                    "kms_key_arn", "public_repository_uri", "lifecycle_policy_text"]:
            self.assertIn(key, result)

        args, kwargs = self.mock_aws.ecr.Repository.call_args
        self.assertEqual(args[0], "team-app-repository")
        self.assertEqual(kwargs["name"], "team/app")
        self.assertEqual(kwargs["image_tag_mutability"], "MUTABLE")
        self.assertEqual(kwargs["tags"]["Module"], "ecr")
        self.mock_aws.ecr.LifecyclePolicy.assert_called_once()
        self.mock_aws.ecr.RepositoryPolicy.assert_not_called()
        self.mock_aws.kms.Key.assert_not_called()
        self.mock_aws.ecr.ReplicationConfiguration.assert_not_called()
        self.mock_aws.ecrpublic.Repository.assert_not_called()
        self.assertIsNone(result["kms_key_arn"])

    def test_kms_encryption_creates_key(self):
        create_ecr_resources(repository_name="app", encryption_type="KMS")

        self.mock_aws.kms.Key.assert_called_once()
        self.mock_aws.ecr.RepositoryEncryptionConfigurationArgs.assert_called_once_with(
            encryption_type="KMS",
            kms_key=self.mock_aws.kms.Key.return_value.arn
        )

    def test_kms_encryption_with_existing_key(self):
        create_ecr_resources(
            repository_name="app",
            encryption_type="KMS",
            create_kms_key=False,
            kms_key_arn="arn:aws:kms:us-east-1:123456789012:key/abc"
        )

        self.mock_aws.kms.Key.assert_not_called()
        self.mock_aws.ecr.RepositoryEncryptionConfigurationArgs.assert_called_once_with(
            encryption_type="KMS",
            kms_key="arn:aws:kms:us-east-1:123456789012:key/abc"
        )

    def test_explicit_lifecycle_policy_wins(self):
        document = {"rules": [{"rulePriority": 1, "selection": {"tagStatus": "any", "countType": "imageCountMoreThan",
                                                                "countNumber": 1}, "action": {"type": "expire"}}]}
        create_ecr_resources(repository_name="app", lifecycle_policy=document)

        policy = self.mock_aws.ecr.LifecyclePolicy.call_args[1]["policy"]
        self.assertEqual(json.loads(policy), document)

    def test_lifecycle_policy_can_be_disabled(self):
        result = create_ecr_resources(repository_name="app", create_lifecycle_policy=False)
        self.mock_aws.ecr.LifecyclePolicy.assert_not_called()
        self.assertIsNone(result["lifecycle_policy_text"])

    def test_repository_policy_from_principals(self):
        create_ecr_resources(repository_name="app", read_access_arns=["arn:aws:iam::111111111111:root"])

        self.mock_aws.ecr.RepositoryPolicy.assert_called_once()
        policy = json.loads(self.mock_aws.ecr.RepositoryPolicy.call_args[1]["policy"])
        self.assertEqual(policy["Statement"][0]["Sid"], "ReadOnlyAccess")

    def test_replication_fills_in_own_account(self):
        self.mock_aws.get_caller_identity.return_value.account_id = "123456789012"

        create_ecr_resources(
            repository_name="app",
            enable_replication=True,
            replication_destinations=[{"region": "eu-west-1"}],
            replication_filters=["app"]
        )

        self.mock_aws.ecr.ReplicationConfiguration.assert_called_once()
        self.mock_aws.ecr.ReplicationConfigurationReplicationConfigurationRuleDestinationArgs.assert_called_once_with(
            region="eu-west-1",
            registry_id="123456789012"
        )
        self.mock_aws.ecr.ReplicationConfigurationReplicationConfigurationRuleRepositoryFilterArgs.assert_called_once_with(
            filter="app",
            filter_type="PREFIX_MATCH"
        )

    def test_pull_through_cache_rules_per_prefix(self):
        result = create_ecr_resources(
            repository_name="app",
            pull_through_cache_rules={
                "ecr-public": {"upstream_registry_url": "public.ecr.aws"},
                "quay": {"upstream_registry_url": "quay.io"}
            }
        )

        names = [c[0][0] for c in self.mock_aws.ecr.PullThroughCacheRule.call_args_list]
        self.assertEqual(names, ["app-ecr-public-cache", "app-quay-cache"])
        self.assertEqual(set(result["_pull_through_cache_rules"]), {"ecr-public", "quay"})

    def test_public_repository(self):
        create_ecr_resources(
            repository_name="app",
            create_public_repository=True,
            public_catalog_data={"description": "App images"}
        )

        self.mock_aws.ecrpublic.Repository.assert_called_once()
        self.assertEqual(self.mock_aws.ecrpublic.Repository.call_args[1]["repository_name"], "app")

    def test_force_delete_warns(self):
        create_ecr_resources(repository_name="app", force_delete=True)
        self.mock_pulumi.log.warn.assert_called_once()

    def test_registry_scanning(self):
        create_ecr_resources(
            repository_name="app",
            registry_scan_type="ENHANCED",
            registry_scan_rules=[{"scan_frequency": "CONTINUOUS_SCAN", "filter": "prod-*"}]
        )
        self.mock_aws.ecr.RegistryScanningConfiguration.assert_called_once()
        self.assertEqual(self.mock_aws.ecr.RegistryScanningConfiguration.call_args[1]["scan_type"], "ENHANCED")

    def test_validation_errors(self):
        cases = [
            {"repository_name": "App"},
            {"repository_name": "app", "image_tag_mutability": "LOCKED"},
            {"repository_name": "app", "encryption_type": "SSE"},
            {"repository_name": "app", "kms_key_deletion_window": 3},
            {"repository_name": "app", "encryption_type": "KMS", "create_kms_key": False},
            {"repository_name": "app", "enable_replication": True},
            {"repository_name": "app", "pull_through_cache_rules": {"quay": {}}},
            {"repository_name": "app", "lifecycle_policy": "{oops"},
            {"repository_name": "app", "max_image_count": 0},
        ]
        for kwargs in cases:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValidationError):
                    create_ecr_resources(**kwargs)
        self.mock_aws.ecr.Repository.assert_not_called()


if __name__ == "__main__":
    unittest.main(verbosity=2)
