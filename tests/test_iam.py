"""
Unit tests for the IAM module
"""

import json
import unittest
from unittest.mock import Mock, patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.iam.functions import build_irsa_trust_policy, build_trust_policy, create_iam_resources
from modules.validation import ValidationError

READ_ONLY = {
    "Version": "2012-10-17",
    "Statement": [{"Effect": "Allow", "Action": "s3:GetObject", "Resource": "*"}]
}


class TestTrustPolicies(unittest.TestCase):

    def test_statement_per_trusted_list(self):
        policy = json.loads(build_trust_policy({
            "trusted_services": ["ec2.amazonaws.com"],
            "trusted_arns": ["arn:aws:iam::123456789012:root"],
            "trusted_federated": ["arn:aws:iam::123456789012:saml-provider/okta"]
        }))

        statements = policy["Statement"]
        self.assertEqual(len(statements), 3)
        self.assertEqual(statements[0]["Principal"], {"Service": ["ec2.amazonaws.com"]})
        self.assertEqual(statements[1]["Principal"], {"AWS": ["arn:aws:iam::123456789012:root"]})
        self.assertEqual(statements[2]["Action"], "sts:AssumeRoleWithWebIdentity")

    def test_explicit_document_wins(self):
        document = {"Version": "2012-10-17", "Statement": []}
        policy = build_trust_policy({"assume_role_policy": document, "trusted_services": ["ec2.amazonaws.com"]})
        self.assertEqual(json.loads(policy), document)

    def test_irsa_trust_policy_conditions(self):
        policy = json.loads(build_irsa_trust_policy(
            "arn:aws:iam::123456789012:oidc-provider/oidc.eks.us-east-1.amazonaws.com/id/ABC",
            "https://oidc.eks.us-east-1.amazonaws.com/id/ABC",
            ["kube-system:aws-load-balancer-controller"]
        ))

        statement = policy["Statement"][0]
        self.assertEqual(statement["Action"], "sts:AssumeRoleWithWebIdentity")
        conditions = statement["Condition"]["StringEquals"]
        self.assertEqual(
            conditions["oidc.eks.us-east-1.amazonaws.com/id/ABC:sub"],
            ["system:serviceaccount:kube-system:aws-load-balancer-controller"]
        )
        self.assertEqual(conditions["oidc.eks.us-east-1.amazonaws.com/id/ABC:aud"], "sts.amazonaws.com")


class TestIamResources(unittest.TestCase):

    def setUp(self):
        aws_patcher = patch('modules.iam.functions.aws')
        pulumi_patcher = patch('modules.iam.functions.pulumi')
        self.mock_aws = aws_patcher.start()
        self.mock_pulumi = pulumi_patcher.start()
        self.addCleanup(aws_patcher.stop)
        self.addCleanup(pulumi_patcher.stop)
        # Distinct objects per declared resource
        self.mock_aws.iam.Policy.side_effect = lambda *args, **kwargs: Mock(arn=f"arn:{args[0]}")
        self.mock_aws.iam.Group.side_effect = lambda *args, **kwargs: Mock()

    def test_empty_call_declares_nothing(self):
        result = create_iam_resources()

        self.mock_aws.iam.Role.assert_not_called()
        self.mock_aws.iam.Policy.assert_not_called()
        self.mock_aws.iam.AccountPasswordPolicy.assert_not_called()
        self.assertEqual(result["role_arns"], {})
        self.assertIsNone(result["_password_policy"])

    def test_role_with_module_policy_and_managed_policy(self):
        result = create_iam_resources(
            name_prefix="platform",
            policies={"read": {"policy": READ_ONLY}},
            roles={
                "worker": {
                    "trusted_services": ["ec2.amazonaws.com"],
                    "policy_keys": ["read"],
                    "managed_policy_arns": ["arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"],
                    "inline_policies": {"extra": READ_ONLY},
                    "create_instance_profile": True
                }
            }
        )

        role_args, role_kwargs = self.mock_aws.iam.Role.call_args
        self.assertEqual(role_args[0], "platform-worker-role")
        self.assertEqual(role_kwargs["name"], "platform-worker")
        self.assertEqual(role_kwargs["tags"]["Module"], "iam")

        attachments = {c[0][0]: c[1]["policy_arn"] for c in self.mock_aws.iam.RolePolicyAttachment.call_args_list}
        self.assertEqual(attachments["platform-worker-policy-read-attachment"], "arn:platform-read-policy")
        self.assertEqual(
            attachments["platform-worker-managed-AmazonSSMManagedInstanceCore-attachment"],
            "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"
        )
        self.mock_aws.iam.RolePolicy.assert_called_once()
        self.mock_aws.iam.InstanceProfile.assert_called_once()
        self.assertEqual(
            set(result["_role_attachments"]),
            {"worker/policy/read", "worker/managed/AmazonSSMManagedInstanceCore"}
        )

    def test_managed_policies_keyed_by_name(self):
        create_iam_resources(
            roles={
                "ci": {
                    "trusted_services": ["codebuild.amazonaws.com"],
                    "managed_policy_arns": {"deploy": "arn:aws:iam::123456789012:policy/deploy"}
                }
            }
        )

        self.assertEqual(self.mock_aws.iam.RolePolicyAttachment.call_args[0][0], "ci-managed-deploy-attachment")

    def test_managed_and_module_policy_with_same_name_get_distinct_attachments(self):
        result = create_iam_resources(
            name_prefix="p",
            policies={"deploy": {"policy": READ_ONLY}},
            roles={
                "app": {
                    "trusted_services": ["ec2.amazonaws.com"],
                    "managed_policy_arns": ["arn:aws:iam::123456789012:policy/deploy"],
                    "policy_keys": ["deploy"]
                }
            }
        )

        names = [c[0][0] for c in self.mock_aws.iam.RolePolicyAttachment.call_args_list]
        self.assertEqual(names, ["p-app-managed-deploy-attachment", "p-app-policy-deploy-attachment"])
        self.assertEqual(set(result["_role_attachments"]), {"app/managed/deploy", "app/policy/deploy"})

    def test_service_account_role_attachments_do_not_clash_with_role_attachments(self):
        create_iam_resources(
            name_prefix="p",
            roles={
                "app": {
                    "trusted_services": ["ec2.amazonaws.com"],
                    "managed_policy_arns": ["arn:aws:iam::aws:policy/ReadOnlyAccess"]
                }
            },
            service_account_roles={
                "app-sa": {
                    "namespace": "default",
                    "service_account": "app",
                    "oidc_provider_arn": "arn:aws:iam::123456789012:oidc-provider/oidc.example.com",
                    "oidc_issuer_url": "https://oidc.example.com",
                    "managed_policy_arns": ["arn:aws:iam::aws:policy/ReadOnlyAccess"]
                }
            }
        )

        names = [c[0][0] for c in self.mock_aws.iam.RolePolicyAttachment.call_args_list]
        self.assertEqual(len(names), len(set(names)))
        self.assertIn("p-app-sa-irsa-managed-ReadOnlyAccess-attachment", names)

    def test_users_groups_and_secrets(self):
        result = create_iam_resources(
            groups={"developers": {"managed_policy_arns": ["arn:aws:iam::aws:policy/ReadOnlyAccess"]}},
            users={
                "alice": {
                    "group_keys": ["developers"],
                    "create_access_key": True,
                    "create_login_profile": True
                }
            }
        )

        self.mock_aws.iam.Group.assert_called_once()
        self.mock_aws.iam.GroupPolicyAttachment.assert_called_once()
        self.mock_aws.iam.UserGroupMembership.assert_called_once()
        self.mock_aws.iam.AccessKey.assert_called_once()
        self.mock_aws.iam.UserLoginProfile.assert_called_once()

        access_key = self.mock_aws.iam.AccessKey.return_value
        self.mock_pulumi.Output.secret.assert_any_call(access_key.secret)
        self.assertIn("alice", result["access_key_secrets"])
        self.assertIn("alice", result["login_profile_passwords"])
        self.mock_pulumi.log.warn.assert_called_once()

    def test_pgp_key_returns_encrypted_secret(self):
        create_iam_resources(users={"bot": {"create_access_key": True, "access_key_pgp_key": "keybase:bot"}})

        access_key = self.mock_aws.iam.AccessKey.return_value
        self.mock_pulumi.Output.secret.assert_called_once_with(access_key.encrypted_secret)
        self.mock_pulumi.log.warn.assert_not_called()

    def test_identity_providers(self):
        result = create_iam_resources(
            oidc_providers={"github": {"url": "https://token.actions.githubusercontent.com"}},
            saml_providers={"okta": {"saml_metadata_document": "<xml/>"}}
        )

        self.mock_aws.iam.OpenIdConnectProvider.assert_called_once()
        self.assertEqual(
            self.mock_aws.iam.OpenIdConnectProvider.call_args[1]["client_id_lists"], ["sts.amazonaws.com"]
        )
        self.mock_aws.iam.SamlProvider.assert_called_once()
        self.assertEqual(set(result["oidc_provider_arns"]), {"github"})

    def test_service_account_role_trust_is_built_from_provider(self):
        create_iam_resources(
            service_account_roles={
                "lb-controller": {
                    "namespace": "kube-system",
                    "service_account": "aws-load-balancer-controller",
                    "oidc_provider_arn": "arn:aws:iam::123456789012:oidc-provider/oidc.example.com",
                    "oidc_issuer_url": "https://oidc.example.com"
                }
            }
        )

        self.mock_pulumi.Output.all.assert_called_once_with(
            "arn:aws:iam::123456789012:oidc-provider/oidc.example.com", "https://oidc.example.com"
        )
        build = self.mock_pulumi.Output.all.return_value.apply.call_args[0][0]
        policy = json.loads(build(["arn:provider", "https://oidc.example.com"]))
        self.assertEqual(
            policy["Statement"][0]["Condition"]["StringEquals"]["oidc.example.com:sub"],
            ["system:serviceaccount:kube-system:aws-load-balancer-controller"]
        )
        self.assertEqual(self.mock_aws.iam.Role.call_args[0][0], "lb-controller-irsa-role")

    def test_password_policy(self):
        create_iam_resources(account_password_policy={"minimum_password_length": 16})
        self.mock_aws.iam.AccountPasswordPolicy.assert_called_once()
        self.assertEqual(
            self.mock_aws.iam.AccountPasswordPolicy.call_args[1]["minimum_password_length"], 16
        )

    def test_validation_errors(self):
        cases = [
            {"policies": {"bad": {"policy": "{not json"}}},
            {"policies": {"empty": {}}},
            {"roles": {"untrusted": {}}},
            {"roles": {"long": {"trusted_services": ["ec2.amazonaws.com"], "max_session_duration": 60}}},
            {"roles": {"r": {"trusted_services": ["ec2.amazonaws.com"], "policy_keys": ["missing"]}}},
            {"users": {"u": {"group_keys": ["missing"]}}},
            {"oidc_providers": {"p": {"url": "http://insecure.example.com"}}},
            {"saml_providers": {"s": {}}},
            {"service_account_roles": {"sa": {"namespace": "default", "service_account": "app"}}},
            {"service_account_roles": {"sa": {"service_account": "app", "oidc_provider_key": "p"}}},
            {"account_password_policy": {"minimum_password_length": 4}},
            {"roles": {"r": {"trusted_services": ["ec2.amazonaws.com"], "name": "r" * 65}}},
            {"roles": {"r": {"trusted_services": ["ec2.amazonaws.com"],
                             "managed_policy_arns": ["arn:aws:iam::aws:policy/deploy",
                                                     "arn:aws:iam::123456789012:policy/deploy"]}}},
            {
                "roles": {"app": {"trusted_services": ["ec2.amazonaws.com"]}},
                "service_account_roles": {"app": {
                    "namespace": "default", "service_account": "app",
                    "oidc_provider_arn": "arn:aws:iam::123456789012:oidc-provider/oidc.example.com",
                    "oidc_issuer_url": "https://oidc.example.com"
                }}
            },
        ]
        for kwargs in cases:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValidationError):
                    create_iam_resources(**kwargs)
        self.mock_aws.iam.Role.assert_not_called()
        self.mock_aws.iam.Policy.assert_not_called()


if __name__ == "__main__":
    unittest.main(verbosity=2)
