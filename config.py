"""
Configuration management for the platform stack
"""

import pulumi
from typing import Dict, Optional

class Config:
    """Centralized configuration management for the EKS, ECR, IAM and CodePipeline modules"""

    def __init__(self):
        self.config = pulumi.Config()

        # AWS Configuration
        self.aws_region = pulumi.Config("aws").get("region") or "us-east-1"
        self.project_name = self.config.get("project_name") or pulumi.get_project()
        self.environment = self.config.get("environment") or pulumi.get_stack()

        # Module switches
        self.enable_eks = self._get_bool("enable_eks", True)
        self.enable_ecr = self._get_bool("enable_ecr", True)
        self.enable_iam = self._get_bool("enable_iam", False)
        self.enable_codepipeline = self._get_bool("enable_codepipeline", False)

        # Cluster Configuration
        self.cluster_name = self.config.get("cluster_name") or self.project_name
        self.cluster_version = self.config.get("cluster_version") or "1.30"
        self.subnet_ids = self.config.require_object("subnet_ids") if self.enable_eks else []
        self.security_group_ids = self.config.get_object("security_group_ids") or []
        self.endpoint_private_access = self._get_bool("endpoint_private_access", False)
        self.endpoint_public_access = self._get_bool("endpoint_public_access", True)
        self.public_access_cidrs = self.config.get_object("public_access_cidrs") or ["0.0.0.0/0"]
        self.authentication_mode = self.config.get("authentication_mode") or "API_AND_CONFIG_MAP"
        self.access_entries = self.config.get_object("access_entries") or {}
        self.enable_irsa = self._get_bool("enable_irsa", True)
        self.addons = self.config.get_object("addons")

        # Node Configuration
        self.node_instance_types = self.config.get_object("node_instance_types") or ["t3.medium"]
        self.node_ami_type = self.config.get("node_ami_type") or "AL2023_x86_64_STANDARD"
        self.node_desired_size = self._get_int("node_desired_size", 2)
        self.node_max_size = self._get_int("node_max_size", 3)
        self.node_min_size = self._get_int("node_min_size", 1)
        self.node_disk_size = self._get_int("node_disk_size", 20)
        self.node_labels = self.config.get_object("node_labels") or {}
        self.node_taints = self.config.get_object("node_taints") or []
        self.enable_spot_instances = self._get_bool("enable_spot_instances", False)

        # Encryption
        self.existing_kms_key_arn = self.config.get("existing_kms_key_arn") or ""
        self.kms_key_deletion_window = self._get_int("kms_key_deletion_window", 7)

        # Logging Configuration
        self.cluster_enabled_log_types = self.config.get_object("cluster_enabled_log_types") or ["api", "audit", "authenticator"]
        self.cloudwatch_log_group_retention_in_days = self._get_int("cloudwatch_log_group_retention_in_days", 30)

        # ECR Configuration
        self.ecr_repository_name = self.config.get("ecr_repository_name") or self.project_name.lower()
        self.ecr_image_tag_mutability = self.config.get("ecr_image_tag_mutability") or "MUTABLE"
        self.ecr_scan_on_push = self._get_bool("ecr_scan_on_push", True)
        self.ecr_force_delete = self._get_bool("ecr_force_delete", False)
        self.ecr_encryption_type = self.config.get("ecr_encryption_type") or "AES256"
        self.ecr_untagged_image_expiry_days = self._get_int("ecr_untagged_image_expiry_days", 14)
        self.ecr_max_image_count = self._get_int("ecr_max_image_count", 30)
        self.ecr_tag_prefixes = self.config.get_object("ecr_tag_prefixes") or []
        self.ecr_read_access_arns = self.config.get_object("ecr_read_access_arns") or []
        self.ecr_push_access_arns = self.config.get_object("ecr_push_access_arns") or []
        self.ecr_replication_destinations = self.config.get_object("ecr_replication_destinations") or []
        self.ecr_pull_through_cache_rules = self.config.get_object("ecr_pull_through_cache_rules") or {}

        # IAM Configuration
        self.iam_policies = self.config.get_object("iam_policies") or {}
        self.iam_roles = self.config.get_object("iam_roles") or {}
        self.iam_groups = self.config.get_object("iam_groups") or {}
        self.iam_users = self.config.get_object("iam_users") or {}
        self.iam_oidc_providers = self.config.get_object("iam_oidc_providers") or {}
        self.iam_saml_providers = self.config.get_object("iam_saml_providers") or {}
        self.iam_service_account_roles = self.config.get_object("iam_service_account_roles") or {}
        self.iam_account_password_policy = self.config.get_object("iam_account_password_policy")

        # CodePipeline Configuration
        self.pipeline_name = self.config.get("pipeline_name") or f"{self.project_name}-pipeline"
        self.repository_id = self.config.require("repository_id") if self.enable_codepipeline else ""
        self.branch_name = self.config.get("branch_name") or "main"
        self.connection_arn = self.config.get("connection_arn") or ""
        self.buildspec = self.config.get("buildspec") or "buildspec.yml"
        self.build_compute_type = self.config.get("build_compute_type") or "BUILD_GENERAL1_SMALL"
        self.build_privileged_mode = self._get_bool("build_privileged_mode", False)
        self.build_timeout = self._get_int("build_timeout", 60)
        self.enable_approval = self._get_bool("enable_approval", False)
        self.approval_sns_topic_arn = self.config.get("approval_sns_topic_arn")
        self.enable_deploy = self._get_bool("enable_deploy", False)
        self.deploy_provider = self.config.get("deploy_provider")
        self.deploy_configuration = self.config.get_object("deploy_configuration") or {}
        self.pipeline_triggers = self.config.get_object("pipeline_triggers") or []
        self.pipeline_variables = self.config.get_object("pipeline_variables") or []

        # Additional tags
        self.additional_tags = self.config.get_object("tags") or {}

    def _get_bool(self, key: str, default: bool) -> bool:
        value = self.config.get_bool(key)
        return default if value is None else value

    def _get_int(self, key: str, default: int) -> int:
        value = self.config.get_int(key)
        return default if value is None else value

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all resources"""
        base_tags = {
            "Environment": self.environment,
            "Project": self.project_name,
            "ManagedBy": "pulumi"
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def capacity_type(self) -> str:
        """Get node group capacity type based on spot instance configuration"""
        return "SPOT" if self.enable_spot_instances else "ON_DEMAND"

    @property
    def kms_key_arn(self) -> Optional[str]:
        """Existing KMS key for cluster secrets, None when the module should create one"""
        return self.existing_kms_key_arn or None

    @property
    def create_github_connection(self) -> bool:
        return not self.connection_arn

def get_config() -> Config:
    """Get the global configuration instance"""
    return Config()
