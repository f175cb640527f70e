"""
Container delivery platform on AWS
EKS cluster, ECR repository, IAM and CodePipeline composed from function-based modules
"""
import pulumi
from config import get_config
from modules import (
    create_codepipeline_resources,
    create_ecr_resources,
    create_eks_resources,
    create_iam_resources,
)

config = get_config()
tags = config.common_tags

eks = None
ecr = None

# 1. EKS cluster
if config.enable_eks:
    eks = create_eks_resources(
        cluster_name=config.cluster_name,
        subnet_ids=config.subnet_ids,
        cluster_version=config.cluster_version,
        security_group_ids=config.security_group_ids,
        endpoint_private_access=config.endpoint_private_access,
        endpoint_public_access=config.endpoint_public_access,
        public_access_cidrs=config.public_access_cidrs,
        authentication_mode=config.authentication_mode,
        access_entries=config.access_entries,
        enabled_log_types=config.cluster_enabled_log_types,
        log_retention_in_days=config.cloudwatch_log_group_retention_in_days,
        create_kms_key=config.kms_key_arn is None,
        kms_key_arn=config.kms_key_arn,
        kms_key_deletion_window=config.kms_key_deletion_window,
        node_group_instance_types=config.node_instance_types,
        node_group_capacity_type=config.capacity_type,
        node_group_ami_type=config.node_ami_type,
        node_group_disk_size=config.node_disk_size,
        node_group_desired_size=config.node_desired_size,
        node_group_min_size=config.node_min_size,
        node_group_max_size=config.node_max_size,
        node_group_labels=config.node_labels,
        node_group_taints=config.node_taints,
        enable_irsa=config.enable_irsa,
        addons=config.addons,
        tags=tags
    )

# 2. ECR repository
if config.enable_ecr:
    ecr = create_ecr_resources(
        repository_name=config.ecr_repository_name,
        image_tag_mutability=config.ecr_image_tag_mutability,
        scan_on_push=config.ecr_scan_on_push,
        force_delete=config.ecr_force_delete,
        encryption_type=config.ecr_encryption_type,
        untagged_image_expiry_days=config.ecr_untagged_image_expiry_days,
        max_image_count=config.ecr_max_image_count,
        tag_prefixes=config.ecr_tag_prefixes,
        read_access_arns=config.ecr_read_access_arns,
        push_access_arns=config.ecr_push_access_arns,
        enable_replication=bool(config.ecr_replication_destinations),
        replication_destinations=config.ecr_replication_destinations,
        pull_through_cache_rules=config.ecr_pull_through_cache_rules,
        tags=tags
    )

# 3. IAM, service account roles trust the cluster's OIDC provider unless configured otherwise
if config.enable_iam:
    service_account_roles = {}
    for key, spec in config.iam_service_account_roles.items():
        spec = dict(spec)
        if eks and config.enable_irsa and not spec.get("oidc_provider_key"):
            spec.setdefault("oidc_provider_arn", eks["oidc_provider_arn"])
            spec.setdefault("oidc_issuer_url", eks["cluster_oidc_issuer_url"])
        service_account_roles[key] = spec

    iam = create_iam_resources(
        name_prefix=config.project_name,
        policies=config.iam_policies,
        roles=config.iam_roles,
        groups=config.iam_groups,
        users=config.iam_users,
        oidc_providers=config.iam_oidc_providers,
        saml_providers=config.iam_saml_providers,
        service_account_roles=service_account_roles,
        account_password_policy=config.iam_account_password_policy,
        tags=tags
    )

    pulumi.export("iam_role_arns", iam["role_arns"])
    pulumi.export("iam_policy_arns", iam["policy_arns"])
    pulumi.export("service_account_role_arns", iam["service_account_role_arns"])

# 4. CodePipeline, builds push to the ECR repository when one is managed here
if config.enable_codepipeline:
    build_environment_variables = {"AWS_REGION": config.aws_region}
    build_extra_policy_statements = []
    if ecr:
        build_environment_variables["REPOSITORY_URI"] = ecr["repository_url"]
        build_extra_policy_statements.append({
            "Effect": "Allow",
            "Action": [
                "ecr:BatchCheckLayerAvailability",
                "ecr:CompleteLayerUpload",
                "ecr:InitiateLayerUpload",
                "ecr:PutImage",
                "ecr:UploadLayerPart"
            ],
            "Resource": "*"
        })

    pipeline = create_codepipeline_resources(
        pipeline_name=config.pipeline_name,
        repository_id=config.repository_id,
        branch_name=config.branch_name,
        create_github_connection=config.create_github_connection,
        connection_arn=config.connection_arn or None,
        buildspec=config.buildspec,
        build_compute_type=config.build_compute_type,
        build_privileged_mode=config.build_privileged_mode,
        build_timeout=config.build_timeout,
        build_environment_variables=build_environment_variables,
        build_extra_policy_statements=build_extra_policy_statements,
        enable_approval=config.enable_approval,
        approval_sns_topic_arn=config.approval_sns_topic_arn,
        enable_deploy=config.enable_deploy,
        deploy_provider=config.deploy_provider,
        deploy_configuration=config.deploy_configuration,
        triggers=config.pipeline_triggers,
        variables=config.pipeline_variables,
        tags=tags
    )

    pulumi.export("pipeline_name", pipeline["pipeline_name"])
    pulumi.export("pipeline_arn", pipeline["pipeline_arn"])
    pulumi.export("pipeline_connection_arn", pipeline["connection_arn"])
    pulumi.export("pipeline_connection_status", pipeline["connection_status"])
    pulumi.export("pipeline_stages", pipeline["stage_names"])

# Exports
if eks:
    pulumi.export("cluster_name", eks["cluster_name"])
    pulumi.export("cluster_endpoint", eks["cluster_endpoint"])
    pulumi.export("cluster_oidc_issuer_url", eks["cluster_oidc_issuer_url"])
    pulumi.export("oidc_provider_arn", eks["oidc_provider_arn"])
    pulumi.export("kubeconfig_command",
        pulumi.Output.concat(
            f"aws eks update-kubeconfig --region {config.aws_region} --name ",
            eks["cluster_name"]
        ))

if ecr:
    pulumi.export("repository_url", ecr["repository_url"])
    pulumi.export("repository_arn", ecr["repository_arn"])
