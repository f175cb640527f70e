"""
CodePipeline Module Functions
Creates a CodePipeline fed by a GitHub connection with optional build,
manual approval and deploy stages, plus the artifacts bucket and IAM roles it needs
"""

import json
import pulumi
import pulumi_aws as aws
from typing import Dict, List, Optional

from modules.naming import IAM_ROLE_NAME_MAX, bounded_name
from modules.validation import (
    BUILD_COMPUTE_TYPES,
    EXECUTION_MODES,
    PIPELINE_TYPES,
    ValidationError,
    validate_one_of,
    validate_pipeline_name,
    validate_range,
    validate_repository_id,
)

SOURCE_OUTPUT = "source_output"
BUILD_OUTPUT = "build_output"

# Permissions CodePipeline needs to hand artifacts to each deploy provider
DEPLOY_PROVIDER_ACTIONS = {
    "ECS": [
        "ecs:DescribeServices",
        "ecs:DescribeTaskDefinition",
        "ecs:DescribeTasks",
        "ecs:ListTasks",
        "ecs:RegisterTaskDefinition",
        "ecs:TagResource",
        "ecs:UpdateService",
        "iam:PassRole",
    ],
    "CodeDeploy": [
        "codedeploy:CreateDeployment",
        "codedeploy:GetApplication",
        "codedeploy:GetApplicationRevision",
        "codedeploy:GetDeployment",
        "codedeploy:GetDeploymentConfig",
        "codedeploy:RegisterApplicationRevision",
    ],
    "CloudFormation": [
        "cloudformation:CreateStack",
        "cloudformation:DeleteStack",
        "cloudformation:DescribeStacks",
        "cloudformation:UpdateStack",
        "cloudformation:CreateChangeSet",
        "cloudformation:DeleteChangeSet",
        "cloudformation:DescribeChangeSet",
        "cloudformation:ExecuteChangeSet",
        "cloudformation:SetStackPolicy",
        "cloudformation:ValidateTemplate",
        "iam:PassRole",
    ],
    "S3": [
        "s3:PutObject",
        "s3:PutObjectAcl",
    ],
}


def plan_stage_names(enable_build: bool = True, enable_approval: bool = False,
                     enable_deploy: bool = False) -> List[str]:
    """Return the enabled stage names in execution order"""
    stages = ["Source"]
    if enable_build:
        stages.append("Build")
    if enable_approval:
        stages.append("Approval")
    if enable_deploy:
        stages.append("Deploy")
    return stages


def build_pipeline_role_policy(bucket_arn: str, connection_arn: str,
                               build_project_arns: List[str] = None,
                               kms_key_arn: Optional[str] = None,
                               approval_sns_topic_arn: Optional[str] = None,
                               deploy_provider: Optional[str] = None) -> str:
    """
    Build the inline policy attached to the pipeline role

    Args:
        bucket_arn: Artifacts bucket ARN
        connection_arn: CodeStar connection ARN used by the source stage
        build_project_arns: CodeBuild projects started by the build stage
        kms_key_arn: KMS key encrypting artifacts
        approval_sns_topic_arn: Topic notified by the approval stage
        deploy_provider: Provider of the deploy action

    Returns:
        Policy document as a JSON string
    """
    statements = [
        {
            "Effect": "Allow",
            "Action": [
                "s3:GetBucketVersioning",
                "s3:GetObject",
                "s3:GetObjectVersion",
                "s3:PutObject",
                "s3:PutObjectAcl",
            ],
            "Resource": [bucket_arn, f"{bucket_arn}/*"]
        },
        {
            "Effect": "Allow",
            "Action": ["codestar-connections:UseConnection", "codeconnections:UseConnection"],
            "Resource": connection_arn
        }
    ]

    if build_project_arns:
        statements.append({
            "Effect": "Allow",
            "Action": ["codebuild:BatchGetBuilds", "codebuild:StartBuild"],
            "Resource": list(build_project_arns)
        })

    if kms_key_arn:
        statements.append({
            "Effect": "Allow",
            "Action": ["kms:Decrypt", "kms:DescribeKey", "kms:Encrypt", "kms:GenerateDataKey*", "kms:ReEncrypt*"],
            "Resource": kms_key_arn
        })

    if approval_sns_topic_arn:
        statements.append({
            "Effect": "Allow",
            "Action": "sns:Publish",
            "Resource": approval_sns_topic_arn
        })

    if deploy_provider in DEPLOY_PROVIDER_ACTIONS:
        statements.append({
            "Effect": "Allow",
            "Action": DEPLOY_PROVIDER_ACTIONS[deploy_provider],
            "Resource": "*"
        })

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": statements
    })


def build_build_role_policy(bucket_arn: str, log_group_arn: str,
                            kms_key_arn: Optional[str] = None,
                            extra_statements: List[Dict[str, any]] = None) -> str:
    statements = [
        {
            "Effect": "Allow",
            "Action": ["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"],
            "Resource": [log_group_arn, f"{log_group_arn}:*"]
        },
        {
            "Effect": "Allow",
            "Action": ["s3:GetBucketAcl", "s3:GetBucketLocation", "s3:GetObject", "s3:GetObjectVersion", "s3:PutObject"],
            "Resource": [bucket_arn, f"{bucket_arn}/*"]
        },
        {
            "Effect": "Allow",
            "Action": "ecr:GetAuthorizationToken",
            "Resource": "*"
        }
    ]

    if kms_key_arn:
        statements.append({
            "Effect": "Allow",
            "Action": ["kms:Decrypt", "kms:DescribeKey", "kms:Encrypt", "kms:GenerateDataKey*", "kms:ReEncrypt*"],
            "Resource": kms_key_arn
        })

    statements.extend(extra_statements or [])

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": statements
    })


def create_artifacts_bucket_resources(name: str, bucket_name: Optional[str] = None, force_destroy: bool = False,
                                      kms_key_arn: Optional[pulumi.Input[str]] = None,
                                      tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create S3 bucket holding pipeline artifacts

    Args:
        name: Pipeline name, used as resource name prefix
        bucket_name: Explicit bucket name, generated by Pulumi when empty
        force_destroy: Delete the bucket even if it contains objects
        kms_key_arn: KMS key for default encryption, AES256 when empty
        tags: Additional tags

    Returns:
        Dict with bucket resources and outputs
    """
    tags = tags or {}

    bucket = aws.s3.Bucket(
        f"{name}-artifacts-bucket",
        bucket=bucket_name,
        force_destroy=force_destroy,
        tags={
            **tags,
            "Name": f"{name}-artifacts",
            "Purpose": "CodePipeline artifacts",
            "Module": "codepipeline"
        }
    )

    versioning = aws.s3.BucketVersioning(
        f"{name}-artifacts-bucket-versioning",
        bucket=bucket.id,
        versioning_configuration=aws.s3.BucketVersioningVersioningConfigurationArgs(
            status="Enabled"
        )
    )

    if kms_key_arn:
        encryption_default = aws.s3.BucketServerSideEncryptionConfigurationRuleApplyServerSideEncryptionByDefaultArgs(
            sse_algorithm="aws:kms",
            kms_master_key_id=kms_key_arn
        )
    else:
        encryption_default = aws.s3.BucketServerSideEncryptionConfigurationRuleApplyServerSideEncryptionByDefaultArgs(
            sse_algorithm="AES256"
        )

    encryption = aws.s3.BucketServerSideEncryptionConfiguration(
        f"{name}-artifacts-bucket-encryption",
        bucket=bucket.id,
        rules=[
            aws.s3.BucketServerSideEncryptionConfigurationRuleArgs(
                apply_server_side_encryption_by_default=encryption_default,
                bucket_key_enabled=True
            )
        ]
    )

    public_access_block = aws.s3.BucketPublicAccessBlock(
        f"{name}-artifacts-bucket-pab",
        bucket=bucket.id,
        block_public_acls=True,
        block_public_policy=True,
        ignore_public_acls=True,
        restrict_public_buckets=True
    )

    lifecycle = aws.s3.BucketLifecycleConfiguration(
        f"{name}-artifacts-bucket-lifecycle",
        bucket=bucket.id,
        rules=[
            aws.s3.BucketLifecycleConfigurationRuleArgs(
                id="artifacts_lifecycle",
                status="Enabled",
                filter=aws.s3.BucketLifecycleConfigurationRuleFilterArgs(
                    prefix=""
                ),
                noncurrent_version_expiration=aws.s3.BucketLifecycleConfigurationRuleNoncurrentVersionExpirationArgs(
                    noncurrent_days=30
                ),
                abort_incomplete_multipart_upload=aws.s3.BucketLifecycleConfigurationRuleAbortIncompleteMultipartUploadArgs(
                    days_after_initiation=1
                )
            )
        ]
    )

    return {
        "bucket": bucket,
        "bucket_name": bucket.bucket,
        "bucket_arn": bucket.arn,
        "bucket_config": {
            "versioning": versioning,
            "encryption": encryption,
            "public_access_block": public_access_block,
            "lifecycle": lifecycle
        }
    }


def create_github_connection_resource(name: str, tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create CodeStar connection to GitHub

    The connection starts in PENDING state and must be completed once in the
    AWS console before the pipeline can pull sources.

    Args:
        name: Pipeline name
        tags: Additional tags

    Returns:
        Dict with connection resource and outputs
    """
    tags = tags or {}
    # Connection names are limited to 32 characters
    connection_name = f"{name}-github"[:32]

    connection = aws.codestarconnections.Connection(
        f"{name}-github-connection",
        name=connection_name,
        provider_type="GitHub",
        tags={
            **tags,
            "Name": connection_name,
            "Module": "codepipeline"
        }
    )

    pulumi.log.info(f"GitHub connection {connection_name} must be authorised in the AWS console after creation")

    return {
        "connection": connection,
        "connection_arn": connection.arn,
        "connection_status": connection.connection_status
    }


def create_build_project(name: str, bucket_arn: pulumi.Input[str],
                         compute_type: str = "BUILD_GENERAL1_SMALL",
                         image: str = "aws/codebuild/amazonlinux2-x86_64-standard:5.0",
                         environment_type: str = "LINUX_CONTAINER",
                         privileged_mode: bool = False,
                         buildspec: str = "buildspec.yml",
                         environment_variables: Dict[str, str] = None,
                         build_timeout: int = 60,
                         log_retention_in_days: int = 30,
                         kms_key_arn: Optional[pulumi.Input[str]] = None,
                         extra_policy_statements: List[Dict[str, any]] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create CodeBuild project run by the pipeline's build stage

    Args:
        name: Pipeline name
        bucket_arn: Artifacts bucket ARN
        compute_type: CodeBuild compute type
        image: Build image
        environment_type: CodeBuild environment type
        privileged_mode: Allow Docker builds inside the container
        buildspec: Inline buildspec or path in the source
        environment_variables: Plaintext environment variables
        build_timeout: Timeout in minutes, 5 to 2160
        log_retention_in_days: Build log retention in days
        kms_key_arn: KMS key for build artifacts
        extra_policy_statements: Additional IAM statements for the build role
        tags: Additional tags

    Returns:
        Dict with project, role, log group and outputs
    """
    tags = tags or {}
    environment_variables = environment_variables or {}

    if compute_type.startswith("BUILD_LAMBDA") and environment_type == "LINUX_CONTAINER":
        environment_type = "LINUX_LAMBDA_CONTAINER"

    log_group = aws.cloudwatch.LogGroup(
        f"{name}-build-log-group",
        name=f"/aws/codebuild/{name}",
        retention_in_days=log_retention_in_days,
        tags={
            **tags,
            "Name": f"{name}-build-log-group",
            "Module": "codepipeline"
        }
    )

    role = aws.iam.Role(
        f"{name}-build-role",
        name=bounded_name(name, "-build-role", IAM_ROLE_NAME_MAX),
        assume_role_policy=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Action": "sts:AssumeRole",
                "Effect": "Allow",
                "Principal": {"Service": "codebuild.amazonaws.com"}
            }]
        }),
        tags={
            **tags,
            "Name": f"{name}-build-role",
            "Module": "codepipeline"
        }
    )

    role_policy = aws.iam.RolePolicy(
        f"{name}-build-role-policy",
        role=role.id,
        policy=pulumi.Output.all(bucket_arn, log_group.arn, kms_key_arn).apply(
            lambda args: build_build_role_policy(args[0], args[1], args[2], extra_policy_statements)
        )
    )

    project = aws.codebuild.Project(
        f"{name}-build-project",
        name=f"{name}-build",
        service_role=role.arn,
        build_timeout=build_timeout,
        encryption_key=kms_key_arn,
        artifacts=aws.codebuild.ProjectArtifactsArgs(
            type="CODEPIPELINE"
        ),
        environment=aws.codebuild.ProjectEnvironmentArgs(
            compute_type=compute_type,
            image=image,
            type=environment_type,
            privileged_mode=privileged_mode,
            image_pull_credentials_type="CODEBUILD",
            environment_variables=[
                aws.codebuild.ProjectEnvironmentEnvironmentVariableArgs(
                    name=var_name,
                    value=value,
                    type="PLAINTEXT"
                )
                for var_name, value in environment_variables.items()
            ]
        ),
        source=aws.codebuild.ProjectSourceArgs(
            type="CODEPIPELINE",
            buildspec=buildspec
        ),
        logs_config=aws.codebuild.ProjectLogsConfigArgs(
            cloudwatch_logs=aws.codebuild.ProjectLogsConfigCloudwatchLogsArgs(
                group_name=log_group.name,
                status="ENABLED"
            )
        ),
        tags={
            **tags,
            "Name": f"{name}-build",
            "Module": "codepipeline"
        },
        opts=pulumi.ResourceOptions(depends_on=[role_policy])
    )

    return {
        "project": project,
        "role": role,
        "role_policy": role_policy,
        "log_group": log_group,
        "project_name": project.name,
        "project_arn": project.arn,
        "role_arn": role.arn
    }


def create_pipeline_role(name: str, bucket_arn: pulumi.Input[str], connection_arn: pulumi.Input[str],
                         build_project_arn: Optional[pulumi.Input[str]] = None,
                         kms_key_arn: Optional[pulumi.Input[str]] = None,
                         approval_sns_topic_arn: Optional[str] = None,
                         deploy_provider: Optional[str] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-pipeline-role",
        name=bounded_name(name, "-pipeline-role", IAM_ROLE_NAME_MAX),
        assume_role_policy=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Action": "sts:AssumeRole",
                "Effect": "Allow",
                "Principal": {"Service": "codepipeline.amazonaws.com"}
            }]
        }),
        tags={
            **tags,
            "Name": f"{name}-pipeline-role",
            "Module": "codepipeline"
        }
    )

    role_policy = aws.iam.RolePolicy(
        f"{name}-pipeline-role-policy",
        role=role.id,
        policy=pulumi.Output.all(bucket_arn, connection_arn, build_project_arn, kms_key_arn).apply(
            lambda args: build_pipeline_role_policy(
                bucket_arn=args[0],
                connection_arn=args[1],
                build_project_arns=[args[2]] if args[2] else [],
                kms_key_arn=args[3],
                approval_sns_topic_arn=approval_sns_topic_arn,
                deploy_provider=deploy_provider
            )
        )
    )

    return {
        "role": role,
        "role_policy": role_policy,
        "role_arn": role.arn
    }


def build_stages(connection_arn: pulumi.Input[str], repository_id: str, branch_name: str = "main",
                 detect_changes: bool = True,
                 build_project_name: Optional[pulumi.Input[str]] = None,
                 enable_approval: bool = False,
                 approval_sns_topic_arn: Optional[str] = None,
                 approval_message: Optional[str] = None,
                 enable_deploy: bool = False,
                 deploy_provider: Optional[str] = None,
                 deploy_configuration: Dict[str, str] = None) -> List[aws.codepipeline.PipelineStageArgs]:
    """
    Build the pipeline stages in execution order: Source, Build, Approval, Deploy

    Args:
        connection_arn: CodeStar connection ARN
        repository_id: GitHub repository as "owner/repo"
        branch_name: Branch to track
        detect_changes: Start the pipeline on new commits
        build_project_name: CodeBuild project, no build stage when empty
        enable_approval: Add a manual approval stage
        approval_sns_topic_arn: Topic notified when approval is pending
        approval_message: Message shown to approvers
        enable_deploy: Add a deploy stage
        deploy_provider: Deploy action provider
        deploy_configuration: Deploy action configuration

    Returns:
        List of stage args
    """
    stages = [
        aws.codepipeline.PipelineStageArgs(
            name="Source",
            actions=[
                aws.codepipeline.PipelineStageActionArgs(
                    name="Source",
                    category="Source",
                    owner="AWS",
                    provider="CodeStarSourceConnection",
                    version="1",
                    output_artifacts=[SOURCE_OUTPUT],
                    configuration={
                        "ConnectionArn": connection_arn,
                        "FullRepositoryId": repository_id,
                        "BranchName": branch_name,
                        "DetectChanges": "true" if detect_changes else "false",
                        "OutputArtifactFormat": "CODE_ZIP"
                    }
                )
            ]
        )
    ]

    if build_project_name:
        stages.append(aws.codepipeline.PipelineStageArgs(
            name="Build",
            actions=[
                aws.codepipeline.PipelineStageActionArgs(
                    name="Build",
                    category="Build",
                    owner="AWS",
                    provider="CodeBuild",
                    version="1",
                    input_artifacts=[SOURCE_OUTPUT],
                    output_artifacts=[BUILD_OUTPUT],
                    configuration={"ProjectName": build_project_name}
                )
            ]
        ))

    if enable_approval:
        approval_configuration = {}
        if approval_sns_topic_arn:
            approval_configuration["NotificationArn"] = approval_sns_topic_arn
        if approval_message:
            approval_configuration["CustomData"] = approval_message
        stages.append(aws.codepipeline.PipelineStageArgs(
            name="Approval",
            actions=[
                aws.codepipeline.PipelineStageActionArgs(
                    name="Approval",
                    category="Approval",
                    owner="AWS",
                    provider="Manual",
                    version="1",
                    configuration=approval_configuration or None
                )
            ]
        ))

    if enable_deploy:
        stages.append(aws.codepipeline.PipelineStageArgs(
            name="Deploy",
            actions=[
                aws.codepipeline.PipelineStageActionArgs(
                    name="Deploy",
                    category="Deploy",
                    owner="AWS",
                    provider=deploy_provider,
                    version="1",
                    input_artifacts=[BUILD_OUTPUT if build_project_name else SOURCE_OUTPUT],
                    configuration=deploy_configuration or {}
                )
            ]
        ))

    return stages


def build_triggers(triggers: List[Dict[str, List[str]]]) -> List[aws.codepipeline.PipelineTriggerArgs]:
    """Build V2 git push triggers for the Source action"""
    pushes = []
    for trigger in triggers:
        branches = tags = file_paths = None
        if trigger.get("branches_include") or trigger.get("branches_exclude"):
            branches = aws.codepipeline.PipelineTriggerGitConfigurationPushBranchesArgs(
                includes=trigger.get("branches_include"),
                excludes=trigger.get("branches_exclude")
            )
        if trigger.get("tags_include") or trigger.get("tags_exclude"):
            tags = aws.codepipeline.PipelineTriggerGitConfigurationPushTagsArgs(
                includes=trigger.get("tags_include"),
                excludes=trigger.get("tags_exclude")
            )
        if trigger.get("file_paths_include") or trigger.get("file_paths_exclude"):
            file_paths = aws.codepipeline.PipelineTriggerGitConfigurationPushFilePathsArgs(
                includes=trigger.get("file_paths_include"),
                excludes=trigger.get("file_paths_exclude")
            )
        pushes.append(aws.codepipeline.PipelineTriggerGitConfigurationPushArgs(
            branches=branches,
            tags=tags,
            file_paths=file_paths
        ))

    if not pushes:
        return []

    return [
        aws.codepipeline.PipelineTriggerArgs(
            provider_type="CodeStarSourceConnection",
            git_configuration=aws.codepipeline.PipelineTriggerGitConfigurationArgs(
                source_action_name="Source",
                pushes=pushes
            )
        )
    ]


def validate_codepipeline_inputs(pipeline_name: str, pipeline_type: str, execution_mode: str,
                                 repository_id: str, create_artifacts_bucket: bool,
                                 artifacts_bucket_name: Optional[str],
                                 create_github_connection: bool, connection_arn: Optional[str],
                                 enable_build: bool, build_compute_type: str, build_timeout: int,
                                 enable_deploy: bool, deploy_provider: Optional[str],
                                 enable_approval: bool, triggers: List[Dict[str, List[str]]],
                                 variables: List[Dict[str, str]]) -> None:
    """Validate CodePipeline module inputs, raising ValidationError on the first failure"""
    validate_pipeline_name(pipeline_name)
    validate_one_of("pipeline_type", pipeline_type, PIPELINE_TYPES)
    validate_one_of("execution_mode", execution_mode, EXECUTION_MODES)
    validate_repository_id(repository_id)

    if pipeline_type == "V1" and execution_mode != "SUPERSEDED":
        raise ValidationError("execution_mode QUEUED and PARALLEL require pipeline_type V2")
    if not create_artifacts_bucket and not artifacts_bucket_name:
        raise ValidationError("artifacts_bucket_name is required when create_artifacts_bucket is False")
    if not create_github_connection and not connection_arn:
        raise ValidationError("connection_arn is required when create_github_connection is False")

    if enable_build:
        validate_one_of("build_compute_type", build_compute_type, BUILD_COMPUTE_TYPES)
        validate_range("build_timeout", build_timeout, 5, 2160)

    if enable_deploy and not deploy_provider:
        raise ValidationError("deploy_provider is required when enable_deploy is True")

    if len(plan_stage_names(enable_build, enable_approval, enable_deploy)) < 2:
        raise ValidationError("a pipeline needs at least two stages, enable build, approval or deploy")

    if (triggers or variables) and pipeline_type != "V2":
        raise ValidationError("triggers and variables require pipeline_type V2")
    for variable in variables or []:
        if not variable.get("name"):
            raise ValidationError("variables entries require a name")


def create_codepipeline_resources(pipeline_name: str,
                                  repository_id: str,
                                  branch_name: str = "main",
                                  detect_changes: bool = True,
                                  pipeline_type: str = "V2",
                                  execution_mode: str = "SUPERSEDED",
                                  create_artifacts_bucket: bool = True,
                                  artifacts_bucket_name: Optional[str] = None,
                                  artifacts_force_destroy: bool = False,
                                  artifacts_kms_key_arn: Optional[pulumi.Input[str]] = None,
                                  pipeline_role_arn: Optional[pulumi.Input[str]] = None,
                                  create_github_connection: bool = True,
                                  connection_arn: Optional[pulumi.Input[str]] = None,
                                  enable_build: bool = True,
                                  build_compute_type: str = "BUILD_GENERAL1_SMALL",
                                  build_image: str = "aws/codebuild/amazonlinux2-x86_64-standard:5.0",
                                  build_environment_type: str = "LINUX_CONTAINER",
                                  build_privileged_mode: bool = False,
                                  buildspec: str = "buildspec.yml",
                                  build_environment_variables: Dict[str, str] = None,
                                  build_timeout: int = 60,
                                  build_log_retention_in_days: int = 30,
                                  build_extra_policy_statements: List[Dict[str, any]] = None,
                                  enable_approval: bool = False,
                                  approval_sns_topic_arn: Optional[str] = None,
                                  approval_message: Optional[str] = None,
                                  enable_deploy: bool = False,
                                  deploy_provider: Optional[str] = None,
                                  deploy_configuration: Dict[str, str] = None,
                                  triggers: List[Dict[str, List[str]]] = None,
                                  variables: List[Dict[str, str]] = None,
                                  tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create complete CodePipeline infrastructure

    Args:
        pipeline_name: Pipeline name
        repository_id: GitHub repository as "owner/repo"
        branch_name: Branch to track
        detect_changes: Start the pipeline on new commits
        pipeline_type: V1 or V2
        execution_mode: QUEUED, SUPERSEDED or PARALLEL
        create_artifacts_bucket: Create the artifacts bucket
        artifacts_bucket_name: Bucket name, required when not creating the bucket
        artifacts_force_destroy: Delete the bucket even if it contains artifacts
        artifacts_kms_key_arn: KMS key encrypting artifacts
        pipeline_role_arn: Existing pipeline role, created when empty
        create_github_connection: Create a CodeStar connection to GitHub
        connection_arn: Existing connection used when not creating one
        enable_build: Add a CodeBuild stage
        build_compute_type: CodeBuild compute type
        build_image: CodeBuild image
        build_environment_type: CodeBuild environment type
        build_privileged_mode: Allow Docker builds
        buildspec: Inline buildspec or path in the source
        build_environment_variables: Plaintext build environment variables
        build_timeout: Build timeout in minutes
        build_log_retention_in_days: Build log retention in days
        build_extra_policy_statements: Additional IAM statements for the build role
        enable_approval: Add a manual approval stage
        approval_sns_topic_arn: Topic notified when approval is pending
        approval_message: Message shown to approvers
        enable_deploy: Add a deploy stage
        deploy_provider: Deploy action provider
        deploy_configuration: Deploy action configuration
        triggers: V2 git push trigger filters
        variables: V2 pipeline variables
        tags: Additional tags

    Returns:
        Dict with all CodePipeline resources and outputs
    """
    tags = tags or {}
    triggers = triggers or []
    variables = variables or []

    validate_codepipeline_inputs(
        pipeline_name=pipeline_name,
        pipeline_type=pipeline_type,
        execution_mode=execution_mode,
        repository_id=repository_id,
        create_artifacts_bucket=create_artifacts_bucket,
        artifacts_bucket_name=artifacts_bucket_name,
        create_github_connection=create_github_connection,
        connection_arn=connection_arn,
        enable_build=enable_build,
        build_compute_type=build_compute_type,
        build_timeout=build_timeout,
        enable_deploy=enable_deploy,
        deploy_provider=deploy_provider,
        enable_approval=enable_approval,
        triggers=triggers,
        variables=variables
    )

    # Artifacts bucket
    bucket_result = {}
    if create_artifacts_bucket:
        bucket_result = create_artifacts_bucket_resources(
            pipeline_name, artifacts_bucket_name, artifacts_force_destroy, artifacts_kms_key_arn, tags
        )
        bucket_name = bucket_result["bucket_name"]
        bucket_arn = bucket_result["bucket_arn"]
    else:
        pulumi.log.info(f"Using existing artifacts bucket {artifacts_bucket_name} for pipeline {pipeline_name}")
        bucket_name = artifacts_bucket_name
        bucket_arn = f"arn:aws:s3:::{artifacts_bucket_name}"

    # Source connection
    connection_result = {}
    if create_github_connection:
        connection_result = create_github_connection_resource(pipeline_name, tags)
        connection_arn = connection_result["connection_arn"]

    # Build project
    build_result = {}
    if enable_build:
        build_result = create_build_project(
            name=pipeline_name,
            bucket_arn=bucket_arn,
            compute_type=build_compute_type,
            image=build_image,
            environment_type=build_environment_type,
            privileged_mode=build_privileged_mode,
            buildspec=buildspec,
            environment_variables=build_environment_variables,
            build_timeout=build_timeout,
            log_retention_in_days=build_log_retention_in_days,
            kms_key_arn=artifacts_kms_key_arn,
            extra_policy_statements=build_extra_policy_statements,
            tags=tags
        )

    # Pipeline role
    role_result = {}
    pipeline_depends_on = []
    if not pipeline_role_arn:
        role_result = create_pipeline_role(
            name=pipeline_name,
            bucket_arn=bucket_arn,
            connection_arn=connection_arn,
            build_project_arn=build_result.get("project_arn"),
            kms_key_arn=artifacts_kms_key_arn,
            approval_sns_topic_arn=approval_sns_topic_arn if enable_approval else None,
            deploy_provider=deploy_provider if enable_deploy else None,
            tags=tags
        )
        pipeline_role_arn = role_result["role_arn"]
        pipeline_depends_on.append(role_result["role_policy"])

    stages = build_stages(
        connection_arn=connection_arn,
        repository_id=repository_id,
        branch_name=branch_name,
        detect_changes=detect_changes,
        build_project_name=build_result.get("project_name"),
        enable_approval=enable_approval,
        approval_sns_topic_arn=approval_sns_topic_arn,
        approval_message=approval_message,
        enable_deploy=enable_deploy,
        deploy_provider=deploy_provider,
        deploy_configuration=deploy_configuration
    )

    encryption_key = None
    if artifacts_kms_key_arn:
        encryption_key = aws.codepipeline.PipelineArtifactStoreEncryptionKeyArgs(
            id=artifacts_kms_key_arn,
            type="KMS"
        )

    pipeline = aws.codepipeline.Pipeline(
        f"{pipeline_name}-pipeline",
        name=pipeline_name,
        pipeline_type=pipeline_type,
        execution_mode=execution_mode,
        role_arn=pipeline_role_arn,
        artifact_stores=[
            aws.codepipeline.PipelineArtifactStoreArgs(
                location=bucket_name,
                type="S3",
                encryption_key=encryption_key
            )
        ],
        stages=stages,
        triggers=build_triggers(triggers) or None,
        variables=[
            aws.codepipeline.PipelineVariableArgs(
                name=variable["name"],
                default_value=variable.get("default_value"),
                description=variable.get("description")
            )
            for variable in variables
        ] or None,
        tags={
            **tags,
            "Name": pipeline_name,
            "Module": "codepipeline"
        },
        opts=pulumi.ResourceOptions(depends_on=pipeline_depends_on)
    )

    return {
        "pipeline_name": pipeline.name,
        "pipeline_arn": pipeline.arn,
        "pipeline_role_arn": pipeline_role_arn,
        "artifacts_bucket_name": bucket_name,
        "connection_arn": connection_arn,
        "connection_status": connection_result.get("connection_status"),
        "build_project_name": build_result.get("project_name"),
        "build_role_arn": build_result.get("role_arn"),
        "stage_names": plan_stage_names(enable_build, enable_approval, enable_deploy),
        # Keep references to resources for dependencies
        "_pipeline": pipeline,
        "_bucket": bucket_result.get("bucket"),
        "_bucket_config": bucket_result.get("bucket_config"),
        "_connection": connection_result.get("connection"),
        "_build_project": build_result.get("project"),
        "_build_role": build_result.get("role"),
        "_pipeline_role": role_result.get("role")
    }
