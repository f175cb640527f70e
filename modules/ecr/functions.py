"""
ECR Module Functions
Creates a private ECR repository with optional KMS key, lifecycle policy,
repository policy, replication, public repository and pull-through cache rules
"""

import json
import pulumi
import pulumi_aws as aws
from typing import Dict, List, Optional

from modules.validation import (
    ECR_ENCRYPTION_TYPES,
    IMAGE_TAG_MUTABILITY,
    REGISTRY_SCAN_TYPES,
    ValidationError,
    validate_json,
    validate_kms_key_deletion_window,
    validate_one_of,
    validate_range,
    validate_repository_name,
)

PULL_ACTIONS = [
    "ecr:BatchCheckLayerAvailability",
    "ecr:BatchGetImage",
    "ecr:GetDownloadUrlForLayer",
]

PUSH_ACTIONS = [
    "ecr:CompleteLayerUpload",
    "ecr:InitiateLayerUpload",
    "ecr:PutImage",
    "ecr:UploadLayerPart",
]


def build_lifecycle_policy(untagged_image_expiry_days: Optional[int] = 14,
                           max_image_count: Optional[int] = 30,
                           tag_prefixes: List[str] = None) -> str:
    """
    Build an ECR lifecycle policy document

    Untagged images expire first, then only the newest max_image_count images
    are kept. The catch-all rule must carry the highest priority number.

    Args:
        untagged_image_expiry_days: Expire untagged images after this many days, None to skip
        max_image_count: Number of images to keep, None to skip
        tag_prefixes: Limit the count rule to tags with these prefixes

    Returns:
        Lifecycle policy as a JSON string
    """
    rules = []

    if untagged_image_expiry_days:
        rules.append({
            "rulePriority": len(rules) + 1,
            "description": f"Expire untagged images older than {untagged_image_expiry_days} days",
            "selection": {
                "tagStatus": "untagged",
                "countType": "sinceImagePushed",
                "countUnit": "days",
                "countNumber": untagged_image_expiry_days
            },
            "action": {"type": "expire"}
        })

    if max_image_count:
        selection = {"tagStatus": "any"}
        if tag_prefixes:
            selection = {"tagStatus": "tagged", "tagPrefixList": list(tag_prefixes)}
        rules.append({
            "rulePriority": len(rules) + 1,
            "description": f"Keep last {max_image_count} images",
            "selection": {
                **selection,
                "countType": "imageCountMoreThan",
                "countNumber": max_image_count
            },
            "action": {"type": "expire"}
        })

    return json.dumps({"rules": rules})


def build_repository_policy(read_access_arns: List[str] = None, push_access_arns: List[str] = None) -> Optional[str]:
    """Build a repository policy granting pull and push to the given principals, None when both are empty"""
    statements = []

    if read_access_arns:
        statements.append({
            "Sid": "ReadOnlyAccess",
            "Effect": "Allow",
            "Principal": {"AWS": list(read_access_arns)},
            "Action": PULL_ACTIONS
        })

    if push_access_arns:
        statements.append({
            "Sid": "ReadWriteAccess",
            "Effect": "Allow",
            "Principal": {"AWS": list(push_access_arns)},
            "Action": PULL_ACTIONS + PUSH_ACTIONS
        })

    if not statements:
        return None

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": statements
    })


def create_repository_kms_key(name: str, repository_name: str, deletion_window_in_days: int = 7,
                              tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create KMS key for repository encryption

    Args:
        name: Resource name prefix
        repository_name: Repository the key protects
        deletion_window_in_days: Waiting period before the key is deleted
        tags: Additional tags

    Returns:
        Dict with key resource and outputs
    """
    tags = tags or {}

    kms_key = aws.kms.Key(
        f"{name}-ecr-kms-key",
        description=f"KMS key for {repository_name} ECR encryption",
        deletion_window_in_days=deletion_window_in_days,
        enable_key_rotation=True,
        tags={
            **tags,
            "Name": f"{name}-ecr-kms-key",
            "Module": "ecr"
        }
    )

    kms_alias = aws.kms.Alias(
        f"{name}-ecr-kms-alias",
        name=f"alias/{name}-ecr",
        target_key_id=kms_key.key_id
    )

    return {
        "kms_key": kms_key,
        "kms_alias": kms_alias,
        "kms_key_arn": kms_key.arn
    }


def create_repository(name: str, repository_name: str,
                      image_tag_mutability: str = "MUTABLE",
                      scan_on_push: bool = True,
                      force_delete: bool = False,
                      encryption_type: str = "AES256",
                      kms_key_arn: Optional[pulumi.Input[str]] = None,
                      tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create private ECR repository

    Args:
        name: Resource name prefix
        repository_name: Repository name, may contain namespaces separated by '/'
        image_tag_mutability: MUTABLE or IMMUTABLE
        scan_on_push: Scan images for vulnerabilities when pushed
        force_delete: Delete the repository even if it contains images
        encryption_type: AES256 or KMS
        kms_key_arn: KMS key ARN when encryption_type is KMS
        tags: Additional tags

    Returns:
        Dict with repository resource and outputs
    """
    tags = tags or {}

    encryption_configuration = aws.ecr.RepositoryEncryptionConfigurationArgs(
        encryption_type=encryption_type,
        kms_key=kms_key_arn if encryption_type == "KMS" else None
    )

    repository = aws.ecr.Repository(
        f"{name}-repository",
        name=repository_name,
        image_tag_mutability=image_tag_mutability,
        force_delete=force_delete,
        image_scanning_configuration=aws.ecr.RepositoryImageScanningConfigurationArgs(
            scan_on_push=scan_on_push
        ),
        encryption_configurations=[encryption_configuration],
        tags={
            **tags,
            "Name": repository_name,
            "Module": "ecr"
        }
    )

    return {
        "repository": repository,
        "repository_name": repository.name,
        "repository_arn": repository.arn,
        "repository_url": repository.repository_url,
        "registry_id": repository.registry_id
    }


def attach_lifecycle_policy(name: str, repository_name: pulumi.Input[str], policy: str) -> Dict[str, any]:
    lifecycle_policy = aws.ecr.LifecyclePolicy(
        f"{name}-lifecycle",
        repository=repository_name,
        policy=policy
    )

    return {
        "lifecycle_policy": lifecycle_policy,
        "lifecycle_policy_text": lifecycle_policy.policy
    }


def create_repository_policy(name: str, repository_name: pulumi.Input[str], policy: str) -> Dict[str, any]:
    repository_policy = aws.ecr.RepositoryPolicy(
        f"{name}-repository-policy",
        repository=repository_name,
        policy=policy
    )

    return {"repository_policy": repository_policy}


def create_replication_configuration(name: str, destinations: List[Dict[str, str]],
                                     repository_prefixes: List[str] = None) -> Dict[str, any]:
    """
    Create registry replication rules

    Replication is a registry-wide setting, so only one module call per
    account and region should enable it.

    Args:
        name: Resource name prefix
        destinations: List of dicts with region and optional registry_id
        repository_prefixes: Only replicate repositories starting with these prefixes

    Returns:
        Dict with replication configuration resource
    """
    account_id = None
    if any(not d.get("registry_id") for d in destinations):
        account_id = aws.get_caller_identity().account_id

    repository_filters = None
    if repository_prefixes:
        repository_filters = [
            aws.ecr.ReplicationConfigurationReplicationConfigurationRuleRepositoryFilterArgs(
                filter=prefix,
                filter_type="PREFIX_MATCH"
            )
            for prefix in repository_prefixes
        ]

    replication = aws.ecr.ReplicationConfiguration(
        f"{name}-replication",
        replication_configuration=aws.ecr.ReplicationConfigurationReplicationConfigurationArgs(
            rules=[
                aws.ecr.ReplicationConfigurationReplicationConfigurationRuleArgs(
                    destinations=[
                        aws.ecr.ReplicationConfigurationReplicationConfigurationRuleDestinationArgs(
                            region=destination["region"],
                            registry_id=destination.get("registry_id") or account_id
                        )
                        for destination in destinations
                    ],
                    repository_filters=repository_filters
                )
            ]
        )
    )

    return {"replication": replication}


def create_public_gallery_repository(name: str, repository_name: str, catalog_data: Dict[str, any] = None,
                                     force_destroy: bool = False, provider: Optional[pulumi.ProviderResource] = None,
                                     tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create ECR Public repository

    ECR Public only exists in us-east-1; pass a provider for that region when
    the stack runs elsewhere.

    Args:
        name: Resource name prefix
        repository_name: Public repository name
        catalog_data: Gallery metadata (about_text, description, usage_text,
            architectures, operating_systems, logo_image_blob)
        force_destroy: Delete the repository even if it contains images
        provider: AWS provider pinned to us-east-1
        tags: Additional tags

    Returns:
        Dict with public repository resource and outputs
    """
    tags = tags or {}
    catalog_data = catalog_data or {}

    public_repository = aws.ecrpublic.Repository(
        f"{name}-public-repository",
        repository_name=repository_name,
        force_destroy=force_destroy,
        catalog_data=aws.ecrpublic.RepositoryCatalogDataArgs(
            about_text=catalog_data.get("about_text"),
            description=catalog_data.get("description"),
            usage_text=catalog_data.get("usage_text"),
            architectures=catalog_data.get("architectures"),
            operating_systems=catalog_data.get("operating_systems"),
            logo_image_blob=catalog_data.get("logo_image_blob")
        ),
        tags={
            **tags,
            "Name": repository_name,
            "Module": "ecr"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "public_repository": public_repository,
        "public_repository_uri": public_repository.repository_uri
    }


def create_pull_through_cache_rules(name: str, rules: Dict[str, Dict[str, str]]) -> Dict[str, any]:
    """
    Create pull-through cache rules, one per repository prefix

    Args:
        name: Resource name prefix
        rules: Mapping of ECR repository prefix to upstream_registry_url and optional credential_arn

    Returns:
        Dict with cache rule resources
    """
    cache_rules = {}

    for prefix, rule in rules.items():
        cache_rules[prefix] = aws.ecr.PullThroughCacheRule(
            f"{name}-{prefix}-cache",
            ecr_repository_prefix=prefix,
            upstream_registry_url=rule["upstream_registry_url"],
            credential_arn=rule.get("credential_arn")
        )

    return {"pull_through_cache_rules": cache_rules}


def create_registry_scanning_configuration(name: str, scan_type: str,
                                           rules: List[Dict[str, any]] = None) -> Dict[str, any]:
    scanning = aws.ecr.RegistryScanningConfiguration(
        f"{name}-registry-scanning",
        scan_type=scan_type,
        rules=[
            aws.ecr.RegistryScanningConfigurationRuleArgs(
                scan_frequency=rule.get("scan_frequency", "SCAN_ON_PUSH"),
                repository_filters=[
                    aws.ecr.RegistryScanningConfigurationRuleRepositoryFilterArgs(
                        filter=rule.get("filter", "*"),
                        filter_type="WILDCARD"
                    )
                ]
            )
            for rule in rules or []
        ]
    )

    return {"registry_scanning": scanning}


def create_ecr_resources(repository_name: str,
                         image_tag_mutability: str = "MUTABLE",
                         scan_on_push: bool = True,
                         force_delete: bool = False,
                         encryption_type: str = "AES256",
                         create_kms_key: bool = True,
                         kms_key_arn: Optional[pulumi.Input[str]] = None,
                         kms_key_deletion_window: int = 7,
                         create_lifecycle_policy: bool = True,
                         lifecycle_policy: any = None,
                         untagged_image_expiry_days: Optional[int] = 14,
                         max_image_count: Optional[int] = 30,
                         tag_prefixes: List[str] = None,
                         repository_policy: any = None,
                         read_access_arns: List[str] = None,
                         push_access_arns: List[str] = None,
                         enable_replication: bool = False,
                         replication_destinations: List[Dict[str, str]] = None,
                         replication_filters: List[str] = None,
                         create_public_repository: bool = False,
                         public_catalog_data: Dict[str, any] = None,
                         public_provider: Optional[pulumi.ProviderResource] = None,
                         pull_through_cache_rules: Dict[str, Dict[str, str]] = None,
                         registry_scan_type: Optional[str] = None,
                         registry_scan_rules: List[Dict[str, any]] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create complete ECR infrastructure

    Args:
        repository_name: Repository name
        image_tag_mutability: MUTABLE or IMMUTABLE
        scan_on_push: Scan images when pushed
        force_delete: Delete the repository even if it contains images
        encryption_type: AES256 or KMS
        create_kms_key: Create a KMS key when encryption_type is KMS
        kms_key_arn: Existing KMS key used when create_kms_key is False
        kms_key_deletion_window: KMS key deletion window, 7 to 30 days
        create_lifecycle_policy: Attach a lifecycle policy
        lifecycle_policy: Full lifecycle policy document, generated when empty
        untagged_image_expiry_days: Generated rule, expire untagged images after N days
        max_image_count: Generated rule, keep only the newest N images
        tag_prefixes: Generated rule, scope the count rule to these tag prefixes
        repository_policy: Full repository policy document
        read_access_arns: Principals allowed to pull, used when repository_policy is empty
        push_access_arns: Principals allowed to push, used when repository_policy is empty
        enable_replication: Configure registry replication
        replication_destinations: List of dicts with region and optional registry_id
        replication_filters: Repository prefixes to replicate
        create_public_repository: Also create an ECR Public repository
        public_catalog_data: ECR Public gallery metadata
        public_provider: AWS provider pinned to us-east-1 for ECR Public
        pull_through_cache_rules: Mapping of prefix to upstream registry settings
        registry_scan_type: BASIC or ENHANCED registry scanning, None to leave unmanaged
        registry_scan_rules: Registry scanning rules
        tags: Additional tags

    Returns:
        Dict with all ECR resources and outputs
    """
    tags = tags or {}
    replication_destinations = replication_destinations or []
    pull_through_cache_rules = pull_through_cache_rules or {}

    validate_repository_name(repository_name)
    validate_one_of("image_tag_mutability", image_tag_mutability, IMAGE_TAG_MUTABILITY)
    validate_one_of("encryption_type", encryption_type, ECR_ENCRYPTION_TYPES)
    validate_kms_key_deletion_window(kms_key_deletion_window)
    if untagged_image_expiry_days is not None:
        validate_range("untagged_image_expiry_days", untagged_image_expiry_days, 1, 3650)
    if max_image_count is not None:
        validate_range("max_image_count", max_image_count, 1, 10000)
    if encryption_type == "KMS" and not create_kms_key and not kms_key_arn:
        raise ValidationError("kms_key_arn is required when encryption_type is KMS and create_kms_key is False")
    if enable_replication and not replication_destinations:
        raise ValidationError("replication_destinations must not be empty when enable_replication is True")
    for destination in replication_destinations:
        if not destination.get("region"):
            raise ValidationError("replication_destinations entries require a region")
    for prefix, rule in pull_through_cache_rules.items():
        if not rule.get("upstream_registry_url"):
            raise ValidationError(f"pull_through_cache_rules[{prefix!r}] requires upstream_registry_url")
    if registry_scan_type is not None:
        validate_one_of("registry_scan_type", registry_scan_type, REGISTRY_SCAN_TYPES)

    if lifecycle_policy:
        lifecycle_policy = validate_json("lifecycle_policy", lifecycle_policy)
    if repository_policy:
        repository_policy = validate_json("repository_policy", repository_policy)

    name = repository_name.replace("/", "-")

    if force_delete:
        pulumi.log.warn(f"ECR repository {repository_name} will be deleted together with its images")

    # Encryption key
    kms_result = {}
    if encryption_type == "KMS":
        if create_kms_key:
            kms_result = create_repository_kms_key(name, repository_name, kms_key_deletion_window, tags)
            kms_key_arn = kms_result["kms_key_arn"]
        else:
            pulumi.log.info(f"Using existing KMS key for ECR repository {repository_name}")
    else:
        kms_key_arn = None

    repository_result = create_repository(
        name=name,
        repository_name=repository_name,
        image_tag_mutability=image_tag_mutability,
        scan_on_push=scan_on_push,
        force_delete=force_delete,
        encryption_type=encryption_type,
        kms_key_arn=kms_key_arn,
        tags=tags
    )
    repository = repository_result["repository"]

    # Lifecycle policy
    lifecycle_result = {}
    if create_lifecycle_policy:
        policy_text = lifecycle_policy or build_lifecycle_policy(
            untagged_image_expiry_days, max_image_count, tag_prefixes
        )
        lifecycle_result = attach_lifecycle_policy(name, repository.name, policy_text)

    # Repository policy
    repository_policy_result = {}
    policy_text = repository_policy or build_repository_policy(read_access_arns, push_access_arns)
    if policy_text:
        repository_policy_result = create_repository_policy(name, repository.name, policy_text)

    # Replication
    replication_result = {}
    if enable_replication:
        replication_result = create_replication_configuration(name, replication_destinations, replication_filters)

    # Public repository
    public_result = {}
    if create_public_repository:
        public_result = create_public_gallery_repository(
            name=name,
            repository_name=repository_name,
            catalog_data=public_catalog_data,
            force_destroy=force_delete,
            provider=public_provider,
            tags=tags
        )

    cache_result = create_pull_through_cache_rules(name, pull_through_cache_rules)

    scanning_result = {}
    if registry_scan_type:
        scanning_result = create_registry_scanning_configuration(name, registry_scan_type, registry_scan_rules)

    return {
        "repository_name": repository_result["repository_name"],
        "repository_arn": repository_result["repository_arn"],
        "repository_url": repository_result["repository_url"],
        "registry_id": repository_result["registry_id"],
        "kms_key_arn": kms_key_arn,
        "public_repository_uri": public_result.get("public_repository_uri"),
        "lifecycle_policy_text": lifecycle_result.get("lifecycle_policy_text"),
        # Keep references to resources for dependencies
        "_repository": repository,
        "_kms_key": kms_result.get("kms_key"),
        "_lifecycle_policy": lifecycle_result.get("lifecycle_policy"),
        "_repository_policy": repository_policy_result.get("repository_policy"),
        "_replication": replication_result.get("replication"),
        "_public_repository": public_result.get("public_repository"),
        "_pull_through_cache_rules": cache_result["pull_through_cache_rules"],
        "_registry_scanning": scanning_result.get("registry_scanning")
    }

