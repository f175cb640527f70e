"""
EKS Module Functions
Creates EKS cluster, managed node group, OIDC provider, addons and access entries
Each optional piece is a plain conditional so the caller decides what exists
"""

import json
import pulumi
import pulumi_aws as aws
from typing import Dict, List, Optional

from modules.naming import IAM_ROLE_NAME_MAX, NODE_GROUP_NAME_MAX, bounded_name
from modules.validation import (
    AMI_TYPES,
    AUTHENTICATION_MODES,
    CAPACITY_TYPES,
    CLUSTER_LOG_TYPES,
    TAINT_EFFECTS,
    ValidationError,
    validate_all_of,
    validate_cluster_name,
    validate_kms_key_deletion_window,
    validate_length,
    validate_one_of,
    validate_range,
    validate_scaling,
    validate_subnet_ids,
)

# Root CA thumbprint for oidc.eks.<region>.amazonaws.com
EKS_OIDC_THUMBPRINT = "9e99a48a9960b14926bb7f3b02e22da2b0ab7280"

DEFAULT_ADDONS = {
    "vpc-cni": {"before_compute": True},
    "kube-proxy": {"before_compute": True},
    "coredns": {},
}

NODE_GROUP_POLICIES = [
    ("worker", "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy"),
    ("cni", "arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy"),
    ("registry", "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryReadOnly"),
    ("ssm", "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"),
]


def _service_assume_role_policy(service: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Action": "sts:AssumeRole",
            "Effect": "Allow",
            "Principal": {"Service": service}
        }]
    })


def create_cluster_role(name: str, tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM role assumed by the EKS control plane

    Args:
        name: Cluster name
        tags: Additional tags

    Returns:
        Dict with role resource and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-cluster-role",
        name=bounded_name(name, "-cluster-role", IAM_ROLE_NAME_MAX),
        assume_role_policy=_service_assume_role_policy("eks.amazonaws.com"),
        tags={
            **tags,
            "Name": f"{name}-cluster-role",
            "Module": "eks"
        }
    )

    policy_attachment = aws.iam.RolePolicyAttachment(
        f"{name}-cluster-policy",
        policy_arn="arn:aws:iam::aws:policy/AmazonEKSClusterPolicy",
        role=role.name
    )

    return {
        "role": role,
        "policy_attachment": policy_attachment,
        "role_arn": role.arn
    }


def create_node_group_role(name: str, tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM role assumed by managed node group instances

    Args:
        name: Cluster name
        tags: Additional tags

    Returns:
        Dict with role resource, policy attachments and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-ng-role",
        name=bounded_name(name, "-ng-role", IAM_ROLE_NAME_MAX),
        assume_role_policy=_service_assume_role_policy("ec2.amazonaws.com"),
        tags={
            **tags,
            "Name": f"{name}-node-group-role",
            "Module": "eks"
        }
    )

    policy_attachments = {}
    for policy_name, policy_arn in NODE_GROUP_POLICIES:
        policy_attachments[f"{policy_name}_policy"] = aws.iam.RolePolicyAttachment(
            f"{name}-node-{policy_name}-policy",
            policy_arn=policy_arn,
            role=role.name
        )

    return {
        "role": role,
        "policy_attachments": policy_attachments,
        "role_arn": role.arn
    }


def create_control_plane_log_group(name: str, retention_days: int = 30, tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create CloudWatch log group for EKS control plane logs

    Args:
        name: Cluster name
        retention_days: Log retention in days
        tags: Additional tags

    Returns:
        Dict with log group resource and outputs
    """
    tags = tags or {}

    log_group = aws.cloudwatch.LogGroup(
        f"{name}-eks-log-group",
        name=f"/aws/eks/{name}/cluster",
        retention_in_days=retention_days,
        tags={
            **tags,
            "Name": f"{name}-eks-log-group",
            "Module": "eks"
        }
    )

    return {
        "log_group": log_group,
        "log_group_name": log_group.name
    }


def create_secrets_kms_key(name: str, deletion_window_in_days: int = 7, enable_key_rotation: bool = True,
                           tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create KMS key used to encrypt Kubernetes secrets

    Args:
        name: Cluster name
        deletion_window_in_days: Waiting period before the key is deleted
        enable_key_rotation: Rotate the key material yearly
        tags: Additional tags

    Returns:
        Dict with key resource and outputs
    """
    tags = tags or {}

    kms_key = aws.kms.Key(
        f"{name}-eks-kms-key",
        description=f"EKS Secret Encryption Key for {name}",
        deletion_window_in_days=deletion_window_in_days,
        enable_key_rotation=enable_key_rotation,
        tags={
            **tags,
            "Name": f"{name}-eks-kms-key",
            "Module": "eks"
        }
    )

    kms_alias = aws.kms.Alias(
        f"{name}-eks-kms-alias",
        name=f"alias/{name}-eks",
        target_key_id=kms_key.key_id
    )

    return {
        "kms_key": kms_key,
        "kms_alias": kms_alias,
        "kms_key_arn": kms_key.arn
    }


def create_eks_cluster(name: str, version: str, role_arn: pulumi.Input[str],
                       subnet_ids: List[pulumi.Input[str]],
                       security_group_ids: List[pulumi.Input[str]] = None,
                       kms_key_arn: Optional[pulumi.Input[str]] = None,
                       enabled_log_types: List[str] = None,
                       endpoint_private_access: bool = False,
                       endpoint_public_access: bool = True,
                       public_access_cidrs: List[str] = None,
                       authentication_mode: str = "API_AND_CONFIG_MAP",
                       bootstrap_cluster_creator_admin_permissions: bool = True,
                       service_ipv4_cidr: Optional[str] = None,
                       depends_on: List[pulumi.Resource] = None,
                       tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create EKS cluster

    Args:
        name: Cluster name
        version: Kubernetes version
        role_arn: IAM role ARN for the control plane
        subnet_ids: List of subnet IDs
        security_group_ids: Additional security group IDs for the control plane ENIs
        kms_key_arn: KMS key ARN for secrets encryption, None to skip encryption
        enabled_log_types: Control plane log types shipped to CloudWatch
        endpoint_private_access: Enable private API endpoint
        endpoint_public_access: Enable public API endpoint
        public_access_cidrs: CIDRs allowed to reach the public endpoint
        authentication_mode: CONFIG_MAP, API or API_AND_CONFIG_MAP
        bootstrap_cluster_creator_admin_permissions: Grant the creator cluster admin
        service_ipv4_cidr: CIDR for Kubernetes service IPs
        depends_on: Resources that must exist before the cluster
        tags: Additional tags

    Returns:
        Dict with cluster resource and outputs
    """
    tags = tags or {}
    enabled_log_types = ["api", "audit", "authenticator"] if enabled_log_types is None else enabled_log_types
    public_access_cidrs = public_access_cidrs or ["0.0.0.0/0"]

    encryption_config = None
    if kms_key_arn:
        encryption_config = aws.eks.ClusterEncryptionConfigArgs(
            provider=aws.eks.ClusterEncryptionConfigProviderArgs(
                key_arn=kms_key_arn
            ),
            resources=["secrets"]
        )

    kubernetes_network_config = None
    if service_ipv4_cidr:
        kubernetes_network_config = aws.eks.ClusterKubernetesNetworkConfigArgs(
            service_ipv4_cidr=service_ipv4_cidr
        )

    cluster = aws.eks.Cluster(
        f"{name}-cluster",
        name=name,
        version=version,
        role_arn=role_arn,
        vpc_config=aws.eks.ClusterVpcConfigArgs(
            subnet_ids=subnet_ids,
            endpoint_private_access=endpoint_private_access,
            endpoint_public_access=endpoint_public_access,
            public_access_cidrs=public_access_cidrs,
            security_group_ids=security_group_ids or []
        ),
        access_config=aws.eks.ClusterAccessConfigArgs(
            authentication_mode=authentication_mode,
            bootstrap_cluster_creator_admin_permissions=bootstrap_cluster_creator_admin_permissions
        ),
        kubernetes_network_config=kubernetes_network_config,
        enabled_cluster_log_types=enabled_log_types,
        encryption_config=encryption_config,
        tags={
            **tags,
            "Name": f"{name}-cluster",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(depends_on=depends_on or [])
    )

    return {
        "cluster": cluster,
        "cluster_id": cluster.id,
        "cluster_arn": cluster.arn,
        "cluster_name": cluster.name,
        "cluster_endpoint": cluster.endpoint,
        "cluster_version": cluster.version,
        "cluster_certificate_authority_data": cluster.certificate_authority.data,
        "cluster_security_group_id": cluster.vpc_config.cluster_security_group_id,
        "cluster_oidc_issuer_url": cluster.identities.apply(lambda ids: ids[0].oidcs[0].issuer)
    }


def create_oidc_provider(name: str, issuer_url: pulumi.Input[str], tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Register the cluster OIDC issuer with IAM so service accounts can assume roles (IRSA)

    Args:
        name: Cluster name
        issuer_url: Cluster OIDC issuer URL including https://
        tags: Additional tags

    Returns:
        Dict with OIDC provider resource and outputs
    """
    tags = tags or {}

    oidc_provider = aws.iam.OpenIdConnectProvider(
        f"{name}-eks-oidc-provider",
        client_id_lists=["sts.amazonaws.com"],
        thumbprint_lists=[EKS_OIDC_THUMBPRINT],
        url=issuer_url,
        tags={
            **tags,
            "Name": f"{name}-eks-oidc-provider",
            "Module": "eks"
        }
    )

    return {
        "oidc_provider": oidc_provider,
        "oidc_provider_arn": oidc_provider.arn
    }


def create_managed_node_group(name: str, cluster_name: pulumi.Input[str], role_arn: pulumi.Input[str],
                              subnet_ids: List[pulumi.Input[str]], instance_types: List[str],
                              desired_size: int, max_size: int, min_size: int,
                              disk_size: int = 20, capacity_type: str = "ON_DEMAND",
                              ami_type: str = "AL2023_x86_64_STANDARD",
                              node_group_name: Optional[str] = None,
                              max_unavailable: int = 1,
                              labels: Dict[str, str] = None,
                              taints: List[Dict[str, str]] = None,
                              depends_on: List[pulumi.Resource] = None,
                              tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create EKS managed node group

    Args:
        name: Cluster name, used as resource name prefix
        cluster_name: EKS cluster name output
        role_arn: IAM role ARN for node instances
        subnet_ids: List of subnet IDs
        instance_types: List of EC2 instance types
        desired_size: Desired number of nodes
        max_size: Maximum number of nodes
        min_size: Minimum number of nodes
        disk_size: EBS volume size in GiB
        capacity_type: ON_DEMAND or SPOT
        ami_type: EKS managed AMI family
        node_group_name: Explicit node group name, defaults to "<name>-nodes"
        max_unavailable: Nodes replaced at once during updates
        labels: Kubernetes labels applied to nodes
        taints: Kubernetes taints as dicts with key, value and effect
        depends_on: Resources that must exist before the node group
        tags: Additional tags

    Returns:
        Dict with node group resource and outputs
    """
    tags = tags or {}

    node_group = aws.eks.NodeGroup(
        f"{name}-node-group",
        cluster_name=cluster_name,
        node_group_name=node_group_name or bounded_name(name, "-nodes", NODE_GROUP_NAME_MAX),
        node_role_arn=role_arn,
        subnet_ids=subnet_ids,
        capacity_type=capacity_type,
        ami_type=ami_type,
        instance_types=instance_types,
        disk_size=disk_size,
        scaling_config=aws.eks.NodeGroupScalingConfigArgs(
            desired_size=desired_size,
            max_size=max_size,
            min_size=min_size
        ),
        update_config=aws.eks.NodeGroupUpdateConfigArgs(
            max_unavailable=max_unavailable
        ),
        labels=labels or {},
        taints=[
            aws.eks.NodeGroupTaintArgs(
                key=taint["key"],
                value=taint.get("value"),
                effect=taint["effect"]
            )
            for taint in taints or []
        ],
        tags={
            **tags,
            "Name": f"{name}-node-group",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(depends_on=depends_on or [])
    )

    return {
        "node_group": node_group,
        "node_group_arn": node_group.arn,
        "node_group_status": node_group.status
    }


def create_eks_addons(name: str, cluster_name: pulumi.Input[str],
                      addons: Dict[str, Dict[str, any]],
                      node_group=None,
                      tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create EKS managed addons, one per key of the addons mapping

    Addons flagged before_compute are installed as soon as the cluster exists,
    the rest wait for the node group so their pods can schedule.

    Args:
        name: Cluster name
        cluster_name: EKS cluster name output
        addons: Mapping of addon name to settings
        node_group: Node group dependency for addons that need nodes
        tags: Additional tags

    Returns:
        Dict with addon resources
    """
    tags = tags or {}
    created = {}

    for addon_name, settings in addons.items():
        settings = settings or {}

        opts = pulumi.ResourceOptions()
        if node_group is not None and not settings.get("before_compute", False):
            opts = pulumi.ResourceOptions(depends_on=[node_group])

        configuration_values = settings.get("configuration_values")
        if isinstance(configuration_values, dict):
            configuration_values = json.dumps(configuration_values)

        created[addon_name] = aws.eks.Addon(
            f"{name}-{addon_name}-addon",
            cluster_name=cluster_name,
            addon_name=addon_name,
            addon_version=settings.get("addon_version"),
            resolve_conflicts_on_create=settings.get("resolve_conflicts_on_create", "OVERWRITE"),
            resolve_conflicts_on_update=settings.get("resolve_conflicts_on_update", "OVERWRITE"),
            service_account_role_arn=settings.get("service_account_role_arn"),
            configuration_values=configuration_values,
            tags={
                **tags,
                "Name": f"{name}-{addon_name}-addon",
                "Module": "eks"
            },
            opts=opts
        )

    return {"addons": created}


def create_access_entries(name: str, cluster_name: pulumi.Input[str],
                          access_entries: Dict[str, Dict[str, any]],
                          cluster=None,
                          tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create access entries and their policy associations

    Args:
        name: Cluster name
        cluster_name: EKS cluster name output
        access_entries: Mapping of entry key to principal_arn, type,
            kubernetes_groups and policy_associations
        cluster: Cluster dependency
        tags: Additional tags

    Returns:
        Dict with access entry and policy association resources
    """
    tags = tags or {}
    entries = {}
    associations = {}

    for key, entry in access_entries.items():
        entries[key] = aws.eks.AccessEntry(
            f"{name}-{key}-access-entry",
            cluster_name=cluster_name,
            principal_arn=entry["principal_arn"],
            type=entry.get("type", "STANDARD"),
            kubernetes_groups=entry.get("kubernetes_groups"),
            tags={
                **tags,
                "Name": f"{name}-{key}-access-entry",
                "Module": "eks"
            },
            opts=pulumi.ResourceOptions(depends_on=[cluster] if cluster is not None else [])
        )

        for assoc_key, assoc in (entry.get("policy_associations") or {}).items():
            associations[f"{key}/{assoc_key}"] = aws.eks.AccessPolicyAssociation(
                f"{name}-{key}-{assoc_key}-access-policy",
                cluster_name=cluster_name,
                principal_arn=entry["principal_arn"],
                policy_arn=assoc["policy_arn"],
                access_scope=aws.eks.AccessPolicyAssociationAccessScopeArgs(
                    type=assoc.get("access_scope_type", "cluster"),
                    namespaces=assoc.get("namespaces")
                ),
                opts=pulumi.ResourceOptions(depends_on=[entries[key]])
            )

    return {
        "access_entries": entries,
        "policy_associations": associations
    }


def validate_eks_inputs(cluster_name: str, subnet_ids: List[any],
                        authentication_mode: str, kms_key_deletion_window: int,
                        enabled_log_types: List[str],
                        node_group_disk_size: int, node_group_ami_type: str,
                        node_group_capacity_type: str,
                        node_group_desired_size: int, node_group_min_size: int,
                        node_group_max_size: int, node_group_taints: List[Dict[str, str]],
                        access_entries: Dict[str, Dict[str, any]],
                        node_group_name: Optional[str] = None) -> None:
    """Validate EKS module inputs, raising ValidationError on the first failure"""
    validate_cluster_name(cluster_name)
    validate_subnet_ids(subnet_ids)
    validate_one_of("authentication_mode", authentication_mode, AUTHENTICATION_MODES)
    validate_kms_key_deletion_window(kms_key_deletion_window)
    validate_all_of("enabled_log_types", enabled_log_types, CLUSTER_LOG_TYPES)
    validate_range("node_group_disk_size", node_group_disk_size, 1, 16384)
    validate_one_of("node_group_ami_type", node_group_ami_type, AMI_TYPES)
    validate_one_of("node_group_capacity_type", node_group_capacity_type, CAPACITY_TYPES)
    validate_scaling(node_group_desired_size, node_group_min_size, node_group_max_size)
    if node_group_name is not None:
        validate_length("node_group_name", node_group_name, 1, NODE_GROUP_NAME_MAX)

    for taint in node_group_taints or []:
        if "key" not in taint:
            raise ValidationError("node_group_taints entries require a key")
        validate_one_of("node_group_taints effect", taint.get("effect"), TAINT_EFFECTS)

    for key, entry in (access_entries or {}).items():
        if not entry.get("principal_arn"):
            raise ValidationError(f"access_entries[{key!r}] requires principal_arn")
        if authentication_mode == "CONFIG_MAP":
            raise ValidationError("access_entries require authentication_mode API or API_AND_CONFIG_MAP")


def create_eks_resources(cluster_name: str,
                         subnet_ids: List[pulumi.Input[str]],
                         cluster_version: str = "1.30",
                         cluster_role_arn: Optional[pulumi.Input[str]] = None,
                         security_group_ids: List[pulumi.Input[str]] = None,
                         endpoint_private_access: bool = False,
                         endpoint_public_access: bool = True,
                         public_access_cidrs: List[str] = None,
                         service_ipv4_cidr: Optional[str] = None,
                         authentication_mode: str = "API_AND_CONFIG_MAP",
                         bootstrap_cluster_creator_admin_permissions: bool = True,
                         access_entries: Dict[str, Dict[str, any]] = None,
                         enabled_log_types: List[str] = None,
                         create_cloudwatch_log_group: bool = True,
                         log_retention_in_days: int = 30,
                         create_kms_key: bool = True,
                         kms_key_arn: Optional[pulumi.Input[str]] = None,
                         kms_key_deletion_window: int = 7,
                         kms_key_enable_rotation: bool = True,
                         create_node_group: bool = True,
                         node_group_role_arn: Optional[pulumi.Input[str]] = None,
                         node_group_name: Optional[str] = None,
                         node_group_instance_types: List[str] = None,
                         node_group_capacity_type: str = "ON_DEMAND",
                         node_group_ami_type: str = "AL2023_x86_64_STANDARD",
                         node_group_disk_size: int = 20,
                         node_group_desired_size: int = 2,
                         node_group_min_size: int = 1,
                         node_group_max_size: int = 3,
                         node_group_max_unavailable: int = 1,
                         node_group_labels: Dict[str, str] = None,
                         node_group_taints: List[Dict[str, str]] = None,
                         enable_irsa: bool = True,
                         addons: Dict[str, Dict[str, any]] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create complete EKS infrastructure

    Args:
        cluster_name: EKS cluster name
        subnet_ids: At least two subnet IDs in different AZs
        cluster_version: Kubernetes version
        cluster_role_arn: Existing control plane role, created when empty
        security_group_ids: Additional control plane security groups
        endpoint_private_access: Enable private API endpoint
        endpoint_public_access: Enable public API endpoint
        public_access_cidrs: CIDRs allowed to reach the public endpoint
        service_ipv4_cidr: CIDR for Kubernetes service IPs
        authentication_mode: CONFIG_MAP, API or API_AND_CONFIG_MAP
        bootstrap_cluster_creator_admin_permissions: Grant the creator cluster admin
        access_entries: Keyed access entries with optional policy associations
        enabled_log_types: Control plane log types
        create_cloudwatch_log_group: Manage the control plane log group
        log_retention_in_days: Log retention in days
        create_kms_key: Create a KMS key for secrets encryption
        kms_key_arn: Existing KMS key used when create_kms_key is False
        kms_key_deletion_window: KMS key deletion window, 7 to 30 days
        kms_key_enable_rotation: Enable KMS key rotation
        create_node_group: Create a managed node group
        node_group_role_arn: Existing node role, created when empty
        node_group_name: Node group name
        node_group_instance_types: EC2 instance types
        node_group_capacity_type: ON_DEMAND or SPOT
        node_group_ami_type: EKS managed AMI type
        node_group_disk_size: Root volume size, 1 to 16384 GiB
        node_group_desired_size: Desired number of nodes
        node_group_min_size: Minimum number of nodes
        node_group_max_size: Maximum number of nodes
        node_group_max_unavailable: Nodes replaced at once during updates
        node_group_labels: Kubernetes labels for nodes
        node_group_taints: Kubernetes taints for nodes
        enable_irsa: Create an IAM OIDC provider for the cluster
        addons: Mapping of addon name to settings, defaults to vpc-cni, kube-proxy, coredns
        tags: Additional tags

    Returns:
        Dict with all EKS resources and outputs
    """
    tags = tags or {}
    addons = DEFAULT_ADDONS if addons is None else addons
    access_entries = access_entries or {}
    enabled_log_types = ["api", "audit", "authenticator"] if enabled_log_types is None else enabled_log_types
    public_access_cidrs = public_access_cidrs or ["0.0.0.0/0"]

    validate_eks_inputs(
        cluster_name=cluster_name,
        subnet_ids=subnet_ids,
        authentication_mode=authentication_mode,
        kms_key_deletion_window=kms_key_deletion_window,
        enabled_log_types=enabled_log_types,
        node_group_disk_size=node_group_disk_size,
        node_group_ami_type=node_group_ami_type,
        node_group_capacity_type=node_group_capacity_type,
        node_group_desired_size=node_group_desired_size,
        node_group_min_size=node_group_min_size,
        node_group_max_size=node_group_max_size,
        node_group_taints=node_group_taints,
        access_entries=access_entries,
        node_group_name=node_group_name
    )

    if endpoint_public_access and "0.0.0.0/0" in public_access_cidrs:
        pulumi.log.warn(f"EKS cluster {cluster_name} public endpoint is reachable from 0.0.0.0/0")

    # Control plane role
    cluster_role_result = {}
    if not cluster_role_arn:
        cluster_role_result = create_cluster_role(cluster_name, tags)
        cluster_role_arn = cluster_role_result["role_arn"]

    # Control plane logs
    log_group_result = {}
    cluster_depends_on = []
    if create_cloudwatch_log_group and enabled_log_types:
        log_group_result = create_control_plane_log_group(cluster_name, log_retention_in_days, tags)
        cluster_depends_on.append(log_group_result["log_group"])
    if cluster_role_result:
        cluster_depends_on.append(cluster_role_result["policy_attachment"])

    # Secrets encryption key
    kms_result = {}
    if create_kms_key:
        kms_result = create_secrets_kms_key(cluster_name, kms_key_deletion_window, kms_key_enable_rotation, tags)
        kms_key_arn = kms_result["kms_key_arn"]
    elif kms_key_arn:
        pulumi.log.info(f"Using existing KMS key for EKS cluster {cluster_name}")
    else:
        pulumi.log.warn(f"EKS cluster {cluster_name} secrets will not be envelope encrypted")

    cluster_result = create_eks_cluster(
        name=cluster_name,
        version=cluster_version,
        role_arn=cluster_role_arn,
        subnet_ids=subnet_ids,
        security_group_ids=security_group_ids,
        kms_key_arn=kms_key_arn,
        enabled_log_types=enabled_log_types,
        endpoint_private_access=endpoint_private_access,
        endpoint_public_access=endpoint_public_access,
        public_access_cidrs=public_access_cidrs,
        authentication_mode=authentication_mode,
        bootstrap_cluster_creator_admin_permissions=bootstrap_cluster_creator_admin_permissions,
        service_ipv4_cidr=service_ipv4_cidr,
        depends_on=cluster_depends_on,
        tags=tags
    )
    cluster = cluster_result["cluster"]

    # IRSA
    oidc_result = {}
    if enable_irsa:
        oidc_result = create_oidc_provider(cluster_name, cluster_result["cluster_oidc_issuer_url"], tags)

    # Managed node group
    node_role_result = {}
    node_group_result = {}
    if create_node_group:
        node_group_depends_on = [cluster]
        if not node_group_role_arn:
            node_role_result = create_node_group_role(cluster_name, tags)
            node_group_role_arn = node_role_result["role_arn"]
            node_group_depends_on.extend(node_role_result["policy_attachments"].values())

        node_group_result = create_managed_node_group(
            name=cluster_name,
            cluster_name=cluster.name,
            role_arn=node_group_role_arn,
            subnet_ids=subnet_ids,
            instance_types=node_group_instance_types or ["t3.medium"],
            desired_size=node_group_desired_size,
            max_size=node_group_max_size,
            min_size=node_group_min_size,
            disk_size=node_group_disk_size,
            capacity_type=node_group_capacity_type,
            ami_type=node_group_ami_type,
            node_group_name=node_group_name,
            max_unavailable=node_group_max_unavailable,
            labels=node_group_labels,
            taints=node_group_taints,
            depends_on=node_group_depends_on,
            tags=tags
        )

    addons_result = create_eks_addons(
        name=cluster_name,
        cluster_name=cluster.name,
        addons=addons,
        node_group=node_group_result.get("node_group"),
        tags=tags
    )

    access_result = create_access_entries(
        name=cluster_name,
        cluster_name=cluster.name,
        access_entries=access_entries,
        cluster=cluster,
        tags=tags
    )

    return {
        "cluster_id": cluster_result["cluster_id"],
        "cluster_arn": cluster_result["cluster_arn"],
        "cluster_name": cluster_result["cluster_name"],
        "cluster_endpoint": cluster_result["cluster_endpoint"],
        "cluster_version": cluster_result["cluster_version"],
        "cluster_certificate_authority_data": cluster_result["cluster_certificate_authority_data"],
        "cluster_security_group_id": cluster_result["cluster_security_group_id"],
        "cluster_oidc_issuer_url": cluster_result["cluster_oidc_issuer_url"],
        "oidc_provider_arn": oidc_result.get("oidc_provider_arn"),
        "kms_key_arn": kms_key_arn,
        "cluster_role_arn": cluster_role_arn,
        "node_group_role_arn": node_group_role_arn if create_node_group else None,
        "node_group_arn": node_group_result.get("node_group_arn"),
        "node_group_status": node_group_result.get("node_group_status"),
        "addon_arns": {name: addon.arn for name, addon in addons_result["addons"].items()},
        "log_group_name": log_group_result.get("log_group_name"),
        # Keep references to resources for dependencies
        "_cluster": cluster,
        "_cluster_role": cluster_role_result.get("role"),
        "_node_role": node_role_result.get("role"),
        "_node_group": node_group_result.get("node_group"),
        "_addons": addons_result["addons"],
        "_oidc_provider": oidc_result.get("oidc_provider"),
        "_kms_key": kms_result.get("kms_key"),
        "_log_group": log_group_result.get("log_group"),
        "_access_entries": access_result["access_entries"],
        "_access_policy_associations": access_result["policy_associations"]
    }

