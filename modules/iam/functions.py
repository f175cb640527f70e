"""
IAM Module Functions
Creates IAM policies, roles, groups, users, identity providers and
service account roles from keyed collections
Every collection is a dict so resource names stay stable when entries are added or removed
"""

import json
import pulumi
import pulumi_aws as aws
from typing import Dict, List, Optional

from modules.naming import IAM_ROLE_NAME_MAX
from modules.validation import (
    ValidationError,
    validate_json,
    validate_length,
    validate_range,
    validate_references,
)


def assume_role_policy_for_services(services: List[str]) -> Dict[str, any]:
    return {
        "Effect": "Allow",
        "Principal": {"Service": list(services)},
        "Action": "sts:AssumeRole"
    }


def assume_role_policy_for_principals(arns: List[str]) -> Dict[str, any]:
    return {
        "Effect": "Allow",
        "Principal": {"AWS": list(arns)},
        "Action": "sts:AssumeRole"
    }


def assume_role_policy_for_federated(arns: List[str]) -> Dict[str, any]:
    return {
        "Effect": "Allow",
        "Principal": {"Federated": list(arns)},
        "Action": "sts:AssumeRoleWithWebIdentity"
    }


def build_trust_policy(spec: Dict[str, any]) -> str:
    """
    Build a role trust policy from a role spec

    An explicit assume_role_policy wins; otherwise one statement is generated
    per non-empty trusted_services, trusted_arns and trusted_federated list.

    Args:
        spec: Role spec

    Returns:
        Trust policy as a JSON string
    """
    if spec.get("assume_role_policy"):
        return validate_json("assume_role_policy", spec["assume_role_policy"])

    statements = []
    if spec.get("trusted_services"):
        statements.append(assume_role_policy_for_services(spec["trusted_services"]))
    if spec.get("trusted_arns"):
        statements.append(assume_role_policy_for_principals(spec["trusted_arns"]))
    if spec.get("trusted_federated"):
        statements.append(assume_role_policy_for_federated(spec["trusted_federated"]))

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": statements
    })


def build_irsa_trust_policy(oidc_provider_arn: str, oidc_issuer_url: str, subjects: List[str]) -> str:
    """
    Build the trust policy letting Kubernetes service accounts assume a role

    Args:
        oidc_provider_arn: ARN of the cluster's IAM OIDC provider
        oidc_issuer_url: Cluster OIDC issuer URL, with or without https://
        subjects: Service accounts as "namespace:name"

    Returns:
        Trust policy as a JSON string
    """
    issuer = oidc_issuer_url.replace("https://", "")

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Federated": oidc_provider_arn},
            "Action": "sts:AssumeRoleWithWebIdentity",
            "Condition": {
                "StringEquals": {
                    f"{issuer}:sub": [f"system:serviceaccount:{subject}" for subject in subjects],
                    f"{issuer}:aud": "sts.amazonaws.com"
                }
            }
        }]
    })


def _managed_policy_items(managed_policy_arns) -> List[tuple]:
    """Accept a list of ARN strings or a dict of name to ARN (for ARNs only known at deploy time)"""
    if isinstance(managed_policy_arns, dict):
        return list(managed_policy_arns.items())
    return [(arn.split("/")[-1], arn) for arn in managed_policy_arns or []]


def _resource_name(name_prefix: str, key: str) -> str:
    return f"{name_prefix}-{key}" if name_prefix else key


def create_policies(name_prefix: str, policies: Dict[str, Dict[str, any]],
                    tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create customer managed policies

    Args:
        name_prefix: Prefix for resource names
        policies: Mapping of policy key to name, description, path and policy document
        tags: Additional tags

    Returns:
        Dict with policy resources keyed like the input
    """
    tags = tags or {}
    created = {}

    for key, spec in policies.items():
        resource_name = _resource_name(name_prefix, key)
        created[key] = aws.iam.Policy(
            f"{resource_name}-policy",
            name=spec.get("name", resource_name),
            description=spec.get("description"),
            path=spec.get("path", "/"),
            policy=validate_json(f"policies[{key!r}].policy", spec["policy"]),
            tags={
                **tags,
                "Name": spec.get("name", resource_name),
                "Module": "iam"
            }
        )

    return {"policies": created}


def create_roles(name_prefix: str, roles: Dict[str, Dict[str, any]],
                 policies: Dict[str, aws.iam.Policy] = None,
                 tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM roles with their policy attachments, inline policies and instance profiles

    Args:
        name_prefix: Prefix for resource names
        roles: Mapping of role key to role spec
        policies: Module policies that policy_keys refer to
        tags: Additional tags

    Returns:
        Dict with roles, attachments, inline policies and instance profiles
    """
    tags = tags or {}
    policies = policies or {}
    created = {}
    attachments = {}
    inline_policies = {}
    instance_profiles = {}

    for key, spec in roles.items():
        resource_name = _resource_name(name_prefix, key)
        role_name = spec.get("name", resource_name)

        role = aws.iam.Role(
            f"{resource_name}-role",
            name=role_name,
            description=spec.get("description"),
            path=spec.get("path", "/"),
            assume_role_policy=build_trust_policy(spec),
            max_session_duration=spec.get("max_session_duration", 3600),
            permissions_boundary=spec.get("permissions_boundary"),
            force_detach_policies=spec.get("force_detach_policies", True),
            tags={
                **tags,
                "Name": role_name,
                "Module": "iam"
            }
        )
        created[key] = role

        for suffix, policy_arn in _managed_policy_items(spec.get("managed_policy_arns")):
            attachments[f"{key}/managed/{suffix}"] = aws.iam.RolePolicyAttachment(
                f"{resource_name}-managed-{suffix}-attachment",
                role=role.name,
                policy_arn=policy_arn
            )

        for policy_key in spec.get("policy_keys", []):
            attachments[f"{key}/policy/{policy_key}"] = aws.iam.RolePolicyAttachment(
                f"{resource_name}-policy-{policy_key}-attachment",
                role=role.name,
                policy_arn=policies[policy_key].arn
            )

        for inline_name, document in (spec.get("inline_policies") or {}).items():
            inline_policies[f"{key}/{inline_name}"] = aws.iam.RolePolicy(
                f"{resource_name}-{inline_name}-inline",
                name=inline_name,
                role=role.id,
                policy=validate_json(f"roles[{key!r}].inline_policies[{inline_name!r}]", document)
            )

        if spec.get("create_instance_profile", False):
            instance_profiles[key] = aws.iam.InstanceProfile(
                f"{resource_name}-instance-profile",
                name=role_name,
                role=role.name,
                tags={
                    **tags,
                    "Name": role_name,
                    "Module": "iam"
                }
            )

    return {
        "roles": created,
        "attachments": attachments,
        "inline_policies": inline_policies,
        "instance_profiles": instance_profiles
    }


def create_groups(name_prefix: str, groups: Dict[str, Dict[str, any]],
                  policies: Dict[str, aws.iam.Policy] = None) -> Dict[str, any]:
    """
    Create IAM groups with policy attachments and inline policies

    Args:
        name_prefix: Prefix for resource names
        groups: Mapping of group key to group spec
        policies: Module policies that policy_keys refer to

    Returns:
        Dict with groups, attachments and inline policies
    """
    policies = policies or {}
    created = {}
    attachments = {}
    inline_policies = {}

    for key, spec in groups.items():
        resource_name = _resource_name(name_prefix, key)

        group = aws.iam.Group(
            f"{resource_name}-group",
            name=spec.get("name", resource_name),
            path=spec.get("path", "/")
        )
        created[key] = group

        for suffix, policy_arn in _managed_policy_items(spec.get("managed_policy_arns")):
            attachments[f"{key}/managed/{suffix}"] = aws.iam.GroupPolicyAttachment(
                f"{resource_name}-managed-{suffix}-attachment",
                group=group.name,
                policy_arn=policy_arn
            )

        for policy_key in spec.get("policy_keys", []):
            attachments[f"{key}/policy/{policy_key}"] = aws.iam.GroupPolicyAttachment(
                f"{resource_name}-policy-{policy_key}-attachment",
                group=group.name,
                policy_arn=policies[policy_key].arn
            )

        for inline_name, document in (spec.get("inline_policies") or {}).items():
            inline_policies[f"{key}/{inline_name}"] = aws.iam.GroupPolicy(
                f"{resource_name}-{inline_name}-inline",
                name=inline_name,
                group=group.name,
                policy=validate_json(f"groups[{key!r}].inline_policies[{inline_name!r}]", document)
            )

    return {
        "groups": created,
        "attachments": attachments,
        "inline_policies": inline_policies
    }


def create_users(name_prefix: str, users: Dict[str, Dict[str, any]],
                 groups: Dict[str, aws.iam.Group] = None,
                 policies: Dict[str, aws.iam.Policy] = None,
                 tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM users with group memberships, policies, access keys and login profiles

    Access key secrets and console passwords are returned as Pulumi secrets.
    When a PGP key is supplied AWS returns them encrypted instead.

    Args:
        name_prefix: Prefix for resource names
        users: Mapping of user key to user spec
        groups: Module groups that group_keys refer to
        policies: Module policies that policy_keys refer to
        tags: Additional tags

    Returns:
        Dict with users, memberships, attachments, access keys and login profiles
    """
    tags = tags or {}
    groups = groups or {}
    policies = policies or {}
    created = {}
    memberships = {}
    attachments = {}
    access_keys = {}
    login_profiles = {}

    for key, spec in users.items():
        resource_name = _resource_name(name_prefix, key)
        user_name = spec.get("name", resource_name)

        user = aws.iam.User(
            f"{resource_name}-user",
            name=user_name,
            path=spec.get("path", "/"),
            permissions_boundary=spec.get("permissions_boundary"),
            force_destroy=spec.get("force_destroy", False),
            tags={
                **tags,
                "Name": user_name,
                "Module": "iam"
            }
        )
        created[key] = user

        group_names = [groups[group_key].name for group_key in spec.get("group_keys", [])]
        group_names.extend(spec.get("groups", []))
        if group_names:
            memberships[key] = aws.iam.UserGroupMembership(
                f"{resource_name}-groups",
                user=user.name,
                groups=group_names
            )

        for suffix, policy_arn in _managed_policy_items(spec.get("managed_policy_arns")):
            attachments[f"{key}/managed/{suffix}"] = aws.iam.UserPolicyAttachment(
                f"{resource_name}-managed-{suffix}-attachment",
                user=user.name,
                policy_arn=policy_arn
            )

        for policy_key in spec.get("policy_keys", []):
            attachments[f"{key}/policy/{policy_key}"] = aws.iam.UserPolicyAttachment(
                f"{resource_name}-policy-{policy_key}-attachment",
                user=user.name,
                policy_arn=policies[policy_key].arn
            )

        if spec.get("create_access_key", False):
            access_keys[key] = aws.iam.AccessKey(
                f"{resource_name}-access-key",
                user=user.name,
                pgp_key=spec.get("access_key_pgp_key")
            )

        if spec.get("create_login_profile", False):
            login_profiles[key] = aws.iam.UserLoginProfile(
                f"{resource_name}-login-profile",
                user=user.name,
                pgp_key=spec.get("login_pgp_key"),
                password_length=spec.get("password_length", 20),
                password_reset_required=spec.get("password_reset_required", True)
            )

    return {
        "users": created,
        "memberships": memberships,
        "attachments": attachments,
        "access_keys": access_keys,
        "login_profiles": login_profiles
    }


def create_oidc_providers(name_prefix: str, providers: Dict[str, Dict[str, any]],
                          tags: Dict[str, str] = None) -> Dict[str, any]:
    tags = tags or {}
    created = {}

    for key, spec in providers.items():
        resource_name = _resource_name(name_prefix, key)
        created[key] = aws.iam.OpenIdConnectProvider(
            f"{resource_name}-oidc-provider",
            url=spec["url"],
            client_id_lists=spec.get("client_ids", ["sts.amazonaws.com"]),
            thumbprint_lists=spec.get("thumbprints", []),
            tags={
                **tags,
                "Name": resource_name,
                "Module": "iam"
            }
        )

    return {"oidc_providers": created}


def create_saml_providers(name_prefix: str, providers: Dict[str, Dict[str, any]],
                          tags: Dict[str, str] = None) -> Dict[str, any]:
    tags = tags or {}
    created = {}

    for key, spec in providers.items():
        resource_name = _resource_name(name_prefix, key)
        created[key] = aws.iam.SamlProvider(
            f"{resource_name}-saml-provider",
            name=spec.get("name", resource_name),
            saml_metadata_document=spec["saml_metadata_document"],
            tags={
                **tags,
                "Name": spec.get("name", resource_name),
                "Module": "iam"
            }
        )

    return {"saml_providers": created}


def create_service_account_roles(name_prefix: str, service_account_roles: Dict[str, Dict[str, any]],
                                 oidc_providers: Dict[str, aws.iam.OpenIdConnectProvider] = None,
                                 policies: Dict[str, aws.iam.Policy] = None,
                                 tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM roles for Kubernetes service accounts (IRSA)

    Each spec names either an oidc_provider_key from the same call or an
    external oidc_provider_arn with its oidc_issuer_url.

    Args:
        name_prefix: Prefix for resource names
        service_account_roles: Mapping of role key to IRSA role spec
        oidc_providers: Module OIDC providers that oidc_provider_key refers to
        policies: Module policies that policy_keys refer to
        tags: Additional tags

    Returns:
        Dict with roles and their policy attachments
    """
    tags = tags or {}
    oidc_providers = oidc_providers or {}
    policies = policies or {}
    created = {}
    attachments = {}

    for key, spec in service_account_roles.items():
        resource_name = _resource_name(name_prefix, key)
        role_name = spec.get("name", resource_name)
        namespace = spec["namespace"]
        accounts = spec.get("service_accounts") or [spec["service_account"]]
        subjects = [f"{namespace}:{account}" for account in accounts]

        if spec.get("oidc_provider_key"):
            provider = oidc_providers[spec["oidc_provider_key"]]
            provider_arn, issuer_url = provider.arn, provider.url
        else:
            provider_arn, issuer_url = spec["oidc_provider_arn"], spec["oidc_issuer_url"]

        role = aws.iam.Role(
            f"{resource_name}-irsa-role",
            name=role_name,
            assume_role_policy=pulumi.Output.all(provider_arn, issuer_url).apply(
                lambda args, subjects=subjects: build_irsa_trust_policy(args[0], args[1], subjects)
            ),
            tags={
                **tags,
                "Name": role_name,
                "Module": "iam"
            }
        )
        created[key] = role

        for suffix, policy_arn in _managed_policy_items(spec.get("managed_policy_arns")):
            attachments[f"{key}/managed/{suffix}"] = aws.iam.RolePolicyAttachment(
                f"{resource_name}-irsa-managed-{suffix}-attachment",
                role=role.name,
                policy_arn=policy_arn
            )

        for policy_key in spec.get("policy_keys", []):
            attachments[f"{key}/policy/{policy_key}"] = aws.iam.RolePolicyAttachment(
                f"{resource_name}-irsa-policy-{policy_key}-attachment",
                role=role.name,
                policy_arn=policies[policy_key].arn
            )

    return {
        "roles": created,
        "attachments": attachments
    }


def create_account_password_policy(name_prefix: str, settings: Dict[str, any]) -> Dict[str, any]:
    password_policy = aws.iam.AccountPasswordPolicy(
        f"{name_prefix or 'account'}-password-policy",
        minimum_password_length=settings.get("minimum_password_length", 14),
        require_lowercase_characters=settings.get("require_lowercase_characters", True),
        require_uppercase_characters=settings.get("require_uppercase_characters", True),
        require_numbers=settings.get("require_numbers", True),
        require_symbols=settings.get("require_symbols", True),
        allow_users_to_change_password=settings.get("allow_users_to_change_password", True),
        max_password_age=settings.get("max_password_age", 90),
        password_reuse_prevention=settings.get("password_reuse_prevention", 24),
        hard_expiry=settings.get("hard_expiry", False)
    )

    return {"password_policy": password_policy}


def validate_iam_inputs(policies: Dict[str, Dict[str, any]],
                        roles: Dict[str, Dict[str, any]],
                        groups: Dict[str, Dict[str, any]],
                        users: Dict[str, Dict[str, any]],
                        oidc_providers: Dict[str, Dict[str, any]],
                        saml_providers: Dict[str, Dict[str, any]],
                        service_account_roles: Dict[str, Dict[str, any]],
                        account_password_policy: Optional[Dict[str, any]],
                        name_prefix: str = "") -> None:
    """Validate IAM module inputs, including references between collections"""
    role_names = {}
    for collection, specs in (("roles", roles), ("service_account_roles", service_account_roles)):
        for key, spec in specs.items():
            role_name = spec.get("name", _resource_name(name_prefix, key))
            validate_length(f"{collection}[{key!r}] role name", role_name, 1, IAM_ROLE_NAME_MAX)
            if role_name in role_names:
                raise ValidationError(
                    f"{collection}[{key!r}] and {role_names[role_name]} both declare IAM role {role_name!r}"
                )
            role_names[role_name] = f"{collection}[{key!r}]"

    for collection, specs in (("roles", roles), ("groups", groups), ("users", users),
                              ("service_account_roles", service_account_roles)):
        for key, spec in specs.items():
            suffixes = [suffix for suffix, _ in _managed_policy_items(spec.get("managed_policy_arns"))]
            duplicates = sorted({s for s in suffixes if suffixes.count(s) > 1})
            if duplicates:
                raise ValidationError(
                    f"{collection}[{key!r}].managed_policy_arns has several policies named {', '.join(duplicates)}, "
                    "pass them as a dict of name to ARN"
                )

    for key, spec in policies.items():
        if not spec.get("policy"):
            raise ValidationError(f"policies[{key!r}] requires a policy document")
        validate_json(f"policies[{key!r}].policy", spec["policy"])

    for key, spec in roles.items():
        trust_keys = ("assume_role_policy", "trusted_services", "trusted_arns", "trusted_federated")
        if not any(spec.get(k) for k in trust_keys):
            raise ValidationError(
                f"roles[{key!r}] requires assume_role_policy, trusted_services, trusted_arns or trusted_federated"
            )
        validate_range(f"roles[{key!r}].max_session_duration", spec.get("max_session_duration", 3600), 3600, 43200)
        if spec.get("assume_role_policy"):
            validate_json(f"roles[{key!r}].assume_role_policy", spec["assume_role_policy"])
        for inline_name, document in (spec.get("inline_policies") or {}).items():
            validate_json(f"roles[{key!r}].inline_policies[{inline_name!r}]", document)
        validate_references(f"roles[{key!r}].policy_keys", spec.get("policy_keys"), policies, "policies")

    for key, spec in groups.items():
        validate_references(f"groups[{key!r}].policy_keys", spec.get("policy_keys"), policies, "policies")
        for inline_name, document in (spec.get("inline_policies") or {}).items():
            validate_json(f"groups[{key!r}].inline_policies[{inline_name!r}]", document)

    for key, spec in users.items():
        validate_references(f"users[{key!r}].policy_keys", spec.get("policy_keys"), policies, "policies")
        validate_references(f"users[{key!r}].group_keys", spec.get("group_keys"), groups, "groups")
        if spec.get("create_login_profile", False):
            validate_range(f"users[{key!r}].password_length", spec.get("password_length", 20), 6, 128)

    for key, spec in oidc_providers.items():
        if not str(spec.get("url", "")).startswith("https://"):
            raise ValidationError(f"oidc_providers[{key!r}].url must start with https://")

    for key, spec in saml_providers.items():
        if not spec.get("saml_metadata_document"):
            raise ValidationError(f"saml_providers[{key!r}] requires saml_metadata_document")

    for key, spec in service_account_roles.items():
        if not spec.get("namespace"):
            raise ValidationError(f"service_account_roles[{key!r}] requires a namespace")
        if not (spec.get("service_account") or spec.get("service_accounts")):
            raise ValidationError(f"service_account_roles[{key!r}] requires service_account or service_accounts")
        if spec.get("oidc_provider_key"):
            validate_references(
                f"service_account_roles[{key!r}].oidc_provider_key",
                [spec["oidc_provider_key"]], oidc_providers, "oidc_providers"
            )
        elif not (spec.get("oidc_provider_arn") and spec.get("oidc_issuer_url")):
            raise ValidationError(
                f"service_account_roles[{key!r}] requires oidc_provider_key or oidc_provider_arn and oidc_issuer_url"
            )
        validate_references(
            f"service_account_roles[{key!r}].policy_keys", spec.get("policy_keys"), policies, "policies"
        )

    if account_password_policy is not None:
        validate_range(
            "account_password_policy.minimum_password_length",
            account_password_policy.get("minimum_password_length", 14), 6, 128
        )


def create_iam_resources(name_prefix: str = "",
                         policies: Dict[str, Dict[str, any]] = None,
                         roles: Dict[str, Dict[str, any]] = None,
                         groups: Dict[str, Dict[str, any]] = None,
                         users: Dict[str, Dict[str, any]] = None,
                         oidc_providers: Dict[str, Dict[str, any]] = None,
                         saml_providers: Dict[str, Dict[str, any]] = None,
                         service_account_roles: Dict[str, Dict[str, any]] = None,
                         account_password_policy: Optional[Dict[str, any]] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create IAM resources from keyed collections

    Policies, groups and OIDC providers are declared first so roles, users
    and service account roles can reference them by key.

    Args:
        name_prefix: Prefix for resource names
        policies: Customer managed policies
        roles: IAM roles
        groups: IAM groups
        users: IAM users
        oidc_providers: OpenID Connect identity providers
        saml_providers: SAML identity providers
        service_account_roles: Roles for Kubernetes service accounts
        account_password_policy: Account password policy settings, None to leave unmanaged
        tags: Additional tags

    Returns:
        Dict with all IAM resources and outputs
    """
    tags = tags or {}
    policies = policies or {}
    roles = roles or {}
    groups = groups or {}
    users = users or {}
    oidc_providers = oidc_providers or {}
    saml_providers = saml_providers or {}
    service_account_roles = service_account_roles or {}

    validate_iam_inputs(
        policies, roles, groups, users, oidc_providers,
        saml_providers, service_account_roles, account_password_policy, name_prefix
    )

    policies_result = create_policies(name_prefix, policies, tags)
    created_policies = policies_result["policies"]

    groups_result = create_groups(name_prefix, groups, created_policies)
    oidc_result = create_oidc_providers(name_prefix, oidc_providers, tags)
    saml_result = create_saml_providers(name_prefix, saml_providers, tags)
    roles_result = create_roles(name_prefix, roles, created_policies, tags)
    users_result = create_users(name_prefix, users, groups_result["groups"], created_policies, tags)
    irsa_result = create_service_account_roles(
        name_prefix, service_account_roles, oidc_result["oidc_providers"], created_policies, tags
    )

    password_policy_result = {}
    if account_password_policy is not None:
        password_policy_result = create_account_password_policy(name_prefix, account_password_policy)

    access_keys = users_result["access_keys"]
    login_profiles = users_result["login_profiles"]

    if any(not users[k].get("access_key_pgp_key") for k in access_keys):
        pulumi.log.warn("IAM access keys without a PGP key are stored in state as plaintext secrets")

    return {
        "policy_arns": {k: p.arn for k, p in created_policies.items()},
        "role_arns": {k: r.arn for k, r in roles_result["roles"].items()},
        "role_names": {k: r.name for k, r in roles_result["roles"].items()},
        "instance_profile_names": {k: p.name for k, p in roles_result["instance_profiles"].items()},
        "group_names": {k: g.name for k, g in groups_result["groups"].items()},
        "user_arns": {k: u.arn for k, u in users_result["users"].items()},
        "user_names": {k: u.name for k, u in users_result["users"].items()},
        "access_key_ids": {k: key.id for k, key in access_keys.items()},
        "access_key_secrets": {
            k: pulumi.Output.secret(key.encrypted_secret if users[k].get("access_key_pgp_key") else key.secret)
            for k, key in access_keys.items()
        },
        "login_profile_passwords": {
            k: pulumi.Output.secret(
                profile.encrypted_password if users[k].get("login_pgp_key") else profile.password
            )
            for k, profile in login_profiles.items()
        },
        "oidc_provider_arns": {k: p.arn for k, p in oidc_result["oidc_providers"].items()},
        "saml_provider_arns": {k: p.arn for k, p in saml_result["saml_providers"].items()},
        "service_account_role_arns": {k: r.arn for k, r in irsa_result["roles"].items()},
        # Keep references to resources for dependencies
        "_policies": created_policies,
        "_roles": roles_result["roles"],
        "_role_attachments": roles_result["attachments"],
        "_role_inline_policies": roles_result["inline_policies"],
        "_instance_profiles": roles_result["instance_profiles"],
        "_groups": groups_result["groups"],
        "_group_attachments": groups_result["attachments"],
        "_users": users_result["users"],
        "_user_memberships": users_result["memberships"],
        "_user_attachments": users_result["attachments"],
        "_access_keys": access_keys,
        "_login_profiles": login_profiles,
        "_oidc_providers": oidc_result["oidc_providers"],
        "_saml_providers": saml_result["saml_providers"],
        "_service_account_roles": irsa_result["roles"],
        "_service_account_attachments": irsa_result["attachments"],
        "_password_policy": password_policy_result.get("password_policy")
    }
