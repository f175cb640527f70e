"""
Input validation for module arguments
Every module validates its inputs up front, before any resource is declared
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence


class ValidationError(ValueError):
    """Raised when a module input fails validation"""


CLUSTER_NAME_PATTERN = r"^[0-9A-Za-z][A-Za-z0-9\-_]*$"
ECR_REPOSITORY_NAME_PATTERN = r"^(?:[a-z0-9]+(?:[._-][a-z0-9]+)*/)*[a-z0-9]+(?:[._-][a-z0-9]+)*$"
PIPELINE_NAME_PATTERN = r"^[A-Za-z0-9.@\-_]+$"
GITHUB_REPOSITORY_ID_PATTERN = r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$"

AUTHENTICATION_MODES = ["CONFIG_MAP", "API", "API_AND_CONFIG_MAP"]
CAPACITY_TYPES = ["ON_DEMAND", "SPOT"]
AMI_TYPES = [
    "AL2_x86_64",
    "AL2_x86_64_GPU",
    "AL2_ARM_64",
    "CUSTOM",
    "BOTTLEROCKET_ARM_64",
    "BOTTLEROCKET_x86_64",
    "BOTTLEROCKET_ARM_64_NVIDIA",
    "BOTTLEROCKET_x86_64_NVIDIA",
    "WINDOWS_CORE_2019_x86_64",
    "WINDOWS_FULL_2019_x86_64",
    "WINDOWS_CORE_2022_x86_64",
    "WINDOWS_FULL_2022_x86_64",
    "AL2023_x86_64_STANDARD",
    "AL2023_ARM_64_STANDARD",
    "AL2023_x86_64_NEURON",
    "AL2023_x86_64_NVIDIA",
]
TAINT_EFFECTS = ["NO_SCHEDULE", "NO_EXECUTE", "PREFER_NO_SCHEDULE"]
CLUSTER_LOG_TYPES = ["api", "audit", "authenticator", "controllerManager", "scheduler"]
IMAGE_TAG_MUTABILITY = ["MUTABLE", "IMMUTABLE"]
ECR_ENCRYPTION_TYPES = ["AES256", "KMS"]
REGISTRY_SCAN_TYPES = ["BASIC", "ENHANCED"]
BUILD_COMPUTE_TYPES = [
    "BUILD_GENERAL1_SMALL",
    "BUILD_GENERAL1_MEDIUM",
    "BUILD_GENERAL1_LARGE",
    "BUILD_GENERAL1_2XLARGE",
    "BUILD_LAMBDA_1GB",
    "BUILD_LAMBDA_2GB",
    "BUILD_LAMBDA_4GB",
    "BUILD_LAMBDA_8GB",
    "BUILD_LAMBDA_10GB",
]
PIPELINE_TYPES = ["V1", "V2"]
EXECUTION_MODES = ["QUEUED", "SUPERSEDED", "PARALLEL"]


def validate_pattern(name: str, value: str, pattern: str, message: str = None) -> str:
    if not isinstance(value, str) or re.fullmatch(pattern, value) is None:
        raise ValidationError(message or f"{name} must match {pattern}, got {value!r}")
    return value


def validate_length(name: str, value: str, minimum: int, maximum: int) -> str:
    if value is None or not minimum <= len(value) <= maximum:
        raise ValidationError(
            f"{name} must be between {minimum} and {maximum} characters long, got {value!r}"
        )
    return value


def validate_range(name: str, value: int, minimum: int, maximum: int) -> int:
    """
    Check that a numeric input lies in the closed interval [minimum, maximum]

    Args:
        name: Input name used in the error message
        value: Value to check
        minimum: Lowest accepted value
        maximum: Highest accepted value

    Returns:
        The value unchanged
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not minimum <= value <= maximum:
        raise ValidationError(f"{name} must be between {minimum} and {maximum}, got {value}")
    return value


def validate_one_of(name: str, value: Any, allowed: Sequence[Any]) -> Any:
    if value not in allowed:
        raise ValidationError(f"{name} must be one of {', '.join(map(str, allowed))}, got {value!r}")
    return value


def validate_all_of(name: str, values: Iterable[Any], allowed: Sequence[Any]) -> List[Any]:
    values = list(values or [])
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValidationError(
            f"{name} entries must be one of {', '.join(map(str, allowed))}, got {unknown}"
        )
    return values


def validate_min_items(name: str, values: Optional[Sequence[Any]], minimum: int) -> List[Any]:
    values = list(values or [])
    if len(values) < minimum:
        raise ValidationError(f"{name} must contain at least {minimum} entries, got {len(values)}")
    return values


def validate_json(name: str, value: Any) -> str:
    """Accept a policy document as a dict or JSON string and return it as a JSON string"""
    if isinstance(value, dict):
        return json.dumps(value)
    try:
        json.loads(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be valid JSON: {e}") from e
    return value


def validate_references(name: str, keys: Iterable[str], known: Dict[str, Any], kind: str) -> List[str]:
    """Check that every key refers to a resource declared in the same module call"""
    keys = list(keys or [])
    missing = [k for k in keys if k not in known]
    if missing:
        raise ValidationError(f"{name} references unknown {kind}: {', '.join(missing)}")
    return keys


# Domain predicates

def validate_cluster_name(cluster_name: str) -> str:
    validate_length("cluster_name", cluster_name, 1, 100)
    return validate_pattern(
        "cluster_name",
        cluster_name,
        CLUSTER_NAME_PATTERN,
        "cluster_name must begin with an alphanumeric character and contain only "
        f"alphanumeric characters, hyphens and underscores, got {cluster_name!r}",
    )


def validate_subnet_ids(subnet_ids: Sequence[Any]) -> List[Any]:
    if subnet_ids is not None and not isinstance(subnet_ids, (list, tuple)):
        raise ValidationError("subnet_ids must be a list")
    return validate_min_items("subnet_ids", subnet_ids, 2)


def validate_kms_key_deletion_window(days: int) -> int:
    return validate_range("kms_key_deletion_window", days, 7, 30)


def validate_scaling(desired_size: int, min_size: int, max_size: int) -> None:
    """Managed node group scaling must satisfy 0 <= min <= desired <= max and max >= 1"""
    for name, value in (("min_size", min_size), ("desired_size", desired_size), ("max_size", max_size)):
        validate_range(f"node_group_{name}", value, 0, 1000)
    if max_size < 1:
        raise ValidationError("node_group_max_size must be at least 1")
    if not min_size <= desired_size <= max_size:
        raise ValidationError(
            "node group sizes must satisfy min_size <= desired_size <= max_size, "
            f"got min={min_size} desired={desired_size} max={max_size}"
        )


def validate_repository_name(repository_name: str) -> str:
    validate_length("repository_name", repository_name, 2, 256)
    return validate_pattern(
        "repository_name",
        repository_name,
        ECR_REPOSITORY_NAME_PATTERN,
        "repository_name must be lowercase alphanumerics separated by '.', '_', '-' or '/', "
        f"got {repository_name!r}",
    )


def validate_pipeline_name(pipeline_name: str) -> str:
    validate_length("pipeline_name", pipeline_name, 1, 100)
    return validate_pattern("pipeline_name", pipeline_name, PIPELINE_NAME_PATTERN)


def validate_repository_id(repository_id: str) -> str:
    return validate_pattern(
        "repository_id",
        repository_id,
        GITHUB_REPOSITORY_ID_PATTERN,
        f"repository_id must look like 'owner/repository', got {repository_id!r}",
    )
