"""
ECR Module
Creates ECR repositories with lifecycle, access, replication and caching options
"""

from .functions import create_ecr_resources, build_lifecycle_policy, build_repository_policy

__all__ = ["create_ecr_resources", "build_lifecycle_policy", "build_repository_policy"]
