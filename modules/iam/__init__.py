"""
IAM Module
Creates IAM policies, roles, groups, users, identity providers and IRSA roles
"""

from .functions import create_iam_resources, build_irsa_trust_policy, build_trust_policy

__all__ = ["create_iam_resources", "build_irsa_trust_policy", "build_trust_policy"]
