"""
EKS Module
Creates EKS cluster, managed node group, OIDC provider, addons and access entries
"""

from .functions import create_eks_resources, EKS_OIDC_THUMBPRINT

__all__ = ["create_eks_resources", "EKS_OIDC_THUMBPRINT"]
