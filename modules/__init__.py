"""
Pulumi modules for container delivery infrastructure on AWS
Simple function-based approach, one create_*_resources entry point per module
"""

from .validation import ValidationError
from .iam import create_iam_resources
from .eks import create_eks_resources
from .ecr import create_ecr_resources
from .codepipeline import create_codepipeline_resources

__all__ = [
    "ValidationError",
    "create_iam_resources",
    "create_eks_resources",
    "create_ecr_resources",
    "create_codepipeline_resources"
]
