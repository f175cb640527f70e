"""
CodePipeline Module
Creates a GitHub sourced CodePipeline with build, approval and deploy stages
"""

from .functions import create_codepipeline_resources, plan_stage_names

__all__ = ["create_codepipeline_resources", "plan_stage_names"]
