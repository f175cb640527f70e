"""
Physical names derived from a module's base name
AWS caps several names well below the 100 characters a cluster or pipeline name may use
"""

import hashlib

IAM_ROLE_NAME_MAX = 64
NODE_GROUP_NAME_MAX = 63


def bounded_name(base: str, suffix: str, limit: int) -> str:
    """
    Join base and suffix, shortening base when the result would exceed limit

    A shortened base keeps a hash of the full base so distinct long names
    do not collapse onto the same physical name.

    Args:
        base: Cluster or pipeline name
        suffix: Fixed suffix such as "-cluster-role"
        limit: Maximum length AWS accepts for the name

    Returns:
        Name of at most limit characters
    """
    name = f"{base}{suffix}"
    if len(name) <= limit:
        return name

    digest = hashlib.sha1(base.encode("utf-8")).hexdigest()[:8]
    keep = limit - len(suffix) - len(digest) - 1
    return f"{base[:keep].rstrip('-_.')}-{digest}{suffix}"
