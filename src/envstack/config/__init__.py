"""Configuration for envstack

Example:
    from envstack.config import Policy

    policy = Policy(files=[".env", ".env.local"], lookup_git=True)

    # Or from ENVSTACK_* environment variables
    policy = Policy.from_env()
"""

from envstack.config.policy import DEFAULT_ENV_FILE, DEFAULT_PREFIX, Policy

__all__ = [
    "Policy",
    "DEFAULT_ENV_FILE",
    "DEFAULT_PREFIX",
]
