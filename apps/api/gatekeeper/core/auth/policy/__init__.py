"""
Per-resource-type policies.

Importing this package registers the default policy and the narrower
financial policy with the registry.
"""

from .defaults import DEFAULT_POLICY, FINANCIAL_POLICY, register_default_policies

__all__ = ["DEFAULT_POLICY", "FINANCIAL_POLICY", "register_default_policies"]
