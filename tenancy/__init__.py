"""
Tenancy Backend

Multi-tenant SaaS backend: license-driven tenant provisioning,
per-tenant membership and invitations, and rotating refresh-token sessions.
"""

__version__ = "1.0.0"
