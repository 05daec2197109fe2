"""
Integrations package.

Clients for the remote services the capture pipeline depends on.
"""
