"""Persistence and introspection core for an OAuth2/OIDC authorization server"""

__version__ = "1.0.0"
