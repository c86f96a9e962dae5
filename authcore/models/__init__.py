"""Database models"""

from authcore.models.authorization import OAuth2AuthorizationRow

__all__ = ["OAuth2AuthorizationRow"]
