"""Session token module."""

from .token_cache import ITokenCache, TokenCache, can_post_to_room, parse_token

__all__ = ["ITokenCache", "TokenCache", "can_post_to_room", "parse_token"]
