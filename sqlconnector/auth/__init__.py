from .token_cache import TokenCache
from .token_provider import SQL_SCOPE, get_token_provider

__all__ = ["SQL_SCOPE", "TokenCache", "get_token_provider"]
