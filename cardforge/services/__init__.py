from cardforge.services.generator import ContentGenerator
from cardforge.services.identity import AuthenticatedUser, JWTIdentityProvider
from cardforge.services.llm import GroqCompletionClient
from cardforge.services.store import Store

__all__ = ["AuthenticatedUser", "ContentGenerator", "GroqCompletionClient", "JWTIdentityProvider", "Store"]
