"""
Resource Keys

Resource paths double as cache keys. Every service uses these constants
so an invalidation always names exactly the key that was cached.
"""

AUTH_USER = "/api/auth/user"
AUTH_LOGIN = "/api/auth/login"

DASHBOARD = "/api/dashboard"
REPORTS = "/api/reports"
TRANSACTIONS = "/api/transactions"
CATEGORIES = "/api/categories"
BUDGETS = "/api/budgets"
RELATIONSHIPS = "/api/relationships"

AI_CHAT = "/api/ai/chat"
AI_INTERACTIONS = "/api/ai/interactions"
AI_CONTRACT = "/api/generate-contract"


def item_key(collection_key: str, item_id: int) -> str:
    """Path of one record inside a collection: item_key(BUDGETS, 3) -> '/api/budgets/3'."""
    return f"{collection_key}/{item_id}"
