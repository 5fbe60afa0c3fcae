"""
Domain Layer - Ledger Entities and Errors

This layer contains:
- Entities (Account, Payment, Favorite)
- The closed set of ledger errors

Key principle: entities are owned exclusively by the entity store and
mutated in place; nothing is ever deleted. This layer imports nothing
from infrastructure.
"""
