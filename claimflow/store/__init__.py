# Store module - in-memory claim records
from .claim_store import ClaimStore

__all__ = ["ClaimStore"]
