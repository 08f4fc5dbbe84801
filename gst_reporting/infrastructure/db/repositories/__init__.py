from .business_profile_repository import BusinessProfileRepository
from .document_repository import DocumentRepository
from .ledger_repository import LedgerRepository

__all__ = [
    "BusinessProfileRepository",
    "DocumentRepository",
    "LedgerRepository",
]
