"""
app/repositories package marker.
"""

from app.repositories.customer_repository import CustomerRepository
from app.repositories.import_store import ImportStore, SQLAlchemyImportStore
from app.repositories.transaction_repository import TransactionRepository

__all__ = [
    "CustomerRepository",
    "ImportStore",
    "SQLAlchemyImportStore",
    "TransactionRepository",
]
