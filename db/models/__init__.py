"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.customer import Customer, CustomerAddress
from db.models.import_session import ImportSession, ImportSessionStatus
from db.models.portfolio import PORTFOLIO_TOTALS_VIEW, CustomerPortfolio
from db.models.transaction import Transaction, TransactionType

__all__ = [
    "Customer",
    "CustomerAddress",
    "CustomerPortfolio",
    "ImportSession",
    "ImportSessionStatus",
    "PORTFOLIO_TOTALS_VIEW",
    "Transaction",
    "TransactionType",
]
