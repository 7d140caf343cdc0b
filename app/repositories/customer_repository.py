"""
app/repositories/customer_repository.py

Persistence helpers for imported customers.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.domain.imports import TenantScope
from app.domain.records import CustomerAddress as CustomerAddressRecord
from app.domain.records import CustomerRecord
from db.models.customer import Customer, CustomerAddress

_CUSTOMER_FIELDS = (
    "prefix",
    "name",
    "email",
    "mobile",
    "whatsapp",
    "pan",
    "iwell_code",
    "date_of_birth",
    "anniversary_date",
    "family_head_name",
    "family_head_iwell_code",
    "referred_by_name",
)


class CustomerRepository:
    """
    Repository for customer lookups and import writes.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_id(
        self,
        *,
        scope: TenantScope,
        iwell_code: str | None = None,
        pan: str | None = None,
    ) -> int | None:
        """
        Resolve an active customer by IWELL code, falling back to PAN.
        """

        for column, value in ((Customer.iwell_code, iwell_code), (Customer.pan, pan)):
            if not value:
                continue
            stmt = (
                select(Customer.id)
                .where(
                    Customer.tenant_id == scope.tenant_id,
                    Customer.is_live.is_(scope.is_live),
                    Customer.is_active.is_(True),
                    func.upper(column) == value.strip().upper(),
                )
                .order_by(Customer.id)
                .limit(1)
            )
            customer_id = self._session.scalar(stmt)
            if customer_id is not None:
                return customer_id
        return None

    def create(self, *, scope: TenantScope, record: CustomerRecord, created_by: int | None = None) -> int:
        customer = Customer(
            tenant_id=scope.tenant_id,
            is_live=scope.is_live,
            is_active=True,
            created_by=created_by,
            **{name: getattr(record, name) for name in _CUSTOMER_FIELDS},
        )
        self._session.add(customer)
        self._session.flush()
        if record.address is not None:
            self._add_address(customer.id, record.address)
        return customer.id

    def update(self, *, scope: TenantScope, customer_id: int, record: CustomerRecord) -> None:
        """
        Overwrite imported columns; blank cells keep the stored value.
        """

        customer = self._session.get(Customer, customer_id)
        if customer is None or customer.tenant_id != scope.tenant_id or customer.is_live != scope.is_live:
            raise LookupError(f"Customer {customer_id} not found in tenant scope")

        for name in _CUSTOMER_FIELDS:
            value = getattr(record, name)
            if value is not None:
                setattr(customer, name, value)

        if record.address is not None:
            existing = self._session.scalar(
                select(CustomerAddress).where(
                    CustomerAddress.customer_id == customer_id,
                    CustomerAddress.address_type == record.address.address_type,
                    CustomerAddress.is_active.is_(True),
                )
            )
            if existing is None:
                self._add_address(customer_id, record.address)
            else:
                for name, value in vars(record.address).items():
                    if value is not None:
                        setattr(existing, name, value)
        self._session.flush()

    def _add_address(self, customer_id: int, address: CustomerAddressRecord) -> None:
        self._session.add(
            CustomerAddress(
                customer_id=customer_id,
                address_type=address.address_type or "residential",
                address_line1=address.address_line1,
                address_line2=address.address_line2,
                city=address.city,
                state=address.state,
                pincode=address.pincode,
                is_active=True,
            )
        )
        self._session.flush()
