"""
tests/test_customer_repository.py

Customer writes against a recording session.
"""

from __future__ import annotations

from typing import Any

import pytest

from app.domain.imports import TenantScope
from app.domain.records import CustomerAddress as CustomerAddressRecord
from app.domain.records import CustomerRecord
from app.repositories.customer_repository import CustomerRepository
from db.models.customer import Customer, CustomerAddress

SCOPE = TenantScope(tenant_id=5, is_live=True)


class _RecordingSession:
    def __init__(self) -> None:
        self.added: list[Any] = []
        self.stored: dict[int, Any] = {}
        self._next_id = 1

    def add(self, instance: Any) -> None:
        self.added.append(instance)

    def flush(self) -> None:
        for instance in self.added:
            if getattr(instance, "id", None) is None:
                instance.id = self._next_id
                self._next_id += 1
                self.stored[instance.id] = instance

    def get(self, model: type, ident: int) -> Any:
        return self.stored.get(ident)

    def scalar(self, stmt: Any) -> Any:
        return None


def _record(address: CustomerAddressRecord | None = None) -> CustomerRecord:
    return CustomerRecord(
        prefix="Sri",
        name="Asha Rao",
        email=None,
        mobile=None,
        whatsapp=None,
        pan="ABCDE1234F",
        iwell_code="IW100",
        date_of_birth=None,
        anniversary_date=None,
        family_head_name=None,
        family_head_iwell_code=None,
        referred_by_name=None,
        address=address,
    )


@pytest.fixture()
def session() -> _RecordingSession:
    return _RecordingSession()


class TestCustomerRepository:
    def test_create_without_address_adds_only_the_customer(self, session: _RecordingSession) -> None:
        customer_id = CustomerRepository(session).create(scope=SCOPE, record=_record(), created_by=9)

        assert customer_id == 1
        assert len(session.added) == 1
        customer = session.added[0]
        assert isinstance(customer, Customer)
        assert (customer.tenant_id, customer.is_live, customer.created_by) == (5, True, 9)
        assert customer.iwell_code == "IW100"

    def test_create_with_address_links_it_to_the_customer(self, session: _RecordingSession) -> None:
        address = CustomerAddressRecord(
            address_line1="12 MG Road",
            address_line2=None,
            city="Pune",
            state="MH",
            pincode="411001",
            address_type=None,
        )

        customer_id = CustomerRepository(session).create(scope=SCOPE, record=_record(address))

        stored = [item for item in session.added if isinstance(item, CustomerAddress)]
        assert len(stored) == 1
        assert stored[0].customer_id == customer_id
        assert stored[0].address_type == "residential"
        assert (stored[0].city, stored[0].pincode) == ("Pune", "411001")

    def test_update_adds_missing_address(self, session: _RecordingSession) -> None:
        repository = CustomerRepository(session)
        customer_id = repository.create(scope=SCOPE, record=_record())
        address = CustomerAddressRecord(
            address_line1="4 Park Street",
            address_line2=None,
            city="Kolkata",
            state=None,
            pincode=None,
            address_type="office",
        )

        repository.update(scope=SCOPE, customer_id=customer_id, record=_record(address))

        stored = [item for item in session.added if isinstance(item, CustomerAddress)]
        assert [(item.customer_id, item.address_type, item.city) for item in stored] == [
            (customer_id, "office", "Kolkata")
        ]

    def test_update_outside_scope_raises(self, session: _RecordingSession) -> None:
        repository = CustomerRepository(session)
        customer_id = repository.create(scope=SCOPE, record=_record())

        with pytest.raises(LookupError):
            repository.update(
                scope=TenantScope(tenant_id=6, is_live=True),
                customer_id=customer_id,
                record=_record(),
            )
