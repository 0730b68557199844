# backend/tests/services/test_credit_purchase_service.py
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from classbook.core.enums import TransactionType
from classbook.core.exceptions import (
    PaymentRequiredException,
    ProfileNotFoundException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from classbook.models.credit_transaction import CreditPurchase, CreditTransaction
from classbook.services.credit_ledger_service import CreditLedgerService
from classbook.services.credit_purchase_service import CreditPurchaseService, find_package
from classbook.services.payment_gateway import ChargeResult


class _RecordingGateway:
    def __init__(self, approve: bool = True):
        self.approve = approve
        self.charges = []
        self.voids = []

    def charge(self, *, profile_id, amount, payment_method):
        self.charges.append((profile_id, amount, payment_method))
        if self.approve:
            return ChargeResult(approved=True, reference="test_ref_1")
        return ChargeResult(approved=False, reference="test_ref_2", decline_reason="card_declined")

    def void(self, *, reference):
        self.voids.append(reference)


@pytest.fixture
def purchase_service(db: Session, clock) -> CreditPurchaseService:
    return CreditPurchaseService(db, clock)


def test_find_package_by_id_or_display_name():
    assert find_package("starter").credits == 5
    assert find_package("Regular Pack").id == "regular"
    assert find_package(" PREMIUM ").credits == 20
    assert find_package("platinum") is None


def test_purchase_records_purchase_and_ledger_entry(db: Session, purchase_service, make_profile):
    profile = make_profile(credits=0)

    purchase = purchase_service.purchase_credits(
        profile_id=profile.id,
        credits_amount=10,
        package_type="regular",
        amount_paid="90.00",
        payment_method="4242 4242 4242 4242",
    )

    assert purchase.package_id == "regular"
    assert purchase.credits_amount == 10
    assert purchase.amount_paid == Decimal("90.00")
    assert purchase.payment_method == "card ending 4242"
    assert purchase.payment_reference.startswith("mock_")

    entry = db.get(CreditTransaction, purchase.credit_transaction_id)
    assert entry.amount == 10
    assert entry.transaction_type == TransactionType.CREDIT_PURCHASE.value
    db.refresh(profile)
    assert profile.credit_balance == 10
    assert CreditLedgerService(db).verify_balance(profile.id)["consistent"] is True


def test_declined_payment_writes_nothing(db: Session, purchase_service, make_profile):
    profile = make_profile(credits=1)

    with pytest.raises(PaymentRequiredException) as exc_info:
        purchase_service.purchase_credits(
            profile_id=profile.id,
            credits_amount=5,
            package_type="starter",
            amount_paid=50,
            payment_method="4000 0000 0000 0000",
        )

    assert exc_info.value.code == "PAYMENT_DECLINED"
    assert db.query(CreditPurchase).count() == 0
    db.refresh(profile)
    assert profile.credit_balance == 1


def test_unknown_package(purchase_service, make_profile):
    profile = make_profile()

    with pytest.raises(ValidationException) as exc_info:
        purchase_service.purchase_credits(
            profile_id=profile.id,
            credits_amount=5,
            package_type="gold",
            amount_paid=50,
            payment_method="4242",
        )
    assert exc_info.value.code == "UNKNOWN_PACKAGE"


@pytest.mark.parametrize("credits_amount,amount_paid", [(6, "50.00"), (5, "49.99")])
def test_mismatched_package_is_rejected_before_charging(db: Session, make_profile, credits_amount, amount_paid):
    gateway = _RecordingGateway()
    service = CreditPurchaseService(db, payment_gateway=gateway)
    profile = make_profile()

    with pytest.raises(ValidationException):
        service.purchase_credits(
            profile_id=profile.id,
            credits_amount=credits_amount,
            package_type="starter",
            amount_paid=amount_paid,
            payment_method="4242",
        )
    assert gateway.charges == []


def test_injected_gateway_is_charged_with_package_price(db: Session, make_profile):
    gateway = _RecordingGateway()
    service = CreditPurchaseService(db, payment_gateway=gateway)
    profile = make_profile(credits=0)

    purchase = service.purchase_credits(
        profile_id=profile.id,
        credits_amount=20,
        package_type="Premium Pack",
        amount_paid=150,
        payment_method="wallet",
    )

    assert gateway.charges == [(profile.id, Decimal("150.00"), "wallet")]
    assert purchase.payment_reference == "test_ref_1"
    assert purchase.payment_method == "wallet"


def test_list_packages(purchase_service):
    assert [package.id for package in purchase_service.list_packages()] == ["starter", "regular", "premium"]


def test_unknown_profile_is_rejected_before_charging(db: Session):
    gateway = _RecordingGateway()
    service = CreditPurchaseService(db, payment_gateway=gateway)

    with pytest.raises(ProfileNotFoundException):
        service.purchase_credits(
            profile_id="01HZZZZZZZZZZZZZZZZZZZZZZZ",
            credits_amount=5,
            package_type="starter",
            amount_paid="50.00",
            payment_method="4242",
        )

    assert gateway.charges == []
    assert gateway.voids == []
    assert db.query(CreditPurchase).count() == 0


def test_failed_write_voids_the_approved_charge(db: Session, make_profile, monkeypatch):
    gateway = _RecordingGateway()
    service = CreditPurchaseService(db, payment_gateway=gateway)
    profile = make_profile(credits=3)

    def failing_create(**kwargs):
        raise RepositoryException("disk full")

    monkeypatch.setattr(service.purchase_repository, "create", failing_create)

    with pytest.raises(ServiceException):
        service.purchase_credits(
            profile_id=profile.id,
            credits_amount=5,
            package_type="starter",
            amount_paid="50.00",
            payment_method="4242",
        )

    assert len(gateway.charges) == 1
    assert gateway.voids == ["test_ref_1"]
    assert db.query(CreditPurchase).count() == 0
    assert db.query(CreditTransaction).filter(CreditTransaction.profile_id == profile.id).count() == 1
    db.refresh(profile)
    assert profile.credit_balance == 3


def test_void_failure_does_not_mask_the_original_error(db: Session, make_profile, monkeypatch):
    gateway = _RecordingGateway()
    service = CreditPurchaseService(db, payment_gateway=gateway)
    profile = make_profile(credits=0)

    def failing_record(**kwargs):
        raise RuntimeError("ledger unavailable")

    def failing_void(*, reference):
        raise ConnectionError("gateway down")

    monkeypatch.setattr(service.ledger_service, "record_credit_delta", failing_record)
    monkeypatch.setattr(gateway, "void", failing_void)

    with pytest.raises(RuntimeError, match="ledger unavailable"):
        service.purchase_credits(
            profile_id=profile.id,
            credits_amount=5,
            package_type="starter",
            amount_paid=50,
            payment_method="4242",
        )
    assert db.query(CreditPurchase).count() == 0
