"""Single-record Parte B adjustment writes."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from lalur_kernel.domain.dtos import FiscalAdjustmentDraft
from lalur_kernel.domain.enums import (
    AdjustmentDirection,
    ApportionmentKind,
    RelationshipKind,
    Status,
)
from lalur_kernel.exceptions import (
    ConditionalForeignKeyViolationError,
    InactiveReferenceError,
    InvalidReferencePeriodError,
    PeriodLockViolationError,
    UnresolvedReferenceError,
)
from lalur_kernel.services.fiscal_adjustment_service import FiscalAdjustmentService


@pytest.fixture
def service(session):
    return FiscalAdjustmentService(session)


@pytest.fixture
def draft(company, accounts, adjustment_account, tax_parameters):
    def _make(**overrides):
        values = dict(
            company_id=company.id,
            reference_month=5,
            reference_year=2024,
            apportionment_kind=ApportionmentKind.IRPJ,
            relationship_kind=RelationshipKind.LEDGER_ACCOUNT,
            ledger_account_id=accounts["3.1.01"].id,
            adjustment_account_id=None,
            tax_parameter_id=tax_parameters["GLB-01"].id,
            direction=AdjustmentDirection.ADDITION,
            description="Multas fiscais indedutíveis",
            amount=Decimal("320.00"),
        )
        values.update(overrides)
        return FiscalAdjustmentDraft(**values)

    return _make


class TestCreate:

    def test_ledger_account_kind(self, service, draft, actor_id):
        adjustment = service.create(draft(), actor_id)
        assert adjustment.reference_date == date(2024, 5, 1)
        assert adjustment.adjustment_account_id is None

    def test_adjustment_account_kind(self, service, draft, adjustment_account, actor_id):
        adjustment = service.create(
            draft(
                relationship_kind=RelationshipKind.ADJUSTMENT_ACCOUNT,
                ledger_account_id=None,
                adjustment_account_id=adjustment_account.id,
                direction=AdjustmentDirection.EXCLUSION,
            ),
            actor_id,
        )
        assert adjustment.ledger_account_id is None
        assert adjustment.adjustment_account.code == "PB-001"

    def test_both_kind(self, service, draft, adjustment_account, actor_id):
        adjustment = service.create(
            draft(
                relationship_kind=RelationshipKind.BOTH,
                adjustment_account_id=adjustment_account.id,
            ),
            actor_id,
        )
        assert adjustment.ledger_account_id is not None
        assert adjustment.adjustment_account_id is not None

    def test_missing_required_account(self, service, draft, actor_id):
        with pytest.raises(ConditionalForeignKeyViolationError) as exc_info:
            service.create(draft(relationship_kind=RelationshipKind.BOTH), actor_id)
        assert exc_info.value.field == "adjustment_account_id"

    def test_forbidden_account(self, service, draft, adjustment_account, actor_id):
        with pytest.raises(ConditionalForeignKeyViolationError):
            service.create(draft(adjustment_account_id=adjustment_account.id), actor_id)

    def test_ledger_account_of_other_year(self, service, draft, make_ledger_account, actor_id):
        old = make_ledger_account("3.1.01", "Receita de Vendas", fiscal_year=2023)
        with pytest.raises(UnresolvedReferenceError):
            service.create(draft(ledger_account_id=old.id), actor_id)

    def test_inactive_tax_parameter(self, service, draft, tax_parameters, actor_id):
        with pytest.raises(InactiveReferenceError):
            service.create(draft(tax_parameter_id=tax_parameters["OLD-01"].id), actor_id)

    def test_unknown_tax_parameter(self, service, draft, actor_id):
        with pytest.raises(UnresolvedReferenceError):
            service.create(draft(tax_parameter_id=uuid4()), actor_id)

    def test_year_before_minimum(self, service, draft, actor_id):
        with pytest.raises(InvalidReferencePeriodError):
            service.create(draft(reference_year=1999), actor_id)

    def test_locked_month(self, service, draft, company, session, actor_id):
        company.accounting_cutoff = date(2024, 5, 2)
        session.flush()
        with pytest.raises(PeriodLockViolationError) as exc_info:
            service.create(draft(), actor_id)
        assert exc_info.value.reference_date == date(2024, 5, 1)


class TestUpdate:

    def test_switch_relationship_kind(self, service, draft, adjustment_account, actor_id):
        adjustment = service.create(draft(), actor_id)
        updated = service.update(
            adjustment.id,
            draft(
                relationship_kind=RelationshipKind.ADJUSTMENT_ACCOUNT,
                ledger_account_id=None,
                adjustment_account_id=adjustment_account.id,
            ),
            actor_id,
        )
        assert updated.relationship_kind == RelationshipKind.ADJUSTMENT_ACCOUNT
        assert updated.ledger_account_id is None

    def test_switch_kind_keeping_stale_account_rejected(
        self, service, draft, adjustment_account, actor_id
    ):
        adjustment = service.create(draft(), actor_id)
        with pytest.raises(ConditionalForeignKeyViolationError):
            service.update(
                adjustment.id,
                draft(
                    relationship_kind=RelationshipKind.ADJUSTMENT_ACCOUNT,
                    adjustment_account_id=adjustment_account.id,
                ),
                actor_id,
            )

    def test_locked_original(self, service, draft, company, session, actor_id):
        adjustment = service.create(draft(reference_month=1), actor_id)
        company.accounting_cutoff = date(2024, 3, 1)
        session.flush()
        with pytest.raises(PeriodLockViolationError):
            service.update(adjustment.id, draft(reference_month=6), actor_id)


class TestSetStatus:

    def test_deactivate(self, service, draft, company, actor_id):
        adjustment = service.create(draft(), actor_id)
        service.set_status(company.id, adjustment.id, Status.INACTIVE, actor_id)
        assert adjustment.status == Status.INACTIVE

    def test_locked(self, service, draft, company, session, actor_id):
        adjustment = service.create(draft(reference_month=1), actor_id)
        company.accounting_cutoff = date(2024, 2, 1)
        session.flush()
        with pytest.raises(PeriodLockViolationError):
            service.set_status(company.id, adjustment.id, Status.INACTIVE, actor_id)
