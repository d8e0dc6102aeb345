"""Conditional foreign-key table and full fiscal adjustment validation."""

from decimal import Decimal
from itertools import product
from uuid import uuid4

import pytest

from lalur_kernel.domain.adjustment_rules import (
    ADJUSTMENT_ACCOUNT_FIELD,
    LEDGER_ACCOUNT_FIELD,
    RELATIONSHIP_REQUIREMENTS,
    validate_fiscal_adjustment,
    validate_reference_period,
    validate_relationship,
)
from lalur_kernel.domain.dtos import FiscalAdjustmentDraft
from lalur_kernel.domain.enums import (
    AdjustmentDirection,
    ApportionmentKind,
    RelationshipKind,
)

ACCEPTED = {
    (RelationshipKind.LEDGER_ACCOUNT, True, False),
    (RelationshipKind.ADJUSTMENT_ACCOUNT, False, True),
    (RelationshipKind.BOTH, True, True),
}

ALL_CASES = list(product(RelationshipKind, (True, False), (True, False)))


def _draft(**overrides):
    values = dict(
        company_id=uuid4(),
        reference_month=3,
        reference_year=2024,
        apportionment_kind=ApportionmentKind.IRPJ,
        relationship_kind=RelationshipKind.LEDGER_ACCOUNT,
        ledger_account_id=uuid4(),
        adjustment_account_id=None,
        tax_parameter_id=uuid4(),
        direction=AdjustmentDirection.ADDITION,
        description="Multa indedutível",
        amount=Decimal("250.00"),
    )
    values.update(overrides)
    return FiscalAdjustmentDraft(**values)


class TestRelationshipTable:
    """3 kinds x presence of each FK = 12 cases: 3 accept, 9 reject."""

    def test_case_count(self):
        assert len(ALL_CASES) == 12
        assert sum(1 for case in ALL_CASES if case in ACCEPTED) == 3

    @pytest.mark.parametrize("kind,has_ledger,has_adjustment", ALL_CASES)
    def test_relationship_case(self, kind, has_ledger, has_adjustment):
        result = validate_relationship(
            kind,
            uuid4() if has_ledger else None,
            uuid4() if has_adjustment else None,
        )
        if (kind, has_ledger, has_adjustment) in ACCEPTED:
            assert result.is_valid
        else:
            assert not result.is_valid
            assert result.errors[0].code == "CONDITIONAL_FK_VIOLATION"
            assert result.errors[0].details == {"relationship_kind": kind.value}

    def test_table_covers_every_kind(self):
        assert set(RELATIONSHIP_REQUIREMENTS) == set(RelationshipKind)

    def test_missing_required_reported_before_forbidden(self):
        result = validate_relationship(RelationshipKind.LEDGER_ACCOUNT, None, uuid4())
        assert result.errors[0].field == LEDGER_ACCOUNT_FIELD
        assert "required" in result.errors[0].message

    def test_forbidden_field_named(self):
        result = validate_relationship(RelationshipKind.ADJUSTMENT_ACCOUNT, uuid4(), uuid4())
        assert result.errors[0].field == LEDGER_ACCOUNT_FIELD
        assert "must be empty" in result.errors[0].message

    def test_both_reports_missing_adjustment_account(self):
        result = validate_relationship(RelationshipKind.BOTH, uuid4(), None)
        assert result.errors[0].field == ADJUSTMENT_ACCOUNT_FIELD


class TestReferencePeriod:

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, month):
        result = validate_reference_period(month, 2024)
        assert result.errors[0].code == "INVALID_REFERENCE_PERIOD"
        assert result.errors[0].field == "reference_month"

    def test_year_before_minimum(self):
        result = validate_reference_period(1, 1999)
        assert result.errors[0].field == "reference_year"

    def test_custom_minimum(self):
        assert not validate_reference_period(1, 2009, min_year=2010)
        assert validate_reference_period(1, 2010, min_year=2010)


class TestValidateFiscalAdjustment:

    def test_valid_ledger_account_adjustment(self):
        assert validate_fiscal_adjustment(_draft()).is_valid

    def test_valid_both(self):
        draft = _draft(relationship_kind=RelationshipKind.BOTH, adjustment_account_id=uuid4())
        assert validate_fiscal_adjustment(draft).is_valid

    def test_missing_tax_parameter(self):
        result = validate_fiscal_adjustment(_draft(tax_parameter_id=None))
        assert result.errors[0].code == "UNRESOLVED_REFERENCE"

    def test_relationship_violation(self):
        draft = _draft(relationship_kind=RelationshipKind.ADJUSTMENT_ACCOUNT)
        result = validate_fiscal_adjustment(draft)
        assert result.errors[0].code == "CONDITIONAL_FK_VIOLATION"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
    def test_non_positive_amount(self, amount):
        result = validate_fiscal_adjustment(_draft(amount=amount))
        assert result.errors[0].code == "INVALID_AMOUNT"

    def test_blank_description(self):
        result = validate_fiscal_adjustment(_draft(description=" "))
        assert result.errors[0].code == "MISSING_REQUIRED_FIELD"

    def test_period_checked_first(self):
        draft = _draft(reference_month=13, amount=Decimal("-1"), tax_parameter_id=None)
        result = validate_fiscal_adjustment(draft)
        assert result.errors[0].code == "INVALID_REFERENCE_PERIOD"

    def test_change_of_kind_revalidated_from_scratch(self):
        # An update switching LEDGER_ACCOUNT -> ADJUSTMENT_ACCOUNT must clear
        # the ledger account id as well.
        draft = _draft(
            relationship_kind=RelationshipKind.ADJUSTMENT_ACCOUNT,
            adjustment_account_id=uuid4(),
        )
        result = validate_fiscal_adjustment(draft)
        assert result.errors[0].field == LEDGER_ACCOUNT_FIELD
