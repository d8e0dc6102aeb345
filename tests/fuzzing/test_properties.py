"""
Property-based tests (hypothesis) for the rulebook, the cutoff service and
the import pipeline.

Properties:
- Ledger entry acceptance is exactly the conjunction of its rules.
- The conditional FK table accepts exactly three of twelve shapes.
- Temporal slices: range checks, duplicate detection, chronological order.
- Cutoff updates: every accepted update is audited, the cutoff never moves
  backward, and it always equals the latest accepted value.
- Import reports: line counts always add up, whatever the input.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from lalur_config.schema import ImportSettings
from lalur_ingestion.domain.types import ImportRequest, RecordKind
from lalur_ingestion.services.import_pipeline import BulkImportPipeline
from lalur_kernel.domain.adjustment_rules import validate_relationship
from lalur_kernel.domain.dtos import LedgerAccountInfo, LedgerEntryDraft, TemporalKey
from lalur_kernel.domain.enums import ParameterNature, RelationshipKind, Status
from lalur_kernel.domain.ledger_rules import validate_ledger_entry
from lalur_kernel.domain.temporal_rules import chronological_key, validate_temporal_value
from lalur_kernel.exceptions import PeriodError
from lalur_kernel.models.company import Company
from lalur_kernel.services.accounting_period_service import AccountingPeriodService

DB_SETTINGS = settings(
    max_examples=30,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)

amounts = st.decimals(
    min_value=Decimal("-1000000"), max_value=Decimal("1000000"), places=2,
    allow_nan=False, allow_infinity=False,
)
years = st.integers(min_value=2020, max_value=2026)


# =============================================================================
# Ledger rules
# =============================================================================


class TestLedgerProperties:

    @given(
        amount=amounts,
        same_account=st.booleans(),
        debit_year=years,
        credit_year=years,
        entry_year=years,
        memo=st.text(max_size=5),
    )
    def test_accepted_iff_every_rule_holds(
        self, amount, same_account, debit_year, credit_year, entry_year, memo
    ):
        company_id = uuid4()
        debit = LedgerAccountInfo(uuid4(), company_id, "1", "D", debit_year)
        credit = debit if same_account else LedgerAccountInfo(
            uuid4(), company_id, "2", "C", credit_year
        )
        draft = LedgerEntryDraft(
            company_id=company_id,
            debit_account_id=debit.id,
            credit_account_id=credit.id,
            reference_date=date(entry_year, 1, 1),
            amount=amount,
            memo=memo,
            fiscal_year=entry_year,
        )
        expected = (
            not same_account
            and amount > 0
            and debit.fiscal_year == credit.fiscal_year == entry_year
            and memo.strip() != ""
        )
        assert validate_ledger_entry(draft, debit, credit).is_valid is expected


# =============================================================================
# Conditional foreign keys
# =============================================================================


ACCEPTED_SHAPES = {
    (RelationshipKind.LEDGER_ACCOUNT, True, False),
    (RelationshipKind.ADJUSTMENT_ACCOUNT, False, True),
    (RelationshipKind.BOTH, True, True),
}


@given(
    kind=st.sampled_from(RelationshipKind),
    has_ledger=st.booleans(),
    has_adjustment=st.booleans(),
)
def test_relationship_shapes(kind, has_ledger, has_adjustment):
    result = validate_relationship(
        kind,
        uuid4() if has_ledger else None,
        uuid4() if has_adjustment else None,
    )
    assert result.is_valid is ((kind, has_ledger, has_adjustment) in ACCEPTED_SHAPES)
    if not result.is_valid:
        assert result.errors[0].code == "CONDITIONAL_FK_VIOLATION"


# =============================================================================
# Temporal values
# =============================================================================


class TestTemporalProperties:

    @given(year=years, month=st.integers(min_value=-5, max_value=20))
    def test_monthly_range(self, year, month):
        result = validate_temporal_value(ParameterNature.MONTHLY, year, month, None)
        assert result.is_valid is (1 <= month <= 12)

    @given(year=years, quarter=st.integers(min_value=-2, max_value=8))
    def test_quarterly_range(self, year, quarter):
        result = validate_temporal_value(ParameterNature.QUARTERLY, year, None, quarter)
        assert result.is_valid is (1 <= quarter <= 4)

    @given(
        existing=st.sets(
            st.tuples(years, st.integers(min_value=1, max_value=12)), max_size=10
        ),
        candidate=st.tuples(years, st.integers(min_value=1, max_value=12)),
    )
    def test_duplicates_rejected(self, existing, candidate):
        keys = [TemporalKey(year=y, month=m, quarter=None) for y, m in existing]
        year, month = candidate
        result = validate_temporal_value(ParameterNature.MONTHLY, year, month, None, keys)
        if candidate in existing:
            assert result.errors[0].code == "DUPLICATE_TEMPORAL_VALUE"
        else:
            assert result.is_valid

    @given(year=years, quarter=st.integers(min_value=1, max_value=4))
    def test_quarter_sorts_with_its_first_month(self, year, quarter):
        first_month = TemporalKey(year=year, month=quarter * 3 - 2, quarter=None)
        slice_ = TemporalKey(year=year, month=None, quarter=quarter)
        assert chronological_key(slice_) == chronological_key(first_month)
        if quarter > 1:
            previous = TemporalKey(year=year, month=quarter * 3 - 3, quarter=None)
            assert chronological_key(previous) < chronological_key(slice_)


# =============================================================================
# Accounting cutoff
# =============================================================================


class TestCutoffProperties:

    @DB_SETTINGS
    @given(offsets=st.lists(st.integers(min_value=-400, max_value=30), min_size=1, max_size=8))
    def test_cutoff_is_monotonic_and_audited(self, session, clock, actor_id, offsets):
        company = Company(
            cnpj=str(uuid4().int)[:14],
            legal_name="Propriedade Ltda",
            status=Status.ACTIVE,
            created_by_id=actor_id,
        )
        session.add(company)
        session.flush()

        service = AccountingPeriodService(session, clock=clock)
        today = clock.today()
        accepted: list[date] = []
        for offset in offsets:
            candidate = today + timedelta(days=offset)
            try:
                service.update_cutoff(company.id, candidate, actor_id)
            except PeriodError:
                assert (
                    candidate > today
                    or (accepted and candidate <= accepted[-1])
                )
                continue
            assert not accepted or candidate > accepted[-1]
            accepted.append(candidate)

        assert len(service.get_audit_history(company.id)) == len(accepted)
        assert service.get_cutoff(company.id) == (accepted[-1] if accepted else None)


# =============================================================================
# Import reports
# =============================================================================


field_text = st.text(alphabet="0123456789.-;abcXYZ ", max_size=30)


class TestImportReportProperties:

    @DB_SETTINGS
    @given(lines=st.lists(field_text, max_size=12))
    def test_counts_add_up(self, session, clock, company, accounts, actor_id, lines):
        content = "\n".join(
            ["debitAccountCode;creditAccountCode;date;amount;memo;documentNumber", *lines]
        ).encode("utf-8")
        report = BulkImportPipeline(session, ImportSettings(), clock=clock).run(
            ImportRequest(
                kind=RecordKind.LEDGER_ENTRIES,
                content=content,
                actor_id=actor_id,
                company_id=company.id,
                fiscal_year=2024,
                dry_run=True,
            )
        )

        assert report.total_lines == sum(1 for line in lines if line.strip())
        assert report.processed_lines + report.skipped_lines == report.total_lines
        assert report.success is (report.skipped_lines == 0)
        assert len(report.preview) == report.processed_lines
        numbers = [e.line_number for e in report.errors]
        assert numbers == sorted(set(numbers))
