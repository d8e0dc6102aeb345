"""Parameter associations, temporal values and the timeline view."""

from uuid import uuid4

import pytest

from lalur_kernel.domain.dtos import TemporalKey
from lalur_kernel.domain.enums import Status
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    DuplicateTemporalValueError,
    InactiveReferenceError,
    InvalidTemporalValueError,
    RecordNotFoundError,
    UnexpectedTemporalValueError,
    UnresolvedReferenceError,
)
from lalur_kernel.services.tax_parameter_service import TaxParameterService


@pytest.fixture
def service(session):
    return TaxParameterService(session)


def _months(year, *months):
    return [TemporalKey(year=year, month=m) for m in months]


class TestAssociateParameters:

    def test_associates_global_and_periodic(self, service, company, tax_parameters, actor_id):
        glb, men = tax_parameters["GLB-01"], tax_parameters["MEN-01"]
        result = service.associate_parameters(
            company.id, [glb.id], {men.id: _months(2024, 1, 2, 3)}, actor_id
        )
        assert {a.tax_parameter_id for a in result} == {glb.id, men.id}
        labels = [tv.key for tv in service.list_temporal_values(company.id, men.id)]
        assert labels == _months(2024, 1, 2, 3)

    def test_global_with_slices_rejected(self, service, company, tax_parameters, actor_id):
        glb = tax_parameters["GLB-01"]
        with pytest.raises(UnexpectedTemporalValueError):
            service.associate_parameters(company.id, [], {glb.id: _months(2024, 1)}, actor_id)

    def test_duplicate_slice_in_request(self, service, company, tax_parameters, actor_id):
        men = tax_parameters["MEN-01"]
        with pytest.raises(DuplicateTemporalValueError):
            service.associate_parameters(
                company.id, [], {men.id: _months(2024, 4, 4)}, actor_id
            )

    def test_invalid_request_writes_nothing(
        self, service, company, tax_parameters, actor_id, session
    ):
        glb, tri = tax_parameters["GLB-01"], tax_parameters["TRI-01"]
        with pytest.raises(InvalidTemporalValueError):
            service.associate_parameters(
                company.id, [glb.id], {tri.id: _months(2024, 1)}, actor_id
            )
        with pytest.raises(RecordNotFoundError):
            service.list_temporal_values(company.id, glb.id)

    def test_inactive_parameter_rejected(self, service, company, tax_parameters, actor_id):
        with pytest.raises(InactiveReferenceError):
            service.associate_parameters(company.id, [tax_parameters["OLD-01"].id], {}, actor_id)

    def test_unknown_parameter_rejected(self, service, company, actor_id):
        with pytest.raises(UnresolvedReferenceError):
            service.associate_parameters(company.id, [uuid4()], {}, actor_id)

    def test_unknown_company(self, service, actor_id):
        with pytest.raises(CompanyNotFoundError):
            service.associate_parameters(uuid4(), [], {}, actor_id)

    def test_replacing_deactivates_dropped(self, service, company, tax_parameters, actor_id):
        glb, men = tax_parameters["GLB-01"], tax_parameters["MEN-01"]
        service.associate_parameters(company.id, [glb.id], {men.id: _months(2024, 1)}, actor_id)
        service.associate_parameters(company.id, [glb.id], {}, actor_id)
        with pytest.raises(RecordNotFoundError):
            service.list_temporal_values(company.id, men.id)

    def test_reassociation_reactivates_rows(
        self, service, company, tax_parameters, actor_id, session
    ):
        men = tax_parameters["MEN-01"]
        first = service.associate_parameters(company.id, [], {men.id: _months(2024, 1, 2)}, actor_id)
        service.associate_parameters(company.id, [], {}, actor_id)
        again = service.associate_parameters(
            company.id, [], {men.id: _months(2024, 2, 3)}, actor_id
        )
        assert again[0].id == first[0].id
        assert again[0].status == Status.ACTIVE
        keys = [tv.key for tv in service.list_temporal_values(company.id, men.id)]
        assert keys == _months(2024, 2, 3)
        # Soft delete: the January row still exists, inactive
        assert len(again[0].temporal_values) == 3


class TestTemporalValues:

    @pytest.fixture
    def monthly(self, service, company, tax_parameters, actor_id):
        men = tax_parameters["MEN-01"]
        service.associate_parameters(company.id, [], {men.id: []}, actor_id)
        return men

    def test_add_and_list(self, service, company, monthly, actor_id):
        service.add_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)
        service.add_temporal_value(company.id, monthly.id, 2024, 2, None, actor_id)
        service.add_temporal_value(company.id, monthly.id, 2023, 12, None, actor_id)
        keys = [tv.key for tv in service.list_temporal_values(company.id, monthly.id)]
        assert keys == [
            TemporalKey(year=2023, month=12),
            TemporalKey(year=2024, month=2),
            TemporalKey(year=2024, month=7),
        ]
        in_2024 = service.list_temporal_values(company.id, monthly.id, year=2024)
        assert len(in_2024) == 2

    def test_duplicate_rejected(self, service, company, monthly, actor_id):
        service.add_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)
        with pytest.raises(DuplicateTemporalValueError):
            service.add_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)

    def test_quarter_on_monthly_rejected(self, service, company, monthly, actor_id):
        with pytest.raises(InvalidTemporalValueError):
            service.add_temporal_value(company.id, monthly.id, 2024, None, 1, actor_id)

    def test_global_rejected(self, service, company, tax_parameters, actor_id):
        glb = tax_parameters["GLB-01"]
        service.associate_parameters(company.id, [glb.id], {}, actor_id)
        with pytest.raises(UnexpectedTemporalValueError):
            service.add_temporal_value(company.id, glb.id, 2024, 1, None, actor_id)

    def test_not_associated(self, service, company, tax_parameters, actor_id):
        with pytest.raises(RecordNotFoundError):
            service.add_temporal_value(
                company.id, tax_parameters["TRI-01"].id, 2024, None, 1, actor_id
            )

    def test_remove_then_add_reactivates(self, service, company, monthly, actor_id):
        added = service.add_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)
        removed = service.remove_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)
        assert removed.status == Status.INACTIVE
        again = service.add_temporal_value(company.id, monthly.id, 2024, 7, None, actor_id)
        assert again.id == added.id
        assert again.status == Status.ACTIVE

    def test_remove_missing(self, service, company, monthly, actor_id):
        with pytest.raises(RecordNotFoundError):
            service.remove_temporal_value(company.id, monthly.id, 2024, 1, None, actor_id)


class TestTimeline:

    def test_grouped_and_labelled(self, service, company, tax_parameters, actor_id):
        glb = tax_parameters["GLB-01"]
        men1, men2, tri = (
            tax_parameters["MEN-01"],
            tax_parameters["MEN-02"],
            tax_parameters["TRI-01"],
        )
        service.associate_parameters(
            company.id,
            [glb.id],
            {
                men2.id: _months(2024, 12, 1),
                men1.id: _months(2024, 3) + _months(2023, 11),
                tri.id: [TemporalKey(year=2024, quarter=2), TemporalKey(year=2024, quarter=1)],
            },
            actor_id,
        )
        timeline = service.get_timeline(company.id, 2024)

        assert [(g.type_description, g.nature) for g in timeline] == [
            ("Tipo MONTHLY", "MONTHLY"),
            ("Tipo QUARTERLY", "QUARTERLY"),
        ]
        monthly = timeline[0]
        assert [p.code for p in monthly.parameters] == ["MEN-01", "MEN-02"]
        assert monthly.parameters[0].periods == ("Mar/2024",)
        assert monthly.parameters[1].periods == ("Jan/2024", "Dez/2024")
        assert timeline[1].parameters[0].periods == ("1º Tri/2024", "2º Tri/2024")

    def test_empty_year(self, service, company, tax_parameters, actor_id):
        men = tax_parameters["MEN-01"]
        service.associate_parameters(company.id, [], {men.id: _months(2023, 1)}, actor_id)
        assert service.get_timeline(company.id, 2024) == []

    def test_removed_values_leave_timeline(self, service, company, tax_parameters, actor_id):
        men = tax_parameters["MEN-01"]
        service.associate_parameters(company.id, [], {men.id: _months(2024, 1, 2)}, actor_id)
        service.remove_temporal_value(company.id, men.id, 2024, 1, None, actor_id)
        timeline = service.get_timeline(company.id, 2024)
        assert timeline[0].parameters[0].periods == ("Fev/2024",)
