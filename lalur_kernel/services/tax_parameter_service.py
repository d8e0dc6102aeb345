"""
TaxParameterService -- company parameter associations and their month /
quarter slices.

Responsibility:
    Replaces a company's parameter associations, maintains the TemporalValue
    rows of periodic associations, and renders the display timeline from the
    same rows.

Architecture position:
    Kernel > Services -- imperative shell.  Pure checks live in
    ``domain.temporal_rules``.

Invariants enforced:
    - Associated parameters exist and are ACTIVE.
    - GLOBAL parameters never own temporal values.
    - MONTHLY takes months only, QUARTERLY quarters only.
    - (association, year, month, quarter) is unique among ACTIVE slices.
    - ``associate_parameters`` validates the whole request before any write.
    - Nothing is hard-deleted: dropped associations and removed slices flip to
      INACTIVE and are reactivated when requested again.

Failure modes:
    - CompanyNotFoundError, RecordNotFoundError, UnresolvedReferenceError,
      InactiveReferenceError, UnexpectedTemporalValueError,
      InvalidTemporalValueError, DuplicateTemporalValueError.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from lalur_kernel.domain.dtos import (
    TemporalKey,
    TimelineGroup,
    TimelineParameter,
)
from lalur_kernel.domain.enums import ParameterNature, Status
from lalur_kernel.domain.temporal_rules import (
    chronological_key,
    format_period_label,
    validate_temporal_value,
)
from lalur_kernel.exceptions import (
    CompanyNotFoundError,
    InactiveReferenceError,
    RecordNotFoundError,
    UnresolvedReferenceError,
    raise_for_result,
)
from lalur_kernel.logging_config import get_logger
from lalur_kernel.models.tax_parameter import (
    ParameterAssociation,
    TaxParameter,
    TemporalValue,
)
from lalur_kernel.selectors.company_selector import CompanySelector
from lalur_kernel.selectors.record_selector import RecordSelector
from lalur_kernel.selectors.reference_selector import ReferenceSelector
from lalur_kernel.services.base import BaseService

logger = get_logger("services.tax_parameter")


class TaxParameterService(BaseService[ParameterAssociation]):
    """Parameter associations and temporal values for one company at a time."""

    def __init__(self, session: Session):
        super().__init__(session)
        self._companies = CompanySelector(session)
        self._records = RecordSelector(session)
        self._references = ReferenceSelector(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_company(self, company_id: UUID) -> None:
        if self._companies.get(company_id) is None:
            raise CompanyNotFoundError(company_id)

    def _active_association(
        self, company_id: UUID, tax_parameter_id: UUID
    ) -> ParameterAssociation:
        association = self._records.association(company_id, tax_parameter_id)
        if association is None or association.status != Status.ACTIVE:
            raise RecordNotFoundError("ParameterAssociation", tax_parameter_id)
        return association

    def _load_parameters(self, ids: Iterable[UUID]) -> dict[UUID, TaxParameter]:
        wanted = list(dict.fromkeys(ids))
        found = self._references.tax_parameters_by_ids(wanted)
        for parameter_id in wanted:
            parameter = found.get(parameter_id)
            if parameter is None:
                raise UnresolvedReferenceError(
                    f"Tax parameter not found: {parameter_id}",
                    field="tax_parameter_id",
                )
            if parameter.status != Status.ACTIVE:
                raise InactiveReferenceError(
                    f"Tax parameter '{parameter.code}' is inactive",
                    field="tax_parameter_id",
                )
        return found

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def associate_parameters(
        self,
        company_id: UUID,
        global_parameter_ids: Iterable[UUID],
        periodic: Mapping[UUID, Iterable[TemporalKey]],
        actor_id: UUID,
    ) -> list[ParameterAssociation]:
        """
        Replace the company's associations with the given set.

        ``global_parameter_ids`` are associated without slices; each key of
        ``periodic`` is associated with exactly the listed slices.  The whole
        request is validated before the first write.
        """
        self._require_company(company_id)
        global_ids = list(dict.fromkeys(global_parameter_ids))
        periodic_keys = {pid: list(keys) for pid, keys in periodic.items()}
        parameters = self._load_parameters([*global_ids, *periodic_keys])

        for parameter_id, keys in periodic_keys.items():
            nature = parameters[parameter_id].nature
            seen: list[TemporalKey] = []
            for key in keys:
                raise_for_result(
                    validate_temporal_value(nature, key.year, key.month, key.quarter, seen)
                )
                seen.append(key)

        wanted = {pid: [] for pid in global_ids}
        wanted.update(periodic_keys)
        existing = {a.tax_parameter_id: a for a in self._records.associations(company_id)}

        for parameter_id, association in existing.items():
            if parameter_id not in wanted:
                association.status = Status.INACTIVE
                association.updated_by_id = actor_id
                for tv in association.temporal_values:
                    tv.status = Status.INACTIVE

        result: list[ParameterAssociation] = []
        for parameter_id, keys in wanted.items():
            association = existing.get(parameter_id)
            if association is None:
                association = ParameterAssociation(
                    company_id=company_id,
                    tax_parameter_id=parameter_id,
                    status=Status.ACTIVE,
                    created_by_id=actor_id,
                )
                self.session.add(association)
                self.session.flush()
            else:
                association.status = Status.ACTIVE
                association.updated_by_id = actor_id
            self._replace_slices(association, keys, actor_id)
            result.append(association)

        self.session.flush()
        logger.info(
            "parameters_associated",
            extra={
                "company_id": str(company_id),
                "global_count": len(global_ids),
                "periodic_count": len(periodic_keys),
            },
        )
        return result

    def _replace_slices(
        self, association: ParameterAssociation, keys: list[TemporalKey], actor_id: UUID
    ) -> None:
        wanted = set(keys)
        by_key = {tv.key: tv for tv in association.temporal_values}
        for key, tv in by_key.items():
            target = Status.ACTIVE if key in wanted else Status.INACTIVE
            if tv.status != target:
                tv.status = target
                tv.updated_by_id = actor_id
        for key in keys:
            if key not in by_key:
                association.temporal_values.append(
                    TemporalValue(
                        year=key.year,
                        month=key.month,
                        quarter=key.quarter,
                        status=Status.ACTIVE,
                        created_by_id=actor_id,
                    )
                )

    # ------------------------------------------------------------------
    # Temporal values
    # ------------------------------------------------------------------

    def add_temporal_value(
        self,
        company_id: UUID,
        tax_parameter_id: UUID,
        year: int,
        month: int | None,
        quarter: int | None,
        actor_id: UUID,
    ) -> TemporalValue:
        """Attach one month or quarter to an ACTIVE association."""
        self._require_company(company_id)
        association = self._active_association(company_id, tax_parameter_id)
        nature = association.tax_parameter.nature
        raise_for_result(
            validate_temporal_value(nature, year, month, quarter, association.active_keys())
        )

        key = TemporalKey(year=year, month=month, quarter=quarter)
        value = next((tv for tv in association.temporal_values if tv.key == key), None)
        if value is not None:
            value.status = Status.ACTIVE
            value.updated_by_id = actor_id
            self.session.flush()
        else:
            value = TemporalValue(
                association_id=association.id,
                year=year,
                month=month,
                quarter=quarter,
                status=Status.ACTIVE,
                created_by_id=actor_id,
            )
            self._flush_unique(value, "TemporalValue", format_period_label(key))
            self.session.expire(association, ["temporal_values"])

        logger.info(
            "temporal_value_added",
            extra={
                "company_id": str(company_id),
                "tax_parameter_id": str(tax_parameter_id),
                "period": format_period_label(key),
            },
        )
        return value

    def list_temporal_values(
        self, company_id: UUID, tax_parameter_id: UUID, year: int | None = None
    ) -> list[TemporalValue]:
        """ACTIVE slices of one association, chronological."""
        association = self._active_association(company_id, tax_parameter_id)
        values = [
            tv
            for tv in association.temporal_values
            if tv.status == Status.ACTIVE and (year is None or tv.year == year)
        ]
        return sorted(values, key=lambda tv: chronological_key(tv.key))

    def remove_temporal_value(
        self,
        company_id: UUID,
        tax_parameter_id: UUID,
        year: int,
        month: int | None,
        quarter: int | None,
        actor_id: UUID,
    ) -> TemporalValue:
        association = self._active_association(company_id, tax_parameter_id)
        key = TemporalKey(year=year, month=month, quarter=quarter)
        value = next(
            (
                tv
                for tv in association.temporal_values
                if tv.key == key and tv.status == Status.ACTIVE
            ),
            None,
        )
        if value is None:
            raise RecordNotFoundError("TemporalValue", format_period_label(key))
        value.status = Status.INACTIVE
        value.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "temporal_value_removed",
            extra={
                "company_id": str(company_id),
                "tax_parameter_id": str(tax_parameter_id),
                "period": format_period_label(key),
            },
        )
        return value

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def get_timeline(self, company_id: UUID, year: int) -> list[TimelineGroup]:
        """
        Periodic associations of ``company_id`` active in ``year``, grouped by
        parameter type, labels in chronological order.
        """
        self._require_company(company_id)
        grouped: dict[tuple[str, str], list[TimelineParameter]] = defaultdict(list)

        for association in self._records.associations(company_id):
            if association.status != Status.ACTIVE:
                continue
            parameter = association.tax_parameter
            if not parameter.nature.is_periodic:
                continue
            keys = sorted(
                (
                    tv.key
                    for tv in association.temporal_values
                    if tv.status == Status.ACTIVE and tv.year == year
                ),
                key=chronological_key,
            )
            if not keys:
                continue
            type_ = parameter.parameter_type
            grouped[(type_.description, ParameterNature(type_.nature).value)].append(
                TimelineParameter(
                    code=parameter.code,
                    description=parameter.description,
                    periods=tuple(format_period_label(k) for k in keys),
                )
            )

        return [
            TimelineGroup(
                type_description=description,
                nature=nature,
                parameters=tuple(sorted(params, key=lambda p: p.code)),
            )
            for (description, nature), params in sorted(grouped.items())
        ]
