"""Integration tests for budget snapshots and budget vs. actual reporting."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from landcalc.budget.expenses import ExpenseLedger
from landcalc.budget.report import BudgetReportAggregator
from landcalc.budget.snapshot import BudgetSnapshotBuilder
from landcalc.db.models import BudgetSnapshotModel, EstimateModel
from landcalc.estimating.builder import EstimateBuilder
from landcalc.exceptions import EstimateAlreadyFinalized, EstimateNotFound, InvalidInput
from landcalc.models import CATEGORIES, EstimateRequest


@pytest.fixture
def make_estimate(db_session, project, make_assembly, tax_resolver):
    """Estimate with a material line (Paver Patio, 680) and a labor line (Crew Labor, 450)."""

    async def _make():
        patio = await make_assembly("Paver Patio", [("Pavers", "sqft", 5.0, "area"), ("Labor", "hr", 45.0, "area/25")])
        crew = await make_assembly("Crew Labor", [("Crew", "hr", 45.0, "hours")])
        builder = EstimateBuilder(db_session, tax=tax_resolver)
        return await builder.build(
            EstimateRequest(
                project_id=project.id,
                lines=[
                    {"assembly_id": patio.id, "inputs": {"area": 100}},
                    {"assembly_id": crew.id, "inputs": {"hours": 10}},
                ],
            )
        )

    return _make


class TestSnapshotBuilder:
    @pytest.mark.asyncio
    async def test_categorizes_lines(self, db_session, project, make_estimate):
        estimate = await make_estimate()

        snapshot = await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, estimate.id)

        assert snapshot.by_category == {
            "MATERIAL": 680.0,
            "LABOR": 450.0,
            "EQUIPMENT": 0.0,
            "SUBCONTRACTOR": 0.0,
            "OTHER": 0.0,
        }
        assert snapshot.total == 1130.0
        assert snapshot.estimate_id == estimate.id

    @pytest.mark.asyncio
    async def test_snapshots_accumulate(self, db_session, project, make_estimate):
        estimate = await make_estimate()
        builder = BudgetSnapshotBuilder(db_session)

        await builder.create_snapshot(project.id, estimate.id)
        await builder.create_snapshot(project.id, estimate.id)

        result = await db_session.execute(select(func.count()).select_from(BudgetSnapshotModel))
        assert result.scalar() == 2

    @pytest.mark.asyncio
    async def test_unknown_estimate(self, db_session, project):
        with pytest.raises(EstimateNotFound):
            await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, uuid4())

    @pytest.mark.asyncio
    async def test_estimate_from_other_project(self, db_session, make_estimate):
        estimate = await make_estimate()

        with pytest.raises(InvalidInput):
            await BudgetSnapshotBuilder(db_session).create_snapshot(uuid4(), estimate.id)

    @pytest.mark.asyncio
    async def test_finalize_once(self, db_session, make_estimate):
        estimate = await make_estimate()
        builder = BudgetSnapshotBuilder(db_session)

        snapshot = await builder.finalize_estimate(estimate.id)

        row = await db_session.get(EstimateModel, estimate.id)
        assert row.status == "finalized"
        assert row.finalized_at is not None
        assert snapshot.total == 1130.0

        with pytest.raises(EstimateAlreadyFinalized):
            await builder.finalize_estimate(estimate.id)


class TestBudgetReport:
    @pytest.mark.asyncio
    async def test_no_baseline(self, db_session, project):
        report = await BudgetReportAggregator(db_session).get_report(project.id)

        assert report.has_baseline is False
        assert report.baseline_total == 0
        assert set(report.by_category) == set(CATEGORIES)

    @pytest.mark.asyncio
    async def test_no_expenses_remaining_equals_baseline(self, db_session, project, make_estimate):
        estimate = await make_estimate()
        snapshot = await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, estimate.id)

        report = await BudgetReportAggregator(db_session).get_report(project.id)

        assert report.has_baseline is True
        assert report.total_actual == 0
        assert report.remaining_by_category == snapshot.by_category
        assert report.total_remaining == 1130.0

    @pytest.mark.asyncio
    async def test_report_is_idempotent(self, db_session, project, make_estimate):
        estimate = await make_estimate()
        await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, estimate.id)
        await ExpenseLedger(db_session).record_expense(
            {"projectId": str(project.id), "category": "labor", "amount": 100, "date": "2024-05-01"}
        )
        aggregator = BudgetReportAggregator(db_session)

        assert await aggregator.get_report(project.id) == await aggregator.get_report(project.id)

    @pytest.mark.asyncio
    async def test_actuals_and_overruns(self, db_session, project, make_estimate):
        estimate = await make_estimate()
        await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, estimate.id)
        ledger = ExpenseLedger(db_session)
        for category, amount in [("LABOR", 300), ("labor", 250.5), ("MATERIAL", 200), ("fuel", 40)]:
            await ledger.record_expense(
                {"projectId": str(project.id), "category": category, "amount": amount, "date": "2024-05-01"}
            )

        report = await BudgetReportAggregator(db_session).get_report(project.id)

        assert report.actual_by_category["LABOR"] == 550.5
        assert report.actual_by_category["OTHER"] == 40.0
        assert report.remaining_by_category["LABOR"] == -100.5
        assert report.remaining_by_category["MATERIAL"] == 480.0
        assert report.remaining_by_category["OTHER"] == -40.0
        assert report.total_actual == 790.5
        assert report.total_remaining == 339.5

    @pytest.mark.asyncio
    async def test_uses_latest_snapshot(self, db_session, project, make_estimate, make_assembly, tax_resolver):
        first = await make_estimate()
        builder = BudgetSnapshotBuilder(db_session)
        await builder.create_snapshot(project.id, first.id)

        equipment = await make_assembly("Equipment Rental", [("Skid Steer", "day", 300.0, "days")])
        second = await EstimateBuilder(db_session, tax=tax_resolver).build(
            EstimateRequest(project_id=project.id, lines=[{"assembly_id": equipment.id, "inputs": {"days": 2}}])
        )
        await builder.create_snapshot(project.id, second.id)

        report = await BudgetReportAggregator(db_session).get_report(project.id)

        assert report.by_category["EQUIPMENT"] == 600.0
        assert report.by_category["MATERIAL"] == 0.0
        assert report.baseline_total == 600.0

    @pytest.mark.asyncio
    async def test_approved_change_orders_raise_baseline(self, db_session, project, make_estimate):
        estimate = await make_estimate()
        await BudgetSnapshotBuilder(db_session).create_snapshot(project.id, estimate.id)
        ledger = ExpenseLedger(db_session)
        approved = await ledger.create_change_order({"projectId": str(project.id), "title": "Extra steps", "amount": 250})
        await ledger.create_change_order({"projectId": str(project.id), "title": "Pending lights", "amount": 900})
        await ledger.approve_change_order(approved.id)

        report = await BudgetReportAggregator(db_session).get_report(project.id)

        assert report.change_order_total == 250.0
        assert report.baseline_total == 1380.0
        assert report.total_remaining == 1380.0
        assert sum(report.by_category.values()) == 1130.0
