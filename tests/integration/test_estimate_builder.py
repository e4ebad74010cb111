"""Integration tests for building and persisting estimates."""

from __future__ import annotations

from uuid import uuid4

import httpx
import pytest
from sqlalchemy import func, select

from landcalc.config import GeocoderConfig
from landcalc.db.models import EstimateLineModel, EstimateModel, PriceSnapshotModel, RegionalFactorModel
from landcalc.estimating.builder import EstimateBuilder
from landcalc.exceptions import AssemblyNotFound, EstimateNotFound, InvalidFormula, InvalidInput, MaterialNotFound
from landcalc.logistics.geocode import Geocoder
from landcalc.models import EstimateRequest, Location

PATIO_ITEMS = [
    ("Pavers", "sqft", 5.0, "area"),
    ("Labor", "hr", 45.0, "area/25"),
]


async def count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar()


def request_for(project, *lines, location=None) -> EstimateRequest:
    return EstimateRequest(
        project_id=project.id,
        location=location,
        lines=[{"assembly_id": assembly.id, "inputs": inputs} for assembly, inputs in lines],
    )


class TestBuild:
    @pytest.mark.asyncio
    async def test_prices_and_persists(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS, waste_pct=0.1)
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        result = await builder.build(
            request_for(project, (patio, {"area": 100}), location=Location(zip="90001", state="CA"))
        )

        line = result.lines[0]
        assert line.assembly_name == "Paver Patio"
        assert [item.qty for item in line.items] == [pytest.approx(110.0), pytest.approx(4.4)]
        assert [item.extended for item in line.items] == [550.0, 198.0]
        assert line.line_total == 748.0
        assert result.subtotal == 748.0
        assert result.tax_rate == 0.095
        assert result.tax == 71.06
        assert result.total == 819.06
        assert result.status == "draft"

        assert await count(db_session, EstimateModel) == 1
        assert await count(db_session, EstimateLineModel) == 1

    @pytest.mark.asyncio
    async def test_multiple_lines_summed(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        fence = await make_assembly("Wood Fence", [("Boards", "each", 3.25, "length * (12/5)")])
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        result = await builder.build(request_for(project, (patio, {"area": 100}), (fence, {"length": 50})))

        assert [line.line_total for line in result.lines] == [680.0, 390.0]
        assert result.subtotal == 1070.0
        # No zip, no tax
        assert result.tax_rate == 0.0
        assert result.total == 1070.0

    @pytest.mark.asyncio
    async def test_material_linked_item_uses_resolved_price(
        self, db_session, project, make_assembly, make_material, make_vendor_price, tax_resolver
    ):
        material = await make_material("base-rock-34-minus")
        await make_vendor_price(material, "supplier", 40.0)
        base = await make_assembly("Base Prep", [("Base Rock", "ton", 38.0, "area/100", material.slug)])
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        result = await builder.build(
            request_for(project, (base, {"area": 200}), location=Location(zip="90001"))
        )

        item = result.lines[0].items[0]
        assert item.unit_cost == 40.0
        assert item.extended == 80.0
        assert item.source == "supplier:SupplierCSV"
        assert await count(db_session, PriceSnapshotModel) == 1

    @pytest.mark.asyncio
    async def test_regional_factor_applied(self, db_session, project, make_assembly, tax_resolver):
        db_session.add(RegionalFactorModel(region_key="US-CA-LosAngeles", factor=1.2))
        await db_session.flush()
        patio = await make_assembly("Paver Patio", [("Pavers", "sqft", 5.0, "area")])
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        result = await builder.build(
            request_for(project, (patio, {"area": 100}), location=Location(state="CA", city="Los Angeles"))
        )

        assert result.lines[0].items[0].unit_cost == 6.0
        assert result.subtotal == 600.0

    @pytest.mark.asyncio
    async def test_accepts_raw_mapping(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        result = await builder.build(
            {"projectId": str(project.id), "lines": [{"assemblyId": str(patio.id), "inputs": {"area": 25}}]}
        )

        assert result.subtotal == 170.0

    @pytest.mark.asyncio
    async def test_geocoder_enriches_location(self, db_session, project, make_assembly, tax_resolver):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[{"lat": "34.05", "lon": "-118.24", "address": {"city": "Los Angeles", "state": "California", "postcode": "90012"}}],
            )

        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            builder = EstimateBuilder(db_session, tax=tax_resolver, geocoder=Geocoder(GeocoderConfig(), client=client))
            result = await builder.build(
                request_for(project, (patio, {"area": 100}), location=Location(address="200 N Spring St"))
            )

        assert result.location.zip == "90012"
        assert result.location.state == "CA"
        assert result.tax_rate == 0.095

    @pytest.mark.asyncio
    async def test_malformed_geocoder_reply_does_not_block(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"]))
        async with httpx.AsyncClient(transport=transport) as client:
            builder = EstimateBuilder(db_session, tax=tax_resolver, geocoder=Geocoder(GeocoderConfig(), client=client))
            result = await builder.build(
                request_for(project, (patio, {"area": 100}), location=Location(address="somewhere"))
            )

        assert result.location.zip is None
        assert result.tax_rate == 0.0
        assert result.total > 0


class TestBuildFailures:
    @pytest.mark.asyncio
    async def test_invalid_formula_aborts_everything(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        broken = await make_assembly("Broken Wall", [("Blocks", "each", 2.25, "width * 2")])
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        with pytest.raises(InvalidFormula):
            await builder.build(request_for(project, (patio, {"area": 100}), (broken, {"area": 100})))

        assert await count(db_session, EstimateModel) == 0
        assert await count(db_session, EstimateLineModel) == 0

    @pytest.mark.asyncio
    async def test_missing_material_price_aborts(self, db_session, project, make_assembly, make_material, tax_resolver):
        material = await make_material("drainage-gravel")
        wall = await make_assembly("Retaining Wall", [("Gravel", "ton", 42.0, "length * 0.04", material.slug)])
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        with pytest.raises(MaterialNotFound) as exc_info:
            await builder.build(request_for(project, (wall, {"length": 40}), location=Location(zip="90001")))

        assert exc_info.value.material_slug == "drainage-gravel"
        assert await count(db_session, EstimateModel) == 0

    @pytest.mark.asyncio
    async def test_unknown_assembly(self, db_session, project, tax_resolver):
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        with pytest.raises(AssemblyNotFound):
            await builder.build(
                EstimateRequest(project_id=project.id, lines=[{"assembly_id": uuid4(), "inputs": {"area": 1}}])
            )

    @pytest.mark.asyncio
    async def test_unknown_project(self, db_session, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        with pytest.raises(InvalidInput):
            await builder.build(
                EstimateRequest(project_id=uuid4(), lines=[{"assembly_id": patio.id, "inputs": {"area": 1}}])
            )

    @pytest.mark.asyncio
    async def test_malformed_request(self, db_session, project, tax_resolver):
        builder = EstimateBuilder(db_session, tax=tax_resolver)

        with pytest.raises(InvalidInput):
            await builder.build({"projectId": str(project.id), "lines": []})


class TestGetEstimate:
    @pytest.mark.asyncio
    async def test_round_trip(self, db_session, project, make_assembly, tax_resolver):
        patio = await make_assembly("Paver Patio", PATIO_ITEMS)
        builder = EstimateBuilder(db_session, tax=tax_resolver)
        created = await builder.build(
            request_for(project, (patio, {"area": 100}), location=Location(zip="90001", state="CA"))
        )

        loaded = await builder.get_estimate(created.id)

        assert loaded.total == created.total
        assert loaded.location.zip == "90001"
        assert loaded.lines[0].assembly_name == "Paver Patio"
        assert loaded.lines[0].items == created.lines[0].items
        assert loaded.lines[0].id == created.lines[0].id

    @pytest.mark.asyncio
    async def test_missing(self, db_session):
        with pytest.raises(EstimateNotFound):
            await EstimateBuilder(db_session).get_estimate(uuid4())
