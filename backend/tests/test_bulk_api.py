"""End-to-end tests for the bulk import endpoints."""

import csv
import io
import zipfile
from urllib.parse import unquote

import pytest

ORDERS = (
    "order_id,desc,qty,unit_price,dest\n"
    "O1,Cotton T-Shirt,10,15,UK\n"
    "O2,Ceramic Vase,2,40,\n"
    "O3,Mystery Box,1,5,Spain\n"
)


@pytest.fixture
def ai_outcomes(fake_ai):
    fake_ai.failing.add("Mystery Box")
    return fake_ai


async def _paste_and_enrich(client, session):
    response = await client.post("/api/v1/bulk/paste", json={"text": ORDERS})
    assert response.status_code == 201

    response = await client.post("/api/v1/bulk/enrich")
    assert response.status_code == 202
    await session.batch.job.wait()


class TestIngest:
    @pytest.mark.asyncio
    async def test_paste(self, client):
        response = await client.post("/api/v1/bulk/paste", json={"text": ORDERS})

        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 3
        assert data["step"] == "UPLOAD"
        assert data["records"][0]["order_id"] == "O1"
        assert data["records"][1]["destination"] == ""

    @pytest.mark.asyncio
    async def test_paste_without_rows(self, client):
        response = await client.post("/api/v1/bulk/paste", json={"text": "order_id,desc"})
        assert response.status_code == 400
        assert "No valid rows" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_paste_blank(self, client):
        response = await client.post("/api/v1/bulk/paste", json={"text": "  "})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_csv(self, client):
        files = {"file": ("orders.csv", ORDERS.encode(), "text/csv")}
        response = await client.post("/api/v1/bulk/upload", files=files)

        assert response.status_code == 201
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_upload_template(self, client):
        template = await client.get("/api/v1/bulk/template")
        assert template.status_code == 200
        assert "customs_import_template.xlsx" in template.headers["content-disposition"]

        files = {"file": ("filled.xlsx", template.content, "application/octet-stream")}
        response = await client.post("/api/v1/bulk/upload", files=files)
        assert response.status_code == 201
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_upload_rejects_file_type(self, client):
        files = {"file": ("orders.pdf", b"%PDF-1.4", "application/pdf")}
        response = await client.post("/api/v1/bulk/upload", files=files)

        assert response.status_code == 400
        assert "not allowed" in response.json()["detail"]


class TestWorkflow:
    @pytest.mark.asyncio
    async def test_status_without_batch(self, client):
        data = (await client.get("/api/v1/bulk/status")).json()
        assert data["step"] == "UPLOAD"
        assert data["total_rows"] == 0

    @pytest.mark.asyncio
    async def test_rows_without_batch(self, client):
        response = await client.get("/api/v1/bulk/rows")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_enrichment_results(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)

        status = (await client.get("/api/v1/bulk/status")).json()
        assert status["step"] == "REVIEW"
        assert status["progress"] == 100
        assert status["done"] is True
        assert status["counts"] == {"OK": 1, "Warning": 0, "Error": 2}

        rows = (await client.get("/api/v1/bulk/rows")).json()["rows"]
        assert [r["status"] for r in rows] == ["OK", "Error", "Error"]
        assert rows[1]["messages"] == ["Missing Destination"]
        assert rows[2]["messages"] == ["AI Service Failed"]

    @pytest.mark.asyncio
    async def test_filter_rows(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)

        data = (await client.get("/api/v1/bulk/rows", params={"status": "Error", "search": "vase"})).json()
        assert data["total"] == 1
        assert data["rows"][0]["original"]["order_id"] == "O2"

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        response = await client.get("/api/v1/bulk/rows", params={"status": "Pending"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_enrich_twice_conflicts(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        response = await client.post("/api/v1/bulk/enrich")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_edit_before_enrichment_conflicts(self, client):
        await client.post("/api/v1/bulk/paste", json={"text": ORDERS})
        response = await client.patch("/api/v1/bulk/rows/0", json={"field": "hs_code", "value": "610910"})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_manual_edit(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)

        response = await client.patch("/api/v1/bulk/rows/1", json={"field": "hs_code", "value": "691390"})
        assert response.status_code == 200
        row = response.json()
        assert row["status"] == "OK"
        assert row["messages"] == []
        assert row["is_user_confirmed"] is True
        assert row["enriched"]["hs_code"] == "691390"

    @pytest.mark.asyncio
    async def test_edit_unknown_field(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        response = await client.patch("/api/v1/bulk/rows/0", json={"field": "buyer_name", "value": "X"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_edit_row_without_enrichment(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        response = await client.patch("/api/v1/bulk/rows/2", json={"field": "hs_code", "value": "950300"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_generate_and_download(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        await client.patch("/api/v1/bulk/rows/1", json={"field": "hs_code", "value": "691390"})

        response = await client.post("/api/v1/bulk/generate")
        assert response.status_code == 202
        await session.batch.job.wait()

        status = (await client.get("/api/v1/bulk/status")).json()
        assert status["step"] == "COMPLETE"
        assert status["progress"] == 100

        rows = (await client.get("/api/v1/bulk/rows")).json()["rows"]
        assert rows[0]["document_handle"] and rows[1]["document_handle"]
        assert rows[2]["document_handle"] is None
        assert len(session.shipments) == 2

        preview = await client.get("/api/v1/bulk/documents/0")
        assert preview.status_code == 200
        assert preview.headers["content-type"] == "application/pdf"
        assert preview.content.startswith(b"%PDF")

        missing = await client.get("/api/v1/bulk/documents/2")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_exports_require_sign_in(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        await client.post("/api/v1/bulk/generate")
        await session.batch.job.wait()

        response = await client.get("/api/v1/bulk/export/archive")
        assert response.status_code == 401
        assert (await client.get("/api/v1/session")).json()["login_prompt_open"] is True

        await client.post("/api/v1/session/login", json={"email": "ops@acme.test"})

        archive = await client.get("/api/v1/bulk/export/archive")
        assert archive.status_code == 200
        assert archive.headers["content-type"] == "application/zip"
        assert "bulk_invoices_" in archive.headers["content-disposition"]
        names = zipfile.ZipFile(io.BytesIO(archive.content)).namelist()
        assert names == ["invoices/O1_invoice.pdf"]

        summary = await client.get("/api/v1/bulk/export/summary")
        assert summary.status_code == 200
        lines = list(csv.reader(io.StringIO(summary.text)))
        assert lines[0] == ["Order ID", "Description", "HS Code", "Weight", "Incoterm", "Status"]
        assert [line[0] for line in lines[1:]] == ["O1", "O2", "O3"]

    @pytest.mark.asyncio
    async def test_archive_with_no_documents(self, client, session, fake_ai):
        fake_ai.failing.update({"Cotton T-Shirt", "Ceramic Vase", "Mystery Box"})
        await _paste_and_enrich(client, session)
        await client.post("/api/v1/bulk/generate")
        await session.batch.job.wait()
        await client.post("/api/v1/session/login", json={"email": "ops@acme.test"})

        archive = await client.get("/api/v1/bulk/export/archive")
        assert archive.status_code == 200
        assert zipfile.ZipFile(io.BytesIO(archive.content)).namelist() == []

    @pytest.mark.asyncio
    async def test_preview_with_non_ascii_order_id(self, client, session):
        text = 'order_id,desc,qty,unit_price,dest\n订单-1,Cotton T-Shirt,10,15,UK\n"A""B",Mug,1,5,UK\n'
        await client.post("/api/v1/bulk/paste", json={"text": text})
        await client.post("/api/v1/bulk/enrich")
        await session.batch.job.wait()
        await client.post("/api/v1/bulk/generate")
        await session.batch.job.wait()

        preview = await client.get("/api/v1/bulk/documents/0")
        assert preview.status_code == 200
        disposition = preview.headers["content-disposition"]
        assert disposition.startswith("inline; ")
        assert unquote(disposition.split("filename*=UTF-8''")[1]) == "订单-1_invoice.pdf"

        quoted = await client.get("/api/v1/bulk/documents/1")
        assert quoted.status_code == 200
        assert 'filename="A_B_invoice.pdf"' in quoted.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_edit_after_generation_drops_preview(self, client, session, ai_outcomes):
        await _paste_and_enrich(client, session)
        await client.post("/api/v1/bulk/generate")
        await session.batch.job.wait()
        assert (await client.get("/api/v1/bulk/documents/0")).status_code == 200

        response = await client.patch("/api/v1/bulk/rows/0", json={"field": "hs_code", "value": "610990"})
        assert response.json()["document_handle"] is None
        assert (await client.get("/api/v1/bulk/documents/0")).status_code == 404
