"""HTTP-level tests for the v1 API with in-memory repositories."""

import io
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from gst_reporting.api.v1.deps import (
    get_business_repository,
    get_document_repository,
    get_ledger_repository,
)
from gst_reporting.core.db import get_db
from gst_reporting.domain.exceptions import PersistenceError
from gst_reporting.domain.models.numbering import NumberingState
from gst_reporting.domain.services.gst_workbooks import GSTR1_SHEETS
from gst_reporting.domain.services.sales_register import read_xlsx_totals
from gst_reporting.main import app

BUSINESS_ID = uuid.uuid4()


# ============================================================
# In-memory repositories
# ============================================================

class FakeSession:
    """Holds staged writes until commit; rollback discards them."""

    def __init__(self):
        self.pending = []
        self.commits = 0
        self.rollbacks = 0

    def stage(self, apply):
        self.pending.append(apply)

    async def commit(self):
        for apply in self.pending:
            apply()
        self.pending.clear()
        self.commits += 1

    async def rollback(self):
        self.pending.clear()
        self.rollbacks += 1


class FakeDocumentRepository:
    def __init__(self, documents, session):
        self.documents = list(documents)
        self.session = session

    async def list_documents(self, business_id, kind=None, *, include_deleted=False):
        return [
            d for d in self.documents
            if (kind is None or d.kind == kind) and (include_deleted or not d.deleted)
        ]

    async def list_document_numbers(self, business_id, kind):
        return [d.document_number for d in self.documents if d.kind == kind]

    async def add_document(self, business_id, document):
        self.session.stage(lambda: self.documents.append(document))
        return document


class FakeLedgerRepository:
    def __init__(self, entries, session, fail_add=False):
        self.entries = list(entries)
        self.session = session
        self.fail_add = fail_add

    async def list_ledger_entries(self, business_id):
        return list(self.entries)

    async def add_entry(self, business_id, entry):
        if self.fail_add:
            raise PersistenceError("Could not save ledger entry")
        self.session.stage(lambda: self.entries.append(entry))
        return entry


class FakeBusinessRepository:
    def __init__(self, prefix="INV/2025/", fail_save=False):
        self.business = SimpleNamespace(
            id=BUSINESS_ID,
            name="Acme Traders",
            gstin="29AAACB1234C1Z5",
            state="Karnataka",
            invoice_prefix=prefix,
            auto_numbering=True,
        )
        self.fail_save = fail_save

    async def get_business(self, business_id):
        return self.business if business_id == BUSINESS_ID else None

    async def get_numbering_state(self, business_id):
        return NumberingState(
            prefix=self.business.invoice_prefix,
            auto_numbering=self.business.auto_numbering,
        )

    async def save_numbering_state(self, business_id, state):
        if self.fail_save:
            raise PersistenceError("Could not save numbering state")
        self.business.invoice_prefix = state.prefix


@pytest.fixture
def repos(sample_documents, sample_ledger):
    session = FakeSession()
    docs = FakeDocumentRepository(sample_documents, session)
    ledger = FakeLedgerRepository(sample_ledger, session)
    businesses = FakeBusinessRepository()
    app.dependency_overrides[get_db] = lambda: session
    app.dependency_overrides[get_document_repository] = lambda: docs
    app.dependency_overrides[get_ledger_repository] = lambda: ledger
    app.dependency_overrides[get_business_repository] = lambda: businesses
    yield SimpleNamespace(session=session, documents=docs, ledger=ledger, businesses=businesses)
    app.dependency_overrides.clear()


@pytest.fixture
def client(repos):
    return TestClient(app)


def _url(path):
    return f"/api/v1/businesses/{BUSINESS_ID}{path}"


# ============================================================
# Periods and tax helpers
# ============================================================

class TestPeriodEndpoints:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_month_options(self, client):
        r = client.get("/api/v1/gst/periods/options", params={"kind": "Month", "reference_date": "2026-01-15"})
        assert r.status_code == 200, r.text
        data = r.json()["data"]
        assert len(data) == 12
        assert data[0]["key"] == "2026-01"

    def test_deadlines(self, client):
        r = client.get(
            "/api/v1/gst/periods/deadlines",
            params={"kind": "Month", "key": "2026-01", "today": "2026-02-08"},
        )
        data = r.json()["data"]
        assert data["gstr1"]["due_date"] == "2026-02-11"
        assert data["gstr1"]["status"] == "Warning"
        assert data["gstr3b"]["status"] == "OK"

    def test_bad_period_key(self, client):
        r = client.get("/api/v1/gst/periods/deadlines", params={"kind": "FY", "key": "2025-27"})
        assert r.status_code == 400
        assert r.json()["status"] == "error"


class TestTaxEndpoints:
    def test_resolve_type(self, client):
        r = client.post(
            "/api/v1/gst/tax/resolve-type",
            json={"seller_state": "Karnataka", "buyer_state": "karnataka"},
        )
        assert r.json()["data"]["gst_type"] == "IntraState"

    def test_line_tax(self, client):
        r = client.post(
            "/api/v1/gst/tax/line",
            json={
                "item": {"hsn_code": "8471", "quantity": "2", "unit_rate": "500", "gst_rate_percent": "18"},
                "gst_type": "IntraState",
            },
        )
        data = r.json()["data"]
        assert Decimal(data["cgst"]) == Decimal("90")
        assert Decimal(data["igst"]) == 0


# ============================================================
# Documents
# ============================================================

class TestDocumentEndpoints:
    def test_create_auto_numbered_invoice(self, client, repos):
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "customer_name": "Pune Retail",
                "customer_state": "Maharashtra",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "2", "unit_rate": "500", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.status_code == 200, r.text
        data = r.json()["data"]
        assert data["document_number"] == "INV/2025/006"
        assert data["gst_type"] == "InterState"
        assert Decimal(data["igst"]) == Decimal("180")
        assert Decimal(data["total_amount"]) == Decimal("1180")
        assert repos.ledger.entries[-1].amount == Decimal("1180.00")

    def test_invalid_rate_rejected(self, client, repos):
        r = client.post(
            _url("/documents"),
            json={
                "document_number": "INV/2025/100",
                "date": "2026-01-25",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "1", "unit_rate": "100", "gst_rate_percent": "7"}
                ],
            },
        )
        assert r.status_code == 400
        body = r.json()
        assert body["status"] == "error"
        assert body["errors"]
        assert len(repos.documents.documents) == 7

    def test_invoice_and_ledger_commit_together(self, client, repos):
        customer_id = uuid.uuid4()
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "customer_id": str(customer_id),
                "line_items": [
                    {"hsn_code": "8471", "quantity": "1", "unit_rate": "100", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.status_code == 200, r.text
        assert r.json()["data"]["customer_id"] == str(customer_id)
        assert repos.session.commits == 1
        assert len(repos.documents.documents) == 8
        assert repos.ledger.entries[-1].customer_id == str(customer_id)

    def test_ledger_failure_keeps_no_document(self, client, repos):
        repos.ledger.fail_add = True
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "1", "unit_rate": "100", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.status_code == 503
        assert repos.session.rollbacks == 1
        assert len(repos.documents.documents) == 7
        assert len(repos.ledger.entries) == 3

        # a retry after the failure reuses the same number
        repos.ledger.fail_add = False
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "1", "unit_rate": "100", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.json()["data"]["document_number"] == "INV/2025/006"

    def test_malformed_gstin_rejected(self, client, repos):
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "customer_gstin": "NOT-A-GSTIN",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "1", "unit_rate": "100", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.status_code == 400
        assert any("GSTIN" in e["detail"] for e in r.json()["errors"])
        assert len(repos.documents.documents) == 7

    def test_malformed_customer_id_rejected(self, client, repos):
        r = client.post(
            _url("/documents"),
            json={"date": "2026-01-25", "customer_id": "cust-42"},
        )
        assert r.status_code == 422
        assert len(repos.documents.documents) == 7

    def test_rate_beyond_stored_precision_rejected(self, client, repos):
        r = client.post(
            _url("/documents"),
            json={
                "date": "2026-01-25",
                "line_items": [
                    {"hsn_code": "8471", "quantity": "3", "unit_rate": "10.55555", "gst_rate_percent": "18"}
                ],
            },
        )
        assert r.status_code == 422
        assert len(repos.documents.documents) == 7

    def test_list_documents(self, client):
        r = client.get(_url("/documents"), params={"kind": "CreditNote"})
        data = r.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["document_number"] == "CN/2026/001"

    def test_unknown_business(self, client):
        r = client.post(
            f"/api/v1/businesses/{uuid.uuid4()}/documents",
            json={"date": "2026-01-25"},
        )
        assert r.status_code == 404


# ============================================================
# Reports
# ============================================================

class TestReportEndpoints:
    def test_summary(self, client):
        r = client.get(_url("/reports/summary"), params={"kind": "Month", "key": "2026-01"})
        data = r.json()["data"]
        assert data["invoices"]["total_amount"] == 357420.0
        assert data["net"]["taxable_value"] == 302500.0

    def test_empty_summary(self, client):
        r = client.get(_url("/reports/summary"), params={"kind": "Month", "key": "2024-06"})
        body = r.json()
        assert r.status_code == 200
        assert body["status"] == "empty"
        assert body["data"]["empty"] is True

    def test_gstr1_monthly(self, client):
        r = client.get(_url("/reports/gstr1"), params={"kind": "Month", "key": "2026-01"})
        tables = {t["name"]: t for t in r.json()["data"]["tables"]}
        assert tables["b2b"]["subtotal"]["total_amount"] == 1180.0

    def test_gstr1_quarter_unavailable(self, client):
        r = client.get(_url("/reports/gstr1"), params={"kind": "Quarter", "key": "2025-Q4"})
        assert r.status_code == 422
        assert r.json()["status"] == "unavailable"

    def test_gstr1_json(self, client):
        r = client.get(_url("/reports/gstr1/json"), params={"kind": "Month", "key": "2026-01"})
        data = r.json()["data"]
        assert data["fp"] == "012026"
        assert data["doc_issue"]["doc_det"][0]["docs"][0]["cancel"] == 1

    def test_gstr1_xlsx(self, client):
        r = client.get(_url("/reports/gstr1/xlsx"), params={"kind": "Month", "key": "2026-01"})
        assert r.status_code == 200
        assert "spreadsheetml" in r.headers["content-type"]
        assert "GSTR1_29AAACB1234C1Z5_012026.xlsx" in r.headers["content-disposition"]
        assert load_workbook(io.BytesIO(r.content)).sheetnames == list(GSTR1_SHEETS)

    def test_gstr1_xlsx_quarter_unavailable(self, client):
        r = client.get(_url("/reports/gstr1/xlsx"), params={"kind": "Quarter", "key": "2025-Q4"})
        assert r.status_code == 422
        assert r.json()["status"] == "unavailable"

    def test_gstr1_xlsx_empty_month(self, client):
        r = client.get(_url("/reports/gstr1/xlsx"), params={"kind": "Month", "key": "2024-06"})
        assert r.status_code == 404

    def test_hsn_xlsx(self, client):
        r = client.get(_url("/reports/hsn/xlsx"), params={"kind": "Month", "key": "2026-01"})
        assert r.status_code == 200
        rows = list(load_workbook(io.BytesIO(r.content))["HSN Summary"].iter_rows(values_only=True))
        assert rows[-1][0] == "TOTAL"
        assert rows[-1][4] == 302500

    def test_gstr3b(self, client):
        r = client.get(_url("/reports/gstr3b"), params={"kind": "Quarter", "key": "2025-Q4"})
        data = r.json()["data"]
        assert data["rows"][0]["section"] == "3.1(a)"
        assert data["json"]["ret_period"] == "032026"

    def test_hsn(self, client):
        r = client.get(_url("/reports/hsn"), params={"kind": "Month", "key": "2026-01"})
        assert r.json()["data"]["totals"]["taxable_value"] == 302500.0

    def test_sales_register_xlsx(self, client):
        r = client.get(_url("/reports/sales-register/xlsx"), params={"kind": "Month", "key": "2026-01"})
        assert r.status_code == 200
        assert "spreadsheetml" in r.headers["content-type"]
        assert read_xlsx_totals(r.content)["total_amount"] == Decimal("357420.00")

    def test_sales_register_pdf(self, client):
        r = client.get(_url("/reports/sales-register/pdf"), params={"kind": "Month", "key": "2026-01"})
        assert r.status_code == 200
        assert r.content.startswith(b"%PDF")

    def test_sales_register_xlsx_empty_period(self, client):
        r = client.get(_url("/reports/sales-register/xlsx"), params={"kind": "Month", "key": "2024-06"})
        assert r.status_code == 404

    def test_outstanding(self, client):
        r = client.get(
            _url("/outstanding"),
            params={"kind": "Month", "key": "2026-01", "today": "2026-02-10"},
        )
        data = r.json()["data"]
        assert data["outstanding"] == 355830.0
        assert [o["document_number"] for o in data["overdue"]] == ["INV/2025/000", "INV/2025/001"]
        assert data["unpaid_tax"]["invoice_count"] == 2


# ============================================================
# Numbering
# ============================================================

class TestNumberingEndpoints:
    def test_evaluate_prompts_for_new_fy(self, client):
        r = client.post(_url("/numbering/evaluate"), json={"kind": "FY", "key": "2026-27"})
        data = r.json()["data"]
        assert data["needs_prompt"] is True
        assert data["suggested_prefix"] == "INV/2026/"

    def test_commit(self, client, repos):
        r = client.post(_url("/numbering/commit"), json={"new_prefix": "INV/2026/"})
        assert r.status_code == 200
        assert repos.businesses.business.invoice_prefix == "INV/2026/"

    def test_commit_failure(self, client, repos):
        repos.businesses.fail_save = True
        r = client.post(_url("/numbering/commit"), json={"new_prefix": "INV/2026/"})
        assert r.status_code == 503
        assert repos.businesses.business.invoice_prefix == "INV/2025/"

    def test_next_number(self, client):
        r = client.get(_url("/numbering/next"))
        assert r.json()["data"]["next_number"] == "INV/2025/006"
