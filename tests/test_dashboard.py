"""
Monthly dashboard and its PDF rendition.
"""
import os
import unicodedata
from io import BytesIO

import pytest
from pypdf import PdfReader

from ozifin.config import settings
from ozifin.utils.pdf_reports import register_fonts


def pdf_text(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    return unicodedata.normalize("NFC", "\n".join(page.extract_text() for page in reader.pages))


class TestDashboard:

    def test_monthly_stats(self, client, create_transaction, sale1_headers, admin_headers):
        create_transaction(sale1_headers, timestamp="2025-02-03", amount=1000000)
        create_transaction(sale1_headers, timestamp="2025-02-03", amount=2000000)
        create_transaction(sale1_headers, timestamp="2025-02-20", amount=3000000)
        create_transaction(sale1_headers, timestamp="2025-03-01", amount=9000000)

        body = client.get("/api/dashboard", params={"month": 2, "year": 2025}, headers=admin_headers).json()
        stats = body["stats"]
        assert stats["transaction_count"] == 3
        assert stats["total_volume"] == 6000000
        assert stats["total_profit"] == 24000
        assert stats["avg_profit"] == 8000

        chart = body["chart"]
        assert len(chart["labels"]) == 28
        assert chart["labels"][0] == "1"
        assert chart["volume"][2] == 3000000
        assert chart["profit"][19] == 12000
        assert sum(chart["volume"]) == 6000000

        assert [t["timestamp"][:10] for t in body["recent_transactions"]] == [
            "2025-02-20", "2025-02-03", "2025-02-03"
        ]

    def test_recent_is_capped_at_five(self, client, create_transaction, admin_headers):
        for day in range(1, 8):
            create_transaction(admin_headers, timestamp=f"2025-01-{day:02d}")
        body = client.get("/api/dashboard", params={"month": 1, "year": 2025}, headers=admin_headers).json()
        assert len(body["recent_transactions"]) == 5
        assert body["stats"]["transaction_count"] == 7

    def test_sale_sees_only_own_figures(self, client, create_transaction, sale1_headers, sale2_headers):
        create_transaction(sale1_headers, timestamp="2025-02-03")
        create_transaction(sale2_headers, timestamp="2025-02-04")

        body = client.get("/api/dashboard", params={"month": 2, "year": 2025}, headers=sale2_headers).json()
        assert body["stats"]["transaction_count"] == 1
        assert body["recent_transactions"][0]["created_by"] == "sale2"

    def test_empty_month(self, client, admin_headers):
        body = client.get("/api/dashboard", params={"month": 4, "year": 2024}, headers=admin_headers).json()
        assert body["stats"]["avg_profit"] == 0
        assert len(body["chart"]["labels"]) == 30

    def test_invalid_month(self, client, admin_headers):
        assert client.get("/api/dashboard", params={"month": 13}, headers=admin_headers).status_code == 422

    def test_pdf_report(self, client, create_transaction, admin_headers):
        create_transaction(admin_headers, timestamp="2025-02-03")
        response = client.get(
            "/api/dashboard/report.pdf", params={"month": 2, "year": 2025}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    @pytest.mark.skipif(not os.path.isfile(settings.PDF_FONT_PATH), reason="report font not installed")
    def test_pdf_report_keeps_vietnamese_text(self, client, create_transaction, admin_headers):
        create_transaction(
            admin_headers, timestamp="2025-02-03", customer="Đặng Thị Hương", status="Chưa thanh toán"
        )
        response = client.get(
            "/api/dashboard/report.pdf", params={"month": 2, "year": 2025}, headers=admin_headers
        )
        text = pdf_text(response.content)
        assert "Chưa thanh toán" in text
        assert "Đặng Thị Hương" in text

    def test_missing_font_falls_back_to_builtin(self, tmp_path):
        missing = str(tmp_path / "missing.ttf")
        assert register_fonts(missing, missing) == ("Helvetica", "Helvetica-Bold")
