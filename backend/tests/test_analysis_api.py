"""Tests for AI analysis endpoints and helpers."""

import io

import pytest
import pytest_asyncio
from fastapi import status
from pypdf import PdfWriter

from kabu_tracker.exceptions import AnalysisServiceError, EmptyDocumentError
from kabu_tracker.services.analysis_client import AnalysisClient, extract_pdf_text
from kabu_tracker.services.analysis_service import build_valuation_prompt, extract_theoretical_price


def blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest_asyncio.fixture
async def stock_id(auth_client):
    response = await auth_client.post("/api/stocks/register", json={"code": "7203"})
    return response.json()["id"]


class TestTheoreticalPriceExtraction:
    @pytest.mark.parametrize("text, expected", [
        ("理論株価：3,500円", 3500.0),
        ("1. 理論株価: 12000円", 12000.0),
        ("理論株価:1,234,567円です", 1234567.0),
        ("理論株価は3,500円です", None),
        ("", None),
    ])
    def test_extract(self, text, expected):
        assert extract_theoretical_price(text) == expected


class TestValuationPrompt:
    def test_only_given_figures_are_listed(self):
        prompt = build_valuation_prompt("トヨタ自動車", 2500.0, {"per": 15.5, "roe": 12.3})
        assert "- 銘柄: トヨタ自動車" in prompt
        assert "- 現在株価: 2500.0円" in prompt
        assert "- PER: 15.5" in prompt
        assert "- ROE: 12.3%" in prompt
        assert "PBR" not in prompt
        assert "理論株価は数値で明確に示してください" in prompt


class TestAnalyzeEndpoint:
    """Tests for POST/GET /api/analyze."""

    async def test_analysis_stores_extracted_price(self, auth_client, stock_id, analysis_client):
        await auth_client.put(f"/api/stocks/{stock_id}", json={
            "code": "7203", "name": "トヨタ自動車",
            "purchase_price": 2500, "shares": 100, "purchase_amount": 250000,
        })

        response = await auth_client.post("/api/analyze", json={
            "stock_id": stock_id, "name": "トヨタ自動車", "current_price": 2500, "per": 15.5,
        })
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["theoretical_price"] == 3500
        assert "- PER: 15.5" in analysis_client.prompts[0]

        history = await auth_client.get("/api/analyze", params={"stock_id": stock_id})
        assert len(history.json()) == 1
        assert history.json()[0]["theoretical_price"] == 3500

    async def test_missing_price_in_text_stores_null(self, auth_client, stock_id, analysis_client):
        analysis_client.response_text = "分析できませんでした"

        response = await auth_client.post("/api/analyze", json={
            "stock_id": stock_id, "name": "トヨタ自動車", "current_price": 2500,
        })
        assert response.json()["theoretical_price"] is None
        assert response.json()["analysis_text"] == "分析できませんでした"

    async def test_unknown_stock_returns_404(self, auth_client, analysis_client):
        response = await auth_client.post("/api/analyze", json={
            "stock_id": 999, "name": "不明", "current_price": 1000,
        })
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert analysis_client.prompts == []

    async def test_missing_required_field_returns_400(self, auth_client, stock_id):
        response = await auth_client.post("/api/analyze", json={"stock_id": stock_id, "name": "トヨタ自動車"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"]["field"] == "current_price"


class TestAnalyzePdfEndpoint:
    """Tests for POST /api/analyze/pdf."""

    async def test_empty_pdf_fails_before_ai_call(self, auth_client, stock_id, analysis_client):
        response = await auth_client.post(
            "/api/analyze/pdf",
            data={"stock_id": str(stock_id)},
            files={"file": ("report.pdf", blank_pdf(), "application/pdf")},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "EMPTY_DOCUMENT"
        assert analysis_client.prompts == []

    async def test_wrong_content_type_returns_400(self, auth_client, stock_id):
        response = await auth_client.post(
            "/api/analyze/pdf",
            data={"stock_id": str(stock_id)},
            files={"file": ("report.txt", b"hello", "text/plain")},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["details"]["field"] == "file"

    async def test_oversized_file_returns_400(self, auth_client, stock_id, monkeypatch):
        from kabu_tracker.config import settings
        monkeypatch.setattr(settings, "pdf_max_bytes", 16)

        response = await auth_client.post(
            "/api/analyze/pdf",
            data={"stock_id": str(stock_id)},
            files={"file": ("report.pdf", blank_pdf(), "application/pdf")},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_pdf_text_is_appended_and_persisted(self, auth_client, stock_id, analysis_client, monkeypatch):
        monkeypatch.setattr(
            "kabu_tracker.services.analysis_client.extract_pdf_text",
            lambda document: "売上高 45兆円",
        )

        response = await auth_client.post(
            "/api/analyze/pdf",
            data={"stock_id": str(stock_id)},
            files={"file": ("report.pdf", blank_pdf(), "application/pdf")},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["theoretical_price"] == 3500
        assert analysis_client.prompts[0].endswith("【PDFの内容】\n売上高 45兆円")


class TestAnalysisClient:
    def test_extract_pdf_text_rejects_garbage(self):
        with pytest.raises(EmptyDocumentError):
            extract_pdf_text(b"not a pdf at all")

    def test_extract_pdf_text_rejects_blank_document(self):
        with pytest.raises(EmptyDocumentError):
            extract_pdf_text(blank_pdf())

    async def test_generate_without_key_raises(self):
        from kabu_tracker.config import Settings

        client = AnalysisClient(Settings(gemini_api_key=None))
        with pytest.raises(AnalysisServiceError):
            await client.generate("prompt")
