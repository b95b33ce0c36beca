"""
AI Analysis Client
Google Gemini text generation for valuation analyses (prompt or PDF text)
"""

import asyncio
import io
import logging
from typing import Optional

import google.generativeai as genai
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..config import Settings
from ..exceptions import AnalysisServiceError, EmptyDocumentError

logger = logging.getLogger(__name__)


def extract_pdf_text(document_bytes: bytes) -> str:
    """
    Extract plain text from every page of a PDF

    Raises:
        EmptyDocumentError: document cannot be parsed or contains no text
    """
    try:
        reader = PdfReader(io.BytesIO(document_bytes))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning(f"PDF parse failed: {e}")
        raise EmptyDocumentError() from e

    text = "\n".join(pages).strip()
    if not text:
        raise EmptyDocumentError()
    return text


class AnalysisClient:
    """Single request/response Gemini client (no streaming, no retry)"""

    def __init__(self, settings: Settings):
        """
        Initialize analysis client

        Args:
            settings: Application settings (API key, model, token limit)
        """
        self.api_key = settings.gemini_api_key
        self.model_name = settings.gemini_model
        self.max_output_tokens = settings.gemini_max_output_tokens

        if self.api_key:
            genai.configure(api_key=self.api_key)
            logger.info(f"Analysis client initialized with model: {self.model_name}")
        else:
            logger.warning("GEMINI_API_KEY is not set; analysis requests will fail")

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Send a prompt and return the model's text

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction

        Returns:
            Generated analysis text

        Raises:
            AnalysisServiceError: key missing, SDK failure, or empty response
        """
        if not self.api_key:
            raise AnalysisServiceError("GEMINI_API_KEY が設定されていません")

        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_prompt,
            generation_config={"max_output_tokens": self.max_output_tokens},
        )

        logger.info(f"Sending analysis prompt ({len(prompt)} chars) to {self.model_name}")
        logger.debug(f"Prompt: {prompt[:1000]}")
        try:
            response = await model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise AnalysisServiceError(f"AI分析に失敗しました: {e}") from e

        if not text or not text.strip():
            raise AnalysisServiceError("AIからのレスポンスにテキストが含まれていません")

        logger.debug(f"Response: {text[:1000]}")
        return text

    async def generate_from_document(
        self,
        document_bytes: bytes,
        prompt: str,
        system_prompt: Optional[str] = None
    ) -> str:
        """
        Extract the document's text, append it to the prompt, and generate

        Raises:
            EmptyDocumentError: before any model call when no text is found
        """
        loop = asyncio.get_running_loop()
        document_text = await loop.run_in_executor(None, extract_pdf_text, document_bytes)
        logger.info(f"Extracted {len(document_text)} chars from PDF")

        full_prompt = f"{prompt}\n\n【PDFの内容】\n{document_text}"
        return await self.generate(full_prompt, system_prompt)
