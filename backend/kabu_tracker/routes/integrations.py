"""
Integrations API Routes
外部 API キーの設定状況と接続テスト
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth import require_session
from ..config import Settings, get_settings
from ..dependencies import get_edinet_client, get_fmp_client, get_metrics_resolver
from ..exceptions import UpstreamUnavailableError, soft_failure
from ..services.edinet_client import EdinetClient
from ..services.fmp_client import FMPClient
from ..services.metrics_resolver import MetricsResolver
from ..services.validation import validate_code

router = APIRouter(prefix="/api/integrations", tags=["integrations"], dependencies=[Depends(require_session)])


def mask_key(value: Optional[str]) -> str:
    """Show only the first 8 characters of a configured key"""
    if not value:
        return "未設定"
    return f"設定済み ({value[:8]}...)"


@router.get("/status")
async def get_integration_status(
    settings: Settings = Depends(get_settings),
    resolver: MetricsResolver = Depends(get_metrics_resolver),
):
    """外部 API の設定状況"""
    return {
        "metrics_sources": resolver.source_names,
        "gemini": {"configured": bool(settings.gemini_api_key), "model": settings.gemini_model,
                   "apiKeyStatus": mask_key(settings.gemini_api_key)},
        "fmp": {"configured": bool(settings.fmp_api_key), "apiKeyStatus": mask_key(settings.fmp_api_key)},
        "edinet": {"configured": bool(settings.edinet_api_key), "apiKeyStatus": mask_key(settings.edinet_api_key)},
        "jquants": {"configured": bool(settings.jquants_refresh_token),
                    "apiKeyStatus": mask_key(settings.jquants_refresh_token)},
    }


@router.get("/edinet")
async def test_edinet(client: EdinetClient = Depends(get_edinet_client)):
    """EDINET API の接続テスト"""
    return await client.test_connection()


@router.get("/fmp/{code}")
async def test_fmp(code: str, client: FMPClient = Depends(get_fmp_client)):
    """FMP API から財務比率・企業プロファイル・主要指標を取得"""
    code = validate_code(code)
    if not client.is_configured:
        return soft_failure(UpstreamUnavailableError("FMP_API_KEY が設定されていません"), code=code)

    data = await client.get_all_financial_data(code)
    if not any(data.values()):
        return soft_failure(UpstreamUnavailableError("FMP API からデータを取得できませんでした"), code=code)
    return {"success": True, "code": code, **data}
