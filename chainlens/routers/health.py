from fastapi import APIRouter, Depends

from chainlens.core.config import ProviderConfig, Settings
from chainlens.deps import get_provider_config, get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(settings: Settings = Depends(get_settings),
           provider: ProviderConfig = Depends(get_provider_config)):
    llm_ready = bool(settings.OPENAI_API_KEY)
    provider_ready = bool(provider.api_key)
    return {
        "status": "ok" if llm_ready and provider_ready else "degraded",
        "llm": {"configured": llm_ready, "model": settings.LLM_MODEL},
        "provider": {"configured": provider_ready, "chains": list(provider.chain_names)},
        "narrator_mode": settings.NARRATOR_MODE,
    }
