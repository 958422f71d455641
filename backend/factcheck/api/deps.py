"""
Shared FastAPI dependencies: caller identity and the running pipeline.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Header

from ..agents.analysis_engine import AnalysisEngine
from ..agents.content_fetcher import ContentFetcher
from ..agents.gemini_model import GeminiModel, ModelConfig
from ..config import get_settings
from ..db.session import init_db, make_engine
from ..errors import Unauthenticated
from ..services import Pipeline, build_pipeline


@lru_cache()
def get_pipeline() -> Pipeline:
    """Build the pipeline once from settings."""
    settings = get_settings()
    print("[deps] Building fact-check pipeline")

    engine = make_engine(settings.DATABASE_URL)
    init_db(engine)

    model = GeminiModel(ModelConfig(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        temperature=settings.TEMPERATURE,
        max_output_tokens=settings.MAX_OUTPUT_TOKENS,
        enable_search=settings.ENABLE_SEARCH_GROUNDING,
        image_timeout=settings.IMAGE_TIMEOUT_SECONDS,
        max_image_bytes=settings.MAX_IMAGE_BYTES,
        max_total_image_bytes=settings.MAX_TOTAL_IMAGE_BYTES,
    ))
    return build_pipeline(
        engine=engine,
        fetcher=ContentFetcher(settings.READER_BASE_URL, timeout=settings.FETCH_TIMEOUT_SECONDS),
        analysis=AnalysisEngine(model, max_images=settings.MAX_IMAGES),
        daily_limit=settings.DAILY_LIMIT,
        workers=settings.WORKER_COUNT,
    )


def get_optional_user(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity set by the upstream auth gateway, if any."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    user = get_optional_user(x_user_id)
    if user is None:
        raise Unauthenticated()
    return user
