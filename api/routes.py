import asyncio
import logging
import os

from fastapi import APIRouter, HTTPException

from pagemeta.core import crawl
from pagemeta.errors import ValidationError
from pagemeta.fetcher import PROXY_API_KEY_ENV
from .schemas import HealthResponse, PageRequest, PageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/page", response_model=PageResponse, summary="Fetch a URL and extract page metadata")
async def fetch_page(request: PageRequest) -> PageResponse:
    """
    Fetches the URL once (retrying with script rendering if the proxy asks for it)
    and returns every extracted field plus the prose overview.

    - Set `render_js: true` to ask the rendering proxy to execute scripts up front.
    - Set `include_clean_html: true` to also get the boilerplate-free document.
    """
    loop = asyncio.get_event_loop()
    try:
        page = await loop.run_in_executor(None, crawl, request.url, request.render_js)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if not page.succeeded:
        raise HTTPException(status_code=502, detail=f"Failed to fetch URL: {page.error_text}")

    data = page.to_hash()
    data.pop("html")
    data["overview"] = page.overview()
    if request.include_clean_html:
        data["clean_html"] = page.clean_html()
    return PageResponse(**data)


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    transport = "rendering_proxy" if os.getenv(PROXY_API_KEY_ENV) else "direct"
    return HealthResponse(status="ok", transport=transport)
