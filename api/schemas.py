from typing import Optional
from pydantic import BaseModel, field_validator


class PageRequest(BaseModel):
    url: str
    render_js: bool = False             # force the rendering proxy to execute scripts
    include_clean_html: bool = False    # also return the sanitized document

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


class PageResponse(BaseModel):
    url: str
    resolved_url: Optional[str] = None
    site_name: Optional[str] = None
    type: Optional[str] = None          # og:type, or "unknown" when there is no html

    titles: list[str] = []
    descriptions: list[str] = []
    authors: list[str] = []
    published_at: list[str] = []
    headings: list[str] = []
    paragraphs: list[str] = []
    feeds: list[str] = []
    topics: list[str] = []

    opengraph: dict = {}
    metas: dict = {}

    overview: str = ""
    clean_html: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    transport: str  # "direct" or "rendering_proxy"


class ErrorResponse(BaseModel):
    detail: str
    code: str
