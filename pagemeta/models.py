from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FetchResult:
    status_code: int
    success: bool
    body: str = ""

    content_type: Optional[str] = None      # "html" for text/html responses
    resolved_url: Optional[str] = None      # final url after redirects
    headers: dict[str, str] = field(default_factory=dict)   # lower-cased names

    # vendor hints from the rendering proxy (pre-parsed opengraph etc.)
    metadata: Optional[dict[str, Any]] = None
    initial_status_code: Optional[int] = None
    cost: Optional[int] = None

    transport: Optional[str] = None         # which transport produced this result

    # populated only on failure
    error_text: Optional[str] = None

    @classmethod
    def failure(cls, status_code: int, error_text: str, transport: Optional[str] = None) -> "FetchResult":
        return cls(status_code=status_code, success=False, error_text=error_text, transport=transport)
