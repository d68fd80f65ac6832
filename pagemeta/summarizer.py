import json
import logging
import os
from typing import Optional

import openai

from .errors import ValidationError
from .page import Page

logger = logging.getLogger(__name__)

MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
BETTER_MODEL = os.getenv("OPENAI_BETTER_MODEL", "gpt-4o")
MAX_BYTES_OF_HTML = 32768
MAX_RETRIES = 3
LLM_TIMEOUT = 60  # seconds

SUMMARY_KEYS = ("site_name", "type", "title", "description", "author", "published_at", "tags")

_KEYS_PROMPT = """Use these keys in the JSON object:
- site_name (i.e. the broad name of the site, if any)
- type (e.g. article, website, error)
- title (a string, in Title Case, ideally)
- description
- author (this can be a string or an array for multiple authors)
- published_at (in ISO 8601 format)
- tags (an array of lowercase single word tags, kebab_case is ok)
Do not include any keys that have no value or an empty string value."""

METADATA_PROMPT = (
    "Return a JSON object that summarizes the page based upon the "
    "provided context and metadata. " + _KEYS_PROMPT
)

HTML_PROMPT = (
    "Return a JSON object that best summarizes the page based upon the "
    "provided HTML. " + _KEYS_PROMPT
)

MERGE_PROMPT = (
    "Return a JSON object that best summarizes the page based upon the "
    "two provided JSON fragments which are attempted summaries by two "
    "other people. " + _KEYS_PROMPT
)


def _prune(summary: dict) -> dict:
    """Keep recognised keys that actually carry a value."""
    return {k: v for k, v in summary.items() if k in SUMMARY_KEYS and v not in (None, "", [], {})}


class Summarizer:
    """Turns a fetched Page into a short JSON summary via a chat model."""

    def __init__(self, page: Page, client: Optional[openai.OpenAI] = None):
        if not isinstance(page, Page):
            raise ValidationError("Expecting a Page object")
        self.page = page

        if client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValidationError("No OpenAI API key")
            # retries are handled below so timeouts stay bounded
            client = openai.OpenAI(api_key=api_key, timeout=LLM_TIMEOUT, max_retries=0)
        self.client = client

    def summary_from_metadata(self) -> dict:
        return self._call_json(system=METADATA_PROMPT, prompt=self.page.overview())

    def summary_from_html(self) -> dict:
        return self._call_json(system=HTML_PROMPT, prompt=self.page.clean_html(max_bytes=MAX_BYTES_OF_HTML))

    def summary(self) -> dict:
        """Ask the better model to reconcile the metadata and html summaries."""
        fragments = json.dumps(self.summary_from_metadata()) + "\n\n" + json.dumps(self.summary_from_html())
        return self._call_json(system=MERGE_PROMPT, prompt=fragments, model=BETTER_MODEL)

    def _call(self, prompt: str, system: Optional[str] = None, model: str = MODEL) -> Optional[str]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    response_format={"type": "json_object"},
                )
                return response.choices[0].message.content
            except openai.APITimeoutError as exc:
                logger.warning("LLM call timed out (attempt %d/%d): %s", attempt, MAX_RETRIES, exc)
        logger.error("LLM call gave up after %d timeouts", MAX_RETRIES)
        return None

    def _call_json(self, prompt: str, system: Optional[str] = None, model: str = MODEL) -> dict:
        content = self._call(prompt, system=system, model=model)
        if not content:
            return {}
        try:
            summary = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("LLM returned invalid JSON: %s", exc)
            return {}
        if not isinstance(summary, dict):
            return {}
        return _prune(summary)
