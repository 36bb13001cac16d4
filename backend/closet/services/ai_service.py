import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import httpx

from closet.config import Settings, get_settings
from closet.errors import AIUnavailable, SuggestionRejected, ValidationError
from closet.schemas.item import ItemResponse
from closet.schemas.suggestion import (
    MAX_SUGGESTIONS,
    MIN_ITEMS_PER_OUTFIT,
    NAME_MAX_LENGTH,
    REASONING_MAX_LENGTH,
    CatalogEntry,
    OutfitSuggestion,
)
from closet.services.image_service import ImageService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that returns strict JSON only. "
    "You must follow the output schema exactly."
)


def load_prompt(name: str) -> str:
    """Load a prompt from the prompts directory."""
    prompt_path = Path(__file__).parent.parent / "prompts" / f"{name}.txt"
    if prompt_path.exists():
        return prompt_path.read_text().strip()
    return "Suggest outfits using only the provided clothing items. Return strict JSON."


SUGGESTION_PROMPT = load_prompt("outfit_suggestion")


def extract_json(text: str) -> Any:
    """Extract JSON from text, tolerating a markdown code fence around it."""
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if json_match:
        try:
            return json.loads(json_match.group(1))
        except json.JSONDecodeError:
            pass
    return None


def parse_suggestions(text: str, catalog_ids: set[str]) -> list[OutfitSuggestion]:
    """Validate a raw model response against the catalog it was given.

    Unknown item ids are dropped first, then outfits left with fewer than
    two items; at most five outfits are kept. A response that is not JSON or
    lacks an ``outfits`` list is rejected as a whole.
    """
    data = extract_json(text)
    if data is None:
        raise SuggestionRejected("AI returned non-JSON output. Try again.", raw=text)
    if not isinstance(data, dict) or not isinstance(data.get("outfits"), list):
        raise SuggestionRejected("AI returned invalid schema.", raw=text)

    suggestions = []
    for entry in data["outfits"]:
        if not isinstance(entry, dict):
            continue
        item_ids = entry.get("itemIds")
        if not isinstance(item_ids, list):
            item_ids = []
        suggestions.append(
            OutfitSuggestion(
                name=str(entry.get("name") or "")[:NAME_MAX_LENGTH] or "Outfit",
                reasoning=str(entry.get("reasoning") or "")[:REASONING_MAX_LENGTH],
                item_ids=[i for i in item_ids if isinstance(i, str) and i in catalog_ids],
            )
        )

    kept = [s for s in suggestions if len(s.item_ids) >= MIN_ITEMS_PER_OUTFIT]
    if len(kept) < len(suggestions):
        dropped = len(suggestions) - len(kept)
        logger.info("Dropped %d suggestion(s) with too few known items", dropped)
    return kept[:MAX_SUGGESTIONS]


def build_catalog(items: list[ItemResponse]) -> list[CatalogEntry]:
    return [CatalogEntry.model_validate(item, from_attributes=True) for item in items]


class AIService:
    """Asks an OpenAI-compatible chat endpoint for outfit suggestions."""

    def __init__(
        self,
        images: ImageService,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.images = images
        self.base_url = self.settings.ai_base_url.rstrip("/")
        self.api_key = self.settings.ai_api_key
        self.timeout = self.settings.ai_timeout
        self.max_retries = max(1, self.settings.ai_max_retries)
        self.use_vision = self.settings.ai_use_vision
        self.transport = transport

    def _get_headers(self) -> dict:
        """Get headers for AI API requests, including auth if configured."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_prompt(self, catalog: list[CatalogEntry]) -> str:
        metadata = [entry.model_dump(mode="json") for entry in catalog]
        return (
            f"{SUGGESTION_PROMPT}\n\n"
            f"Here is the item list (metadata):\n{json.dumps(metadata, indent=2)}"
        )

    async def _image_parts(
        self, catalog: list[CatalogEntry]
    ) -> tuple[list[CatalogEntry], list[dict]]:
        """Load each image; entries whose image cannot be read are left out."""
        shown = []
        parts = []
        for entry in catalog:
            try:
                data_url = await self.images.to_jpeg_data_url(entry.image_url)
            except (ValueError, OSError) as e:
                logger.warning("Leaving out item %s, image not readable: %s", entry.id, e)
                continue
            shown.append(entry)
            parts.append({"type": "image_url", "image_url": {"url": data_url}})
        return shown, parts

    async def _complete(self, messages: list, model: str) -> str:
        """POST to /chat/completions with retries; returns the message content."""
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        headers=self._get_headers(),
                        json={
                            "model": model,
                            "messages": messages,
                            "stream": False,
                            "temperature": 0.7,
                        },
                    )
                    response.raise_for_status()
                except httpx.HTTPStatusError as e:
                    last_error = e
                    logger.warning(
                        "HTTP error from AI endpoint (attempt %d): %s", attempt + 1, e
                    )
                    continue
                except httpx.RequestError as e:
                    last_error = e
                    logger.warning(
                        "Request error from AI endpoint (attempt %d): %s", attempt + 1, e
                    )
                    continue

                try:
                    data = response.json()
                    content = data["choices"][0]["message"]["content"]
                except (ValueError, KeyError, IndexError, TypeError) as e:
                    raise SuggestionRejected(
                        "AI endpoint returned an unexpected payload.", raw=response.text
                    ) from e

                logger.info("AI suggestion successful (model: %s)", data.get("model", model))
                return content or ""

        raise AIUnavailable(f"AI endpoint failed after {self.max_retries} attempt(s): {last_error}")

    async def suggest_outfits(self, items: list[ItemResponse]) -> list[OutfitSuggestion]:
        if not self.base_url:
            raise AIUnavailable("AI_BASE_URL is not configured.")

        catalog = build_catalog(items)

        if self.use_vision:
            catalog, image_parts = await self._image_parts(
                [entry for entry in catalog if entry.image_url]
            )
            if len(catalog) < MIN_ITEMS_PER_OUTFIT:
                raise ValidationError(
                    "Add at least 2 clothing items with images to get AI outfit suggestions."
                )
            content = [{"type": "text", "text": self._build_prompt(catalog)}]
            content.extend(image_parts)
            model = self.settings.ai_vision_model
        else:
            if not catalog:
                return []
            content = self._build_prompt(catalog)
            model = self.settings.ai_text_model

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ]
        text = await self._complete(messages, model)
        return parse_suggestions(text, {entry.id for entry in catalog})
