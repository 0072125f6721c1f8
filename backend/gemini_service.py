import base64
import json
import logging
from typing import Optional, List, Dict, Any

from google import genai
from google.genai import types

from canvas_types import WeatherState, TrendingItem
import prompt_builder

logger = logging.getLogger("GeminiService")

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


def strip_code_fences(text: str) -> str:
    """Removes ```json / ``` markers that models wrap around JSON answers."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_json_text(text: Optional[str]) -> Optional[Any]:
    if not text:
        return None
    try:
        return json.loads(strip_code_fences(text))
    except ValueError as e:
        logger.warning(f"Could not parse model output as JSON: {e}")
        return None


class GeminiService:
    """
    Thin async wrapper around the google-genai client.

    None of the public coroutines raise: upstream failures, empty answers and
    unparseable JSON all come back as [] or None so callers can show
    placeholder content instead.
    """

    def __init__(self, api_key: Optional[str] = None, text_model: str = DEFAULT_TEXT_MODEL,
                 image_model: str = DEFAULT_IMAGE_MODEL, trend_count: int = 4, client=None):
        self.text_model = text_model
        self.image_model = image_model
        self.trend_count = trend_count
        self.client = client
        if self.client is None:
            if api_key:
                self.client = genai.Client(api_key=api_key)
            else:
                logger.error("No Gemini API key configured; generation calls will return nothing.")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GeminiService":
        return cls(
            api_key=config.get("gemini_api_key"),
            text_model=config.get("text_model") or DEFAULT_TEXT_MODEL,
            image_model=config.get("image_model") or DEFAULT_IMAGE_MODEL,
            trend_count=int(config.get("trend_count", 4)),
        )

    @property
    def available(self) -> bool:
        return self.client is not None

    async def _generate_text(self, prompt: str, grounded: bool) -> Optional[str]:
        config = None
        if grounded:
            # response_mime_type / response_schema cannot be combined with the search tool
            config = types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())]
            )
        response = await self.client.aio.models.generate_content(
            model=self.text_model,
            contents=prompt,
            config=config,
        )
        return response.text

    async def _generate_with_fallback(self, prompt: str) -> Optional[str]:
        """
        Grounded call first; one ungrounded retry if it raises or comes back empty.
        """
        try:
            text = await self._generate_text(prompt, grounded=True)
            if text:
                return text
            logger.warning("Grounded request returned no text, retrying without search.")
        except Exception as e:
            logger.warning(f"Grounded request failed ({e}), retrying without search.")

        try:
            text = await self._generate_text(prompt_builder.with_fallback_suffix(prompt), grounded=False)
            if text:
                return text
            logger.error("Fallback request returned no text.")
        except Exception as e:
            logger.error(f"Fallback request failed: {e}")
        return None

    async def get_trending_weather_cities(self) -> List[TrendingItem]:
        if not self.available:
            return []
        text = await self._generate_with_fallback(prompt_builder.build_trends_prompt(self.trend_count))
        data = parse_json_text(text)
        if not isinstance(data, list):
            if data is not None:
                logger.warning(f"Expected a JSON list of trends, got {type(data).__name__}")
            return []
        items = [TrendingItem.from_dict(raw) for raw in data]
        return [item for item in items if item]

    async def get_city_weather_data(self, city: str) -> Optional[Dict[str, Any]]:
        """Returns a partial WeatherState dict (condition/temperature/unit) or None."""
        if not self.available or not city:
            return None
        text = await self._generate_with_fallback(prompt_builder.build_city_weather_prompt(city))
        data = parse_json_text(text)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning(f"Expected a JSON object for {city}, got {type(data).__name__}")
            return None
        return data

    async def generate_weather_image(self, state: WeatherState) -> Optional[str]:
        """Returns a data:image/png;base64 URL of the first inline image part, or None."""
        if not self.available:
            return None
        try:
            response = await self.client.aio.models.generate_content(
                model=self.image_model,
                contents=prompt_builder.build_image_prompt(state),
            )
            candidates = response.candidates or []
            parts = []
            if candidates and candidates[0].content:
                parts = candidates[0].content.parts or []
            for part in parts:
                inline = getattr(part, "inline_data", None)
                if inline and inline.data:
                    data = inline.data
                    if isinstance(data, bytes):
                        data = base64.b64encode(data).decode("ascii")
                    return f"data:image/png;base64,{data}"
            logger.warning(f"No image part in response for {state.city}")
            return None
        except Exception as e:
            logger.error(f"Failed to generate image: {e}")
            return None
