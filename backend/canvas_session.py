import time
import uuid
import logging
from collections import deque
from typing import Optional, List, Dict, Any, Tuple

from canvas_types import (
    WeatherState, TrendingItem, GeneratedCanvas, GeoLocation,
    MOCK_TRENDS, default_weather_state,
)
from canvas_compositor import compose_download, CanvasExport
from city_search import suggest_cities
from gemini_service import GeminiService

logger = logging.getLogger("CanvasSession")


class CanvasSession:
    """
    In-memory state for one browser session. Every update swaps in a new
    WeatherState; calls into the generation service are awaited one at a time.
    """

    def __init__(self, config: Dict[str, Any], service: GeminiService):
        self.config = config
        self.service = service
        self.state = default_weather_state(config)
        self.trends: List[TrendingItem] = []
        self.trends_live = False
        self.history = deque(maxlen=max(1, int(config.get("history_size", 10))))

    @property
    def latest(self) -> Optional[GeneratedCanvas]:
        return self.history[-1] if self.history else None

    def update_state(self, updates: Dict[str, Any]) -> WeatherState:
        self.state = self.state.merged(updates)
        return self.state

    async def load_trends(self) -> Tuple[List[TrendingItem], bool]:
        """Returns (trends, live). Falls back to the static list when nothing came back."""
        items = await self.service.get_trending_weather_cities()
        if items:
            self.trends, self.trends_live = items, True
        else:
            logger.info("No live trends available, using mock trends.")
            self.trends, self.trends_live = list(MOCK_TRENDS), False
        return self.trends, self.trends_live

    async def select_city(self, city: str) -> WeatherState:
        city = (city or "").strip()
        if not city:
            return self.state
        # Optimistic select; the estimate is merged on top when it arrives
        self.update_state({"city": city})
        data = await self.service.get_city_weather_data(city)
        if data:
            logger.info(f"Auto-filled weather for {city}: {data}")
            self.update_state({k: data.get(k) for k in ("condition", "temperature", "unit")})
        return self.state

    async def use_location(self, location: Optional[GeoLocation] = None) -> WeatherState:
        # Coordinates are not reverse-geocoded; the configured city stands in
        city = self.config.get("location_placeholder_city", "San Francisco, USA")
        if location:
            logger.info(f"Location {location.latitude:.3f},{location.longitude:.3f} mapped to {city}")
        return await self.select_city(city)

    async def suggest(self, query: str) -> List[str]:
        return await suggest_cities(
            query,
            geocoding=bool(self.config.get("geocoding_enabled", True)),
            url=self.config.get("geocoding_url") or "https://geocoding-api.open-meteo.com/v1/search",
        )

    async def generate(self) -> Optional[GeneratedCanvas]:
        if not self.state.city:
            logger.warning("Generate requested without a city.")
            return None
        state = self.state
        logger.info(f"Generating {state.style.value} canvas for {state.city}...")
        image_url = await self.service.generate_weather_image(state)
        if not image_url:
            logger.error(f"Generation failed for {state.city}, keeping previous image.")
            return None
        canvas = GeneratedCanvas(
            id=uuid.uuid4().hex,
            image_url=image_url,
            weather_state=state,
            timestamp=int(time.time() * 1000),
        )
        self.history.append(canvas)
        return canvas

    def export(self, font_paths: Optional[Dict[str, str]] = None) -> Optional[CanvasExport]:
        """Composites the latest image with the current overlay text."""
        canvas = self.latest
        if not canvas:
            return None
        return compose_download(canvas.image_url, self.state, font_paths)
