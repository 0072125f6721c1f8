import logging
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

logger = logging.getLogger("CanvasTypes")


class WeatherCondition(str, Enum):
    SUNNY = "Sunny"
    CLOUDY = "Cloudy"
    RAIN = "Rain"
    STORM = "Storm"
    SNOW = "Snow"
    FOG = "Fog"


class ImageStyle(str, Enum):
    ISOMETRIC = "Isometric"
    REALISTIC = "Realistic"
    CARTOONISH = "Cartoonish"
    CYBERPUNK = "Cyberpunk"


# Dark text on a light background; the other styles get white text over a gradient
LIGHT_STYLES = (ImageStyle.ISOMETRIC, ImageStyle.CARTOONISH)
IMAGE_STYLES = [s.value for s in ImageStyle]
WEATHER_CONDITIONS = [c.value for c in WeatherCondition]
TEMPERATURE_UNITS = ("C", "F")


def default_date_label(now: Optional[datetime] = None) -> str:
    """Long date label, e.g. 'Sunday, October 18'."""
    now = now or datetime.now()
    return f"{now.strftime('%A, %B')} {now.day}"


def is_light_style(style) -> bool:
    try:
        return ImageStyle(style) in LIGHT_STYLES
    except ValueError:
        return False


@dataclass(frozen=True)
class WeatherState:
    city: str = ""
    condition: WeatherCondition = WeatherCondition.SUNNY
    temperature: int = 24
    unit: str = "C"
    date: str = field(default_factory=default_date_label)
    style: ImageStyle = ImageStyle.ISOMETRIC

    @property
    def city_name(self) -> str:
        """City without region suffix ('Tokyo, Japan' -> 'Tokyo')."""
        return self.city.split(",")[0].strip()

    @property
    def is_light(self) -> bool:
        return self.style in LIGHT_STYLES

    def merged(self, updates: Optional[Dict[str, Any]]) -> "WeatherState":
        """
        Returns a new state with the recognised fields of `updates` applied.
        Values that fail enum or number coercion are skipped.
        """
        if not updates:
            return self
        clean = {}
        for key, value in updates.items():
            if isinstance(value, Enum):
                value = value.value
            if value is None or value == "":
                continue
            try:
                if key == "city":
                    clean[key] = str(value).strip()
                elif key == "condition":
                    clean[key] = WeatherCondition(str(value).strip().capitalize())
                elif key == "style":
                    clean[key] = ImageStyle(str(value).strip().capitalize())
                elif key == "unit":
                    unit = str(value).strip().upper().lstrip("°")
                    if unit not in TEMPERATURE_UNITS:
                        raise ValueError(unit)
                    clean[key] = unit
                elif key == "temperature":
                    clean[key] = int(round(float(value)))
                elif key == "date":
                    clean[key] = str(value)
            except (ValueError, TypeError, OverflowError):
                logger.warning(f"Ignoring invalid value for '{key}': {value!r}")
        return replace(self, **clean)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["condition"] = self.condition.value
        data["style"] = self.style.value
        return data


@dataclass
class TrendingItem:
    city: str
    reason: str = ""

    @classmethod
    def from_dict(cls, raw) -> Optional["TrendingItem"]:
        if not isinstance(raw, dict) or not raw.get("city"):
            return None
        return cls(city=str(raw["city"]), reason=str(raw.get("reason") or ""))


@dataclass
class GeneratedCanvas:
    id: str
    image_url: str
    weather_state: WeatherState
    timestamp: int


@dataclass
class GeoLocation:
    latitude: float
    longitude: float


def default_weather_state(config: Optional[Dict[str, Any]] = None) -> WeatherState:
    config = config or {}
    return WeatherState().merged({
        "unit": config.get("default_unit"),
        "style": config.get("default_style"),
        "temperature": config.get("default_temperature"),
    })


MOCK_TRENDS: List[TrendingItem] = [
    TrendingItem("London", "Foggy"),
    TrendingItem("Tokyo", "Rain"),
    TrendingItem("Mumbai", "Monsoon"),
]

POPULAR_CITIES = [
    "New York, USA", "London, UK", "Tokyo, Japan", "Paris, France",
    "Singapore", "Dubai, UAE", "Sydney, Australia", "Mumbai, India",
    "Chennai, India", "Delhi, India", "Bangalore, India",
    "San Francisco, USA", "Los Angeles, USA", "Chicago, USA",
    "Toronto, Canada", "Vancouver, Canada", "Berlin, Germany",
    "Munich, Germany", "Rome, Italy", "Milan, Italy",
    "Barcelona, Spain", "Madrid, Spain", "Amsterdam, Netherlands",
    "Seoul, South Korea", "Beijing, China", "Shanghai, China",
    "Hong Kong", "Bangkok, Thailand", "Istanbul, Turkey",
    "Moscow, Russia", "Sao Paulo, Brazil", "Rio de Janeiro, Brazil",
    "Buenos Aires, Argentina", "Mexico City, Mexico", "Cape Town, South Africa",
    "Cairo, Egypt", "Lagos, Nigeria", "Nairobi, Kenya",
    "Jakarta, Indonesia", "Manila, Philippines", "Karachi, Pakistan",
]
