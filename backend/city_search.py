import logging
from typing import List, Optional, Tuple

import aiohttp

from canvas_types import POPULAR_CITIES

logger = logging.getLogger("CitySearch")

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
MAX_SUGGESTIONS = 5


def filter_popular_cities(query: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
    query = (query or "").strip().lower()
    if not query:
        return []
    return [city for city in POPULAR_CITIES if query in city.lower()][:limit]


async def search_cities_interactive(city_name: str, url: str = GEOCODING_URL,
                                    session: Optional[aiohttp.ClientSession] = None) -> Tuple[List[dict], Optional[str]]:
    """
    Returns (results_list, error_message).
    """
    params = {"name": city_name, "count": 10, "language": "en", "format": "json"}
    headers = {"User-Agent": "WeatherCanvas/1.0 (internal tool)"}

    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        async with session.get(url, params=params, headers=headers) as resp:
            if resp.status == 200:
                data = await resp.json()
                # {'results': [...]} or {} when nothing matched
                return data.get("results", []), None
            text = await resp.text()
            return [], f"API Error {resp.status}: {text}"
    except aiohttp.ClientError as e:
        logger.error(f"Geocoding network error: {e}")
        return [], f"Network Error: {str(e)}"
    except Exception as e:
        logger.error(f"Geocoding unexpected error: {e}")
        return [], f"Error: {str(e)}"
    finally:
        if owns_session:
            await session.close()


def _display_name(result: dict) -> Optional[str]:
    name = result.get("name")
    if not name:
        return None
    country = result.get("country")
    return f"{name}, {country}" if country else name


async def suggest_cities(query: str, geocoding: bool = True, url: str = GEOCODING_URL,
                         session: Optional[aiohttp.ClientSession] = None,
                         limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Popular-city matches first, topped up with geocoder hits."""
    suggestions = filter_popular_cities(query, limit)
    if not geocoding or len(suggestions) >= limit or len((query or "").strip()) < 2:
        return suggestions

    results, error = await search_cities_interactive(query.strip(), url=url, session=session)
    if error:
        logger.warning(f"Geocoding lookup for '{query}' failed: {error}")
        return suggestions

    seen = {s.lower() for s in suggestions}
    for res in results:
        name = _display_name(res)
        if name and name.lower() not in seen:
            suggestions.append(name)
            seen.add(name.lower())
        if len(suggestions) >= limit:
            break
    return suggestions
