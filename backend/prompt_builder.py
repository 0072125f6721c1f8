from canvas_types import WeatherState, WeatherCondition, ImageStyle

STYLE_PROMPTS = {
    ImageStyle.REALISTIC: (
        "A breathtaking, photorealistic 8k cinematic shot. Highly detailed, atmospheric lighting, "
        "resembling National Geographic photography. Darker, dramatic mood."
    ),
    ImageStyle.CARTOONISH: (
        "A cute, vibrant, stylized 3D render in the style of high-end animation (like Pixar or Animal Crossing). "
        "Soft round shapes, bright cheerful colors, toy-like textures. Light and airy background."
    ),
    ImageStyle.CYBERPUNK: (
        "A futuristic, neon-drenched cyberpunk vision. Glowing lights, dark moody atmosphere, "
        "holographic elements, high-tech architecture. Night time setting."
    ),
    ImageStyle.ISOMETRIC: (
        "A highly detailed isometric 3D diorama mini-world. Tilted top-down view (approx 45 degrees). "
        "Style: Toy-like realism, smooth shading, 3D-rendered diorama art. "
        "Composition: A miniature city block on a square platform with distinct edges, water channels or roads, "
        "and recognizable landmarks. Colors: Vibrant but cohesive, soft textures. "
        "Lighting: Soft ambient lighting, diffuse shadows. "
        "Render: Octane render quality, smooth textures, SimCity-style aesthetic, high resolution, clean outlines."
    ),
}

RAIN_ATMOSPHERE = "Wet roads, slight reflections, grey-blue mist, rain streaks"
SUNNY_ATMOSPHERE = "Bright soft sunlight, distinct shadows"
DEFAULT_ATMOSPHERE = "Atmospheric fog or clouds"

LIGHT_BACKGROUND = "Clean, solid soft grey-blue or neutral light background to contrast with dark text overlay."
SCENE_BACKGROUND = "Atmospheric background matching the scene."

IMAGE_DIRECTIVES = "Important: No text on the image. High fidelity, 8k resolution."

TRENDS_PROMPT = (
    "Identify {count} major global cities that are currently experiencing notable weather "
    "(storms, heatwaves, snow, etc) or are trending in search. Return ONLY a JSON list with keys "
    "'city' and 'reason'. The 'reason' should be a short summary."
)

CITY_WEATHER_PROMPT = (
    "What is the current weather condition and temperature in {city}? Return ONLY a JSON object with keys "
    "'condition' (one of Sunny, Cloudy, Rain, Storm, Snow, Fog), 'temperature' (number), and 'unit' ('C' or 'F')."
)

# Appended when the search tool is unavailable
FALLBACK_SUFFIX = (
    " Use your internal knowledge to estimate the answer instead of live search results. "
    "Still return ONLY the JSON."
)


def style_prompt(style) -> str:
    try:
        return STYLE_PROMPTS[ImageStyle(style)]
    except (ValueError, KeyError):
        return STYLE_PROMPTS[ImageStyle.ISOMETRIC]


def atmosphere_clause(condition) -> str:
    if condition == WeatherCondition.RAIN:
        return RAIN_ATMOSPHERE
    if condition == WeatherCondition.SUNNY:
        return SUNNY_ATMOSPHERE
    return DEFAULT_ATMOSPHERE


def background_clause(style) -> str:
    if style in (ImageStyle.ISOMETRIC, ImageStyle.CARTOONISH):
        return LIGHT_BACKGROUND
    return SCENE_BACKGROUND


def build_image_prompt(state: WeatherState) -> str:
    """Scene description for the image model. Always returns a string."""
    condition = getattr(state.condition, "value", state.condition)
    return "\n".join([
        style_prompt(state.style),
        f"Subject: The city of {state.city}.",
        f"Weather Condition: {condition}.",
        f"Details: Features iconic landmarks of {state.city} (e.g. towers, temples, bridges) "
        f"arranged in a miniature scene.",
        f"Atmosphere: Match the weather: {atmosphere_clause(state.condition)}.",
        f"Background: {background_clause(state.style)}",
        IMAGE_DIRECTIVES,
    ])


def build_trends_prompt(count: int = 4) -> str:
    return TRENDS_PROMPT.format(count=count)


def build_city_weather_prompt(city: str) -> str:
    return CITY_WEATHER_PROMPT.format(city=city)


def with_fallback_suffix(prompt: str) -> str:
    return prompt + FALLBACK_SUFFIX
