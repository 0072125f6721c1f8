import os
import re
import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, Request, Form
from fastapi.responses import HTMLResponse, JSONResponse, Response, RedirectResponse
from fastapi.templating import Jinja2Templates

# --- PATH SETUP ---
APP_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(APP_DIR)
BACKEND_DIR = os.path.join(PROJECT_ROOT, "backend")

if BACKEND_DIR not in sys.path:
    sys.path.append(BACKEND_DIR)

from canvas_types import GeoLocation, IMAGE_STYLES, WEATHER_CONDITIONS, TEMPERATURE_UNITS
from canvas_compositor import decode_image_url
from canvas_session import CanvasSession
from config_manager import ConfigManager
from gemini_service import GeminiService

# --- CONFIG & LOGGING ---
CONFIG_FILE = os.getenv("CONFIG_PATH", os.path.join(PROJECT_ROOT, "config", "config.yaml"))

cfg = ConfigManager(CONFIG_FILE)

logging.basicConfig(level=str(cfg.get("log_level", "INFO")).upper(),
                    format='%(asctime)s [%(levelname)s] %(message)s')
logger = logging.getLogger("WeatherCanvas")

session: Optional[CanvasSession] = None


def build_session() -> CanvasSession:
    cfg.reload()
    return CanvasSession(cfg.data, GeminiService.from_config(cfg.data))


def get_session() -> CanvasSession:
    global session
    if session is None:
        session = build_session()
    return session


# --- LIFECYCLE ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    get_session()
    logger.info("WeatherCanvas ready.")
    yield


app = FastAPI(lifespan=lifespan)
templates = Jinja2Templates(directory=os.path.join(APP_DIR, "templates"))


def content_disposition(filename: str) -> str:
    # Header values must be latin-1; the RFC 5987 form carries the real name
    ascii_name = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def _state_payload(sess: CanvasSession):
    latest = sess.latest
    return {
        "state": sess.state.to_dict(),
        "has_image": latest is not None,
        "image_id": latest.id if latest else None,
    }


# --- ROUTES ---

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    sess = get_session()
    return templates.TemplateResponse(request, "index.html", {
        "state": sess.state,
        "latest": sess.latest,
        "styles": IMAGE_STYLES,
        "conditions": WEATHER_CONDITIONS,
        "units": TEMPERATURE_UNITS,
        "api_ready": sess.service.available,
    })


@app.get("/api/state")
async def get_state():
    return JSONResponse(_state_payload(get_session()))


@app.get("/api/trends")
async def get_trends():
    trends, live = await get_session().load_trends()
    return JSONResponse({
        "live": live,
        "trends": [{"city": t.city, "reason": t.reason} for t in trends],
    })


@app.post("/lookup_city")
async def lookup_city(query: str = Form("")):
    suggestions = await get_session().suggest(query)
    return JSONResponse({"success": True, "results": suggestions})


@app.post("/select_city")
async def select_city(city: str = Form(...)):
    sess = get_session()
    if not city.strip():
        return JSONResponse({"success": False, "error": "City is required."}, status_code=400)
    await sess.select_city(city)
    return JSONResponse({"success": True, **_state_payload(sess)})


@app.post("/use_location")
async def use_location(latitude: Optional[float] = Form(None), longitude: Optional[float] = Form(None)):
    location = GeoLocation(latitude, longitude) if latitude is not None and longitude is not None else None
    sess = get_session()
    await sess.use_location(location)
    return JSONResponse({"success": True, **_state_payload(sess)})


@app.post("/update_state")
async def update_state(
    condition: str = Form(""), temperature: str = Form(""), unit: str = Form(""),
    date: str = Form(""), style: str = Form("")
):
    sess = get_session()
    sess.update_state({
        "condition": condition, "temperature": temperature, "unit": unit,
        "date": date, "style": style,
    })
    return JSONResponse({"success": True, **_state_payload(sess)})


@app.post("/generate")
async def generate():
    sess = get_session()
    if not sess.state.city:
        return JSONResponse({"success": False, "error": "Select a city first."}, status_code=400)
    canvas = await sess.generate()
    if not canvas:
        return JSONResponse({"success": False, "error": "No image was generated.", **_state_payload(sess)})
    return JSONResponse({"success": True, **_state_payload(sess)})


@app.get("/image/latest")
async def get_latest_image():
    latest = get_session().latest
    if not latest:
        return HTMLResponse("No image generated", status_code=404)
    try:
        data = decode_image_url(latest.image_url)
    except ValueError as e:
        logger.error(f"Stored image is unreadable: {e}")
        return HTMLResponse("Stored image is unreadable", status_code=500)
    return Response(data, media_type="image/png",
                    headers={"Cache-Control": "no-cache, no-store, must-revalidate"})


@app.get("/download")
async def download():
    export = get_session().export(cfg.font_paths)
    if not export:
        return HTMLResponse("No image generated", status_code=404)
    return Response(export.data, media_type=export.media_type, headers={
        "Content-Disposition": content_disposition(export.filename),
        "X-Composited": "1" if export.composited else "0",
    })


@app.post("/update_settings")
async def update_settings(
    gemini_api_key: str = Form(""), text_model: str = Form(""), image_model: str = Form(""),
    trend_count: str = Form(""), location_placeholder_city: str = Form(""),
    geocoding_enabled: str = Form("false"),
):
    global session
    cfg.update_from_form({
        "gemini_api_key": gemini_api_key, "text_model": text_model, "image_model": image_model,
        "trend_count": trend_count, "location_placeholder_city": location_placeholder_city,
        "geocoding_enabled": geocoding_enabled,
    })
    previous = session
    session = build_session()
    if previous:
        # keep the user's canvas when only settings changed
        session.state = previous.state
        session.history.extend(previous.history)
    return RedirectResponse("/", status_code=303)
