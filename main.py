"""
Astronomy Gateway API Backend
FastAPI proxy over NASA (APOD, EPIC, image library), SpaceX and OpenAI
for the single-page astronomy client.

Version: 1.0
"""

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, NoReturn, Union
from urllib.parse import quote
import httpx
import logging
import os

from dotenv import load_dotenv

# ============================================================================
# CONFIGURATION
# ============================================================================

load_dotenv()

NASA_API_KEY = os.getenv("NASA_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "10"))
PORT = int(os.getenv("PORT", 5000))

APOD_URL = "https://api.nasa.gov/planetary/apod"
EPIC_API_URL = "https://api.nasa.gov/EPIC/api/natural"
EPIC_ARCHIVE_URL = "https://epic.gsfc.nasa.gov/archive/natural"
NASA_IMAGES_URL = "https://images-api.nasa.gov/search"
SPACEX_LAUNCHES_URL = "https://api.spacexdata.com/v3/launches"
SPACEX_ROCKETS_URL = "https://api.spacexdata.com/v4/rockets"
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Astronomy Gateway API",
    description="NASA, SpaceX and OpenAI data for the astronomy web client",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS - the web client may be served from anywhere
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# ERROR HANDLING
# ============================================================================

class GatewayError(Exception):
    """Failure rendered to the client as ``{"error": message}``."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request payload."})


def ensure_api_key(key: Optional[str], service: str = "API"):
    """Raise a 500 before any upstream call when a credential is not configured."""
    if not key:
        raise GatewayError(f"{service} key is missing", 500)


def handle_api_error(message: str, error: Exception) -> NoReturn:
    """
    Log an upstream failure and raise it as a GatewayError.

    The upstream status is mirrored when there is one; network errors and
    malformed payloads become 500. The upstream body is only logged.
    """
    status_code = 500
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        logger.error("%s: %s", message, error.response.text)
    else:
        logger.error("%s: %s", message, error)
    raise GatewayError(message, status_code) from error


async def upstream_request(method: str, url: str, **kwargs) -> Any:
    """Issue the single outbound call for a request and decode its JSON body."""
    async with httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT, follow_redirects=True) as client:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()

# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0",
        "service": "astronomy-gateway"
    }

# ============================================================================
# API 1: APOD (Astronomy Picture of the Day)
# ============================================================================

@app.get("/api/apod")
async def get_apod(
    date: Optional[str] = Query(None, description="Date (YYYY-MM-DD), default today")
):
    """Proxy NASA's Astronomy Picture of the Day verbatim."""
    ensure_api_key(NASA_API_KEY, "NASA")

    params = {"api_key": NASA_API_KEY}
    if date:
        params["date"] = date

    try:
        return await upstream_request("GET", APOD_URL, params=params)
    except Exception as e:
        handle_api_error("Failed to fetch APOD data", e)

# ============================================================================
# API 2: SPACEX LAUNCHES
# ============================================================================

def filter_launches(launches: List[Dict[str, Any]], mission_name: Optional[str]) -> List[Dict[str, Any]]:
    """Keep launches whose mission name contains ``mission_name``, ignoring case."""
    if not mission_name:
        return launches

    needle = mission_name.lower()
    return [
        launch for launch in launches
        if needle in str(launch.get("mission_name") or "").lower()
    ]


@app.get("/api/launches")
async def get_launches(
    mission_name: Optional[str] = Query(None, description="Case-insensitive mission name filter")
):
    """SpaceX launch history, optionally filtered by mission name. No key required."""
    try:
        data = await upstream_request("GET", SPACEX_LAUNCHES_URL)

        if not isinstance(data, list):
            raise ValueError("Unexpected launch data format")

        return filter_launches(data, mission_name)
    except Exception as e:
        handle_api_error("Failed to fetch SpaceX launch data", e)

# ============================================================================
# API 3: SPACEX ROCKETS
# ============================================================================

@app.get("/api/rockets")
async def get_rockets():
    """SpaceX rocket catalogue, verbatim."""
    try:
        return await upstream_request("GET", SPACEX_ROCKETS_URL)
    except Exception as e:
        handle_api_error("Failed to fetch rockets", e)

# ============================================================================
# API 4: NASA IMAGE AND VIDEO LIBRARY
# ============================================================================

VALID_MEDIA_TYPES = ["image", "video", "audio"]
MAX_MEDIA_ITEMS = 6


def project_media_item(item: Dict[str, Any], media_type: str) -> Dict[str, Any]:
    """Flatten one image-library search item, substituting defaults for missing fields."""
    data = (item.get("data") or [{}])[0] or {}
    links = item.get("links") or []
    link = links[0] if links else {}

    return {
        "nasa_id": data.get("nasa_id"),
        "title": data.get("title") or "Untitled",
        "description": data.get("description") or "No description provided.",
        "date_created": data.get("date_created") or "N/A",
        "thumbnail": link.get("href") or None,
        "media_type": data.get("media_type") or media_type,
        "href": item.get("href") or None
    }


@app.get("/api/nasa-images")
async def get_nasa_images(
    q: str = Query("mars", description="Search terms"),
    media_type: str = Query("image", description="One of: image, video, audio")
):
    """
    Search the NASA Image and Video Library.
    Free, no API key required. Returns at most six items.
    """
    if media_type not in VALID_MEDIA_TYPES:
        raise GatewayError("Invalid media_type specified.", 400)

    try:
        data = await upstream_request(
            "GET", NASA_IMAGES_URL, params={"q": q, "media_type": media_type}
        )
        items = ((data or {}).get("collection") or {}).get("items") or []
    except Exception as e:
        handle_api_error("Failed to fetch NASA media", e)

    if not isinstance(items, list) or not items:
        raise GatewayError("No media found for the given query.", 404)

    try:
        return [project_media_item(item, media_type) for item in items[:MAX_MEDIA_ITEMS]]
    except Exception as e:
        handle_api_error("Failed to fetch NASA media", e)

# ============================================================================
# API 5: EARTH IMAGES (NASA EPIC)
# ============================================================================

EPIC_FIELDS = [
    "version",
    "sun_j2000_position",
    "dscovr_j2000_position",
    "attitude_quaternions",
    "centroid_coordinates",
    "dscovr_distance",
    "sun_distance",
    "sun_earth_angle",
]


def epic_image_url(date: str, image: str) -> str:
    """Archive PNG URL for an EPIC record dated ``YYYY-MM-DD HH:MM:SS``."""
    date_path = date.split(" ")[0].replace("-", "/")
    return f"{EPIC_ARCHIVE_URL}/{date_path}/png/{image}.png"


def format_epic_record(item: Dict[str, Any]) -> Dict[str, Any]:
    record = {
        "identifier": item.get("identifier"),
        "caption": item.get("caption"),
        "date": item["date"],
        "imageUrl": epic_image_url(item["date"], item["image"]),
    }
    for field in EPIC_FIELDS:
        record[field] = item.get(field)
    return record


@app.get("/api/epic")
async def get_epic(
    date: Optional[str] = Query(None, description="Date (YYYY-MM-DD), default latest")
):
    """
    Natural-colour Earth images from NASA EPIC (DSCOVR).
    Requires NASA API key in environment.
    """
    ensure_api_key(NASA_API_KEY, "NASA")

    url = f"{EPIC_API_URL}/date/{quote(date, safe='')}" if date else f"{EPIC_API_URL}/images"

    try:
        data = await upstream_request("GET", url, params={"api_key": NASA_API_KEY})

        if not isinstance(data, list):
            raise ValueError("Unexpected EPIC data format")

        return [format_epic_record(item) for item in data]
    except Exception as e:
        handle_api_error("Failed to fetch EPIC images", e)

# ============================================================================
# API 6: ROCKET COMPARISON (OpenAI)
# ============================================================================

COMPARISON_SYSTEM_PROMPT = (
    "You are a helpful assistant and aerospace expert by nasa. "
    "Compare SpaceX and other rockets in plain text."
)
COMPARISON_TEMPERATURE = 0.7


def completion_content(data: Any) -> Optional[str]:
    """First choice's message content, or None when the completion has another shape."""
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None

    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None

    content = message.get("content")
    return content if isinstance(content, str) else None


class RocketComparisonRequest(BaseModel):
    rocket1: Optional[Union[str, int, float]] = None
    rocket2: Optional[Union[str, int, float]] = None


@app.post("/api/compare-rockets")
async def compare_rockets(payload: Optional[RocketComparisonRequest] = None):
    """Ask the chat-completion model for a plain-text comparison of two rockets."""
    payload = payload or RocketComparisonRequest()

    if not payload.rocket1 or not payload.rocket2:
        raise GatewayError("Both rocket names are required.", 400)

    ensure_api_key(OPENAI_API_KEY, "OpenAI")

    body = {
        "model": OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": COMPARISON_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f"Compare the following rockets: {payload.rocket1} vs {payload.rocket2}",
            },
        ],
        "temperature": COMPARISON_TEMPERATURE,
    }
    headers = {"Authorization": f"Bearer {OPENAI_API_KEY}"}

    try:
        data = await upstream_request("POST", OPENAI_CHAT_URL, json=body, headers=headers)
    except Exception as e:
        handle_api_error("Failed to generate rocket comparison", e)

    return {"comparison": completion_content(data) or "No response"}

# ============================================================================
# ROOT ENDPOINT
# ============================================================================

@app.get("/")
async def root():
    """API information and documentation links."""
    return {
        "service": "Astronomy Gateway API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health": "/health",
        "endpoints": {
            "apod": "/api/apod",
            "launches": "/api/launches",
            "rockets": "/api/rockets",
            "nasa_images": "/api/nasa-images",
            "epic": "/api/epic",
            "compare_rockets": "/api/compare-rockets"
        }
    }

# ============================================================================
# APPLICATION STARTUP
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    logger.info("Server running on http://localhost:%s", PORT)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=PORT,
        log_level="info"
    )
