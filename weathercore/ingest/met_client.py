"""HTTP client for the met.no forecast/sunrise APIs and the lookup services."""

import logging
import time
from datetime import date

import httpx

from weathercore.ingest.parsers import parse_altitude, parse_timezone, parse_xml
from weathercore.models.context import QueryContext
from weathercore.models.forecast import TimezoneInfo

logger = logging.getLogger(__name__)

FORECAST_BASE_URL = "https://api.met.no/weatherapi/locationforecastlts/1.3"
ASTRO_BASE_URL = "https://api.met.no/weatherapi/sunrise/1.1"
GEONAMES_BASE_URL = "http://api.geonames.org"
GEONAMES_USERNAME = "weathercore"
TIMEZONE_BASE_URL = "http://www.earthtools.org/timezone"
DEFAULT_USER_AGENT = "weathercore/0.1.0"


class MetClientError(Exception):
    """Raised when a request fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MetClient:
    def __init__(
        self,
        forecast_base: str = FORECAST_BASE_URL,
        astro_base: str = ASTRO_BASE_URL,
        geonames_base: str = GEONAMES_BASE_URL,
        geonames_username: str = GEONAMES_USERNAME,
        timezone_base: str = TIMEZONE_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        max_retries: int = 1,
        retry_base_delay: float = 2.0,
    ):
        self.forecast_base = forecast_base.rstrip("/")
        self.astro_base = astro_base.rstrip("/")
        self.geonames_base = geonames_base.rstrip("/")
        self.geonames_username = geonames_username
        self.timezone_base = timezone_base.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    # --- URLs ---

    def forecast_url(self, ctx: QueryContext) -> str:
        return (
            f"{self.forecast_base}/?lat={ctx.latitude};lon={ctx.longitude};"
            f"msl={ctx.elevation_meters}"
        )

    def astro_url(self, ctx: QueryContext, day: date) -> str:
        return (
            f"{self.astro_base}/?lat={ctx.latitude};lon={ctx.longitude};"
            f"date={day.isoformat()}"
        )

    def elevation_url(self, latitude: float, longitude: float) -> str:
        return (
            f"{self.geonames_base}/srtm3XML?lat={latitude:.6f}&lng={longitude:.6f}"
            f"&username={self.geonames_username}"
        )

    def timezone_url(self, latitude: float, longitude: float) -> str:
        return f"{self.timezone_base}/{latitude:.6f}/{longitude:.6f}"

    # --- Requests ---

    def get(self, url: str) -> bytes:
        """GET a URL and return the body. Retries on 503/429 with backoff."""
        headers = {"User-Agent": self.user_agent, "Accept": "application/xml"}

        for attempt in range(self.max_retries + 1):
            try:
                resp = httpx.get(url, headers=headers, timeout=self.timeout)
            except httpx.TimeoutException as e:
                logger.warning("Request to %s timed out: %s", url, e)
                raise
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    delay = self.retry_base_delay * (2**attempt)
                    logger.warning("Request error, retrying in %.1fs: %s", delay, e)
                    time.sleep(delay)
                    continue
                raise MetClientError(f"Request failed: {e}") from e

            if resp.status_code in (503, 429) and attempt < self.max_retries:
                delay = self.retry_base_delay * (2**attempt)
                logger.warning(
                    "%s returned %d, retrying in %.1fs (attempt %d/%d)",
                    url, resp.status_code, delay, attempt + 1, self.max_retries,
                )
                time.sleep(delay)
                continue
            if resp.status_code >= 300:
                raise MetClientError(
                    f"HTTP {resp.status_code} for {url}", resp.status_code
                )
            return resp.content

        raise MetClientError(f"Retries exhausted for {url}")

    def fetch_forecast(self, ctx: QueryContext) -> bytes:
        url = self.forecast_url(ctx)
        logger.info("getting %s", url)
        return self.get(url)

    def fetch_astro(self, ctx: QueryContext, day: date) -> bytes:
        url = self.astro_url(ctx, day)
        logger.info("getting %s", url)
        return self.get(url)

    # --- One-shot lookups used at configuration time ---

    def lookup_elevation(self, latitude: float, longitude: float) -> float | None:
        """Return the SRTM3 elevation in meters, or None if unavailable."""
        try:
            body = self.get(self.elevation_url(latitude, longitude))
        except (MetClientError, httpx.TimeoutException) as e:
            logger.warning("Elevation lookup failed: %s", e)
            return None
        altitude = parse_altitude(parse_xml(body))
        logger.debug("Altitude returned by GeoNames: %s meters", altitude)
        return altitude

    def lookup_timezone(self, latitude: float, longitude: float) -> TimezoneInfo | None:
        try:
            body = self.get(self.timezone_url(latitude, longitude))
        except (MetClientError, httpx.TimeoutException) as e:
            logger.warning("Timezone lookup failed: %s", e)
            return None
        return parse_timezone(parse_xml(body))
