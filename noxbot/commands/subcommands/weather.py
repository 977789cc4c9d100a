"""/nox weather [location]

Current conditions from OpenWeatherMap: the location is geocoded
first, then the current-weather endpoint is queried in metric units.
"""

from datetime import datetime, timezone
from typing import Any, Dict

import structlog

from noxbot.commands.base import InvocationContext
from noxbot.commands.http import fetch_json
from noxbot.commands.models import Embed
from noxbot.exceptions import UpstreamError

logger = structlog.get_logger("noxbot.handlers")

GEO_URL = "http://api.openweathermap.org/geo/1.0/direct"
WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

ICON_EMOJI = {
    "01d": "☀️", "01n": "🌙", "02d": "⛅", "02n": "☁️",
    "03d": "☁️", "03n": "☁️", "04d": "☁️", "04n": "☁️",
    "09d": "🌧️", "09n": "🌧️", "10d": "🌦️", "10n": "🌧️",
    "11d": "⛈️", "11n": "⛈️", "13d": "❄️", "13n": "❄️",
    "50d": "🌫️", "50n": "🌫️",
}

ERROR_MESSAGES = {
    "unauthorized": (
        "❌ Invalid API key. Please check your OpenWeatherMap API key "
        "and ensure your account is activated."
    ),
    "rate_limited": "❌ API rate limit exceeded. Please try again later.",
    "not_found": "❌ Weather data not available for this location.",
    "timeout": "❌ The weather service took too long to respond. Please try again later.",
}
GENERIC_ERROR = "❌ Sorry, I couldn't fetch the weather data right now."


def weather_emoji(icon: str) -> str:
    return ICON_EMOJI.get(icon, "🌤️")


def build_weather_embed(place: Dict[str, Any], data: Dict[str, Any]) -> Embed:
    """Format a current-weather response for ``place`` (a geocoding hit)."""
    main = data["main"]
    condition = data["weather"][0]
    description = condition.get("description", "")
    wind_kmh = round((data.get("wind") or {}).get("speed", 0) * 3.6)

    embed = Embed(
        title=f"{weather_emoji(condition.get('icon', ''))} Weather for "
              f"{place.get('name', '?')}, {place.get('country', '?')}",
        footer="Weather data provided by OpenWeatherMap",
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(
        "🌡️ Temperature",
        f"{round(main['temp'])}°C (feels like {round(main['feels_like'])}°C)",
        inline=True,
    )
    embed.add_field("💧 Humidity", f"{main['humidity']}%", inline=True)
    embed.add_field("💨 Wind Speed", f"{wind_kmh} km/h", inline=True)
    embed.add_field("🌤️ Conditions", description[:1].upper() + description[1:])

    if main.get("pressure"):
        embed.add_field("📊 Pressure", f"{main['pressure']} hPa", inline=True)
    if data.get("visibility"):
        embed.add_field("👁️ Visibility", f"{round(data['visibility'] / 1000)} km", inline=True)
    return embed


async def weather(ctx: InvocationContext, location: str = "") -> None:
    config = ctx.services.config
    api_key = config.openweather_api_key
    if not api_key:
        await ctx.reply(
            "❌ Weather API key not configured. Please set up your "
            "OpenWeatherMap API key in the .env file.",
            private=True,
        )
        return

    query = location.strip() or config.weather_default_location
    session = ctx.services.http
    timeout = config.weather_timeout

    try:
        places = await fetch_json(
            session, GEO_URL,
            params={"q": query, "limit": 1, "appid": api_key},
            timeout=timeout,
        )
        if not places:
            await ctx.reply(
                f"❌ Could not find location: {query}. Please try a different city name.",
                private=True,
            )
            return

        place = places[0]
        data = await fetch_json(
            session, WEATHER_URL,
            params={
                "lat": place["lat"],
                "lon": place["lon"],
                "appid": api_key,
                "units": "metric",
            },
            timeout=timeout,
        )
        embed = build_weather_embed(place, data)
    except UpstreamError as e:
        logger.warning("weather_lookup_failed", location=query, kind=e.kind, status=e.status)
        await ctx.reply(ERROR_MESSAGES.get(e.kind, GENERIC_ERROR), private=True)
        return
    except (KeyError, IndexError, TypeError) as e:
        logger.error("weather_response_malformed", location=query, error=str(e))
        await ctx.reply(GENERIC_ERROR, private=True)
        return

    await ctx.reply(embed=embed)
