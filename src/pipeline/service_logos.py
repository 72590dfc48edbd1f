# src/pipeline/service_logos.py - v1
"""Streaming service name -> logo URL."""

from __future__ import annotations

from urllib.parse import quote

ICON_BASE_URL = "https://edent.github.io/SuperTinyIcons/images/svg"
BADGE_URL = "https://ui-avatars.com/api/?name={name}&background=666&color=fff&size=64&bold=true&format=svg"

# Lower-cased provider name -> icon file stem.
SERVICE_ICONS: dict[str, str] = {
    "netflix": "netflix",
    "hulu": "hulu",
    "disney plus": "disneyplus",
    "disney+": "disneyplus",
    "disneyplus": "disneyplus",
    "hbo max": "hbo",
    "hbo": "hbo",
    "max": "hbo",
    "prime video": "amazon",
    "amazon prime": "amazon",
    "amazon prime video": "amazon",
    "amazon video": "amazon",
    "amazon": "amazon",
    "apple tv": "apple",
    "apple tv+": "apple",
    "apple tv plus": "apple",
    "appletv": "apple",
    "itunes": "apple",
    "paramount+": "paramount",
    "paramount plus": "paramount",
    "paramountplus": "paramount",
    "cbs": "paramount",
    "cbs all access": "paramount",
    "peacock": "peacock",
    "showtime": "showtime",
    "starz": "starz",
    "espn": "espn",
    "espn+": "espn",
    "fx": "fx",
    "amc": "amc",
    "amc+": "amc",
    "youtube": "youtube",
    "youtube premium": "youtube",
    "google play": "google",
    "google play movies": "google",
    "vudu": "vudu",
    "crunchyroll": "crunchyroll",
    "funimation": "funimation",
    "tubi": "tubi",
    "pluto tv": "pluto",
    "pluto": "pluto",
    "roku": "roku",
    "roku channel": "roku",
    "sling tv": "sling",
    "sling": "sling",
    "fubotv": "fubo",
    "fubo": "fubo",
    "directv": "directv",
    "discovery+": "discovery",
    "discovery plus": "discovery",
    "bbc iplayer": "bbc",
    "bbc": "bbc",
    "microsoft": "microsoft",
    "criterion": "criterion",
    "criterion channel": "criterion",
    "mubi": "mubi",
    "shudder": "shudder",
    "sundance now": "sundance",
    "mgm+": "mgm",
    "bet+": "bet",
    "nbc": "nbc",
    "abc": "abc",
    "fox": "fox",
    "pbs": "pbs",
}


def service_logo(provider_name: str) -> str:
    """Icon URL for a known service, else a two-letter text badge."""
    icon = SERVICE_ICONS.get(provider_name.strip().lower())
    if icon:
        return f"{ICON_BASE_URL}/{icon}.svg"
    return BADGE_URL.format(name=quote(provider_name.strip()[:2].upper()))
