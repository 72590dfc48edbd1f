# tests/unit/pipeline/test_unit_service_logos.py - v2
"""Tests for pipeline/service_logos.py."""

from __future__ import annotations

import pytest

from reelfinder.pipeline.service_logos import ICON_BASE_URL, service_logo


@pytest.mark.parametrize("name,icon", [
    ("Netflix", "netflix"), ("Disney Plus", "disneyplus"), ("Max", "hbo"),
    ("Amazon Prime Video", "amazon"), (" Apple TV+ ", "apple"), ("Pluto TV", "pluto"),
])
def test_known_services(name, icon):
    assert service_logo(name) == f"{ICON_BASE_URL}/{icon}.svg"


def test_unknown_service_gets_badge():
    logo = service_logo("Kanopy")
    assert logo.startswith("https://ui-avatars.com/api/?name=KA&")


def test_badge_is_url_safe():
    assert "name=%26%20" in service_logo("& Co")
