"""Tests for WeatherState updates and the static display data."""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from canvas_types import (
    WeatherState, WeatherCondition, ImageStyle, TrendingItem,
    default_weather_state, default_date_label, is_light_style, MOCK_TRENDS,
)


class TestWeatherStateMerge:
    def test_merge_returns_new_state(self) -> None:
        original = WeatherState(city="Paris")
        updated = original.merged({"condition": "Rain", "temperature": 12, "unit": "F"})

        assert updated is not original
        assert original.condition == WeatherCondition.SUNNY
        assert updated.condition == WeatherCondition.RAIN
        assert updated.temperature == 12
        assert updated.unit == "F"
        assert updated.city == "Paris"

    def test_state_is_immutable(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            WeatherState().city = "Berlin"  # type: ignore[misc]

    def test_invalid_enum_values_ignored(self) -> None:
        state = WeatherState(city="Paris").merged({"condition": "Hail", "style": "Oil", "unit": "K"})

        assert state.condition == WeatherCondition.SUNNY
        assert state.style == ImageStyle.ISOMETRIC
        assert state.unit == "C"

    def test_values_are_normalised(self) -> None:
        state = WeatherState().merged({"condition": "snow", "style": "cyberpunk", "unit": "°f", "temperature": "21.6"})

        assert state.condition == WeatherCondition.SNOW
        assert state.style == ImageStyle.CYBERPUNK
        assert state.unit == "F"
        assert state.temperature == 22

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), "1e999", float("nan")])
    def test_non_finite_temperature_ignored(self, value) -> None:
        state = WeatherState(temperature=18).merged({"temperature": value, "condition": "Fog"})

        assert state.temperature == 18
        assert state.condition == WeatherCondition.FOG

    def test_enum_members_accepted(self) -> None:
        state = WeatherState().merged({"condition": WeatherCondition.FOG, "style": ImageStyle.REALISTIC})

        assert state.condition == WeatherCondition.FOG
        assert state.style == ImageStyle.REALISTIC

    def test_blank_and_unknown_keys_skipped(self) -> None:
        state = WeatherState(city="Paris", date="Friday")
        assert state.merged({"city": "", "date": None, "humidity": 80}) == state

    def test_city_name_drops_region(self) -> None:
        assert WeatherState(city="Tokyo, Japan").city_name == "Tokyo"
        assert WeatherState(city="Singapore").city_name == "Singapore"

    def test_to_dict_uses_plain_values(self) -> None:
        data = WeatherState(city="Oslo", style=ImageStyle.CARTOONISH).to_dict()

        assert data["style"] == "Cartoonish"
        assert data["condition"] == "Sunny"
        assert data["city"] == "Oslo"


class TestDefaults:
    def test_default_state_from_config(self) -> None:
        state = default_weather_state({"default_unit": "F", "default_style": "Realistic", "default_temperature": 75})

        assert state.unit == "F"
        assert state.style == ImageStyle.REALISTIC
        assert state.temperature == 75
        assert state.city == ""

    def test_default_date_label(self) -> None:
        assert default_date_label(datetime(2024, 6, 3)) == "Monday, June 3"

    def test_light_style_lookup(self) -> None:
        assert is_light_style("Isometric")
        assert is_light_style(ImageStyle.CARTOONISH)
        assert not is_light_style("Cyberpunk")
        assert not is_light_style("Unknown")

    def test_mock_trends_available(self) -> None:
        assert [t.city for t in MOCK_TRENDS] == ["London", "Tokyo", "Mumbai"]


class TestTrendingItem:
    def test_from_dict(self) -> None:
        assert TrendingItem.from_dict({"city": "Lima", "reason": "Heatwave"}) == TrendingItem("Lima", "Heatwave")

    def test_from_dict_requires_city(self) -> None:
        assert TrendingItem.from_dict({"reason": "Heatwave"}) is None
        assert TrendingItem.from_dict("Lima") is None
