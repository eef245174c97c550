"""
Unit tests for the display mapper and the category palette.
"""

from datetime import datetime, timezone

import pytest

from etatcivil.features.calendar.mapper import (
    format_event_details,
    render_event_content,
    to_display_event,
)
from etatcivil.features.calendar.palette import CATEGORY_PALETTE, event_badge, event_colors
from etatcivil.features.calendar.schemas import Category, parse_timestamp, to_iso


class TestStartFallback:
    @pytest.mark.parametrize("start", [None, "", "pas une date", "2030-13-45", {"x": 1}])
    def test_bad_start_uses_current_time(self, start):
        before = datetime.now(timezone.utc)
        event = to_display_event({"id": "1", "title": "X", "start": start})
        after = datetime.now(timezone.utc)
        assert before <= event.start <= after

    def test_missing_start_key(self):
        before = datetime.now(timezone.utc)
        event = to_display_event({"title": "Sans date"})
        assert event.start >= before

    def test_explicit_now_is_used(self):
        now = datetime(2031, 1, 1, 12, tzinfo=timezone.utc)
        event = to_display_event({"start": "garbage"}, now=now)
        assert event.start == now

    def test_not_a_dict(self):
        event = to_display_event(None)
        assert event.title == ""
        assert event.category is Category.OTHER


class TestCategoryColors:
    @pytest.mark.parametrize("category", ["general", "reunion", "autre", "", None, "MARIAGE?"])
    def test_unknown_category_falls_back(self, category):
        event = to_display_event({"start": "2030-01-01T00:00:00Z", "extendedProps": {"type": category}})
        fallback = CATEGORY_PALETTE[Category.OTHER]
        assert event.background_color == fallback.background
        assert event.border_color == fallback.border
        assert event.category is Category.OTHER

    def test_known_categories(self):
        for category in (Category.BIRTH, Category.MARRIAGE, Category.DEATH):
            event = to_display_event({"start": "2030-01-01", "extendedProps": {"type": category.value}})
            assert (event.background_color, event.border_color) == event_colors(category)
            assert event.background_color != CATEGORY_PALETTE[Category.OTHER].background

    def test_english_alias(self):
        assert Category.parse("birth") is Category.BIRTH
        assert Category.parse("Death") is Category.DEATH

    def test_text_color_is_white(self):
        assert to_display_event({"start": "2030-01-01"}).text_color == "#ffffff"


class TestFields:
    def test_all_day_defaults_true(self):
        assert to_display_event({"start": "2030-01-01"}).all_day is True
        assert to_display_event({"start": "2030-01-01", "allDay": None}).all_day is True
        assert to_display_event({"start": "2030-01-01", "allDay": False}).all_day is False

    def test_extended_start_is_iso(self):
        event = to_display_event({"start": "2030-06-01T12:30:00+02:00"})
        assert event.extended_props.start == "2030-06-01T10:30:00.000Z"

    def test_epoch_milliseconds(self):
        event = to_display_event({"start": 0})
        assert event.extended_props.start == "1970-01-01T00:00:00.000Z"

    def test_end_parsed_or_absent(self):
        assert to_display_event({"start": "2030-01-01"}).end is None
        event = to_display_event({"start": "2030-01-01T10:00Z", "end": "2030-01-01T11:00Z"})
        assert event.end == datetime(2030, 1, 1, 11, tzinfo=timezone.utc)

    def test_props_copied(self):
        event = to_display_event({
            "id": 42, "title": "Mariage", "start": "2030-01-01",
            "extendedProps": {"type": "mariage", "description": "Civil", "location": "Mairie"},
        })
        assert event.id == "42"
        assert event.extended_props.description == "Civil"
        assert event.extended_props.location == "Mairie"

    def test_naive_timestamps_are_utc(self):
        assert parse_timestamp("2030-01-01T10:00") == datetime(2030, 1, 1, 10, tzinfo=timezone.utc)
        assert to_iso(datetime(2030, 1, 1, 10)) == "2030-01-01T10:00:00.000Z"


class TestRendering:
    def test_badge_only_for_non_default(self):
        married = to_display_event({"title": "Dupont", "start": "2030-01-01", "extendedProps": {"type": "mariage"}})
        other = to_display_event({"title": "Réunion", "start": "2030-01-01"})
        assert render_event_content(married, "10:00") == "10:00 [Mariage] Dupont"
        assert render_event_content(other) == "Réunion"

    def test_badge_lookup(self):
        assert event_badge("deces") == ("Décès", "bg-dark")
        assert event_badge("inconnu") == ("Général", "bg-secondary")

    def test_details(self):
        event = to_display_event({
            "title": "Naissance", "start": "2025-03-03T14:30:00Z",
            "extendedProps": {"type": "naissance", "location": "Maternité"},
        })
        lines = format_event_details(event)
        assert lines[0] == "Date de début : lundi 3 mars 2025 à 14:30"
        assert lines[1] == "Date de fin : Non défini"
        assert "Lieu : Maternité" in lines
        assert lines[-1] == "Type : Naissance"
        assert not any(line.startswith("Description") for line in lines)


class TestOddFieldTypes:
    def test_non_string_fields_do_not_raise(self):
        event = to_display_event({
            "id": 42,
            "title": ["Mariage"],
            "start": "2030-06-01T10:00:00Z",
            "color": 5,
            "extendedProps": {"type": 3, "description": {"a": 1}, "location": 12},
        })
        assert event.id == "42"
        assert event.title == ""
        assert event.color is None
        assert event.category is Category.OTHER
        assert event.extended_props.description == ""
        assert event.extended_props.location == "12"

    def test_string_color_is_kept(self):
        assert to_display_event({"start": "2030-01-01", "color": "#ff0000"}).color == "#ff0000"

    def test_boolean_title_is_dropped(self):
        assert to_display_event({"start": "2030-01-01", "title": True}).title == ""
