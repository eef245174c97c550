"""
Calendar feature: category → colors / badge lookup.

One canonical table feeds both the event colors and the category badge.
"""

from typing import NamedTuple

from etatcivil.features.calendar.schemas import Category


class CategoryStyle(NamedTuple):
    background: str
    border: str
    label: str
    badge_class: str


TEXT_COLOR = "#ffffff"

CATEGORY_PALETTE: dict[Category, CategoryStyle] = {
    Category.BIRTH: CategoryStyle("#6c757d", "#495057", "Naissance", "bg-info"),
    Category.MARRIAGE: CategoryStyle("#20c997", "#198754", "Mariage", "bg-success"),
    Category.DEATH: CategoryStyle("#343a40", "#212529", "Décès", "bg-dark"),
    Category.OTHER: CategoryStyle("#3498db", "#0d6efd", "Général", "bg-secondary"),
}

FALLBACK_STYLE = CATEGORY_PALETTE[Category.OTHER]


def style_for(category) -> CategoryStyle:
    """Palette entry for a category (or raw wire value); unknown → OTHER."""
    return CATEGORY_PALETTE.get(Category.parse(category), FALLBACK_STYLE)


def event_colors(category) -> tuple[str, str]:
    """(background, border) colors for a category."""
    style = style_for(category)
    return style.background, style.border


def event_badge(category) -> tuple[str, str]:
    """(label, css class) of the category badge."""
    style = style_for(category)
    return style.label, style.badge_class
