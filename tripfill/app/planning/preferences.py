"""Traveler-driven preference normalization."""

import logging

from tripfill.app.models.common import Preference, PreferenceCategory, preferences_in
from tripfill.app.models.trip import TripSettings

logger = logging.getLogger(__name__)


def manage_travelers_preferences(
    preferences: list[Preference], adults: int, children: int
) -> list[Preference]:
    """Derive the companion preference from the traveler counts.

    Any child makes the trip children-friendly; otherwise a single adult
    travels individually and three or more adults travel as a group.
    """
    result = list(preferences)

    if children >= 1:
        derived = Preference.children_friendly
    elif adults == 1:
        derived = Preference.individual
    elif adults >= 3:
        derived = Preference.group
    else:
        derived = None

    if derived is not None and derived not in result:
        result.append(derived)
    return result


def fill_default_categories(preferences: list[Preference]) -> list[Preference]:
    """Enable a whole activity-type or environment category when none is chosen."""
    result = list(preferences)
    for category in (PreferenceCategory.activity_type, PreferenceCategory.environment):
        members = preferences_in(category)
        if not any(pref in result for pref in members):
            result.extend(members)
    return result


def normalize_trip_settings(settings: TripSettings) -> TripSettings:
    """Return a copy of ``settings`` with normalized preferences."""
    preferences = manage_travelers_preferences(
        settings.preferences, settings.travelers.adults, settings.travelers.children
    )
    preferences = fill_default_categories(preferences)
    # Deduplicate, keeping first occurrence
    preferences = list(dict.fromkeys(preferences))

    logger.debug(
        "Normalized trip preferences",
        extra={"before": len(settings.preferences), "after": len(preferences)},
    )
    return settings.model_copy(update={"preferences": preferences})
