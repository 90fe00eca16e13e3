"""Tests for traveler-driven preference normalization."""

from tests.unit.engine_test_helpers import create_test_trip_settings
from tripfill.app.models.common import (
    NON_SEARCH_PREFERENCES,
    Preference,
    PreferenceCategory,
    TransportMode,
    all_basic_preferences,
    preferences_in,
    transport_mode_for,
)
from tripfill.app.planning.preferences import (
    fill_default_categories,
    manage_travelers_preferences,
    normalize_trip_settings,
)


class TestManageTravelersPreferences:
    """Tests for companion preferences derived from traveler counts."""

    def test_children_make_the_trip_children_friendly(self):
        prefs = manage_travelers_preferences([], adults=2, children=1)

        assert prefs == [Preference.children_friendly]

    def test_single_adult_travels_individually(self):
        assert manage_travelers_preferences([], adults=1, children=0) == [Preference.individual]

    def test_three_adults_are_a_group(self):
        assert manage_travelers_preferences([], adults=3, children=0) == [Preference.group]

    def test_two_adults_add_nothing(self):
        assert manage_travelers_preferences([Preference.couple], adults=2, children=0) == [
            Preference.couple
        ]

    def test_existing_preference_not_duplicated(self):
        prefs = manage_travelers_preferences([Preference.group], adults=4, children=0)

        assert prefs == [Preference.group]


def test_fill_default_categories_enables_missing_categories():
    prefs = fill_default_categories([Preference.hike])

    assert set(preferences_in(PreferenceCategory.activity_type)) <= set(prefs)
    assert Preference.urban not in prefs


def test_normalize_trip_settings_returns_a_copy():
    settings = create_test_trip_settings(
        preferences=[Preference.museums, Preference.museums, Preference.hike], adults=1
    )

    normalized = normalize_trip_settings(settings)

    assert normalized is not settings
    assert normalized.preferences == [Preference.museums, Preference.hike, Preference.individual]
    assert settings.preferences == [Preference.museums, Preference.museums, Preference.hike]


class TestPreferenceHelpers:
    """Tests for preference grouping helpers."""

    def test_every_preference_has_a_category(self):
        for pref in Preference:
            assert isinstance(pref.category, PreferenceCategory)

    def test_basic_preferences_are_searchable(self):
        basic = all_basic_preferences()

        assert Preference.museums in basic
        assert Preference.scenic_views in basic
        assert not set(basic) & NON_SEARCH_PREFERENCES

    def test_transport_mode(self):
        assert transport_mode_for([Preference.public_transport]) == TransportMode.train
        assert transport_mode_for([]) == TransportMode.car
