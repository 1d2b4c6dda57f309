"""
Tests for the content store query layer
"""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from serial_seo.core.exceptions import DataStoreError
from serial_seo.core.models import ContentCategory, Episode, Show


class TestShowQueries:

    def test_get_show_by_slug(self, store):
        show = store.get_show_by_slug("amar-ami")
        assert show is not None
        assert show.id == "show-1"

    def test_inactive_show_is_not_found(self, store):
        assert store.get_show_by_slug("hidden-show") is None
        assert store.get_show_by_slug("missing") is None

    def test_get_shows_by_ids_skips_inactive(self, store):
        shows = store.get_shows_by_ids(["show-1", "show-3", "show-1"])
        assert set(shows) == {"show-1"}

    def test_get_shows_by_ids_empty(self, store):
        assert store.get_shows_by_ids([]) == {}

    def test_list_active_shows_newest_first(self, store):
        assert [s.slug for s in store.list_active_shows()] == ["amar-ami", "kotha"]

    def test_list_featured_shows(self, store):
        assert [s.slug for s in store.list_featured_shows()] == ["amar-ami"]

    def test_list_section_shows_in_display_order(self, store):
        assert [s.slug for s in store.list_section_shows("sec-1")] == ["kotha", "amar-ami"]


class TestCategoryQueries:

    def test_inactive_category_is_hidden(self, store):
        assert store.get_category_by_slug("old-channel") is None
        assert store.get_category("cat-3") is None
        assert store.get_category("cat-1").name == "Star Jalsha"

    def test_list_active_categories_in_display_order(self, store):
        assert [c.slug for c in store.list_active_categories()] == ["star-jalsha", "zee-bangla"]

    def test_list_active_sections(self, store):
        assert [s.slug for s in store.list_active_sections()] == ["popular"]
        assert store.get_section_by_slug("archived") is None


class TestEpisodeQueries:

    def test_find_by_air_date(self, store):
        episode = store.find_episode("show-1", air_date=date(2024, 5, 2))
        assert episode.id == "ep-2"

    def test_find_by_episode_number(self, store):
        assert store.find_episode("show-1", episode_number=3).id == "ep-3"

    def test_find_by_legacy_id(self, store):
        assert store.find_episode("show-1", episode_id="ep-1").id == "ep-1"

    def test_inactive_episode_is_not_found(self, store):
        assert store.find_episode("show-1", episode_number=4) is None

    def test_no_criteria(self, store):
        assert store.find_episode("show-1") is None

    def test_ambiguous_token_finds_nothing(self, store):
        with store.get_session() as session:
            session.add(Episode(id="ep-dup", show_id="show-1", title="Duplicate", episode_number=3))
            session.commit()

        assert store.find_episode("show-1", episode_number=3) is None

    def test_adjacent_episodes(self, store):
        previous, following = store.get_adjacent_episodes("show-1", 2)
        assert previous.id == "ep-1"
        assert following.id == "ep-3"

    def test_adjacent_at_edges(self, store):
        previous, following = store.get_adjacent_episodes("show-1", 3)
        assert previous.id == "ep-2"
        assert following is None  # episode 4 is inactive
        assert store.get_adjacent_episodes("show-1", None) == (None, None)

    def test_show_episodes_newest_number_first(self, store):
        assert [e.id for e in store.list_show_episodes("show-1")] == ["ep-3", "ep-2", "ep-1"]

    def test_free_episodes(self, store):
        assert {e.id for e in store.list_free_episodes()} == {"ep-3", "ep-4"}

    def test_count_active_episodes(self, store):
        assert store.count_active_episodes() == 5

    def test_episode_pages_do_not_overlap(self, store):
        first = store.list_episodes_page(0, 2)
        second = store.list_episodes_page(2, 2)
        third = store.list_episodes_page(4, 2)

        ids = [e.id for e in first + second + third]
        assert len(ids) == len(set(ids)) == 5
        assert ids[0] == "ep-5"  # most recently updated

    def test_episode_slug(self):
        assert Episode(show_id="s", title="t", air_date=date(2024, 1, 2)).slug == "2024-01-02"
        assert Episode(show_id="s", title="t", episode_number=7).slug == "episode-7"
        assert Episode(id="legacy", show_id="s", title="t").slug == "legacy"


class TestPostAndAggregates:

    def test_published_post_only(self, store):
        assert store.get_published_post("top-serials-2024").tags == ["serial", "bangla"]
        assert store.get_published_post("draft-post") is None

    def test_site_settings(self, store):
        assert store.get_site_settings().site_title == "BTSPRO24"

    def test_latest_updated_at_ignores_inactive_rows(self, store):
        assert store.latest_updated_at(Show).replace(tzinfo=None) == datetime(2024, 6, 1, 10, 0, 0)
        assert store.latest_updated_at(ContentCategory).replace(tzinfo=None) == datetime(2024, 5, 1, 8, 0, 0)
        assert store.latest_updated_at(Episode).replace(tzinfo=None) == datetime(2024, 7, 1, 6, 0, 0)

    def test_latest_updated_at_empty_table(self, empty_store):
        assert empty_store.latest_updated_at(Show) is None


class TestModelDefaults:

    def test_timestamps_default_to_aware_utc(self):
        show = Show(slug="new-show", title="New Show")

        assert show.created_at.tzinfo is timezone.utc
        assert show.updated_at.tzinfo is timezone.utc

    def test_rows_with_default_timestamps_are_stored(self, store):
        with store.get_session() as session:
            session.add(Show(id="show-new", slug="new-show", title="New Show"))
            session.add(Episode(id="ep-new", show_id="show-new", title="Episode 1", episode_number=1))
            session.commit()

        show = store.get_show_by_slug("new-show")
        assert show.updated_at is not None
        assert [e.id for e in store.list_show_episodes("show-new")] == ["ep-new"]


class TestErrors:

    def test_driver_errors_become_data_store_errors(self, store):
        failure = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch.object(store, "get_session", side_effect=failure):
            with pytest.raises(DataStoreError) as exc_info:
                store.get_show_by_slug("amar-ami")

        assert exc_info.value.query == "show_by_slug"
        assert "show_by_slug" in str(exc_info.value)
