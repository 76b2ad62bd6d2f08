"""
tests/test_listing.py -- Home page and the HTMX listing fragment.

The web DB is seeded by conftest.seed_directory(), so category ids are
Python=1, Databases=2, Web=3.

Each test that depends on a fresh store read uses its own search term:
the listing cache is shared across the module and keyed by query string.
"""

from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from conftest import Sessions
from directory.store import ResourceStore

ERROR_TEXT = "An error occurred, please try again."
EMPTY_TEXT = "No resources were found."


class TestFragmentStates:
    def test_results_rendered_as_cards(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/partials/resources?categories=1;2&mode=all")
        assert resp.status_code == 200
        assert "SQLAlchemy Core" in resp.text
        assert "HTMX examples" not in resp.text

    def test_search_term_highlighted(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/partials/resources?search=htmx")
        assert "<mark>HTMX</mark> examples" in resp.text

    def test_selected_tags_marked(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/partials/resources?categories=3&search=examples")
        assert 'class="tag selected"' in resp.text

    def test_empty_result_set(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/partials/resources?search=nothing-matches-this")
        assert resp.status_code == 200
        assert EMPTY_TEXT in resp.text
        assert ERROR_TEXT not in resp.text

    def test_store_fault_renders_error_state(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        with patch.object(ResourceStore, "list_resources", side_effect=SQLAlchemyError("db down")):
            resp = client.get("/partials/resources?search=fault-check")
        assert resp.status_code == 200
        assert ERROR_TEXT in resp.text
        assert EMPTY_TEXT not in resp.text

    def test_fault_is_not_cached(self, web: tuple[TestClient, Sessions]) -> None:
        """The next poll after a fault must hit the store again."""
        client, _sessions = web
        with patch.object(ResourceStore, "list_resources", side_effect=SQLAlchemyError("db down")):
            client.get("/partials/resources?search=retry-check")
        resp = client.get("/partials/resources?search=retry-check")
        assert EMPTY_TEXT in resp.text

    def test_out_of_range_ids_ignored(self, web: tuple[TestClient, Sessions]) -> None:
        """Ids that cannot be bound to an INTEGER column are dropped, not sent to the store."""
        client, _sessions = web
        resp = client.get("/partials/resources?categories=99999999999999999999;3&search=examples")
        assert resp.status_code == 200
        assert ERROR_TEXT not in resp.text
        assert "<mark>examples</mark>" in resp.text


class TestListingCache:
    def test_repeat_query_served_from_cache(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        first = client.get("/partials/resources?search=guide")
        assert "example.org/fastapi-guide" in first.text

        with patch.object(ResourceStore, "list_resources", side_effect=SQLAlchemyError("db down")) as mock:
            second = client.get("/partials/resources?search=guide")
        assert "example.org/fastapi-guide" in second.text
        mock.assert_not_called()

    def test_equivalent_queries_share_one_entry(self, web: tuple[TestClient, Sessions]) -> None:
        """Parameter order and malformed ids do not change the cache key."""
        client, _sessions = web
        client.get("/partials/resources?search=manual&categories=2")
        with patch.object(ResourceStore, "list_resources") as mock:
            resp = client.get("/partials/resources?categories=2;x&search=manual")
        mock.assert_not_called()
        assert "PostgreSQL <mark>manual</mark>" in resp.text


class TestHomePage:
    def test_polls_fragment_with_current_query(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/?categories=1&sortBy=oldest")
        assert resp.status_code == 200
        assert 'hx-get="/partials/resources?categories=1&amp;mode=in&amp;sortBy=oldest&amp;search="' in resp.text
        assert 'hx-trigger="load, every 60s"' in resp.text

    def test_category_sidebar_lists_every_category(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/")
        for name in ("Python", "Databases", "Web"):
            assert name in resp.text

    def test_selected_label_and_clear_link(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/?categories=1;3")
        assert "2 categories selected" in resp.text
        assert 'href="/?categories=&amp;mode=in&amp;sortBy=newest&amp;search="' in resp.text

    def test_no_label_without_selection(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/")
        assert "selected</span>" not in resp.text

    def test_category_fault_keeps_page_up(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        with patch.object(ResourceStore, "list_categories", side_effect=SQLAlchemyError("db down")):
            resp = client.get("/")
        assert resp.status_code == 200
        assert "Categories could not be loaded." in resp.text

    def test_non_ascii_digit_category_ignored(self, web: tuple[TestClient, Sessions]) -> None:
        client, _sessions = web
        resp = client.get("/?categories=%C2%B2;1")
        assert resp.status_code == 200
        assert "1 category selected" in resp.text
