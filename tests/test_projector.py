"""Tests for sitebuild.services.projector."""

import copy
import json
import logging

import pytest

from sitebuild.errors import MissingMetadataError
from sitebuild.models.entry import PageModel
from sitebuild.services.projector import project, read_metadata, select_pages, select_site_config


def _entry(model_name: str, entry_id: str, **fields) -> dict:
    return {"__metadata": {"modelName": model_name, "id": entry_id}, **fields}


_CONFIG = _entry("Config", "c1", title="My Site")
_ABOUT = _entry("PageLayout", "p1", slug="/about", title="About")
_HOME = _entry("PageLayout", "p0", slug="/", title="Home")
_FEED = _entry("PostFeedLayout", "f1", slug="/blog", title="Blog")
_POST = _entry("PostLayout", "b1", slug="my-post", title="My Post")
_PERSON = _entry("Person", "a1", name="Ada")


class TestEndToEnd:
    def test_config_and_page(self):
        data = project([_entry("Config", "c1"), _entry("PageLayout", "p1", slug="/about")])

        assert data.props.site == {"__metadata": {"modelName": "Config", "id": "c1"}}
        assert len(data.pages) == 1
        page = data.pages[0]
        assert page["slug"] == "/about"
        assert page["__metadata"] == {
            "modelName": "PageLayout",
            "id": "p1",
            "urlPath": "/about",
            "pageCssClasses": ["about"],
        }

    def test_every_page_model(self):
        data = project([_CONFIG, _HOME, _FEED, _POST, _PERSON])
        paths = [p["__metadata"]["urlPath"] for p in data.pages]
        classes = [p["__metadata"]["pageCssClasses"] for p in data.pages]
        assert paths == ["/", "/blog", "/blog/my-post"]
        assert classes == [["home"], ["blog"], ["blog", "my-post"]]

    def test_idempotent_serialisation(self):
        entries = [_CONFIG, _ABOUT, _POST, _PERSON]
        first = json.dumps(project(entries).model_dump())
        second = json.dumps(project(entries).model_dump())
        assert first == second

    def test_input_is_not_mutated(self):
        entries = [_CONFIG, _ABOUT, _POST]
        before = copy.deepcopy(entries)
        data = project(entries)
        data.pages[0]["__metadata"]["urlPath"] = "/changed"
        data.props.site["title"] = "changed"
        assert entries == before


class TestSelectPages:
    def test_filters_to_page_models(self):
        entries = [_CONFIG, _PERSON, _ABOUT, _POST]
        pages = select_pages(entries)
        allowed = {m.value for m in PageModel}
        assert len(pages) <= len(entries)
        assert all(p["__metadata"]["modelName"] in allowed for p in pages)

    def test_preserves_input_order(self):
        entries = [_POST, _PERSON, _ABOUT, _CONFIG, _HOME, _FEED]
        ids = [p["__metadata"]["id"] for p in select_pages(entries)]
        assert ids == ["b1", "p1", "p0", "f1"]

    def test_empty_input(self):
        assert select_pages([]) == []

    def test_extra_metadata_is_kept(self):
        entry = _entry("PageLayout", "p9", slug="x")
        entry["__metadata"]["updatedAt"] = "2024-01-01T00:00:00Z"
        page = select_pages([entry])[0]
        assert page["__metadata"]["updatedAt"] == "2024-01-01T00:00:00Z"

    def test_metadata_is_first_key(self):
        page = select_pages([_ABOUT])[0]
        assert list(page)[0] == "__metadata"

    def test_custom_strategy(self):
        pages = select_pages(
            [_ABOUT, _POST],
            strategies={"PageLayout": lambda e: "/pages" + e["slug"]},
        )
        assert [p["__metadata"]["urlPath"] for p in pages] == ["/pages/about", "/blog/my-post"]

    def test_unrooted_strategy_result_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            pages = select_pages([_ABOUT, _POST], strategies={"PageLayout": lambda e: "about"})
        assert [p["__metadata"]["id"] for p in pages] == ["b1"]
        assert "p1" in caplog.text


class TestMalformedEntries:
    def test_missing_metadata_is_skipped(self, caplog):
        entries = [{"slug": "/orphan"}, _ABOUT]
        with caplog.at_level(logging.WARNING):
            pages = select_pages(entries)
        assert [p["__metadata"]["id"] for p in pages] == ["p1"]
        assert "Skipping entry #0" in caplog.text

    def test_non_mapping_entries_are_skipped(self):
        pages = select_pages(["not an entry", None, 7, _ABOUT])
        assert len(pages) == 1

    def test_missing_model_name_is_skipped(self):
        pages = select_pages([{"__metadata": {"id": "x"}, "slug": "/x"}, _ABOUT])
        assert len(pages) == 1

    def test_empty_id_is_skipped(self):
        pages = select_pages([_entry("PageLayout", "", slug="/x"), _ABOUT])
        assert len(pages) == 1

    def test_page_without_slug_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            pages = select_pages([_entry("PageLayout", "p2", title="No slug"), _ABOUT])
        assert [p["__metadata"]["id"] for p in pages] == ["p1"]
        assert "p2" in caplog.text

    def test_malformed_entry_logged_once_per_projection(self, caplog):
        with caplog.at_level(logging.WARNING):
            project([{"slug": "/orphan"}, _CONFIG, _ABOUT])
        assert caplog.text.count("Skipping entry #0") == 1


class TestSelectSiteConfig:
    def test_empty_collection(self):
        assert select_site_config([]) is None

    def test_no_config_entry(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert select_site_config([_ABOUT, _PERSON]) is None
        assert "No Config entry found" in caplog.text

    def test_first_config_wins(self):
        second = _entry("Config", "c2")
        assert select_site_config([_ABOUT, _CONFIG, second])["__metadata"]["id"] == "c1"

    def test_project_without_config(self):
        data = project([_ABOUT])
        assert data.props.site is None
        assert len(data.pages) == 1


class TestReadMetadata:
    def test_valid(self):
        meta = read_metadata(_ABOUT)
        assert meta.id == "p1"
        assert meta.model_name == "PageLayout"

    def test_non_string_id_raises(self):
        with pytest.raises(MissingMetadataError):
            read_metadata({"__metadata": {"id": 5, "modelName": "PageLayout"}})

    def test_metadata_not_a_mapping_raises(self):
        with pytest.raises(MissingMetadataError):
            read_metadata({"__metadata": "PageLayout"})


class TestStrategyFailures:
    def test_strategy_exception_skips_only_that_entry(self, caplog):
        no_slug = _entry("PageLayout", "p0", title="No slug")
        with caplog.at_level(logging.WARNING):
            pages = select_pages(
                [no_slug, _ABOUT],
                strategies={"PageLayout": lambda e: "/pages" + e["slug"]},
            )
        assert [p["__metadata"]["id"] for p in pages] == ["p1"]
        assert "p0" in caplog.text

    def test_strategy_type_error_is_not_fatal(self):
        data = project(
            [_CONFIG, _entry("PageLayout", "p2", slug=7), _POST],
            strategies={"PageLayout": lambda e: "/" + e["slug"]},
        )
        assert [p["__metadata"]["id"] for p in data.pages] == ["b1"]
        assert data.props.site["__metadata"]["id"] == "c1"


class TestModelTagSpelling:
    def test_snake_case_model_name_is_rejected(self):
        entry = {"__metadata": {"id": "x", "model_name": "PageLayout"}, "slug": "/x"}
        assert select_pages([entry, _ABOUT]) == select_pages([_ABOUT])

    def test_output_always_carries_model_name(self):
        allowed = {m.value for m in PageModel}
        pages = select_pages([_HOME, _FEED, _POST])
        assert all(p["__metadata"]["modelName"] in allowed for p in pages)
