from __future__ import annotations

import pytest
import requests

from batwiki import config
from batwiki.errors import ArticleNotFoundError, UpstreamError, ValidationError
from batwiki.wiki_client import WikiClient

from .conftest import BATMAN_URL, hit_payload, make_response, search_payload, summary_payload


@pytest.fixture
def client() -> WikiClient:
    return WikiClient(
        search_api_url="https://wiki.test/w/api.php",
        summary_api_url="https://wiki.test/api/rest_v1/",
    )


@pytest.mark.unit
class TestSearch:
    def test_request_shape(self, client, requests_get):
        requests_get.return_value = make_response(payload=search_payload())

        client.search('Batman OR "Bruce Wayne"', 5)

        args, kwargs = requests_get.call_args
        assert args[0] == "https://wiki.test/w/api.php"
        assert kwargs["params"] == {
            "action": "query",
            "format": "json",
            "list": "search",
            "srsearch": 'Batman OR "Bruce Wayne"',
            "srlimit": "5",
            "srprop": "title|snippet|size|wordcount|timestamp",
            "srnamespace": "0",
        }
        assert kwargs["headers"]["User-Agent"] == config.DEFAULT_UA
        assert kwargs["headers"]["Cache-Control"] == "max-age=300"
        assert kwargs["timeout"] is None

    def test_preserves_upstream_order(self, client, requests_get):
        requests_get.return_value = make_response(
            payload=search_payload(
                hit_payload("Joker", 3), hit_payload("Batman", 1), hit_payload("Robin", 2)
            )
        )
        hits = client.search("q", 3)
        assert [h.page_id for h in hits] == [3, 1, 2]

    def test_maps_fields(self, client, requests_get):
        requests_get.return_value = make_response(
            payload=search_payload(
                hit_payload("Batman", 4335, "a <b>snippet</b>", size=0, wordcount=0)
            )
        )
        (hit,) = client.search("q", 1)
        assert hit.title == "Batman"
        assert hit.page_id == 4335
        assert hit.size_bytes == 0  # stub articles are valid
        assert hit.word_count == 0
        assert hit.snippet == "a <b>snippet</b>"
        assert hit.clean_snippet == "a snippet"
        assert hit.timestamp_iso == "2024-01-01T00:00:00Z"

    def test_duplicate_pageids_keep_first(self, client, requests_get):
        requests_get.return_value = make_response(
            payload=search_payload(
                hit_payload("Batman", 1), hit_payload("Batman (duplicate)", 1), hit_payload("Robin", 2)
            )
        )
        assert [h.title for h in client.search("q", 3)] == ["Batman", "Robin"]

    @pytest.mark.parametrize("status", [301, 404, 429, 500, 503])
    def test_non_success_status(self, client, requests_get, status):
        requests_get.return_value = make_response(status=status, payload={"error": "x"})
        with pytest.raises(UpstreamError) as ei:
            client.search("q", 5)
        assert ei.value.stage == "search"
        assert ei.value.status == status
        assert not isinstance(ei.value, ArticleNotFoundError)

    def test_invalid_json(self, client, requests_get):
        requests_get.return_value = make_response(invalid_json=True)
        with pytest.raises(UpstreamError) as ei:
            client.search("q", 5)
        assert (ei.value.stage, ei.value.cause) == ("search", "malformed-response")

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {"query": {}},
            {"query": {"search": "nope"}},
            search_payload({"title": "Batman"}),
            search_payload(hit_payload("Batman", 1, size=-1)),
            search_payload(hit_payload("Batman", 1, wordcount="12")),
            search_payload(hit_payload("", 1)),
        ],
    )
    def test_schema_mismatch(self, client, requests_get, payload):
        requests_get.return_value = make_response(payload=payload)
        with pytest.raises(UpstreamError) as ei:
            client.search("q", 5)
        assert ei.value.cause == "malformed-response"
        assert ei.value.status is None

    def test_network_failure(self, client, requests_get):
        requests_get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(UpstreamError) as ei:
            client.search("q", 5)
        assert (ei.value.stage, ei.value.cause) == ("search", "network")
        assert isinstance(ei.value.__cause__, requests.ConnectionError)

    @pytest.mark.parametrize("limit", [0, -3, True, "5"])
    def test_rejects_bad_limit_before_request(self, client, requests_get, limit):
        with pytest.raises(ValidationError):
            client.search("q", limit)
        requests_get.assert_not_called()

    def test_clamps_large_limit(self, client, requests_get):
        requests_get.return_value = make_response(payload=search_payload())
        client.search("q", 10_000)
        assert requests_get.call_args.kwargs["params"]["srlimit"] == str(config.MAX_SEARCH_LIMIT)


@pytest.mark.unit
class TestSummary:
    def test_request_shape(self, client, requests_get):
        requests_get.return_value = make_response(payload=summary_payload())

        client.get_summary("Batman/Superman (film)")

        args, kwargs = requests_get.call_args
        assert args[0] == "https://wiki.test/api/rest_v1/page/summary/Batman%2FSuperman%20(film)"
        assert kwargs["headers"]["Cache-Control"] == "max-age=3600"
        assert kwargs["headers"]["User-Agent"] == config.DEFAULT_UA

    def test_minimal_summary(self, client, requests_get):
        requests_get.return_value = make_response(payload=summary_payload())
        page = client.get_summary("Batman")
        assert page.page_id == 4335
        assert page.desktop_url == BATMAN_URL
        assert page.mobile_url == "https://en.m.wikipedia.org/wiki/Batman"
        assert page.extract_html is None
        assert page.content == page.extract_plain_text
        assert page.thumbnail is None
        assert page.description is None
        assert page.wikidata_id is None

    def test_full_summary(self, client, requests_get):
        requests_get.return_value = make_response(
            payload=summary_payload(
                description="Fictional superhero",
                extract_html="<p><b>Batman</b> is a superhero</p>",
                wikibase_item="Q2695156",
                thumbnail={"source": "https://upload.test/bat.jpg", "width": 320, "height": 480},
            )
        )
        page = client.get_summary("Batman")
        assert page.description == "Fictional superhero"
        assert page.content == "<p><b>Batman</b> is a superhero</p>"
        assert page.wikidata_id == "Q2695156"
        assert page.thumbnail is not None
        assert (page.thumbnail.url, page.thumbnail.width, page.thumbnail.height) == (
            "https://upload.test/bat.jpg",
            320,
            480,
        )

    def test_not_found(self, client, requests_get):
        requests_get.return_value = make_response(status=404, payload={"type": "not_found"})
        with pytest.raises(ArticleNotFoundError) as ei:
            client.get_summary("Nonexistent Page")
        err = ei.value
        assert (err.stage, err.status, err.kind) == ("summary", 404, "not-found")
        assert err.title == "Nonexistent Page"
        assert err.retryable is False

    def test_server_error_is_not_not_found(self, client, requests_get):
        requests_get.return_value = make_response(status=500)
        with pytest.raises(UpstreamError) as ei:
            client.get_summary("Batman")
        assert not isinstance(ei.value, ArticleNotFoundError)
        assert ei.value.kind == "upstream"
        assert ei.value.retryable is True

    def test_missing_desktop_url_is_malformed(self, client, requests_get):
        requests_get.return_value = make_response(payload=summary_payload(content_urls={}))
        with pytest.raises(UpstreamError) as ei:
            client.get_summary("Batman")
        assert (ei.value.stage, ei.value.cause) == ("summary", "malformed-response")

    def test_empty_title(self, client, requests_get):
        with pytest.raises(ValidationError):
            client.get_summary("  ")
        requests_get.assert_not_called()


@pytest.mark.unit
class TestRecentChangesAndCategories:
    def test_recent_changes(self, client, requests_get):
        requests_get.return_value = make_response(
            payload={
                "query": {
                    "recentchanges": [
                        {
                            "type": "edit",
                            "title": "Batman",
                            "timestamp": "2024-01-01T00:00:00Z",
                            "comment": "fix",
                            "user": "Alfred",
                            "oldlen": 100,
                            "newlen": 90,
                        },
                        {
                            "type": "edit",
                            "title": "Joker",
                            "timestamp": "2024-01-01T00:00:00Z",
                            "commenthidden": "",
                            "userhidden": "",
                            "oldlen": 0,
                            "newlen": 50,
                        },
                    ]
                }
            }
        )
        changes = client.recent_changes(100)
        params = requests_get.call_args.kwargs["params"]
        assert params["list"] == "recentchanges"
        assert params["rcprop"] == "title|timestamp|comment|user|sizes"
        assert params["rcnamespace"] == "0"
        assert requests_get.call_args.kwargs["headers"]["Cache-Control"] == "max-age=60"
        assert changes[0].size_delta == -10
        assert (changes[1].comment, changes[1].user) == ("", "")

    def test_categories(self, client, requests_get):
        requests_get.return_value = make_response(
            payload={"query": {"allcategories": [{"*": "Batman"}, {"*": "Batman films"}]}}
        )
        assert client.categories("Batman", 50) == ["Batman", "Batman films"]
        params = requests_get.call_args.kwargs["params"]
        assert (params["acprefix"], params["aclimit"]) == ("Batman", "50")

    def test_categories_error(self, client, requests_get):
        requests_get.return_value = make_response(status=502)
        with pytest.raises(UpstreamError) as ei:
            client.categories("Batman")
        assert (ei.value.stage, ei.value.status) == ("categories", 502)
