from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from core.concurrency import CancellationToken
from core.config.buckets_options import BucketsOptions
from ingest.sources.buckets.bucket_sources import BucketSourceReader, build_search_uri
from ingest.sources.github.shared.models import ProbeResult, SearchResultItem, SearchResults

QUERY = "https://api.github.com/search/repositories?q=topic:scoop-bucket"


def make_options(**overrides):
    base = {
        "official_buckets_list_url": "https://example.com/buckets.json",
        "github_buckets_search_queries": [QUERY],
        "ignored_buckets_list_url": "https://example.com/ignored.csv",
        "manual_buckets_list_url": "https://example.com/manual.csv",
    }
    base.update(overrides)
    return BucketsOptions(**base)


def make_client():
    client = MagicMock()
    client.get_as_string = AsyncMock()
    client.send = AsyncMock()
    client.get_search_results = AsyncMock()
    return client


def page_of(total_count, uris, stars=1):
    return SearchResults(
        total_count=total_count,
        items=[SearchResultItem(uri=uri, stars=stars) for uri in uris],
    )


class TestOfficialBuckets:
    @pytest.mark.asyncio
    async def test_reads_json_values(self):
        client = make_client()
        client.get_as_string.return_value = (
            '{"main": "https://github.com/ScoopInstaller/Main", '
            '"extras": "https://github.com/ScoopInstaller/Extras"}'
        )
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.retrieve_official_buckets(CancellationToken())

        assert buckets == {"https://github.com/ScoopInstaller/Main", "https://github.com/ScoopInstaller/Extras"}

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_empty_set(self):
        client = make_client()
        client.get_as_string.side_effect = httpx.ConnectError("down")
        reader = BucketSourceReader(client, make_options())

        assert await reader.retrieve_official_buckets(CancellationToken()) == set()


class TestCsvBuckets:
    @pytest.mark.asyncio
    async def test_validates_each_row(self):
        client = make_client()
        client.get_as_string.return_value = (
            "name,url\n"
            "foo,https://github.com/a/foo.git\n"
            "empty,\n"
            "gone,https://github.com/a/gone\n"
        )

        async def probe(method, uri, follow_redirects, token):
            if uri.endswith("gone"):
                return ProbeResult(status_code=404, final_uri=uri)
            return ProbeResult(status_code=200, final_uri=uri)

        client.send.side_effect = probe
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.retrieve_buckets("https://example.com/manual.csv", True, CancellationToken())

        assert buckets == {"https://github.com/a/foo"}
        assert client.send.call_count == 2

    @pytest.mark.asyncio
    async def test_passes_redirect_flag(self):
        client = make_client()
        client.get_as_string.return_value = "url\nhttps://github.com/a/foo\n"
        client.send.return_value = ProbeResult(status_code=200, final_uri="https://github.com/a/foo")
        reader = BucketSourceReader(client, make_options())

        await reader.retrieve_buckets("https://example.com/ignored.csv", False, CancellationToken())

        assert client.send.call_args[0][2] is False

    @pytest.mark.asyncio
    async def test_reads_list_with_utf8_bom(self):
        client = make_client()
        client.get_as_string.return_value = "\ufeffurl\nhttps://github.com/a/foo\n"
        client.send.return_value = ProbeResult(status_code=200, final_uri="https://github.com/a/foo")
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.retrieve_buckets("https://example.com/manual.csv", True, CancellationToken())

        assert buckets == {"https://github.com/a/foo"}

    @pytest.mark.asyncio
    async def test_missing_url_column_skips_rows(self, caplog):
        client = make_client()
        client.get_as_string.return_value = "name,link\nfoo,https://github.com/a/foo\n"
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.retrieve_buckets("https://example.com/manual.csv", True, CancellationToken())

        assert buckets == set()
        client.send.assert_not_called()
        assert "No 'url' column" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_empty_set(self):
        client = make_client()
        client.get_as_string.side_effect = httpx.HTTPStatusError(
            "404", request=httpx.Request("GET", "https://example.com"), response=httpx.Response(404)
        )
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.retrieve_buckets("https://example.com/manual.csv", True, CancellationToken())
        assert buckets == set()


    @pytest.mark.asyncio
    async def test_unset_list_url_is_skipped(self):
        client = make_client()
        reader = BucketSourceReader(client, make_options(manual_buckets_list_url=None))

        assert await reader.retrieve_buckets(None, True, CancellationToken()) == set()
        client.get_as_string.assert_not_called()


class TestGitHubSearch:
    @pytest.mark.asyncio
    async def test_requests_pages_from_total_count(self):
        client = make_client()
        requested = []

        async def search(uri, token):
            requested.append(uri)
            page = int(uri.split("&page=")[1].split("&")[0])
            count = 100 if page < 3 else 50
            return page_of(250, [f"https://github.com/o/r{page}-{i}" for i in range(count)])

        client.get_search_results.side_effect = search
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.search_for_buckets_on_github(CancellationToken())

        assert requested == [build_search_uri(QUERY, page) for page in (1, 2, 3)]
        assert len(buckets) == 250

    @pytest.mark.asyncio
    async def test_empty_first_page_skips_query(self):
        client = make_client()
        client.get_search_results.return_value = None
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.search_for_buckets_on_github(CancellationToken())

        assert buckets == {}
        assert client.get_search_results.call_count == 1

    @pytest.mark.asyncio
    async def test_failed_page_is_treated_as_empty(self):
        client = make_client()
        client.get_search_results.side_effect = [
            page_of(300, ["https://github.com/o/first"]),
            None,
            page_of(300, ["https://github.com/o/third"]),
        ]
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.search_for_buckets_on_github(CancellationToken())

        assert buckets == {"https://github.com/o/first": 1, "https://github.com/o/third": 1}

    @pytest.mark.asyncio
    async def test_later_page_overwrites_stars(self):
        client = make_client()
        client.get_search_results.side_effect = [
            page_of(200, ["https://github.com/o/bucket"], stars=1),
            page_of(200, ["https://github.com/o/bucket"], stars=2),
        ]
        reader = BucketSourceReader(client, make_options())

        buckets = await reader.search_for_buckets_on_github(CancellationToken())

        assert buckets == {"https://github.com/o/bucket": 2}

    @pytest.mark.asyncio
    async def test_merges_queries(self):
        client = make_client()

        async def search(uri, token):
            name = "main" if "main" in uri else "extras"
            return page_of(1, [f"https://github.com/o/{name}"])

        client.get_search_results.side_effect = search
        reader = BucketSourceReader(client, make_options(
            github_buckets_search_queries=[QUERY + "+main", QUERY + "+extras"],
        ))

        buckets = await reader.search_for_buckets_on_github(CancellationToken())

        assert set(buckets) == {"https://github.com/o/main", "https://github.com/o/extras"}
