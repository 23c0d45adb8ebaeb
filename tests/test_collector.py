"""Tests for the collector's worker pool, callbacks and barrier."""

import threading

import pytest

from conftest import StubFetcher, wiki_page
from linkharvest.crawler.collector import Collector
from linkharvest.errors import VisitError


class TestVisit:
    """Tests for URL scheduling."""

    @pytest.mark.asyncio
    async def test_rejects_non_http(self):
        collector = Collector(StubFetcher({}))
        with pytest.raises(VisitError):
            collector.visit("ftp://example.com/file")
        with pytest.raises(VisitError):
            collector.visit("not a url")
        await collector.wait()

    @pytest.mark.asyncio
    async def test_rejects_duplicate(self):
        fetcher = StubFetcher({"https://a.test/": wiki_page("A", [])})
        collector = Collector(fetcher)
        collector.visit("https://a.test/")
        with pytest.raises(VisitError):
            collector.visit("https://a.test/")
        await collector.wait()
        assert fetcher.requested == ["https://a.test/"]

    def test_parallelism_must_be_positive(self):
        with pytest.raises(ValueError):
            Collector(StubFetcher({}), parallelism=0)

    @pytest.mark.asyncio
    async def test_wait_without_visits_returns(self):
        collector = Collector(StubFetcher({}))
        await collector.wait()
        assert collector.stats.pages_requested == 0


class TestDispatch:
    """Tests for callback dispatch."""

    @pytest.mark.asyncio
    async def test_callbacks_fire_for_each_match(self):
        url = "https://a.test/wiki/A"
        fetcher = StubFetcher({url: wiki_page("Alpha", ["/x1", "/x2"])})
        collector = Collector(fetcher)

        requests, titles, hrefs = [], [], []
        collector.on_request(lambda ctx: requests.append(ctx.url))
        collector.on_html("h1#firstHeading", lambda el: titles.append(el.child_text("i")))
        collector.on_html("div.mw-body-content a", lambda el: hrefs.append(el.attr("href")))

        collector.visit(url)
        await collector.wait()

        assert requests == [url]
        assert titles == ["Alpha"]
        assert hrefs == ["/x1", "/x2"]
        assert collector.stats.pages_succeeded == 1

    @pytest.mark.asyncio
    async def test_html_callbacks_run_off_the_event_loop_thread(self):
        url = "https://a.test/"
        collector = Collector(StubFetcher({url: wiki_page("A", ["/x"])}))
        threads = []
        collector.on_html("a", lambda el: threads.append(threading.get_ident()))

        collector.visit(url)
        await collector.wait()

        assert threads
        assert threading.get_ident() not in threads

    @pytest.mark.asyncio
    async def test_no_callbacks_after_wait(self):
        urls = [f"https://a.test/{i}" for i in range(5)]
        collector = Collector(StubFetcher({u: wiki_page(u, ["/x"]) for u in urls}, delay=0.01),
                              parallelism=2)
        seen = []
        collector.on_html("div.mw-body-content a", lambda el: seen.append(el.request.url))

        for url in urls:
            collector.visit(url)
        await collector.wait()

        assert sorted(seen) == sorted(urls)


class TestFaults:
    """Per-page failures must not affect other pages."""

    @pytest.mark.asyncio
    async def test_failed_fetch_goes_to_error_callback(self):
        good, bad = "https://a.test/good", "https://a.test/bad"
        collector = Collector(StubFetcher({good: wiki_page("Good", ["/x"])}))
        errors, links = [], []
        collector.on_error(lambda ctx, err: errors.append((ctx.url, err)))
        collector.on_html("div.mw-body-content a", lambda el: links.append(el.request.url))

        collector.visit(bad)
        collector.visit(good)
        await collector.wait()

        assert errors == [(bad, "HTTP 404 Not Found")]
        assert links == [good]
        assert collector.stats.pages_failed == 1
        assert collector.stats.pages_succeeded == 1
        assert collector.failed_pages == [(bad, "HTTP 404 Not Found")]

    @pytest.mark.asyncio
    async def test_callback_exception_is_a_page_failure(self):
        urls = ["https://a.test/1", "https://a.test/2"]
        collector = Collector(StubFetcher({u: wiki_page("T", ["/x"]) for u in urls}))
        errors = []
        collector.on_error(lambda ctx, err: errors.append(ctx.url))

        def explode(element):
            if element.request.url == urls[0]:
                raise RuntimeError("boom")

        collector.on_html("h1", explode)
        for url in urls:
            collector.visit(url)
        await collector.wait()

        assert errors == [urls[0]]
        assert collector.stats.pages_succeeded == 1

    @pytest.mark.asyncio
    async def test_failing_error_callback_does_not_stall_workers(self):
        urls = [f"https://a.test/missing-{i}" for i in range(4)]
        collector = Collector(StubFetcher({}), parallelism=1)

        def broken(ctx, err):
            raise RuntimeError("handler bug")

        collector.on_error(broken)
        for url in urls:
            collector.visit(url)
        await collector.wait()

        assert collector.stats.pages_failed == 4


class TestParallelism:
    """The worker pool bounds simultaneous fetches."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parallelism", [1, 2, 3])
    async def test_in_flight_is_bounded(self, parallelism):
        urls = [f"https://a.test/{i}" for i in range(8)]
        fetcher = StubFetcher({u: wiki_page("T", []) for u in urls}, delay=0.02)
        collector = Collector(fetcher, parallelism=parallelism)

        for url in urls:
            collector.visit(url)
        await collector.wait()

        assert fetcher.max_in_flight == parallelism
        assert collector.stats.pages_requested == len(urls)
