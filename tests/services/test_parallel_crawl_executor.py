import threading
from collections import Counter
from unittest.mock import Mock

import pytest

from webspider.domain import FetchOutcome, StartingPoint
from webspider.exceptions import CrawlFailedError
from webspider.services.crawl_registry import InMemoryCrawlRegistry
from webspider.services.link_processor import LinkProcessor


def _mesh(hosts=("a.com", "b.com", "c.com"), pages_per_host=8):
    """A closed graph where every page links to its neighbours and to other hosts."""
    pages = {}
    for h_index, host in enumerate(hosts):
        for i in range(pages_per_host):
            links = [
                f"http://{host}/p{(i + 1) % pages_per_host}",
                f"http://{host}/p{(i + 3) % pages_per_host}#frag",
                f"http://{hosts[(h_index + 1) % len(hosts)]}/p{i}",
                f"http://{host}/img{i}.png",
            ]
            words = "Alpha" if i % 2 == 0 else "beta"
            if i % 3 == 0:
                words += " Gamma"
            body = " ".join(f'<a href="{link}">x</a>' for link in links) + f" <p>{words}</p>"
            pages[f"http://{host}/p{i}"] = body
    return pages


def test_concrete_scenario_in_parallel(make_fetcher, parallel_factory):
    fetcher = make_fetcher({
        "http://ex.com/a": '<a href="/b">link</a> Foo here',
        "http://ex.com/b": "no keywords",
    })
    sp = StartingPoint(name="N1", url="http://ex.com/a", internal_depth=1, external_depth=0, base_url="http://ex.com")

    result = parallel_factory(fetcher).crawl([sp], ["Foo"], max_workers=4)

    assert result.visited_urls == {"http://ex.com/a", "http://ex.com/b"}
    assert {url: e.keywords for url, e in result.url_to_keywords.items()} == {"http://ex.com/a": {"Foo"}}
    assert result.keyword_to_urls["Foo"].urls == {"http://ex.com/a"}


def test_no_duplicate_fetches_under_contention(make_fetcher, parallel_factory):
    fetcher = make_fetcher(_mesh(), delay=0.002)
    seeds = [
        StartingPoint(name="A", url="http://a.com/p0", internal_depth=50, external_depth=50, base_url=""),
        StartingPoint(name="B", url="http://b.com/p0", internal_depth=50, external_depth=50, base_url=""),
    ]

    result = parallel_factory(fetcher).crawl(seeds, [], max_workers=16)

    counts = Counter(url.split("#")[0] for url in fetcher.calls)
    assert counts and max(counts.values()) == 1
    assert len(result.visited_urls) == len(fetcher.calls) == 24


def test_parallel_and_sequential_results_match(make_fetcher, parallel_factory, sequential_factory):
    pages = _mesh()
    seeds = [
        StartingPoint(name="A", url="http://a.com/p0", internal_depth=100, external_depth=100),
        StartingPoint(name="C", url="http://c.com/p5", internal_depth=100, external_depth=100),
    ]
    keywords = ["alpha", "Beta", "GAMMA", "delta"]

    seq = sequential_factory(make_fetcher(pages)).crawl(seeds, keywords)
    par = parallel_factory(make_fetcher(pages, delay=0.001)).crawl(seeds, keywords, max_workers=8)

    assert par.visited_urls == seq.visited_urls
    assert {k: v.urls for k, v in par.keyword_to_urls.items()} == {k: v.urls for k, v in seq.keyword_to_urls.items()}
    assert {u: v.keywords for u, v in par.url_to_keywords.items()} == {u: v.keywords for u, v in seq.url_to_keywords.items()}


def test_worker_cap_is_respected(make_fetcher, parallel_factory):
    pages = {"http://a.com/": "".join(f'<a href="/leaf{i}">l</a>' for i in range(20))}
    pages.update({f"http://a.com/leaf{i}": "leaf" for i in range(20)})
    fetcher = make_fetcher(pages, delay=0.01)

    result = parallel_factory(fetcher).crawl([StartingPoint(name="A", url="http://a.com/", internal_depth=1)], [], max_workers=3)

    assert len(result.visited_urls) == 21
    assert 1 < fetcher.max_in_flight <= 3


def test_cap_is_bounded_by_absolute_maximum(make_fetcher, parallel_factory):
    pages = {"http://a.com/": "".join(f'<a href="/leaf{i}">l</a>' for i in range(10))}
    pages.update({f"http://a.com/leaf{i}": "leaf" for i in range(10)})
    fetcher = make_fetcher(pages, delay=0.01)

    parallel_factory(fetcher, max_allowed_workers=2).crawl(
        [StartingPoint(name="A", url="http://a.com/", internal_depth=1)], [], max_workers=50
    )

    assert fetcher.max_in_flight <= 2


def test_empty_frontier_terminates_immediately(make_fetcher, parallel_factory):
    executor = parallel_factory(make_fetcher({}))
    session = executor.new_session([], ["Foo"])

    result = executor.run(session, max_workers=8)

    assert session.active_workers == 0
    assert result.visited_urls == set()
    assert result.keyword_to_urls == {}


def test_unexpected_worker_error_fails_whole_run(make_fetcher, parallel_factory):
    fetcher = make_fetcher({
        "http://a.com/": '<a href="/1">1</a><a href="/2">2</a>',
        "http://a.com/1": "one",
        "http://a.com/2": "two",
    })
    real = LinkProcessor()

    def flaky(task, body, is_visited):
        if task.url == "http://a.com/1":
            raise RuntimeError("parser exploded")
        return real.process(task, body, is_visited)

    link_processor = Mock()
    link_processor.process.side_effect = flaky
    registry = InMemoryCrawlRegistry()
    executor = parallel_factory(fetcher, link_processor=link_processor, crawl_registry=registry)
    session = executor.new_session([StartingPoint(name="A", url="http://a.com/", internal_depth=1)], [])

    with pytest.raises(CrawlFailedError) as exc_info:
        executor.run(session, max_workers=4)

    assert "parser exploded" in str(exc_info.value)
    # the pool still drained every task before reporting the failure
    assert session.active_workers == 0
    assert set(fetcher.calls) == {"http://a.com/", "http://a.com/1", "http://a.com/2"}
    record = registry.get(session.crawl_id)
    assert record["status"] == "failed"
    assert "parser exploded" in record["error"]


def test_thread_start_failure_fails_run_instead_of_hanging(make_fetcher, parallel_factory):
    class BrokenThread:
        def __init__(self, *args, **kwargs):
            pass

        def start(self):
            raise RuntimeError("can't start new thread")

    executor = parallel_factory(make_fetcher({"http://a.com/": "x"}), thread_factory=BrokenThread)

    with pytest.raises(CrawlFailedError):
        executor.crawl([StartingPoint(name="A", url="http://a.com/")], [], max_workers=2)


def test_run_completes_once_fetches_unblock(make_gated_fetcher, parallel_factory):
    pages = {"http://a.com/": '<a href="/1">1</a><a href="/2">2</a>', "http://a.com/1": "1", "http://a.com/2": "2"}
    fetcher = make_gated_fetcher(pages)
    executor = parallel_factory(fetcher)
    session = executor.new_session([StartingPoint(name="A", url="http://a.com/", internal_depth=1)], [])
    runner = threading.Thread(target=executor.run, args=(session, 4))
    runner.start()

    fetcher.gate.set()
    runner.join(5)

    assert not runner.is_alive()
    assert session.result.visited_urls == {"http://a.com/", "http://a.com/1", "http://a.com/2"}
    assert session.pages_fetched == 3


def test_fetches_run_concurrently_outside_session_locks(parallel_factory):
    barrier = threading.Barrier(2, timeout=5)

    class RendezvousFetcher:
        """Each fetch only completes once a second fetch is in flight."""

        def fetch(self, url):
            barrier.wait()
            return FetchOutcome.success("page")

    executor = parallel_factory(RendezvousFetcher())
    seeds = [StartingPoint(name="A", url="http://a.com/"), StartingPoint(name="B", url="http://b.com/")]

    result = executor.crawl(seeds, [], max_workers=2)

    assert result.visited_urls == {"http://a.com/", "http://b.com/"}
    assert not barrier.broken


def test_worker_threads_are_joined_before_run_returns(make_fetcher, parallel_factory):
    started = []

    def recording_thread(*args, **kwargs):
        thread = threading.Thread(*args, **kwargs)
        started.append(thread)
        return thread

    executor = parallel_factory(make_fetcher(dict(_mesh())), thread_factory=recording_thread)
    session = executor.new_session([StartingPoint(name="A", url="http://a.com/p0", internal_depth=3, external_depth=1)], [])

    executor.run(session, max_workers=4)

    assert started
    assert not any(thread.is_alive() for thread in started)
    assert session.workers == []


def test_thread_factory_error_marks_registry_record_failed(make_fetcher, parallel_factory):
    def broken_factory(*args, **kwargs):
        raise TypeError("bad thread arguments")

    registry = InMemoryCrawlRegistry()
    executor = parallel_factory(make_fetcher({"http://a.com/": "x"}), thread_factory=broken_factory, crawl_registry=registry)
    session = executor.new_session([StartingPoint(name="A", url="http://a.com/")], [])

    with pytest.raises(CrawlFailedError):
        executor.run(session, max_workers=2)

    assert registry.get(session.crawl_id)["status"] == "failed"
    assert registry.list_active() == []


def test_supervisor_error_is_reported_as_failed_run(make_fetcher, parallel_factory, monkeypatch):
    registry = InMemoryCrawlRegistry()
    executor = parallel_factory(make_fetcher({"http://a.com/": "x"}), crawl_registry=registry)
    session = executor.new_session([StartingPoint(name="A", url="http://a.com/")], [])

    def crashing_supervisor(session, matcher, cap):
        raise KeyError("supervisor bug")

    monkeypatch.setattr(executor, "_supervise", crashing_supervisor)

    with pytest.raises(CrawlFailedError) as exc_info:
        executor.run(session, max_workers=2)

    assert isinstance(exc_info.value.original, KeyError)
    assert registry.get(session.crawl_id)["status"] == "failed"
