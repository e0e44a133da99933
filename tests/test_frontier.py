import threading

from crawlsearch.crawler.url_frontier import URLFrontier


def test_admit_rejects_duplicates():
    frontier = URLFrontier(10)

    assert frontier.admit('http://a.com/')
    assert not frontier.admit('http://a.com/')
    assert 'http://a.com/' in frontier
    assert frontier.get_stats() == {
        'total_admitted': 1,
        'duplicates_rejected': 1,
        'max_size': 10,
    }


def test_admit_all_stops_at_budget():
    frontier = URLFrontier(3)
    admitted = []

    result = frontier.admit_all(
        [f'http://a.com/{n}' for n in range(10)], admitted.append
    )

    assert result == ['http://a.com/0', 'http://a.com/1', 'http://a.com/2']
    assert admitted == result
    assert frontier.is_full()
    assert not frontier.admit('http://a.com/9')


def test_admit_all_keeps_order_and_skips_seen():
    frontier = URLFrontier(5)
    frontier.admit('http://a.com/b')

    result = frontier.admit_all(['http://a.com/c', 'http://a.com/b', 'http://a.com/a'])

    assert result == ['http://a.com/c', 'http://a.com/a']
    assert frontier.get_urls() == ['http://a.com/a', 'http://a.com/b', 'http://a.com/c']


def test_budget_is_at_least_one():
    frontier = URLFrontier(0)

    assert frontier.max_size == 1
    assert frontier.admit('http://a.com/')
    assert len(frontier) == 1


def test_concurrent_admission_never_exceeds_budget():
    frontier = URLFrontier(25)
    admitted = []
    admitted_lock = threading.Lock()

    def on_admit(url):
        with admitted_lock:
            admitted.append(url)

    def admit_batch(offset):
        frontier.admit_all([f'http://a.com/{(offset + n) % 40}' for n in range(40)], on_admit)

    threads = [threading.Thread(target=admit_batch, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(frontier) == 25
    assert len(admitted) == 25
    assert len(set(admitted)) == 25
