import random

import pytest

from crawlsearch.index.inverted_index import InvertedIndex, SearchResult, update_result


@pytest.fixture
def run_index():
    """a.txt holds "Run running runs", b.txt holds "Runner", all stemmed to run."""
    index = InvertedIndex()
    index.add_stems(['run', 'run', 'run'], 'a.txt')
    index.add_stems(['run'], 'b.txt')
    return index


@pytest.fixture
def mixed_index():
    index = InvertedIndex()
    index.add_stems(['apple', 'banana', 'apple', 'cherry'], 'one.txt')
    index.add_stems(['applesauce', 'banana'], 'two.txt')
    index.add_stems(['apricot', 'app', 'zebra', 'zebra', 'zebra'], 'Three.txt')
    index.add_stems(['banana'], 'four.txt')
    return index


def test_exact_search_scenario(run_index):
    results = run_index.search({'run'}, exact=True)

    assert results == [
        SearchResult('a.txt', 3, 1.0),
        SearchResult('b.txt', 1, 1.0),
    ]


def test_equal_score_orders_by_count_before_location():
    index = InvertedIndex()
    index.add_stems(['run'], 'a.txt')
    index.add_stems(['run', 'run', 'run'], 'b.txt')

    results = index.exact_search(['run'])

    assert [result.location for result in results] == ['b.txt', 'a.txt']


def test_exact_search_scores(mixed_index):
    results = mixed_index.exact_search(['banana'])

    assert [(r.location, r.count) for r in results] == [
        ('four.txt', 1),
        ('two.txt', 1),
        ('one.txt', 1),
    ]
    assert results[0].score == 1.0
    assert results[1].score == pytest.approx(0.5)
    assert results[2].score == pytest.approx(0.25)


def test_exact_search_combines_query_words(mixed_index):
    results = mixed_index.exact_search(['apple', 'cherry', 'missing'])

    assert results == [SearchResult('one.txt', 3, 0.75)]


def test_exact_search_without_matches(mixed_index):
    assert mixed_index.exact_search(['missing']) == []
    assert mixed_index.exact_search([]) == []


def test_partial_search_matches_prefixes(mixed_index):
    results = mixed_index.partial_search(['app'])

    assert [(r.location, r.count) for r in results] == [
        ('one.txt', 2),
        ('two.txt', 1),
        ('Three.txt', 1),
    ]


def test_partial_search_stops_at_first_mismatch(mixed_index):
    results = mixed_index.partial_search(['apr'])

    assert results == [SearchResult('Three.txt', 1, 0.2)]


def test_partial_search_is_superset_of_exact(mixed_index):
    for word in mixed_index.get_words():
        for length in range(1, len(word) + 1):
            query = [word[:length]]
            exact = {r.location for r in mixed_index.exact_search(query)}
            partial = {r.location for r in mixed_index.partial_search(query)}
            assert exact <= partial


def test_search_dispatches(mixed_index):
    assert mixed_index.search(['app'], exact=True) == mixed_index.exact_search(['app'])
    assert mixed_index.search(['app'], exact=False) == mixed_index.partial_search(['app'])


def test_location_tie_break_ignores_case():
    index = InvertedIndex()
    for location in ['b.txt', 'C.txt', 'a.txt']:
        index.add('word', location, 1)

    results = index.exact_search(['word'])

    assert [r.location for r in results] == ['a.txt', 'b.txt', 'C.txt']


def test_update_result_recomputes_score():
    result = SearchResult('a.txt')

    result = update_result(result, 2, {'a.txt': 8})
    result = update_result(result, 2, {'a.txt': 8})

    assert result.count == 4
    assert result.score == pytest.approx(0.5)


def test_update_result_without_count():
    result = update_result(SearchResult('gone.txt'), 1, {})

    assert result.count == 1
    assert result.score == 0.0


def test_ranking_is_a_total_order():
    rng = random.Random(272)
    results = [
        SearchResult(
            location=rng.choice(['a', 'B', 'c', 'D']) + str(i),
            count=rng.randint(1, 4),
            score=rng.choice([0.25, 0.5, 1.0])
        )
        for i in range(200)
    ]

    ranked = sorted(results)

    for better, worse in zip(ranked, ranked[1:]):
        assert better.score >= worse.score
        if better.score == worse.score:
            assert better.count >= worse.count
            if better.count == worse.count:
                assert better.location.lower() <= worse.location.lower()

    assert sorted(reversed(ranked)) == ranked


def test_case_only_location_difference_still_ordered():
    upper = SearchResult('A.txt', 1, 1.0)
    lower = SearchResult('a.txt', 1, 1.0)

    assert upper < lower
    assert not lower < upper
