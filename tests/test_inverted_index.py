import itertools
import threading

from crawlsearch.index.inverted_index import InvertedIndex, thread_safe_index


def build(entries):
    index = InvertedIndex()
    for word, location, position in entries:
        index.add(word, location, position)
    return index


def contents(index):
    return index.snapshot(), index.get_counts()


def test_add_records_word_location_position():
    index = InvertedIndex()

    assert index.add('hello', 'a.txt', 1)

    assert index.contains_word('hello')
    assert index.contains_location('hello', 'a.txt')
    assert index.contains_position('hello', 'a.txt', 1)
    assert not index.contains_position('hello', 'a.txt', 2)
    assert index.has_count('a.txt')
    assert index.get_count('a.txt') == 1


def test_add_is_idempotent():
    once = build([('hello', 'a.txt', 1)])
    twice = build([('hello', 'a.txt', 1)])

    assert not twice.add('hello', 'a.txt', 1)

    assert twice.size_positions('hello', 'a.txt') == 1
    assert twice.get_count('a.txt') == 1
    assert str(once) == str(twice)


def test_counts_only_distinct_positions():
    index = build([
        ('hello', 'a.txt', 1),
        ('world', 'a.txt', 2),
        ('hello', 'a.txt', 3),
        ('hello', 'a.txt', 3),
        ('hello', 'b.txt', 1),
    ])

    assert index.get_counts() == {'a.txt': 3, 'b.txt': 1}
    assert index.get_count('missing') == 0
    assert not index.has_count('missing')


def test_views_are_sorted():
    index = build([
        ('zebra', 'b.txt', 9),
        ('apple', 'b.txt', 4),
        ('apple', 'a.txt', 7),
        ('apple', 'a.txt', 2),
        ('mango', 'c.txt', 1),
    ])

    assert index.get_words() == ('apple', 'mango', 'zebra')
    assert index.get_locations('apple') == ('a.txt', 'b.txt')
    assert index.get_positions('apple', 'a.txt') == (2, 7)
    assert list(index.get_counts()) == ['a.txt', 'b.txt', 'c.txt']


def test_missing_entries_are_empty():
    index = build([('hello', 'a.txt', 1)])

    assert index.get_locations('missing') == ()
    assert index.get_positions('hello', 'missing') == ()
    assert index.size_locations('missing') == 0
    assert index.size_positions('missing', 'a.txt') == 0
    assert not index.contains_location('missing', 'a.txt')


def test_sizes():
    index = build([
        ('hello', 'a.txt', 1),
        ('hello', 'a.txt', 2),
        ('hello', 'b.txt', 1),
        ('world', 'b.txt', 2),
    ])

    assert index.size_words() == 2
    assert len(index) == 2
    assert index.size_locations('hello') == 2
    assert index.size_positions('hello', 'a.txt') == 2


def test_add_stems_uses_consecutive_positions():
    index = InvertedIndex()

    next_position = index.add_stems(['run', 'fast', 'run'], 'a.txt')

    assert next_position == 4
    assert index.get_positions('run', 'a.txt') == (1, 3)
    assert index.get_positions('fast', 'a.txt') == (2,)
    assert index.get_count('a.txt') == 3


def test_add_all_merges_disjoint_indexes():
    first = build([('hello', 'a.txt', 1), ('world', 'a.txt', 2)])
    second = build([('hello', 'b.txt', 1), ('there', 'b.txt', 2)])

    first.add_all(second)

    assert first.get_words() == ('hello', 'there', 'world')
    assert first.get_locations('hello') == ('a.txt', 'b.txt')
    assert first.get_counts() == {'a.txt': 2, 'b.txt': 2}


def test_add_all_unions_positions():
    first = build([('hello', 'a.txt', 1), ('hello', 'a.txt', 5)])
    second = build([('hello', 'a.txt', 5), ('hello', 'a.txt', 9)])

    first.add_all(second)

    assert first.get_positions('hello', 'a.txt') == (1, 5, 9)
    assert first.get_count('a.txt') == 3


def test_add_all_does_not_share_state_with_donor():
    first = InvertedIndex()
    second = build([('hello', 'a.txt', 1)])

    first.add_all(second)
    first.add('hello', 'a.txt', 2)

    assert second.get_positions('hello', 'a.txt') == (1,)
    assert second.get_count('a.txt') == 1


def test_add_all_with_itself_changes_nothing():
    index = build([('hello', 'a.txt', 1)])
    before = contents(index)

    index.add_all(index)

    assert contents(index) == before


def test_merge_order_does_not_matter():
    entries_a = [('hello', 'a.txt', 1), ('world', 'a.txt', 2), ('hello', 'c.txt', 1)]
    entries_b = [('hello', 'b.txt', 1), ('hello', 'c.txt', 1), ('hello', 'c.txt', 2)]
    entries_c = [('world', 'c.txt', 3), ('there', 'a.txt', 3)]

    expected = contents(build(entries_a + entries_b + entries_c))

    for order in itertools.permutations([entries_a, entries_b, entries_c]):
        merged = build(order[0])
        merged.add_all(build(order[1]))
        merged.add_all(build(order[2]))
        assert contents(merged) == expected

    # (A + B) + C == A + (B + C)
    left = build(entries_a)
    left.add_all(build(entries_b))
    left.add_all(build(entries_c))

    right_inner = build(entries_b)
    right_inner.add_all(build(entries_c))
    right = build(entries_a)
    right.add_all(right_inner)

    assert contents(left) == contents(right) == expected


def test_thread_safe_index_concurrent_adds_and_merges():
    index = thread_safe_index()
    assert index.is_thread_safe
    assert not InvertedIndex().is_thread_safe

    def add_file(n):
        local = InvertedIndex()
        for position in range(1, 101):
            local.add(f'word{position % 10}', f'file{n}.txt', position)
        index.add_all(local)
        for position in range(101, 151):
            index.add('shared', f'file{n}.txt', position)

    def search_while_writing():
        for _ in range(50):
            index.partial_search(['word'])

    threads = [threading.Thread(target=add_file, args=(n,)) for n in range(8)]
    threads += [threading.Thread(target=search_while_writing) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert index.size_words() == 11
    assert index.size_locations('shared') == 8
    for n in range(8):
        assert index.get_count(f'file{n}.txt') == 150


def test_thread_safe_indexes_merge_into_each_other():
    first = thread_safe_index()
    second = thread_safe_index()
    for n in range(200):
        first.add(f'alpha{n}', 'a.txt', n + 1)
        second.add(f'beta{n}', 'b.txt', n + 1)

    def merge(receiver, donor):
        for _ in range(50):
            receiver.add_all(donor)

    threads = [
        threading.Thread(target=merge, args=(first, second), daemon=True),
        threading.Thread(target=merge, args=(second, first), daemon=True),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert not any(thread.is_alive() for thread in threads)
    assert contents(first) == contents(second)
    assert first.get_counts() == {'a.txt': 200, 'b.txt': 200}


def test_index_json_output(tmp_path):
    index = build([('world', 'a.txt', 2), ('hello', 'a.txt', 1), ('hello', 'b.txt', 3)])
    output = tmp_path / 'index.json'

    index.index_to_json(output)

    assert output.read_text(encoding='utf-8') == (
        '{\n'
        '\t"hello": {\n'
        '\t\t"a.txt": [\n'
        '\t\t\t1\n'
        '\t\t],\n'
        '\t\t"b.txt": [\n'
        '\t\t\t3\n'
        '\t\t]\n'
        '\t},\n'
        '\t"world": {\n'
        '\t\t"a.txt": [\n'
        '\t\t\t2\n'
        '\t\t]\n'
        '\t}\n'
        '}'
    )


def test_counts_json_output(tmp_path):
    index = build([('hello', 'b.txt', 1), ('hello', 'a.txt', 1), ('world', 'a.txt', 2)])
    output = tmp_path / 'counts.json'

    index.counts_to_json(output)

    assert output.read_text(encoding='utf-8') == '{\n\t"a.txt": 2,\n\t"b.txt": 1\n}'
