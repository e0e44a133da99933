"""
Pretty JSON output for index structures and search results.

Newlines separate elements and nested elements are indented with tabs. Keys
are written in ascending order and scores with eight decimal places, so the
same data always produces the same bytes.
"""

import io
import json
from pathlib import Path
from typing import Iterable, Mapping, Sequence, TextIO, Union

PathLike = Union[str, Path]

SCORE_FORMAT = '{:.8f}'


def indent(writer: TextIO, level: int, element: str = ''):
    writer.write('\t' * max(level, 0))
    writer.write(element)


def quote(writer: TextIO, level: int, element: str):
    indent(writer, level, json.dumps(element, ensure_ascii=False))


def _write_items(writer: TextIO, items: Iterable, write_item):
    first = True
    for item in items:
        writer.write('\n' if first else ',\n')
        write_item(item)
        first = False


def write_array_to(writer: TextIO, elements: Iterable[int], level: int = 0):
    """Write integers as a JSON array, in ascending order."""
    writer.write('[')
    _write_items(writer, sorted(elements), lambda e: indent(writer, level + 1, str(e)))
    writer.write('\n')
    indent(writer, level, ']')


def write_object_to(writer: TextIO, elements: Mapping[str, int], level: int = 0):
    """Write a string-to-integer mapping as a JSON object."""
    def write_entry(key):
        quote(writer, level + 1, key)
        writer.write(f': {elements[key]}')

    writer.write('{')
    _write_items(writer, sorted(elements), write_entry)
    writer.write('\n')
    indent(writer, level, '}')


def write_nested_object_to(writer: TextIO, elements: Mapping[str, Iterable[int]], level: int = 0):
    """Write a mapping of strings to integer collections as a JSON object of arrays."""
    def write_entry(key):
        quote(writer, level + 1, key)
        writer.write(': ')
        write_array_to(writer, elements[key], level + 1)

    writer.write('{')
    _write_items(writer, sorted(elements), write_entry)
    writer.write('\n')
    indent(writer, level, '}')


def write_nested_map_to(writer: TextIO, index: Mapping[str, Mapping[str, Iterable[int]]], level: int = 0):
    """Write a word -> location -> positions structure."""
    def write_entry(key):
        quote(writer, level + 1, key)
        writer.write(': ')
        write_nested_object_to(writer, index[key], level + 1)

    writer.write('{')
    _write_items(writer, sorted(index), write_entry)
    writer.write('\n')
    indent(writer, level, '}')


def write_search_results_to(writer: TextIO, results: Sequence, level: int = 0):
    """
    Write ranked results as a JSON array of count/score/where objects.

    Every result is written, in the given order.
    """
    def write_result(result):
        indent(writer, level + 1, '{')
        writer.write('\n')
        quote(writer, level + 2, 'count')
        writer.write(f': {result.count}')
        writer.write(',\n')
        quote(writer, level + 2, 'score')
        writer.write(': ' + SCORE_FORMAT.format(result.score))
        writer.write(',\n')
        quote(writer, level + 2, 'where')
        writer.write(': ' + json.dumps(result.location, ensure_ascii=False))
        writer.write('\n')
        indent(writer, level + 1, '}')

    writer.write('[')
    _write_items(writer, results, write_result)
    writer.write('\n')
    indent(writer, level, ']')


def write_nested_search_to(writer: TextIO, queries: Mapping[str, Sequence], level: int = 0):
    """Write query -> ranked results."""
    def write_entry(key):
        quote(writer, level + 1, key)
        writer.write(': ')
        write_search_results_to(writer, queries[key], level + 1)

    writer.write('{')
    _write_items(writer, sorted(queries), write_entry)
    writer.write('\n')
    indent(writer, level, '}')


def _as_string(write_to, data) -> str:
    buffer = io.StringIO()
    write_to(buffer, data)
    return buffer.getvalue()


def _to_path(write_to, data, path: PathLike):
    with open(path, 'w', encoding='utf-8') as writer:
        write_to(writer, data)


def as_array(elements: Iterable[int]) -> str:
    return _as_string(write_array_to, elements)


def as_object(elements: Mapping[str, int]) -> str:
    return _as_string(write_object_to, elements)


def as_nested_object(elements: Mapping[str, Iterable[int]]) -> str:
    return _as_string(write_nested_object_to, elements)


def as_nested_map(index: Mapping[str, Mapping[str, Iterable[int]]]) -> str:
    return _as_string(write_nested_map_to, index)


def as_search_results(results: Sequence) -> str:
    return _as_string(write_search_results_to, results)


def as_nested_search(queries: Mapping[str, Sequence]) -> str:
    return _as_string(write_nested_search_to, queries)


def write_array(elements: Iterable[int], path: PathLike):
    _to_path(write_array_to, elements, path)


def write_object(elements: Mapping[str, int], path: PathLike):
    _to_path(write_object_to, elements, path)


def write_nested_object(elements: Mapping[str, Iterable[int]], path: PathLike):
    _to_path(write_nested_object_to, elements, path)


def write_nested_map(index: Mapping[str, Mapping[str, Iterable[int]]], path: PathLike):
    _to_path(write_nested_map_to, index, path)


def write_search_results(results: Sequence, path: PathLike):
    _to_path(write_search_results_to, results, path)


def write_nested_search(queries: Mapping[str, Sequence], path: PathLike):
    _to_path(write_nested_search_to, queries, path)
