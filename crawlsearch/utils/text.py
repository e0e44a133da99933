"""
Text parsing, stemming and text file discovery.
"""

import re
import threading
import unicodedata
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Set, Union

from nltk.stem.snowball import SnowballStemmer

# Anything that is not a letter or whitespace
CLEAN_PATTERN = re.compile(r"[^\w\s]|[\d_]")
SPLIT_PATTERN = re.compile(r"\s+")

TEXT_EXTENSIONS = ('.txt', '.text')

Stemmer = Callable[[str], str]

_local = threading.local()


def default_stemmer() -> Stemmer:
    """Snowball English stemmer, one instance per thread."""
    stemmer = getattr(_local, 'stemmer', None)
    if stemmer is None:
        stemmer = SnowballStemmer('english').stem
        _local.stemmer = stemmer
    return stemmer


def clean(text: str) -> str:
    """Normalize, lowercase and strip everything except letters and whitespace."""
    text = unicodedata.normalize('NFD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))
    return CLEAN_PATTERN.sub('', text).lower()


def parse_words(text: str) -> List[str]:
    """Split cleaned text into words."""
    return [word for word in SPLIT_PATTERN.split(clean(text).strip()) if word]


def list_stems(text: str, stemmer: Optional[Stemmer] = None) -> List[str]:
    """Stems of the words in text, in parsed order."""
    stemmer = stemmer or default_stemmer()
    return [stemmer(word) for word in parse_words(text)]


def unique_stems(text: str, stemmer: Optional[Stemmer] = None) -> List[str]:
    """Sorted, duplicate-free stems of the words in text."""
    return sorted(set(list_stems(text, stemmer)))


def list_file_stems(path: Union[str, Path], stemmer: Optional[Stemmer] = None) -> Iterator[str]:
    """
    Read a UTF-8 file line by line and yield its stems in order.

    Raises:
        OSError: if the file cannot be read
    """
    stemmer = stemmer or default_stemmer()
    with open(path, 'r', encoding='utf-8') as file:
        for line in file:
            yield from list_stems(line, stemmer)


def read_query_lines(path: Union[str, Path]) -> Iterator[str]:
    """Yield the lines of a query file without trailing newlines."""
    with open(path, 'r', encoding='utf-8') as file:
        for line in file:
            yield line.rstrip('\r\n')


def is_text_file(path: Path) -> bool:
    return path.name.lower().endswith(TEXT_EXTENSIONS)


def find_text_files(start: Union[str, Path]) -> Set[Path]:
    """
    Find the files to index under a path.

    A path that is not a directory is returned as is, whatever its extension.
    A directory is walked recursively for text files.

    Raises:
        FileNotFoundError: if the path does not exist
    """
    start = Path(start)
    if not start.exists():
        raise FileNotFoundError(f"No such file or directory: {start}")

    if not start.is_dir():
        return {start}

    return {path for path in start.rglob('*') if path.is_file() and is_text_file(path)}


def joined(stems: Iterable[str]) -> str:
    """Normalized query key for a set of stems."""
    return ' '.join(sorted(set(stems)))
