"""
Shared fixtures for the test suite.
"""

import pytest

from crawlsearch.concurrency.work_queue import WorkQueue
from crawlsearch.utils import monitoring


@pytest.fixture
def work_queue():
    queue = WorkQueue(4)
    yield queue
    queue.shutdown()


@pytest.fixture
def monitor():
    installed = monitoring.initialize_monitoring()
    yield installed
    monitoring.reset_monitoring()


@pytest.fixture(autouse=True)
def no_global_monitor():
    monitoring.reset_monitoring()
    yield
    monitoring.reset_monitoring()


@pytest.fixture
def text_dir(tmp_path):
    """Small corpus of text files, plus files that must be ignored."""
    corpus = tmp_path / 'corpus'
    corpus.mkdir()
    (corpus / 'a.txt').write_text("Run running runs", encoding='utf-8')
    (corpus / 'b.txt').write_text("Runner", encoding='utf-8')

    nested = corpus / 'nested'
    nested.mkdir()
    (nested / 'c.TEXT').write_text("The cats chased the dogs.\nDogs jumped!", encoding='utf-8')
    (nested / 'ignored.md').write_text("cats cats cats", encoding='utf-8')
    return corpus


@pytest.fixture
def run_stemmer():
    """Stemmer mapping every run* word to 'run' and leaving the rest alone."""
    def stem(word: str) -> str:
        return 'run' if word.startswith('run') else word
    return stem
