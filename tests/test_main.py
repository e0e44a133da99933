import json
import logging

import pytest

from main import DEFAULT_INDEX_PATH, SearchEngineApp, apply_arguments, build_parser, main
from crawlsearch.utils.config import ConfigManager


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def query_file(tmp_path):
    path = tmp_path / 'queries.txt'
    path.write_text("runs\ndogs cats\ncats dogs\n\nru\n", encoding='utf-8')
    return path


def run_engine(text_dir, query_file, out_dir, *extra):
    out_dir.mkdir()
    status = main([
        '--text', str(text_dir),
        '--query', str(query_file),
        '--index', str(out_dir / 'index.json'),
        '--counts', str(out_dir / 'counts.json'),
        '--results', str(out_dir / 'results.json'),
        *extra,
    ])
    assert status == 0
    return {
        name: (out_dir / f'{name}.json').read_text(encoding='utf-8')
        for name in ('index', 'counts', 'results')
    }


def test_build_and_search(text_dir, query_file, tmp_path):
    outputs = run_engine(text_dir, query_file, tmp_path / 'out')

    counts = json.loads(outputs['counts'])
    assert counts == {
        str(text_dir / 'a.txt'): 3,
        str(text_dir / 'b.txt'): 1,
        str(text_dir / 'nested' / 'c.TEXT'): 7,
    }

    index = json.loads(outputs['index'])
    assert index['dog'] == {str(text_dir / 'nested' / 'c.TEXT'): [5, 6]}

    results = json.loads(outputs['results'])
    assert sorted(results) == ['cat dog', 'ru', 'run']
    assert [r['where'] for r in results['run']] == [str(text_dir / 'a.txt'), str(text_dir / 'b.txt')]
    assert results['cat dog'][0]['count'] == 3


def test_exact_search_flag(text_dir, query_file, tmp_path):
    outputs = run_engine(text_dir, query_file, tmp_path / 'out', '--exact')

    results = json.loads(outputs['results'])
    assert results['ru'] == []


def test_threaded_output_matches_single_threaded(text_dir, query_file, tmp_path):
    single = run_engine(text_dir, query_file, tmp_path / 'single')
    threaded = run_engine(text_dir, query_file, tmp_path / 'threaded', '--threads', '3')

    assert threaded == single


def test_flag_without_value_uses_default_path(text_dir, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main(['--text', str(text_dir), '--index']) == 0
    assert (tmp_path / DEFAULT_INDEX_PATH).exists()


def test_missing_input_is_logged_not_fatal(tmp_path):
    output = tmp_path / 'index.json'

    assert main(['--text', str(tmp_path / 'missing'), '--index', str(output)]) == 0
    assert output.read_text(encoding='utf-8') == '{\n}'


def test_missing_config_file(tmp_path):
    assert main(['--config', str(tmp_path / 'missing.yaml')]) == 1


def test_bad_log_level():
    assert main(['--log-level', 'LOUD']) == 1


def test_config_file_values_are_overridden(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("engine:\n  text: from_file\ncrawler:\n  max_links: 7\n", encoding='utf-8')
    args = build_parser().parse_args(['--text', 'from_flag', '--threads', '--max', '0'])

    config = apply_arguments(ConfigManager(path).load_config(), args)

    assert config.engine.text == 'from_flag'
    assert config.engine.threads == 5
    assert config.crawler.max_links == 1
    assert config.threaded


def test_mistyped_config_value(tmp_path, capsys):
    path = tmp_path / 'config.yaml'
    path.write_text("server:\n  port: eighty\n", encoding='utf-8')

    assert main(['--config', str(path)]) == 1
    assert "server.port" in capsys.readouterr().err


def test_unexpected_failure_is_reported(monkeypatch, capsys):
    def explode(self):
        raise RuntimeError("boom")

    monkeypatch.setattr(SearchEngineApp, 'run', explode)

    assert main([]) == 1
    assert "Fatal error: boom" in capsys.readouterr().err
