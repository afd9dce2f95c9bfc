"""
End-to-end integration tests
Dump file on disk through the runner and the command line client
"""

import json
import os

import pytest

from wikicount.client.client import main
from wikicount.coordinator.scheduler import WordCountRunner


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith('WIKICOUNT_'):
            monkeypatch.delenv(name)


@pytest.mark.integration
class TestDumpToTable:

    @pytest.mark.parametrize("dispatch", ["sequential", "pool", "futures", "threads", "recursive"])
    def test_bundled_sample(self, make_config, bundled_sample_dump, dispatch):
        config = make_config(source_path=bundled_sample_dump, dispatch=dispatch, unit_size=2)
        result = WordCountRunner(config).run()

        assert result.documents_processed == 6
        assert result.counts["the"] > 0
        assert "x" not in result.counts

    def test_truncated_dump_counts_what_was_read(self, make_config, temp_dir):
        path = os.path.join(temp_dir, 'truncated.xml')
        with open(path, 'w') as f:
            f.write("<mediawiki>"
                    "<page><title>One</title><revision><text>alpha beta</text></revision></page>"
                    "<page><title>Two</title><revision><text>alpha gamma</text></revision></page>"
                    "<page><title>Three</title><revision><text>cut o")

        result = WordCountRunner(make_config(source_path=path)).run()

        assert result.documents_processed == 2
        assert dict(result.counts) == {"alpha": 2, "beta": 1, "gamma": 1}

    def test_max_documents_against_file(self, make_config, sample_dump_file):
        result = WordCountRunner(make_config(source_path=sample_dump_file, max_documents=3)).run()
        assert result.documents_processed == 3


@pytest.mark.integration
class TestCommandLine:

    def test_count(self, make_dump, capsys):
        path = make_dump('cli.xml', [("One", "the cat sat"), ("Two", "the dog sat")])

        code = main(['count', '--input', path, '--unit-size', '1', '--workers', '2'])

        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert lines[0] == "Processed pages: 2"
        assert lines[1].startswith("Elapsed time: ")
        assert lines[1].endswith("ms")
        assert lines[2:] == [
            "Word: 'sat' with total 2 occurrences!",
            "Word: 'the' with total 2 occurrences!",
            "Word: 'cat' with total 1 occurrences!",
        ]

    def test_count_with_strategy_options(self, make_dump, capsys):
        path = make_dump('cli.xml', [("One", "a a a I"), ("Two", "a b")])

        code = main(['count', '--input', path, '--dispatch', 'recursive', '--threshold', '1',
                     '--top-k', '1'])

        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert lines[2:] == ["Word: 'a' with total 4 occurrences!"]

    def test_count_writes_metrics(self, make_dump, temp_dir, capsys):
        path = make_dump('cli.xml', [("One", "hello there")])
        metrics_path = os.path.join(temp_dir, 'metrics.json')

        assert main(['count', '--input', path, '--metrics-file', metrics_path]) == 0

        with open(metrics_path) as f:
            assert json.load(f)['documents_processed'] == 1

    def test_environment_defaults(self, make_dump, monkeypatch, capsys):
        path = make_dump('env.xml', [("One", "env words here"), ("Two", "more words")])
        monkeypatch.setenv('WIKICOUNT_SOURCE', path)
        monkeypatch.setenv('WIKICOUNT_MAX_DOCUMENTS', '1')

        assert main(['count']) == 0
        assert capsys.readouterr().out.splitlines()[0] == "Processed pages: 1"

    def test_missing_file(self, temp_dir, capsys):
        code = main(['count', '--input', os.path.join(temp_dir, 'missing.xml')])

        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == ""
        assert "Error: " in captured.err

    def test_invalid_option_value(self, make_dump, capsys):
        path = make_dump('cli.xml', [("One", "text")])
        code = main(['count', '--input', path, '--unit-size', '0'])
        assert code == 1
        assert "unit_size" in capsys.readouterr().err

    def test_compare(self, bundled_sample_dump, capsys):
        code = main(['compare', '--input', bundled_sample_dump, '--unit-size', '2',
                     '--threshold', '2', '--workers', '2'])

        out = capsys.readouterr().out
        assert code == 0
        for dispatch in ("sequential", "pool", "futures", "threads", "recursive"):
            assert dispatch in out
        assert "Word: 'the'" in out

    def test_compare_with_process_executor(self, bundled_sample_dump, capsys):
        # sequential and threads fall back to threads, the pooled strategies use processes
        code = main(['compare', '--input', bundled_sample_dump, '--executor', 'process',
                     '--unit-size', '2', '--threshold', '2', '--workers', '2'])

        captured = capsys.readouterr()
        assert code == 0, captured.err
        assert "recursive" in captured.out

    def test_compare_missing_file(self, temp_dir, capsys):
        code = main(['compare', '--input', os.path.join(temp_dir, 'missing.xml')])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()
