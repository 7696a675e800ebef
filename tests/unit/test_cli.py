"""Tests for the interpret.py command-line entry point."""

import json
from pathlib import Path

import pytest

from interpret import main

FIXTURE = Path(__file__).parent.parent / "fixtures" / "counter.ast.json"


def _transactions(tmp_path, *calls):
    path = tmp_path / "transactions.json"
    path.write_text(json.dumps(list(calls)))
    return str(path)


class TestMain:
    def test_writes_trace(self, tmp_path, capsys):
        transactions = _transactions(
            tmp_path,
            {"contract": "Counter", "function": "f"},
            {"contract": "Counter", "function": "g", "arguments": [4]},
        )
        output = tmp_path / "out.json"
        assert main([str(FIXTURE), transactions, "-o", str(output)]) == 0
        assert json.loads(output.read_text()) == [
            {"event": "Changed", "args": {"0": 5}},
            {"event": "Seen", "args": {"0": 4, "1": 4}},
        ]
        assert "Run Statistics" in capsys.readouterr().out

    def test_verbose_prints_statistics_once(self, tmp_path, capsys):
        transactions = _transactions(tmp_path, {"contract": "Counter", "function": "f"})
        output = tmp_path / "out.json"
        assert main([str(FIXTURE), transactions, "-o", str(output), "-v"]) == 0
        out = capsys.readouterr().out
        assert out.count("Run Statistics") == 1
        assert "[emit Changed] arg 0 count = uint256(5)" in out

    def test_unsupported_statement_fails_without_trace(self, tmp_path, capsys):
        transactions = _transactions(
            tmp_path, {"contract": "Counter", "function": "h", "arguments": [2]}
        )
        output = tmp_path / "out.json"
        assert main([str(FIXTURE), transactions, "-o", str(output)]) == 1
        assert not output.exists()
        assert "error:" in capsys.readouterr().err

    def test_unknown_function_fails(self, tmp_path, capsys):
        transactions = _transactions(tmp_path, {"contract": "Counter", "function": "nope"})
        assert main([str(FIXTURE), transactions, "-o", str(tmp_path / "out.json")]) == 1
        assert "Unknown function" in capsys.readouterr().err

    def test_missing_ast_file(self, tmp_path, capsys):
        transactions = _transactions(tmp_path)
        assert main([str(tmp_path / "missing.json"), transactions]) == 1
        assert "error:" in capsys.readouterr().err

    def test_node_stats(self, capsys):
        assert main([str(FIXTURE), "--node-stats"]) == 0
        counts = json.loads(capsys.readouterr().out)
        assert counts["EmitStatement"] == 3

    def test_transactions_required_without_node_stats(self):
        with pytest.raises(SystemExit):
            main([str(FIXTURE)])
