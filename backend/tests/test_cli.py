"""Command-line host: files, folders, -e, and the REPL loop."""

import io

from backend import cli


def test_eval_prints_value(capsys):
    assert cli.main(["-e", "2", "+", "3", "*", "4"]) == 0
    assert capsys.readouterr().out == "14\n"


def test_eval_error_exit_code(capsys):
    assert cli.main(["--eval", "1 / 0"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Runtime Error: Division by zero" in captured.err
    assert "File Eval, line 1, in <Global>" in captured.err


def test_run_file(tmp_path, capsys):
    source = tmp_path / "main.bzs"
    source.write_text("fun add(a: Int, b: Int) => a + b\nadd(2, 3)\n", encoding="utf-8")
    assert cli.main([str(source)]) == 0
    assert capsys.readouterr().out == "5\n"


def test_run_directory_recursively(tmp_path, capsys):
    (tmp_path / "a.bzs").write_text('"first"', encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "b.bzs").write_text('"second"', encoding="utf-8")
    (nested / "notes.txt").write_text("not a script", encoding="utf-8")

    assert cli.main([str(tmp_path)]) == 0
    assert capsys.readouterr().out == "first\nsecond\n"


def test_directory_with_a_failing_file(tmp_path, capsys):
    (tmp_path / "bad.bzs").write_text('1 + "x"', encoding="utf-8")
    (tmp_path / "good.bzs").write_text("1", encoding="utf-8")
    assert cli.main([str(tmp_path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "Invalid Type" in captured.err
    assert "bad.bzs" in captured.err


def test_missing_file(tmp_path, capsys):
    assert cli.main([str(tmp_path / "missing.bzs")]) == 1
    assert "Cannot read" in capsys.readouterr().err


def test_repl_keeps_bindings(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("var x = 2\nx = x * 21\n.help\n\n.exit\nx\n"))
    assert cli.main(["--repl"]) == 0
    out = capsys.readouterr().out
    assert "2\n" in out
    assert "42\n" in out
    assert "Unknown command help" in out


def test_repl_ends_on_eof(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("val a = 'c'\n"))
    assert cli.main([]) == 0
    assert "c\n" in capsys.readouterr().out


def test_eval_int_overflow_is_reported(capsys):
    assert cli.main(["-e", "10 ^ 5000"]) == 1
    assert "Runtime Error: Numeric overflow" in capsys.readouterr().err
