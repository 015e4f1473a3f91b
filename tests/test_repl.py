import io

from malisp.repl import main, print_result, run_file
from malisp.types.values import Error


def test_print_result():
    out, err = io.StringIO(), io.StringIO()
    print_result([1, "a"], out, err)
    print_result(Error("bad"), out, err)
    assert out.getvalue() == '(1 "a")\n'
    assert err.getvalue() == 'Error: "bad"\n'


def test_run_file_continues_after_errors(itp, tmp_path, capsys):
    script = tmp_path / "script.lisp"
    script.write_text('(prn 1)\n(throw "mid")\n(prn 2)\n', encoding="utf-8")
    assert run_file(itp, str(script)) == 1
    captured = capsys.readouterr()
    assert captured.out == "1\n2\n"
    assert captured.err == 'Error: "mid"\n'


def test_run_file_success(itp, tmp_path):
    script = tmp_path / "ok.lisp"
    script.write_text("(def! x 1)\n(+ x 1)\n", encoding="utf-8")
    assert run_file(itp, str(script)) == 0
    assert itp.eval("x") == 1


def test_main_binds_argv(tmp_path, capsys):
    script = tmp_path / "args.lisp"
    script.write_text("(prn *ARGV*)\n", encoding="utf-8")
    assert main([str(script), "one", "two"]) == 0
    assert capsys.readouterr().out == '("one" "two")\n'


def test_main_missing_script(tmp_path, capsys):
    assert main([str(tmp_path / "absent.lisp")]) == 2
    assert "cannot read" in capsys.readouterr().err


def test_repl_session(monkeypatch, capsys):
    lines = iter(['(make-package "scratch" "system")', '(in-package "scratch")', "(def! x 40) (+ x 2)"])

    def fake_input(prompt):
        print(prompt, end="")
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "user> " in out
    assert "scratch> " in out
    assert "40\n42\n" in out


def test_print_result_uses_current_streams(capsys):
    print_result(42)
    print_result(Error("late"))
    captured = capsys.readouterr()
    assert captured.out == "42\n"
    assert captured.err == 'Error: "late"\n'
