"""
Tests for the treelox command line interface.
"""

import pytest

from treelox.__main__ import (
    main,
    EXIT_OK, EXIT_USAGE, EXIT_DATA_ERROR, EXIT_NO_INPUT, EXIT_RUNTIME_ERROR, EXIT_CONFIG_ERROR,
)


@pytest.fixture
def program(tmp_path):
    """Write a program to a temporary file and return its path."""
    def _write(source, name="prog.lox"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return _write


class TestRunCommand:
    """Test 'run' with a file."""

    def test_success(self, program, capsys):
        path = program('print "hello";\nprint 1 + 1;\n')
        assert main(["run", path]) == EXIT_OK
        assert capsys.readouterr().out == "hello\n2\n"

    def test_runtime_error(self, program, capsys):
        path = program("print 1;\nprint missing;\n")
        assert main(["run", path]) == EXIT_RUNTIME_ERROR
        captured = capsys.readouterr()
        assert captured.out == "1\n"
        assert "E401" in captured.err
        assert "print missing;" in captured.err

    def test_syntax_error(self, program, capsys):
        path = program("print (1;\n")
        assert main(["run", path]) == EXIT_DATA_ERROR
        assert "E101" in capsys.readouterr().err

    def test_static_error(self, program, capsys):
        path = program('print "never";\nreturn 1;\n')
        assert main(["run", path]) == EXIT_DATA_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "E302" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "absent.lox")]) == EXIT_NO_INPUT
        assert "not found" in capsys.readouterr().err

    def test_warning_printed_but_succeeds(self, program, capsys):
        path = program("if (false) print ghost;\n")
        assert main(["run", path]) == EXIT_OK
        assert "W301" in capsys.readouterr().err


class TestRepl:
    """Test 'run' without a file."""

    def feed(self, monkeypatch, lines):
        remaining = list(lines)

        def fake_input(prompt=""):
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        monkeypatch.setattr("builtins.input", fake_input)

    def test_globals_persist_between_lines(self, monkeypatch, capsys):
        self.feed(monkeypatch, ["var a = 40;", "", "print a + 2;"])
        assert main(["run"]) == EXIT_OK
        assert capsys.readouterr().out == "42\n\n"

    def test_error_does_not_end_session(self, monkeypatch, capsys):
        self.feed(monkeypatch, ["print missing;", "print 2;"])
        assert main(["run"]) == EXIT_OK
        captured = capsys.readouterr()
        assert "E401" in captured.err
        assert "2\n" in captured.out


class TestCheckAndAst:
    """Test 'check' and 'ast'."""

    def test_check_ok(self, program, capsys):
        path = program("fun f(a) { return a; }\nprint f(1);\n")
        assert main(["check", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith("OK: prog.lox")
        assert "2 top-level statement(s)" in out

    def test_check_does_not_run(self, program, capsys):
        path = program('print "side effect";\n')
        assert main(["check", path]) == EXIT_OK
        assert "side effect" not in capsys.readouterr().out

    def test_check_reports_every_static_error(self, program, capsys):
        path = program("return 1;\nfun f(a, a) {}\n")
        assert main(["check", path]) == EXIT_DATA_ERROR
        err = capsys.readouterr().err
        assert "E302" in err
        assert "E304" in err

    def test_check_syntax_errors(self, program, capsys):
        path = program("var = 1;\nprint ;\n")
        assert main(["check", path]) == EXIT_DATA_ERROR
        assert capsys.readouterr().err.count("E101") == 2

    def test_ast(self, program, capsys):
        path = program("print 1 + 2 * 3;\n")
        assert main(["ast", path]) == EXIT_OK
        assert capsys.readouterr().out == "(print (+ 1 (* 2 3)))\n"

    def test_ast_too_deep_to_print(self, program, capsys):
        path = program("print " + " + ".join(["1"] * 20000) + ";\n")
        assert main(["ast", path]) == EXIT_DATA_ERROR
        assert "too deep" in capsys.readouterr().err

    def test_check_deep_nesting(self, program, capsys):
        path = program("{" * 5000 + "}" * 5000 + "\n")
        assert main(["check", path]) == EXIT_DATA_ERROR
        assert "E106" in capsys.readouterr().err


class TestOptions:
    """Test global options and usage errors."""

    def test_no_command(self, capsys):
        assert main([]) == EXIT_USAGE

    def test_config_file(self, program, tmp_path, capsys):
        config = tmp_path / "treelox.yaml"
        config.write_text("allow_local_redeclaration: true\n", encoding="utf-8")
        path = program("{ var a = 1; var a = 2; print a; }\n")
        assert main(["run", path]) == EXIT_DATA_ERROR
        capsys.readouterr()
        assert main(["-c", str(config), "run", path]) == EXIT_OK
        assert capsys.readouterr().out == "2\n"

    def test_bad_config(self, program, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("max_errors: -1\n", encoding="utf-8")
        assert main(["-c", str(config), "run", program("print 1;")]) == EXIT_CONFIG_ERROR
        assert "max_errors" in capsys.readouterr().err

    def test_missing_config(self, program, tmp_path):
        path = program("print 1;")
        assert main(["-c", str(tmp_path / "none.yaml"), "run", path]) == EXIT_CONFIG_ERROR

    def test_unknown_native_in_config(self, program, tmp_path, capsys):
        config = tmp_path / "natives.yaml"
        config.write_text("natives: [str, teleport]\n", encoding="utf-8")
        assert main(["-c", str(config), "run", program("print 1;")]) == EXIT_CONFIG_ERROR
        assert "teleport" in capsys.readouterr().err
