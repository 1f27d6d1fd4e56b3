"""
Kestrel API Tests

Tests for the value model, builtins, Context and the command line.
"""

import io
import sys

import pytest

from kestrel import CompileError, Context, ParseError, Script, VMError
from kestrel.api import (
    FALSE, NULL, TRUE, Array, BuiltinRegistry, Integer, Map, String, VM, default_builtins,
)
from kestrel.cli import main, repl
from kestrel.compiler import compile_source


class TestValues:

    @pytest.mark.parametrize("value,expected", [
        (Integer(-3), "-3"),
        (TRUE, "true"),
        (FALSE, "false"),
        (NULL, "null"),
        (String("a b"), "a b"),
        (Array([Integer(1), String("a"), TRUE]), '[1, "a", true]'),
        (Array([]), "[]"),
    ])
    def test_inspect(self, value, expected):
        assert value.inspect() == expected

    def test_map_inspect(self):
        value = Map()
        value.set(String("a"), Integer(1))
        value.set(Integer(2), Array([NULL]))
        assert value.inspect() == '{"a": 1, 2: [null]}'

    @pytest.mark.parametrize("value,expected", [
        (Integer(1), "INTEGER: 1"),
        (String("a"), "STRING: a"),
        (TRUE, "BOOLEAN: true"),
        (FALSE, "BOOLEAN: false"),
    ])
    def test_hash_key(self, value, expected):
        assert value.is_hashable()
        assert value.hash_key() == expected

    @pytest.mark.parametrize("value", [Array([]), Map(), NULL])
    def test_unhashable(self, value):
        assert not value.is_hashable()
        with pytest.raises(TypeError):
            value.hash_key()

    def test_integer_range(self):
        with pytest.raises(OverflowError):
            Integer(2 ** 63)


class TestBuiltins:

    def test_default_names(self):
        assert default_builtins().names() == ["push", "len", "isEmpty"]

    def test_len(self):
        builtins = default_builtins()
        assert builtins.call("len", String("four")) == Integer(4)
        assert builtins.call("len", Array([Integer(1), Integer(2)])) == Integer(2)

    def test_push_returns_new_array(self):
        original = Array([Integer(1)])
        pushed = default_builtins().call("push", original, Integer(2))
        assert pushed.elements == [Integer(1), Integer(2)]
        assert original.elements == [Integer(1)]

    @pytest.mark.parametrize("value,expected", [
        (Array([]), TRUE),
        (Array([NULL]), FALSE),
        (String(""), TRUE),
        (String("x"), FALSE),
        (Map(), TRUE),
    ])
    def test_is_empty(self, value, expected):
        assert default_builtins().call("isEmpty", value) is expected

    @pytest.mark.parametrize("name,args,message", [
        ("len", [Integer(1)], "argument to `len` not supported, got INTEGER"),
        ("len", [], "wrong number of arguments to `len`: got=0, want=1"),
        ("push", [Integer(1), Integer(2)], "argument to `push` must be ARRAY, got INTEGER"),
        ("isEmpty", [TRUE], "argument to `isEmpty` not supported, got BOOLEAN"),
        ("missing", [], "unknown builtin missing"),
    ])
    def test_errors(self, name, args, message):
        with pytest.raises(VMError) as excinfo:
            default_builtins().call(name, *args)
        assert str(excinfo.value) == message

    def test_register_decorator(self):
        registry = BuiltinRegistry()

        @registry.register("first")
        def first(array):
            return array.elements[0]

        assert "first" in registry
        assert registry.lookup("first").inspect() == "builtin function first"
        assert registry.call("first", Array([Integer(7)])) == Integer(7)

    def test_registry_injected_into_vm(self):
        registry = BuiltinRegistry()
        vm = VM(compile_source("1"), builtins=registry)
        assert vm.builtins is registry
        assert len(VM(compile_source("1")).builtins) == 3


class TestContext:

    @pytest.mark.parametrize("scanner", ["table", "handcoded"])
    def test_run(self, scanner):
        ctx = Context(scanner=scanner)
        assert ctx.run("[1, 2, 3][0]") == Integer(1)

    def test_state_persists_between_runs(self):
        ctx = Context()
        ctx.run("let x = 5;")
        ctx.run('let names = {"a": x};')
        assert ctx.run("x * 2") == Integer(10)
        assert ctx.run('names["a"]') == Integer(5)
        assert ctx.get_global("x") == Integer(5)
        assert ctx.get_global("y") is None

    def test_compile_returns_script(self):
        ctx = Context()
        script = ctx.compile("1 + 2", filename="inline")
        assert isinstance(script, Script)
        assert script.filename == "inline"
        assert "OpAdd" in script.disassemble()
        assert ctx.execute(script) == Integer(3)

    def test_compile_file(self, tmp_path):
        path = tmp_path / "program.ks"
        path.write_text('"a" + "b"', encoding="utf-8")
        ctx = Context()
        assert ctx.execute(ctx.compile_file(str(path))) == String("ab")

    def test_errors_propagate(self):
        ctx = Context()
        with pytest.raises(ParseError):
            ctx.compile("let = 1;")
        with pytest.raises(VMError, match="division by zero"):
            ctx.run("1 / 0")

    def test_failed_compile_leaves_no_bindings(self):
        ctx = Context()
        ctx.run("let kept = 7;")
        constants = list(ctx.constants)

        with pytest.raises(CompileError, match="undefined variable b"):
            ctx.run("let a = 1; b")

        assert ctx.symbol_table.resolve("a") is None
        assert ctx.constants == constants
        with pytest.raises(CompileError, match="undefined variable a"):
            ctx.run("a")
        assert ctx.run("kept") == Integer(7)

    def test_unknown_scanner(self):
        with pytest.raises(ValueError):
            Context(scanner="regex")


class TestCommandLine:

    def test_repl(self):
        out = io.StringIO()
        code = repl(Context(), io.StringIO("1 + 2\n\n[1, 2]\n"), out)
        assert code == 0
        assert out.getvalue() == ">> 3\n>> >> [1, 2]\n>> \n"

    def test_repl_keeps_going_after_errors(self):
        out = io.StringIO()
        repl(Context(), io.StringIO('1 + "a"\nlet = 1\n5\n'), out)
        lines = out.getvalue().split(">> ")
        assert lines[1] == "error: type mismatch: INTEGER + STRING\n"
        assert lines[2].startswith("error: expected next token to be IDENT")
        assert lines[3] == "5\n"

    def test_repl_prints_expressions_only(self):
        out = io.StringIO()
        repl(Context(), io.StringIO("let x = 5\nx\nlet y = x; y + 1\n"), out)
        assert out.getvalue() == ">> >> 5\n>> 6\n>> \n"

    def test_repl_uses_earlier_lets(self):
        out = io.StringIO()
        repl(Context(scanner="handcoded"), io.StringIO("let a = 4;\na * a\n"), out)
        assert ">> 16\n" in out.getvalue()

    def test_run_file(self, tmp_path, capsys):
        path = tmp_path / "program.ks"
        path.write_text("let x = 20;\nx + 22;\n", encoding="utf-8")
        assert main([str(path)]) == 0
        assert capsys.readouterr().out == "42\n"

    def test_run_file_disassemble(self, tmp_path, capsys):
        path = tmp_path / "program.ks"
        path.write_text("1 + 2", encoding="utf-8")
        assert main([str(path), "--disassemble", "--scanner", "handcoded"]) == 0
        out = capsys.readouterr().out
        assert "0000 OpConstant 0" in out
        assert out.endswith("3\n")

    def test_run_file_error(self, tmp_path, capsys):
        path = tmp_path / "program.ks"
        path.write_text("[1, 2, 3][5]", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "index 5 out of range for array of length 3" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.ks")]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_main_without_file_starts_repl(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("2 * 21\n"))
        assert main([]) == 0
        assert "42" in capsys.readouterr().out
