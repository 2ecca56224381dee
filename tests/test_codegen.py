"""Tests for Go emission."""

import shutil
import subprocess

import pytest

from scriptc.codegen.builtins import Builtin, get_builtin, list_builtins, register_builtin, BUILTIN_REGISTRY
from scriptc.codegen.golang import go_float, go_string
from scriptc.core.types import RUNTIME_IMPORT_PATH
from scriptc.lang.compiler import Compiler


HEADER = "// Code generated by scriptc. DO NOT EDIT.\n\npackage main\n\n"
IMPORT = f'import rt "{RUNTIME_IMPORT_PATH}"\n\n'

requires_gofmt = pytest.mark.skipif(shutil.which("gofmt") is None, reason="gofmt not installed")

SNIPPETS = [
    "let x = 1 + 2; print(x);",
    "",
    "fn f(a, b = 2) { return a * b; } print(f(3), f(3, 4));",
    "let xs = [1, 2.5, \"s\\n\"]; xs[0] = -xs[1]; for x in xs { echo x, \" \"; }",
    "let i = 0; while i < 10 { i = i + 1; if i % 2 == 0 { continue; } else if i > 7 { break; } else { i; } }",
    "let a = true && !false || null; { let a = 2; }",
    "fn none() {} fn early(x) { if x { return; } return 1; } none(); early(1);",
    "let func = 1; let main = func; let x_ = main;",
    "fn f(a, ...rest) { return rest; } let m = [\"k\" => f(1), 2 => f(1, 2, 3)]; m[3] = map(); print(m);",
]


def compile_text(source: str, **kwargs) -> str:
    return Compiler().compile_string(source, **kwargs).text


def test_minimal_program_text():
    """Test the exact text for a two-statement program."""
    text = compile_text("let x = 1 + 2; print(x);")

    assert text == HEADER + IMPORT + (
        "func main() {\n"
        "\tx := rt.Add(rt.Int(1), rt.Int(2))\n"
        "\t_ = x\n"
        "\trt.Print(x)\n"
        "}\n"
    )


def test_empty_program_has_no_imports():
    unit = Compiler().compile_string("")

    assert unit.text == HEADER + "func main() {\n}\n"
    assert unit.imports == []
    assert unit.package == "main"
    assert unit.has_entry_point


def test_runtime_import_recorded():
    unit = Compiler().compile_string("print(1);", source_name="one.sc")

    assert unit.imports == [RUNTIME_IMPORT_PATH]
    assert unit.text.startswith("// Code generated by scriptc from one.sc. DO NOT EDIT.\n")


def test_custom_runtime_import_path():
    unit = Compiler(runtime_import_path="example.com/rt").compile_string("print(1);")

    assert 'import rt "example.com/rt"' in unit.text
    assert unit.imports == ["example.com/rt"]


def test_function_emission():
    text = compile_text("fn add(a, b = 2) { return a + b; } print(add(1));")

    assert "func add(a rt.Value, b rt.Value) rt.Value {\n\treturn rt.Add(a, b)\n}\n" in text
    assert "\trt.Print(add(rt.Int(1), rt.Int(2)))\n" in text


def test_variadic_arguments_are_packed():
    """Test that arguments past the fixed parameters become one list."""
    text = compile_text("fn f(a, b = 2, ...rest) { return rest; } f(1); f(1, 2, 3, 4);")

    assert "func f(a rt.Value, b rt.Value, rest rt.Value) rt.Value {\n" in text
    assert "\tf(rt.Int(1), rt.Int(2), rt.List())\n" in text
    assert "\tf(rt.Int(1), rt.Int(2), rt.List(rt.Int(3), rt.Int(4)))\n" in text


def test_map_literal_emission():
    text = compile_text('let m = ["a" => 1, 2 => map()]; print(m["a"]);')

    assert '\tm := rt.Map(rt.String("a"), rt.Int(1), rt.Int(2), rt.Map())\n' in text
    assert '\trt.Print(rt.Index(m, rt.String("a")))\n' in text


def test_function_without_return_yields_null():
    text = compile_text("fn noop(x) { x; }")

    assert "func noop(x rt.Value) rt.Value {\n\t_ = x\n\treturn rt.Null()\n}\n" in text


def test_reserved_names_are_escaped():
    text = compile_text("let type = 1; let rt = type; print(rt);")

    assert "\ttype_ := rt.Int(1)\n" in text
    assert "\trt_ := type_\n" in text
    assert "\trt.Print(rt_)\n" in text


def test_short_circuit_operators():
    text = compile_text("let a = 1; let b = a && 0 || a;")

    assert "rt.Bool(rt.Truthy(rt.Bool(rt.Truthy(a) && rt.Truthy(rt.Int(0)))) || rt.Truthy(a))" in text


def test_control_flow_shapes():
    text = compile_text(
        "let i = 0; while i < 3 { if i == 1 { break; } else if i == 2 { continue; } else { i = i + 1; } }"
    )

    assert "\tfor rt.Truthy(rt.Lt(i, rt.Int(3))) {\n" in text
    assert "\t\tif rt.Truthy(rt.Eq(i, rt.Int(1))) {\n\t\t\tbreak\n" in text
    assert "\t\t} else if rt.Truthy(rt.Eq(i, rt.Int(2))) {\n\t\t\tcontinue\n" in text
    assert "\t\t} else {\n\t\t\ti = rt.Add(i, rt.Int(1))\n\t\t}\n" in text


def test_for_in_and_index_assignment():
    text = compile_text("let xs = [1]; for x in xs { xs[0] = x; }")

    assert "\tfor _, x := range rt.Iter(xs) {\n\t\t_ = x\n\t\trt.SetIndex(xs, rt.Int(0), x)\n\t}\n" in text


def test_echo_and_literals():
    text = compile_text('echo "a\\tb", 2.5, 1e300, true, null;')

    assert '\trt.Echo(rt.String("a\\tb"), rt.Float(2.5), rt.Float(1e+300), rt.Bool(true), rt.Null())\n' in text


def test_compile_is_deterministic(examples_path):
    compiler = Compiler()
    for path in sorted(examples_path.glob("*.sc")):
        assert compiler.compile_file(path).text == compiler.compile_file(path).text


def test_go_string_escapes():
    assert go_string('a"b\\c\n') == '"a\\"b\\\\c\\n"'
    assert go_string("\x01") == '"\\x01"'
    assert go_string("é") == '"é"'
    assert go_string("\u200b") == '"\\u200b"'
    assert go_string("\ufeff") == '"\\ufeff"'
    assert go_string("\U0001f600") == '"\U0001f600"'


def test_go_float_round_trips():
    assert go_float(2.5) == "2.5"
    assert go_float(1e300) == "1e+300"
    assert float(go_float(0.1)) == 0.1


def test_builtin_registry():
    assert get_builtin("print").target == "Print"
    assert get_builtin("nope") is None
    assert set(list_builtins()) >= {"print", "len", "push", "str", "int", "float"}


def test_registered_builtin_is_callable():
    """Test that a newly registered builtin resolves and emits."""
    register_builtin(Builtin("shout", "Shout", 1, 1))
    try:
        text = compile_text('shout("hi");')
    finally:
        del BUILTIN_REGISTRY["shout"]

    assert '\trt.Shout(rt.String("hi"))\n' in text


def gofmt(text: str) -> subprocess.CompletedProcess:
    return subprocess.run(["gofmt"], input=text, capture_output=True, text=True, check=False)


@requires_gofmt
@pytest.mark.parametrize("source", SNIPPETS)
def test_gofmt_accepts_output(source):
    """Test that emitted Go parses and is already gofmt-formatted."""
    text = compile_text(source)
    result = gofmt(text)

    assert result.returncode == 0, result.stderr
    assert result.stdout == text


@requires_gofmt
def test_gofmt_accepts_examples(examples_path):
    compiler = Compiler()
    for path in sorted(examples_path.glob("*.sc")):
        text = compiler.compile_file(path).text
        result = gofmt(text)
        assert result.returncode == 0, f"{path.name}: {result.stderr}"
        assert result.stdout == text, path.name
