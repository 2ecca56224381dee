"""Go spelling rules: safe identifiers and literal syntax."""

from ..core.types import RUNTIME_ALIAS


GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})

GO_PREDECLARED = frozenset({
    "any", "bool", "byte", "comparable", "complex64", "complex128", "error",
    "float32", "float64", "int", "int8", "int16", "int32", "int64", "rune",
    "string", "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "true", "false", "iota", "nil",
    "append", "cap", "clear", "close", "complex", "copy", "delete", "imag",
    "len", "make", "max", "min", "new", "panic", "print", "println", "real",
    "recover",
})

RESERVED = GO_KEYWORDS | GO_PREDECLARED | {"main", "init", RUNTIME_ALIAS}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def go_identifier(name: str) -> str:
    """Map a script identifier to a Go identifier.

    Reserved names and names already ending in ``_`` gain a trailing
    underscore, which keeps the mapping injective.
    """
    if name in RESERVED or name.endswith("_"):
        return name + "_"
    return name


def go_string(value: str) -> str:
    out = ['"']
    for ch in value:
        if ch in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[ch])
        elif ch.isprintable() and ch != "\ufeff":
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) <= 0xFFFF:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    out.append('"')
    return "".join(out)


def go_float(value: float) -> str:
    # repr() round-trips float64 exactly and is valid Go float syntax.
    return repr(value)


def int_fits(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def float_underflows(value: float, text: str) -> bool:
    """True when a literal with non-zero digits rounded to zero."""
    mantissa = text.lower().split("e")[0]
    return value == 0.0 and any(d in "123456789" for d in mantissa)
