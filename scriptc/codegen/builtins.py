"""Registry of builtin functions provided by the runtime package."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Builtin:
    """A script-visible builtin and the runtime function implementing it."""
    name: str
    target: str
    min_args: int
    max_args: int | None


BUILTIN_REGISTRY: dict[str, Builtin] = {
    "print": Builtin("print", "Print", 0, None),
    "len": Builtin("len", "Len", 1, 1),
    "push": Builtin("push", "Push", 2, 2),
    "str": Builtin("str", "ToString", 1, 1),
    "int": Builtin("int", "ToInt", 1, 1),
    "float": Builtin("float", "ToFloat", 1, 1),
    "map": Builtin("map", "Map", 0, 0),
}


def get_builtin(name: str) -> Builtin | None:
    """Get a builtin by script name."""
    return BUILTIN_REGISTRY.get(name)


def register_builtin(builtin: Builtin) -> None:
    """Register a new builtin."""
    BUILTIN_REGISTRY[builtin.name] = builtin


def list_builtins() -> list[str]:
    """List all registered builtin names."""
    return list(BUILTIN_REGISTRY.keys())
