"""
exprlang - Environment
Flat identifier -> value store used to execute `let` statements and to
resolve variables during evaluation.
"""

from typing import Dict, List, Optional
from .ast_nodes import ASTNode, is_value


class Environment:
    def __init__(self, bindings: Optional[Dict[str, ASTNode]] = None):
        self._values: Dict[str, ASTNode] = {}
        for name, value in (bindings or {}).items():
            self.assign(name, value)

    def assign(self, name: str, value: ASTNode) -> None:
        """Bind name to an evaluated value, replacing any earlier binding."""
        if not is_value(value):
            raise TypeError(f"Only value nodes can be bound, got {type(value).__name__}")
        self._values[name] = value

    def resolve(self, name: str) -> ASTNode:
        """Return the value bound to name. Raises KeyError if unbound."""
        return self._values[name]

    def names(self) -> List[str]:
        return list(self._values)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"Environment({self._values!r})"
