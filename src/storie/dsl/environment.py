"""
Variable scopes for script evaluation.

An Environment is one frame of bindings plus an optional parent. Lookups
and assignments walk outward through the parents; declarations only ever
touch the current frame.
"""

from typing import Dict, Optional

from .errors import EvaluationError
from .values import Value


class Environment:
    """A frame of variable bindings chained to an optional parent frame."""

    def __init__(self, parent: Optional["Environment"] = None):
        self._vars: Dict[str, Value] = {}
        self.parent = parent

    def define(self, name: str, value: Value) -> None:
        """Binds a name in this frame, replacing any existing binding here."""
        self._vars[name] = value

    def resolve(self, name: str) -> Optional["Environment"]:
        """Returns the nearest frame that binds a name, or None."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env._vars:
                return env
            env = env.parent
        return None

    def contains(self, name: str) -> bool:
        """Checks if a name is bound anywhere in the chain."""
        return self.resolve(name) is not None

    def get(self, name: str) -> Value:
        """
        Looks up a name through the chain.

        Raises:
            EvaluationError: If the name is not bound anywhere
        """
        env = self.resolve(name)
        if env is None:
            raise EvaluationError(f"Undefined variable '{name}'")
        return env._vars[name]

    def set(self, name: str, value: Value) -> None:
        """
        Assigns to the nearest existing binding.

        When no frame binds the name it is created in this frame, not in
        the root.
        """
        env = self.resolve(name)
        if env is None:
            env = self
        env._vars[name] = value

    def child(self) -> "Environment":
        """Creates a new frame whose parent is this one."""
        return Environment(parent=self)

    def __contains__(self, name: str) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment(names={sorted(self._vars)}, has_parent={self.parent is not None})"
