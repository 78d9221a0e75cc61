"""Scope frames for the interpreter. Each Environment maps names to values and points to the frame it is nested
in; the chain ends at the global frame. Frames are shared by reference, so a closure keeps its defining frame alive
and any assignment through one holder is seen by all of them.
"""

from lox.lang.error import LoxRuntimeError


class Environment:

    def __init__(self, enclosing=None):
        self.values = {}
        self.enclosing = enclosing  # fixed at creation, so the chain cannot form a cycle

    def define(self, name, value):
        """Binds name in this frame. Redefining a name overwrites it."""
        self.values[name] = value

    def get(self, name):
        """Looks name (a Token) up by walking the chain outward."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing

        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def assign(self, name, value):
        """Writes value into the innermost frame that already binds name."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def ancestor(self, distance):
        """Returns the frame distance hops up the chain (0 is self)."""
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance, name):
        """Reads name (a Token) directly from the frame at distance, as computed by the resolver."""
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)
        return values[name.lexeme]

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        return f"Environment({self.values!r}, enclosing={'...' if self.enclosing else None})"
