"""Runtime scopes. An Environment maps names to values and links to the environment enclosing it; the chain always
ends at the globals. Closures hold a reference to the environment they were declared in, which keeps it alive.
"""

from lox.lang.error import LoxRuntimeError


class Environment:
    """One frame of the environment chain."""

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name, value):
        """Binds name in this frame. Redefining a name overwrites it."""
        self.values[name] = value

    def get(self, name):
        """Looks name (a Token) up, walking outward. Raises LoxRuntimeError if it isn't bound anywhere."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def assign(self, name, value):
        """Rebinds an existing name (a Token), walking outward. Never creates a binding."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def ancestor(self, distance):
        """Returns the frame distance hops out. distance comes from the resolver, so the frame must exist."""
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance, name):
        """Reads name (a str) from the frame distance hops out."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, name, value):
        """Writes name (a Token) into the frame distance hops out."""
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        return f"Environment({self.values!r}, enclosing={'yes' if self.enclosing else 'no'})"
