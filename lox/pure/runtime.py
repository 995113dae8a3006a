"""Runtime object model for lox: functions, classes, instances, and the rules every value follows (truthiness,
equality, display form).

Anything that can be called implements LoxCallable. Classes are callables too: calling one constructs an instance, so
the interpreter never has to special-case `ClassName(args)`.
"""

from abc import ABC, abstractmethod

from lox.lang.error import LoxRuntimeError
from lox.pure.environment import Environment


class ReturnSignal(Exception):
    """Unwinds a `return` up to the nearest call boundary. Only raised and caught inside the interpreter."""

    def __init__(self, value):
        super().__init__()
        self.value = value


class LoxCallable(ABC):
    """Call contract shared by functions, bound methods and classes."""

    @abstractmethod
    def arity(self):
        """Number of arguments call expects."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Invokes this callable. arguments has already been checked against arity."""


class LoxFunction(LoxCallable):
    """A function or method value: its declaration plus the environment it closes over (shared, not copied)."""

    def __init__(self, declaration, closure):
        self.declaration = declaration
        self.closure = closure

    @property
    def name(self):
        return self.declaration.name.lexeme

    def bind(self, instance):
        """Returns a new function whose closure holds exactly one binding, `this`, parented to this closure."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment)

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        try:
            interpreter.execute_block([self.declaration.body], environment)
        except ReturnSignal as signal:
            return signal.value
        return None

    def __repr__(self):
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    """A class value. Its initializer, if any, is the method named like the class."""

    def __init__(self, name, methods):
        self.name = name
        self.methods = methods

    def find_method(self, name):
        return self.methods.get(name)

    @property
    def initializer(self):
        return self.find_method(self.name)

    def arity(self):
        initializer = self.initializer
        return initializer.arity() if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)
        initializer = self.initializer
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __repr__(self):
        return self.name


class LoxInstance:
    """An instance of a LoxClass. Fields spring into existence on first assignment."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """Fields shadow methods. Methods are bound afresh on every access."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(f"Undefined property '{name.lexeme}'.", name)

    def set(self, name, value):
        self.fields[name.lexeme] = value

    def __repr__(self):
        return f"{self.klass.name} instance"


def is_truthy(value):
    """nil and false are falsy, everything else (0 and "" included) is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """Equality never fails. nil only equals nil; booleans never equal numbers."""
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def stringify(value):
    """Display form of value, as written by print."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    return repr(value)
