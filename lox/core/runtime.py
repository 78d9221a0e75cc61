"""Runtime values of Lox beyond the host types. A Lox value is one of:

```
nil       -> None
boolean   -> bool
number    -> float            ; always double precision, even when integral
string    -> str
callable  -> LoxCallable      ; LoxFunction, NativeFunction or LoxClass
instance  -> LoxInstance
```

Also provides the value rules shared by the interpreter: truthiness, equality and stringification.
"""

import math
import time
from abc import ABC, abstractmethod

from lox.core.environment import Environment
from lox.lang.error import LoxRuntimeError


class LoxCallable(ABC):
    """Anything that can be called with `(...)` in Lox."""

    @abstractmethod
    def arity(self):
        """Number of arguments the callable expects."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Invokes the callable. len(arguments) == self.arity() has already been checked."""


class LoxFunction(LoxCallable):
    """A user-defined function or method together with the environment it was defined in (its closure)."""

    def __init__(self, declaration, closure, is_initializer=False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def bind(self, instance):
        """Returns a copy of this method whose closure has `this` bound to instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        # parent is the closure, not the caller's environment
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        completion = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.values["this"]
        return completion.value if completion is not None else None

    def __str__(self):
        return f"<fn {self.declaration.name.lexeme}>"


class NativeFunction(LoxCallable):
    """Function implemented in Python and registered as a global."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(*arguments)

    def __str__(self):
        return "<native fn>"


def native_clock():
    """`clock()`: current time in fractional seconds."""
    return NativeFunction("clock", 0, time.time)


class LoxClass(LoxCallable):
    """A class. Calling it creates an instance and runs `init` on it, if defined."""
    INITIALIZER = "init"

    def __init__(self, name, methods):
        self.name = name
        self.methods = methods  # dict of name: unbound LoxFunction

    def find_method(self, name):
        return self.methods.get(name)

    def arity(self):
        initializer = self.find_method(LoxClass.INITIALIZER)
        return initializer.arity() if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)

        initializer = self.find_method(LoxClass.INITIALIZER)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)

        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    """An instance of a LoxClass. Fields are created lazily on assignment."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """Looks name (a Token) up in fields, then in the class's methods. Methods come back bound to self."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise LoxRuntimeError(f"Undefined property '{name.lexeme}'.", name)

    def set(self, name, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"<{self.klass.name} instance>"


def is_truthy(value):
    """nil and false are falsy, everything else (including 0 and "") is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """Lox equality: never fails, and never equates values of different types (true != 1).

    Numbers compare by value, except that NaN equals NaN and 0 does not equal -0.
    """
    if left is None or right is None:
        return left is right
    if isinstance(left, float):
        if type(right) is not float:
            return False
        if math.isnan(left) or math.isnan(right):
            return math.isnan(left) and math.isnan(right)
        return left == right and math.copysign(1.0, left) == math.copysign(1.0, right)
    if isinstance(left, (bool, str)):
        return type(left) is type(right) and left == right
    return left is right


def stringify(value):
    """Returns the text `print` shows for value. Integral numbers print without a fractional part or exponent."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return f"{value:.0f}"
        return repr(value)
    return str(value)
