"""
Scopes, bindings and the type system shared by the analyzer and interpreter.

Both stages build their own chain of ``Scope`` objects. The analyzer's
variables carry static types, while the interpreter's carry live values
wrapped in ``PlcObject``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Optional

from plclang.utils.errors import TypeMismatchError, TypeViolation, UnboundNameError


@dataclass(slots=True, eq=False)
class Variable:
    """
    A named storage cell.

    Attributes:
        name: The name used in plclang source
        jvm_name: The name used when rendering to Java
        type: The static type of the variable
        constant: Whether reassignment is forbidden
        value: The current runtime value (mutable, not part of identity)
    """

    name: str
    jvm_name: str
    type: Type
    constant: bool
    value: Optional[PlcObject] = None

    def __repr__(self) -> str:
        return f"Variable({self.name}, {self.type})"


@dataclass(slots=True, eq=False)
class Function:
    """
    A callable binding: a user method closure or a built-in.

    Attributes:
        name: The name used in plclang source
        jvm_name: The name used when rendering to Java
        parameter_types: Declared parameter types, in order
        return_type: Declared return type
        function: Python callable taking a list of PlcObject arguments
    """

    name: str
    jvm_name: str
    parameter_types: list[Type]
    return_type: Type
    function: Callable[[list[PlcObject]], PlcObject]

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def invoke(self, arguments: list[PlcObject]) -> PlcObject:
        return self.function(arguments)

    def __repr__(self) -> str:
        return f"Function({self.name}/{self.arity})"


@dataclass(slots=True, eq=False)
class Scope:
    """
    A single lexical block: variables keyed by name and functions keyed
    by (name, arity), with lookups walking the parent chain.
    """

    parent: Optional[Scope] = None
    variables: dict[str, Variable] = field(default_factory=dict)
    functions: dict[tuple[str, int], Function] = field(default_factory=dict)

    def define_variable(
        self,
        name: str,
        jvm_name: str,
        type: Type,
        constant: bool,
        value: Optional[PlcObject] = None,
    ) -> Variable:
        """Define a variable in this scope, replacing any with the same name."""
        variable = Variable(name, jvm_name, type, constant, value)
        self.variables[name] = variable
        return variable

    def lookup_variable(self, name: str) -> Variable:
        """Find a variable in this scope or the nearest enclosing one."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        raise UnboundNameError(name, "variable", candidates=self.names())

    def define_function(
        self,
        name: str,
        jvm_name: str,
        parameter_types: list[Type],
        return_type: Type,
        function: Callable[[list[PlcObject]], PlcObject],
    ) -> Function:
        """Define a function in this scope, replacing any with the same name and arity."""
        binding = Function(name, jvm_name, list(parameter_types), return_type, function)
        self.functions[(name, binding.arity)] = binding
        return binding

    def lookup_function(self, name: str, arity: int) -> Function:
        """Find a function by name and arity in this scope or an enclosing one."""
        scope: Optional[Scope] = self
        while scope is not None:
            if (name, arity) in scope.functions:
                return scope.functions[(name, arity)]
            scope = scope.parent
        raise UnboundNameError(name, "function", arity=arity, candidates=self.names())

    def names(self) -> list[str]:
        """All variable and function names visible from this scope."""
        seen: list[str] = []
        scope: Optional[Scope] = self
        while scope is not None:
            for name in list(scope.variables) + [key[0] for key in scope.functions]:
                if name not in seen:
                    seen.append(name)
            scope = scope.parent
        return seen


# =============================================================================
# Types
# =============================================================================


class Type:
    """
    A nominal type. Each type owns a scope holding its fields and methods,
    whose parent is the supertype's scope.
    """

    __slots__ = ("name", "jvm_name", "supertype", "scope")

    def __init__(self, name: str, jvm_name: str, supertype: Optional[Type] = None) -> None:
        self.name = name
        self.jvm_name = jvm_name
        self.supertype = supertype
        self.scope = Scope(supertype.scope if supertype else None)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Type):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Type({self.name})"

    @property
    def is_comparable_leaf(self) -> bool:
        """Whether this type is a direct subtype of Comparable."""
        return self.supertype is not None and self.supertype == COMPARABLE_TYPE

    def get_field(self, name: str) -> Variable:
        return self.scope.lookup_variable(name)

    def get_method(self, name: str, arity: int) -> Function:
        """Methods take the receiver as an implicit first parameter."""
        return self.scope.lookup_function(name, arity + 1)


ANY_TYPE = Type("Any", "Object")
NIL_TYPE = Type("Nil", "Void", ANY_TYPE)
COMPARABLE_TYPE = Type("Comparable", "Comparable", ANY_TYPE)
BOOLEAN_TYPE = Type("Boolean", "boolean", COMPARABLE_TYPE)
INTEGER_TYPE = Type("Integer", "int", COMPARABLE_TYPE)
DECIMAL_TYPE = Type("Decimal", "double", COMPARABLE_TYPE)
CHARACTER_TYPE = Type("Character", "char", COMPARABLE_TYPE)
STRING_TYPE = Type("String", "String", COMPARABLE_TYPE)

TYPES: dict[str, Type] = {
    t.name: t
    for t in (
        ANY_TYPE,
        NIL_TYPE,
        COMPARABLE_TYPE,
        BOOLEAN_TYPE,
        INTEGER_TYPE,
        DECIMAL_TYPE,
        CHARACTER_TYPE,
        STRING_TYPE,
    )
}


def get_type(name: str) -> Type:
    """Look up a type by its plclang name."""
    if name not in TYPES:
        raise UnboundNameError(name, "type", candidates=list(TYPES))
    return TYPES[name]


def is_assignable(target: Type, source: Type) -> bool:
    if target == source or target == ANY_TYPE:
        return True
    if source == COMPARABLE_TYPE and target.is_comparable_leaf:
        return True
    return target == COMPARABLE_TYPE and source.is_comparable_leaf


def require_assignable(target: Type, source: Type) -> None:
    """
    Ensure a value of type source may be bound to a target of type target.

    Raises:
        TypeMismatchError: If the assignment is not allowed
    """
    if not is_assignable(target, source):
        raise TypeMismatchError(target, source)


# =============================================================================
# Runtime values
# =============================================================================


class PlcObject:
    """
    A runtime value: a raw Python value tagged with its plclang type.

    Fields and methods are dispatched through the object's own scope,
    so Access and Function evaluation do not care whether the receiver
    is a primitive.
    """

    __slots__ = ("type", "value", "scope")

    def __init__(self, type: Type, value: Any, scope: Optional[Scope] = None) -> None:
        self.type = type
        self.value = value
        self.scope = scope if scope is not None else Scope(type.scope)

    def __repr__(self) -> str:
        return f"PlcObject({self.type}, {self.value!r})"

    def __str__(self) -> str:
        if self.type == BOOLEAN_TYPE:
            return "true" if self.value else "false"
        if self.type == NIL_TYPE:
            return "nil"
        return str(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PlcObject):
            return self.type == other.type and self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.type, self.value))

    def get_field(self, name: str) -> PlcObject:
        return self._field(name).value

    def set_field(self, name: str, value: PlcObject) -> None:
        variable = self._field(name)
        if variable.constant:
            raise TypeViolation(f"Cannot assign to constant field '{name}' of {self.type}")
        variable.value = value

    def call_method(self, name: str, arguments: list[PlcObject]) -> PlcObject:
        try:
            method = self.scope.lookup_function(name, len(arguments) + 1)
        except UnboundNameError as e:
            raise TypeViolation(
                f"{self.type} has no method '{name}/{len(arguments)}'"
            ) from e
        return method.invoke([self, *arguments])

    def _field(self, name: str) -> Variable:
        try:
            return self.scope.lookup_variable(name)
        except UnboundNameError as e:
            raise TypeViolation(f"{self.type} has no field '{name}'") from e


NIL = PlcObject(NIL_TYPE, None)


def create(value: Any) -> PlcObject:
    """
    Wrap a Python value as a runtime object.

    Characters must be wrapped explicitly with CHARACTER_TYPE, since a
    one-character str is a String here.
    """
    if value is None:
        return NIL
    if isinstance(value, bool):
        return PlcObject(BOOLEAN_TYPE, value)
    if isinstance(value, int):
        return PlcObject(INTEGER_TYPE, value)
    if isinstance(value, Decimal):
        return PlcObject(DECIMAL_TYPE, value)
    if isinstance(value, str):
        return PlcObject(STRING_TYPE, value)
    raise TypeViolation(f"Cannot represent {type(value).__name__} as a plclang value")
