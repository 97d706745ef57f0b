"""Tree-walking evaluator for the plc language.

evaluate(node, env) looks up the rule for type(node) in HANDLERS and applies it, threading env (the innermost
scope frame) through every call; there is no interpreter-wide state. Every member of the Expr and Stmt unions must
have a rule, which is checked when this module is imported.

Typing rules, enforced on every operation (anything else raises TypeMismatch):

```
+ - * / %        numbers; int op int -> int, Decimal on either side promotes the other to Decimal
+                also two strings (concatenation)
/ %              integers truncate toward zero; a zero divisor raises ArithmeticError
- (unary)        numbers; Decimal results outside the decimal context's range raise ArithmeticError
< <= > >=        two numbers or two strings
== !=            any two values; values of different types are never equal
! and or         Booleans; 'and'/'or' short-circuit
if/while/for     conditions must be Booleans
```
"""

import logging
from decimal import Decimal, DecimalException, Overflow
from operator import add, ge, gt, le, lt, mul, sub
from typing import get_args

from plc.lang.error import ArithmeticError, ArityMismatch, DuplicateDeclaration, TypeMismatch, UndefinedVariable
from plc.runtime.values import Builtin, Function, Object, equals, is_number, type_name
from plc.syntax.tree import (Assign, Binary, Block, Call, Expr, Expression, For, FunDecl, Get, If, Literal,
                             ObjectExpr, Program, Return, Set, Stmt, This, Unary, Variable, VarDecl, While)


logger = logging.getLogger(__name__)

ARITHMETIC = {"+": add, "-": sub, "*": mul}
COMPARISONS = {"<": lt, "<=": le, ">": gt, ">=": ge}


class ReturnSignal(Exception):
    """Carries the value of a return statement out to the call site. Control flow, not an error."""

    def __init__(self, value):
        super().__init__("return")
        self.value = value


def evaluate(node, env):
    """Evaluates node in env and returns its value. Statements evaluate to None, except expression statements
    (their expression's value) and Programs (the value of their last statement).
    """
    handler = HANDLERS.get(type(node))
    if handler is None:
        raise TypeError(f"cannot evaluate {type(node).__name__}")
    return handler(node, env)


def call(callee, arguments, position=None):
    """Calls callee with already-evaluated arguments. Functions run in a new frame chained to their closure."""
    if not isinstance(callee, (Function, Builtin)):
        raise TypeMismatch("a value of type {} is not callable", type_name(callee), position=position)
    if len(arguments) != callee.arity:
        msg = "'{}' expects {} argument(s) but got {}"
        raise ArityMismatch(msg, [callee.name, callee.arity, len(arguments)], position=position)

    if isinstance(callee, Builtin):
        return callee(*arguments)

    logger.debug("calling %s with %d argument(s)", callee.name, len(arguments))
    frame = callee.closure.child()
    for param, argument in zip(callee.declaration.params, arguments):
        frame.define(param, argument)

    try:
        for stmt in callee.declaration.body:
            evaluate(stmt, frame)
    except ReturnSignal as signal:
        return signal.value
    return None


def _condition(node, env):
    """Evaluates node, which must produce a Boolean."""
    value = evaluate(node, env)
    if not isinstance(value, bool):
        raise TypeMismatch("condition must be a Boolean, got {}", type_name(value), position=node.position)
    return value


def _decimal_error(node, error):
    """ArithmeticError for a Decimal operation that the default decimal context refuses to carry out."""
    what = "decimal overflow" if isinstance(error, Overflow) else "invalid decimal operation"
    return ArithmeticError(f"{what} in '{node.operator}'", position=node.position, length=len(node.operator))


def _mismatch(node, *operands):
    types = " and ".join(type_name(operand) for operand in operands)
    return TypeMismatch("operator '{}' cannot be applied to {}", [node.operator, types], position=node.position,
                        length=len(node.operator))


# Statements

def _program(node, env):
    result = None
    for stmt in node.statements:
        result = evaluate(stmt, env)
    return result


def _expression(node, env):
    return evaluate(node.expression, env)


def _var_decl(node, env):
    value = None if node.initializer is None else evaluate(node.initializer, env)
    env.define(node.name, value, node.position)


def _fun_decl(node, env):
    env.define(node.name, Function(node, env), node.position)


def _block(node, env):
    frame = env.child()
    for stmt in node.statements:
        evaluate(stmt, frame)


def _if(node, env):
    if _condition(node.condition, env):
        evaluate(node.then_branch, env)
    elif node.else_branch is not None:
        evaluate(node.else_branch, env)


def _while(node, env):
    while _condition(node.condition, env):
        evaluate(node.body, env)


def _for(node, env):
    frame = env.child()  # holds the loop variable
    if node.initializer is not None:
        evaluate(node.initializer, frame)

    while node.condition is None or _condition(node.condition, frame):
        evaluate(node.body, frame)
        if node.increment is not None:
            evaluate(node.increment, frame)


def _return(node, env):
    raise ReturnSignal(None if node.value is None else evaluate(node.value, env))


# Expressions

def _literal(node, env):
    return node.value


def _variable(node, env):
    return env.get(node.name, node.position)


def _assign(node, env):
    value = evaluate(node.value, env)
    env.set(node.name, value, node.position)
    return value


def _unary(node, env):
    operand = evaluate(node.operand, env)
    if node.operator == "!":
        if not isinstance(operand, bool):
            raise _mismatch(node, operand)
        return not operand

    if not is_number(operand):
        raise _mismatch(node, operand)
    try:
        return -operand
    except DecimalException as error:
        raise _decimal_error(node, error) from error


def _binary(node, env):
    if node.operator in ("and", "or"):
        return _logical(node, env)

    left = evaluate(node.left, env)
    right = evaluate(node.right, env)

    if node.operator == "==":
        return equals(left, right)
    elif node.operator == "!=":
        return not equals(left, right)
    elif node.operator in COMPARISONS:
        if not (is_number(left) and is_number(right)) and not (isinstance(left, str) and isinstance(right, str)):
            raise _mismatch(node, left, right)
        return COMPARISONS[node.operator](left, right)
    return _arithmetic(node, left, right)


def _logical(node, env):
    left = evaluate(node.left, env)
    if not isinstance(left, bool):
        raise _mismatch(node, left)
    if left == (node.operator == "or"):
        return left  # short-circuit

    right = evaluate(node.right, env)
    if not isinstance(right, bool):
        raise _mismatch(node, left, right)
    return right


def _arithmetic(node, left, right):
    if node.operator == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right
    if not (is_number(left) and is_number(right)):
        raise _mismatch(node, left, right)

    if isinstance(left, Decimal) or isinstance(right, Decimal):
        try:
            return _numeric(node, Decimal(left), Decimal(right))
        except DecimalException as error:
            raise _decimal_error(node, error) from error
    return _numeric(node, left, right)


def _numeric(node, left, right):
    """Applies an arithmetic operator to two ints or two Decimals."""
    if node.operator in ARITHMETIC:
        return ARITHMETIC[node.operator](left, right)

    if right == 0:
        what = "division" if node.operator == "/" else "modulo"
        raise ArithmeticError(f"{what} by zero", position=node.position)

    if isinstance(left, Decimal):
        return left / right if node.operator == "/" else left % right  # Decimal % keeps the dividend's sign

    quotient = abs(left) // abs(right)
    if (left < 0) != (right < 0):
        quotient = -quotient
    return quotient if node.operator == "/" else left - right * quotient


def _call(node, env):
    callee = evaluate(node.callee, env)
    arguments = [evaluate(argument, env) for argument in node.arguments]
    return call(callee, arguments, node.position)


def _receiver(node, env):
    receiver = evaluate(node.receiver, env)
    if not isinstance(receiver, Object):
        msg = "a value of type {} has no members"
        raise TypeMismatch(msg, type_name(receiver), position=node.position, length=len(node.name) + 1)
    return receiver


def _get(node, env):
    receiver = _receiver(node, env)
    if node.name in receiver.fields.values:
        return receiver.fields.values[node.name]
    elif node.name in receiver.methods:
        return receiver.methods[node.name]
    raise UndefinedVariable("undefined member '{}'", node.name, position=node.position, length=len(node.name) + 1)


def _set(node, env):
    receiver = _receiver(node, env)
    if node.name not in receiver.fields.values:
        raise UndefinedVariable("undefined field '{}'", node.name, position=node.position, length=len(node.name) + 1)

    value = evaluate(node.value, env)
    receiver.fields.values[node.name] = value
    return value


def _this(node, env):
    return env.get("this", node.position)


def _object(node, env):
    fields = env.child()
    receiver = Object(node.name, fields)
    for decl in node.fields:
        evaluate(decl, fields)

    for decl in node.methods:
        if decl.name in fields.values or decl.name in receiver.methods:
            raise DuplicateDeclaration("'{}' is already declared in this object", decl.name, position=decl.position)
        receiver.methods[decl.name] = Function(decl, fields).bind(receiver)
    return receiver


HANDLERS = {
    Program: _program,
    Expression: _expression,
    VarDecl: _var_decl,
    FunDecl: _fun_decl,
    Block: _block,
    If: _if,
    While: _while,
    For: _for,
    Return: _return,
    Literal: _literal,
    Variable: _variable,
    Assign: _assign,
    Unary: _unary,
    Binary: _binary,
    Call: _call,
    Get: _get,
    Set: _set,
    This: _this,
    ObjectExpr: _object,
}


def _check_exhaustive():
    missing = [node.__name__ for node in get_args(Expr) + get_args(Stmt) if node not in HANDLERS]
    if missing:
        raise TypeError(f"no evaluation rule for {', '.join(missing)}")


_check_exhaustive()
