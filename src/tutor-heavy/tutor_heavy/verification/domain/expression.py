"""Safe arithmetic evaluation for numeric answers and prompt relations.

Expressions are parsed with ``ast`` and walked node by node; only numeric
literals, arithmetic operators, parentheses, and a whitelist of ``math``
functions and constants are accepted. ``^`` is treated as exponentiation.
"""

import ast
import math
import operator
import re
from collections.abc import Callable
from numbers import Real

from tutor_heavy.verification.domain.errors import ExpressionError

_LEADING_ZEROS = re.compile(r"(?<![\d.\w])0+(?=\d)")
# A number or closing parenthesis directly followed by a name or "(" is an
# implicit product: 2(3+4), 2pi, (1+1)sqrt(4). Exponent suffixes (1e3) are not.
_IMPLICIT_PRODUCT = re.compile(
    r"((?<![\w.])\d+(?:\.\d*)?(?:[eE][-+]?\d+)?|\))\s*(?=[A-Za-z_(])(?![eE][-+]?\d)"
)

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: dict[str, Callable[..., float]] = {
    "abs": abs,
    "sqrt": math.sqrt,
    "cbrt": math.cbrt,
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "ln": math.log,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": round,
}

_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

# Exponents above this are rejected before evaluation to keep 10**10**10 out.
_MAX_EXPONENT = 1000


def evaluate_expression(expression: str) -> float:
    """Evaluate an arithmetic expression and return its value as a float.

    Raises:
        ExpressionError: if the text is not a valid expression, references an
            undefined symbol or function, or does not produce a real number.
    """
    source = _prepare(expression)
    if not source:
        raise ExpressionError("empty expression")
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(f"syntax error in '{expression}'") from exc

    try:
        value = _eval(tree.body)
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ExpressionError(f"result of '{expression}' is not a number")
        result = float(value)
    except (ArithmeticError, ValueError, TypeError) as exc:
        raise ExpressionError(f"{type(exc).__name__}: {exc}") from exc

    if not math.isfinite(result):
        raise ExpressionError(f"result of '{expression}' is not finite")
    return result


def _prepare(expression: str) -> str:
    source = expression.strip().replace("^", "**").replace("×", "*").replace("÷", "/")
    source = source.replace("−", "-")
    source = _LEADING_ZEROS.sub("", source)
    return _IMPLICIT_PRODUCT.sub(r"\1*", source)


def _eval(node: ast.AST) -> float:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, Real):
            raise ExpressionError(f"unsupported literal {node.value!r}")
        return float(node.value)

    if isinstance(node, ast.Name):
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        raise ExpressionError(f"Undefined symbol {node.id}")

    if isinstance(node, ast.UnaryOp):
        unary = _UNARY_OPERATORS.get(type(node.op))
        if unary is None:
            raise ExpressionError(f"unsupported operator {type(node.op).__name__}")
        return unary(_eval(node.operand))

    if isinstance(node, ast.BinOp):
        binary = _BINARY_OPERATORS.get(type(node.op))
        if binary is None:
            raise ExpressionError(f"unsupported operator {type(node.op).__name__}")
        left = _eval(node.left)
        right = _eval(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
            raise ExpressionError(f"exponent {right} is too large")
        return binary(left, right)

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.keywords:
            raise ExpressionError("unsupported call")
        function = _FUNCTIONS.get(node.func.id)
        if function is None:
            raise ExpressionError(f"Undefined function {node.func.id}")
        return function(*(_eval(arg) for arg in node.args))

    raise ExpressionError(f"unsupported syntax {type(node).__name__}")
