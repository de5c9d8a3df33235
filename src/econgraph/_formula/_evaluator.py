"""Stack evaluation of postfix formulas."""

import logging
import math
from collections.abc import Callable, Mapping, Sequence

from econgraph._errors import FormulaError

from ._postfix import UNARY_MINUS, FunctionCall, Number, Operator, PostfixToken, Variable, to_postfix
from ._tokens import tokenize

logger = logging.getLogger(__name__)


def divide(left: float, right: float) -> float:
    """Divide with IEEE 754 semantics: ``x/0`` is a signed infinity, ``0/0`` is NaN."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


_BINARY: dict[str, Callable[[float, float], float]] = {
    "+": lambda left, right: left + right,
    "-": lambda left, right: left - right,
    "*": lambda left, right: left * right,
    "/": divide,
}

def _nan_propagating(function: Callable[[Sequence[float]], float]) -> Callable[[Sequence[float]], float]:
    # builtin min/max ignore a NaN unless it comes first
    def wrapper(args: Sequence[float]) -> float:
        if any(math.isnan(arg) for arg in args):
            return math.nan
        return function(args)

    return wrapper


FUNCTIONS: dict[str, Callable[[Sequence[float]], float]] = {
    "sum": sum,
    "min": _nan_propagating(min),
    "max": _nan_propagating(max),
}


def evaluate_postfix(postfix: Sequence[PostfixToken], variables: Mapping[str, float]) -> float:
    """Evaluate a postfix token sequence.

    Args:
        postfix: Tokens as produced by ``to_postfix``.
        variables: Values for the identifiers in the formula.

    Returns:
        The value left on the stack.

    Raises:
        FormulaError: On an unbound variable, an unsupported function, a stack
            underflow, or anything other than exactly one value remaining.

    """
    stack: list[float] = []
    for token in postfix:
        match token:
            case Number(value=value):
                stack.append(value)
            case Variable(name=name):
                if name not in variables:
                    msg = f"Unknown variable: {name}"
                    raise FormulaError(msg)
                stack.append(float(variables[name]))
            case Operator(symbol=symbol):
                if len(stack) < token.arity:
                    msg = "Invalid expression"
                    raise FormulaError(msg)
                if symbol == UNARY_MINUS:
                    stack.append(-stack.pop())
                    continue
                right = stack.pop()
                left = stack.pop()
                stack.append(_BINARY[symbol](left, right))
            case FunctionCall(name=name, arg_count=arg_count):
                function = FUNCTIONS.get(name)
                if function is None:
                    msg = f"Unsupported function: {name}"
                    raise FormulaError(msg)
                if arg_count < 1 or len(stack) < arg_count:
                    msg = "Invalid function usage"
                    raise FormulaError(msg)
                args = stack[-arg_count:]
                del stack[-arg_count:]
                stack.append(float(function(args)))

    if len(stack) != 1:
        msg = "Invalid expression"
        raise FormulaError(msg)
    return stack[0]


def evaluate(formula: str, variables: Mapping[str, float]) -> float:
    """Evaluate a formula against variable bindings.

    Example:
        >>> evaluate("2 + 3 * x", {"x": 4})
        14.0
        >>> evaluate("max(a, -b, 1)", {"a": 0.5, "b": -3})
        3.0

    Raises:
        FormulaError: If the formula is malformed, references an unbound
            variable, or calls an unsupported function.

    """
    postfix = to_postfix(tokenize(formula))
    logger.debug("Formula %r -> %d postfix tokens", formula, len(postfix))
    return evaluate_postfix(postfix, variables)
