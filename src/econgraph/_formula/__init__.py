"""Formula language used by calc nodes.

A formula is an arithmetic expression over numeric literals and variables
bound by the caller, with ``+ - * /``, unary minus, parentheses and the
functions ``sum``, ``min`` and ``max``. Evaluation runs in three stages:

- tokenize: split the text into tokens
- to_postfix: reorder tokens into postfix form (shunting-yard)
- evaluate_postfix: reduce the postfix form on a value stack

``evaluate`` composes the three.
"""

from ._evaluator import FUNCTIONS, divide, evaluate, evaluate_postfix
from ._postfix import FunctionCall, Number, Operator, PostfixToken, Variable, to_postfix
from ._tokens import Token, TokenKind, tokenize

__all__ = [
    "FUNCTIONS",
    "FunctionCall",
    "Number",
    "Operator",
    "PostfixToken",
    "Token",
    "TokenKind",
    "Variable",
    "divide",
    "evaluate",
    "evaluate_postfix",
    "to_postfix",
    "tokenize",
]
