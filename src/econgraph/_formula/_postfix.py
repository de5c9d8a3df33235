"""Conversion of a token stream to postfix form (shunting-yard)."""

from dataclasses import dataclass

from econgraph._errors import FormulaError

from ._tokens import Token, TokenKind

UNARY_MINUS = "u-"


@dataclass(frozen=True, slots=True)
class _OperatorInfo:
    precedence: int
    right_assoc: bool
    arity: int


OPERATORS: dict[str, _OperatorInfo] = {
    "+": _OperatorInfo(precedence=1, right_assoc=False, arity=2),
    "-": _OperatorInfo(precedence=1, right_assoc=False, arity=2),
    "*": _OperatorInfo(precedence=2, right_assoc=False, arity=2),
    "/": _OperatorInfo(precedence=2, right_assoc=False, arity=2),
    UNARY_MINUS: _OperatorInfo(precedence=3, right_assoc=True, arity=1),
}


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Variable:
    name: str


@dataclass(frozen=True, slots=True)
class Operator:
    symbol: str

    @property
    def arity(self) -> int:
        return OPERATORS[self.symbol].arity


@dataclass(frozen=True, slots=True)
class FunctionCall:
    name: str
    arg_count: int


type PostfixToken = Number | Variable | Operator | FunctionCall


# Entries of the pending stack during conversion.
@dataclass(frozen=True, slots=True)
class _PendingOperator:
    symbol: str


@dataclass(frozen=True, slots=True)
class _PendingParen:
    is_call: bool


@dataclass(frozen=True, slots=True)
class _PendingFunction:
    name: str


type _Pending = _PendingOperator | _PendingParen | _PendingFunction


def _is_unary_position(previous: Token | None) -> bool:
    return previous is None or previous.kind in (TokenKind.OPERATOR, TokenKind.LPAREN, TokenKind.COMMA)


def _should_pop(incoming: _OperatorInfo, top: _OperatorInfo) -> bool:
    if incoming.right_assoc:
        return incoming.precedence < top.precedence
    return incoming.precedence <= top.precedence


def _flush_to_paren(pending: list[_Pending], output: list[PostfixToken]) -> _PendingParen | None:
    """Pop operators to the output up to the nearest open parenthesis.

    Returns the parenthesis, left on the stack, or None if there is none.
    """
    while pending:
        top = pending[-1]
        if isinstance(top, _PendingParen):
            return top
        pending.pop()
        if isinstance(top, _PendingOperator):
            output.append(Operator(top.symbol))
    return None


def to_postfix(tokens: list[Token]) -> list[PostfixToken]:  # noqa: C901
    """Convert infix tokens to postfix order.

    An identifier directly followed by ``(`` starts a function call. Each
    call carries an argument counter that commas increment; the emitted
    ``FunctionCall`` has ``arg_count`` equal to the number of commas plus one.

    Raises:
        FormulaError: On mismatched parentheses or a comma outside a function call.

    Example:
        >>> from econgraph._formula import tokenize
        >>> to_postfix(tokenize("1 + 2 * x"))
        [Number(value=1.0), Number(value=2.0), Variable(name='x'), Operator(symbol='*'), Operator(symbol='+')]

    """
    output: list[PostfixToken] = []
    pending: list[_Pending] = []
    arg_counts: list[int] = []

    for index, token in enumerate(tokens):
        previous = tokens[index - 1] if index > 0 else None
        following = tokens[index + 1] if index + 1 < len(tokens) else None

        match token.kind:
            case TokenKind.NUMBER:
                output.append(Number(float(token.text)))
            case TokenKind.IDENTIFIER:
                if following is not None and following.kind == TokenKind.LPAREN:
                    pending.append(_PendingFunction(token.text))
                    arg_counts.append(0)
                else:
                    output.append(Variable(token.text))
            case TokenKind.OPERATOR:
                symbol = UNARY_MINUS if token.text == "-" and _is_unary_position(previous) else token.text
                info = OPERATORS[symbol]
                while pending:
                    top = pending[-1]
                    if not isinstance(top, _PendingOperator) or not _should_pop(info, OPERATORS[top.symbol]):
                        break
                    pending.pop()
                    output.append(Operator(top.symbol))
                pending.append(_PendingOperator(symbol))
            case TokenKind.LPAREN:
                is_call = previous is not None and previous.kind == TokenKind.IDENTIFIER
                pending.append(_PendingParen(is_call=is_call))
            case TokenKind.COMMA:
                paren = _flush_to_paren(pending, output)
                if paren is None or not paren.is_call:
                    msg = f"Unexpected ',' at position {token.position} outside a function call"
                    raise FormulaError(msg)
                arg_counts[-1] += 1
            case TokenKind.RPAREN:
                paren = _flush_to_paren(pending, output)
                if paren is None:
                    msg = "Mismatched parentheses"
                    raise FormulaError(msg)
                pending.pop()
                if paren.is_call:
                    function = pending.pop()
                    assert isinstance(function, _PendingFunction)  # noqa: S101
                    output.append(FunctionCall(function.name, arg_counts.pop() + 1))

    while pending:
        top = pending.pop()
        if not isinstance(top, _PendingOperator):
            msg = "Mismatched parentheses"
            raise FormulaError(msg)
        output.append(Operator(top.symbol))

    return output
