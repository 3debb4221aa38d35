"""
Arithmetic Calculator Tool

Evaluates plain arithmetic expressions using SymPy's parser. Only digits,
``+ - * / ( ) .`` and whitespace are accepted, so the parser never sees
names or attribute access.

Expressions are parsed unevaluated and then computed in floating point,
so huge integer powers never turn into exact big-integer arithmetic.
"""

import logging
import math
import re
from typing import Any

from sympy import Float, Pow, Rational, S, postorder_traversal
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

from .base import FunctionTool, ToolFailure, ToolResult, ToolSuccess

logger = logging.getLogger(__name__)

ALLOWED_EXPRESSION = re.compile(r"^[0-9+\-*/().\s]+$")

CALC_DESCRIPTION = 'Evaluates arithmetic expression. Input: { "expression": "12*(3+4)" }'

# Largest exponent magnitude accepted in any power, e.g. rejects 9**9**9
MAX_EXPONENT = 10**6

NOT_A_NUMBER = "Expression did not evaluate to a number."

_NON_FINITE = (S.NaN, S.ComplexInfinity, S.Infinity, S.NegativeInfinity)


class ExponentTooLargeError(ValueError):
    """A power's exponent is outside the supported range."""


class NotANumberError(ValueError):
    """The expression evaluated to NaN or an infinity."""


def _as_floats(expr):
    """Rebuild an unevaluated expression with Float leaves, evaluating it."""
    numbers = {n: Float(n) for n in expr.atoms(Rational)}
    return expr.xreplace(numbers).doit()


def _check_exponents(expr) -> None:
    # Innermost powers first, so each exponent evaluated here is bounded
    for node in postorder_traversal(expr):
        if not isinstance(node, Pow):
            continue
        exponent = _as_floats(node.exp)
        if exponent.is_extended_real and abs(exponent) > MAX_EXPONENT:
            raise ExponentTooLargeError(f"Exponent out of range (limit {MAX_EXPONENT}).")


def evaluate(expression: str) -> float | int:
    """
    Evaluate an arithmetic expression.

    Args:
        expression: Expression such as ``(123.45*1.19)+6.90``.

    Returns:
        The numeric value, as ``int`` when it is a whole number.

    Raises:
        NotANumberError: If the result is NaN or infinite.
        SyntaxError, TypeError, ValueError: On bad input.
    """
    expr = parse_expr(expression, transformations=standard_transformations, evaluate=False)
    _check_exponents(expr)

    value = _as_floats(expr)
    if value.has(*_NON_FINITE):
        raise NotANumberError(NOT_A_NUMBER)

    result = complex(value)
    if result.imag != 0:
        raise ValueError("Expression has an imaginary component.")
    number = result.real
    if not math.isfinite(number):
        # Finite in SymPy but beyond float range
        raise NotANumberError(NOT_A_NUMBER)
    if number.is_integer():
        return int(number)
    return number


def calculate(tool_input: Any) -> ToolResult:
    """Handle a ``calc`` invocation."""
    expression = tool_input.get("expression") if isinstance(tool_input, dict) else None
    if not expression or not isinstance(expression, str):
        return ToolFailure(error="calc expects { expression: string }")

    if not ALLOWED_EXPRESSION.match(expression):
        return ToolFailure(error="Unsupported characters in expression.")

    try:
        value = evaluate(expression)
    except SyntaxError as e:
        logger.debug("Syntax error parsing expression '%s': %s", expression, e)
        return ToolFailure(error=f"Syntax error: {e}")
    except (ValueError, TypeError, ZeroDivisionError) as e:
        logger.debug("Error evaluating '%s': %s", expression, e)
        return ToolFailure(error=str(e) or type(e).__name__)
    except Exception as e:
        logger.debug("Calculation error for '%s': %s", expression, e)
        return ToolFailure(error=f"Calculation error: {e}")

    return ToolSuccess(data={"value": value})


calc = FunctionTool(name="calc", description=CALC_DESCRIPTION, handler=calculate)


def default_tools() -> list[FunctionTool]:
    """Tools available to the CLI."""
    return [calc]
