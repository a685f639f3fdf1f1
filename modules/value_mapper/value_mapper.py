import ast
import logging
import math
import operator
from dataclasses import dataclass
from typing import Dict, Optional

from utils.exceptions import ConfigurationError

VARIABLES = ("BASE", "FROM", "TO", "STEP", "I")

FUNCTIONS = {
    'pow': math.pow,
    'exp': math.exp,
    'log': math.log,
    'log10': math.log10,
    'log2': math.log2,
    'sqrt': math.sqrt,
    'abs': abs,
    'floor': math.floor,
    'ceil': math.ceil,
    'rint': round,
    'round': round,
    'sin': math.sin,
    'cos': math.cos,
    'tan': math.tan,
    'min': min,
    'max': max,
}

_ALLOWED_NODES = (
    ast.Expression, ast.BinOp, ast.UnaryOp, ast.Call, ast.Name, ast.Load, ast.Constant,
    ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Mod, ast.Pow, ast.UAdd, ast.USub,
)

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: math.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


@dataclass(frozen=True)
class AxisMapping:
    """Axis configuration exposed to the expression as BASE/FROM/TO/STEP."""
    base: float
    start: float
    end: float
    step: float
    expression: str


class CompiledExpression:
    """
    A restricted arithmetic expression over BASE, FROM, TO, STEP and I.

    The source is parsed and checked once; only numeric literals, the five
    variables, arithmetic operators and a fixed set of math functions are
    accepted. ``^`` is read as power.
    """

    def __init__(self, source: str):
        self.source = source
        try:
            tree = ast.parse(source.replace('^', '**'), mode='eval')
        except SyntaxError as e:
            raise ConfigurationError(f"Failed to compile expression '{source}': {e.msg}") from e

        callees = {id(node.func) for node in ast.walk(tree) if isinstance(node, ast.Call)}
        for node in ast.walk(tree):
            if not isinstance(node, _ALLOWED_NODES):
                raise ConfigurationError(
                    f"Unsupported construct '{type(node).__name__}' in expression '{source}'"
                )
            if isinstance(node, ast.Constant) and not isinstance(node.value, (int, float)):
                raise ConfigurationError(f"Only numeric literals are allowed in expression '{source}'")
            if isinstance(node, ast.Call):
                if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
                    raise ConfigurationError(f"Unknown function in expression '{source}'")
                if node.keywords:
                    raise ConfigurationError(f"Keyword arguments are not allowed in expression '{source}'")
            elif isinstance(node, ast.Name) and node.id not in VARIABLES and id(node) not in callees:
                raise ConfigurationError(
                    f"Unknown variable '{node.id}' in expression '{source}'. Allowed: {', '.join(VARIABLES)}"
                )

        self._body = tree.body

    def evaluate(self, variables: Dict[str, float]) -> float:
        """
        Evaluate with the given variable values.

        Raises:
            ArithmeticError: On division by zero or overflow (including an
                infinite result).
            ValueError: On a math domain error.
        """
        result = float(self._evaluate(self._body, variables))
        if math.isinf(result):
            raise OverflowError(f"expression '{self.source}' overflowed")
        return result

    def _evaluate(self, node: ast.AST, variables: Dict[str, float]) -> float:
        if isinstance(node, ast.Constant):
            return float(node.value)
        if isinstance(node, ast.Name):
            return float(variables[node.id])
        if isinstance(node, ast.BinOp):
            left = self._evaluate(node.left, variables)
            right = self._evaluate(node.right, variables)
            return _BINARY_OPERATORS[type(node.op)](left, right)
        if isinstance(node, ast.UnaryOp):
            return _UNARY_OPERATORS[type(node.op)](self._evaluate(node.operand, variables))
        # only whitelisted calls survive validation
        args = [self._evaluate(arg, variables) for arg in node.args]
        return float(FUNCTIONS[node.func.id](*args))

    def __repr__(self) -> str:
        return f"CompiledExpression({self.source!r})"


class ValueMapper:
    """
    Maps grid coordinates to hyperparameter values, one expression per axis.

    Both expressions are compiled at construction, so a malformed formula
    fails before any evaluation starts. Arithmetic failures at evaluation
    time (domain errors, division by zero, overflow) are logged and return
    NaN instead of raising.
    """

    def __init__(self, x_axis: AxisMapping, y_axis: AxisMapping, logger: Optional[logging.Logger] = None):
        self.x_axis = x_axis
        self.y_axis = y_axis
        self.logger = logger or logging.getLogger(__name__)
        self._x_expression = CompiledExpression(x_axis.expression)
        self._y_expression = CompiledExpression(y_axis.expression)

    def evaluate(self, value: float, is_x: bool) -> float:
        """
        Map a grid coordinate along one axis.

        Args:
            value: The grid coordinate (substituted as I).
            is_x: Whether the X axis configuration applies.

        Returns:
            The parameter value, or NaN if the expression failed.
        """
        axis = self.x_axis if is_x else self.y_axis
        expression = self._x_expression if is_x else self._y_expression
        variables = {
            'BASE': axis.base,
            'FROM': axis.start,
            'TO': axis.end,
            'STEP': axis.step,
            'I': value,
        }
        try:
            return expression.evaluate(variables)
        except (ArithmeticError, ValueError, TypeError) as e:
            self.logger.warning(
                f"Evaluating {'X' if is_x else 'Y'} expression '{axis.expression}' with I={value} failed: {e}"
            )
            return math.nan

    def map_point(self, point) -> tuple:
        """Map both coordinates of a GridPoint."""
        return self.evaluate(point.x, True), self.evaluate(point.y, False)
