"""Local stack interpreter for bilingual (Korean/English) crowny programs.

Programs are newline-separated instructions. Each line starts with an
operation token, optionally followed by one operand:

    ; comment
    넣어 10
    push 20
    더해
    종료

Every operation accepts a Korean and an English token. Tokens are matched
case-insensitively. Evaluation needs no remote service.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crowny.schemas import TaskResult, elapsed_ms_since
from crowny.trit import Trit

logger = logging.getLogger(__name__)

COMMENT_MARKER = ";"

TERMINATORS = frozenset({"종료", "끝", "end", "halt"})


class InterpreterError(Exception):
    """Raised when a program cannot be evaluated."""

    pass


class Op(str, Enum):
    """Canonical interpreter operations."""

    PUSH = "push"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    PRINT = "print"
    DUP = "dup"
    SWAP = "swap"
    POP = "pop"
    CLEAR = "clear"
    STORE = "store"
    LOAD = "load"
    TRUE = "true"
    UNKNOWN = "unknown"
    FALSE = "false"


# Surface token -> operation. New aliases only need an entry here.
TOKENS: dict[str, Op] = {
    "넣어": Op.PUSH,
    "값": Op.PUSH,
    "push": Op.PUSH,
    "val": Op.PUSH,
    "더해": Op.ADD,
    "더": Op.ADD,
    "add": Op.ADD,
    "빼": Op.SUB,
    "sub": Op.SUB,
    "곱해": Op.MUL,
    "곱": Op.MUL,
    "mul": Op.MUL,
    "나눠": Op.DIV,
    "div": Op.DIV,
    "나머지": Op.MOD,
    "mod": Op.MOD,
    "보여줘": Op.PRINT,
    "출력": Op.PRINT,
    "print": Op.PRINT,
    "복사": Op.DUP,
    "dup": Op.DUP,
    "바꿔": Op.SWAP,
    "swap": Op.SWAP,
    "꺼내": Op.POP,
    "pop": Op.POP,
    "drop": Op.POP,
    "비움": Op.CLEAR,
    "clear": Op.CLEAR,
    "저장해": Op.STORE,
    "store": Op.STORE,
    "불러와": Op.LOAD,
    "load": Op.LOAD,
    "참": Op.TRUE,
    "p": Op.TRUE,
    "모름": Op.UNKNOWN,
    "o": Op.UNKNOWN,
    "거짓": Op.FALSE,
    "t": Op.FALSE,
}

# Trit constants push their signed value so they mix with arithmetic
TRIT_CONSTANTS: dict[Op, int] = {
    Op.TRUE: Trit.SUCCESS.signed,
    Op.UNKNOWN: Trit.PENDING.signed,
    Op.FALSE: Trit.FAILED.signed,
}


def _require_numbers(name: str, a: Any, b: Any) -> None:
    if not (isinstance(a, (int, float)) and isinstance(b, (int, float))):
        raise InterpreterError(f"{name} requires numeric operands")


def _div(a: Any, b: Any) -> Any:
    _require_numbers("div", a, b)
    if b == 0:
        return 0
    if isinstance(a, int) and isinstance(b, int) and a % b == 0:
        return a // b
    return a / b


def _mod(a: Any, b: Any) -> Any:
    _require_numbers("mod", a, b)
    if b == 0:
        return 0
    return a % b


BINARY_OPS: dict[Op, Callable[[Any, Any], Any]] = {
    Op.ADD: lambda a, b: a + b,
    Op.SUB: lambda a, b: a - b,
    Op.MUL: lambda a, b: a * b,
    Op.DIV: _div,
    Op.MOD: _mod,
}


def parse_literal(text: str) -> Any:
    """Parse a push operand as int, float or text (surrounding quotes removed)."""
    if not text:
        raise InterpreterError("push requires a literal")

    try:
        return int(text)
    except ValueError:
        digits = text[1:] if text[0] in "+-" else text
        if digits.isdecimal():
            # int() refuses digit strings beyond sys.get_int_max_str_digits()
            raise InterpreterError("integer literal too large")
    try:
        return float(text)
    except ValueError:
        pass

    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


@dataclass
class InterpreterState:
    """Value stack and symbol table for one evaluation."""

    stack: list[Any] = field(default_factory=list)
    symbols: dict[str, Any] = field(default_factory=dict)

    def pop(self) -> Any:
        """Pop the top value; an empty stack yields 0."""
        if self.stack:
            return self.stack.pop()
        return 0

    def top(self) -> Any:
        return self.stack[-1] if self.stack else None


class LocalInterpreter:
    """Evaluates crowny programs without a remote service."""

    def __init__(self, on_print: Callable[[Any], None] | None = None):
        """Initialize the interpreter.

        Args:
            on_print: Optional sink for values emitted by the print operation
        """
        self._on_print = on_print

    def execute(self, source: str) -> TaskResult:
        """Evaluate a program.

        Never raises: evaluation faults come back as a Failed result whose
        data describes the error.

        Args:
            source: Program text

        Returns:
            Success with the top of stack (None when empty), or Failed
        """
        start = time.monotonic()
        try:
            value = self._evaluate(source)
        except InterpreterError as e:
            logger.warning(f"Local evaluation failed: {e}")
            return TaskResult(state=Trit.FAILED, data=str(e), elapsed_ms=elapsed_ms_since(start))
        except Exception as e:
            logger.warning(f"Local evaluation fault: {type(e).__name__}: {e}")
            return TaskResult(
                state=Trit.FAILED,
                data=f"{type(e).__name__}: {e}",
                elapsed_ms=elapsed_ms_since(start),
            )

        return TaskResult(state=Trit.SUCCESS, data=value, elapsed_ms=elapsed_ms_since(start))

    def _evaluate(self, source: str) -> Any:
        state = InterpreterState()

        for line_no, raw_line in enumerate(source.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith(COMMENT_MARKER):
                continue

            parts = line.split(None, 1)
            token = parts[0]
            operand = parts[1].strip() if len(parts) > 1 else ""

            key = token.lower()
            if key in TERMINATORS:
                break

            op = TOKENS.get(key)
            if op is None:
                raise InterpreterError(f"Line {line_no}: unknown instruction '{token}'")

            logger.debug(f"Line {line_no}: {op.value} {operand!r} stack={state.stack}")
            try:
                self._apply(op, operand, state)
            except InterpreterError as e:
                raise InterpreterError(f"Line {line_no}: {e}") from e

        return state.top()

    def _apply(self, op: Op, operand: str, state: InterpreterState) -> None:
        if op is Op.PUSH:
            state.stack.append(parse_literal(operand))

        elif op in BINARY_OPS:
            b = state.pop()
            a = state.pop()
            state.stack.append(BINARY_OPS[op](a, b))

        elif op in TRIT_CONSTANTS:
            state.stack.append(TRIT_CONSTANTS[op])

        elif op is Op.DUP:
            if state.stack:
                state.stack.append(state.stack[-1])

        elif op is Op.SWAP:
            if len(state.stack) >= 2:
                state.stack[-1], state.stack[-2] = state.stack[-2], state.stack[-1]

        elif op is Op.POP:
            if state.stack:
                state.stack.pop()

        elif op is Op.CLEAR:
            state.stack.clear()

        elif op is Op.STORE:
            if not operand:
                raise InterpreterError("store requires a name")
            state.symbols[operand] = state.pop()

        elif op is Op.LOAD:
            if not operand:
                raise InterpreterError("load requires a name")
            state.stack.append(state.symbols.get(operand))

        elif op is Op.PRINT:
            value = state.top()
            logger.info(f"[crowny] {value}")
            if self._on_print is not None:
                self._on_print(value)
