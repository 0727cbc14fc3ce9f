"""
``{}``-placeholder message formatting.

Placeholders are substituted positionally::

    >>> format_message("closing {} of {}", 2, 5)
    'closing 2 of 5'

``\\{}`` produces a literal ``{}`` without consuming an argument, and
``\\\\{}`` produces a backslash followed by the substituted argument.
Placeholders without a matching argument are left as they are.
"""
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from .logging_config import get_logger

logger = get_logger(__name__)

DELIM_START = '{'
DELIM_STR = '{}'
ESCAPE_CHAR = '\\'


@dataclass(frozen=True)
class FormattedMessage:
    """Result of formatting a pattern."""
    message: Optional[str]
    args: Sequence[Any] = ()
    throwable: Optional[BaseException] = None


def _throwable_candidate(args: Sequence[Any]) -> Optional[BaseException]:
    if args and isinstance(args[-1], BaseException):
        return args[-1]
    return None


def _render(arg: Any) -> str:
    try:
        return str(arg)
    except Exception as e:
        logger.warning(f"Failed to render message argument of type {type(arg).__name__}: {e}")
        return '[FAILED str()]'


def _is_escaped(pattern: str, index: int) -> bool:
    return index >= 1 and pattern[index - 1] == ESCAPE_CHAR


def _is_double_escaped(pattern: str, index: int) -> bool:
    return index >= 2 and pattern[index - 2] == ESCAPE_CHAR


def array_format(pattern: Optional[str], args: Optional[Sequence[Any]] = None) -> FormattedMessage:
    """
    Substitute ``args`` into the ``{}`` placeholders of ``pattern``.

    A trailing exception argument that no placeholder consumes is returned as
    ``throwable`` instead of being rendered.

    Args:
        pattern: Message pattern, may be None
        args: Positional arguments for the placeholders

    Returns:
        FormattedMessage with the rendered text
    """
    args = tuple(args or ())
    throwable = _throwable_candidate(args)

    if pattern is None:
        return FormattedMessage(None, args, throwable)
    if not args:
        return FormattedMessage(pattern, args, None)

    parts = []
    i = 0
    arg_index = 0
    while arg_index < len(args):
        j = pattern.find(DELIM_STR, i)
        if j == -1:
            break

        if _is_escaped(pattern, j):
            if _is_double_escaped(pattern, j):
                # "\\{}": keep one backslash, then substitute
                parts.append(pattern[i:j - 1])
                parts.append(_render(args[arg_index]))
                arg_index += 1
                i = j + 2
            else:
                # "\{}": literal placeholder
                parts.append(pattern[i:j - 1])
                parts.append(DELIM_START)
                i = j + 1
        else:
            parts.append(pattern[i:j])
            parts.append(_render(args[arg_index]))
            arg_index += 1
            i = j + 2

    parts.append(pattern[i:])

    if arg_index < len(args):
        return FormattedMessage(''.join(parts), args, throwable)
    return FormattedMessage(''.join(parts), args, None)


def format_message(pattern: Optional[str], *args: Any) -> Optional[str]:
    """Format ``pattern`` with positional ``args``."""
    return array_format(pattern, args).message
