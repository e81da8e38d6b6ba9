"""
Built-in ``{{$function ...}}`` resolution.

Supported functions:
- ``$guid``: random UUID v4
- ``$timestamp [offset unit]``: Unix time in seconds
- ``$datetime rfc1123|iso8601 [offset unit]``: formatted UTC date
- ``$randomInt min max``: inclusive random integer
- ``$processEnv NAME`` / ``$processEnv %NAME``: process environment variable
- ``$dotenv NAME``: value from the nearest .env file

Offsets are a signed integer followed by a unit: ``s``, ``m``, ``h`` or ``d``.
"""

import os
import random
import re
import uuid
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from enum import Enum
from typing import Callable, Sequence

from ..config import get_settings
from ..exceptions import (
    EnvVarNotFound,
    InvalidOffset,
    InvalidSyntax,
    UndefinedVariable,
)
from .dotenv_cache import DotenvCache


INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')

OFFSET_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


class SystemFunction(str, Enum):
    """Names of the built-in functions, without the leading ``$``."""
    GUID = "guid"
    TIMESTAMP = "timestamp"
    DATETIME = "datetime"
    RANDOM_INT = "randomInt"
    PROCESS_ENV = "processEnv"
    DOTENV = "dotenv"


class DatetimeFormat(str, Enum):
    RFC1123 = "rfc1123"
    ISO8601 = "iso8601"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_integer(value: str) -> int | None:
    """Parse an optionally signed decimal integer, or return None."""
    if not INTEGER_PATTERN.match(value):
        return None
    return int(value)


def parse_offset(args: Sequence[str]) -> timedelta:
    """
    Parse ``<signed-int> <unit>`` offset arguments into a timedelta.

    Example:
        >>> parse_offset(["-1", "d"])
        datetime.timedelta(days=-1)

    Raises:
        InvalidOffset: On a missing unit, a non-integer amount or an unknown unit
    """
    if len(args) < 2:
        raise InvalidOffset("Offset requires number and unit (e.g., '-1 d' or '+2 h')")

    number_str, unit = args[0], args[1]
    number = parse_integer(number_str)
    if number is None:
        raise InvalidOffset(f"Invalid number: {number_str}")

    if unit not in OFFSET_UNITS:
        raise InvalidOffset(f"Invalid unit: {unit}. Use 's', 'm', 'h', or 'd'")

    try:
        return timedelta(**{OFFSET_UNITS[unit]: number})
    except OverflowError:
        raise InvalidOffset(f"Offset out of range: {number_str} {unit}") from None


def format_rfc1123(moment: datetime) -> str:
    """Render e.g. ``Mon, 19 Oct 2026 08:30:00 +0000``."""
    return format_datetime(moment)


def format_iso8601(moment: datetime) -> str:
    """Render e.g. ``2026-10-19T08:30:00.000Z``."""
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class BuiltinFunctions:
    """
    Dispatcher for built-in functions.

    The dotenv cache and the clock are injected so tests can substitute
    their own.
    """

    def __init__(
        self,
        dotenv_cache: DotenvCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.dotenv_cache = dotenv_cache if dotenv_cache is not None else default_dotenv_cache
        self.clock = clock
        self._handlers: dict[SystemFunction, Callable[[Sequence[str]], str]] = {
            SystemFunction.GUID: self.resolve_guid,
            SystemFunction.TIMESTAMP: self.resolve_timestamp,
            SystemFunction.DATETIME: self.resolve_datetime,
            SystemFunction.RANDOM_INT: self.resolve_random_int,
            SystemFunction.PROCESS_ENV: self.resolve_process_env,
            SystemFunction.DOTENV: self.resolve_dotenv,
        }

    def call(self, name: str, args: Sequence[str] = ()) -> str:
        """
        Resolve a built-in function by name (without ``$``).

        Raises:
            UndefinedVariable: If no built-in function has this name
        """
        try:
            function = SystemFunction(name)
        except ValueError:
            raise UndefinedVariable(name) from None
        return self._handlers[function](args)

    def _shifted_now(self, offset_args: Sequence[str]) -> datetime:
        now = self.clock()
        if not offset_args:
            return now
        offset = parse_offset(offset_args)
        try:
            return now + offset
        except OverflowError:
            raise InvalidOffset(
                f"Offset out of range: {offset_args[0]} {offset_args[1]}"
            ) from None

    def resolve_guid(self, args: Sequence[str]) -> str:
        return str(uuid.uuid4())

    def resolve_timestamp(self, args: Sequence[str]) -> str:
        return str(int(self._shifted_now(args).timestamp()))

    def resolve_datetime(self, args: Sequence[str]) -> str:
        if not args:
            raise InvalidSyntax("datetime requires format argument (rfc1123 or iso8601)")

        moment = self._shifted_now(args[1:])
        try:
            fmt = DatetimeFormat(args[0])
        except ValueError:
            raise InvalidSyntax(
                f"Unknown datetime format: {args[0]}. Use 'rfc1123' or 'iso8601'"
            ) from None

        if fmt is DatetimeFormat.RFC1123:
            return format_rfc1123(moment)
        return format_iso8601(moment)

    def resolve_random_int(self, args: Sequence[str]) -> str:
        if len(args) < 2:
            raise InvalidSyntax("randomInt requires min and max arguments")

        low = parse_integer(args[0])
        if low is None:
            raise InvalidSyntax(f"Invalid min value: {args[0]}")
        high = parse_integer(args[1])
        if high is None:
            raise InvalidSyntax(f"Invalid max value: {args[1]}")

        if low > high:
            raise InvalidSyntax(f"min ({low}) cannot be greater than max ({high})")

        return str(random.randint(low, high))

    def resolve_process_env(self, args: Sequence[str]) -> str:
        if not args:
            raise InvalidSyntax("processEnv requires variable name")

        name = args[0]
        optional = name.startswith("%")
        if optional:
            name = name[1:]

        value = os.environ.get(name)
        if value is not None:
            return value
        if optional:
            return ""
        raise EnvVarNotFound(name)

    def resolve_dotenv(self, args: Sequence[str]) -> str:
        if not args:
            raise InvalidSyntax("dotenv requires variable name")

        value = self.dotenv_cache.get(args[0])
        if value is None:
            raise EnvVarNotFound(args[0])
        return value


default_dotenv_cache = DotenvCache(max_parents=get_settings().dotenv_search_parents)

_default_functions = BuiltinFunctions(default_dotenv_cache)


def resolve_system_variable(name: str, args: Sequence[str] = ()) -> str:
    """Resolve a built-in function using the process-wide dotenv cache."""
    return _default_functions.call(name, args)


def clear_dotenv_cache() -> None:
    """Forget the process-wide .env contents (e.g. after the file changes)."""
    default_dotenv_cache.clear()
