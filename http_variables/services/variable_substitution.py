"""
Variable substitution service for replacing {{variable}} placeholders.

Placeholders are resolved against a ScopeModel (``{{name}}``) or the built-in
function resolver (``{{$function arg ...}}``). Resolved values are expanded
again, so variables may refer to other variables; self-references and chains
nested more than ten levels deep fail with CircularReference.

``\\{{`` and ``\\}}`` produce literal braces.
"""

import re
from typing import List

from ..exceptions import CircularReference, InvalidSyntax, UndefinedVariable
from .builtin_functions import BuiltinFunctions, resolve_system_variable
from .scopes import ScopeModel


# Pattern to match {{variable_name}} placeholders; names may not contain "}"
VARIABLE_PATTERN = re.compile(r'\{\{([^}]+)\}\}')

MAX_RECURSION_DEPTH = 10

# Private-use code points standing in for escaped braces during a pass
ESCAPED_OPEN = "\ue000"
ESCAPED_CLOSE = "\ue001"


def _hide_escapes(text: str) -> str:
    return text.replace("\\{{", ESCAPED_OPEN).replace("\\}}", ESCAPED_CLOSE)


def _restore_escapes(text: str) -> str:
    return text.replace(ESCAPED_OPEN, "{{").replace(ESCAPED_CLOSE, "}}")


def extract_variables(template: str) -> List[str]:
    """
    Extract all placeholder names from a template string, in order.

    Names are trimmed; escaped placeholders are ignored.

    Example:
        >>> extract_variables("Hello {{ name }}, your id is {{$guid}}")
        ['name', '$guid']
    """
    if not template or "{{" not in template:
        return []

    return [name.strip() for name in VARIABLE_PATTERN.findall(_hide_escapes(template))]


def _resolve_name(name: str, scopes: ScopeModel, functions: BuiltinFunctions | None) -> str:
    if name.startswith("$"):
        parts = name[1:].split()
        if not parts:
            raise InvalidSyntax("Empty system variable name")
        function_name, *args = parts
        if functions is None:
            return resolve_system_variable(function_name, args)
        return functions.call(function_name, args)

    value = scopes.lookup(name)
    if value is None:
        raise UndefinedVariable(name)
    return value


def _substitute(
    text: str,
    scopes: ScopeModel,
    functions: BuiltinFunctions | None,
    depth: int,
    resolving: set[str],
) -> str:
    if "{{" not in text:
        return text

    if depth >= MAX_RECURSION_DEPTH:
        raise CircularReference(
            "Maximum recursion depth exceeded - possible circular reference"
        )

    text = _hide_escapes(text)
    parts: List[str] = []
    last_end = 0

    for match in VARIABLE_PATTERN.finditer(text):
        name = match.group(1).strip()
        parts.append(_restore_escapes(text[last_end:match.start()]))

        if name in resolving:
            raise CircularReference(f"Circular reference detected for variable '{name}'")

        resolving.add(name)
        value = _resolve_name(name, scopes, functions)
        parts.append(_substitute(value, scopes, functions, depth + 1, resolving))
        resolving.discard(name)

        last_end = match.end()

    parts.append(_restore_escapes(text[last_end:]))
    return "".join(parts)


def substitute(
    template: str,
    scopes: ScopeModel,
    functions: BuiltinFunctions | None = None,
) -> str:
    """
    Replace every placeholder in a template with its resolved value.

    Args:
        template: String containing {{variable}} placeholders
        scopes: Snapshot of the variable sources to resolve against
        functions: Built-in function resolver (defaults to the process-wide one)

    Returns:
        The fully substituted string. Text without placeholders is
        returned unchanged.

    Raises:
        VariableError: On the first placeholder that cannot be resolved;
            no partially substituted text is returned

    Example:
        >>> substitute("GET {{baseUrl}}/users", ScopeModel(file={"baseUrl": "http://x"}))
        'GET http://x/users'
    """
    if not template or "{{" not in template:
        return template

    return _substitute(template, scopes, functions, 0, set())


def substitute_dict(
    data: dict[str, str],
    scopes: ScopeModel,
    functions: BuiltinFunctions | None = None,
) -> dict[str, str]:
    """
    Replace placeholders in all values of a dictionary.

    Args:
        data: Dictionary with string values that may contain placeholders
        scopes: Snapshot of the variable sources to resolve against
        functions: Built-in function resolver

    Returns:
        New dictionary with the same keys and substituted values
    """
    if not data:
        return data

    return {key: substitute(value, scopes, functions) for key, value in data.items()}


def find_undefined(template: str, scopes: ScopeModel) -> List[str]:
    """
    List scope variable names referenced by a template that no scope defines.

    Function calls are not checked. Each name is reported once.
    """
    undefined: List[str] = []
    for name in extract_variables(template):
        if name.startswith("$") or name in scopes or name in undefined:
            continue
        undefined.append(name)
    return undefined
