# Services package

from .builtin_functions import BuiltinFunctions, clear_dotenv_cache, resolve_system_variable
from .capture import CaptureDirective, CapturePath, PathKind, parse_capture_directive, parse_capture_directives
from .dotenv_cache import DotenvCache
from .response_extractor import ContentType, ResponseSnapshot, apply_captures, extract, extract_response_variable
from .scopes import Environments, NamedEnvironment, ScopeModel, ScopeSource
from .session_store import SessionStore
from .variable_substitution import extract_variables, find_undefined, substitute, substitute_dict

__all__ = [
    "BuiltinFunctions",
    "clear_dotenv_cache",
    "resolve_system_variable",
    "CaptureDirective",
    "CapturePath",
    "PathKind",
    "parse_capture_directive",
    "parse_capture_directives",
    "DotenvCache",
    "ContentType",
    "ResponseSnapshot",
    "apply_captures",
    "extract",
    "extract_response_variable",
    "Environments",
    "NamedEnvironment",
    "ScopeModel",
    "ScopeSource",
    "SessionStore",
    "extract_variables",
    "find_undefined",
    "substitute",
    "substitute_dict",
]
