"""
Utility functions for restpipe.

Includes:
- Case conversion (PascalCase -> snake_case)
- Pluralization of model names for default route paths
- Path pattern normalization (":id" -> "{id}")
"""

from __future__ import annotations

import re


# Pre-compiled regex patterns for better performance
_CAMEL_TO_SNAKE_PATTERN = re.compile(r'(?<!^)(?=[A-Z])')
_COLON_PARAM_PATTERN = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')
_BRACE_PARAM_PATTERN = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)\}')


def to_snake_case(name: str) -> str:
    """
    Convert camelCase or PascalCase to snake_case.

    Examples:
        BlogPost -> blog_post
        HTTPResponse -> http_response
    """
    result = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    result = _CAMEL_TO_SNAKE_PATTERN.sub('_', result)
    return result.lower()


def pluralize(word: str) -> str:
    """
    Pluralize an English noun, good enough for resource names.

    Examples:
        user -> users
        category -> categories
        box -> boxes
        address -> addresses
        key -> keys
    """
    if not word:
        return word
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def resource_path(model_name: str) -> str:
    """
    Default collection path for a model.

    Examples:
        "User" -> "/users"
        "Category" -> "/categories"
        "BlogPost" -> "/blog_posts"
    """
    words = to_snake_case(model_name).split("_")
    words[-1] = pluralize(words[-1])
    return "/" + "_".join(words)


def normalize_path(path: str) -> str:
    """
    Normalize a route path pattern.

    ":id" style segments become "{id}", a leading slash is enforced and a
    trailing slash is dropped (except for the root path).
    """
    path = _COLON_PARAM_PATTERN.sub(r'{\1}', path.strip())
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def compile_path(path: str) -> re.Pattern:
    """Compile a normalized path pattern to a regex with named groups."""
    parts = _BRACE_PARAM_PATTERN.split(path)
    # split() alternates literal text and parameter names
    regex = ""
    for index, part in enumerate(parts):
        if index % 2:
            regex += f"(?P<{part}>[^/]+)"
        else:
            regex += re.escape(part)
    return re.compile(f"^{regex}/?$")
