import os
import re
import shlex
from typing import List, Mapping, Optional, Tuple

_VARIABLE_PATTERN = re.compile(r"\$(?:\{([A-Za-z_][A-Za-z0-9_.]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def expand_variables(text: str, env: Optional[Mapping[str, str]] = None) -> str:
    """
    Expand ``$VAR`` and ``${VAR}`` references against ``env`` (defaults to the
    process environment). Unknown variables are left as written.
    """
    variables = os.environ if env is None else env

    def replace_match(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        if name in variables:
            return variables[name]
        return match.group(0)

    return _VARIABLE_PATTERN.sub(replace_match, text)


def parse_property_pairs(text: Optional[str]) -> List[Tuple[str, str]]:
    """
    Split ``key=value`` text into pairs, order preserved.

    Tokens follow POSIX shell quoting so values may carry spaces
    (``msg="hello world"``). A token without ``=`` becomes a key with an empty
    value.
    """
    if text is None or not text.strip():
        return []

    try:
        tokens = shlex.split(text)
    except ValueError as exc:
        raise ValueError(f"Unable to parse properties '{text}': {exc}") from exc

    pairs: List[Tuple[str, str]] = []
    for token in tokens:
        key, separator, value = token.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"Property '{token}' has no key.")
        pairs.append((key, value if separator else ""))
    return pairs


def definition_arguments(
    text: Optional[str],
    env: Optional[Mapping[str, str]] = None,
    prefix: str = "-D",
) -> List[str]:
    """Expand ``text`` against ``env`` and turn every pair into a ``-Dkey=value`` argument."""
    if text is None or not text.strip():
        return []

    expanded = expand_variables(text, env)
    return [f"{prefix}{key}={value}" for key, value in parse_property_pairs(expanded)]
