"""Regular expression helpers shared by the model and the services."""

import re

from oneinv.core.exceptions import InvalidPatternError


def compile_pattern(pattern: str) -> re.Pattern:
    """Compile a user supplied regular expression.

    Args:
        pattern: Regular expression source

    Returns:
        Compiled pattern

    Raises:
        InvalidPatternError: If the expression does not compile
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e
