"""Derivation of name patterns from VM names.

A name pattern summarizes a naming convention: the capture groups of the
full pattern are kept literally and everything between them is replaced
by the infix fragment. With the default template the name ``usweb01db``
yields ``^us.+db$``. Captured text is escaped, so with templates shaped
like the default the pattern fully matches the names it came from and can
be fed back into the placement check.
"""

import re
from typing import Iterable, Optional, Set

from oneinv.core.regex import compile_pattern
from oneinv.schemas.inventory import PatternTemplate


def _assemble(match: re.Match, prefix: str, infix: str, suffix: str) -> str:
    groups = [re.escape(group or "") for group in match.groups()]
    return prefix + infix.join(groups) + suffix


def extract_pattern(
    name: str, full_pattern: str, prefix: str, infix: str, suffix: str
) -> Optional[str]:
    """Derive the name pattern of a single VM name.

    Args:
        name: VM name
        full_pattern: Regular expression with capture groups
        prefix: Fragment placed before the first group
        infix: Fragment placed between groups
        suffix: Fragment placed after the last group

    Returns:
        The pattern, or None when the name does not match ``full_pattern``

    Raises:
        InvalidPatternError: If ``full_pattern`` does not compile
    """
    match = compile_pattern(full_pattern).search(name)
    if match is None:
        return None
    return _assemble(match, prefix, infix, suffix)


def extract_patterns(names: Iterable[str], template: PatternTemplate) -> Set[str]:
    """Derive the distinct name patterns of a collection of VM names.

    Names that do not match the template are skipped.
    """
    regex = compile_pattern(template.full_pattern)
    patterns = set()
    for name in names:
        match = regex.search(name)
        if match is not None:
            patterns.add(
                _assemble(match, template.prefix, template.infix, template.suffix)
            )
    return patterns
