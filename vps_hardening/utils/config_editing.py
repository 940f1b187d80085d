"""
Targeted key rewrites for line-oriented configuration files.

Every setter works on the file text and returns new text. A setter rewrites
the existing line for its key instead of appending another one, so running it
twice gives the same text as running it once.
"""

import re
from typing import List, Optional, Tuple

_COMMENT_PREFIXES = ('#', ';')


def _split(content: str) -> Tuple[List[str], bool]:
    """Split text into lines, remembering whether it ended with a newline."""
    return content.splitlines(), content.endswith('\n') or not content


def _join(lines: List[str], trailing_newline: bool) -> str:
    text = '\n'.join(lines)
    if trailing_newline and lines:
        text += '\n'
    return text


# --- sshd_config ------------------------------------------------------------

def _sshd_key_pattern(key: str) -> re.Pattern:
    return re.compile(r'^\s*' + re.escape(key) + r'(?:\s+|\s*=\s*)(.*?)\s*$', re.IGNORECASE)


def _sshd_commented_pattern(key: str) -> re.Pattern:
    return re.compile(r'^\s*#\s*' + re.escape(key) + r'\b', re.IGNORECASE)


_MATCH_BLOCK = re.compile(r'^\s*Match\s', re.IGNORECASE)


def _global_section_end(lines: List[str]) -> int:
    """Index of the first Match block; directives after it are conditional."""
    for i, line in enumerate(lines):
        if _MATCH_BLOCK.match(line):
            return i
    return len(lines)


def get_directive(content: str, key: str) -> Optional[str]:
    """
    Effective global value of an sshd directive.

    sshd keeps the first value it reads, so the first active occurrence
    before any Match block wins.

    Args:
        content: sshd_config text
        key: Directive name (case-insensitive)

    Returns:
        Optional[str]: The value, or None if the directive is not set
    """
    lines, _ = _split(content)
    pattern = _sshd_key_pattern(key)
    for line in lines[:_global_section_end(lines)]:
        match = pattern.match(line)
        if match:
            return match.group(1)
    return None


def set_directive(content: str, key: str, value: str) -> str:
    """
    Set a global sshd directive to exactly one active line.

    The first active line is rewritten and later active duplicates removed;
    failing that, the first commented-out line is replaced; failing that,
    the directive is added before any Match block.
    """
    lines, trailing = _split(content)
    end = _global_section_end(lines)
    wanted = f"{key} {value}"
    pattern = _sshd_key_pattern(key)

    active = [i for i in range(end) if pattern.match(lines[i])]
    if active:
        lines[active[0]] = wanted
        for i in reversed(active[1:]):
            del lines[i]
        return _join(lines, trailing)

    commented = _sshd_commented_pattern(key)
    for i in range(end):
        if commented.match(lines[i]):
            lines[i] = wanted
            return _join(lines, trailing)

    lines.insert(end, wanted)
    return _join(lines, True)


# --- INI (fail2ban jail.local) ----------------------------------------------

_SECTION = re.compile(r'^\s*\[([^\]]+)\]\s*$')


def _ini_key_pattern(key: str) -> re.Pattern:
    return re.compile(r'^\s*' + re.escape(key) + r'\s*[=:]\s*(.*?)\s*$')


def _section_bounds(lines: List[str], section: str) -> Optional[Tuple[int, int]]:
    """(header index, end index) of a section, or None if absent."""
    start = None
    for i, line in enumerate(lines):
        match = _SECTION.match(line)
        if not match:
            continue
        if start is not None:
            return start, i
        if match.group(1).strip() == section:
            start = i
    if start is None:
        return None
    return start, len(lines)


def get_ini_option(content: str, section: str, key: str) -> Optional[str]:
    """Value of the first active key in a section."""
    lines, _ = _split(content)
    bounds = _section_bounds(lines, section)
    if bounds is None:
        return None

    pattern = _ini_key_pattern(key)
    for line in lines[bounds[0] + 1:bounds[1]]:
        match = pattern.match(line)
        if match:
            return match.group(1)
    return None


def set_ini_option(content: str, section: str, key: str, value: str) -> str:
    """
    Set ``key = value`` inside a section, creating the section if needed.

    Existing active lines for the key are rewritten (duplicates within the
    section removed); otherwise the line is added after the section's last
    active option. Other sections are left untouched.
    """
    lines, trailing = _split(content)
    wanted = f"{key} = {value}"
    bounds = _section_bounds(lines, section)

    if bounds is None:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend([f"[{section}]", wanted])
        return _join(lines, True)

    start, end = bounds
    pattern = _ini_key_pattern(key)
    active = [i for i in range(start + 1, end) if pattern.match(lines[i])]
    if active:
        lines[active[0]] = wanted
        for i in reversed(active[1:]):
            del lines[i]
        return _join(lines, trailing)

    insert_at = start + 1
    for i in range(start + 1, end):
        stripped = lines[i].strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue
        if lines[i][0].isspace():
            # continuation of a multi-line value
            if insert_at == i:
                insert_at = i + 1
            continue
        insert_at = i + 1
    lines.insert(insert_at, wanted)
    return _join(lines, trailing)


# --- apt.conf ---------------------------------------------------------------

def _apt_key_pattern(key: str) -> re.Pattern:
    return re.compile(r'^(\s*)' + re.escape(key) + r'\s+"([^"]*)"\s*;')


def _apt_commented_pattern(key: str) -> re.Pattern:
    return re.compile(r'^(\s*)//\s*' + re.escape(key) + r'\s')


def get_apt_option(content: str, key: str) -> Optional[str]:
    """Unquoted value of the first active apt.conf option."""
    pattern = _apt_key_pattern(key)
    for line in content.splitlines():
        match = pattern.match(line)
        if match:
            return match.group(2)
    return None


def set_apt_option(content: str, key: str, value: str) -> str:
    """
    Set an apt.conf option to ``key "value";``.

    Rewrites the first active line, else uncomments the first ``//`` line for
    the key, else appends. All other lines are left as they are.
    """
    lines, trailing = _split(content)

    pattern = _apt_key_pattern(key)
    active = [i for i, line in enumerate(lines) if pattern.match(line)]
    if active:
        indent = pattern.match(lines[active[0]]).group(1)
        lines[active[0]] = f'{indent}{key} "{value}";'
        for i in reversed(active[1:]):
            del lines[i]
        return _join(lines, trailing)

    commented = _apt_commented_pattern(key)
    for i, line in enumerate(lines):
        match = commented.match(line)
        if match:
            lines[i] = f'{match.group(1)}{key} "{value}";'
            return _join(lines, trailing)

    lines.append(f'{key} "{value}";')
    return _join(lines, True)
