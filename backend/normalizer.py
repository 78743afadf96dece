import re

# Matches: DEPT NNN, DEPT-NNN, DEPTNNN, CSE 220, MAT 216, ENG 101L, etc.
CANONICAL = re.compile(r'^([A-Za-z]{2,6})\s*[-]?\s*(\d{3,4}[A-Za-z]?)$')


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course code to canonical 'DEPT NNN' format.
    Handles: 'cse220', 'CSE-220', 'CSE 220', 'MAT 216', 'PHY 111L'
    Returns None if the string cannot be parsed as a course code.
    """
    if not raw or not str(raw).strip():
        return None
    m = CANONICAL.match(str(raw).strip())
    if m:
        dept = m.group(1).upper()
        num = m.group(2).upper()
        return f"{dept} {num}"
    return None
