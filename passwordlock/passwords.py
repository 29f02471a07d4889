"""Password generation and account password rules."""
import re
import secrets
import string

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

MIN_LENGTH = 8

_RULES = (
    ("At least 8 characters", lambda p: len(p) >= MIN_LENGTH),
    ("At least 1 uppercase letter", lambda p: re.search(r"[A-Z]", p)),
    ("At least 1 lowercase letter", lambda p: re.search(r"[a-z]", p)),
    ("At least 1 number", lambda p: re.search(r"\d", p)),
    ("At least 1 special character", lambda p: re.search(r'[!@#$%^&*(),.?":{}|<>]', p)),
)


def generate_password(length: int = 16) -> str:
    """Random password with at least one character of every class."""
    if length < 4:
        raise ValueError("Generated passwords need at least 4 characters")
    rng = secrets.SystemRandom()
    chars = [
        rng.choice(UPPERCASE),
        rng.choice(LOWERCASE),
        rng.choice(DIGITS),
        rng.choice(SYMBOLS),
    ]
    alphabet = UPPERCASE + LOWERCASE + DIGITS + SYMBOLS
    chars.extend(rng.choice(alphabet) for _ in range(length - len(chars)))
    rng.shuffle(chars)
    return "".join(chars)


def password_problems(password: str) -> list[str]:
    """Return the rules ``password`` violates (empty when it is acceptable)."""
    return [message for message, rule in _RULES if not rule(password)]
