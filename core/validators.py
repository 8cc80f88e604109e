"""
core/validators.py -- Sign-up field rules.

Pure predicates, no I/O. AccountService calls them in a fixed order so the
first failing rule decides the error message the caller sees.

Email pattern: local part is either a run of non-special characters (dots only
between runs) or a quoted string; domain is either a bracketed IPv4 literal or
dot-separated labels ending in an alphabetic TLD of 2+ characters.

Password pattern: 6-20 characters with at least one digit, one lowercase and
one uppercase letter, and no more than 72 bytes once UTF-8 encoded so bcrypt
can hash it.
"""

import re

EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))'
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)

PASSWORD_PATTERN = re.compile(r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z]).{6,20}$")

# bcrypt refuses inputs longer than this many bytes.
PASSWORD_MAX_BYTES = 72

NAME_MIN_LENGTH = 3
BIO_MAX_LENGTH = 250


def is_valid_email(email: str) -> bool:
    # fullmatch: "$" alone would accept a trailing newline.
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_strong_password(password: str) -> bool:
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return PASSWORD_PATTERN.fullmatch(password) is not None


def is_valid_name(name: str) -> bool:
    return len(name.strip()) >= NAME_MIN_LENGTH


def passwords_match(password: str, confirmation: str) -> bool:
    return password == confirmation
