"""
Input validators for passwords, usernames and email addresses.

These are deliberately simple character-set checks.  The password rule only
requires *one* letter of either case even though the user-facing message asks
for both cases; that is the long-standing behaviour and existing accounts
rely on it.
"""

import string

PASSWORD_SYMBOLS = "!@#$%^&*()_+`-=[]{}|;':\",./<>?"
# Underscore is allowed in usernames, so it is absent from this set
USERNAME_FORBIDDEN = "!@#$%^&*()+`-=[]{}|;':\",./<>?"

PASSWORD_MIN_LENGTH = 8
USERNAME_MIN_LENGTH = 4


def _contains_any(value: str, chars: str) -> bool:
    return any(c in chars for c in value)


def _has_ascii_letter(value: str) -> bool:
    return _contains_any(value, string.ascii_uppercase) or _contains_any(
        value, string.ascii_lowercase
    )


def _has_blank(value: str) -> bool:
    return " " in value or "\t" in value


def password_valid(password: str) -> bool:
    """>= 8 chars, one symbol, one ASCII letter, no space or tab."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    if not _contains_any(password, PASSWORD_SYMBOLS):
        return False
    if not _has_ascii_letter(password):
        return False
    if _has_blank(password):
        return False
    return True


def username_valid(username: str) -> bool:
    """>= 4 chars, no punctuation except underscore, one ASCII letter, no blanks."""
    if len(username) < USERNAME_MIN_LENGTH:
        return False
    if _contains_any(username, USERNAME_FORBIDDEN):
        return False
    if not _has_ascii_letter(username):
        return False
    if _has_blank(username):
        return False
    return True


def email_validate(email: str) -> tuple[bool, str]:
    """
    Validate and normalize an email address.

    Returns ``(ok, normalized)``.  Only the local part (before the first
    ``@``) is lower-cased; the domain is kept as given.  Callers must use the
    normalized value from here on in place of the input.  On failure the
    input is returned unchanged.

    Rules: non-empty, no ``+`` (sub-addressing is refused so one mailbox
    cannot register several accounts), exactly one ``@``, and a ``.`` in
    the domain part.
    """
    if not email:
        return False, email
    if "+" in email:
        return False, email
    if email.count("@") != 1:
        return False, email
    local, domain = email.split("@", 1)
    if "." not in domain:
        return False, email
    return True, f"{local.lower()}@{domain}"
