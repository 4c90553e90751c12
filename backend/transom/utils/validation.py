from __future__ import annotations

MIN_PASSWORD_LENGTH = 8

_COMMON_PASSWORDS = frozenset({
    "password", "password1", "password123", "123456", "12345678", "qwerty",
    "admin", "test", "letmein", "transom", "thoughts",
})


def validate_password_strength(password: str, email: str | None = None) -> tuple[bool, str | None]:
    """Check a new account password.

    Returns ``(ok, message)``; the message is shown to the user as is.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not password.strip():
        return False, "Password cannot be only whitespace"

    if password.lower() in _COMMON_PASSWORDS:
        return False, "Password is too weak. Please choose a stronger password."

    if email:
        local_part = email.split("@", 1)[0].lower()
        if len(local_part) >= 4 and local_part in password.lower():
            return False, "Password must not contain your email address"
    return True, None
