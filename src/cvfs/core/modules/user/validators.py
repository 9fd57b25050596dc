import re

from cvfs.errors import ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


def validate_username(username: str) -> None:
    """Validate username: 1-64 letters, digits, dots, dashes or underscores.

    Raises:
        ValidationError: If the username doesn't meet requirements
    """
    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Username must be 1-64 characters of letters, digits, '.', '-' or '_'")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 2 characters
    - At most 72 bytes, the bcrypt input limit

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 2:
        raise ValidationError("Password must be at least 2 characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
