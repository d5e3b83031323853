"""Password hashing and one-time code helpers."""

import secrets

import bcrypt


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash ``password`` with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_otp(digits: int = 6) -> str:
    """Return a zero-padded numeric code from the OS CSPRNG."""
    return f"{secrets.randbelow(10**digits):0{digits}d}"
