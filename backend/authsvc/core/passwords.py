from passlib.hash import argon2

# Verified against when the email is unknown, so a miss costs the same as a hit
_DUMMY_HASH = argon2.hash("not-a-real-password")


def hash_password(password: str) -> str:
    """Hash plain password with Argon2."""
    return argon2.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password or not hashed_password.startswith("$argon2"):
        return False
    try:
        return argon2.verify(plain_password, hashed_password)
    except ValueError:
        return False


def burn_verify(plain_password: str) -> bool:
    """Run a verification against a throwaway hash and always fail."""
    argon2.verify(plain_password, _DUMMY_HASH)
    return False
