import bcrypt

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    # bcrypt only ever looked at the first 72 bytes; newer releases refuse longer input.
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(_encode(password), hashed.encode("utf-8"))
