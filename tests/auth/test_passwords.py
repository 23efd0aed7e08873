from campus_events.auth.passwords import BCRYPT_ROUNDS, hash_password, verify_password


def test_hash_password_uses_salted_bcrypt_with_cost_ten() -> None:
    first = hash_password('s3cret')
    second = hash_password('s3cret')

    assert first.startswith(f'$2b${BCRYPT_ROUNDS}$')
    assert first != second
    assert 's3cret' not in first


def test_verify_password_accepts_matching_password() -> None:
    hashed = hash_password('s3cret')

    assert verify_password('s3cret', hashed) is True


def test_verify_password_rejects_wrong_password() -> None:
    hashed = hash_password('s3cret')

    assert verify_password('S3cret', hashed) is False


def test_hash_password_handles_passwords_past_the_bcrypt_limit() -> None:
    long_password = 'x' * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True
