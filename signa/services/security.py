import secrets
import uuid

from flask import current_app
from itsdangerous import URLSafeSerializer


def generate_link_code():
    return uuid.uuid4().hex[:8].upper()


def generate_finalization_key():
    """Six decimal digits, 100000-999999. A confirmation prompt, not a secret."""
    return str(100000 + secrets.randbelow(900000))


def _ballot_serializer(secret_key=None):
    if secret_key is None:
        secret_key = current_app.config["SECRET_KEY"]
    return URLSafeSerializer(secret_key, salt="ballot-signature")


def generate_ballot_signature(commission_id, secret_key=None):
    """Opaque token shared by the ballots of one submission.

    Carries the committee id and a random nonce, nothing about the voter.
    """
    return _ballot_serializer(secret_key).dumps(
        {"c": commission_id, "n": secrets.token_hex(8)}
    )


def read_ballot_signature(token, secret_key=None):
    return _ballot_serializer(secret_key).loads(token)
