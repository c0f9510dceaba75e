"""Bearer token helpers."""

import hashlib
from dataclasses import dataclass
from secrets import token_urlsafe

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError

TOKEN_PREFIX = "erp"

password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Freshly minted token and its stored forms.

    Attributes
    ----------
    plaintext : str
        Token shown to the caller exactly once.
    token_hash : str
        Argon2 hash persisted for verification.
    token_lookup : str
        SHA-256 digest persisted for indexed lookup.
    """

    plaintext: str
    token_hash: str
    token_lookup: str


def issue_token() -> IssuedToken:
    """Mint a new user token.

    Returns
    -------
    IssuedToken
        Plaintext token with its hash and lookup digest.
    """
    plaintext = f"{TOKEN_PREFIX}_{token_urlsafe(24)}"
    return IssuedToken(
        plaintext=plaintext,
        token_hash=password_hasher.hash(plaintext),
        token_lookup=lookup_hash(plaintext),
    )


def lookup_hash(token: str) -> str:
    """Compute the non-secret digest used to find a token row.

    Parameters
    ----------
    token : str
        Raw token.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(token: str, token_hash: str) -> bool:
    """Check a raw token against its stored Argon2 hash.

    Parameters
    ----------
    token : str
        Raw token.
    token_hash : str
        Stored token hash.

    Returns
    -------
    bool
        Whether the token matches.
    """
    try:
        return password_hasher.verify(token_hash, token)
    except VerificationError:
        return False
