"""
Verification token issuing
"""
import secrets

TOKEN_BYTES = 32


class TokenIssuer:
    """Issues opaque, URL-safe verification tokens

    Tokens come straight from the OS CSPRNG (hex of 32 random bytes) and are
    never derived from item ids, emails or timestamps.
    """

    def __init__(self, nbytes=TOKEN_BYTES):
        self.nbytes = nbytes

    def issue(self) -> str:
        return secrets.token_hex(self.nbytes)

    def issue_unique(self, exists, max_attempts=5) -> str:
        """Issue a token for which ``exists(token)`` is false"""
        for _ in range(max_attempts):
            token = self.issue()
            if not exists(token):
                return token
        raise RuntimeError(f"Could not issue a unique token after {max_attempts} attempts")
