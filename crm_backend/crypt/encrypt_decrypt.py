import bcrypt
import hashlib
import re
import secrets
import string


class EncryptionDec:
    """
    Utility class for password hashing, validation, and one-time secrets.

    Methods
    -------
    hash_password(text: str) -> str
        Hashes a plaintext password using bcrypt with a generated salt.
    check_passwords(plain_text: str, passwd: str) -> bool
        Verifies a plaintext password against a hashed password.
    is_valid_password(password: str) -> bool
        Validates that a password meets security requirements.
    generate_verification_code(length: int = 6) -> str
        Generates a numeric one-time code (account activation).
    generate_reset_token() -> tuple[str, str]
        Generates a password reset token and the digest that gets stored.
    digest_token(token: str) -> str
        SHA-256 hex digest used to look a reset token up.
    """

    def hash_password(self, text: str) -> str:
        """
        Hash a plaintext password using bcrypt.

        Parameters
        ----------
        text : str
            The plaintext password.

        Returns
        -------
        str
            The bcrypt-hashed password (UTF-8 decoded).
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(text.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """
        Verify if a plaintext password matches a hashed password.
        """
        return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))

    def is_valid_password(self, password: str) -> bool:
        """
        Validate that a password meets security complexity rules.

        Notes
        -----
        - Minimum length: 8 characters
        - Must contain at least:
          - one lowercase letter
          - one uppercase letter
          - one digit
          - one special character (!@#$%^&*(),.?":{}|<>)
        """
        if len(password) < 8:
            return False

        has_lower = re.search(r"[a-z]", password)
        has_upper = re.search(r"[A-Z]", password)
        has_digit = re.search(r"\d", password)
        has_special = re.search(r"[!@#$%^&*(),.?\":{}|<>]", password)

        return all([has_lower, has_upper, has_digit, has_special])

    def generate_verification_code(self, length: int = 6) -> str:
        """
        Generate a numeric verification code of specified length.

        Example
        -------
        >>> enc = EncryptionDec()
        >>> enc.generate_verification_code()
        '493027'
        """
        return "".join(secrets.choice(string.digits) for _ in range(length))

    def generate_reset_token(self) -> tuple:
        """
        Generate a password reset token.

        Returns
        -------
        tuple[str, str]
            ``(token, digest)``: the token goes into the emailed link, only the
            digest is persisted.
        """
        token = secrets.token_hex(20)
        return token, self.digest_token(token)

    def digest_token(self, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
