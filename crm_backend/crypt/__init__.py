"""
The `crypt` package provides cryptographic utilities that secure
authentication workflows and user data.

Contents
--------
- encrypt_decrypt
    Utility module exposing the `EncryptionDec` class:
        * `hash_password`: hashes plaintext passwords using bcrypt
        * `check_passwords`: verifies a plaintext password against a hashed one
        * `is_valid_password`: password complexity rules (8+, lower, upper, digit, special)
        * `generate_verification_code`: numeric account activation codes
        * `generate_reset_token` / `digest_token`: password reset tokens, stored as SHA-256 digests
"""
