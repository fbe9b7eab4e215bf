"""
Encryption utilities for Escola Gestão
Keeps generated staff passwords recoverable for the school admin
"""

import base64
import logging
import os

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

# Development key; production deployments must set ENCRYPTION_KEY
DEV_KEY = 'q0Zf6n1mJ8sTt2o3b5Kc3v7WnY4x9Ql1aH0pR6uE2dI='

class PasswordEncryption:
    """Handle password encryption and decryption"""

    def __init__(self, key=None):
        key = key or os.environ.get('ENCRYPTION_KEY')
        if not key:
            key = DEV_KEY
            logger.warning("ENCRYPTION_KEY not set, using development key")

        if isinstance(key, str):
            key = key.encode()

        self.cipher_suite = Fernet(key)

    def encrypt_password(self, password):
        """Encrypt a password for storage"""
        encrypted_password = self.cipher_suite.encrypt(password.encode())
        return base64.urlsafe_b64encode(encrypted_password).decode()

    def decrypt_password(self, encrypted_password):
        """Decrypt a stored password, None when the ciphertext is unusable"""
        try:
            encrypted_bytes = base64.urlsafe_b64decode(encrypted_password.encode())
            return self.cipher_suite.decrypt(encrypted_bytes).decode()
        except (InvalidToken, ValueError) as e:
            logger.error("Error decrypting password: %s", e)
            return None

# Global instance
password_encryptor = PasswordEncryption()
