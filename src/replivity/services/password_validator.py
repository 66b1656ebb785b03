"""
Account password policy

Signup and change-password both run new passwords through the same checks:
length, character classes, a blocklist of common passwords and a check
against the account's own email address.
"""
import re
from typing import List, Optional, Tuple

COMMON_PASSWORDS = {
    "password", "password1", "password123", "passw0rd", "123456", "12345678", "123456789",
    "1234567890", "qwerty", "qwerty123", "abc123", "letmein", "welcome", "welcome1",
    "monkey", "dragon", "football", "baseball", "iloveyou", "trustno1", "sunshine",
    "princess", "admin", "admin123", "login", "master", "shadow", "superman", "batman",
    "michael", "starwars", "whatever", "freedom", "secret", "hello123", "changeme",
    "replivity", "replivity1", "replivity123",
}

# Local parts shorter than this are too generic to match against
MIN_EMAIL_NAME_LENGTH = 4


class PasswordPolicy:
    def __init__(
        self,
        min_length: int = 8,
        max_length: int = 128,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_symbol: bool = False,
        block_common_passwords: bool = True,
        block_email_name: bool = True,
    ):
        self.min_length = min_length
        self.max_length = max_length
        self.require_uppercase = require_uppercase
        self.require_lowercase = require_lowercase
        self.require_digit = require_digit
        self.require_symbol = require_symbol
        self.block_common_passwords = block_common_passwords
        self.block_email_name = block_email_name


class PasswordValidator:
    """
    Checks passwords against a PasswordPolicy

    validate() returns (is_valid, error_message) so routes can attach
    get_requirements_list() to the error they raise.
    """

    def __init__(self, policy: Optional[PasswordPolicy] = None):
        self.policy = policy or PasswordPolicy()

    def _missing_classes(self, password: str) -> List[str]:
        checks = [
            (self.policy.require_uppercase, r"[A-Z]", "one uppercase letter"),
            (self.policy.require_lowercase, r"[a-z]", "one lowercase letter"),
            (self.policy.require_digit, r"\d", "one digit"),
            (self.policy.require_symbol, r"[^A-Za-z0-9]", "one special character"),
        ]
        return [label for required, pattern, label in checks if required and not re.search(pattern, password)]

    def validate(self, password: str, email: Optional[str] = None) -> Tuple[bool, Optional[str]]:
        if not password:
            return False, "Password is required"

        if len(password) < self.policy.min_length:
            return False, f"Password must be at least {self.policy.min_length} characters long"
        if len(password) > self.policy.max_length:
            return False, f"Password must be at most {self.policy.max_length} characters long"

        missing = self._missing_classes(password)
        if len(missing) == 1:
            return False, f"Password must contain at least {missing[0]}"
        if missing:
            return False, f"Password must contain at least {', '.join(missing[:-1])} and {missing[-1]}"

        if self.policy.block_common_passwords and password.lower() in COMMON_PASSWORDS:
            return False, "This password is too common. Please choose a more unique password"

        if self.policy.block_email_name and email:
            name = email.split("@", 1)[0].lower()
            if len(name) >= MIN_EMAIL_NAME_LENGTH and name in password.lower():
                return False, "Password must not contain your email address"

        return True, None

    def get_requirements_list(self) -> List[str]:
        requirements = [f"At least {self.policy.min_length} characters"]
        if self.policy.require_uppercase:
            requirements.append("One uppercase letter (A-Z)")
        if self.policy.require_lowercase:
            requirements.append("One lowercase letter (a-z)")
        if self.policy.require_digit:
            requirements.append("One number (0-9)")
        if self.policy.require_symbol:
            requirements.append("One special character")
        if self.policy.block_common_passwords:
            requirements.append("Not a commonly used password")
        if self.policy.block_email_name:
            requirements.append("Does not contain your email name")
        return requirements


_password_validator: Optional[PasswordValidator] = None


def get_password_validator() -> PasswordValidator:
    global _password_validator
    if _password_validator is None:
        _password_validator = PasswordValidator()
    return _password_validator
