from __future__ import annotations

import re
import secrets
import string

ACTIVATION_CODE_PREFIX = "PK"
ACTIVATION_CODE_PATTERN = re.compile(r"^PK\d{6}[A-Z]{2}$")
_CODE_NORMALIZE_PATTERN = re.compile(r"\s+")


def normalize_activation_code(raw_code: str) -> str:
    return _CODE_NORMALIZE_PATTERN.sub("", raw_code).upper()


def is_valid_activation_code_format(code: str) -> bool:
    return ACTIVATION_CODE_PATTERN.fullmatch(code) is not None


def new_activation_code() -> str:
    digits = "".join(secrets.choice(string.digits) for _ in range(6))
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(2))
    return f"{ACTIVATION_CODE_PREFIX}{digits}{letters}"


def code_log_prefix(code: str) -> str:
    """Leading characters of a code, safe to put in logs."""
    return code[:4]
