"""Test account descriptor and unique test data generators."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass

# Backend only accepts Hangul names of 2-10 characters
HANGUL_DIGITS = ("영", "일", "이", "삼", "사", "오", "육", "칠", "팔", "구")
MAX_NAME_LENGTH = 10


@dataclass(frozen=True)
class Account:
    email: str
    password: str
    name: str
    member_id: int | None = None


def generate_unique_email(prefix: str = "test") -> str:
    timestamp = int(time.time() * 1000)
    return f"{prefix}-{timestamp}-{secrets.randbelow(10000)}@integration.test"


def generate_unique_name(prefix: str = "테스트") -> str:
    digit = HANGUL_DIGITS[int(time.time() * 1000) % 10]
    return f"{prefix}{digit}"[:MAX_NAME_LENGTH]


def generate_password() -> str:
    """Return a password with two letters, a digit and a symbol (8-15 chars)."""
    return f"Tk{secrets.token_hex(3)}1!"
