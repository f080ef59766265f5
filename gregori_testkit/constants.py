"""Shared constants for the Gregori test kit.

Default account values match mock_backend/server.py.
"""

# Identity classes
GENERAL = "general"
ADMIN = "admin"
IDENTITY_CLASSES = (GENERAL, ADMIN)

# Transient headers, stripped before a call reaches the wire
SESSION_KIND_HEADER = "x-session-kind"
SKIP_AUTH_HEADER = "x-skip-auth"

COOKIE_HEADER = "Cookie"
SET_COOKIE_HEADER = "Set-Cookie"

# Endpoints that establish or end a session
SIGNIN_PATH = "/auth/signin"
SIGNOUT_PATH = "/auth/signout"
AUTH_PATHS = (SIGNIN_PATH, SIGNOUT_PATH)
# Sign-in status for an email with no member behind it
MEMBER_NOT_FOUND_STATUS = 404

# Default accounts
GENERAL_EMAIL = "test-general-member@integration.test"
GENERAL_NAME = "일반회원테스트"
ADMIN_EMAIL = "test-admin-member@integration.test"
ADMIN_NAME = "관리자테스트"
MOCK_ADMIN_PASSWORD = "Admin123!@"

# Authorities
GENERAL_AUTHORITY = "GENERAL_MEMBER"
ADMIN_AUTHORITY = "ADMIN_MEMBER"

# Transport
DEFAULT_TIMEOUT = 10.0
