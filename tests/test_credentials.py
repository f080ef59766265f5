"""Tests for cookie extraction, the credential store and the interceptor."""

import pytest
from multidict import CIMultiDict

from gregori_testkit.constants import ADMIN, GENERAL
from gregori_testkit.credentials import (
    Call,
    CredentialInterceptor,
    CredentialStore,
    extract_credential_value,
    format_credential,
)


pytestmark = pytest.mark.unit


def make_call(url: str = "/member", **headers) -> Call:
    return Call(method="GET", url=url, headers=CIMultiDict(headers))


class TestExtractCredentialValue:
    def test_strips_attributes(self):
        assert extract_credential_value("sid=abc123; Path=/; HttpOnly") == "sid=abc123"

    def test_empty_string_is_none(self):
        assert extract_credential_value("") is None

    def test_none_is_none(self):
        assert extract_credential_value(None) is None

    def test_joins_multiple_values(self):
        raw = ["sid=a; Path=/", "other=b; Secure"]
        assert extract_credential_value(raw) == "sid=a; other=b"

    def test_skips_malformed_values(self):
        assert extract_credential_value(["garbage", "sid=a; Path=/"]) == "sid=a"

    def test_only_malformed_values_is_none(self):
        assert extract_credential_value(["; Path=/", "=value"]) is None


class TestFormatCredential:
    def test_clean_pair_unchanged(self):
        assert format_credential("sid=abc123") == "sid=abc123"

    def test_joined_pairs_unchanged(self):
        assert format_credential("sid=a; other=b") == "sid=a; other=b"

    def test_raw_set_cookie_is_reduced(self):
        assert format_credential("sid=abc; path=/; secure") == "sid=abc"

    def test_value_containing_attribute_word_unchanged(self):
        """Only attribute names count, not words inside values."""
        assert format_credential("sid=secure-path") == "sid=secure-path"


class TestCredentialStore:
    def test_starts_empty_with_general_active(self, store):
        assert store.active == GENERAL
        assert store.get() is None
        assert store.get(ADMIN) is None

    def test_set_replaces_and_clears(self, store):
        store.set(GENERAL, "sid=one")
        store.set(GENERAL, "sid=two")
        assert store.get(GENERAL) == "sid=two"
        store.set(GENERAL, None)
        assert store.get(GENERAL) is None

    def test_get_uses_active_identity(self, store):
        store.set(ADMIN, "sid=admin")
        store.set_active(ADMIN)
        assert store.get() == "sid=admin"
        store.set_active(None)
        assert store.get() is None

    def test_fallback_applies_to_general_until_set(self):
        store = CredentialStore(fallback="sid=env")
        assert store.get(GENERAL) == "sid=env"
        assert store.get(ADMIN) is None
        store.set(GENERAL, None)
        assert store.get(GENERAL) is None
        store.forget(GENERAL)
        assert store.get(GENERAL) == "sid=env"

    def test_clear_empties_every_identity(self):
        store = CredentialStore(fallback="sid=env")
        store.set(ADMIN, "sid=admin")
        store.clear()
        assert store.get(GENERAL) is None
        assert store.get(ADMIN) is None

    def test_unknown_identity_rejected(self, store):
        with pytest.raises(ValueError):
            store.set("seller", "sid=x")
        with pytest.raises(ValueError):
            store.set_active("seller")


class TestCredentialInterceptor:
    def test_attaches_general_cookie(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        out = interceptor(make_call())
        assert out.headers["Cookie"] == "sid=abc123"
        assert out.identity == GENERAL

    def test_cleared_token_passes_through(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        store.set(GENERAL, None)
        out = interceptor(make_call())
        assert "Cookie" not in out.headers

    def test_does_not_mutate_input_call(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        call = make_call(**{"x-session-kind": "general"})
        interceptor(call)
        assert "Cookie" not in call.headers
        assert "x-session-kind" in call.headers

    @pytest.mark.parametrize("url", ["/auth/signin", "http://api.test/auth/signin", "/auth/signout/"])
    def test_auth_endpoints_never_get_a_cookie(self, store, interceptor, url):
        store.set(GENERAL, "sid=stale")
        out = interceptor(make_call(url))
        assert "Cookie" not in out.headers

    @pytest.mark.parametrize("name", ["Cookie", "cookie", "COOKIE"])
    def test_explicit_cookie_wins(self, store, interceptor, name):
        store.set(GENERAL, "sid=stored")
        out = interceptor(make_call(**{name: "sid=explicit"}))
        assert out.headers.getall("Cookie") == ["sid=explicit"]

    @pytest.mark.parametrize("flag", [True, "true"])
    def test_skip_header_opts_out_and_is_stripped(self, store, interceptor, flag):
        store.set(GENERAL, "sid=abc123")
        out = interceptor(make_call(**{"x-skip-auth": flag}))
        assert "Cookie" not in out.headers
        assert "x-skip-auth" not in out.headers
        assert out.skip_auth is True

    def test_skip_header_other_values_ignored(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        out = interceptor(make_call(**{"x-skip-auth": "false"}))
        assert out.headers["Cookie"] == "sid=abc123"

    def test_skip_field_opts_out(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        call = make_call()
        call.skip_auth = True
        assert "Cookie" not in interceptor(call).headers

    def test_selector_header_picks_identity_and_is_stripped(self, store, interceptor):
        store.set(GENERAL, "sid=general")
        store.set(ADMIN, "sid=admin")
        out = interceptor(make_call(**{"X-Session-Kind": "admin"}))
        assert out.headers["Cookie"] == "sid=admin"
        assert "x-session-kind" not in out.headers
        assert out.identity == ADMIN

    def test_identity_field_picks_identity(self, store, interceptor):
        store.set(ADMIN, "sid=admin")
        call = make_call()
        call.identity = ADMIN
        assert interceptor(call).headers["Cookie"] == "sid=admin"

    def test_no_active_identity_attaches_nothing(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        store.set_active(None)
        assert "Cookie" not in interceptor(make_call()).headers

    def test_unknown_selector_attaches_nothing(self, store, interceptor):
        store.set(GENERAL, "sid=abc123")
        out = interceptor(make_call(**{"x-session-kind": "seller"}))
        assert "Cookie" not in out.headers

    def test_raw_set_cookie_token_is_normalized(self, store, interceptor):
        store.set(GENERAL, "sid=abc123; Path=/; HttpOnly")
        assert interceptor(make_call()).headers["Cookie"] == "sid=abc123"

    def test_fallback_cookie_attached(self):
        interceptor = CredentialInterceptor(CredentialStore(fallback="sid=env"))
        assert interceptor(make_call()).headers["Cookie"] == "sid=env"

    def test_custom_auth_paths(self, store):
        store.set(GENERAL, "sid=abc123")
        interceptor = CredentialInterceptor(store, auth_paths=["/login"])
        assert "Cookie" not in interceptor(make_call("/login")).headers
        assert interceptor(make_call("/auth/signout")).headers["Cookie"] == "sid=abc123"
