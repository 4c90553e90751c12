import unittest
from types import SimpleNamespace
from uuid import uuid4

from fakes import InMemoryProfileRepository
from starlette.requests import Request

from transom.api.v1.schemas.auth import OAuthCallbackRequest, SignInRequest, SignUpRequest
from transom.core.models.user import get_initials
from transom.core.schemas.auth import AuthUser
from transom.core.services.auth_service import AUTH_ERROR_MESSAGES, AuthService, describe_auth_error
from transom.dependencies import AttemptWindow
from transom.utils.validation import validate_password_strength


class FakeAuthError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class FakeAuth:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _call(self, name, payload=None):
        self.calls.append((name, payload))
        if self.error:
            raise self.error
        return self.response

    def sign_up(self, credentials):
        return self._call("sign_up", credentials)

    def sign_in_with_password(self, credentials):
        return self._call("sign_in_with_password", credentials)

    def sign_in_with_oauth(self, credentials):
        return self._call("sign_in_with_oauth", credentials)

    def exchange_code_for_session(self, params):
        return self._call("exchange_code_for_session", params)

    def sign_out(self):
        return self._call("sign_out")


def session_response(user_id, email="ada@example.com", name="Ada Lovelace"):
    return SimpleNamespace(
        user=SimpleNamespace(id=str(user_id), email=email, user_metadata={"full_name": name}),
        session=SimpleNamespace(access_token="access", refresh_token="refresh", expires_in=3600),
    )


def make_request():
    return Request({"type": "http", "method": "POST", "path": "/", "headers": [], "client": ("127.0.0.1", 5000)})


class TestDescribeAuthError(unittest.TestCase):
    def test_known_codes(self):
        for code, message in AUTH_ERROR_MESSAGES.items():
            self.assertEqual(describe_auth_error(FakeAuthError("boom", code), "fallback"), message)

    def test_message_fallback_then_generic(self):
        err = FakeAuthError("Invalid login credentials", code="unexpected")
        self.assertEqual(describe_auth_error(err, "fallback"), "Invalid email or password")
        self.assertEqual(describe_auth_error(RuntimeError("socket closed"), "fallback"), "fallback")


class TestPasswordStrength(unittest.TestCase):
    def test_rules(self):
        self.assertEqual(validate_password_strength("short")[0], False)
        self.assertEqual(validate_password_strength("Password123")[0], False)
        self.assertEqual(validate_password_strength("          ")[0], False)
        ok, message = validate_password_strength("grace-rules-all", "grace@example.com")
        self.assertFalse(ok)
        self.assertIn("email", message)
        self.assertEqual(validate_password_strength("a-long-passphrase", "grace@example.com"), (True, None))


class TestAttemptWindow(unittest.TestCase):
    def test_limit_and_expiry(self):
        window = AttemptWindow(limit=2, window=60)
        self.assertIsNone(window.hit("signin:1.2.3.4", now=0))
        self.assertIsNone(window.hit("signin:1.2.3.4", now=10))
        self.assertEqual(window.hit("signin:1.2.3.4", now=20), 40)
        self.assertIsNone(window.hit("signin:5.6.7.8", now=20))
        # the first attempt has left the window
        self.assertIsNone(window.hit("signin:1.2.3.4", now=61))


class TestInitials(unittest.TestCase):
    def test_initials(self):
        self.assertEqual(get_initials("ada lovelace"), "AL")
        self.assertEqual(get_initials("Plato"), "PL")
        self.assertEqual(get_initials("writer@example.com"), "WR")


class TestAuthService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.user_id = uuid4()
        self.profiles = InMemoryProfileRepository()

    def service(self, auth):
        return AuthService(SimpleNamespace(auth=auth), self.profiles)

    async def test_sign_in_syncs_profile(self):
        auth = FakeAuth(response=session_response(self.user_id))
        resp = await self.service(auth).sign_in(make_request(), SignInRequest(email="ADA@example.com", password="correct horse"))

        self.assertEqual(resp.access_token, "access")
        self.assertEqual(resp.user["initials"], "AL")
        self.assertEqual(auth.calls[0][1]["email"], "ada@example.com")
        self.assertEqual(self.profiles.rows[self.user_id].name, "Ada Lovelace")

    async def test_sign_in_error_is_translated(self):
        auth = FakeAuth(error=FakeAuthError("Email not confirmed", code="email_not_confirmed"))
        with self.assertRaises(ValueError) as ctx:
            await self.service(auth).sign_in(make_request(), SignInRequest(email="a@example.com", password="whatever1"))
        self.assertEqual(str(ctx.exception), AUTH_ERROR_MESSAGES["email_not_confirmed"])

    async def test_sign_up_rejects_weak_password_before_calling_provider(self):
        auth = FakeAuth(response=session_response(self.user_id))
        with self.assertRaises(ValueError):
            await self.service(auth).sign_up(make_request(), SignUpRequest(email="a@example.com", password="password123"))
        self.assertEqual(auth.calls, [])

    async def test_sign_up_sends_display_name(self):
        auth = FakeAuth(response=session_response(self.user_id, name="Grace Hopper"))
        payload = SignUpRequest(email="grace@example.com", password="a-long-passphrase", name="Grace Hopper")
        resp = await self.service(auth).sign_up(make_request(), payload)

        self.assertEqual(auth.calls[0][1]["options"], {"data": {"full_name": "Grace Hopper"}})
        self.assertEqual(resp.user["initials"], "GH")

    async def test_oauth_start_returns_provider_url(self):
        auth = FakeAuth(response=SimpleNamespace(provider="google", url="https://accounts.example/consent"))
        resp = await self.service(auth).sign_in_with_oauth(make_request())

        self.assertEqual(resp.url, "https://accounts.example/consent")
        self.assertEqual(auth.calls[0][1]["provider"], "google")

    async def test_oauth_code_exchange(self):
        auth = FakeAuth(response=session_response(self.user_id))
        resp = await self.service(auth).exchange_code_for_session(OAuthCallbackRequest(code="abc", code_verifier="xyz"))

        params = auth.calls[0][1]
        self.assertEqual((params["auth_code"], params["code_verifier"]), ("abc", "xyz"))
        self.assertEqual(resp.refresh_token, "refresh")
        self.assertIn(self.user_id, self.profiles.rows)

    async def test_get_profile_creates_missing_profile(self):
        user = AuthUser(id=self.user_id, email="solo@example.com")
        profile = await self.service(FakeAuth()).get_profile(user)
        self.assertEqual(profile.initials, "SO")
        self.assertIs(await self.service(FakeAuth()).get_profile(user), self.profiles.rows[self.user_id])

    async def test_sign_out_never_fails(self):
        auth = FakeAuth(error=FakeAuthError("network down"))
        result = await self.service(auth).sign_out(AuthUser(id=self.user_id, email="a@example.com"))
        self.assertEqual(result, {"message": "Signed out successfully"})


if __name__ == "__main__":
    unittest.main()
