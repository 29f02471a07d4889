"""
Tests for user-initiated account actions.
"""
import pytest

from passwordlock.auth.actions import AccountActions
from passwordlock.auth.controller import SessionController
from passwordlock.exceptions import AuthError, WeakPasswordError
from passwordlock.models import Phase
from passwordlock.navigation import HistoryNavigation
from passwordlock.results import ErrorKind, Failure, Success
from conftest import make_session

STRONG = "Str0ng!Pass"
RECOVERY_URL = "/?type=recovery&access_token=AAA&refresh_token=BBB"


@pytest.fixture
def controller(identity, navigation, store, config):
    return SessionController(identity, navigation, store, config)


@pytest.fixture
def actions(identity, controller):
    return AccountActions(
        identity, controller, reset_redirect_url="http://localhost:5173/"
    )


class TestSignIn:

    @pytest.mark.asyncio
    async def test_sign_in_authenticates_through_events(self, actions, controller):
        await controller.start()
        session = await actions.sign_in("bob@example.com", "secret")
        assert session.user_id == "u-1"
        assert controller.phase is Phase.AUTHENTICATED
        await controller.close()

    @pytest.mark.asyncio
    async def test_sign_in_failure_raises(self, actions, controller, identity):
        await controller.start()
        identity.sign_in_result = Failure(
            ErrorKind.INVALID_CREDENTIALS, "Invalid login credentials"
        )
        with pytest.raises(AuthError) as exc:
            await actions.sign_in("bob@example.com", "wrong")
        assert str(exc.value) == "Invalid login credentials"
        assert exc.value.kind == "invalid_credentials"
        assert controller.phase is Phase.ANONYMOUS
        await controller.close()


class TestSignUp:

    @pytest.mark.asyncio
    async def test_sign_up_without_session_awaits_verification(
        self, actions, controller, identity
    ):
        await controller.start()
        assert await actions.sign_up("new@example.com", STRONG, STRONG) is None
        assert identity.calls[-1] == ("sign_up", "new@example.com")
        assert controller.phase is Phase.AWAITING_VERIFICATION
        assert controller.verification_email == "new@example.com"
        await controller.close()

    @pytest.mark.asyncio
    async def test_weak_password_rejected_locally(self, actions, identity):
        with pytest.raises(WeakPasswordError) as exc:
            await actions.sign_up("new@example.com", "short", "short")
        assert "At least 8 characters" in exc.value.problems
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_confirmation_mismatch(self, actions, identity):
        with pytest.raises(ValueError):
            await actions.sign_up("new@example.com", STRONG, STRONG + "x")
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_sign_up_failure_raises(self, actions, identity):
        identity.sign_up_result = Failure(ErrorKind.REJECTED, "User already registered")
        with pytest.raises(AuthError):
            await actions.sign_up("bob@example.com", STRONG, STRONG)

    @pytest.mark.asyncio
    async def test_sign_up_with_session_returns_it(self, actions, identity):
        identity.sign_up_result = Success(make_session(verified=False))
        session = await actions.sign_up("bob@example.com", STRONG, STRONG)
        assert session.is_verified is False


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_request_reset_uses_redirect(self, actions, identity):
        status = await actions.request_password_reset("bob@example.com")
        assert status.error is False
        assert identity.calls == [
            ("request_password_reset", "bob@example.com", "http://localhost:5173/")
        ]

    @pytest.mark.asyncio
    async def test_request_reset_failure_is_a_message(self, actions, identity):
        identity.reset_result = Failure(ErrorKind.NETWORK, "offline")
        status = await actions.request_password_reset("bob@example.com")
        assert status.error is True
        assert status.text == "Error: offline"

    @pytest.mark.asyncio
    async def test_complete_recovery_signs_out(self, identity, store, config):
        navigation = HistoryNavigation(RECOVERY_URL)
        controller = SessionController(identity, navigation, store, config)
        actions = AccountActions(identity, controller)
        assert await controller.start() is Phase.AWAITING_RECOVERY
        status = await actions.complete_recovery("n3w-Password", "n3w-Password")
        assert status.error is False
        assert identity.count("update_user") == 1
        assert identity.count("sign_out") == 1
        assert controller.phase is Phase.ANONYMOUS
        assert controller.recovery.showing_form is False
        await controller.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new, confirm", [
        ("n3w-Password", "other-Password"),
        ("short", "short"),
    ])
    async def test_complete_recovery_validation(self, actions, identity, new, confirm):
        with pytest.raises(ValueError):
            await actions.complete_recovery(new, confirm)
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_complete_recovery_update_failure(self, actions, identity):
        identity.update_result = Failure(ErrorKind.REJECTED, "Same password")
        with pytest.raises(AuthError):
            await actions.complete_recovery("n3w-Password", "n3w-Password")
        assert identity.count("sign_out") == 0


class TestSignOutAction:

    @pytest.mark.asyncio
    async def test_sign_out(self, actions, controller, identity):
        await controller.start()
        await actions.sign_in("bob@example.com", "secret")
        await actions.sign_out()
        assert controller.phase is Phase.ANONYMOUS
        await controller.close()
