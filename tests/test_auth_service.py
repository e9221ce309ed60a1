"""Tests for the sign-in protocol, logout, registration and password reset."""

from types import SimpleNamespace

import pytest

from portal.models.auth_models import AuthErrorCode
from portal.models.enums import (
    ApprovalStatus,
    AuthStep,
    LogoutReason,
    Route,
    UserRole,
)
from tests.conftest import BOOTSTRAP_EMAIL, make_profile, sent_code, sign_in_response

WRONG_CODE = "000000"  # issued codes are always >= 100000


class BackendError(Exception):
    """Mimics a gotrue ``AuthApiError`` carrying an ``error_code``."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class TestSubmitCredentials:
    """Tests for the credential step."""

    def test_approved_resident_gets_code(self, auth_service, otp_channel, session_manager):
        """Valid credentials and an approved profile lead to the OTP step."""
        result = auth_service.submit_credentials("  Ana@Town.example ", "secret123")

        assert result.success
        assert result.step == AuthStep.OTP_PENDING
        assert result.email == "ana@town.example"
        assert result.role == UserRole.NATIVE
        email, code, name = otp_channel.send_otp_code.call_args.args
        assert email == "ana@town.example"
        assert len(code) == 6 and code.isdigit()
        assert name == "Ana Lopez"
        assert session_manager.is_authenticated
        assert not session_manager.otp_verified

    def test_code_never_reaches_the_result(self, auth_service, otp_channel):
        """The code only travels through the OTP channel."""
        result = auth_service.submit_credentials("ana@town.example", "secret123")

        assert sent_code(otp_channel) not in result.model_dump_json()

    def test_refusals_are_indistinguishable(self, auth_service, db, profile_repo):
        """Wrong password, missing profile and unapproved profile look identical."""
        db.supabase.auth.sign_in_with_password.side_effect = BackendError(
            "Invalid login credentials", "invalid_credentials",
        )
        wrong_password = auth_service.submit_credentials("ana@town.example", "nope")

        db.supabase.auth.sign_in_with_password.side_effect = None
        profile_repo.get_by_id.return_value = None
        no_profile = auth_service.submit_credentials("ana@town.example", "secret123")

        profile_repo.get_by_id.return_value = make_profile(status=ApprovalStatus.PENDING)
        pending = auth_service.submit_credentials("ana@town.example", "secret123")

        profile_repo.get_by_id.return_value = make_profile(status=ApprovalStatus.REJECTED)
        rejected = auth_service.submit_credentials("ana@town.example", "secret123")

        assert wrong_password.error_code == AuthErrorCode.INVALID_CREDENTIAL
        assert (
            wrong_password.model_dump()
            == no_profile.model_dump()
            == pending.model_dump()
            == rejected.model_dump()
        )

    def test_unapproved_profile_leaves_no_session(
        self, auth_service, db, profile_repo, session_manager, otp_channel,
    ):
        """A refused profile signs the credential session back out."""
        profile_repo.get_by_id.return_value = make_profile(status=ApprovalStatus.PENDING)

        auth_service.submit_credentials("ana@town.example", "secret123")

        assert session_manager.get_session() is None
        assert auth_service.step == AuthStep.LOGGED_OUT
        db.supabase.auth.sign_out.assert_called_once()
        otp_channel.send_otp_code.assert_not_called()

    def test_network_failure_is_reported(self, auth_service, db):
        """Transport errors are not disguised as a bad password."""
        db.supabase.auth.sign_in_with_password.side_effect = OSError("unreachable")

        result = auth_service.submit_credentials("ana@town.example", "secret123")

        assert result.error_code == AuthErrorCode.NETWORK_FAILURE

    def test_send_failure_aborts_attempt(self, auth_service, otp_channel, otp_service, session_manager):
        """When the code cannot be sent the session is discarded."""
        otp_channel.send_otp_code.return_value = False

        result = auth_service.submit_credentials("ana@town.example", "secret123")

        assert not result.success
        assert result.error_code == AuthErrorCode.OTP_SEND_FAILURE
        assert result.step == AuthStep.LOGGED_OUT
        assert session_manager.get_session() is None
        assert not otp_service.has_challenge

    def test_channel_exception_counts_as_send_failure(self, auth_service, otp_channel):
        """A raising channel is handled like a refused send."""
        otp_channel.send_otp_code.side_effect = ConnectionError("smtp down")

        result = auth_service.submit_credentials("ana@town.example", "secret123")

        assert result.error_code == AuthErrorCode.OTP_SEND_FAILURE

    def test_bootstrap_account_without_profile_is_admitted_as_admin(
        self, auth_service, db, profile_repo,
    ):
        """Only the bootstrap address may continue without a profile row."""
        db.supabase.auth.sign_in_with_password.return_value = sign_in_response(
            uid="root-1", email=BOOTSTRAP_EMAIL,
        )
        profile_repo.get_by_id.return_value = None

        result = auth_service.submit_credentials(BOOTSTRAP_EMAIL, "secret123")

        assert result.step == AuthStep.OTP_PENDING
        assert result.role == UserRole.ADMIN


class TestVerifyOtp:
    """Tests for the verification-code step."""

    def test_matching_code_verifies_session(self, auth_service, otp_channel, session_manager):
        """The right code marks the session verified and routes to the dashboard."""
        auth_service.submit_credentials("ana@town.example", "secret123")

        result = auth_service.verify_otp(sent_code(otp_channel))

        assert result.success
        assert result.step == AuthStep.OTP_VERIFIED
        assert result.navigate_to == Route.NATIVE_DASHBOARD
        assert session_manager.is_fully_authenticated

    def test_admin_is_routed_to_back_office(self, auth_service, otp_channel, profile_repo, db):
        """Staff profiles land on the admin dashboard."""
        db.supabase.auth.sign_in_with_password.return_value = sign_in_response(
            uid="admin-1", email="clerk@town.example",
        )
        profile_repo.get_by_id.return_value = make_profile(
            uid="admin-1", email="clerk@town.example", role=UserRole.ADMIN,
        )
        auth_service.submit_credentials("clerk@town.example", "secret123")

        result = auth_service.verify_otp(sent_code(otp_channel))

        assert result.navigate_to == Route.ADMIN_DASHBOARD

    def test_mismatch_keeps_challenge(self, auth_service, otp_channel, session_manager):
        """A wrong code may be retried; the session stays unverified."""
        auth_service.submit_credentials("ana@town.example", "secret123")

        wrong = auth_service.verify_otp(WRONG_CODE)
        right = auth_service.verify_otp(sent_code(otp_channel))

        assert wrong.error_code == AuthErrorCode.OTP_MISMATCH
        assert wrong.step == AuthStep.OTP_PENDING
        assert right.success

    def test_expired_code_ends_attempt(self, auth_service, otp_channel, clock, session_manager):
        """A code older than its lifetime no longer verifies."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        code = sent_code(otp_channel)
        clock.advance(600)

        result = auth_service.verify_otp(code)

        assert result.error_code == AuthErrorCode.OTP_EXPIRED
        assert result.step == AuthStep.LOGGED_OUT
        assert session_manager.get_session() is None

    def test_too_many_wrong_codes_end_attempt(self, auth_service, otp_channel, session_manager):
        """The fifth wrong code discards the challenge and the session."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        code = sent_code(otp_channel)

        results = [auth_service.verify_otp(WRONG_CODE) for _ in range(5)]

        assert [r.error_code for r in results[:4]] == [AuthErrorCode.OTP_MISMATCH] * 4
        assert results[4].error_code == AuthErrorCode.TOO_MANY_ATTEMPTS
        assert session_manager.get_session() is None
        assert not auth_service.verify_otp(code).success

    def test_verify_without_attempt_fails(self, auth_service):
        """There is nothing to verify before credentials were accepted."""
        result = auth_service.verify_otp("123456")

        assert not result.success
        assert result.step == AuthStep.LOGGED_OUT

    def test_repeated_verify_keeps_verified_session(self, auth_service, otp_channel, session_manager, db):
        """Submitting the accepted code a second time does not sign the user out."""
        auth_service.submit_credentials("ana.example", "secret123")
        code = sent_code(otp_channel)

        first = auth_service.verify_otp(code)
        second = auth_service.verify_otp(code)

        assert first.success
        assert second.success
        assert second.step == AuthStep.OTP_VERIFIED
        assert second.navigate_to == Route.NATIVE_DASHBOARD
        assert session_manager.is_fully_authenticated
        db.supabase.auth.sign_out.assert_not_called()


class TestBackToLogin:
    """Tests for cancelling the OTP step."""

    def test_cancel_discards_session_and_code(self, auth_service, otp_channel, session_manager):
        """After going back, the old code is useless."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        code = sent_code(otp_channel)

        result = auth_service.back_to_login()

        assert result.success
        assert result.step == AuthStep.LOGGED_OUT
        assert session_manager.get_session() is None
        assert not auth_service.verify_otp(code).success

    def test_stale_cancel_leaves_newer_attempt_alone(self, auth_service, otp_channel, session_manager):
        """A cancel for an earlier attempt does not discard the current one."""
        first = auth_service.submit_credentials("ana.example", "secret123")
        second = auth_service.submit_credentials("ana.example", "secret123")

        result = auth_service.back_to_login(first.attempt)

        assert second.attempt > first.attempt
        assert result.step == AuthStep.OTP_PENDING
        assert session_manager.get_session() is not None
        assert auth_service.verify_otp(sent_code(otp_channel)).success

    def test_cancel_for_current_attempt(self, auth_service, session_manager):
        """The token of the live attempt cancels it."""
        pending = auth_service.submit_credentials("ana.example", "secret123")

        result = auth_service.back_to_login(pending.attempt)

        assert result.step == AuthStep.LOGGED_OUT
        assert session_manager.get_session() is None

    def test_cancel_is_idempotent(self, auth_service, db):
        """Calling it repeatedly, even when logged out, is harmless."""
        auth_service.submit_credentials("ana@town.example", "secret123")

        first = auth_service.back_to_login()
        second = auth_service.back_to_login()

        assert first.model_dump() == second.model_dump()
        db.supabase.auth.sign_out.assert_called_once()


class TestForceLogout:
    """Tests for forced and explicit logout."""

    def test_native_session_returns_to_native_login(self, auth_service, otp_channel, session_manager):
        """A resident's session ends on the resident login."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        auth_service.verify_otp(sent_code(otp_channel))

        result = auth_service.force_logout(LogoutReason.INACTIVITY)

        assert result.navigate_to == Route.NATIVE_LOGIN
        assert session_manager.get_session() is None
        assert not session_manager.otp_verified
        assert auth_service.step == AuthStep.LOGGED_OUT

    def test_logged_out_defaults_to_admin_login(self, auth_service):
        """Without a session the admin login is the destination."""
        assert auth_service.logout().navigate_to == Route.ADMIN_LOGIN

    def test_backend_sign_out_failure_does_not_block(self, auth_service, otp_channel, db, session_manager):
        """Local cleanup happens even when the server call fails."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        auth_service.verify_otp(sent_code(otp_channel))
        db.supabase.auth.sign_out.side_effect = OSError("offline")

        result = auth_service.logout()

        assert result.success
        assert session_manager.get_session() is None

    def test_logout_writes_audit_event(self, auth_service, otp_channel, logger):
        """Every teardown of a live session is audited with its reason."""
        auth_service.submit_credentials("ana@town.example", "secret123")
        auth_service.verify_otp(sent_code(otp_channel))
        logger.reset_mock()

        auth_service.force_logout(LogoutReason.INACTIVITY)

        audit_lines = [
            call.args[1] for call in logger.info.call_args_list
            if call.args and call.args[0] == "AUDIT: %s"
        ]
        assert any('"LOGOUT"' in line and "inactivity" in line for line in audit_lines)


class TestRegisterNative:
    """Tests for resident self-registration."""

    def test_creates_pending_profile_and_signs_out(
        self, auth_service, db, profile_repo, session_manager,
    ):
        """New residents wait for approval and are not left signed in."""
        db.supabase.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="new-1", email="new@town.example"),
        )
        profile_repo.create.side_effect = lambda profile: profile

        result = auth_service.register_native(
            "Nora Diaz", "New@Town.example", "secret123", "555-0101", "North Ward",
        )

        assert result.success
        created = profile_repo.create.call_args.args[0]
        assert created.uid == "new-1"
        assert created.email == "new@town.example"
        assert created.role == UserRole.NATIVE
        assert created.status == ApprovalStatus.PENDING
        assert created.location == "North Ward"
        db.supabase.auth.sign_out.assert_called_once()
        assert session_manager.get_session() is None

    def test_notifies_back_office(self, auth_service, db, profile_repo, notifier):
        """The back office is alerted about the new registration."""
        db.supabase.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="new-1", email="new@town.example"),
        )
        profile_repo.create.side_effect = lambda profile: profile

        auth_service.register_native("Nora Diaz", "new@town.example", "secret123")

        notifier.send_admin_notification.assert_called_once()

    def test_weak_password_is_rejected_locally(self, auth_service, db):
        """Short passwords never reach the credential store."""
        result = auth_service.register_native("Nora Diaz", "new@town.example", "123")

        assert result.error_code == AuthErrorCode.WEAK_PASSWORD
        db.supabase.auth.sign_up.assert_not_called()

    @pytest.mark.parametrize("name", ["", "N", "Nora\nDiaz"])
    def test_invalid_name_is_rejected(self, auth_service, name):
        """Names must be printable and at least two characters."""
        result = auth_service.register_native(name, "new@town.example", "secret123")

        assert result.error_code == AuthErrorCode.VALIDATION_ERROR

    def test_existing_email_is_reported(self, auth_service, db, profile_repo):
        """Duplicate registrations map to ``EMAIL_IN_USE``."""
        db.supabase.auth.sign_up.side_effect = BackendError(
            "User already registered", "user_already_exists",
        )

        result = auth_service.register_native("Nora Diaz", "new@town.example", "secret123")

        assert result.error_code == AuthErrorCode.EMAIL_IN_USE
        profile_repo.create.assert_not_called()


class TestPasswordReset:
    """Tests for the password-reset request."""

    def test_same_notice_for_any_address(self, auth_service, db):
        """The response never reveals whether the address is registered."""
        known = auth_service.request_password_reset("ana@town.example")
        db.supabase.auth.reset_password_for_email.side_effect = BackendError(
            "User not found", "user_not_found",
        )
        unknown = auth_service.request_password_reset("ghost@town.example")

        assert known.success and unknown.success
        assert known.message == unknown.message

    def test_invalid_address_is_rejected(self, auth_service, db):
        """Malformed addresses are caught before the backend call."""
        result = auth_service.request_password_reset("not-an-email")

        assert result.error_code == AuthErrorCode.VALIDATION_ERROR
        db.supabase.auth.reset_password_for_email.assert_not_called()

    def test_network_failure_is_reported(self, auth_service, db):
        """A transport failure is surfaced so the user can retry."""
        db.supabase.auth.reset_password_for_email.side_effect = TimeoutError()

        result = auth_service.request_password_reset("ana@town.example")

        assert result.error_code == AuthErrorCode.NETWORK_FAILURE
