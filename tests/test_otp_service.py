"""Tests for the one-time code service."""

from unittest.mock import patch

from portal.services.otp_service import OtpService, OtpVerdict


class TestGenerateCode:
    """Tests for code generation."""

    def test_codes_are_six_digits(self):
        """Every code is a six-digit number without a leading zero."""
        for _ in range(200):
            code = OtpService.generate_code()
            assert len(code) == 6
            assert 100_000 <= int(code) <= 999_999

    def test_range_bounds(self):
        """Both ends of the range are reachable."""
        with patch("portal.services.otp_service.secrets.randbelow", return_value=0):
            assert OtpService.generate_code() == "100000"
        with patch("portal.services.otp_service.secrets.randbelow", return_value=899_999):
            assert OtpService.generate_code() == "999999"


class TestVerify:
    """Tests for checking a code against the outstanding challenge."""

    def test_exact_match(self, otp_service):
        """The issued code matches once, then the challenge is gone."""
        code = otp_service.issue("ana@town.example")

        assert otp_service.verify(code) == OtpVerdict.MATCH
        assert not otp_service.has_challenge
        assert otp_service.verify(code) == OtpVerdict.NO_CHALLENGE

    def test_whitespace_is_not_trimmed(self, otp_service):
        """Comparison is exact; padded input does not match."""
        code = otp_service.issue("ana@town.example")

        assert otp_service.verify(f" {code}") == OtpVerdict.MISMATCH

    def test_new_issue_replaces_previous_code(self, otp_service):
        """Only the most recent code is accepted."""
        with patch.object(OtpService, "generate_code", side_effect=["111111", "222222"]):
            otp_service.issue("ana@town.example")
            otp_service.issue("ana@town.example")

        assert otp_service.verify("111111") == OtpVerdict.MISMATCH
        assert otp_service.verify("222222") == OtpVerdict.MATCH

    def test_expiry(self, otp_service, clock):
        """A code is valid strictly before its lifetime elapses."""
        code = otp_service.issue("ana@town.example")
        clock.advance(599)
        assert otp_service.verify("000000") == OtpVerdict.MISMATCH

        clock.advance(1)
        assert otp_service.verify(code) == OtpVerdict.EXPIRED
        assert not otp_service.has_challenge

    def test_attempt_cap(self, otp_service):
        """The fifth wrong entry discards the challenge."""
        code = otp_service.issue("ana@town.example")

        verdicts = [otp_service.verify("000000") for _ in range(5)]

        assert verdicts[:4] == [OtpVerdict.MISMATCH] * 4
        assert verdicts[4] == OtpVerdict.EXHAUSTED
        assert otp_service.verify(code) == OtpVerdict.NO_CHALLENGE

    def test_zero_disables_limits(self, logger, clock):
        """With both limits at zero a code never expires or runs out."""
        service = OtpService(logger=logger, ttl_seconds=0, max_attempts=0, clock=clock)
        code = service.issue("ana@town.example")

        for _ in range(50):
            assert service.verify("000000") == OtpVerdict.MISMATCH
        clock.advance(7 * 24 * 3600)

        assert service.verify(code) == OtpVerdict.MATCH

    def test_discard(self, otp_service):
        """Discarding drops the challenge and its address."""
        otp_service.issue("ana@town.example")
        assert otp_service.pending_email == "ana@town.example"

        otp_service.discard()

        assert otp_service.pending_email is None
        assert otp_service.verify("123456") == OtpVerdict.NO_CHALLENGE
