"""Tests for parsing GnuPG diagnostic output into Status."""

import pytest
from pydantic import ValidationError

from pgpgate.app.ports.engine import Status
from pgpgate.gpg.diagnostics import (
    DiagnosticClaims,
    SignatureClaim,
    build_status,
    parse_diagnostics,
    status_from_diagnostics,
)
from pgpgate.gpg.errors import IndeterminateResultError

GOOD_VERIFY = (
    "gpg: Signature made Wed 21 Mar 2012 03:13:57 PM EDT\n"
    "gpg:                using RSA key 4332B6E3\n"
    'gpg: Good signature from "Alice <alice@example.com>" [ultimate]\n'
)

BAD_VERIFY = (
    "gpg: Signature made Thu 01 Jan 2026 12:00:00 AM UTC\n"
    "gpg:                using EDDSA key 0123456789ABCDEF\n"
    'gpg: BAD signature from "Eve <eve@example.com>" [unknown]\n'
)

DECRYPT_TWO_RECIPIENTS = (
    "gpg: encrypted with rsa3072 key, ID 1111111111111111, created 2020-01-01\n"
    '      "identity-A <a@example.com>"\n'
    "gpg: encrypted with cv25519 key, ID 2222222222222222, created 2021-02-02\n"
    '      "identity-B <b@example.com>"\n'
)

NO_PUBKEY = (
    "gpg: Signature made Thu 01 Jan 2026 12:00:00 AM UTC\n"
    "gpg:                using RSA key 0123456789ABCDEF\n"
    "gpg: Can't check signature: No public key\n"
)


def test_good_signature_scenario():
    status = status_from_diagnostics(
        'gpg: Good signature from "Alice <alice@example.com>"', require_verdict=True
    )

    assert status.signer == "Alice <alice@example.com>"
    assert status.signature_valid is True
    assert status.encrypted_for == []
    assert status.warnings == []


def test_bad_signature_scenario():
    status = status_from_diagnostics(
        'gpg: BAD signature from "Eve <eve@example.com>"', require_verdict=True
    )

    assert status.signer == "Eve <eve@example.com>"
    assert status.signature_valid is False


def test_trust_suffix_after_identity_is_ignored():
    status = status_from_diagnostics(GOOD_VERIFY, require_verdict=True)
    assert status.signer == "Alice <alice@example.com>"
    assert status.signature_valid is True


def test_bad_signature_with_context_lines():
    status = status_from_diagnostics(BAD_VERIFY, require_verdict=True)
    assert status.signer == "Eve <eve@example.com>"
    assert status.signature_valid is False


def test_encrypted_with_scenario_has_no_signer():
    status = status_from_diagnostics(
        'gpg: encrypted with RSA key\n      "Bob <bob@example.com>"'
    )

    assert status.encrypted_for == ["Bob <bob@example.com>"]
    assert status.signer is None
    assert status.signature_valid is False


def test_recipients_preserve_emitted_order():
    claims = parse_diagnostics(DECRYPT_TWO_RECIPIENTS)
    assert claims.recipients == ("identity-A <a@example.com>", "identity-B <b@example.com>")


def test_encrypted_line_without_quoted_identity_is_skipped():
    text = (
        "gpg: encrypted with RSA key, ID 3333333333333333\n"
        "gpg: decryption failed: No secret key\n"
        "gpg: encrypted with RSA key, ID 4444444444444444\n"
        '\t"Carol <carol@example.com>"\n'
    )

    assert parse_diagnostics(text).recipients == ("Carol <carol@example.com>",)


def test_recipient_identity_is_trimmed_and_sanitized():
    text = 'gpg: encrypted with RSA key\n  "\x1b[2J Dave <dave@example.com>\t"\n'
    status = status_from_diagnostics(text)
    assert status.encrypted_for == ["[2J Dave <dave@example.com>"]


def test_crlf_line_endings_are_tolerated():
    text = GOOD_VERIFY.replace("\n", "\r\n") + DECRYPT_TWO_RECIPIENTS.replace("\n", "\r\n")
    status = status_from_diagnostics(text, require_verdict=True)

    assert status.signer == "Alice <alice@example.com>"
    assert status.encrypted_for == ["identity-A <a@example.com>", "identity-B <b@example.com>"]


def test_signer_identity_is_sanitized():
    text = 'gpg: Good signature from "Alice \x1b[32m<alice@example.com>\r"'
    status = status_from_diagnostics(text, require_verdict=True)

    assert status.signer == "Alice [32m<alice@example.com>"
    assert "\x1b" not in status.signer
    assert "\r" not in status.signer


def test_claim_must_start_a_line():
    text = 'gpg: note: text quoted gpg: Good signature from "Mallory <m@example.com>"\n'
    assert parse_diagnostics(text).signatures == ()


def test_lowercase_bad_is_not_a_claim():
    assert parse_diagnostics('gpg: bad signature from "Eve"').signatures == ()


def test_missing_verdict_is_indeterminate_for_verification():
    with pytest.raises(IndeterminateResultError) as excinfo:
        status_from_diagnostics(NO_PUBKEY, require_verdict=True)

    assert "No public key" in excinfo.value.diagnostics


def test_indeterminate_error_diagnostics_are_sanitized():
    with pytest.raises(IndeterminateResultError) as excinfo:
        status_from_diagnostics("gpg: weird\x1b[2J\routput", require_verdict=True)

    assert "\x1b" not in str(excinfo.value)
    assert "\r" not in str(excinfo.value)


def test_missing_verdict_is_fine_for_decrypt():
    status = status_from_diagnostics("", require_verdict=False)
    assert status == Status()


def test_multiple_signatures_first_claim_names_signer():
    text = (
        'gpg: Good signature from "Alice <alice@example.com>"\n'
        'gpg: Good signature from "Bob <bob@example.com>"\n'
    )
    claims = parse_diagnostics(text)
    status = build_status(claims, require_verdict=True)

    assert len(claims.signatures) == 2
    assert status.signer == "Alice <alice@example.com>"
    assert status.signature_valid is True


def test_multiple_signatures_any_bad_claim_invalidates():
    text = (
        'gpg: Good signature from "Alice <alice@example.com>"\n'
        'gpg: BAD signature from "Eve <eve@example.com>"\n'
    )
    status = status_from_diagnostics(text, require_verdict=True)

    assert status.signer == "Alice <alice@example.com>"
    assert status.signature_valid is False


def test_bad_then_good_reports_bad_signer():
    text = (
        'gpg: BAD signature from "Eve <eve@example.com>"\n'
        'gpg: Good signature from "Alice <alice@example.com>"\n'
    )
    status = status_from_diagnostics(text, require_verdict=True)

    assert status.signer == "Eve <eve@example.com>"
    assert status.signature_valid is False


def test_good_claim_with_empty_identity_is_not_valid():
    status = status_from_diagnostics('gpg: Good signature from ""', require_verdict=True)

    assert status.signer == ""
    assert status.signature_valid is False


def test_identity_made_only_of_controls_is_not_valid():
    status = status_from_diagnostics('gpg: Good signature from "\x1b\r"', require_verdict=True)
    assert status.signature_valid is False


def test_non_utf8_identity_decoded_with_replacement():
    raw = b'gpg: Good signature from "Jos\xe9 <jose@example.com>"\n'
    status = status_from_diagnostics(raw.decode("utf-8", errors="replace"), require_verdict=True)

    assert status.signer == "Jos\ufffd <jose@example.com>"
    assert status.signature_valid is True


@pytest.mark.parametrize(
    "text",
    [
        GOOD_VERIFY,
        BAD_VERIFY,
        DECRYPT_TWO_RECIPIENTS,
        'gpg: Good signature from ""',
        'gpg: Good signature from "\x1b"\ngpg: BAD signature from "x"',
    ],
)
def test_valid_signature_always_has_signer(text):
    status = status_from_diagnostics(text)
    if status.signature_valid:
        assert status.signer


def test_status_rejects_valid_without_signer():
    with pytest.raises(ValidationError):
        Status(signature_valid=True)


def test_build_status_from_hand_built_claims():
    claims = DiagnosticClaims(
        signatures=(SignatureClaim(identity="Alice", good=True),),
        recipients=("Bob",),
    )
    status = build_status(claims, require_verdict=True)

    assert status == Status(signer="Alice", signature_valid=True, encrypted_for=["Bob"])
