from datetime import date

from app.services.trips import email_invite


def test_send_invitation_builds_message(outbox):
    sent = email_invite.send_invitation(
        "b@example.com", "Alice", "Rome Trip", date(2025, 7, 1), date(2025, 7, 5)
    )

    assert sent is True
    message = outbox.messages[0]
    assert message["to"] == ["b@example.com"]
    assert message["subject"] == "Alice invited you to join Rome Trip on Planit"
    assert "July 1, 2025 - July 5, 2025" in message["text"]
    assert email_invite.invitations_link() in message["html"]


def test_send_declined_includes_optional_reason(outbox):
    email_invite.send_declined(["a@example.com", "c@example.com"], "Bob", "Rome Trip", 7, "Too pricey")
    email_invite.send_declined(["a@example.com"], "Bob", "Rome Trip", 7)

    with_reason, without_reason = outbox.messages
    assert with_reason["to"] == ["a@example.com", "c@example.com"]
    assert "Too pricey" in with_reason["html"]
    assert "Reason" not in without_reason["text"]
    assert email_invite.trip_link(7) in without_reason["text"]


def test_html_escapes_user_supplied_names(outbox):
    email_invite.send_accepted(["a@example.com"], "<script>", "Rome Trip", 3)

    assert "<script>" not in outbox.messages[0]["html"]
    assert "&lt;script&gt;" in outbox.messages[0]["html"]


def test_delivery_failure_is_swallowed(outbox):
    outbox.fail = True

    sent = email_invite.send_accepted(["a@example.com"], "Bob", "Rome Trip", 3)

    assert sent is False
    assert outbox.messages == []


def test_subject_collapses_newlines_in_names(outbox):
    email_invite.send_declined(["a@example.com"], "Bob\r\nBcc: x@evil.test", "Rome\n  Trip", 3)

    subject = outbox.messages[0]["subject"]
    assert "\n" not in subject and "\r" not in subject
    assert subject == "Bob Bcc: x@evil.test declined the invitation to Rome Trip"
