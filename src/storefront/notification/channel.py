"""Process-wide mailer used by the notification handlers.

Defaults to the in-memory ``RecordingMailer``; a provider-backed mailer is
installed at startup with ``set_email_channel``.
"""

from storefront.notification.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    global _email_channel
    if _email_channel is None:
        from storefront.notification.fake_email import RecordingMailer

        _email_channel = RecordingMailer()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_email_channel() -> None:
    global _email_channel
    _email_channel = None
