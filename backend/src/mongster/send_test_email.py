"""Test email sender for the Mongster SMTP listener.

Builds a MIME message (optionally with attachments) and either prints it or
delivers it over SMTP, so the dashboard can be exercised by hand.

Usage:
    # Print the message to stdout
    mongster-send --from sender@example.com --to a@example.com \
        --subject "Hello"

    # Deliver to a running Mongster instance
    mongster-send --from sender@example.com --to a@example.com \
        --to b@example.com --cc c@example.com --subject "Hello" \
        --attachment report.pdf --send --smtp-port 2525
"""

import argparse
import mimetypes
import os
import smtplib
import sys
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from pathlib import Path
from typing import List, Optional

DEFAULT_BODY = "This is a test message captured by Mongster."


def create_email(
    from_email: str,
    to_emails: List[str],
    subject: str,
    body: Optional[str] = None,
    cc_emails: Optional[List[str]] = None,
    reply_to: Optional[str] = None,
    attachments: Optional[List[str]] = None,
    charset: str = "utf-8",
) -> MIMEMultipart:
    """Create MIME email message with attachments.

    Args:
        from_email: Sender email address
        to_emails: Recipient email addresses
        subject: Email subject
        body: Email body text (optional)
        cc_emails: Cc addresses (optional)
        reply_to: Reply-To address (optional)
        attachments: List of file paths to attach
        charset: Charset of the text part

    Returns:
        MIMEMultipart: Email message
    """
    msg = MIMEMultipart()
    msg['From'] = from_email
    msg['To'] = ", ".join(to_emails)
    if cc_emails:
        msg['Cc'] = ", ".join(cc_emails)
    if reply_to:
        msg['Reply-To'] = reply_to
    msg['Subject'] = subject
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = f"<test-{os.urandom(8).hex()}@mongster-test>"

    msg.attach(MIMEText(body if body is not None else DEFAULT_BODY, 'plain', charset))

    for filepath in attachments or []:
        path = Path(filepath)
        if not path.exists():
            print(f"WARNING: Attachment not found: {filepath}", file=sys.stderr)
            continue

        mime_type, _ = mimetypes.guess_type(filepath)
        if mime_type is None:
            mime_type = 'application/octet-stream'
        maintype, subtype = mime_type.split('/', 1)

        content = path.read_bytes()
        part = MIMEBase(maintype, subtype)
        part.set_payload(content)
        encoders.encode_base64(part)
        part.add_header('Content-Disposition', f'attachment; filename="{path.name}"')
        msg.attach(part)

        print(f"Attached: {path.name} ({len(content)} bytes)", file=sys.stderr)

    return msg


def send_email(
    msg: MIMEMultipart,
    smtp_host: str = 'localhost',
    smtp_port: int = 2525,
    recipients: Optional[List[str]] = None,
) -> None:
    """Send email via SMTP.

    Args:
        msg: Email message to send
        smtp_host: SMTP server hostname
        smtp_port: SMTP server port
        recipients: Envelope recipients (defaults to the To/Cc headers)

    Raises:
        smtplib.SMTPException: If the server rejects the message
        OSError: If the server cannot be reached
    """
    with smtplib.SMTP(smtp_host, smtp_port) as smtp:
        smtp.send_message(msg, to_addrs=recipients)

    print(f"Email sent successfully to {msg['To']} via {smtp_host}:{smtp_port}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mongster-send',
        description='Send test emails to a Mongster SMTP listener',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    # Email metadata
    parser.add_argument(
        '--from',
        dest='from_email',
        required=True,
        help='Sender email address (e.g., sender@example.com)'
    )
    parser.add_argument(
        '--to',
        dest='to_emails',
        action='append',
        required=True,
        help='Recipient email address (can be specified multiple times)'
    )
    parser.add_argument(
        '--cc',
        dest='cc_emails',
        action='append',
        help='Cc address (can be specified multiple times)'
    )
    parser.add_argument(
        '--reply-to',
        help='Reply-To address (optional)'
    )
    parser.add_argument(
        '--subject',
        default='Test Message',
        help='Email subject (default: "Test Message")'
    )
    parser.add_argument(
        '--body',
        help='Email body text (optional)'
    )
    parser.add_argument(
        '--charset',
        default='utf-8',
        help='Charset of the body (default: utf-8)'
    )
    parser.add_argument(
        '--attachment',
        action='append',
        help='File to attach (can be specified multiple times)'
    )

    # SMTP sending
    parser.add_argument(
        '--send',
        action='store_true',
        help='Send email via SMTP (otherwise output to stdout)'
    )
    parser.add_argument(
        '--smtp-host',
        default='localhost',
        help='SMTP server hostname (default: localhost)'
    )
    parser.add_argument(
        '--smtp-port',
        type=int,
        default=2525,
        help='SMTP server port (default: 2525)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    msg = create_email(
        from_email=args.from_email,
        to_emails=args.to_emails,
        subject=args.subject,
        body=args.body,
        cc_emails=args.cc_emails,
        reply_to=args.reply_to,
        attachments=args.attachment,
        charset=args.charset,
    )

    if not args.send:
        print(msg.as_string())
        return 0

    try:
        send_email(msg, smtp_host=args.smtp_host, smtp_port=args.smtp_port)
    except (smtplib.SMTPException, OSError) as e:
        print(f"ERROR sending email: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
