import aiosmtplib

from .conftest import assert_matches_gold, captured_files, mask_date

MESSAGE = (
    'From: admin@example.com\r\n'
    'To: me@example.com\r\n'
    'Date: Mon, 19 Oct 2026 10:00:00 +0000\r\n'
    'Subject: Hello\r\n'
    '\r\n'
    'Test\r\n'
)


async def test_send_single_message(server, storage):
    errors, response = await aiosmtplib.send(
        MESSAGE,
        sender='admin@example.com',
        recipients=['me@example.com'],
        hostname='127.0.0.1',
        port=server.port,
        start_tls=False,
    )
    assert errors == {}
    assert response.startswith('message accepted for delivery')

    files = captured_files(storage)
    assert len(files) == 1
    assert_matches_gold('send_single_message', mask_date(files[0].read_text()))


async def test_client_sees_replies(server):
    smtp = aiosmtplib.SMTP(hostname='127.0.0.1', port=server.port, start_tls=False)
    code, message = await smtp.connect()
    assert code == 220
    assert message == 'mail.dumper'

    code, message = await smtp.ehlo(hostname='client1')
    assert code == 250
    assert message == 'hello client1 [127.0.0.1]'

    code, message = await smtp.mail('admin@example.com')
    assert (code, message) == (250, 'admin@example.com sender accepted')

    code, message = await smtp.rcpt('me@example.com')
    assert (code, message) == (250, 'me@example.com ok')

    code, message = await smtp.data('Subject: Hi\r\n\r\nHello\r\n')
    assert (code, message) == (250, 'message accepted for delivery')

    code, message = await smtp.quit()
    assert (code, message) == (221, 'mail.dumper closing connection')
