import json

import httpx

from app.services.email import EmailService, render_html_template


def _service(handler):
    return EmailService(api_url="http://relay.test/send", timeout=5, transport=httpx.MockTransport(handler))


async def test_successful_send_posts_relay_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"status": "success"})

    assert await _service(handler).send_notification_email("a@example.com", "Quote Accepted", "You won") is True
    assert seen[0]["email"] == "a@example.com"
    assert seen[0]["subject"] == "New Notification: Quote Accepted"
    assert seen[0]["html"] is True
    assert "You won" in seen[0]["message"]


async def test_relay_rejection_and_bad_payloads_return_false():
    rejected = _service(lambda request: httpx.Response(400, json={"status": "error", "message": "bad address"}))
    assert await rejected.send("a@example.com", "s", "<p>x</p>") is False

    garbage = _service(lambda request: httpx.Response(502, text="<html>gateway</html>"))
    assert await garbage.send("a@example.com", "s", "<p>x</p>") is False


async def test_network_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert await _service(handler).send("a@example.com", "s", "<p>x</p>") is False


async def test_unconfigured_relay_skips_send():
    assert await EmailService(api_url="").send("a@example.com", "s", "<p>x</p>") is False


def test_template_escapes_content():
    page = render_html_template("Hi <b>", "line one\n<script>", "Open", "https://example.com/?a=1&b=2")
    assert "&lt;script&gt;" in page
    assert "line one<br>" in page
    assert "a=1&amp;b=2" in page
