"""Pairing status page: scan the QR here to link the WhatsApp account."""

from html import escape

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from notify_relay.whatsapp.models import SessionState
from notify_relay.whatsapp.qr import challenge_to_data_uri

router = APIRouter(tags=["pairing"])

_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>WhatsApp pairing</title>{refresh}</head>
<body style="font-family: sans-serif; text-align: center; margin-top: 40px">
{body}
</body>
</html>"""


def _page(body: str, refresh: bool) -> str:
    meta = '<meta http-equiv="refresh" content="5">' if refresh else ""
    return _PAGE.format(refresh=meta, body=body)


@router.get("/qr", response_class=HTMLResponse)
def qr_page(request: Request) -> HTMLResponse:
    """Render the current pairing state as HTML."""
    state = request.app.state.relay.session.current_pairing_state()

    if state.status == "connected":
        return HTMLResponse(_page("<h1>WhatsApp connected</h1>", refresh=False))

    if state.status == "awaiting_pairing" and state.challenge:
        src = challenge_to_data_uri(state.challenge)
        body = (
            "<h1>Scan with WhatsApp</h1>"
            "<p>Linked devices &rarr; Link a device</p>"
            f'<img alt="pairing QR code" src="{escape(src)}">'
        )
        return HTMLResponse(_page(body, refresh=True))

    if state.session_state is SessionState.CLOSED:
        body = "<h1>Logged out</h1><p>Remove the saved credentials and restart to pair again.</p>"
        return HTMLResponse(_page(body, refresh=False))

    return HTMLResponse(_page("<h1>Initializing&hellip;</h1><p>Waiting for a QR code.</p>", refresh=True))
