"""Pairing challenge rendering (QR code as PNG data URI or terminal ASCII)."""

import base64
import io
import sys

import qrcode


def challenge_to_data_uri(challenge: str) -> str:
    """Encode the pairing challenge as a scannable PNG ``data:`` URI."""
    img = qrcode.make(challenge)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def print_challenge(challenge: str) -> None:
    """Print the challenge as an ASCII QR code so it can be scanned from a terminal."""
    code = qrcode.QRCode(border=1)
    code.add_data(challenge)
    code.make(fit=True)
    print("Scan the QR code below:", flush=True)
    code.print_ascii(out=sys.stdout)
    sys.stdout.flush()
