"""Share links and QR codes for drops."""

import io

import qrcode


def build_share_url(public_base_url: str, drop_id: str) -> str:
    """Public recipient URL: ``{public_base_url}/drop/{drop_id}``."""
    return f"{public_base_url.rstrip('/')}/drop/{drop_id}"


def qr_code_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render ``data`` as a QR code PNG."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
