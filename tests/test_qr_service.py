import base64

import pytest

from campus_connect.services.qr_service import generate_qr_data_url


def test_qr_data_url_is_svg():
    url = generate_qr_data_url("https://forms.gle/placement-attendance-form")
    prefix = "data:image/svg+xml;base64,"
    assert url.startswith(prefix)
    assert b"<svg" in base64.b64decode(url[len(prefix):])


def test_qr_requires_payload():
    with pytest.raises(ValueError):
        generate_qr_data_url("")
