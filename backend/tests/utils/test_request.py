from unittest.mock import MagicMock

from authguard.utils.request import LOOPBACK_ADDRESS, get_client_ip


def test_get_client_ip_from_x_forwarded_for():
    request = MagicMock()
    request.headers = {"X-Forwarded-For": "203.0.113.195, 70.41.3.18, 150.172.238.178"}
    request.client = MagicMock(host="10.0.0.1")

    assert get_client_ip(request) == "203.0.113.195"


def test_get_client_ip_from_x_real_ip():
    request = MagicMock()
    request.headers = {"X-Real-IP": "203.0.113.195"}
    request.client = MagicMock(host="10.0.0.1")

    assert get_client_ip(request) == "203.0.113.195"


def test_get_client_ip_skips_empty_forwarded_entry():
    request = MagicMock()
    request.headers = {"X-Forwarded-For": " , 70.41.3.18", "X-Real-IP": "203.0.113.195"}

    assert get_client_ip(request) == "203.0.113.195"


def test_get_client_ip_defaults_to_loopback():
    request = MagicMock()
    request.headers = {}
    request.client = MagicMock(host="192.168.1.100")

    assert get_client_ip(request) == LOOPBACK_ADDRESS == "127.0.0.1"


def test_get_client_ip_value_is_opaque():
    request = MagicMock()
    request.headers = {"X-Forwarded-For": "not-an-ip"}

    assert get_client_ip(request) == "not-an-ip"
