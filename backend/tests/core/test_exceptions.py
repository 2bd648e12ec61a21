from authguard.core.exceptions import StoreUnavailableError


def test_store_unavailable_error_message():
    err = StoreUnavailableError("Connection refused")
    assert str(err) == "Counter store unavailable: Connection refused"
    assert err.reason == "Connection refused"


def test_store_unavailable_error_default():
    err = StoreUnavailableError()
    assert "Counter store unavailable" in str(err)
    assert err.reason == "unknown"
