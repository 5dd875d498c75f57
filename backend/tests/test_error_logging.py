from marketplace.services.error_logging import ErrorLogger, sanitize_data, truncate_string


def test_sanitize_data_redacts_secrets():
    data = {
        "email": "carla@example.com",
        "password": "secret123",
        "nested": {"refresh_token": "abc", "items": [{"api_key": "k"}]},
        "header": "eyJhbGciOiJIUzI1NiJ9.payload.signature",
    }
    assert sanitize_data(data) == {
        "email": "carla@example.com",
        "password": "[REDACTED]",
        "nested": {"refresh_token": "[REDACTED]", "items": [{"api_key": "[REDACTED]"}]},
        "header": "[REDACTED_TOKEN]",
    }


def test_truncate_string():
    assert truncate_string("short", 10) == "short"
    assert truncate_string("x" * 20, 10).startswith("x" * 10 + "... [TRUNCATED, total 20 chars]")


def test_log_error_without_database_returns_none():
    try:
        raise ValueError("bad input")
    except ValueError as e:
        assert ErrorLogger().log_error(e, severity="warning") is None
