"""
Property-based tests for suffixbot logging.

Feature: logging
"""

import io
import logging

from hypothesis import given, settings
from hypothesis import strategies as st

from suffixbot.logging import (
    configure_logging,
    get_logger,
    level_from_name,
    log_http_request,
    log_http_response,
    mask_sensitive_data,
    safe_log_dict,
)

token_body_strategy = st.text(
    alphabet=st.sampled_from("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"),
    min_size=36,
    max_size=60,
)

api_key_strategy = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
    min_size=16,
    max_size=48,
)


@given(body=token_body_strategy, prefix=st.sampled_from(["ghp_", "ghs_", "gho_"]))
@settings(max_examples=100)
def test_property_no_github_token_in_masked_output(body: str, prefix: str) -> None:
    """
    Property: No credentials in logs

    For any GitHub token embedded in text, the masked output SHALL NOT
    contain the token.
    """
    token = prefix + body

    masked = mask_sensitive_data(f"using token {token} for request")

    assert token not in masked


@given(token=token_body_strategy)
@settings(max_examples=100)
def test_property_bearer_header_masked(token: str) -> None:
    """
    Property: No credentials in logs

    For any Authorization header value, the masked output SHALL keep the
    scheme and drop the credential.
    """
    masked = mask_sensitive_data(f"Authorization: Bearer {token}")

    assert token not in masked
    assert "Bearer [REDACTED]" in masked


@given(api_key=api_key_strategy)
@settings(max_examples=100)
def test_property_safe_log_dict_masks_secrets(api_key: str) -> None:
    """
    Property: No credentials in logs

    For any dictionary holding an API key or token at any depth,
    safe_log_dict SHALL replace the value with "[REDACTED]".
    """
    data = {
        "X-API-Key": api_key,
        "Content-Type": "application/json",
        "nested": {"github_token": api_key},
        "items": [{"password": api_key}],
    }

    safe = safe_log_dict(data)

    assert api_key not in str(safe)
    assert safe["X-API-Key"] == "[REDACTED]"
    assert safe["Content-Type"] == "application/json"
    assert safe["nested"]["github_token"] == "[REDACTED]"
    assert safe["items"][0]["password"] == "[REDACTED]"


@given(api_key=api_key_strategy)
@settings(max_examples=50)
def test_property_log_http_request_no_sensitive_data(api_key: str) -> None:
    """
    Property: No credentials in logs

    For any request logged at DEBUG, the log output SHALL NOT contain the
    API key sent in its headers.
    """
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    http_logger = get_logger("http")
    http_logger.addHandler(handler)
    previous = http_logger.level
    http_logger.setLevel(logging.DEBUG)
    try:
        log_http_request(
            "PATCH",
            "https://pda.example.test/api/v1/servers/localhost/zones/no.kg",
            headers={"X-API-Key": api_key, "Authorization": f"Bearer {api_key}"},
            body={"rrsets": [{"name": "mycompany.no.kg.", "type": "NS"}]},
        )
        log_http_response(204, "https://pda.example.test", body={"token": api_key}, elapsed_ms=3.2)
    finally:
        http_logger.removeHandler(handler)
        http_logger.setLevel(previous)

    output = stream.getvalue()
    assert "PATCH https://pda.example.test" in output
    assert "Response 204" in output
    assert api_key not in output


def test_configure_logging_sets_levels() -> None:
    handler = logging.StreamHandler(io.StringIO())
    configure_logging(level=logging.WARNING, http_level=logging.DEBUG, handler=handler)
    try:
        assert get_logger().level == logging.WARNING
        assert get_logger("http").level == logging.DEBUG
        assert handler in get_logger().handlers
    finally:
        get_logger().removeHandler(handler)
        get_logger().setLevel(logging.NOTSET)
        get_logger("http").setLevel(logging.NOTSET)


def test_get_logger_returns_correct_loggers() -> None:
    assert get_logger().name == "suffixbot"
    assert get_logger("engine").name == "suffixbot.engine"


def test_level_from_name() -> None:
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name(" WARNING ") == logging.WARNING
    assert level_from_name("") == logging.INFO
    assert level_from_name("chatty", default=logging.ERROR) == logging.ERROR


def test_mask_sensitive_data_preserves_non_sensitive() -> None:
    text = "Validating whois/mycompany.no.kg.json for PR #42"

    assert mask_sensitive_data(text) == text
