from suffixbot.testing.conftest import (  # noqa: F401
    mock_dns,
    mock_github,
    reserved_words_source,
    sample_context,
    sample_whois_payload,
    sld_registry,
    suffix_config,
)
