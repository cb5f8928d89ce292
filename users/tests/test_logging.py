import logging

import pytest
from django.test import RequestFactory, override_settings
from users.logging import client_ip, log_auth_event

rf = RequestFactory()


def test_forwarded_header_ignored_without_trusted_proxy():
    request = rf.post("/api/v1/auth/login/", REMOTE_ADDR="203.0.113.9", HTTP_X_FORWARDED_FOR="1.2.3.4")
    assert client_ip(request) == "203.0.113.9"


@override_settings(TRUSTED_PROXIES=["10.0.0.2"])
def test_forwarded_header_read_behind_trusted_proxy():
    request = rf.post(
        "/api/v1/auth/login/",
        REMOTE_ADDR="10.0.0.2",
        HTTP_X_FORWARDED_FOR="1.2.3.4, 198.51.100.7",
    )
    # The left-most hop is client supplied; the proxy appended the real peer
    assert client_ip(request) == "198.51.100.7"


@override_settings(TRUSTED_PROXIES=["10.0.0.2"])
def test_untrusted_peer_cannot_forge_forwarded_header():
    request = rf.post("/api/v1/auth/login/", REMOTE_ADDR="198.51.100.7", HTTP_X_FORWARDED_FOR="10.9.9.9")
    assert client_ip(request) == "198.51.100.7"


@pytest.mark.parametrize("status,level", [("success", logging.INFO), ("invalid_credentials", logging.WARNING)])
def test_log_auth_event_levels(caplog, status, level):
    request = rf.post("/api/v1/auth/login/", REMOTE_ADDR="203.0.113.9")
    with caplog.at_level(logging.INFO, logger="auth"):
        log_auth_event("login", request, status=status)
    record = caplog.records[-1]
    assert record.levelno == level
    assert record.msg == {"action": "login", "ip": "203.0.113.9", "status": status}
