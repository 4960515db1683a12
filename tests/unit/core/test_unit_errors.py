# tests/unit/core/test_unit_errors.py — v1
"""Tests for core/errors.py — error taxonomy and presentation snapshots."""

from __future__ import annotations

import pytest

from cinearchive.core.errors import (
    AccessForbidden,
    AnalysisError,
    ApiOffline,
    AuthFailure,
    ExhaustedRetries,
    MalformedResponse,
    NetworkTimeout,
    NetworkUnreachable,
    NotConfigured,
    ServiceError,
    ServiceRefused,
)

ALL_ERRORS = [
    AuthFailure, AccessForbidden, NetworkTimeout, NetworkUnreachable,
    ServiceRefused, MalformedResponse, ExhaustedRetries, NotConfigured, ApiOffline,
    ServiceError,
]


class TestTaxonomy:
    @pytest.mark.parametrize("error_cls", ALL_ERRORS)
    def test_every_error_is_presentable(self, error_cls):
        info = error_cls().to_info()
        assert info.title
        assert info.message
        assert info.suggestion
        assert info.kind == error_cls.kind

    def test_kinds_are_unique(self):
        kinds = [cls.kind for cls in ALL_ERRORS]
        assert len(kinds) == len(set(kinds))

    def test_all_subclass_base(self):
        assert all(issubclass(cls, AnalysisError) for cls in ALL_ERRORS)

    def test_custom_message_and_status(self):
        err = AccessForbidden("API not enabled", status_code=403, body="{}")
        assert err.message == "API not enabled"
        assert err.status_code == 403
        assert str(err) == "API not enabled"


class TestServiceRefused:
    def test_placeholder(self):
        placeholder = ServiceRefused().placeholder
        assert placeholder.title == "DATA_RESTRICTED"
        assert placeholder.genre == "ERROR_403"
        assert placeholder.year == "UNKNOWN"


class TestExhaustedRetries:
    def test_carries_attempts(self):
        err = ExhaustedRetries(status_code=503, body="busy", attempts=3)
        assert err.attempts == 3
        assert err.status_code == 503
        assert err.body == "busy"
