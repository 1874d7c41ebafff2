"""Tests for the bounded retry helper and value helpers."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from sqlkv._internal.retry import (
    is_data_exception,
    is_serialization_failure,
    retry,
)
from sqlkv._internal.values import EMPTY, blob, encode_integer, parse_integer, to_bytes
from sqlkv.exceptions import ValueFormatError


class DriverError(Exception):
    def __init__(self, *args, sqlstate=None):
        super().__init__(*args)
        self.sqlstate = sqlstate


def backend_error(*args, sqlstate=None, cls=OperationalError):
    return cls("UPDATE sqlkv ...", None, DriverError(*args, sqlstate=sqlstate))


def flaky(failures, error):
    """Return an operation that raises *error* *failures* times, then succeeds."""
    calls = []

    async def operation():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return len(calls)

    return operation, calls


class TestRetry:
    async def test_success_first_time(self):
        operation, calls = flaky(0, backend_error("boom"))
        assert await retry(operation, attempts=10) == 1
        assert len(calls) == 1

    async def test_recovers_within_budget(self):
        operation, calls = flaky(9, backend_error("boom"))
        assert await retry(operation, attempts=10) == 10

    async def test_reraises_last_error_when_exhausted(self):
        error = backend_error("boom")
        operation, calls = flaky(10, error)
        with pytest.raises(OperationalError) as exc_info:
            await retry(operation, attempts=10)
        assert exc_info.value is error
        assert len(calls) == 10

    async def test_non_backend_errors_are_not_retried(self):
        operation, calls = flaky(1, ValueFormatError("k", b"x"))
        with pytest.raises(ValueFormatError):
            await retry(operation, attempts=10)
        assert len(calls) == 1

    async def test_predicate_limits_what_is_retried(self):
        operation, calls = flaky(1, backend_error("duplicate", cls=IntegrityError))
        with pytest.raises(IntegrityError):
            await retry(operation, attempts=4, when=is_serialization_failure)
        assert len(calls) == 1

    async def test_deadlocks_are_retried(self):
        operation, calls = flaky(3, backend_error(1213, "Deadlock found"))
        assert await retry(operation, attempts=4, when=is_serialization_failure) == 4


class TestErrorClassification:
    def test_mysql_deadlock(self):
        assert is_serialization_failure(backend_error(1213, "Deadlock found"))
        assert not is_serialization_failure(backend_error(1062, "Duplicate entry"))

    def test_sqlstate(self):
        assert is_serialization_failure(backend_error("x", sqlstate="40001"))
        assert is_serialization_failure(backend_error("x", sqlstate="40P01"))
        assert not is_serialization_failure(backend_error("x", sqlstate="23505"))

    def test_data_exception(self):
        assert is_data_exception(backend_error("bad int", sqlstate="22P02"))
        assert not is_data_exception(backend_error("x", sqlstate="40001"))
        assert not is_data_exception(backend_error("x"))


class TestValues:
    def test_blob(self):
        assert blob(b"abc") == b"abc"
        assert blob(b"") is EMPTY

    def test_to_bytes(self):
        assert to_bytes(None) is None
        assert to_bytes("abc") == b"abc"
        assert to_bytes(memoryview(b"abc")) == b"abc"
        assert to_bytes(b"") == b""

    def test_integers_are_decimal_text(self):
        assert encode_integer(-42) == b"-42"
        assert parse_integer("k", b"17") == 17
        assert parse_integer("k", "17") == 17
        assert parse_integer("k", b"-3") == -3

    @pytest.mark.parametrize("value", [b"abc", b"", b"1.5", b"0x10", b" 7\n", b"1_000", b"+5", b"-"])
    def test_parse_integer_rejects(self, value):
        with pytest.raises(ValueFormatError) as exc_info:
            parse_integer("k", value)
        assert exc_info.value.key == "k"
        assert exc_info.value.value == value
