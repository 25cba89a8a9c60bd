"""Unit tests for cluster redirect detection and resolution."""

from __future__ import annotations

import pytest
import redis

from rcc_redis_adapter.exceptions import (
    InvalidArgumentError,
    MalformedRedirectMessageError,
)
from rcc_redis_adapter.redirects import (
    Redirect,
    is_ask_error,
    is_moved_error,
    parse_redirect,
    reply_error_code,
    resolve_host_and_port,
)

ResponseError = redis.exceptions.ResponseError


def _coded(message, code):
    err = ResponseError(message)
    err.code = code
    return err


# -----------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------


class TestReplyErrorCode:
    def test_code_from_message(self):
        assert reply_error_code(ResponseError("WRONGTYPE Operation against a key")) == "WRONGTYPE"

    def test_code_from_redis_py_class(self):
        assert reply_error_code(redis.exceptions.MovedError("14190 127.0.0.1:6379")) == "MOVED"
        assert reply_error_code(redis.exceptions.AskError("14190 127.0.0.1:6379")) == "ASK"
        assert reply_error_code(redis.exceptions.ClusterDownError("The cluster is down")) == "CLUSTERDOWN"

    def test_explicit_code_attribute(self):
        assert reply_error_code(_coded("whatever", "MOVED")) == "MOVED"

    def test_status_code_attribute(self):
        err = ResponseError("14190 127.0.0.1:6379")
        err.status_code = "MOVED"
        assert reply_error_code(err) == "MOVED"
        assert resolve_host_and_port(err) == ("127.0.0.1", "6379")

    def test_message_without_code(self):
        assert reply_error_code(ResponseError("unknown command 'FOO'")) is None

    @pytest.mark.parametrize(
        "value",
        [None, "MOVED 14190 127.0.0.1:6379", {"code": "MOVED"}, 42, Exception("MOVED 1 h:1")],
    )
    def test_not_a_reply_error(self, value):
        assert reply_error_code(value) is None


class TestIsMovedError:
    def test_plain_reply_error(self):
        assert is_moved_error(ResponseError("MOVED 14190 127.0.0.1:6379")) is True

    def test_redis_py_moved_error(self):
        assert is_moved_error(redis.exceptions.MovedError("14190 127.0.0.1:6379")) is True

    @pytest.mark.parametrize("code", ["ASK", "ERR", "TRYAGAIN"])
    def test_other_codes(self, code):
        assert is_moved_error(_coded(f"{code} 14190 127.0.0.1:6379", code)) is False

    def test_redis_py_ask_error_is_not_moved(self):
        assert is_moved_error(redis.exceptions.AskError("14190 127.0.0.1:6379")) is False

    def test_word_moved_in_message_is_not_enough(self):
        assert is_moved_error(ResponseError("ERR key was moved somewhere")) is False
        assert is_moved_error(Exception("MOVED 14190 127.0.0.1:6379")) is False
        assert is_moved_error(redis.exceptions.ConnectionError("MOVED 14190 127.0.0.1:6379")) is False

    @pytest.mark.parametrize("value", [None, "", "MOVED", {}, {"code": "MOVED"}, object()])
    def test_never_raises(self, value):
        assert is_moved_error(value) is False


class TestIsAskError:
    def test_ask(self):
        assert is_ask_error(ResponseError("ASK 3999 127.0.0.1:6381")) is True
        assert is_ask_error(redis.exceptions.AskError("3999 127.0.0.1:6381")) is True

    def test_moved_is_not_ask(self):
        assert is_ask_error(redis.exceptions.MovedError("3999 127.0.0.1:6381")) is False
        assert is_ask_error(None) is False


# -----------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------


class TestResolveHostAndPort:
    def test_from_message(self):
        err = ResponseError("MOVED 14190 127.0.0.1:6379")
        assert resolve_host_and_port(err) == ("127.0.0.1", "6379")

    def test_from_redis_py_moved_error(self):
        err = redis.exceptions.MovedError("14190 10.0.0.5:7000")
        assert resolve_host_and_port(err) == ("10.0.0.5", "7000")

    def test_hostname(self):
        err = ResponseError("MOVED 866 node-3.cache.internal:6380")
        assert resolve_host_and_port(err) == ("node-3.cache.internal", "6380")

    def test_ipv6(self):
        assert resolve_host_and_port(ResponseError("MOVED 1 [::1]:7000")) == ("::1", "7000")
        assert resolve_host_and_port(ResponseError("MOVED 1 fe80::1:7000")) == ("fe80::1", "7000")

    def test_bracketed_ipv6_from_redis_py_moved_error(self):
        err = redis.exceptions.MovedError("1 [::1]:7000")
        assert resolve_host_and_port(err) == ("::1", "7000")
        assert resolve_host_and_port(ResponseError("MOVED 1 [::1]:7000")) == ("::1", "7000")

    def test_not_moved(self):
        with pytest.raises(InvalidArgumentError, match="moved"):
            resolve_host_and_port(ResponseError("ERR unknown command"))

    def test_ask_is_rejected(self):
        with pytest.raises(InvalidArgumentError):
            resolve_host_and_port(ResponseError("ASK 3999 127.0.0.1:6381"))

    @pytest.mark.parametrize("value", [None, "MOVED 1 h:1", Exception("MOVED 1 h:1")])
    def test_non_errors_are_rejected(self, value):
        with pytest.raises(InvalidArgumentError):
            resolve_host_and_port(value)

    def test_invalid_argument_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_host_and_port(None)

    @pytest.mark.parametrize(
        "message",
        ["MOVED", "MOVED 14190", "MOVED 14190 :7000", "MOVED 14190 10.0.0.5:", "MOVED 1 [::1]7000"],
    )
    def test_malformed_address(self, message):
        with pytest.raises(MalformedRedirectMessageError):
            resolve_host_and_port(ResponseError(message))

    def test_coded_error_without_address(self):
        with pytest.raises(MalformedRedirectMessageError):
            resolve_host_and_port(_coded("no address here", "MOVED"))


class TestParseRedirect:
    def test_moved(self):
        redirect = parse_redirect(ResponseError("MOVED 14190 10.0.0.5:7000"))
        assert redirect == Redirect(kind="MOVED", slot=14190, host="10.0.0.5", port="7000")
        assert redirect.address == ("10.0.0.5", "7000")

    def test_redis_py_ask_error(self):
        redirect = parse_redirect(redis.exceptions.AskError("3999 127.0.0.1:6381"))
        assert redirect.kind == "ASK"
        assert redirect.slot == 3999
        assert redirect.address == ("127.0.0.1", "6381")

    def test_missing_slot(self):
        redirect = parse_redirect(_coded("10.0.0.5:7000", "MOVED"))
        assert redirect.slot is None
        assert redirect.address == ("10.0.0.5", "7000")

    def test_not_a_redirect(self):
        with pytest.raises(InvalidArgumentError):
            parse_redirect(ResponseError("CLUSTERDOWN The cluster is down"))
