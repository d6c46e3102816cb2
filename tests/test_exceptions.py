import errno
import os

import pytest

from minnow.exceptions import TaggedError, UnixError, check_system_call, notnull


def test_unix_error_message_and_code():
    err = UnixError("read", errno.EBADF)
    assert str(err) == "read: " + os.strerror(errno.EBADF)
    assert err.error_code == errno.EBADF
    assert err.errno == errno.EBADF


def test_tagged_error_uses_given_message():
    err = TaggedError("getaddrinfo(host, 80)", 7, "lookup failed")
    assert str(err) == "getaddrinfo(host, 80): lookup failed"
    assert err.error_code == 7
    assert err.attempt == "getaddrinfo(host, 80)"


def test_unix_error_is_an_oserror():
    with pytest.raises(OSError) as info:
        raise UnixError("close", errno.EBADF)
    assert isinstance(info.value, UnixError)
    assert info.value.errno == errno.EBADF
    assert info.value.attempt == "close"


def test_check_system_call_passes_non_negative():
    assert check_system_call("poll", 5) == 5
    assert check_system_call("poll", 0) == 0


def test_check_system_call_raises_on_negative():
    with pytest.raises(UnixError) as info:
        check_system_call("poll", -errno.EINTR)
    assert info.value.error_code == errno.EINTR
    assert str(info.value).startswith("poll: ")


def test_notnull_returns_value():
    marker = object()
    assert notnull("ctx", marker) is marker
    assert notnull("ctx", 0) == 0


def test_notnull_raises_on_none():
    with pytest.raises(RuntimeError, match="ctx: returned null pointer"):
        notnull("ctx", None)