"""An event loop that polls file descriptors and runs callbacks for ready ones."""

import enum
import errno
import os
import select
import socket
import sys
import weakref
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from minnow.exceptions import UnixError
from minnow.file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

_MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128
_ALWAYS_REPORTED = select.POLLERR | select.POLLHUP | select.POLLNVAL


class Direction(enum.Enum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = "in"
    OUT = "out"


class Result(enum.Enum):
    """The outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = "success"  # a rule was served
    TIMEOUT = "timeout"  # nothing became ready in time
    EXIT = "exit"  # no rule is left that is interested


def _noop() -> None:
    return None


def _always() -> bool:
    return True


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule:
    category_id: int
    interest: Interest
    callback: Callback
    fd: FileDescriptor
    direction: Direction
    on_cancel: Callback
    on_error: Callback
    cancel_requested: bool = False

    def service_count(self) -> int:
        """How often the descriptor was read or written, as fits the direction."""
        return self.fd.read_count() if self.direction is Direction.IN else self.fd.write_count()


class RuleHandle:
    """Lets the owner cancel a rule; does nothing once the rule is gone."""

    def __init__(self, rule: Union[_BasicRule, _FDRule]) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


def _socket_error(fd: int) -> Optional[int]:
    """The pending error on a socket, or None if ``fd`` is not a socket."""
    try:
        with socket.fromfd(fd, socket.AF_INET, socket.SOCK_STREAM) as sock:
            return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError as err:
        if err.errno == errno.ENOTSOCK:
            return None
        raise UnixError("getsockopt", err.errno or 0) from err


class EventLoop:
    """Runs callbacks for rules whose conditions hold, one rule per call."""

    def __init__(self) -> None:
        self._categories: List[str] = []
        self._fd_rules: List[_FDRule] = []
        self._non_fd_rules: List[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a category name (used in diagnostics); returns its id."""
        if len(self._categories) >= _MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Optional[Interest] = None,
        cancel: Optional[Callback] = None,
        error: Optional[Callback] = None,
    ) -> RuleHandle:
        """Run ``callback`` when ``fd`` is ready in ``direction`` and ``interest()`` holds.

        ``category`` is a category id, or a name for a new category.
        """
        category_id = self._category_id(category)
        rule = _FDRule(
            category_id=category_id,
            interest=interest or _always,
            callback=callback,
            fd=fd.duplicate(),
            direction=direction,
            on_cancel=cancel or _noop,
            on_error=error or _noop,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Optional[Interest] = None,
    ) -> RuleHandle:
        """Run ``callback`` as long as ``interest()`` holds, with no descriptor involved."""
        category_id = self._category_id(category)
        rule = _BasicRule(category_id=category_id, interest=interest or _always, callback=callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: Union[_BasicRule, _FDRule]) -> str:
        return self._categories[rule.category_id]

    def _drop(self, rule: _FDRule) -> None:
        if rule in self._fd_rules:
            self._fd_rules.remove(rule)

    def _report_poll_error(self, rule: _FDRule) -> None:
        socket_error = _socket_error(rule.fd.fd_num())
        if socket_error is None:
            print(f'error on polled file descriptor for rule "{self._name(rule)}"', file=sys.stderr)
        elif socket_error:
            print(
                f'error on polled socket for rule "{self._name(rule)}": {os.strerror(socket_error)}',
                file=sys.stderr,
            )

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve one rule, waiting up to ``timeout_ms`` (negative: forever) for descriptors."""
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                iterations += 1
                if iterations > _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations} iterations"
                    )
                fired = True
                rule.callback()
            if fired:
                return Result.SUCCESS

        polled: List[Tuple[_FDRule, int]] = []
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                # cancelled by the owner: no cancellation callback
                self._drop(rule)
                continue
            if rule.direction is Direction.IN and rule.fd.eof():
                rule.on_cancel()
                self._drop(rule)
                continue
            if rule.fd.closed():
                rule.on_cancel()
                self._drop(rule)
                continue
            if rule.interest():
                events = select.POLLIN if rule.direction is Direction.IN else select.POLLOUT
                something_to_poll = True
            else:
                events = 0  # still polled, to hear of errors
            polled.append((rule, events))

        if not something_to_poll:
            return Result.EXIT

        masks = {}
        for rule, events in polled:
            fd_num = rule.fd.fd_num()
            masks[fd_num] = masks.get(fd_num, 0) | events
        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as err:
            raise UnixError("poll", err.errno or 0) from err
        if not ready:
            return Result.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num(), 0) & (events | _ALWAYS_REPORTED)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_poll_error(rule)
                rule.on_error()
                rule.on_cancel()
                self._drop(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                # a hangup with nothing else: this descriptor will never be ready again
                rule.on_cancel()
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS