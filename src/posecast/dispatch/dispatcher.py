"""
Inbound Dispatcher
==================

Routes decoded server messages to their handlers.

Invoked once per inbound text message, synchronously, on the event loop
thread. The dispatcher never suspends, so handlers may mutate shared state
(e.g. the anchor registry) without locks.

Behavior:
    - Unknown tag           -> ignored (debug log only)
    - Known tag, bad payload -> dropped with one WARNING diagnostic
    - Decoded message        -> exactly one handler, keyed by message type
"""

import logging
from typing import Callable, Dict, Type

from posecast.dispatch.protocol import decode_message, known_tags
from posecast.errors import MessageDecodeError


logger = logging.getLogger(__name__)


Handler = Callable[[object], None]


class DispatcherMetrics:
    """Counters for dispatcher observability."""

    __slots__ = ("received", "dispatched", "ignored", "decode_errors", "unhandled")

    def __init__(self) -> None:
        self.received: int = 0
        self.dispatched: int = 0
        self.ignored: int = 0
        self.decode_errors: int = 0
        self.unhandled: int = 0

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "dispatched": self.dispatched,
            "ignored": self.ignored,
            "decode_errors": self.decode_errors,
            "unhandled": self.unhandled,
        }


class InboundDispatcher:
    """
    Maps inbound message types to handlers.

    Example:
        dispatcher = InboundDispatcher()
        dispatcher.register(
            ObjectPositionMessage,
            lambda msg: registry.place_if_far(msg.position),
        )
        connection.on_server_message = dispatcher.dispatch
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type, Handler] = {}
        self.metrics = DispatcherMetrics()

    def register(self, message_type: Type, handler: Handler) -> None:
        """
        Register the handler for a message type.

        Raises:
            ValueError: If the type already has a handler
        """
        if message_type in self._handlers:
            raise ValueError(f"Handler already registered for {message_type.__name__}")
        self._handlers[message_type] = handler

    def dispatch(self, raw: str) -> bool:
        """
        Decode and route one inbound message.

        Args:
            raw: Message text from the connection

        Returns:
            True if a handler was invoked
        """
        self.metrics.received += 1

        try:
            message = decode_message(raw)
        except MessageDecodeError as e:
            self.metrics.decode_errors += 1
            logger.warning(f"Dropped malformed message: {e.reason} (raw={e.raw!r})")
            return False

        if message is None:
            self.metrics.ignored += 1
            logger.debug(
                f"Ignoring message with unknown tag: {raw[:64]!r} "
                f"(known: {', '.join(known_tags())})"
            )
            return False

        handler = self._handlers.get(type(message))
        if handler is None:
            self.metrics.unhandled += 1
            logger.debug(f"No handler for {type(message).__name__}")
            return False

        handler(message)
        self.metrics.dispatched += 1
        return True
