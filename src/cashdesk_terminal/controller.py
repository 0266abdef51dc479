"""
Terminal payment session controller.

Drives one card-reader payment at a time through
create -> poll -> succeeded/failed/timeout/canceled, with retry and manual
status checks. Every result that arrives for a session that has since been
reset, or for an operation that has been superseded, is discarded instead of
being written into the current state.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar, Union

from pydantic.alias_generators import to_camel

from .client import CashDeskClient
from .config import TerminalSettings, get_settings
from .logging_config import LogContext, log_payment_ids, mask_secret
from .models.base import CashDeskModel
from .models.errors import ErrorKind
from .models.outcomes import CreatePaymentOutcome, PollOutcome, RetryOutcome, StatusCheckOutcome
from .models.payment import (
    CreateTerminalPaymentRequest,
    PaymentIntentStatus,
    PaymentStatusSnapshot,
    is_api_error,
)
from .session import SessionState, SessionStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")
StateListener = Callable[[SessionState], Any]

ABORTED_MESSAGE = "Operation was superseded"
POLL_IN_PROGRESS_MESSAGE = "Polling already in progress"
POLL_CANCELED_MESSAGE = "Polling was cancelled"
POLL_TIMEOUT_MESSAGE = "Payment verification timed out"
POLL_TIMEOUT_STATE_MESSAGE = "Payment verification timed out. Please check manually."

_SETTLED_FAILURE_STATUSES = (PaymentIntentStatus.FAILED.value, PaymentIntentStatus.CANCELED.value)


class OperationToken:
    """Cancellation handle for a single create or retry call.

    The wrapped request runs as its own task so that superseding the
    operation cancels the outstanding HTTP request instead of merely
    ignoring its response.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def run(self, awaitable: Awaitable[T]) -> T:
        self._task = asyncio.ensure_future(awaitable)
        if self.cancelled:
            self._task.cancel()
        return await self._task


def _peek(params: Union[CashDeskModel, Mapping[str, Any]], name: str) -> Any:
    """Read a field from a request model or a snake/camel-case mapping."""
    if isinstance(params, CashDeskModel):
        return getattr(params, name, None)
    if name in params:
        return params[name]
    return params.get(to_camel(name))


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class TerminalPaymentController:
    """
    Orchestrates a terminal payment session.

    Example:
        ```python
        async with CashDeskClient() as client:
            controller = TerminalPaymentController(client)
            created = await controller.create_payment(request)
            if created.success:
                outcome = await controller.poll_payment_status(
                    resort_id=request.resort_id,
                    invoice_id=created.invoice_id,
                )
        ```

    Args:
        client: Cash-desk API client
        settings: Settings supplying the poll defaults
    """

    def __init__(self, client: CashDeskClient, settings: Optional[TerminalSettings] = None):
        self._client = client
        self._settings = settings or get_settings()
        self._state = SessionState.initial()
        self._listeners: List[StateListener] = []
        self._operation: Optional[OperationToken] = None
        self._polling = False
        self._poll_generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> str:
        return self._state.session_id

    @property
    def is_polling(self) -> bool:
        return self._polling

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        if previous.status != state.status:
            logger.debug(f"Session {state.session_id}: {previous.status.value} -> {state.status.value}")
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Error in state listener: {e}")

    def _update(self, **changes: Any) -> None:
        self._set_state(self._state.evolve(**changes))

    # Supersession

    def _supersede(self) -> OperationToken:
        if self._operation is not None:
            logger.info(f"Aborting in-flight operation for session {self._operation.session_id}")
            self._operation.cancel()
        self._operation = OperationToken(self._state.session_id)
        return self._operation

    def _release(self, token: OperationToken) -> None:
        if self._operation is token:
            self._operation = None

    def _is_stale(self, token: OperationToken) -> bool:
        return token.cancelled or token.session_id != self._state.session_id

    async def _run_operation(self, token: OperationToken, awaitable: Awaitable[T]) -> Optional[T]:
        """Await a superseding call; None means it was superseded or reset."""
        try:
            result = await token.run(awaitable)
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            logger.info(f"Operation for session {token.session_id} aborted")
            return None
        finally:
            self._release(token)
        if self._is_stale(token):
            logger.warning(f"Discarding result for stale session {token.session_id}")
            return None
        return result

    # Operations

    async def create_payment(
        self,
        params: Union[CreateTerminalPaymentRequest, Mapping[str, Any]],
    ) -> CreatePaymentOutcome:
        """Create a terminal payment and start a fresh attempt.

        Any in-flight create or retry call is aborted first. On success the
        session moves to ``processing``; the caller then starts polling.

        Args:
            params: Create-terminal-payment request

        Returns:
            CreatePaymentOutcome
        """
        token = self._supersede()
        order_id = _as_int(_peek(params, "order_id"))
        terminal_id = _peek(params, "terminal_id")

        with LogContext(session_id=token.session_id):
            self._set_state(
                SessionState(
                    session_id=token.session_id,
                    status=SessionStatus.CREATING,
                    order_id=order_id,
                    terminal_id=terminal_id,
                )
            )
            log_payment_ids(logger, "CREATE-START", order_id=order_id, terminal_id=terminal_id)

            result = await self._run_operation(token, self._client.payments.create(params))
            if result is None:
                return CreatePaymentOutcome(success=False, error=ABORTED_MESSAGE, error_type=ErrorKind.ABORTED)

            if is_api_error(result):
                self._update(
                    status=SessionStatus.FAILED,
                    error=result.error,
                    error_type=ErrorKind(result.error_type),
                )
                return CreatePaymentOutcome(success=False, error=result.error, error_type=result.error_type)

            self._update(
                status=SessionStatus.PROCESSING,
                order_id=result.order_id,
                terminal_id=result.terminal_id,
                invoice_id=result.invoice_id,
                payment_intent_id=result.payment_intent_id,
                client_secret=result.client_secret,
                total_amount=result.total_amount,
                currency=result.currency,
            )
            log_payment_ids(
                logger,
                "CREATE-SUCCESS",
                order_id=result.order_id,
                invoice_id=result.invoice_id,
                payment_intent_id=result.payment_intent_id,
                terminal_id=result.terminal_id,
            )
            return CreatePaymentOutcome(
                success=True,
                invoice_id=result.invoice_id,
                payment_intent_id=result.payment_intent_id,
                client_secret=result.client_secret,
                total_amount=result.total_amount,
                currency=result.currency,
            )

    async def poll_payment_status(
        self,
        resort_id: int,
        invoice_id: str,
        max_attempts: Optional[int] = None,
        interval_ms: Optional[int] = None,
    ) -> PollOutcome:
        """Poll the payment status until it settles, times out or is cancelled.

        Only one poll loop runs at a time; a second call while one is active
        is rejected without touching the state. API errors during a check
        are logged and the loop keeps going.

        Args:
            resort_id: Resort the payment belongs to
            invoice_id: Invoice created for the payment
            max_attempts: Checks after the initial one (default from settings)
            interval_ms: Delay before each check (default from settings)

        Returns:
            PollOutcome
        """
        if self._polling:
            logger.warning(f"{POLL_IN_PROGRESS_MESSAGE}, rejecting poll for invoice {invoice_id}")
            return PollOutcome(
                success=False,
                status=PaymentIntentStatus.PROCESSING.value,
                error=POLL_IN_PROGRESS_MESSAGE,
            )

        if max_attempts is None:
            max_attempts = self._settings.poll_max_attempts
        if interval_ms is None:
            interval_ms = self._settings.poll_interval_ms

        self._polling = True
        self._poll_generation += 1
        generation = self._poll_generation
        session_id = self._state.session_id

        try:
            with LogContext(session_id=session_id):
                self._update(status=SessionStatus.POLLING, poll_attempts=0, max_poll_attempts=max_attempts)
                log_payment_ids(logger, "POLL-START", order_id=self._state.order_id, invoice_id=invoice_id)
                return await self._poll_loop(generation, session_id, resort_id, invoice_id, max_attempts, interval_ms)
        except Exception as e:
            logger.exception(f"Polling for invoice {invoice_id} failed")
            message = str(e) or "Polling failed"
            if self._poll_is_current(generation, session_id):
                self._polling = False
                self._update(status=SessionStatus.FAILED, error=message, error_type=ErrorKind.UNKNOWN)
            return PollOutcome(success=False, status=PaymentIntentStatus.FAILED.value, error=message)
        finally:
            if self._poll_generation == generation:
                self._polling = False

    def _poll_is_current(self, generation: int, session_id: str) -> bool:
        return self._polling and self._poll_generation == generation and self._state.session_id == session_id

    async def _poll_loop(
        self,
        generation: int,
        session_id: str,
        resort_id: int,
        invoice_id: str,
        max_attempts: int,
        interval_ms: int,
    ) -> PollOutcome:
        request = {"resort_id": resort_id, "invoice_id": invoice_id}
        canceled = PollOutcome(success=False, status=SessionStatus.CANCELED.value, error=POLL_CANCELED_MESSAGE)

        result = await self._client.payments.check_status(request)
        if not self._poll_is_current(generation, session_id):
            logger.info(f"Polling for invoice {invoice_id} cancelled during initial check")
            return canceled
        if not is_api_error(result) and result.status == PaymentIntentStatus.SUCCEEDED.value:
            return self._finish_poll_success(result)

        for attempt in range(1, max_attempts + 1):
            await asyncio.sleep(interval_ms / 1000)
            if not self._poll_is_current(generation, session_id):
                logger.info(f"Polling for invoice {invoice_id} cancelled before attempt {attempt}")
                return canceled

            self._update(poll_attempts=attempt)
            result = await self._client.payments.check_status(request)
            if not self._poll_is_current(generation, session_id):
                logger.info(f"Polling for invoice {invoice_id} cancelled, discarding attempt {attempt}")
                return canceled

            if is_api_error(result):
                logger.warning(f"Poll {attempt}/{max_attempts}: {result.error_type} error: {result.error}")
                continue

            if result.status == PaymentIntentStatus.SUCCEEDED.value:
                return self._finish_poll_success(result)

            if result.status in _SETTLED_FAILURE_STATUSES:
                message = result.error_message or f"Payment {result.status}"
                logger.warning(f"Payment {result.status} after {attempt} attempts: {message}")
                self._polling = False
                self._update(status=SessionStatus.FAILED, error=message)
                return PollOutcome(success=False, status=result.status, error=message)

            if attempt == 1 or attempt % 5 == 0:
                logger.info(f"Poll {attempt}/{max_attempts}: payment still {result.status}")

        logger.warning(f"Polling for invoice {invoice_id} timed out after {max_attempts} attempts")
        self._polling = False
        self._update(
            status=SessionStatus.TIMEOUT,
            error=POLL_TIMEOUT_STATE_MESSAGE,
            error_type=ErrorKind.TIMEOUT,
        )
        return PollOutcome(success=False, status="timeout", error=POLL_TIMEOUT_MESSAGE)

    def _finish_poll_success(self, result: PaymentStatusSnapshot) -> PollOutcome:
        self._polling = False
        self._update(status=SessionStatus.SUCCEEDED, error=None, error_type=None)
        log_payment_ids(
            logger,
            "PAYMENT-SUCCEEDED",
            order_id=self._state.order_id,
            invoice_id=result.invoice_id,
            payment_intent_id=result.payment_intent_id,
        )
        return PollOutcome(success=True, status=result.status)

    async def retry_payment(
        self,
        terminal_id: str,
        order_id: int,
        invoice_id: Optional[str] = None,
        resort_id: Optional[int] = None,
    ) -> RetryOutcome:
        """Issue a new PaymentIntent for the current order.

        An ``already_paid`` answer settles the session as succeeded. A
        successful retry leaves the session in ``processing``; polling is
        the caller's next step.
        """
        token = self._supersede()

        with LogContext(session_id=token.session_id):
            self._update(status=SessionStatus.PROCESSING, error=None, error_type=None)
            log_payment_ids(
                logger, "RETRY-START", order_id=order_id, invoice_id=invoice_id, terminal_id=terminal_id
            )

            request = {"terminal_id": terminal_id, "order_id": order_id}
            if invoice_id:
                request["invoice_id"] = invoice_id
            if resort_id is not None:
                request["resort_id"] = resort_id

            result = await self._run_operation(token, self._client.payments.retry(request))
            if result is None:
                return RetryOutcome(success=False, error=ABORTED_MESSAGE, error_type=ErrorKind.ABORTED)

            if is_api_error(result):
                if result.error_type == ErrorKind.ALREADY_PAID:
                    logger.info(f"Order {order_id} already paid, marking session succeeded")
                    self._update(status=SessionStatus.SUCCEEDED)
                    return RetryOutcome(success=True)
                self._update(
                    status=SessionStatus.FAILED,
                    error=result.error,
                    error_type=ErrorKind(result.error_type),
                )
                return RetryOutcome(success=False, error=result.error, error_type=result.error_type)

            self._update(
                status=SessionStatus.PROCESSING,
                terminal_id=terminal_id,
                payment_intent_id=result.payment_intent_id,
                client_secret=result.client_secret,
                invoice_id=result.invoice_id,
            )
            logger.info(
                f"Retry issued payment intent {result.payment_intent_id} "
                f"(secret {mask_secret(result.client_secret)})"
            )
            return RetryOutcome(
                success=True,
                payment_intent_id=result.payment_intent_id,
                client_secret=result.client_secret,
            )

    async def check_status_once(
        self,
        resort_id: int,
        invoice_id: Optional[str] = None,
        order_id: Optional[int] = None,
    ) -> StatusCheckOutcome:
        """Check the payment status once, outside of the poll loop."""
        session_id = self._state.session_id

        with LogContext(session_id=session_id):
            request: dict[str, Any] = {"resort_id": resort_id}
            if invoice_id:
                request["invoice_id"] = invoice_id
            if order_id is not None:
                request["order_id"] = order_id

            result = await self._client.payments.check_status(request)
            if is_api_error(result):
                return StatusCheckOutcome(success=False, error=result.error, error_type=result.error_type)

            if self._state.session_id != session_id:
                logger.warning(f"Discarding status check for stale session {session_id}")
                return StatusCheckOutcome(success=True, status=result.status)

            if result.status == PaymentIntentStatus.SUCCEEDED.value:
                self._update(status=SessionStatus.SUCCEEDED, error=None, error_type=None)
            elif result.status in _SETTLED_FAILURE_STATUSES:
                self._update(
                    status=SessionStatus.FAILED,
                    error=result.error_message or f"Payment {result.status}",
                )
            return StatusCheckOutcome(success=True, status=result.status)

    def cancel(self) -> None:
        """Abort the in-flight call and stop polling.

        Only a session that is polling moves to ``canceled``.
        """
        if self._operation is not None:
            self._operation.cancel()
            self._operation = None
        self._polling = False
        if self._state.status == SessionStatus.POLLING:
            logger.info(f"Session {self._state.session_id} cancelled while polling")
            self._update(status=SessionStatus.CANCELED)

    def reset(self) -> SessionState:
        """Abandon the current session and start a new idle one."""
        if self._operation is not None:
            self._operation.cancel()
            self._operation = None
        self._polling = False
        previous = self._state.session_id
        self._set_state(SessionState.initial())
        logger.info(f"Session {previous} reset to {self._state.session_id}")
        return self._state


__all__ = [
    "OperationToken",
    "TerminalPaymentController",
]
