"""
Terminal payments resource.

Wraps the three cash-desk endpoints that drive a card-reader payment:
create-terminal-payment, check-payment-status and retry-terminal-payment.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from ..classifier import (
    CHECK_PAYMENT_STATUS_RULES,
    CREATE_PAYMENT_RULES,
    RETRY_PAYMENT_RULES,
)
from ..logging_config import mask_secret
from ..models.payment import (
    CheckPaymentStatusRequest,
    CheckPaymentStatusResult,
    CreatePaymentResult,
    CreatePaymentSuccess,
    CreateTerminalPaymentRequest,
    PaymentStatusSnapshot,
    RetryPaymentResult,
    RetryPaymentSuccess,
    RetryTerminalPaymentRequest,
    is_api_error,
)
from .base import AsyncBaseResource, OperationSpec

logger = logging.getLogger(__name__)

CREATE_TERMINAL_PAYMENT = OperationSpec(
    name="CREATE-TERMINAL-PAYMENT",
    request_prefix="ctp",
    method="POST",
    path="/api/cash-desk/create-terminal-payment",
    request_model=CreateTerminalPaymentRequest,
    result_model=CreatePaymentSuccess,
    rules=CREATE_PAYMENT_RULES,
)

CHECK_PAYMENT_STATUS = OperationSpec(
    name="CHECK-PAYMENT-STATUS",
    request_prefix="cps",
    method="POST",
    path="/api/cash-desk/check-payment-status",
    request_model=CheckPaymentStatusRequest,
    result_model=PaymentStatusSnapshot,
    rules=CHECK_PAYMENT_STATUS_RULES,
)

RETRY_TERMINAL_PAYMENT = OperationSpec(
    name="RETRY-TERMINAL-PAYMENT",
    request_prefix="rtp",
    method="POST",
    path="/api/cash-desk/retry-terminal-payment",
    request_model=RetryTerminalPaymentRequest,
    result_model=RetryPaymentSuccess,
    rules=RETRY_PAYMENT_RULES,
)


class TerminalPaymentsResource(AsyncBaseResource):
    """Async resource for terminal payment operations.

    Example:
        ```python
        result = await client.payments.create(request)
        if is_api_error(result):
            print(result.error_type, result.error)
        else:
            print(result.invoice_id, result.client_secret)
        ```
    """

    async def create(
        self,
        request: Union[CreateTerminalPaymentRequest, Mapping[str, Any]],
    ) -> CreatePaymentResult:
        """Create the Invoice and PaymentIntent on a terminal.

        Args:
            request: Order, customer and device line items to charge

        Returns:
            CreatePaymentSuccess with the invoice/payment-intent ids and
            client secret, or OperationFailure
        """
        result = await self._execute(CREATE_TERMINAL_PAYMENT, request)
        if not is_api_error(result):
            logger.info(
                f"Terminal payment created: invoice={result.invoice_id} "
                f"payment_intent={result.payment_intent_id} terminal={result.terminal_id} "
                f"order={result.order_id} amount={result.total_amount} {result.currency.upper()} "
                f"secret={mask_secret(result.client_secret)}"
            )
        return result

    async def check_status(
        self,
        request: Union[CheckPaymentStatusRequest, Mapping[str, Any]],
    ) -> CheckPaymentStatusResult:
        """Check the status of a terminal payment.

        A returned PaymentStatusSnapshot with ``success=False`` means the
        payment is still in progress, not that the call failed.

        Args:
            request: Resort id plus invoice id or order id

        Returns:
            PaymentStatusSnapshot or OperationFailure
        """
        result = await self._execute(CHECK_PAYMENT_STATUS, request)
        if not is_api_error(result):
            logger.debug(
                f"Payment status: {result.status} success={result.success} "
                f"invoice={result.invoice_id} amount_paid={result.amount_paid} "
                f"method={result.payment_method_type} paid_at={result.paid_at}"
            )
        return result

    async def retry(
        self,
        request: Union[RetryTerminalPaymentRequest, Mapping[str, Any]],
    ) -> RetryPaymentResult:
        """Issue a new PaymentIntent for a failed or timed out terminal payment.

        Args:
            request: Terminal id plus invoice id or order id

        Returns:
            RetryPaymentSuccess with the new payment intent, or OperationFailure
        """
        result = await self._execute(RETRY_TERMINAL_PAYMENT, request)
        if not is_api_error(result):
            logger.info(
                f"Terminal payment retried: invoice={result.invoice_id} "
                f"payment_intent={result.payment_intent_id} "
                f"remaining={result.remaining_amount_cents} "
                f"secret={mask_secret(result.client_secret)}"
            )
        return result
