"""
Application service reconciling MoMo payment outcomes with order state.

Three channels reach this service: the signed IPN webhook (authoritative),
the browser return redirect (a hint only) and the timeout sweep. Every
order mutation is a compare-and-swap on (status, payment_status), so the
first channel to finalize an order wins and the others observe it.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from application.dtos.orders import SweepResultDTO
from application.dtos.payments import MomoIpnAck, MomoIpnPayload, MomoReturnOutcome
from application.ports.notifier import Notifier
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.catalog.inventory import InventoryLedger
from domain.common.exceptions import (
    AmountMismatchException,
    DomainValidationException,
    OrderExpiredException,
    OrderNotFoundException,
    PartnerCodeMismatchException,
    PaymentGatewayNotConfiguredException,
    SignatureMismatchException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import SWEEP_CANCEL_REASON, Order, OrderStatus, PaymentMethod
from domain.order.events import LatePaymentAfterExpiry
from domain.order.service import OrderDomainService
from shared.codes.payment_codes import MOMO_RESULT_SUCCESS


logger = get_logger(__name__)

IPN_RECEIVED = "IPN received"
IPN_ALREADY_PROCESSED = "IPN already processed"


class PaymentApplicationService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        gateway: Optional[PaymentGateway],
        notifier: Notifier,
        *,
        default_timeout_minutes: int = 30,
    ) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway
        self._notifier = notifier
        self._default_timeout_minutes = default_timeout_minutes

    @property
    def gateway(self) -> PaymentGateway:
        # the sweep runs without provider credentials
        if self._gateway is None:
            raise PaymentGatewayNotConfiguredException()
        return self._gateway

    @staticmethod
    def _ack(payload: MomoIpnPayload, message: str) -> MomoIpnAck:
        return MomoIpnAck(
            partner_code=payload.partner_code,
            order_id=payload.order_id,
            request_id=payload.request_id,
            error_code=0,
            message=message,
        )

    async def _resolve_order(self, uow: AbstractUnitOfWork, payload: MomoIpnPayload) -> Optional[Order]:
        order_id = self.gateway.decode_extra_data(payload.extra_data)
        if order_id:
            return await uow.order_repository.get_by_id(order_id)
        # degraded path: provider order id is "<order number>-<ms>"
        order_number = self.gateway.order_number_from_provider_id(payload.order_id)
        logger.warning("momo_ipn_extra_data_unreadable", provider_order_id=payload.order_id, order_number=order_number)
        if not order_number:
            return None
        return await uow.order_repository.get_by_order_number(order_number)

    def _reject_expired(self, order: Order, payload: MomoIpnPayload) -> OrderExpiredException:
        logger.warning(
            "momo_ipn_order_expired",
            order_id=order.id,
            provider_order_id=payload.order_id,
            result_code=payload.result_code,
        )
        if payload.result_code == MOMO_RESULT_SUCCESS:
            # money was taken for an order the sweep closed; the owner decides
            self._notifier.notify(LatePaymentAfterExpiry(
                order_id=order.id,
                order_number=order.order_number,
                customer_email=order.customer_email,
                provider_order_id=payload.order_id,
                trans_id=None if payload.trans_id is None else str(payload.trans_id),
                amount=str(payload.amount),
            ))
        return OrderExpiredException(order.id)

    async def handle_ipn(self, payload: MomoIpnPayload) -> MomoIpnAck:
        log = logger.bind(
            provider_order_id=payload.order_id,
            request_id=payload.request_id,
            result_code=payload.result_code,
        )
        log.info("momo_ipn_received", amount=payload.amount, trans_id=payload.trans_id)

        if payload.partner_code != self.gateway.partner_code:
            log.warning("momo_ipn_partner_mismatch", partner_code=payload.partner_code)
            raise PartnerCodeMismatchException(payload.partner_code)
        if not self.gateway.verify_ipn(payload):
            log.warning("momo_ipn_signature_invalid")
            raise SignatureMismatchException()

        succeeded = payload.result_code == MOMO_RESULT_SUCCESS
        async with self._uow_factory() as uow:
            order = await self._resolve_order(uow, payload)
            if order is None:
                log.warning("momo_ipn_order_not_found")
                raise OrderNotFoundException(payload.order_id)
            log = log.bind(order_id=order.id)

            if Decimal(payload.amount) != order.total:
                log.error("momo_ipn_amount_mismatch", reported=payload.amount, expected=str(order.total))
                raise AmountMismatchException(order.id, str(payload.amount), str(order.total))

            if order.is_sweep_cancelled:
                raise self._reject_expired(order, payload)

            if order.is_paid:
                log.info("momo_ipn_duplicate")
                return self._ack(payload, IPN_ALREADY_PROCESSED)

            if order.status is not OrderStatus.PENDING:
                # closed by the customer or an admin before the provider reported
                log.warning("momo_ipn_for_closed_order", status=order.status.value, cancel_reason=order.cancel_reason)
                return self._ack(payload, IPN_RECEIVED)

            domain_service = OrderDomainService(uow.order_repository, InventoryLedger(uow.product_repository))
            if succeeded:
                applied = await domain_service.mark_paid(order, channel="momo_ipn", record_completion=True)
            else:
                applied = await domain_service.cancel(
                    order, f"MoMo payment failed: {payload.message} (code {payload.result_code})"
                )

            if not applied:
                current = await uow.order_repository.get_by_id(order.id)
                if succeeded and current is not None and current.is_sweep_cancelled:
                    raise self._reject_expired(current, payload)
                log.info("momo_ipn_superseded", status=current.status.value if current else None)
                return self._ack(payload, IPN_ALREADY_PROCESSED)

            events = domain_service.clear_events()

        for event in events:
            self._notifier.notify(event)
        log.info("momo_ipn_applied", outcome="paid" if succeeded else "cancelled")
        return self._ack(payload, IPN_RECEIVED)

    def parse_return(self, result_code: int, message: str = "", extra_data: Optional[str] = None) -> MomoReturnOutcome:
        """Read the redirect query. Never changes state: the caller confirms separately."""
        order_id = self.gateway.decode_extra_data(extra_data)
        outcome = MomoReturnOutcome(
            order_id=order_id,
            result_code=result_code,
            message=message,
            should_confirm=result_code == MOMO_RESULT_SUCCESS and order_id is not None,
        )
        logger.info(
            "momo_return_parsed",
            order_id=order_id,
            result_code=result_code,
            should_confirm=outcome.should_confirm,
        )
        return outcome

    async def sweep_expired_momo_orders(
        self,
        timeout_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SweepResultDTO:
        """Cancel MoMo orders left unpaid past the timeout. Safe to re-run."""
        timeout = self._default_timeout_minutes if timeout_minutes is None else timeout_minutes
        if timeout < 1:
            raise DomainValidationException("timeoutMinutes must be at least 1", field="timeout_minutes")
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=timeout)

        async with self._uow_factory(readonly=True) as uow:
            stale = await uow.order_repository.list_stale(PaymentMethod.MOMO, cutoff)

        cancelled = 0
        for order in stale:
            # one transaction per order: a failure does not undo the others
            async with self._uow_factory() as uow:
                domain_service = OrderDomainService(uow.order_repository, InventoryLedger(uow.product_repository))
                if await domain_service.cancel(order, SWEEP_CANCEL_REASON, now):
                    cancelled += 1
                events = domain_service.clear_events()
            for event in events:
                self._notifier.notify(event)

        logger.info("momo_sweep_completed", found=len(stale), cancelled=cancelled, timeout_minutes=timeout)
        return SweepResultDTO(cancelled_count=cancelled, timeout_minutes=timeout)
