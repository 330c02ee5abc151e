"""
支付领域服务 - 保证每个 (订单, 支付网关) 只有一笔支付
"""
from typing import List, Optional
from datetime import datetime, timezone

from .entity import Payment, PaymentState
from .events import PaymentAuthorized, PaymentCompleted
from .exceptions import PaymentAlreadyExistsException
from .repository import PaymentRepository
from domain.order.entity import Order
from domain.checkout.exceptions import CheckoutValidationError


class PaymentDomainService:
    """
    支付领域服务

    职责：
    1. 创建前再次查询（re-check-before-write），并依赖存储层唯一约束处理并发
    2. 支付状态转换
    3. 产生领域事件
    """

    def __init__(self, payment_repository: PaymentRepository):
        self.payment_repository = payment_repository
        self.events: List = []  # 领域事件收集

    async def find_matching_payment(self, order: Order, payment_gateway: str) -> Optional[Payment]:
        """
        查找与订单当前总价一致的支付

        同一网关下已存在金额不一致的支付时抛出校验异常，
        因为唯一约束不允许再创建第二笔。
        """
        payment = await self.payment_repository.get_by_order_and_gateway(order.id, payment_gateway)
        if payment is None:
            return None
        total = order.total_price
        if not payment.matches(payment_gateway, total.number, total.currency_code):
            raise CheckoutValidationError(
                f"Existing payment {payment.id} for order {order.id} does not match order total {total}",
                order_id=order.id,
                remote_id=payment.remote_id,
                details={"payment_id": payment.id, "payment_amount": str(payment.amount)},
            )
        return payment

    async def ensure_authorized_payment(
        self,
        order: Order,
        *,
        payment_gateway: str,
        remote_id: str,
        test: bool,
    ) -> Payment:
        """
        确保订单存在一笔已授权支付（幂等）

        业务规则：
        1. 已存在匹配支付时直接返回
        2. 并发创建冲突时返回胜出的那一笔
        """
        existing = await self.find_matching_payment(order, payment_gateway)
        if existing is not None:
            return existing

        now = datetime.now(timezone.utc)
        payment = Payment(
            id=None,
            order_id=order.id,
            payment_gateway=payment_gateway,
            amount=order.total_price.number,
            currency=order.total_price.currency_code,
            state=PaymentState.AUTHORIZATION,
            remote_id=remote_id,
            remote_state="paid",
            test=test,
            authorized_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            created = await self.payment_repository.create(payment)
        except PaymentAlreadyExistsException:
            winner = await self.find_matching_payment(order, payment_gateway)
            if winner is None:
                raise
            return winner

        self.events.append(PaymentAuthorized(
            order_id=created.order_id,
            payment_gateway=created.payment_gateway,
            remote_id=created.remote_id,
            amount=str(created.amount),
        ))
        return created

    async def complete_payment(self, payment: Payment) -> Payment:
        """标记支付完成（已完成时不重复写入）"""
        if payment.is_completed():
            return payment
        payment.mark_completed()
        updated = await self.payment_repository.update(payment)
        self.events.append(PaymentCompleted(
            order_id=updated.order_id,
            payment_gateway=updated.payment_gateway,
            remote_id=updated.remote_id,
        ))
        return updated

    def clear_events(self) -> List:
        """清空并返回领域事件"""
        events = self.events.copy()
        self.events.clear()
        return events
