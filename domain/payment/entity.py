"""
支付领域实体 - 支付聚合根
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


class PaymentState(str, Enum):
    """支付状态枚举"""
    NEW = "new"                          # 新建
    AUTHORIZATION = "authorization"      # 已授权（支付方确认结账完成）
    COMPLETED = "completed"              # 已完成（已向支付方确认）


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Payment:
    """
    支付聚合根

    业务规则：
    1. 订单ID + 支付网关组合必须唯一
    2. 金额必须大于等于0，且创建时等于订单总价
    3. 创建后只允许修改状态（authorization -> completed）
    """

    id: Optional[int]
    order_id: str
    payment_gateway: str
    amount: Decimal
    currency: str  # ISO-4217
    state: PaymentState
    remote_id: Optional[str] = None  # 支付方远程交易ID
    remote_state: Optional[str] = None
    test: bool = True

    # 时间戳
    authorized_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """初始化后验证"""
        self._validate_amount()
        self._validate_currency()
        self.authorized_at = _ensure_utc(self.authorized_at)
        self.completed_at = _ensure_utc(self.completed_at)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def _validate_amount(self) -> None:
        if self.amount < 0:
            raise DomainValidationException(
                f"支付金额不能为负数: {self.amount}",
                field="amount"
            )

    def _validate_currency(self) -> None:
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise DomainValidationException(
                f"无效的货币代码: {self.currency}",
                field="currency"
            )

    def matches(self, payment_gateway: str, amount: Decimal, currency: str) -> bool:
        """是否为同一网关、同一金额的支付"""
        return (
            self.payment_gateway == payment_gateway
            and self.amount == amount
            and self.currency == currency.upper()
        )

    def mark_completed(self) -> None:
        """
        标记支付完成

        业务规则：只能从 authorization 转为 completed，已完成时为幂等操作
        """
        if self.state == PaymentState.COMPLETED:
            return
        if self.state != PaymentState.AUTHORIZATION:
            raise DomainValidationException(
                f"无法从状态 {self.state.value} 转换为 completed",
                field="state"
            )
        self.state = PaymentState.COMPLETED
        self.completed_at = datetime.now(timezone.utc)
        self.updated_at = self.completed_at

    def is_completed(self) -> bool:
        return self.state == PaymentState.COMPLETED
