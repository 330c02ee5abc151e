"""
支付仓储接口 - 定义支付数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Payment


class PaymentRepository(ABC):
    """支付仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        创建支付记录

        同一 (order_id, payment_gateway) 已存在时必须抛出
        PaymentAlreadyExistsException，由存储层唯一约束保证。
        """
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        """根据ID获取支付"""
        pass

    @abstractmethod
    async def get_by_order_and_gateway(self, order_id: str, payment_gateway: str) -> Optional[Payment]:
        """根据订单ID与支付网关获取支付"""
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        """更新支付记录"""
        pass
