"""
订单仓储接口 - 订单由外部订单子系统持久化，这里只定义结账引擎需要的能力
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Order
from .workflow import WorkflowTransition


class OrderRepository(ABC):
    """订单仓储抽象接口"""

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """根据ID获取订单"""
        pass

    @abstractmethod
    async def add(self, order: Order) -> Order:
        """新增订单"""
        pass

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """保存订单（状态、data、账单资料）"""
        pass

    @abstractmethod
    async def transition_state(self, order_id: str, transition: WorkflowTransition) -> bool:
        """
        条件更新订单状态

        仅当订单仍处于转换的起始状态之一时写入目标状态，并发请求中只有一个返回 True。
        """
        pass
