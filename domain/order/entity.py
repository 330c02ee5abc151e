"""
订单领域实体 - 订单聚合根（外部订单子系统拥有，结账引擎只读取）

结账引擎只会写入两类数据：
1. data 字典中的远程交易ID
2. 由支付方账单地址投影而来的账单资料
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException
from .workflow import Workflow, WorkflowTransition, ORDER_DEFAULT_VALIDATION


@dataclass(frozen=True)
class Money:
    """金额值对象（十进制，绑定货币）"""

    number: Decimal
    currency_code: str

    def __post_init__(self):
        if not isinstance(self.number, Decimal):
            object.__setattr__(self, "number", Decimal(str(self.number)))
        if not self.currency_code or len(self.currency_code) != 3 or not self.currency_code.isalpha():
            raise DomainValidationException(
                f"无效的货币代码: {self.currency_code}",
                field="currency_code"
            )
        object.__setattr__(self, "currency_code", self.currency_code.upper())

    def _assert_same_currency(self, other: "Money") -> None:
        if other.currency_code != self.currency_code:
            raise DomainValidationException(
                f"货币不一致: {self.currency_code} != {other.currency_code}",
                field="currency_code"
            )

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.number + other.number, self.currency_code)

    def multiply(self, factor: Any) -> "Money":
        return Money(self.number * Decimal(str(factor)), self.currency_code)

    def __str__(self) -> str:
        return f"{self.number} {self.currency_code}"


@dataclass
class Adjustment:
    """
    订单调整项

    type: tax | promotion | shipping | fee | ...
    percentage: 税率等百分比（如 Decimal("24") 表示 24%）
    weight: 结账购物车中合成行的排序权重
    included: 是否已包含在价格内（含税价）
    """

    type: str
    label: str
    amount: Money
    source_id: Optional[str] = None
    percentage: Optional[Decimal] = None
    weight: Optional[int] = None
    included: bool = False

    def __post_init__(self):
        if self.percentage is not None and not isinstance(self.percentage, Decimal):
            self.percentage = Decimal(str(self.percentage))


@dataclass
class OrderItem:
    """订单行"""

    title: str
    quantity: int
    unit_price: Money
    adjustments: list[Adjustment] = field(default_factory=list)
    id: Optional[int] = None

    def __post_init__(self):
        if self.quantity < 0:
            raise DomainValidationException(
                f"数量不能为负数: {self.quantity}",
                field="quantity"
            )

    @property
    def total_price(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass
class Address:
    given_name: str = ""
    family_name: str = ""
    address_line1: str = ""
    postal_code: str = ""
    locality: str = ""
    country_code: str = ""


@dataclass
class BillingProfile:
    address: Address = field(default_factory=Address)
    id: Optional[int] = None


@dataclass
class Order:
    """
    订单聚合根

    业务规则：
    1. 订单总价 = 订单行总价 + 未包含在价格内的调整项
    2. 状态转换必须遵循工作流
    3. data 为自由键值存储，用于跨请求保存远程交易ID
    """

    id: str
    items: list[OrderItem] = field(default_factory=list)
    adjustments: list[Adjustment] = field(default_factory=list)
    currency_code: str = "EUR"
    state: str = "draft"
    workflow: Workflow = ORDER_DEFAULT_VALIDATION
    payment_gateway: Optional[str] = None
    billing_profile: Optional[BillingProfile] = None
    data: dict[str, Any] = field(default_factory=dict)
    total_price: Optional[Money] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}
        if self.state not in self.workflow.states:
            raise DomainValidationException(
                f"工作流 {self.workflow.id} 不包含状态 {self.state}",
                field="state"
            )
        if self.total_price is None:
            self.recalculate_total_price()

    def collect_adjustments(self) -> list[Adjustment]:
        """收集订单行与订单级别的全部调整项（订单行优先，保持原始顺序）"""
        collected: list[Adjustment] = []
        for item in self.items:
            collected.extend(item.adjustments)
        collected.extend(self.adjustments)
        return collected

    def recalculate_total_price(self) -> Money:
        total = Money(Decimal("0"), self.currency_code)
        for item in self.items:
            total = total.add(item.total_price)
        for adjustment in self.collect_adjustments():
            if not adjustment.included:
                total = total.add(adjustment.amount)
        self.total_price = total
        return total

    def get_data(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set_data(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.updated_at = datetime.now(timezone.utc)

    def get_transition(self, transition_id: str) -> Optional[WorkflowTransition]:
        """返回当前状态下可用的命名转换，不可用时返回 None"""
        transition = self.workflow.get_transition(transition_id)
        if transition is None or self.state not in transition.from_states:
            return None
        return transition

    def apply_transition(self, transition: WorkflowTransition) -> None:
        if self.state not in transition.from_states:
            raise DomainValidationException(
                f"无法从状态 {self.state} 执行转换 {transition.id}",
                field="state"
            )
        self.state = transition.to_state
        self.updated_at = datetime.now(timezone.utc)
