"""
订单仓储实现 - 订单行、调整项与账单地址以 JSON 存储
"""
from typing import Any, Optional
from decimal import Decimal
from dataclasses import asdict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from domain.common.exceptions import OrderNotFoundException
from domain.order.entity import Address, Adjustment, BillingProfile, Money, Order, OrderItem
from domain.order.repository import OrderRepository
from domain.order.workflow import WorkflowTransition, get_workflow
from infrastructure.models.order import OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


def _money_to_json(money: Money) -> dict[str, str]:
    return {"number": str(money.number), "currency_code": money.currency_code}


def _money_from_json(data: dict[str, Any]) -> Money:
    return Money(Decimal(str(data["number"])), data["currency_code"])


def _adjustment_to_json(adjustment: Adjustment) -> dict[str, Any]:
    return {
        "type": adjustment.type,
        "label": adjustment.label,
        "amount": _money_to_json(adjustment.amount),
        "source_id": adjustment.source_id,
        "percentage": str(adjustment.percentage) if adjustment.percentage is not None else None,
        "weight": adjustment.weight,
        "included": adjustment.included,
    }


def _adjustment_from_json(data: dict[str, Any]) -> Adjustment:
    percentage = data.get("percentage")
    return Adjustment(
        type=data["type"],
        label=data.get("label", ""),
        amount=_money_from_json(data["amount"]),
        source_id=data.get("source_id"),
        percentage=Decimal(percentage) if percentage is not None else None,
        weight=data.get("weight"),
        included=bool(data.get("included", False)),
    )


def _item_to_json(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "quantity": item.quantity,
        "unit_price": _money_to_json(item.unit_price),
        "adjustments": [_adjustment_to_json(a) for a in item.adjustments],
    }


def _item_from_json(data: dict[str, Any]) -> OrderItem:
    return OrderItem(
        id=data.get("id"),
        title=data["title"],
        quantity=int(data["quantity"]),
        unit_price=_money_from_json(data["unit_price"]),
        adjustments=[_adjustment_from_json(a) for a in data.get("adjustments") or []],
    )


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        billing_profile = None
        if model.billing_address is not None:
            billing_profile = BillingProfile(address=Address(**model.billing_address))
        return Order(
            id=model.id,
            items=[_item_from_json(i) for i in model.items or []],
            adjustments=[_adjustment_from_json(a) for a in model.adjustments or []],
            currency_code=model.currency,
            state=model.state,
            workflow=get_workflow(model.workflow),
            payment_gateway=model.payment_gateway,
            billing_profile=billing_profile,
            data=dict(model.data or {}),
            total_price=Money(Decimal(str(model.total)), model.currency),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _apply(self, model: OrderModel, entity: Order) -> None:
        model.state = entity.state
        model.workflow = entity.workflow.id
        model.payment_gateway = entity.payment_gateway
        model.currency = entity.total_price.currency_code
        model.total = entity.total_price.number
        model.items = [_item_to_json(i) for i in entity.items]
        model.adjustments = [_adjustment_to_json(a) for a in entity.adjustments]
        model.billing_address = asdict(entity.billing_profile.address) if entity.billing_profile else None
        # JSON 列需整体赋新对象才能被识别为变更
        model.data = dict(entity.data)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """根据ID获取订单"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order_id)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def add(self, order: Order) -> Order:
        """新增订单"""
        db_order = OrderModel(id=order.id)
        self._apply(db_order, order)
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info("order_created", order_id=db_order.id, state=db_order.state)
        return self._to_entity(db_order)

    async def save(self, order: Order) -> Order:
        """保存订单（状态、data、账单资料）"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order.id)
        )
        db_order = result.scalar_one_or_none()
        if db_order is None:
            raise OrderNotFoundException(order.id)

        self._apply(db_order, order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.debug("order_saved", order_id=db_order.id, state=db_order.state)
        return self._to_entity(db_order)

    async def transition_state(self, order_id: str, transition: WorkflowTransition) -> bool:
        """条件更新：WHERE state IN (起始状态)，并发时由数据库行锁保证只有一个成功"""
        result = await self.session.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.state.in_(transition.from_states),
            )
            .values(state=transition.to_state)
            .execution_options(synchronize_session=False)
        )
        applied = result.rowcount == 1
        logger.debug(
            "order_state_transition",
            order_id=order_id,
            transition=transition.id,
            to_state=transition.to_state,
            applied=applied,
        )
        return applied
