"""
支付仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.payment.entity import Payment, PaymentState
from domain.payment.exceptions import PaymentAlreadyExistsException
from domain.payment.repository import PaymentRepository
from infrastructure.models.payment import PaymentModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyPaymentRepository(PaymentRepository):
    """支付仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentModel) -> Payment:
        """将数据库模型转换为领域实体"""
        return Payment(
            id=model.id,
            order_id=model.order_id,
            payment_gateway=model.payment_gateway,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            state=PaymentState(model.state),
            remote_id=model.remote_id,
            remote_state=model.remote_state,
            test=bool(model.test),
            authorized_at=model.authorized_at,
            completed_at=model.completed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Payment) -> PaymentModel:
        """将领域实体转换为数据库模型"""
        model = PaymentModel(
            id=entity.id,
            order_id=entity.order_id,
            payment_gateway=entity.payment_gateway,
            amount=entity.amount,
            currency=entity.currency,
            state=entity.state.value,
            remote_id=entity.remote_id,
            remote_state=entity.remote_state,
            test=entity.test,
            authorized_at=entity.authorized_at,
            completed_at=entity.completed_at,
        )
        if entity.created_at is not None:
            model.created_at = entity.created_at
        if entity.updated_at is not None:
            model.updated_at = entity.updated_at
        return model

    async def create(self, payment: Payment) -> Payment:
        """创建支付记录"""
        try:
            db_payment = self._to_model(payment)
            self.session.add(db_payment)
            await self.session.flush()
            await self.session.refresh(db_payment)
            logger.info(
                "payment_created",
                payment_id=db_payment.id,
                order_id=db_payment.order_id,
                payment_gateway=db_payment.payment_gateway,
                remote_id=db_payment.remote_id,
            )
            return self._to_entity(db_payment)
        except IntegrityError as e:
            await self.session.rollback()
            msg = str(e).lower()
            if "order_id" in msg or "uq_payments_order_gateway" in msg:
                logger.warning(
                    "payment_create_conflict",
                    order_id=payment.order_id,
                    payment_gateway=payment.payment_gateway,
                )
                raise PaymentAlreadyExistsException(payment.order_id, payment.payment_gateway)
            raise

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        """根据ID获取支付"""
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.id == payment_id)
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    async def get_by_order_and_gateway(self, order_id: str, payment_gateway: str) -> Optional[Payment]:
        """根据订单ID与支付网关获取支付"""
        result = await self.session.execute(
            select(PaymentModel).where(
                PaymentModel.order_id == order_id,
                PaymentModel.payment_gateway == payment_gateway,
            )
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    async def update(self, payment: Payment) -> Payment:
        """更新支付记录（仅状态相关字段可变）"""
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.id == payment.id)
        )
        db_payment = result.scalar_one_or_none()

        if not db_payment:
            raise ValueError(f"Payment with id {payment.id} not found")

        db_payment.state = payment.state.value
        db_payment.remote_state = payment.remote_state
        db_payment.authorized_at = payment.authorized_at
        db_payment.completed_at = payment.completed_at
        if payment.updated_at is not None:
            db_payment.updated_at = payment.updated_at

        await self.session.flush()
        await self.session.refresh(db_payment)

        logger.info(
            "payment_updated",
            payment_id=db_payment.id,
            order_id=db_payment.order_id,
            state=db_payment.state,
        )

        return self._to_entity(db_payment)
