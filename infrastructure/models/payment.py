"""
支付数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Boolean, Column, Integer, String, Numeric, DateTime,
    Index, UniqueConstraint
)
from datetime import datetime, timezone

from .base import Base


class PaymentModel(Base):
    """
    支付数据库模型

    (order_id, payment_gateway) 唯一约束保证并发回调下每个订单只创建一笔支付
    所有业务规则都在 domain.payment.entity.Payment 中
    """
    __tablename__ = "payments"

    # 主键
    id = Column(Integer, primary_key=True, index=True)

    # 订单信息
    order_id = Column(String(100), index=True, nullable=False, comment="订单ID")
    payment_gateway = Column(String(100), nullable=False, comment="支付网关ID")

    # 金额信息（使用 Numeric 存储精确金额）
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="支付金额")
    currency = Column(String(3), nullable=False, comment="货币代码 ISO-4217")

    # 状态
    state = Column(
        String(50),
        nullable=False,
        default="new",
        index=True,
        comment="支付状态: new/authorization/completed"
    )

    # 支付方远程交易信息
    remote_id = Column(String(200), nullable=True, index=True, comment="远程交易ID")
    remote_state = Column(String(50), nullable=True, comment="远程交易状态")
    test = Column(Boolean, nullable=False, default=True, comment="是否测试模式")

    # 时间戳
    authorized_at = Column(DateTime(timezone=True), nullable=True, comment="授权时间")
    completed_at = Column(DateTime(timezone=True), nullable=True, comment="完成时间")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        UniqueConstraint("order_id", "payment_gateway", name="uq_payments_order_gateway"),
        Index("ix_payments_gateway_remote", "payment_gateway", "remote_id"),
    )

    def __repr__(self):
        return (
            f"<PaymentModel(id={self.id}, order_id='{self.order_id}', "
            f"gateway='{self.payment_gateway}', amount={self.amount}, state='{self.state}')>"
        )
