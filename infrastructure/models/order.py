"""
订单数据库模型

订单行与调整项以 JSON 存储，结账引擎只需要整体读取与回写。
"""
from sqlalchemy import Column, String, Numeric, DateTime, JSON
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    """订单数据库模型"""
    __tablename__ = "orders"

    id = Column(String(100), primary_key=True, comment="订单ID")

    state = Column(String(50), nullable=False, default="draft", index=True, comment="工作流状态")
    workflow = Column(String(100), nullable=False, comment="工作流ID")
    payment_gateway = Column(String(100), nullable=True, comment="支付网关ID")

    currency = Column(String(3), nullable=False, comment="货币代码 ISO-4217")
    total = Column(Numeric(precision=15, scale=2), nullable=False, comment="订单总价")

    items = Column(JSON, nullable=False, default=list, comment="订单行")
    adjustments = Column(JSON, nullable=False, default=list, comment="订单级调整项")
    # 账单地址为空表示订单没有账单资料
    billing_address = Column(JSON, nullable=True, comment="账单地址")
    data = Column(JSON, nullable=False, default=dict, comment="自由键值数据（远程交易ID等）")

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

    def __repr__(self):
        return f"<OrderModel(id='{self.id}', state='{self.state}', total={self.total} {self.currency})>"
