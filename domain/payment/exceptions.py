"""支付领域异常"""
from __future__ import annotations

from domain.common.exceptions import BusinessException
from shared.codes.checkout_codes import CheckoutCode


class PaymentAlreadyExistsException(BusinessException):
    """订单在该支付网关下已存在支付记录"""
    def __init__(self, order_id: str, payment_gateway: str):
        super().__init__(
            code=CheckoutCode.PAYMENT_ALREADY_EXISTS,
            message=f"订单 {order_id} 已存在 {payment_gateway} 支付记录",
            error_type="PaymentAlreadyExists",
            details={"order_id": order_id, "payment_gateway": payment_gateway},
        )
