"""
API依赖项 - 结账服务装配（组合根）
"""
from fastapi import Depends, Request

from application.ports.transaction_gateway import RemoteTransactionGateway
from application.services.checkout_service import CheckoutService
from application.services.completion_service import CompletionService
from application.services.transaction_hooks import TransactionHookRegistry, transaction_hooks
from core.config import settings
from core.settings import CheckoutGatewayConfig, checkout_settings
from infrastructure.external.checkout import get_transaction_gateway
from infrastructure.unit_of_work import uow_factory


def get_gateway_config() -> CheckoutGatewayConfig:
    """由环境配置生成不可变的网关配置"""
    return checkout_settings.to_gateway_config(api_prefix=settings.API_PREFIX)


def get_hook_registry() -> TransactionHookRegistry:
    return transaction_hooks


async def get_gateway(request: Request) -> RemoteTransactionGateway:
    """网关客户端在应用内复用，关闭由 lifespan 负责"""
    gateway = getattr(request.app.state, "transaction_gateway", None)
    if gateway is None:
        gateway = get_transaction_gateway(checkout_settings)
        request.app.state.transaction_gateway = gateway
    return gateway


async def get_checkout_service(
    gateway: RemoteTransactionGateway = Depends(get_gateway),
    config: CheckoutGatewayConfig = Depends(get_gateway_config),
    hooks: TransactionHookRegistry = Depends(get_hook_registry),
) -> CheckoutService:
    return CheckoutService(uow_factory=uow_factory, gateway=gateway, config=config, hooks=hooks)


async def get_completion_service(
    checkout: CheckoutService = Depends(get_checkout_service),
    config: CheckoutGatewayConfig = Depends(get_gateway_config),
) -> CompletionService:
    return CompletionService(uow_factory=uow_factory, checkout_service=checkout, config=config)
