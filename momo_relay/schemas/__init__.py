"""Schema package exports."""
from .payments import (
    DepositRequest,
    HostedPaymentRequest,
    HostedPaymentResponse,
    PaymentStatusResponse,
    PayoutRequest,
    PredictProviderRequest,
    TransferRequest,
)
from .provider import Provider, ProviderCreate
from .transaction import Transaction, TransactionCreate, TransactionRead, TransactionUpdate

__all__ = [
    "DepositRequest",
    "HostedPaymentRequest",
    "HostedPaymentResponse",
    "PaymentStatusResponse",
    "PayoutRequest",
    "PredictProviderRequest",
    "Provider",
    "ProviderCreate",
    "Transaction",
    "TransactionCreate",
    "TransactionRead",
    "TransactionUpdate",
    "TransferRequest",
]
