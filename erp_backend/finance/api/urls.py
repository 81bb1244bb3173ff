# finance/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from finance.api.views import (
    BankAccountViewSet,
    BankStatementLineViewSet,
    FinanceExpenseViewSet,
    FundTransferViewSet,
    PaymentVoucherViewSet,
    PettyCashTransactionViewSet,
    ReceiptVoucherViewSet,
)

router = DefaultRouter()
router.register("bank-accounts", BankAccountViewSet, basename="bank-account")
router.register("expenses", FinanceExpenseViewSet, basename="finance-expense")
router.register("petty-cash", PettyCashTransactionViewSet, basename="petty-cash")
router.register("fund-transfers", FundTransferViewSet, basename="fund-transfer")
router.register("receipt-vouchers", ReceiptVoucherViewSet, basename="receipt-voucher")
router.register("payment-vouchers", PaymentVoucherViewSet, basename="payment-voucher")
router.register("bank-statement-lines", BankStatementLineViewSet, basename="bank-statement-line")

urlpatterns = [
    path("", include(router.urls)),
]
