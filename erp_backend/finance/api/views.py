# finance/api/views.py

"""
======================================================
PATH: finance/api/views.py
======================================================
FINANCE API

Every write below goes through model save(); the finance signal receivers
post, re-post or remove the ledger entry. A document whose posting was
skipped (missing account, bad rule) is still saved and shows up in
/api/accounting/reports/unposted/.

Extra actions:
- POST /fund-transfers/<id>/post/     post now, surfacing the posting error as 400
- POST /fund-transfers/<id>/cancel/   cancel and remove the entry
"""

from __future__ import annotations

from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from accounting.api.mixins import ModelCleanMixin
from accounting.services.exceptions import AccountingServiceError
from accounting.services.posting import post_fund_transfer
from finance.api.serializers import (
    BankAccountSerializer,
    BankStatementLineSerializer,
    FinanceExpenseSerializer,
    FundTransferSerializer,
    PaymentVoucherSerializer,
    PettyCashTransactionSerializer,
    ReceiptVoucherSerializer,
)
from finance.models import (
    BankAccount,
    BankStatementLine,
    FinanceExpense,
    FundTransfer,
    PaymentVoucher,
    PettyCashTransaction,
    ReceiptVoucher,
)


class _FinanceViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    stamp_created_by = True


@extend_schema(tags=["finance"])
class BankAccountViewSet(_FinanceViewSet):
    serializer_class = BankAccountSerializer
    queryset = BankAccount.objects.select_related("coa_account").order_by("name")
    filterset_fields = ("currency", "is_active")
    stamp_created_by = False


@extend_schema(tags=["finance"])
class FinanceExpenseViewSet(_FinanceViewSet):
    serializer_class = FinanceExpenseSerializer
    queryset = FinanceExpense.objects.all()
    filterset_fields = (
        "expense_category",
        "payment_method",
        "import_container",
        "bank_account",
        "expense_date",
    )


@extend_schema(tags=["finance"])
class PettyCashTransactionViewSet(_FinanceViewSet):
    serializer_class = PettyCashTransactionSerializer
    queryset = PettyCashTransaction.objects.all()
    filterset_fields = ("transaction_type", "transaction_date", "finance_expense")

    def _reject_mirror(self, instance):
        if instance.is_expense_mirror:
            raise serializers.ValidationError(
                {"detail": "This row mirrors a finance expense; edit the expense instead."}
            )

    def perform_update(self, serializer):
        self._reject_mirror(serializer.instance)
        super().perform_update(serializer)

    def perform_destroy(self, instance):
        self._reject_mirror(instance)
        instance.delete()


@extend_schema(tags=["finance"])
class FundTransferViewSet(_FinanceViewSet):
    serializer_class = FundTransferSerializer
    queryset = FundTransfer.objects.select_related("from_bank_account", "to_bank_account")
    filterset_fields = ("status", "from_account_type", "to_account_type", "transfer_date")

    @extend_schema(request=None, responses=FundTransferSerializer)
    @action(detail=True, methods=["post"], url_path="post")
    def post_entry(self, request, pk=None):
        transfer = self.get_object()
        try:
            with transaction.atomic():
                post_fund_transfer(transfer)
        except AccountingServiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        transfer.refresh_from_db()
        return Response(FundTransferSerializer(transfer).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses=FundTransferSerializer)
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        transfer = self.get_object()
        if transfer.status != FundTransfer.STATUS_CANCELLED:
            transfer.status = FundTransfer.STATUS_CANCELLED
            transfer.save()
        transfer.refresh_from_db()
        return Response(FundTransferSerializer(transfer).data, status=status.HTTP_200_OK)


@extend_schema(tags=["finance"])
class ReceiptVoucherViewSet(_FinanceViewSet):
    serializer_class = ReceiptVoucherSerializer
    queryset = ReceiptVoucher.objects.select_related("customer", "bank_account")
    filterset_fields = ("customer", "voucher_date", "payment_method")


@extend_schema(tags=["finance"])
class PaymentVoucherViewSet(_FinanceViewSet):
    serializer_class = PaymentVoucherSerializer
    queryset = PaymentVoucher.objects.select_related("supplier", "bank_account")
    filterset_fields = ("supplier", "voucher_date", "payment_method")


@extend_schema(tags=["finance"])
class BankStatementLineViewSet(_FinanceViewSet):
    serializer_class = BankStatementLineSerializer
    queryset = BankStatementLine.objects.select_related("bank_account")
    filterset_fields = ("bank_account", "reconciliation_status", "transaction_date")
    stamp_created_by = False
