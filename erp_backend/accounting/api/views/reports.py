# accounting/api/views/reports.py

"""
PATH: accounting/api/views/reports.py

LEDGER REPORT VIEWS (READ-ONLY)

GET /api/accounting/reports/unposted/
GET /api/accounting/reports/ppn/?year=2026
GET /api/accounting/reports/trial-balance/?as_of=2026-01-31
"""

from __future__ import annotations

from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.serializers import PPNMonthSerializer, UnpostedDocumentSerializer
from accounting.services.reports import ppn_report, trial_balance, unposted_documents


def _forbidden(what: str) -> Response:
    return Response(
        {"detail": f"You do not have permission to view {what}."},
        status=status.HTTP_403_FORBIDDEN,
    )


class UnpostedDocumentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["accounting"], responses=UnpostedDocumentSerializer(many=True))
    def get(self, request):
        if not request.user.has_perm("accounting.view_journalentry"):
            return _forbidden("unposted documents")

        rows = unposted_documents()
        return Response(UnpostedDocumentSerializer(rows, many=True).data, status=status.HTTP_200_OK)


class PPNReportView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(
                name="year",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Calendar year (defaults to the current year).",
            )
        ],
        responses=PPNMonthSerializer(many=True),
    )
    def get(self, request):
        if not request.user.has_perm("accounting.view_journalentry"):
            return _forbidden("the PPN report")

        raw = (request.query_params.get("year") or "").strip()
        try:
            year = int(raw) if raw else timezone.localdate().year
        except ValueError:
            return Response({"detail": "year must be an integer"}, status=status.HTTP_400_BAD_REQUEST)

        rows = ppn_report(year)
        return Response(
            {"year": year, "months": PPNMonthSerializer(rows, many=True).data},
            status=status.HTTP_200_OK,
        )


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="as_of",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Include entries dated on or before this day (YYYY-MM-DD).",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm("accounting.view_journalentry"):
            return _forbidden("trial balance")

        as_of = None
        raw = (request.query_params.get("as_of") or "").strip()
        if raw:
            as_of = parse_date(raw)
            if as_of is None:
                return Response(
                    {"detail": "Invalid as_of (expected YYYY-MM-DD)"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        return Response(trial_balance(as_of), status=status.HTTP_200_OK)
