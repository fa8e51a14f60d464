from datetime import datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.db.models import Count, Sum
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.utils import to_money
from inventory.models import Part
from inventory.serializers import PartSerializer
from inventory.services import low_stock_parts
from sales.models import Customer, Order
from udhaari.models import UdhaariRecord

RECENT_PARTS_LIMIT = 5


class BaseReportView(APIView):
    permission_classes = [IsAuthenticated]

    def _parse_timezone(self, tz_name):
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError({"timezone": "Invalid IANA timezone."})

    def _date_range(self, request, tz):
        date_from = parse_date(request.query_params.get("date_from", ""))
        date_to = parse_date(request.query_params.get("date_to", ""))
        if not date_from and not date_to:
            return None, None

        if not date_from or not date_to:
            raise ValidationError({"date_range": "Both date_from and date_to are required."})
        if date_from > date_to:
            raise ValidationError({"date_range": "date_from must be before or equal to date_to."})

        start = datetime.combine(date_from, time.min).replace(tzinfo=tz)
        end = datetime.combine(date_to, time.max).replace(tzinfo=tz)
        return start, end


class DashboardSummaryView(BaseReportView):
    def get(self, request):
        owner = request.user
        parts = Part.objects.filter(owner=owner)
        recent_parts = parts.order_by("-created_at")[:RECENT_PARTS_LIMIT]
        pending_udhaari = UdhaariRecord.objects.filter(
            owner=owner,
            status__in=[UdhaariRecord.Status.PENDING, UdhaariRecord.Status.PARTIAL],
        ).count()

        return Response(
            {
                "total_parts": parts.count(),
                "low_stock_count": low_stock_parts(parts).count(),
                "total_customers": Customer.objects.filter(owner=owner).count(),
                "pending_udhaari_count": pending_udhaari,
                "recent_parts": PartSerializer(recent_parts, many=True, context={"request": request}).data,
            }
        )


class ProfitReportView(BaseReportView):
    def get(self, request):
        tz = self._parse_timezone(request.query_params.get("timezone", settings.TIME_ZONE))
        start, end = self._date_range(request, tz)

        orders = Order.objects.filter(owner=request.user)
        if start and end:
            orders = orders.filter(created_at__gte=start, created_at__lte=end)

        totals = orders.aggregate(
            order_count=Count("id"),
            revenue=Sum("total_amount"),
            total_buying_price=Sum("total_buying_price"),
            total_selling_price=Sum("total_selling_price"),
            profit_amount=Sum("profit_amount"),
        )
        zero = Decimal("0")
        return Response(
            {
                "date_from": request.query_params.get("date_from"),
                "date_to": request.query_params.get("date_to"),
                "order_count": totals["order_count"],
                "revenue": str(to_money(totals["revenue"] or zero)),
                "total_buying_price": str(to_money(totals["total_buying_price"] or zero)),
                "total_selling_price": str(to_money(totals["total_selling_price"] or zero)),
                "profit_amount": str(to_money(totals["profit_amount"] or zero)),
            }
        )
