import csv

from django.http import HttpResponse
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.audit import AuditedMutationMixin
from common.permissions import IsRecordOwner, OwnerScopedQuerysetMixin
from inventory.models import Part
from inventory.serializers import PartSerializer, SetQuantitySerializer
from inventory.services import low_stock_parts, next_part_code, search_parts, set_part_quantity


class PartViewSet(AuditedMutationMixin, OwnerScopedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Part.objects.all()
    serializer_class = PartSerializer
    permission_classes = [IsAuthenticated, IsRecordOwner]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    audit_entity = "part"

    def get_queryset(self):
        qs = super().get_queryset().order_by("-created_at")
        qs = search_parts(qs, self.request.query_params.get("search"))
        if self.request.query_params.get("in_stock") in {"1", "true", "True"}:
            qs = qs.filter(quantity__gt=0)
        category = self.request.query_params.get("category")
        if category:
            qs = qs.filter(category__iexact=category)
        return qs

    @action(detail=True, methods=["post"], url_path="set-quantity")
    def set_quantity(self, request, pk=None):
        part = self.get_object()
        before_snapshot = self.get_serializer(part).data
        serializer = SetQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        part = set_part_quantity(part, serializer.validated_data["quantity"])
        after_snapshot = self.get_serializer(part).data
        self._audit(action="set_quantity", instance=part, before_snapshot=before_snapshot, after_snapshot=after_snapshot)
        return Response(after_snapshot)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        parts = low_stock_parts(self.get_queryset()).order_by("quantity", "part_name")
        if request.query_params.get("format_type") == "csv":
            response = HttpResponse(content_type="text/csv")
            response["Content-Disposition"] = 'attachment; filename="low-stock.csv"'
            writer = csv.writer(response)
            writer.writerow(["hsn_code", "part_name", "brand", "quantity", "low_stock_threshold"])
            for part in parts:
                writer.writerow([part.hsn_code, part.part_name, part.brand, part.quantity, part.low_stock_threshold])
            return response
        return Response(self.get_serializer(parts, many=True).data)

    @action(detail=False, methods=["get"], url_path="next-code")
    def next_code(self, request):
        return Response({"hsn_code": next_part_code(request.user)})
