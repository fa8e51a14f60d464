from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.audit import AuditedMutationMixin
from common.permissions import IsRecordOwner, OwnerScopedQuerysetMixin
from udhaari.models import UdhaariRecord
from udhaari.serializers import UdhaariPaymentSerializer, UdhaariRecordSerializer
from udhaari.services import ledger_summary, record_payment


class UdhaariRecordViewSet(
    AuditedMutationMixin,
    OwnerScopedQuerysetMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    queryset = UdhaariRecord.objects.select_related("customer")
    serializer_class = UdhaariRecordSerializer
    permission_classes = [IsAuthenticated, IsRecordOwner]
    audit_entity = "udhaari"

    def get_queryset(self):
        qs = super().get_queryset().order_by("-created_at")
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs

    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        record = self.get_object()
        before_snapshot = self.get_serializer(record).data
        serializer = UdhaariPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = record_payment(record.id, serializer.validated_data["amount"])
        after_snapshot = self.get_serializer(record).data
        self._audit(action="payment", instance=record, before_snapshot=before_snapshot, after_snapshot=after_snapshot)
        return Response(after_snapshot)

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        totals = ledger_summary(self.get_queryset())
        return Response({key: str(value) for key, value in totals.items()})
