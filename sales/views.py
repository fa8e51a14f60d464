import logging

from django.db import transaction
from django.db.models import ProtectedError, Q
from django.http import HttpResponse
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.audit import AuditedMutationMixin, create_audit_log_from_request
from common.exceptions import validation_error
from common.permissions import IsRecordOwner, OwnerScopedQuerysetMixin
from core.models import BusinessProfile
from sales.invoices import invoice_filename, render_invoice
from sales.models import Customer, Order
from sales.serializers import (
    CustomerSerializer,
    DraftOrderInputSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    serialize_draft,
)
from sales.services import build_draft, commit_order, next_customer_code, next_order_number, resolve_customer
from sales.sharing import share_payload

logger = logging.getLogger(__name__)

SHARE_CHANNELS = {"whatsapp", "email"}


class CustomerViewSet(AuditedMutationMixin, OwnerScopedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated, IsRecordOwner]
    audit_entity = "customer"

    def get_queryset(self):
        qs = super().get_queryset().order_by("-created_at")
        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(customer_code__icontains=search) | Q(phone__icontains=search))
        return qs

    def perform_destroy(self, instance):
        try:
            with transaction.atomic():
                super().perform_destroy(instance)
        except ProtectedError as exc:
            raise validation_error(
                "customer",
                "This customer has bills or credit records and cannot be deleted.",
                "customer_has_orders",
            ) from exc

    @action(detail=False, methods=["get"], url_path="next-code")
    def next_code(self, request):
        return Response({"customer_code": next_customer_code(request.user)})


class OrderViewSet(OwnerScopedQuerysetMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Order.objects.select_related("customer").prefetch_related("lines")
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsRecordOwner]

    def get_queryset(self):
        qs = super().get_queryset().order_by("-created_at")
        customer_id = self.request.query_params.get("customer")
        if customer_id:
            qs = qs.filter(customer_id=customer_id)
        return qs

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer = resolve_customer(request.user, data.get("customer"))
        draft = build_draft(request.user, data["items"], include_tax=data["include_tax"])
        order = commit_order(request.user, draft, customer.id)

        order = self.get_queryset().get(id=order.id)
        payload = OrderSerializer(order).data
        create_audit_log_from_request(
            request,
            action="order.create",
            entity="order",
            entity_id=order.id,
            after_snapshot=payload,
        )
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="preview")
    def preview(self, request):
        serializer = DraftOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        draft = build_draft(
            request.user,
            serializer.validated_data["items"],
            include_tax=serializer.validated_data["include_tax"],
        )
        return Response(serialize_draft(draft))

    @action(detail=False, methods=["get"], url_path="next-number")
    def next_number(self, request):
        return Response({"order_number": next_order_number(request.user)})

    @action(detail=True, methods=["get"], url_path="invoice")
    def invoice(self, request, pk=None):
        order = self.get_object()
        profile = BusinessProfile.for_owner(request.user)
        pdf = render_invoice(order, list(order.lines.all()), order.customer, profile)
        logger.info(
            "invoice_rendered",
            extra={"order_id": str(order.id), "order_number": order.order_number, "detail": f"bytes={len(pdf)}"},
        )
        response = HttpResponse(pdf, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{invoice_filename(order)}"'
        return response

    @action(detail=True, methods=["get"], url_path="share")
    def share(self, request, pk=None):
        order = self.get_object()
        channel = request.query_params.get("channel", "whatsapp")
        if channel not in SHARE_CHANNELS:
            raise validation_error("channel", "Channel must be whatsapp or email.", "invalid_channel")
        return Response(share_payload(order, channel))
