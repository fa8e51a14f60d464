from django.urls import path
from rest_framework.routers import DefaultRouter

from sales.reports import DashboardSummaryView, ProfitReportView
from sales.views import CustomerViewSet, OrderViewSet

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customer")
router.register(r"orders", OrderViewSet, basename="order")

urlpatterns = router.urls + [
    path("dashboard/summary/", DashboardSummaryView.as_view(), name="dashboard-summary"),
    path("reports/profit/", ProfitReportView.as_view(), name="report-profit"),
]
