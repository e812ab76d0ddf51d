# reports/urls.py

from django.urls import path

from reports.views import (
    DailySalesReportView,
    DoctorSalesReportView,
    DoctorWiseSalesReportView,
    MonthlySalesReportView,
    StockExpiryReportView,
    StockReportView,
    VendorSalesReportView,
    VendorWiseSalesReportView,
    WeeklySalesReportView,
)

app_name = "reports"

urlpatterns = [
    path("sales/daily/", DailySalesReportView.as_view(), name="sales-daily"),
    path("sales/weekly/", WeeklySalesReportView.as_view(), name="sales-weekly"),
    path("sales/monthly/", MonthlySalesReportView.as_view(), name="sales-monthly"),
    path("doctor-wise/", DoctorWiseSalesReportView.as_view(), name="doctor-wise"),
    path("doctor-wise/<uuid:doctor_id>/", DoctorSalesReportView.as_view(), name="doctor-sales"),
    path("vendor-wise/", VendorWiseSalesReportView.as_view(), name="vendor-wise"),
    path("vendor-wise/<uuid:vendor_id>/", VendorSalesReportView.as_view(), name="vendor-sales"),
    path("stock/", StockReportView.as_view(), name="stock"),
    path("stock-expiry/", StockExpiryReportView.as_view(), name="stock-expiry"),
]
