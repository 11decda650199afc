"""
URL routing for the scheduling API.
"""

from django.urls import path
from .views import (
    BookingDetailView,
    BookingListCreateView,
    BookingStatusView,
    CleanupView,
    ClosingReportView,
    DashboardView,
    LoginView,
    LogoutView,
    ProviderAvailabilityView,
    ProviderDetailView,
    ProviderListCreateView,
    ServiceCatalogView,
    SyncView,
    TaskListView,
)

urlpatterns = [
    path('login/', LoginView.as_view(), name='login'),
    path('logout/', LogoutView.as_view(), name='logout'),
    path('services/', ServiceCatalogView.as_view(), name='service-list'),
    path('providers/', ProviderListCreateView.as_view(), name='provider-list-create'),
    path('providers/<str:pk>/', ProviderDetailView.as_view(), name='provider-detail'),
    path('providers/<str:pk>/availability/', ProviderAvailabilityView.as_view(), name='provider-availability'),
    path('bookings/', BookingListCreateView.as_view(), name='booking-list-create'),
    path('bookings/<str:pk>/', BookingDetailView.as_view(), name='booking-detail'),
    path('bookings/<str:pk>/status/', BookingStatusView.as_view(), name='booking-status'),
    path('tasks/', TaskListView.as_view(), name='task-list'),
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('reports/closing/', ClosingReportView.as_view(), name='closing-report'),
    path('cleanup/', CleanupView.as_view(), name='cleanup'),
    path('sync/', SyncView.as_view(), name='sync'),
]
