"""
Admin configuration for the scheduling app.
"""

from django.contrib import admin
from .models import Booking, Provider, StoredValue


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    """Admin interface for Provider model."""

    list_display = ['name', 'start_time', 'end_time', 'excluded_weekdays']
    search_fields = ['name']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name',)
        }),
        ('Availability', {
            'fields': ('start_time', 'end_time', 'excluded_weekdays')
        }),
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = ['client_name', 'date', 'time', 'provider_id', 'hotel', 'point_of_sale', 'status']
    list_filter = ['status', 'hotel', 'point_of_sale', 'date']
    search_fields = ['client_name', 'unit', 'phone']
    date_hierarchy = 'date'

    fieldsets = (
        ('Guest', {
            'fields': ('client_name', 'unit', 'hotel', 'phone')
        }),
        ('Schedule', {
            'fields': ('service_id', 'date', 'time', 'provider_id')
        }),
        ('Status', {
            'fields': ('point_of_sale', 'status', 'photo')
        }),
        ('Metadata', {
            'fields': ('created_by', 'created_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at']


@admin.register(StoredValue)
class StoredValueAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    readonly_fields = ['updated_at']
