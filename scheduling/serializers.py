"""
Serializers for the spa scheduling API.

Write serializers only parse types. Business validation (required fields,
references, availability, conflicts) happens in the service layer so that
every client gets the same errors.
"""

from rest_framework import serializers

from .access import Role
from .models import Booking, BookingStatus, Hotel, Provider


class ServiceEntrySerializer(serializers.Serializer):
    """Serializer for catalog entries (read only)."""

    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=8, decimal_places=2)
    duration_minutes = serializers.IntegerField()


class ProviderReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Provider (output)."""

    excluded_weekday_labels = serializers.ReadOnlyField()

    class Meta:
        model = Provider
        fields = [
            'id',
            'name',
            'start_time',
            'end_time',
            'excluded_weekdays',
            'excluded_weekday_labels',
        ]


class ProviderWriteSerializer(serializers.Serializer):
    """Serializer for creating or replacing a Provider (input)."""

    name = serializers.CharField(max_length=200)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    excluded_weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
        default=list
    )


class AvailabilityUpdateSerializer(serializers.Serializer):
    """Serializer for a provider editing their own availability."""

    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    excluded_weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False
    )


class BookingReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Booking (output)."""

    service_name = serializers.SerializerMethodField()
    duration_minutes = serializers.SerializerMethodField()
    end_datetime = serializers.DateTimeField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'client_name',
            'unit',
            'hotel',
            'phone',
            'service_id',
            'service_name',
            'duration_minutes',
            'date',
            'time',
            'end_datetime',
            'provider_id',
            'point_of_sale',
            'status',
            'photo',
            'created_by',
            'created_at',
        ]

    def get_service_name(self, obj):
        return obj.service.name if obj.service else None

    def get_duration_minutes(self, obj):
        return obj.service.duration_minutes if obj.service else None


class BookingWriteSerializer(serializers.Serializer):
    """Serializer for booking form submissions (input)."""

    client_name = serializers.CharField(required=False, allow_blank=True, default='')
    unit = serializers.CharField(required=False, allow_blank=True, default='')
    hotel = serializers.CharField(required=False, allow_blank=True, default=Hotel.VILAGE_INN.value)
    phone = serializers.CharField(required=False, allow_blank=True, default='')
    service_id = serializers.CharField(required=False, allow_blank=True, default='')
    date = serializers.DateField(required=False, allow_null=True, default=None)
    time = serializers.TimeField(required=False, allow_null=True, default=None)
    provider_id = serializers.CharField(required=False, allow_blank=True, default='')
    point_of_sale = serializers.CharField(required=False, allow_blank=True, default='')
    status = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    photo = serializers.CharField(required=False, allow_blank=True, default='')
    created_by = serializers.CharField(required=False, allow_blank=True, default='')


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.values)


class BookingListQuerySerializer(serializers.Serializer):
    """Serializer for booking list query parameters."""

    date = serializers.DateField(required=False)
    provider = serializers.CharField(required=False)


class LoginSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[role.value for role in Role])
    passphrase = serializers.CharField(required=False, allow_blank=True, default='')
    provider_id = serializers.CharField(required=False, allow_blank=True, default='')


class ReportQuerySerializer(serializers.Serializer):
    """Serializer for closing report query parameters."""

    start = serializers.DateField()
    end = serializers.DateField()
    provider = serializers.CharField(required=False, allow_blank=True)
    hotel = serializers.ChoiceField(choices=Hotel.values, required=False, allow_blank=True)

    def validate(self, data):
        """Ensure start is not after end."""
        if data['start'] > data['end']:
            raise serializers.ValidationError(
                "Start date must not be after end date."
            )
        return data


class CleanupActionSerializer(serializers.Serializer):
    ACTIONS = ['accept', 'decline', 'back', 'confirm']

    action = serializers.ChoiceField(choices=ACTIONS)
