"""Views for the spa scheduling API."""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import HttpResponse, Http404

from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler

from . import catalog, services
from .access import SessionContext, authenticate
from .exceptions import (
    InvalidReference,
    InvalidTransition,
    MissingField,
    NotPermitted,
    ProviderUnavailable,
    RemoteSyncFailure,
    SchedulingError,
    TimeConflict,
)
from .lifecycle import get_workflow
from .mirror import get_mirror
from .models import Booking, Provider
from .reports import closing_report_filename
from .serializers import (
    AvailabilityUpdateSerializer,
    BookingListQuerySerializer,
    BookingReadSerializer,
    BookingStatusSerializer,
    BookingWriteSerializer,
    CleanupActionSerializer,
    LoginSerializer,
    ProviderReadSerializer,
    ProviderWriteSerializer,
    ReportQuerySerializer,
    ServiceEntrySerializer,
)
from .types import AvailabilityUpdateData, BookingSubmission, ProviderData, ReportFilter

SESSION_KEY = 'scheduling_context'

ERROR_STATUS = {
    MissingField: status.HTTP_400_BAD_REQUEST,
    InvalidReference: status.HTTP_400_BAD_REQUEST,
    ProviderUnavailable: status.HTTP_409_CONFLICT,
    TimeConflict: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotPermitted: status.HTTP_403_FORBIDDEN,
    RemoteSyncFailure: status.HTTP_502_BAD_GATEWAY,
}


def scheduling_exception_handler(exc, context):
    """Turn scheduling errors into ``{"error", "message"}`` responses."""
    if isinstance(exc, SchedulingError):
        body = {'error': exc.code, 'message': str(exc)}
        if isinstance(exc, MissingField):
            body['fields'] = exc.fields
        return Response(body, status=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST))

    if isinstance(exc, DjangoValidationError):
        return Response(
            {'error': 'invalid_payload', 'message': exc.messages},
            status=status.HTTP_400_BAD_REQUEST
        )

    return exception_handler(exc, context)


def get_session_context(request) -> SessionContext:
    data = request.session.get(SESSION_KEY)
    if not data:
        raise NotAuthenticated("Login required.")
    return SessionContext.from_dict(data)


def _get_or_404(model, pk):
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        raise Http404(f"{model.__name__} not found")
    return obj


class LoginView(APIView):
    """
    Open a session for a role.

    POST /api/login/
    """

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        session = authenticate(
            data['role'],
            passphrase=data.get('passphrase'),
            provider_id=data.get('provider_id') or None,
        )
        request.session[SESSION_KEY] = session.to_dict()
        cleanup_state = services.ensure_started()

        return Response({
            'session': session.to_dict(),
            'cleanup_state': cleanup_state.value,
            'sync_status': get_mirror().status.value,
        })


class LogoutView(APIView):
    """POST /api/logout/"""

    def post(self, request):
        request.session.pop(SESSION_KEY, None)
        return Response({'message': 'Logged out.'})


class ServiceCatalogView(APIView):
    """GET /api/services/ - List the service catalog"""

    def get(self, request):
        serializer = ServiceEntrySerializer(catalog.SERVICE_CATALOG, many=True)
        return Response(serializer.data)


class ProviderListCreateView(APIView):
    """
    List all providers or create a new one.

    GET /api/providers/ - List providers
    POST /api/providers/ - Create a provider
    """

    def get(self, request):
        get_session_context(request)
        providers = Provider.objects.in_order()
        return Response(ProviderReadSerializer(providers, many=True).data)

    def post(self, request):
        session = get_session_context(request)
        serializer = ProviderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        provider = services.save_provider(ProviderData(**serializer.validated_data), session)
        return Response(ProviderReadSerializer(provider).data, status=status.HTTP_201_CREATED)


class ProviderDetailView(APIView):
    """
    Retrieve, replace or delete a provider.

    GET /api/providers/{id}/
    PUT /api/providers/{id}/
    DELETE /api/providers/{id}/ - Bookings of the provider are kept
    """

    def get(self, request, pk):
        get_session_context(request)
        provider = _get_or_404(Provider, pk)
        return Response(ProviderReadSerializer(provider).data)

    def put(self, request, pk):
        session = get_session_context(request)
        _get_or_404(Provider, pk)
        serializer = ProviderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        provider = services.save_provider(ProviderData(id=pk, **serializer.validated_data), session)
        return Response(ProviderReadSerializer(provider).data)

    def delete(self, request, pk):
        session = get_session_context(request)
        provider = _get_or_404(Provider, pk)

        orphaned = services.delete_provider(provider.id, session)
        return Response({
            'message': f'Masseur "{provider.name}" has been deleted.',
            'orphaned_bookings': orphaned,
        })


class ProviderAvailabilityView(APIView):
    """PATCH /api/providers/{id}/availability/ - Update shift and days off"""

    def patch(self, request, pk):
        session = get_session_context(request)
        serializer = AvailabilityUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        update_data = AvailabilityUpdateData(
            start_time=serializer.validated_data.get('start_time'),
            end_time=serializer.validated_data.get('end_time'),
            excluded_weekdays=serializer.validated_data.get('excluded_weekdays'),
        )
        provider = services.update_availability(pk, update_data, session)
        return Response(ProviderReadSerializer(provider).data)


class BookingListCreateView(APIView):
    """
    List bookings or create a new one.

    GET /api/bookings/?date=YYYY-MM-DD&provider=ID
    POST /api/bookings/
    """

    def get(self, request):
        session = get_session_context(request)
        query_serializer = BookingListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        bookings = services.list_bookings(
            session,
            on_date=query_serializer.validated_data.get('date'),
            provider_id=query_serializer.validated_data.get('provider'),
        )
        return Response(BookingReadSerializer(bookings, many=True).data)

    def post(self, request):
        session = get_session_context(request)
        serializer = BookingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = services.submit_booking(BookingSubmission(**serializer.validated_data), session)
        return Response(BookingReadSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(APIView):
    """
    Retrieve, edit or delete a booking.

    GET /api/bookings/{id}/
    PUT /api/bookings/{id}/
    DELETE /api/bookings/{id}/
    """

    def get(self, request, pk):
        get_session_context(request)
        booking = _get_or_404(Booking, pk)
        return Response(BookingReadSerializer(booking).data)

    def put(self, request, pk):
        session = get_session_context(request)
        _get_or_404(Booking, pk)
        serializer = BookingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        submission = BookingSubmission(id=pk, **serializer.validated_data)
        booking = services.submit_booking(submission, session)
        return Response(BookingReadSerializer(booking).data)

    def delete(self, request, pk):
        session = get_session_context(request)
        booking = _get_or_404(Booking, pk)

        services.delete_booking(booking.id, session)
        return Response({
            'message': f'Booking of "{booking.client_name}" on {booking.date} has been deleted.'
        })


class BookingStatusView(APIView):
    """POST /api/bookings/{id}/status/ - Mark pending or done"""

    def post(self, request, pk):
        session = get_session_context(request)
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = services.set_booking_status(pk, serializer.validated_data['status'], session)
        return Response(BookingReadSerializer(booking).data)


class TaskListView(APIView):
    """GET /api/tasks/ - The logged-in masseur's bookings"""

    def get(self, request):
        session = get_session_context(request)
        if not session.is_masseur:
            raise NotPermitted("Only masseurs have a task list.")

        bookings, pending = services.provider_tasks(session.provider_id)
        return Response({
            'pending': pending,
            'bookings': BookingReadSerializer(bookings, many=True).data,
        })


class DashboardView(APIView):
    """GET /api/dashboard/"""

    def get(self, request):
        session = get_session_context(request)
        return Response(services.dashboard_stats(services.list_bookings(session)))


class ClosingReportView(APIView):
    """GET /api/reports/closing/?start=&end=&provider=&hotel= - PDF download"""

    def get(self, request):
        session = get_session_context(request)
        query_serializer = ReportQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        data = query_serializer.validated_data
        report_filter = ReportFilter(
            start_date=data['start'],
            end_date=data['end'],
            provider_id=data.get('provider') or None,
            hotel=data.get('hotel') or None,
        )
        pdf_bytes = services.closing_report(report_filter, session)

        response = HttpResponse(pdf_bytes, content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{closing_report_filename(report_filter)}"'
        return response


class CleanupView(APIView):
    """
    Drive the monthly cleanup prompts.

    GET /api/cleanup/ - Current state
    POST /api/cleanup/ - {"action": "accept" | "decline" | "back" | "confirm"}
    """

    def get(self, request):
        get_session_context(request)
        return Response({'state': get_workflow().state.value})

    def post(self, request):
        get_session_context(request)
        serializer = CleanupActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        workflow = get_workflow()
        action = serializer.validated_data['action']
        body = {}

        if action == 'accept':
            result = workflow.accept_report()
            body = {'removed': result.removed_count, 'backup_path': result.backup_path}
        elif action == 'confirm':
            result = workflow.confirm_without_backup()
            body = {'removed': result.removed_count, 'backup_path': None}
        elif action == 'decline':
            workflow.decline_report()
        else:
            workflow.back_out()

        body['state'] = workflow.state.value
        return Response(body)


class SyncView(APIView):
    """
    Remote mirror status and manual sync.

    GET /api/sync/
    POST /api/sync/ - Push now
    """

    def get(self, request):
        get_session_context(request)
        mirror = get_mirror()
        return Response({'status': mirror.status.value, 'error': mirror.last_error})

    def post(self, request):
        get_session_context(request)
        success = services.manual_sync()
        mirror = get_mirror()
        return Response(
            {'status': mirror.status.value, 'error': mirror.last_error},
            status=status.HTTP_200_OK if success else status.HTTP_502_BAD_GATEWAY
        )
