"""
Error types raised by the tracker services and the DRF exception handler
that renders them.

Services raise; views let the exception propagate and
``api_exception_handler`` turns it into the ``{'ok': False, 'error': ...}``
envelope the front-end expects.
"""
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response


class TrackerError(Exception):
    """Base class for errors reported back to the user."""

    code = 'tracker_error'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationFailed(TrackerError):
    """Input rejected locally before anything is written."""

    code = 'validation_error'
    http_status = 400


class SubmissionBlocked(TrackerError):
    """The account is not allowed to perform the write."""

    code = 'submission_blocked'
    http_status = 403


class StaleReference(TrackerError):
    """A referenced row is gone or was never in the fetched snapshot."""

    code = 'not_found'
    http_status = 404


class PersistenceError(TrackerError):
    """The database refused a read or write; the message is passed through."""

    code = 'remote_error'
    http_status = 500


def api_exception_handler(exc, context):
    if isinstance(exc, TrackerError):
        error = {'code': exc.code, 'message': exc.message}
        if exc.detail is not None:
            error['detail'] = exc.detail
        return Response({'ok': False, 'error': error}, status=exc.http_status)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
