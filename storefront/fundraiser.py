# Standard Library
import logging

# Django
from django.utils.dateparse import parse_date

# Django REST Framework
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .permissions import AdminOnlyPermission, FrontendOnlyPermission
from .registry import get_repositories
from .utilities import SERVER_ERROR, _as_bool, _parse_payload, _to_int, _to_number


logger = logging.getLogger(__name__)


def _parse_day(raw):
    try:
        return parse_date(raw)
    except ValueError:
        return None


def _fundraiser_fields(data, partial=False):
    fields = {}

    if "title" in data or not partial:
        title = str(data.get("title") or "").strip()
        if not title:
            return None, "title is required"
        fields["title"] = title[:255]

    for key in ("description", "goal", "image"):
        if key in data:
            fields[key] = str(data.get(key) or "").strip()

    if "goal_pkr" in data:
        goal_pkr = _to_number(data.get("goal_pkr"))
        if data.get("goal_pkr") not in (None, "") and (goal_pkr is None or goal_pkr < 0):
            return None, "goal_pkr must be a non-negative number"
        fields["goal_pkr"] = goal_pkr

    if "product_id" in data:
        fields["product_id"] = _to_int(data.get("product_id"))

    for key in ("start_date", "end_date"):
        if key in data:
            raw = str(data.get(key) or "").strip()
            if raw and _parse_day(raw) is None:
                return None, f"{key} must be YYYY-MM-DD"
            fields[key] = raw or None

    start, end = fields.get("start_date"), fields.get("end_date")
    if start and end and _parse_day(end) < _parse_day(start):
        return None, "end_date is before start_date"

    if "active" in data:
        fields["active"] = _as_bool(data.get("active"), default=True)
    elif not partial:
        fields["active"] = True

    return fields, None


# --------------------------
# SHOW
# GET /api/show-fundraisers/[?active=1]
# GET /api/show-fundraiser/<id>/
# --------------------------
class ShowFundraisersAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        try:
            repo = get_repositories().fundraisers
            if _as_bool(request.query_params.get("active"), default=False):
                return Response(repo.load_active(), status=status.HTTP_200_OK)
            return Response(repo.load_all(), status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowFundraisers failed")
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ShowFundraiserAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request, fundraiser_id):
        try:
            repos = get_repositories()
            record = repos.fundraisers.load_by_id(fundraiser_id)
            if record is None:
                return Response({"error": "Fundraiser not found"}, status=status.HTTP_404_NOT_FOUND)

            # linked product is optional; a missing one is reported as null
            product_id = _to_int(record.get("product_id"))
            product = repos.products.load_by_id(product_id) if product_id is not None else None
            return Response({**record, "product": product}, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowFundraiser %s failed", fundraiser_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# --------------------------
# ADMIN WRITES
# --------------------------
class SaveFundraiserAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        fields, error = _fundraiser_fields(_parse_payload(request))
        if error:
            return Response({"error": error}, status=status.HTTP_400_BAD_REQUEST)

        try:
            created = get_repositories().fundraisers.create(fields)
            if created is None:
                return Response({"error": "Failed to save fundraiser"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(created, status=status.HTTP_201_CREATED)
        except Exception:
            logger.exception("SaveFundraiser failed")
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class EditFundraiserAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        fundraiser_id = _to_int(data.get("id"))
        if fundraiser_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)
        fields, error = _fundraiser_fields(data, partial=True)
        if error:
            return Response({"error": error}, status=status.HTTP_400_BAD_REQUEST)
        if not fields:
            return Response({"error": "Nothing to update"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            updated = get_repositories().fundraisers.update(fundraiser_id, fields)
            if updated is None:
                return Response({"error": "Failed to update fundraiser"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(updated, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("EditFundraiser %s failed", fundraiser_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    put = post


class DeleteFundraiserAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        fundraiser_id = _to_int(_parse_payload(request).get("id"))
        if fundraiser_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            if not get_repositories().fundraisers.delete(fundraiser_id):
                return Response({"error": "Failed to delete fundraiser"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"deleted": fundraiser_id}, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("DeleteFundraiser %s failed", fundraiser_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    delete = post
