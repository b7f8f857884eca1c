# Standard Library
import logging

# Django
from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone

# Django REST Framework
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .orders import (
    is_valid_status,
    orders_to_csv,
    parse_promo_codes,
    place_custom_order,
    place_order,
    sort_orders,
    status_counts,
    validate_checkout,
)
from .permissions import AdminOnlyPermission, FrontendOnlyPermission
from .registry import basket_for, get_repositories, order_backup
from .utilities import SERVER_ERROR, _as_bool, _parse_payload, _to_int, device_uuid_from


logger = logging.getLogger(__name__)

ORDER_SAVE_FAILED = "Your order could not be placed right now. Please try again."
TRACK_ORDER_MIN_CHARS = 6


# --------------------------
# Helpers
# --------------------------

def _basket_or_error(request, data=None):
    device_uuid = device_uuid_from(request, data)
    if not device_uuid:
        return None, Response({"error": "Missing X-Device-UUID header"}, status=status.HTTP_400_BAD_REQUEST)
    return basket_for(device_uuid), None


def _line_key(data):
    """(id, customText) identifying a basket line in a request body."""
    custom_text = data.get("customText", data.get("custom_text"))
    return _to_int(data.get("id")), (custom_text or None)


def _custom_text_limit():
    return getattr(settings, "PHOOL_CUSTOM_TEXT_LIMIT", 150)


def _promo_codes():
    raw = getattr(settings, "PHOOL_PROMO_CODES", {})
    return parse_promo_codes(raw) if isinstance(raw, str) else dict(raw or {})


def _server_error(what):
    logger.exception("%s failed", what)
    return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# --------------------------
# BASKET
# GET  /api/show-cart/
# POST /api/add-to-cart/       id, kind? (product|card), quantity?, customText?
# POST /api/update-cart/       id, quantity, customText?
# POST /api/remove-from-cart/  id, customText?
# POST /api/clear-cart/
# --------------------------
class ShowCartAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        basket, error = _basket_or_error(request)
        if error:
            return error
        try:
            return Response(basket.as_dict(), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("ShowCart")


class AddToCartAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        basket, error = _basket_or_error(request, data)
        if error:
            return error

        item_id = _to_int(data.get("id", data.get("product_id")))
        kind = data.get("kind") or "product"
        if item_id is None or kind not in ("product", "card"):
            return Response({"error": "A valid id and kind are required"}, status=status.HTTP_400_BAD_REQUEST)
        qty = _to_int(data.get("quantity"), 1)
        if qty is None or qty < 1:
            return Response({"error": "quantity must be at least 1"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            record = get_repositories().catalog(kind).load_by_id(item_id)
            if record is None:
                return Response({"error": f"{kind.title()} not found"}, status=status.HTTP_404_NOT_FOUND)
            if not _as_bool(record.get("in_stock"), default=True):
                return Response({"error": "This item is out of stock"}, status=status.HTTP_409_CONFLICT)

            custom_text = None
            if _as_bool(record.get("is_custom"), default=False):
                custom_text = str(data.get("customText") or data.get("custom_text") or "").strip()
                custom_text = custom_text[:_custom_text_limit()] or None

            images = record.get("images") or []
            # lines are keyed by (id, customText) only, so a product and a card
            # sharing an id, both without custom text, land on the same line
            basket.add_item({
                "id": record["id"],
                "name": record.get("name") or "",
                "price": record.get("price") or 0,
                "image": images[0] if images else None,
                "customText": custom_text,
            }, qty=qty)
            return Response(basket.as_dict(), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("AddToCart")


class UpdateCartAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        basket, error = _basket_or_error(request, data)
        if error:
            return error

        item_id, custom_text = _line_key(data)
        qty = _to_int(data.get("quantity"))
        if item_id is None or qty is None:
            return Response({"error": "id and quantity are required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            basket.update_quantity(item_id, qty, custom_text)
            return Response(basket.as_dict(), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("UpdateCart")


class RemoveFromCartAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        basket, error = _basket_or_error(request, data)
        if error:
            return error

        item_id, custom_text = _line_key(data)
        if item_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            basket.remove_item(item_id, custom_text)
            return Response(basket.as_dict(), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("RemoveFromCart")


class ClearCartAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        basket, error = _basket_or_error(request, _parse_payload(request))
        if error:
            return error
        try:
            basket.clear()
            return Response(basket.as_dict(), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("ClearCart")


# --------------------------
# ORDERS (customer)
# POST /api/place-order/         name, email, phone, address, payment_method?, notes?,
#                                promo_code?, gift_wrap?, gift_message?
# POST /api/place-custom-order/  name, email, phone, custom_description, custom_colors?,
#                                custom_timeline?, address?, notes?
# GET  /api/track-order/?order_id=   at least TRACK_ORDER_MIN_CHARS letters or digits
# GET  /api/track-orders-by-email/?email=
# --------------------------
class PlaceOrderAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        basket, error = _basket_or_error(request, data)
        if error:
            return error

        try:
            if not basket.lines:
                return Response({"error": "Your basket is empty"}, status=status.HTTP_400_BAD_REQUEST)

            errors = validate_checkout(data)
            if errors:
                return Response({"error": "Invalid checkout details", "fields": errors},
                                status=status.HTTP_400_BAD_REQUEST)

            order = place_order(
                get_repositories().orders,
                basket,
                data,
                order_backup(),
                promo_codes=_promo_codes(),
                gift_wrap_cost=getattr(settings, "PHOOL_GIFT_WRAP_COST", 0),
            )
            if order is None:
                return Response({"error": ORDER_SAVE_FAILED}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"message": "Order placed", "order_id": order["order_id"], "order": order},
                            status=status.HTTP_201_CREATED)
        except Exception:
            return _server_error("PlaceOrder")


class PlaceCustomOrderAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        errors = validate_checkout(data, custom=True)
        if errors:
            return Response({"error": "Invalid request details", "fields": errors},
                            status=status.HTTP_400_BAD_REQUEST)

        try:
            order = place_custom_order(get_repositories().orders, data, order_backup())
            if order is None:
                return Response({"error": ORDER_SAVE_FAILED}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"message": "Request received", "order_id": order["order_id"], "order": order},
                            status=status.HTTP_201_CREATED)
        except Exception:
            return _server_error("PlaceCustomOrder")


class TrackOrderAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        order_id = (request.query_params.get("order_id") or "").strip()
        if not order_id:
            return Response({"error": "order_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        # the lookup is a partial match; short needles like "-" would list every order
        if sum(ch.isalnum() for ch in order_id) < TRACK_ORDER_MIN_CHARS:
            return Response(
                {"error": f"order_id must contain at least {TRACK_ORDER_MIN_CHARS} letters or digits"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            return Response(get_repositories().orders.search_by_order_id(order_id), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("TrackOrder")


class TrackOrdersByEmailAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        email = (request.query_params.get("email") or "").strip()
        if not email:
            return Response({"error": "email is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            return Response(get_repositories().orders.load_by_email(email), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("TrackOrdersByEmail")


# --------------------------
# ORDERS (admin)
# --------------------------
class ShowOrdersAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def get(self, request):
        try:
            orders = get_repositories().orders.load_all()
            status_filter = request.query_params.get("status")
            visible = [o for o in orders if o.get("status") == status_filter] if status_filter else orders
            return Response({
                "orders": sort_orders(
                    visible,
                    key=request.query_params.get("sort") or "timestamp",
                    direction=request.query_params.get("direction") or "desc",
                ),
                "status_counts": status_counts(orders),
                "total": len(orders),
            }, status=status.HTTP_200_OK)
        except Exception:
            return _server_error("ShowOrders")


class UpdateOrderStatusAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        order_id = str(data.get("order_id") or "").strip()
        new_status = str(data.get("status") or "").strip()
        if not order_id:
            return Response({"error": "order_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        if not is_valid_status(new_status):
            return Response({"error": f"Unknown status: {new_status!r}"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            if not get_repositories().orders.update_status(order_id, new_status):
                return Response({"error": "Failed to update order status"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"order_id": order_id, "status": new_status}, status=status.HTTP_200_OK)
        except Exception:
            return _server_error("UpdateOrderStatus")


class DeleteOrderAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        order_id = str(_parse_payload(request).get("order_id") or "").strip()
        if not order_id:
            return Response({"error": "order_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            if not get_repositories().orders.delete_by_order_id(order_id):
                return Response({"error": "Failed to delete order"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"deleted": order_id}, status=status.HTTP_200_OK)
        except Exception:
            return _server_error("DeleteOrder")

    delete = post


class ExportOrdersAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def get(self, request):
        try:
            orders = sort_orders(get_repositories().orders.load_all())
            filename = f"phoolshop-orders-{timezone.localdate().isoformat()}.csv"
            response = HttpResponse(orders_to_csv(orders), content_type="text/csv; charset=utf-8")
            response["Content-Disposition"] = f'attachment; filename="{filename}"'
            return response
        except Exception:
            return _server_error("ExportOrders")


class OrderBackupsAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def get(self, request):
        try:
            entries = order_backup().list()
            return Response(list(reversed(entries)), status=status.HTTP_200_OK)
        except Exception:
            return _server_error("ShowOrderBackups")

    def delete(self, request):
        try:
            order_backup().clear()
            return Response({"cleared": True}, status=status.HTTP_200_OK)
        except Exception:
            return _server_error("ClearOrderBackups")


# --------------------------
# CACHE
# POST /api/refresh-cache/  drop every cached list so the next read refetches
# --------------------------
class RefreshCacheAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        try:
            for repo in get_repositories().cached():
                repo.invalidate()
        except Exception:
            return _server_error("RefreshCache")
        logger.info("Catalog caches invalidated by admin request")
        return Response({"refreshed": True}, status=status.HTTP_200_OK)
