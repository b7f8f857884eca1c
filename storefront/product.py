# Standard Library
import logging

# Django REST Framework
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .catalog import CatalogFilter, apply_filters, combine, list_categories
from .permissions import AdminOnlyPermission, FrontendOnlyPermission
from .ratings import summarize
from .registry import get_repositories
from .utilities import (
    _as_bool,
    _is_data_url,
    _parse_payload,
    _to_int,
    _to_number,
    SERVER_ERROR,
    decode_data_url,
    normalize_images,
    parse_category_tags,
)


logger = logging.getLogger(__name__)

CATALOG_KINDS = ("product", "card")


# --------------------------
# Helpers
# --------------------------

def _catalog_fields(data, partial=False):
    """
    Pick and clean the writable catalog columns from a payload.
    Returns (fields, error); error is a message string or None.
    """
    fields = {}

    if "name" in data or not partial:
        name = str(data.get("name") or "").strip()
        if not name:
            return None, "name is required"
        fields["name"] = name[:255]

    if "price" in data or not partial:
        price = _to_number(data.get("price"))
        if price is None or price < 0:
            return None, "price must be a non-negative number"
        fields["price"] = price

    if "category" in data:
        fields["category"] = parse_category_tags(data.get("category"))
    if "images" in data:
        fields["images"] = normalize_images(data.get("images"))
    if "description" in data:
        fields["description"] = str(data.get("description") or "").strip()
    if "in_stock" in data:
        fields["in_stock"] = _as_bool(data.get("in_stock"), default=True)
    elif not partial:
        fields["in_stock"] = True
    if "is_custom" in data:
        fields["is_custom"] = _as_bool(data.get("is_custom"), default=False)
    elif not partial:
        fields["is_custom"] = False

    return fields, None


def _ids_from(data):
    raw = data.get("ids")
    if raw is None:
        raw = [data.get("id")]
    if not isinstance(raw, (list, tuple)):
        raw = [raw]
    return [i for i in (_to_int(v) for v in raw) if i is not None]


# --------------------------
# Catalog (public)
# GET /api/show-catalog/?search=&category=&stock=&min_price=&max_price=&sort=
# --------------------------
class ShowCatalogAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        try:
            repos = get_repositories()
            items = combine(repos.products.load_all(), repos.cards.load_all())
            spec = CatalogFilter.from_query(request.query_params)
            filtered = apply_filters(items, spec)
            return Response({
                "items": [i.as_dict() for i in filtered],
                "count": len(filtered),
                "categories": list_categories(items),
            }, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowCatalog failed")
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ShowCategoriesAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request):
        try:
            repos = get_repositories()
            items = combine(repos.products.load_all(), repos.cards.load_all())
            return Response(list_categories(items), status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowCategories failed")
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# --------------------------
# Products & cards: shared list/detail/write views
# --------------------------
class _ShowItemsAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]
    kind = "product"

    def get(self, request):
        try:
            repo = get_repositories().catalog(self.kind)
            return Response(repo.load_all(), status=status.HTTP_200_OK)
        except Exception:
            logger.exception("Show %s list failed", self.kind)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class _ShowItemAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]
    kind = "product"

    def get(self, request, item_id):
        try:
            repos = get_repositories()
            record = repos.catalog(self.kind).load_by_id(item_id)
            if record is None:
                return Response({"error": f"{self.kind.title()} not found"}, status=status.HTTP_404_NOT_FOUND)
            if self.kind == "product":
                record = {**record, "rating": summarize(repos.reviews.load_all(), product_id=item_id).as_dict()}
            return Response(record, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("Show %s %s failed", self.kind, item_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class _SaveItemAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]
    kind = "product"

    def post(self, request):
        data = _parse_payload(request)
        fields, error = _catalog_fields(data)
        if error:
            return Response({"error": error}, status=status.HTTP_400_BAD_REQUEST)

        try:
            created = get_repositories().catalog(self.kind).create(fields)
            if created is None:
                return Response({"error": f"Failed to save {self.kind}"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(created, status=status.HTTP_201_CREATED)
        except Exception:
            logger.exception("Save %s failed", self.kind)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class _EditItemAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]
    kind = "product"

    def post(self, request):
        data = _parse_payload(request)
        item_id = _to_int(data.get("id"))
        if item_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)
        fields, error = _catalog_fields(data, partial=True)
        if error:
            return Response({"error": error}, status=status.HTTP_400_BAD_REQUEST)
        if not fields:
            return Response({"error": "Nothing to update"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            updated = get_repositories().catalog(self.kind).update(item_id, fields)
            if updated is None:
                return Response({"error": f"Failed to update {self.kind}"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(updated, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("Edit %s %s failed", self.kind, item_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    put = post


class _DeleteItemsAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]
    kind = "product"

    def post(self, request):
        ids = _ids_from(_parse_payload(request))
        if not ids:
            return Response({"error": "No ids provided"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            repo = get_repositories().catalog(self.kind)
            deleted, failed = [], []
            for item_id in ids:
                (deleted if repo.delete(item_id) else failed).append(item_id)
        except Exception:
            logger.exception("Delete %s failed", self.kind)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        if failed and not deleted:
            return Response({"error": f"Failed to delete {self.kind}", "failed": failed},
                            status=status.HTTP_502_BAD_GATEWAY)
        return Response({"deleted": deleted, "failed": failed}, status=status.HTTP_200_OK)

    delete = post


class ShowProductsAPIView(_ShowItemsAPIView):
    kind = "product"


class ShowProductAPIView(_ShowItemAPIView):
    kind = "product"


class SaveProductAPIView(_SaveItemAPIView):
    kind = "product"


class EditProductAPIView(_EditItemAPIView):
    kind = "product"


class DeleteProductAPIView(_DeleteItemsAPIView):
    kind = "product"


class ShowCardsAPIView(_ShowItemsAPIView):
    kind = "card"


class ShowCardAPIView(_ShowItemAPIView):
    kind = "card"


class SaveCardAPIView(_SaveItemAPIView):
    kind = "card"


class EditCardAPIView(_EditItemAPIView):
    kind = "card"


class DeleteCardAPIView(_DeleteItemsAPIView):
    kind = "card"


# --------------------------
# Images
# POST /api/upload-product-image/   multipart (image=<file>) or JSON (image=<data url>)
#   kind? (product|card), item_id, index?, attach? (append url to the record)
# POST /api/delete-product-image/   url, kind?, item_id? (also detach from record)
# --------------------------
class UploadProductImageAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        kind = data.get("kind") or "product"
        if kind not in CATALOG_KINDS:
            return Response({"error": "kind must be product or card"}, status=status.HTTP_400_BAD_REQUEST)
        item_id = _to_int(data.get("item_id"))
        if item_id is None:
            return Response({"error": "item_id is required"}, status=status.HTTP_400_BAD_REQUEST)

        upload = request.FILES.get("image")
        if upload is not None:
            blob, filename, content_type = upload.read(), upload.name, upload.content_type or ""
        elif _is_data_url(data.get("image")):
            try:
                blob, content_type = decode_data_url(data["image"])
            except (ValueError, TypeError):
                return Response({"error": "Invalid image data"}, status=status.HTTP_400_BAD_REQUEST)
            filename = ""
        else:
            return Response({"error": "image is required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            repo = get_repositories().catalog(kind)
            url = repo.upload_image(blob, filename, item_id, index=_to_int(data.get("index"), 0),
                                    content_type=content_type)
            if url is None:
                return Response({"error": "Image upload failed"}, status=status.HTTP_400_BAD_REQUEST)

            if _as_bool(data.get("attach"), default=False):
                record = repo.load_by_id(item_id)
                if record is not None:
                    repo.update(item_id, {"images": list(record.get("images") or []) + [url]})
            return Response({"url": url}, status=status.HTTP_201_CREATED)
        except Exception:
            logger.exception("UploadProductImage failed for %s %s", kind, item_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class DeleteProductImageAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        url = str(data.get("url") or "").strip()
        kind = data.get("kind") or "product"
        if not url:
            return Response({"error": "url is required"}, status=status.HTTP_400_BAD_REQUEST)
        if kind not in CATALOG_KINDS:
            return Response({"error": "kind must be product or card"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            repo = get_repositories().catalog(kind)
            if not repo.delete_image(url):
                return Response({"error": "Failed to delete image"}, status=status.HTTP_502_BAD_GATEWAY)

            item_id = _to_int(data.get("item_id"))
            if item_id is not None:
                record = repo.load_by_id(item_id)
                if record is not None and url in (record.get("images") or []):
                    repo.update(item_id, {"images": [u for u in record["images"] if u != url]})
            return Response({"deleted": url}, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("DeleteProductImage failed for %s", url)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
