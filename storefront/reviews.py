# Standard Library
import logging

# Django REST Framework
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .permissions import AdminOnlyPermission, FrontendOnlyPermission
from .ratings import summarize
from .registry import get_repositories
from .utilities import SERVER_ERROR, _as_bool, _parse_payload, _to_int


logger = logging.getLogger(__name__)


# --------------------------
# 1) SHOW (approved, per product)
# GET /api/show-reviews/<product_id>/
# --------------------------
class ShowReviewsAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def get(self, request, product_id):
        try:
            reviews = get_repositories().reviews.load_for_product(product_id)
            return Response({
                "reviews": reviews,
                "summary": summarize(reviews, product_id=product_id).as_dict(),
            }, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowReviews %s failed", product_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# --------------------------
# 2) SAVE (customer submission, held for moderation)
# POST /api/save-review/  product_id, name?, rating, comment|text
# --------------------------
class SaveReviewAPIView(APIView):
    permission_classes = [FrontendOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        product_id = _to_int(data.get("product_id"))
        if product_id is None:
            return Response({"error": "product_id is required"}, status=status.HTTP_400_BAD_REQUEST)
        if not str(data.get("comment") or data.get("text") or "").strip():
            return Response({"error": "comment is required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            repos = get_repositories()
            if repos.products.load_by_id(product_id) is None:
                return Response({"error": "Product not found"}, status=status.HTTP_404_NOT_FOUND)

            created = repos.reviews.create({
                "product_id": product_id,
                "name": data.get("name"),
                "rating": data.get("rating"),
                "comment": data.get("comment") or data.get("text"),
                # customers can never self-approve
                "approved": False,
            })
            if created is None:
                return Response({"error": "Failed to save review"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(
                {"message": "Thank you! Your review will appear once approved.", "review": created},
                status=status.HTTP_201_CREATED,
            )
        except Exception:
            logger.exception("SaveReview failed for product %s", product_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


# --------------------------
# 3) ADMIN
# --------------------------
class ShowAllReviewsAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def get(self, request):
        try:
            repo = get_repositories().reviews
            product_id = _to_int(request.query_params.get("product_id"))
            if product_id is not None:
                reviews = repo.load_for_product(product_id, include_unapproved=True)
            else:
                reviews = repo.load_all()

            pending = request.query_params.get("pending")
            if pending is not None and _as_bool(pending):
                reviews = [r for r in reviews if r.get("approved") is not True]
            return Response(reviews, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("ShowAllReviews failed")
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class EditReviewAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        data = _parse_payload(request)
        review_id = _to_int(data.get("id"))
        if review_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)

        patch = {}
        if "approved" in data:
            patch["approved"] = _as_bool(data.get("approved"))
        for key in ("rating", "comment", "text", "name"):
            if key in data:
                patch[key] = data.get(key)
        if not patch:
            return Response({"error": "Nothing to update"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            updated = get_repositories().reviews.update(review_id, patch)
            if updated is None:
                return Response({"error": "Failed to update review"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response(updated, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("EditReview %s failed", review_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    put = post


class DeleteReviewAPIView(APIView):
    permission_classes = [FrontendOnlyPermission, AdminOnlyPermission]

    def post(self, request):
        review_id = _to_int(_parse_payload(request).get("id"))
        if review_id is None:
            return Response({"error": "id is required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            if not get_repositories().reviews.delete(review_id):
                return Response({"error": "Failed to delete review"}, status=status.HTTP_502_BAD_GATEWAY)
            return Response({"deleted": review_id}, status=status.HTTP_200_OK)
        except Exception:
            logger.exception("DeleteReview %s failed", review_id)
            return Response({"error": SERVER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    delete = post
