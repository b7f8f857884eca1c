from django.urls import path

from .fundraiser import (
    DeleteFundraiserAPIView,
    EditFundraiserAPIView,
    SaveFundraiserAPIView,
    ShowFundraiserAPIView,
    ShowFundraisersAPIView,
)
from .order_cart import (
    AddToCartAPIView,
    ClearCartAPIView,
    DeleteOrderAPIView,
    ExportOrdersAPIView,
    OrderBackupsAPIView,
    PlaceCustomOrderAPIView,
    PlaceOrderAPIView,
    RefreshCacheAPIView,
    RemoveFromCartAPIView,
    ShowCartAPIView,
    ShowOrdersAPIView,
    TrackOrderAPIView,
    TrackOrdersByEmailAPIView,
    UpdateCartAPIView,
    UpdateOrderStatusAPIView,
)
from .product import (
    DeleteCardAPIView,
    DeleteProductAPIView,
    DeleteProductImageAPIView,
    EditCardAPIView,
    EditProductAPIView,
    SaveCardAPIView,
    SaveProductAPIView,
    ShowCardAPIView,
    ShowCardsAPIView,
    ShowCatalogAPIView,
    ShowCategoriesAPIView,
    ShowProductAPIView,
    ShowProductsAPIView,
    UploadProductImageAPIView,
)
from .reviews import (
    DeleteReviewAPIView,
    EditReviewAPIView,
    SaveReviewAPIView,
    ShowAllReviewsAPIView,
    ShowReviewsAPIView,
)

urlpatterns = [
    # Catalog
    path("show-catalog/", ShowCatalogAPIView.as_view(), name="show-catalog"),
    path("show-categories/", ShowCategoriesAPIView.as_view(), name="show-categories"),
    path("show-products/", ShowProductsAPIView.as_view(), name="show-products"),
    path("show-product/<int:item_id>/", ShowProductAPIView.as_view(), name="show-product"),
    path("save-product/", SaveProductAPIView.as_view(), name="save-product"),
    path("edit-product/", EditProductAPIView.as_view(), name="edit-product"),
    path("delete-product/", DeleteProductAPIView.as_view(), name="delete-product"),
    path("show-cards/", ShowCardsAPIView.as_view(), name="show-cards"),
    path("show-card/<int:item_id>/", ShowCardAPIView.as_view(), name="show-card"),
    path("save-card/", SaveCardAPIView.as_view(), name="save-card"),
    path("edit-card/", EditCardAPIView.as_view(), name="edit-card"),
    path("delete-card/", DeleteCardAPIView.as_view(), name="delete-card"),
    path("upload-product-image/", UploadProductImageAPIView.as_view(), name="upload-product-image"),
    path("delete-product-image/", DeleteProductImageAPIView.as_view(), name="delete-product-image"),

    # Fundraisers
    path("show-fundraisers/", ShowFundraisersAPIView.as_view(), name="show-fundraisers"),
    path("show-fundraiser/<int:fundraiser_id>/", ShowFundraiserAPIView.as_view(), name="show-fundraiser"),
    path("save-fundraiser/", SaveFundraiserAPIView.as_view(), name="save-fundraiser"),
    path("edit-fundraiser/", EditFundraiserAPIView.as_view(), name="edit-fundraiser"),
    path("delete-fundraiser/", DeleteFundraiserAPIView.as_view(), name="delete-fundraiser"),

    # Reviews
    path("show-reviews/<int:product_id>/", ShowReviewsAPIView.as_view(), name="show-reviews"),
    path("save-review/", SaveReviewAPIView.as_view(), name="save-review"),
    path("show-all-reviews/", ShowAllReviewsAPIView.as_view(), name="show-all-reviews"),
    path("edit-review/", EditReviewAPIView.as_view(), name="edit-review"),
    path("delete-review/", DeleteReviewAPIView.as_view(), name="delete-review"),

    # Basket
    path("show-cart/", ShowCartAPIView.as_view(), name="show-cart"),
    path("add-to-cart/", AddToCartAPIView.as_view(), name="add-to-cart"),
    path("update-cart/", UpdateCartAPIView.as_view(), name="update-cart"),
    path("remove-from-cart/", RemoveFromCartAPIView.as_view(), name="remove-from-cart"),
    path("clear-cart/", ClearCartAPIView.as_view(), name="clear-cart"),

    # Orders
    path("place-order/", PlaceOrderAPIView.as_view(), name="place-order"),
    path("place-custom-order/", PlaceCustomOrderAPIView.as_view(), name="place-custom-order"),
    path("track-order/", TrackOrderAPIView.as_view(), name="track-order"),
    path("track-orders-by-email/", TrackOrdersByEmailAPIView.as_view(), name="track-orders-by-email"),
    path("show-orders/", ShowOrdersAPIView.as_view(), name="show-orders"),
    path("update-order-status/", UpdateOrderStatusAPIView.as_view(), name="update-order-status"),
    path("delete-order/", DeleteOrderAPIView.as_view(), name="delete-order"),
    path("export-orders/", ExportOrdersAPIView.as_view(), name="export-orders"),
    path("order-backups/", OrderBackupsAPIView.as_view(), name="order-backups"),

    # Maintenance
    path("refresh-cache/", RefreshCacheAPIView.as_view(), name="refresh-cache"),
]
