from django.dispatch import Signal, receiver

from .notifications import post_order_to_sheet, send_order_email

# Sent once an order has been stored remotely. kwargs: order (dict)
order_placed = Signal()


# ==== RECEIVERS ====
@receiver(order_placed, dispatch_uid="storefront.order_email")
def email_order(sender, order, **kwargs):
    send_order_email(order)


@receiver(order_placed, dispatch_uid="storefront.order_sheet")
def log_order_to_sheet(sender, order, **kwargs):
    post_order_to_sheet(order)
