from urllib.parse import quote

from common.utils import format_money
from sales.invoices import format_invoice_date

WHATSAPP_URL = "https://wa.me/?text={text}"
CURRENCY_SYMBOL = "₹"


def _customer_name(order):
    customer = getattr(order, "customer", None)
    return customer.name if customer is not None else "N/A"


def whatsapp_message(order):
    return (
        f"Invoice: {order.order_number}\n"
        f"Customer: {_customer_name(order)}\n"
        f"Amount: {format_money(order.total_amount, CURRENCY_SYMBOL)}\n"
        f"Date: {format_invoice_date(order.created_at)}"
    )


def email_subject(order):
    return f"Invoice {order.order_number}"


def email_message(order):
    return (
        f"Dear {_customer_name(order)},\n\n"
        "Please find your invoice details below:\n\n"
        f"Invoice Number: {order.order_number}\n"
        f"Amount: {format_money(order.total_amount, CURRENCY_SYMBOL)}\n"
        f"Date: {format_invoice_date(order.created_at)}\n\n"
        "Thank you for your business!"
    )


def whatsapp_link(order):
    return WHATSAPP_URL.format(text=quote(whatsapp_message(order), safe=""))


def email_link(order):
    recipient = getattr(getattr(order, "customer", None), "email", None) or ""
    return f"mailto:{quote(recipient, safe='@')}?subject={quote(email_subject(order), safe='')}&body={quote(email_message(order), safe='')}"


def share_payload(order, channel):
    if channel == "email":
        return {
            "channel": "email",
            "subject": email_subject(order),
            "message": email_message(order),
            "link": email_link(order),
        }
    return {"channel": "whatsapp", "message": whatsapp_message(order), "link": whatsapp_link(order)}
