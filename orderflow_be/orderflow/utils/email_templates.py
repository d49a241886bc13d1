from typing import Dict, Optional

APP_NAME = "Orderflow"

_STATUS_LINES = {
    "confirmed": "Your order has been confirmed by the seller.",
    "dispatched": "Your order has left the seller's warehouse.",
    "shipped": "Your order is on its way.",
    "delivered": "Your order has been delivered.",
}


def order_status_update(order_number: str, new_status: str, expected_delivery: Optional[str] = None) -> Dict[str, str]:
    subject = f"Order {order_number} Status Updated"
    line = _STATUS_LINES.get(new_status, f"Your order status is now: {new_status}.")
    body = f"{line}\n\nOrder: {order_number}\nStatus: {new_status}\n"
    if expected_delivery:
        body += f"Expected delivery: {expected_delivery}\n"
    body += f"\nThank you for shopping with {APP_NAME}."
    return {"subject": subject, "body": body}


def order_cancelled(order_number: str, reason: Optional[str], refund_status: str) -> Dict[str, str]:
    subject = f"Order {order_number} Cancelled"
    body = (
        f"Your order {order_number} has been cancelled.\n"
        f"Reason: {reason or 'not given'}\n"
        f"Refund status: {refund_status}\n\n"
        "If you have any questions, reply to this email."
    )
    return {"subject": subject, "body": body}


def order_rejected(order_number: str, reason: Optional[str]) -> Dict[str, str]:
    subject = f"Order {order_number} Rejected"
    body = (
        f"Unfortunately the seller could not accept order {order_number}.\n"
        f"Reason: {reason or 'not given'}\n\n"
        f"-- The {APP_NAME} Team"
    )
    return {"subject": subject, "body": body}


def request_decision(order_number: str, request_type: str, approved: bool, reason: Optional[str] = None) -> Dict[str, str]:
    verdict = "Approved" if approved else "Rejected"
    subject = f"{request_type.capitalize()} Request {verdict} - Order {order_number}"
    if approved and request_type == "return":
        outcome = "Your refund has been processed."
    elif approved:
        outcome = "Your replacement has been processed."
    else:
        outcome = f"Reason: {reason or 'not given'}"
    body = (
        f"Your {request_type} request for order {order_number} was {verdict.lower()}.\n"
        f"{outcome}\n\n"
        f"-- The {APP_NAME} Team"
    )
    return {"subject": subject, "body": body}
