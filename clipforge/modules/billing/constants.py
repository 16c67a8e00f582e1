from enum import Enum

# Checkout session metadata keys, written by checkout and read by the webhook
METADATA_USER_ID = "userId"
METADATA_CREDITS = "creditsToAdd"

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


class WebhookStatus(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    REJECTED = "rejected"
