import razorpay


class SignatureVerifier:
    """
    Checks Razorpay checkout signatures.

    The gateway signs ``"<order_id>|<payment_id>"`` with HMAC-SHA256 keyed by
    the account's key secret and sends the hex digest back to the browser.
    The SDK's utility recomputes it with the client's secret.
    """

    def __init__(self, key_secret: str, key_id: str = "", client=None):
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except razorpay.errors.SignatureVerificationError:
            return False
        return True
