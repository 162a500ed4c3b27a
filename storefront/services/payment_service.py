# storefront/services/payment_service.py
import logging
from decimal import Decimal
from typing import Any, Dict, Optional
import aiohttp
from ..config import Config
from ..exceptions import ConfigurationError, MinimumAmountError, PaymentCaptureError
from ..models.order import PaymentMethod
from ..models.payment import CaptureResult, PaymentDecision, PaymentSession, PaymentVerification

MIN_ONLINE_PAYMENT = Decimal("100.00")

PAYMONGO_PAID_STATUSES = {"succeeded", "paid"}
PAYPAL_PAID_STATUSES = {"APPROVED", "COMPLETED"}

def check_payment_amount(total: Decimal, payment_method: PaymentMethod) -> PaymentDecision:
    """Minimum-amount gate: online methods need at least MIN_ONLINE_PAYMENT, cod has no minimum"""
    payment_method = PaymentMethod(payment_method)
    if payment_method.is_online and total < MIN_ONLINE_PAYMENT:
        raise MinimumAmountError(
            payment_method=payment_method.value,
            total=total,
            minimum=MIN_ONLINE_PAYMENT,
            fallback_method=PaymentMethod.COD.value,
        )
    return PaymentDecision(
        payment_method=payment_method,
        total=total,
        requires_capture=payment_method.is_online,
    )

def to_centavos(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal(1)))

def from_centavos(centavos: Any) -> Optional[Decimal]:
    if centavos is None:
        return None
    return (Decimal(int(centavos)) / 100).quantize(Decimal("0.01"))

def _paypal_amount(amount: Optional[Dict[str, Any]]) -> Optional[Decimal]:
    value = (amount or {}).get("value")
    return Decimal(str(value)) if value is not None else None

def _provider_error(payload: Any, default: str) -> str:
    """Pull a readable message out of a PayMongo or PayPal error body"""
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get("detail") or default
        return payload.get("message") or payload.get("error_description") or default
    return default

class PayMongoClient:
    """GCash payments through PayMongo payment intents"""

    def __init__(self, secret_key: Optional[str] = None, api_url: Optional[str] = None,
                 frontend_url: Optional[str] = None):
        self.secret_key = secret_key if secret_key is not None else Config.PAYMONGO_SECRET_KEY
        self.api_url = (api_url or Config.PAYMONGO_API_URL).rstrip("/")
        self.frontend_url = (frontend_url or Config.FRONTEND_URL).rstrip("/")
        self.logger = logging.getLogger(__name__)

    def _auth(self) -> aiohttp.BasicAuth:
        if not self.secret_key:
            raise ConfigurationError("PAYMONGO_SECRET_KEY is missing. Set it in .env")
        return aiohttp.BasicAuth(self.secret_key, "")

    async def _request(self, method: str, path: str,
                       payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=Config.HTTP_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method, f"{self.api_url}{path}", json=payload, auth=self._auth()
            ) as response:
                data = await response.json(content_type=None)
                if response.status >= 400:
                    message = _provider_error(data, f"PayMongo request failed: {response.status}")
                    self.logger.error(f"PayMongo {method} {path} failed: {message}")
                    raise PaymentCaptureError(message)
                return data["data"]

    async def create_gcash_payment(self, amount: Decimal, description: str,
                                   billing: Optional[Dict[str, Any]] = None) -> PaymentSession:
        intent = await self._request("POST", "/payment_intents", {
            "data": {
                "attributes": {
                    "amount": to_centavos(amount),
                    "payment_method_allowed": ["gcash"],
                    "currency": Config.CURRENCY,
                    "capture_type": "automatic",
                    "description": description,
                    "statement_descriptor": Config.STORE_NAME,
                }
            }
        })
        self.logger.info(f"PayMongo payment intent created: {intent['id']}")

        method = await self._request("POST", "/payment_methods", {
            "data": {"attributes": {"type": "gcash", "billing": billing or {}}}
        })

        attached = await self._request("POST", f"/payment_intents/{intent['id']}/attach", {
            "data": {
                "attributes": {
                    "payment_method": method["id"],
                    "client_key": intent["attributes"]["client_key"],
                    "return_url": (
                        f"{self.frontend_url}/buyer/checkout?payment_success=true"
                        f"&payment_intent_id={intent['id']}"
                    ),
                }
            }
        })
        return self.parse_attached_intent(attached, intent, amount)

    @staticmethod
    def parse_attached_intent(attached: Dict[str, Any], intent: Dict[str, Any],
                              amount: Decimal) -> PaymentSession:
        next_action = attached.get("attributes", {}).get("next_action") or {}
        redirect_url = (next_action.get("redirect") or {}).get("url")
        if not redirect_url:
            raise PaymentCaptureError("No redirect URL returned from PayMongo", intent.get("id"))
        return PaymentSession(
            payment_method=PaymentMethod.GCASH,
            checkout_url=redirect_url,
            payment_reference=intent["id"],
            amount=amount,
            client_key=intent.get("attributes", {}).get("client_key"),
        )

    async def verify_payment(self, reference: str) -> PaymentVerification:
        if reference.startswith("cs_"):
            path = f"/checkout_sessions/{reference}"
        elif reference.startswith("pi_"):
            path = f"/payment_intents/{reference}"
        elif reference.startswith("pay_"):
            path = f"/payments/{reference}"
        else:
            raise PaymentCaptureError(f"Invalid payment reference format: {reference}", reference)
        return self.parse_verification(reference, await self._request("GET", path))

    @staticmethod
    def parse_verification(reference: str, data: Dict[str, Any]) -> PaymentVerification:
        attributes = data.get("attributes", {})
        status = attributes.get("status", "unknown")
        # checkout sessions report the amount on their payment intent
        amount = attributes.get("amount")
        if amount is None:
            amount = ((attributes.get("payment_intent") or {}).get("attributes") or {}).get("amount")
        return PaymentVerification(
            payment_reference=reference,
            status=status,
            paid=status in PAYMONGO_PAID_STATUSES,
            amount=from_centavos(amount),
            raw=data,
        )

class PayPalClient:
    """PayPal checkout orders (v2)"""

    def __init__(self, client_id: Optional[str] = None, secret: Optional[str] = None,
                 api_url: Optional[str] = None, frontend_url: Optional[str] = None):
        self.client_id = client_id if client_id is not None else Config.PAYPAL_CLIENT_ID
        self.secret = secret if secret is not None else Config.PAYPAL_SECRET
        self.api_url = (api_url or Config.PAYPAL_API_URL).rstrip("/")
        self.frontend_url = (frontend_url or Config.FRONTEND_URL).rstrip("/")
        self.logger = logging.getLogger(__name__)

    async def _access_token(self, session: aiohttp.ClientSession) -> str:
        if not self.client_id or not self.secret:
            raise ConfigurationError("PayPal credentials missing. Set PAYPAL_CLIENT_ID and PAYPAL_SECRET")
        async with session.post(
            f"{self.api_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=aiohttp.BasicAuth(self.client_id, self.secret),
        ) as response:
            data = await response.json(content_type=None)
            if response.status >= 400:
                message = _provider_error(data, f"PayPal auth failed: {response.status}")
                self.logger.error(f"PayPal auth error: {message}")
                raise PaymentCaptureError(message)
            return data["access_token"]

    async def _request(self, method: str, path: str,
                       payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=Config.HTTP_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            token = await self._access_token(session)
            async with session.request(
                method,
                f"{self.api_url}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            ) as response:
                data = await response.json(content_type=None)
                if response.status >= 400:
                    message = _provider_error(data, f"PayPal request failed: {response.status}")
                    self.logger.error(f"PayPal {method} {path} failed: {message}")
                    raise PaymentCaptureError(message)
                return data

    async def create_order(self, amount: Decimal, description: str) -> PaymentSession:
        order = await self._request("POST", "/v2/checkout/orders", {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {"currency_code": Config.CURRENCY, "value": f"{Decimal(amount):.2f}"},
                "description": description,
            }],
            "application_context": {
                "brand_name": Config.STORE_NAME,
                "landing_page": "NO_PREFERENCE",
                "user_action": "PAY_NOW",
                "return_url": f"{self.frontend_url}/buyer/checkout?payment_success=true&payment_method=paypal",
                "cancel_url": f"{self.frontend_url}/buyer/checkout?payment_success=false",
            },
        })
        self.logger.info(f"PayPal order created: {order.get('id')}")
        return self.parse_order(order, amount)

    @staticmethod
    def parse_order(order: Dict[str, Any], amount: Decimal) -> PaymentSession:
        approval_url = next(
            (link.get("href") for link in order.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        if not approval_url:
            raise PaymentCaptureError("No approval URL returned from PayPal", order.get("id"))
        return PaymentSession(
            payment_method=PaymentMethod.PAYPAL,
            checkout_url=approval_url,
            payment_reference=order["id"],
            amount=amount,
        )

    async def capture_order(self, reference: str) -> CaptureResult:
        data = await self._request("POST", f"/v2/checkout/orders/{reference}/capture", {})
        return self.parse_capture(reference, data)

    @staticmethod
    def parse_capture(reference: str, data: Dict[str, Any]) -> CaptureResult:
        units = data.get("purchase_units") or [{}]
        captures = (units[0].get("payments") or {}).get("captures") or [{}]
        return CaptureResult(
            payment_reference=reference,
            capture_id=captures[0].get("id"),
            status=data.get("status", "UNKNOWN"),
            amount=_paypal_amount(captures[0].get("amount")),
        )

    async def verify_payment(self, reference: str) -> PaymentVerification:
        data = await self._request("GET", f"/v2/checkout/orders/{reference}")
        return self.parse_verification(reference, data)

    @staticmethod
    def parse_verification(reference: str, data: Dict[str, Any]) -> PaymentVerification:
        status = data.get("status", "UNKNOWN")
        units = data.get("purchase_units") or [{}]
        return PaymentVerification(
            payment_reference=reference,
            status=status,
            paid=status in PAYPAL_PAID_STATUSES,
            amount=_paypal_amount(units[0].get("amount")),
            raw=data,
        )

class PaymentService:
    """Payment gate plus the external capture providers"""

    def __init__(self, gcash_client: Optional[PayMongoClient] = None,
                 paypal_client: Optional[PayPalClient] = None):
        self.gcash = gcash_client or PayMongoClient()
        self.paypal = paypal_client or PayPalClient()
        self.logger = logging.getLogger(__name__)

    def authorize(self, total: Decimal, payment_method: PaymentMethod) -> PaymentDecision:
        try:
            return check_payment_amount(total, payment_method)
        except MinimumAmountError as e:
            self.logger.warning(f"Payment rejected: {e.message}")
            raise

    async def create_payment(self, amount: Decimal, payment_method: PaymentMethod,
                             billing: Optional[Dict[str, Any]] = None,
                             description: str = "Order Payment") -> PaymentSession:
        """Open a provider checkout session for an online payment"""
        decision = self.authorize(amount, payment_method)
        if not decision.requires_capture:
            raise PaymentCaptureError(f"{decision.payment_method.value} does not use a payment session")

        if decision.payment_method == PaymentMethod.GCASH:
            session = await self.gcash.create_gcash_payment(amount, description, billing)
        else:
            session = await self.paypal.create_order(amount, description)
        self.logger.info(
            f"Payment session {session.payment_reference} opened via {session.payment_method.value}"
        )
        return session

    def _check_amount(self, reference: str, amount: Optional[Decimal], expected: Decimal) -> None:
        if amount is None or amount != expected:
            self.logger.error(f"Payment {reference} amount {amount} does not match order total {expected}")
            raise PaymentCaptureError(
                f"Paid amount ({amount}) does not match the order total ({expected}). "
                "Please start the checkout again.",
                reference,
            )

    async def confirm_payment(self, payment_method: PaymentMethod, reference: str,
                              expected_amount: Optional[Decimal] = None) -> PaymentVerification:
        """Make sure the money was actually taken; raise PaymentCaptureError otherwise.

        With expected_amount the provider must also report exactly that amount.
        PayPal orders are checked before capture so a mismatch takes no money.
        """
        payment_method = PaymentMethod(payment_method)
        if not reference:
            raise PaymentCaptureError("A payment reference is required for online payments")

        if payment_method == PaymentMethod.PAYPAL:
            if expected_amount is not None:
                approved = await self.paypal.verify_payment(reference)
                self._check_amount(reference, approved.amount, expected_amount)
            capture = await self.paypal.capture_order(reference)
            self.logger.info(f"PayPal payment {reference} captured: {capture.status}")
            verification = PaymentVerification(
                payment_reference=reference,
                status=capture.status,
                paid=capture.status in PAYPAL_PAID_STATUSES,
                amount=capture.amount,
                raw={"capture_id": capture.capture_id},
            )
        elif payment_method == PaymentMethod.GCASH:
            verification = await self.gcash.verify_payment(reference)
        else:
            raise PaymentCaptureError("Cash on delivery orders have nothing to capture", reference)

        if not verification.paid:
            self.logger.warning(f"Payment {reference} not completed: {verification.status}")
            raise PaymentCaptureError(
                f"Payment was not completed (status: {verification.status}). "
                "Please retry or choose another payment method.",
                reference,
            )
        if expected_amount is not None:
            self._check_amount(reference, verification.amount, expected_amount)
        return verification
