"""
M-Pesa Gateway Client
Based on the Safaricom Daraja API.

Supported flows
---------------
STK Push (Lipa na M-Pesa Online)
    POST /mpesa/stkpush/v1/processrequest
    POST /mpesa/stkpushquery/v1/query         (status poll)

C2B (till / paybill)
    POST /mpesa/c2b/v1/registerurl
    POST /mpesa/c2b/v1/simulate               (sandbox only)

B2C / B2B payouts
    POST /mpesa/b2c/v3/paymentrequest
    POST /mpesa/b2b/v1/paymentrequest

Account Balance, Transaction Status, Reversal
    POST /mpesa/accountbalance/v1/query
    POST /mpesa/transactionstatus/v1/query
    POST /mpesa/reversal/v1/request

Authentication
    GET  /oauth/v1/generate?grant_type=client_credentials  (Basic auth)
    A fresh token is fetched for every operation unless cache_token=True.

Every operation returns the response envelope
``{"success": bool, "status": int, **daraja_body}`` untouched. Daraja
business errors (non-zero ResponseCode, errorCode bodies) are returned as
data; use ``parse_response()`` to decode them.
"""

import threading
from typing import Any, Dict, Optional, Union

import requests
from marshmallow import ValidationError

from mpesa_gateway.config import BASE_URLS, DEFAULT_CERTIFICATES, ROUTES, config as config_classes
from mpesa_gateway.errors import ConfigurationError
from mpesa_gateway.schemas import CredentialsSchema
from mpesa_gateway.services import AuthService, HttpService
from mpesa_gateway.utils.encryption import (
    derive_security_credential,
    derive_timestamp_and_password,
    load_certificate,
)
from mpesa_gateway.utils.logger import get_logger

logger = get_logger(__name__)

ShortCode = Union[int, str]


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop fields the caller left unset so they are omitted from the body."""
    return {key: value for key, value in payload.items() if value is not None}


class MpesaClient:
    """M-Pesa (Daraja API) client."""

    def __init__(
        self,
        client_key: str,
        client_secret: str,
        environment: str = "sandbox",
        initiator_password: Optional[str] = None,
        security_credential: Optional[str] = None,
        certificate_path: Optional[str] = None,
        timeout: int = 30,
        cache_token: bool = False,
        session: Optional[requests.Session] = None,
    ):
        try:
            credentials = CredentialsSchema().load({
                "client_key":          client_key,
                "client_secret":       client_secret,
                "environment":         environment if environment is not None else "sandbox",
                "initiator_password":  initiator_password,
                "security_credential": security_credential,
                "certificate_path":    certificate_path,
            })
        except ValidationError as exc:
            raise ConfigurationError(f"MpesaClient: invalid credentials – {exc.messages}") from exc

        self.client_key         = credentials["client_key"]
        self.client_secret      = credentials["client_secret"]
        self.environment        = credentials["environment"]
        self.initiator_password = credentials.get("initiator_password")
        self.certificate_path   = credentials.get("certificate_path")

        self.security_credential: Optional[str] = credentials.get("security_credential")
        self._credential_lock = threading.Lock()

        self.base_url = BASE_URLS[self.environment]
        self.http = HttpService(self.base_url, timeout=timeout, session=session)
        self.auth = AuthService(self.client_key, self.client_secret, self.http, cache_token=cache_token)

        if (
            self.environment == "production"
            and not self.security_credential
            and not self.initiator_password
        ):
            logger.warning(
                "MpesaClient: neither security_credential nor initiator_password is set; "
                "reversal, balance, status and payout calls will fail"
            )

    @classmethod
    def from_env(cls, config_name: str = "default", **overrides) -> "MpesaClient":
        """Build a client from MPESA_* settings (see mpesa_gateway.config)."""
        cfg = config_classes.get(config_name, config_classes["default"])
        options = {
            "client_key":          cfg.MPESA_CONSUMER_KEY,
            "client_secret":       cfg.MPESA_CONSUMER_SECRET,
            "environment":         cfg.MPESA_ENV,
            "initiator_password":  cfg.MPESA_INITIATOR_PASSWORD,
            "security_credential": cfg.MPESA_SECURITY_CREDENTIAL,
            "certificate_path":    cfg.MPESA_CERTIFICATE_PATH,
            "timeout":             cfg.MPESA_TIMEOUT,
            "cache_token":         cfg.MPESA_CACHE_TOKEN,
        }
        options.update(overrides)
        return cls(**options)

    # Auth & credentials

    def authenticate(self):
        return self.auth.authenticate()

    def ensure_security_credential(self) -> str:
        """
        Return the security credential, deriving it on first use.

        The encrypted initiator password is computed once per client and
        reused; a credential supplied at construction is used as-is.

        Raises:
            ConfigurationError: no initiator password/credential configured,
                or the certificate is missing or unreadable
        """
        if self.security_credential:
            return self.security_credential

        with self._credential_lock:
            if self.security_credential:
                return self.security_credential

            if not self.initiator_password:
                raise ConfigurationError(
                    "MpesaClient: a security_credential or initiator_password is required"
                )

            path = self.certificate_path or DEFAULT_CERTIFICATES[self.environment]
            certificate = load_certificate(path)
            self.security_credential = derive_security_credential(self.initiator_password, certificate)
            logger.info("MpesaClient: security credential derived from %s", path)

        return self.security_credential

    def _post(self, route: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Authenticate, then POST a payload to a Daraja route."""
        _, headers = self.authenticate()
        logger.debug("MpesaClient: POST %s", ROUTES[route])
        return self.http.post(ROUTES[route], headers, _compact(payload))

    # Lipa na M-Pesa Online

    def stk_push(
        self,
        business_short_code: ShortCode,
        pass_key: str,
        amount: Union[int, str],
        party_a: Union[int, str],
        party_b: Union[int, str],
        phone_number: Union[int, str],
        callback_url: str,
        account_reference: str,
        transaction_desc: Optional[str] = None,
        transaction_type: str = "CustomerPayBillOnline",
    ) -> Dict[str, Any]:
        """
        Initiate an STK Push prompt on the payer's phone.

        transaction_type: "CustomerPayBillOnline" for paybills,
            "CustomerBuyGoodsOnline" for tills.
        """
        timestamp, password = derive_timestamp_and_password(business_short_code, pass_key)

        return self._post("stkpush", {
            "BusinessShortCode": business_short_code,
            "Password":          password,
            "Timestamp":         timestamp,
            "TransactionType":   transaction_type,
            "Amount":            amount,
            "PartyA":            party_a,
            "PartyB":            party_b,
            "PhoneNumber":       phone_number,
            "CallBackURL":       callback_url,
            "AccountReference":  account_reference,
            "TransactionDesc":   transaction_desc,
        })

    def stk_query(
        self,
        business_short_code: ShortCode,
        pass_key: str,
        checkout_request_id: str,
    ) -> Dict[str, Any]:
        """Check the status of an STK Push by its CheckoutRequestID."""
        timestamp, password = derive_timestamp_and_password(business_short_code, pass_key)

        return self._post("stkquery", {
            "BusinessShortCode": business_short_code,
            "Password":          password,
            "Timestamp":         timestamp,
            "CheckoutRequestID": checkout_request_id,
        })

    # Reversal

    def reversal(
        self,
        initiator: str,
        transaction_id: str,
        amount: Union[int, str],
        receiver_party: ShortCode,
        result_url: str,
        queue_timeout_url: str,
        command_id: Optional[str] = None,
        receiver_identifier_type: Optional[str] = None,
        remarks: Optional[str] = None,
        occasion: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Reverse an M-Pesa transaction.

        Reversal is asynchronous; the outcome is delivered to result_url.
        """
        security_credential = self.ensure_security_credential()

        return self._post("reversal", {
            "Initiator":              initiator,
            "SecurityCredential":     security_credential,
            "CommandID":              command_id if command_id is not None else "TransactionReversal",
            "TransactionID":          transaction_id,
            "Amount":                 amount,
            "ReceiverParty":          receiver_party,
            "RecieverIdentifierType": receiver_identifier_type if receiver_identifier_type is not None else "4",
            "ResultURL":              result_url,
            "QueueTimeOutURL":        queue_timeout_url,
            "Remarks":                remarks if remarks is not None else "Transaction Reversal",
            "Occasion":               occasion if occasion is not None else "TransactionReversal",
        })

    # C2B

    def c2b_register(
        self,
        short_code: ShortCode,
        response_type: str,
        confirmation_url: str,
        validation_url: str,
    ) -> Dict[str, Any]:
        """
        Register C2B confirmation and validation URLs for a shortcode.

        response_type: "Completed" (auto-accept on validation timeout)
            | "Cancelled".
        """
        return self._post("c2bregister", {
            "ShortCode":       short_code,
            "ResponseType":    response_type,
            "ConfirmationURL": confirmation_url,
            "ValidationURL":   validation_url,
        })

    def c2b_simulate(
        self,
        short_code: ShortCode,
        amount: Union[int, str],
        msisdn: Union[int, str],
        bill_ref_number: Optional[str] = None,
        command_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Simulate a C2B payment (sandbox only)."""
        if self.environment != "sandbox":
            raise ConfigurationError("MpesaClient: c2b_simulate is only available in the sandbox environment")

        return self._post("c2bsimulate", {
            "ShortCode":     short_code,
            "CommandID":     command_id if command_id is not None else "CustomerPayBillOnline",
            "Amount":        amount,
            "Msisdn":        msisdn,
            "BillRefNumber": bill_ref_number,
        })

    # Account Balance / Transaction Status

    def account_balance(
        self,
        initiator: str,
        party_a: ShortCode,
        result_url: str,
        queue_timeout_url: str,
        command_id: Optional[str] = None,
        identifier_type: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> Dict[str, Any]:
        security_credential = self.ensure_security_credential()

        return self._post("accountbalance", {
            "Initiator":          initiator,
            "SecurityCredential": security_credential,
            "CommandID":          command_id if command_id is not None else "AccountBalance",
            "PartyA":             party_a,
            "IdentifierType":     identifier_type if identifier_type is not None else "4",
            "Remarks":            remarks if remarks is not None else "Account Balance",
            "QueueTimeOutURL":    queue_timeout_url,
            "ResultURL":          result_url,
        })

    def transaction_status(
        self,
        initiator: str,
        transaction_id: str,
        party_a: ShortCode,
        identifier_type: str,
        result_url: str,
        queue_timeout_url: str,
        remarks: Optional[str] = None,
        occasion: Optional[str] = None,
        originator_conversation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Query the status of a B2B, B2C or C2B transaction.

        Result is delivered asynchronously to result_url.
        """
        security_credential = self.ensure_security_credential()

        return self._post("transactionstatus", {
            "Initiator":                initiator,
            "SecurityCredential":       security_credential,
            "CommandID":                "TransactionStatusQuery",
            "TransactionID":            transaction_id,
            "OriginatorConversationID": originator_conversation_id,
            "PartyA":                   party_a,
            "IdentifierType":           identifier_type,
            "ResultURL":                result_url,
            "QueueTimeOutURL":          queue_timeout_url,
            "Remarks":                  remarks if remarks is not None else "Transaction Status",
            "Occasion":                 occasion if occasion is not None else "TransactionStatus",
        })

    # Payouts

    def b2c(
        self,
        originator_conversation_id: str,
        initiator_name: str,
        command_id: str,
        amount: Union[int, str],
        party_a: ShortCode,
        party_b: Union[int, str],
        remarks: str,
        queue_timeout_url: str,
        result_url: str,
        occasion: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send money from a business shortcode to a customer.

        command_id options:
            "SalaryPayment"    – Salary / payroll
            "BusinessPayment"  – Ad-hoc business payment
            "PromotionPayment" – Promotions / rewards
        """
        security_credential = self.ensure_security_credential()

        return self._post("b2c", {
            "OriginatorConversationID": originator_conversation_id,
            "InitiatorName":            initiator_name,
            "SecurityCredential":       security_credential,
            "CommandID":                command_id,
            "Amount":                   amount,
            "PartyA":                   party_a,
            "PartyB":                   party_b,
            "Remarks":                  remarks,
            "QueueTimeOutURL":          queue_timeout_url,
            "ResultURL":                result_url,
            "Occassion":                occasion,
        })

    def b2b(
        self,
        initiator: str,
        amount: Union[int, str],
        party_a: ShortCode,
        party_b: ShortCode,
        account_reference: str,
        queue_timeout_url: str,
        result_url: str,
        remarks: Optional[str] = None,
        requester: Optional[Union[int, str]] = None,
    ) -> Dict[str, Any]:
        """Pay from one business shortcode to another (BusinessPayToBulk)."""
        security_credential = self.ensure_security_credential()

        return self._post("b2b", {
            "Initiator":              initiator,
            "SecurityCredential":     security_credential,
            "CommandID":              "BusinessPayToBulk",
            "SenderIdentifierType":   4,
            "RecieverIdentifierType": 4,
            "Amount":                 amount,
            "PartyA":                 party_a,
            "PartyB":                 party_b,
            "AccountReference":       account_reference,
            "Requester":              requester,
            "Remarks":                remarks if remarks is not None else "",
            "QueueTimeOutURL":        queue_timeout_url,
            "ResultURL":              result_url,
        })
