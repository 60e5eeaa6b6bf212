"""
RelayClient - JSON/HTTP client for the relayer network.

The relayer turns instructions into a quote, executes a signed quote and
reports settlement through its explorer endpoint. Response schemas vary
between relayer versions, so only the fields the workflow needs are read.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Type

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .._rate_limited_log import rate_limited_log
from ..account import SmartAccount
from ..exceptions import ExecutionError, QuoteError, RelayError, SettlementError, SettlementTimeoutError
from ..models import ChainInstruction, OperationHandle, SettlementReceipt, Trigger
from ..utils import sanitize_payload, short_hash, validate_url
from .sponsorship import detect_sponsorship


@dataclass
class SponsoredQuote:
    """
    A relayer quote for a set of instructions.

    ``sponsorship_granted`` reflects what the response reported, not what
    was requested. ``executed`` is set once the quote has been submitted.
    """
    quote_hash: str
    instructions: Tuple[ChainInstruction, ...]
    trigger: Trigger
    sponsorship_requested: bool
    sponsorship_granted: bool
    sponsorship_source: Optional[str]
    raw: Dict[str, Any] = field(repr=False)
    account: SmartAccount = field(repr=False)
    executed: bool = False


class _PollUnavailable(SettlementError):
    """A single settlement poll failed in a way worth retrying."""


class RelayClient:
    """
    Client for the relayer network.

    GET requests are retried by the transport; POST requests are not,
    because submitting the same quote twice can execute it twice.
    """

    QUOTE_PATH = "/v1/quote"
    EXEC_PATH = "/v1/exec"
    EXPLORER_PATH = "/v1/explorer/{operation_hash}"

    def __init__(
        self,
        relayer_url: str,
        api_key: str,
        retry_count: int = 3,
        timeout: float = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the RelayClient

        Args:
            relayer_url: Relayer base URL (e.g., "https://network.biconomy.io")
            api_key: API key sent with every request
            retry_count: Number of retries for idempotent requests
            timeout: Timeout for HTTP requests in seconds
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the API key is missing or the URL is insecure
        """
        if not api_key:
            raise ValueError("api_key must be provided")

        self.relayer_url = validate_url("relayer_url", relayer_url)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = requests.Session()
        self.session.headers.update({
            "X-API-Key": api_key,
            "Content-Type": "application/json",
        })
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

    def request_quote(
        self,
        account: SmartAccount,
        instructions: Sequence[ChainInstruction],
        trigger: Trigger,
        sponsorship_requested: bool = True
    ) -> SponsoredQuote:
        """
        Ask the relayer to quote a set of instructions.

        Args:
            account: Smart account that will execute the instructions
            instructions: Instructions to bundle into one operation
            trigger: Funding trigger for the operation
            sponsorship_requested: Whether to ask the relayer to pay gas

        Returns:
            Quote ready for execution

        Raises:
            QuoteError: If the relayer does not return a usable quote
        """
        if not instructions:
            raise QuoteError("At least one instruction is required")
        chain = account.chains.get(trigger.chain_id)
        if chain is None:
            raise QuoteError(f"Account is not configured for trigger chain {trigger.chain_id}")

        body: Dict[str, Any] = {
            "ownerAddress": account.address,
            "version": chain.version,
            "instructions": [instruction.to_payload() for instruction in instructions],
            "trigger": trigger.to_payload(),
        }
        if sponsorship_requested:
            body["sponsorship"] = {"mode": "SPONSORED"}

        self.logger.debug(f"Requesting quote: {sanitize_payload(body)}")
        data = self._post(self.QUOTE_PATH, body, QuoteError, "Quote")
        self.logger.debug(f"Quote response: {sanitize_payload(data)}")

        quote_hash = data.get("hash")
        nested = data.get("quote")
        if not quote_hash and isinstance(nested, dict):
            quote_hash = nested.get("hash")
        if not quote_hash or not isinstance(quote_hash, str):
            raise QuoteError(f"Missing hash in relayer quote response: {sanitize_payload(data)}")

        source = detect_sponsorship(data)
        if source:
            self.logger.info(f"Quote {short_hash(quote_hash)} sponsored (reported via '{source}')")
        else:
            self.logger.info(f"Quote {short_hash(quote_hash)} does not report sponsorship")

        return SponsoredQuote(
            quote_hash=quote_hash,
            instructions=tuple(instructions),
            trigger=trigger,
            sponsorship_requested=sponsorship_requested,
            sponsorship_granted=source is not None,
            sponsorship_source=source,
            raw=data,
            account=account,
        )

    def execute(self, quote: SponsoredQuote) -> OperationHandle:
        """
        Sign a quote and submit it to the relayer network.

        Not idempotent: a quote is submitted at most once, even if the
        first attempt fails.

        Args:
            quote: Quote returned by request_quote

        Returns:
            Handle for polling settlement

        Raises:
            ExecutionError: If signing or submission fails
        """
        if quote.executed:
            raise ExecutionError(f"Quote {short_hash(quote.quote_hash)} has already been executed")
        quote.executed = True

        try:
            signature = quote.account.signer.sign(quote.quote_hash)
        except Exception as e:
            self.logger.error(f"Quote signing failed: {e}")
            raise ExecutionError(f"Failed to sign quote: {str(e)}") from e

        data = self._post(
            self.EXEC_PATH,
            {"quote": quote.raw, "signature": signature},
            ExecutionError,
            "Execution",
        )

        operation_hash = data.get("hash") or data.get("operationHash")
        if not operation_hash or not isinstance(operation_hash, str):
            raise ExecutionError(f"Missing operation hash in relayer response: {sanitize_payload(data)}")

        self.logger.info(f"Operation submitted: {operation_hash}")
        return OperationHandle(operation_hash=operation_hash)

    def get_settlement(self, handle: OperationHandle) -> Optional[SettlementReceipt]:
        """
        Poll the relayer explorer once.

        Args:
            handle: Handle returned by execute

        Returns:
            Current receipt, or None if the relayer has not indexed the operation yet

        Raises:
            SettlementError: If the relayer rejects the request or returns a malformed receipt
        """
        url = self.relayer_url + self.EXPLORER_PATH.format(operation_hash=handle.operation_hash)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise _PollUnavailable(f"Settlement request failed: {str(e)}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 500:
            raise _PollUnavailable(
                f"Relayer explorer error ({response.status_code}): {self._error_detail(response)}",
                status_code=response.status_code,
            )
        if not response.ok:
            raise SettlementError(
                f"Settlement lookup rejected by relayer ({response.status_code}): {self._error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise _PollUnavailable(f"Invalid JSON response from relayer explorer: {str(e)}") from e

        try:
            return SettlementReceipt.model_validate(data)
        except ValidationError as e:
            raise SettlementError(f"Malformed settlement receipt: {e.error_count()} invalid field(s)") from e

    def await_settlement(
        self,
        handle: OperationHandle,
        poll_interval: float = 1.0,
        timeout: float = 120
    ) -> SettlementReceipt:
        """
        Poll until the operation reaches a terminal status.

        One request is in flight at a time. Transient poll failures are
        logged and polling continues until the deadline.

        Args:
            handle: Handle returned by execute
            poll_interval: Seconds between polls
            timeout: Overall deadline in seconds

        Returns:
            Terminal settlement receipt

        Raises:
            SettlementTimeoutError: If no terminal status is seen before the deadline
            SettlementError: If the relayer rejects the lookup
        """
        deadline = time.monotonic() + timeout
        polls = 0
        while True:
            polls += 1
            try:
                receipt = self.get_settlement(handle)
            except _PollUnavailable as e:
                rate_limited_log(
                    f"Settlement poll for {short_hash(handle.operation_hash)} failed: {e}",
                    level="warning",
                    logger_instance=self.logger,
                )
                receipt = None

            if receipt is not None and receipt.is_terminal:
                self.logger.info(
                    f"Operation {short_hash(handle.operation_hash)} settled with "
                    f"{receipt.status.value} after {polls} poll(s)"
                )
                return receipt

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SettlementTimeoutError(
                    f"Operation {handle.operation_hash} did not settle within {timeout}s"
                )
            time.sleep(min(poll_interval, remaining))

    def _post(
        self,
        path: str,
        body: Dict[str, Any],
        error_cls: Type[RelayError],
        action: str
    ) -> Dict[str, Any]:
        try:
            response = self.session.post(self.relayer_url + path, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"{action} request failed: {e}")
            raise error_cls(f"{action} request failed: {str(e)}") from e

        if not response.ok:
            detail = self._error_detail(response)
            self.logger.error(f"{action} rejected by relayer ({response.status_code}): {detail}")
            raise error_cls(
                f"{action} rejected by relayer ({response.status_code}): {detail}",
                status_code=response.status_code,
            )

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            self.logger.warning(f"Unexpected Content-Type: {content_type} (expected application/json)")

        try:
            data = response.json()
        except ValueError as e:
            raise error_cls(f"Invalid JSON response from relayer: {str(e)}") from e
        if not isinstance(data, dict):
            raise error_cls(f"Unexpected relayer response type: {type(data).__name__}")
        return data

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return (response.text or "").strip()[:200] or response.reason or "no details"
        if isinstance(data, dict):
            for key in ("message", "error", "errors", "detail"):
                if data.get(key):
                    return str(data[key])
        return str(data)[:200]

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
