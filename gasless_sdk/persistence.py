"""
Backend record of completed transfers.

Recording is best effort: the transfer has already settled on-chain by the
time a record is written, so callers treat every failure here as advisory.
"""
import logging
from typing import Optional

import requests

from .exceptions import PersistenceError
from .models import TransactionRecord
from .utils import short_hash, validate_url


class TransactionStore:
    """Posts transaction records to the backend API."""

    TRANSACTION_PATH = "/api/transaction"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the TransactionStore

        Args:
            base_url: Backend base URL (e.g., "https://api.example.com")
            timeout: Timeout for HTTP requests in seconds
            logger: Optional logger instance to use for debug/info logging
        """
        self.base_url = validate_url("api_base_url", base_url)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.session = requests.Session()

    def record(self, record: TransactionRecord) -> None:
        """
        Store one transaction record.

        Raises:
            PersistenceError: If the backend is unreachable or answers non-2xx
        """
        body = record.model_dump(by_alias=True)
        try:
            response = self.session.post(
                self.base_url + self.TRANSACTION_PATH,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Failed to save transaction: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise PersistenceError(f"Failed to save transaction: backend returned {response.status_code}")

        self.logger.debug(f"Saved transaction {short_hash(record.tx_hash)} to backend")

    def close(self) -> None:
        self.session.close()
