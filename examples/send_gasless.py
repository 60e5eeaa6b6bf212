#!/usr/bin/env python3
"""
Example of sending an ERC-20 transfer through a sponsoring relayer.

Required environment variables:
    PRIVATE_KEY               Key of the sending wallet
    GASLESS_RPC_URL           RPC endpoint of the target chain
    GASLESS_TOKEN_ADDRESS     Token contract to transfer
    GASLESS_RELAYER_API_KEY   Relayer API key

Usage:
    python send_gasless.py 0xRecipient 1.5
"""
import argparse
import logging
import os
import sys

from gasless_sdk import (
    ConfigurationError,
    InitializationError,
    LocalSigner,
    NetworkConfig,
    TransferSession,
    TransferSettings,
)


def main():
    parser = argparse.ArgumentParser(description="Send tokens without paying gas")
    parser.add_argument("recipient", help="Recipient address")
    parser.add_argument("amount", help="Amount in whole tokens, e.g. 1.5")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return 1

    try:
        settings = TransferSettings.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1

    print("Available networks:")
    for network_name in NetworkConfig.load_networks():
        print(f"  - {network_name}")
    print(f"Using: {settings.network} (chain {settings.chain_id})")

    signer = LocalSigner(private_key)
    print(f"Signer address: {signer.address}")

    try:
        session = TransferSession.connect(signer, settings)
    except InitializationError as e:
        print(f"Could not initialize smart account: {e}")
        return 1

    with session:
        outcome = session.send(args.recipient, args.amount)

    if outcome.succeeded:
        print(f"Transfer settled: {outcome.transaction_hash}")
        print(f"Gas paid by: {outcome.payer_classification.value}")
        link = NetworkConfig.get_explorer_tx_url(settings.network, outcome.transaction_hash)
        if link:
            print(f"Block explorer: {link}")
        return 0

    print(f"Transfer failed ({outcome.error_kind.value}): {outcome.error_message}")
    if outcome.operation_hash:
        print(f"Relayer operation: {outcome.operation_hash}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
