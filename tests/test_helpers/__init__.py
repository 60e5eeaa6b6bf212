from .session_creator import (
    RecordingNotifier,
    create_test_session,
    make_quote,
    make_receipt,
    TEST_PRIV_KEY,
    TEST_RPC_URL,
    TEST_RELAYER_URL,
    TEST_API_KEY,
    TEST_API_BASE_URL,
    TEST_TOKEN,
    TEST_RECIPIENT,
    RELAYER_ADDRESS,
    TEST_CHAIN_ID,
    TEST_OPERATION_HASH,
)
