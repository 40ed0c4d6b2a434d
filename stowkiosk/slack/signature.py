"""Slack request signing.

``x-slack-signature`` is ``v0=HMAC_SHA256(secret, "v0:" + ts + ":" + body)``;
requests more than five minutes away from the server clock are rejected
whatever their HMAC.
"""

from typing import Optional, Union

from slack_sdk.signature import Clock, SignatureVerifier


MAX_REQUEST_AGE_SEC = 300


def verify_slack_signature(
    signing_secret: str,
    body: Union[str, bytes],
    timestamp: Optional[str],
    signature: Optional[str],
    clock: Optional[Clock] = None,
) -> bool:
    """Check a Slack request signature with a constant-time compare.

    Args:
        signing_secret: App signing secret
        body: Raw request body exactly as received
        timestamp: ``X-Slack-Request-Timestamp`` header
        signature: ``X-Slack-Signature`` header
        clock: Clock override for tests

    Returns:
        True only for a fresh request with a matching signature
    """
    if not signing_secret or not timestamp or not signature:
        return False
    try:
        int(timestamp)
    except (TypeError, ValueError):
        return False

    verifier = SignatureVerifier(signing_secret=signing_secret, clock=clock or Clock())
    return verifier.is_valid(body=body, timestamp=str(timestamp), signature=signature)
