import hashlib
import uuid


def hash_gateway_secret(secret: str) -> str:
    """UroPay bearer token: hex SHA-512 digest of the shared secret."""
    return hashlib.sha512(secret.encode("utf-8")).hexdigest()


def generate_correlation_token() -> str:
    return str(uuid.uuid4())


# Inbound webhooks are not authenticated: any caller can move a non-SUCCESS
# order to SUCCESS. There is no signature to verify against yet.
