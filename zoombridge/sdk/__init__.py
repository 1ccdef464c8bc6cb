"""Meeting SDK authorization."""

from .signer import SdkSignaturePayload, SdkSigner

__all__ = ["SdkSignaturePayload", "SdkSigner"]
