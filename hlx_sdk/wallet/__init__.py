from .signer import CallableSigner, LocalSigner, Signature, Signer, recover_address  # noqa: F401

__all__ = ["Signature", "Signer", "LocalSigner", "CallableSigner", "recover_address"]
