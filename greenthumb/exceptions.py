"""Error taxonomy shared by the gateway, the garden store and the assistant."""


class GreenthumbError(RuntimeError):
    """Base error for every failure raised inside the package."""


class ValidationError(GreenthumbError):
    """Raised when user input is rejected before any remote call."""


# ============================================================================#
# Persistence boundary
# ============================================================================#
class StorageError(GreenthumbError):
    """Base error for the local garden store."""


class StorageUnavailable(StorageError):
    """Raised when the backing database cannot be opened or is unsupported."""


class StorageReadError(StorageError):
    """Raised when saved plants cannot be read back."""


class StorageWriteError(StorageError):
    """Raised when a plant cannot be written or deleted."""


# ============================================================================#
# AI service boundary
# ============================================================================#
class GatewayError(GreenthumbError):
    """Base error for remote AI calls (transport or contract violations)."""


class IdentificationFailed(GatewayError):
    pass


class DiagnosisFailed(GatewayError):
    pass


class ProductSearchFailed(GatewayError):
    pass


class ChatFailed(GatewayError):
    pass
