class ResourceNotFoundException(Exception):
    pass

class InvoiceStateError(Exception):
    """Raised when an invoice can no longer be changed (e.g. it was cancelled)."""
    pass
