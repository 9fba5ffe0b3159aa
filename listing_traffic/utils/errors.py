"""Error handling utilities."""


class ListingTrafficError(Exception):
    """Base exception for the listing traffic backend."""
    pass


class SupabaseError(ListingTrafficError):
    """Supabase operation error."""
    pass


class AuthenticationError(ListingTrafficError):
    """No authenticated user for an operation that needs one."""
    pass


class NotFoundError(ListingTrafficError):
    """Entity missing, soft-deleted, or not owned by the caller."""
    pass


class InputError(ListingTrafficError):
    """User-supplied input failed validation."""
    pass


class HarImportError(ListingTrafficError):
    """HAR traffic import could not proceed."""
    pass


class ExportError(ListingTrafficError):
    """Nothing to export."""
    pass


class ReportRenderError(ListingTrafficError):
    """PDF or print report rendering failed."""
    pass


class StorageError(ListingTrafficError):
    """Object storage upload rejected or failed."""
    pass
