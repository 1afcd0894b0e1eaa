class AdminTablesError(Exception):
    """Base exception for all admin_tables errors"""
    pass

class ConfigError(AdminTablesError):
    """Invalid or inconsistent table config (tables/*.json or a TableConfig built in code)"""
    pass

class UnknownTableError(AdminTablesError, KeyError):
    """No table registered under the requested table id"""
    pass

class BulkActionError(AdminTablesError):
    """
    A bulk action could not be dispatched at all.
    Per-id failures are reported in BulkResult, never raised.
    """
    pass

class EmptySelectionError(BulkActionError):
    """A bulk action was requested with no selected rows"""
    pass

class BulkActionCancelled(BulkActionError):
    """The confirmation step for a bulk action was declined (or unavailable)"""
    pass
