"""Exception types for projscan."""


class ProjScanError(Exception):
    """Base exception for projscan errors."""

    pass


class NotReadableError(ProjScanError):
    """A directory (the scan root or a subdirectory) cannot be listed.

    Fatal when raised for the scan root. Subdirectory failures are recorded
    on the scan result and the walk continues.
    """

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class FileUnreadableError(ProjScanError):
    """A listed file vanished or lost permissions before its content was read."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class InvalidRulePatternError(ProjScanError):
    """A rule's regular expression failed to compile."""

    def __init__(self, message: str, rule_id: str | None = None):
        self.rule_id = rule_id
        super().__init__(message)


class ConfigurationMissingError(ProjScanError):
    """A configuration source that was explicitly requested does not exist."""

    pass


class ScanCancelledError(ProjScanError):
    """The caller cancelled a scan before it completed."""

    pass


class RuleValidationError(ProjScanError):
    """A rule configuration was rejected on save because some entries are invalid."""

    def __init__(self, message: str, errors: list | None = None):
        self.errors = list(errors or [])
        super().__init__(message)
