"""Exception types raised by domain_hacks."""


class DomainHacksError(Exception):
    """Base class for all domain_hacks errors."""


class CatalogError(DomainHacksError):
    """The TLD catalog file is missing or malformed."""


class ConfigError(DomainHacksError):
    """An environment setting has an invalid value."""
