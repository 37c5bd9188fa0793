"""Exception classes for the app store catalog"""


class AppStoreError(Exception):
    """Base exception for all app store errors"""
    pass


class AppStoreNotFoundError(AppStoreError):
    """Raised when an app store index is outside the registered list"""
    pass


class LastAppStoreError(AppStoreError):
    """Raised when unregistering would leave the registry without any app store"""
    pass


class NotAnAppStoreError(AppStoreError):
    """Raised when a URL does not resolve to a valid app store"""
    pass


class RegistrationCancelledError(AppStoreError):
    """Raised inside a registration task once its token is cancelled or past its deadline"""
    pass


class CatalogFetchError(AppStoreError):
    """Raised when the merged catalog cannot be built"""
    pass


class RecommendFetchError(AppStoreError):
    """Raised when the recommend list cannot be obtained"""
    pass


class CategoryFetchError(AppStoreError):
    """Raised when the category list cannot be obtained"""
    pass


class InventoryError(AppStoreError):
    """Raised when the installed app inventory cannot be listed"""
    pass


class StoreInfoError(AppStoreError):
    """Raised when a compose app carries no usable store info"""
    pass


class RepresentationError(AppStoreError):
    """Raised when a compose app cannot be serialized"""
    pass
