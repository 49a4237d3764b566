class StorefrontError(Exception):
    """Base class for errors surfaced to the storefront user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CheckoutError(StorefrontError):
    pass


class InvalidStatusTransition(StorefrontError):
    pass


class UploadTooLarge(StorefrontError):
    pass


class AuthenticationFailed(StorefrontError):
    pass


class NotAuthenticated(StorefrontError):
    pass
