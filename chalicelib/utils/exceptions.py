__all__ = ["NotAuthorizedException", "AccessDenied", "RecordNotFound", "MandatoryFieldsAreNotFilled",
           "ValidationException", "AuthorizationException", "SomeItemsAreNotAvailable", "OrderNotFound",
           "InvalidStatusTransition", "CartConflict"]


class NotAuthorizedException(Exception):
    LEVEL = 'warning'


# Generic Exceptions
class AccessDenied(Exception):
    LEVEL = 'warning'


class MandatoryFieldsAreNotFilled(Exception):
    LEVEL = 'warning'


# DynamoDB exceptions
class RecordNotFound(Exception):
    LEVEL = 'warning'


# Validations exceptions
class ValidationException(Exception):
    LEVEL = 'warning'


class AuthorizationException(Exception):
    LEVEL = 'error'


class SomeItemsAreNotAvailable(Exception):
    LEVEL = 'warning'


class OrderNotFound(RecordNotFound):
    pass


# Workflow exceptions
class InvalidStatusTransition(Exception):
    LEVEL = 'warning'


class CartConflict(Exception):
    LEVEL = 'info'
