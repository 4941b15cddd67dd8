class StorageError(RuntimeError):
    pass


class IdentityProviderError(RuntimeError):
    pass


class InvalidThemeError(ValueError):
    pass
