class ModResolveError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(ModResolveError):
    # errors related to configuration.
    pass

class ModulePathError(ModResolveError):
    # errors related to the module search path.
    pass
