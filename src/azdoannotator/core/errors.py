class AnnotatorError(Exception):
    pass


class ConfigError(AnnotatorError):
    pass
