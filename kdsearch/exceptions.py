class ConfigurationError(ValueError):
    pass


class InvalidPointError(ValueError):
    def __init__(self, index: int, *args: object):
        super().__init__(f"Point {index} has non-finite coordinates", *args)
        self.index = index


class DimensionMismatchError(ValueError):
    def __init__(self, expected: int, actual: int, *args: object):
        super().__init__(
            f"Vector has {actual} dimensions but the index expects {expected}",
            *args,
        )
        self.expected = expected
        self.actual = actual
